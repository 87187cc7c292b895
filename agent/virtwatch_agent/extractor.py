"""
虚拟机指标提取模块。

从 libvirt 域读取 CPU、内存、vCPU、状态等核心计数器，
并尽力读取第一块网卡和第一块磁盘的流量统计，归一化为 MetricRecord。

核心信息读取失败时抛出 ExtractionError（丢弃该虚拟机记录）；
网卡 / 磁盘统计读取失败时填 0，不影响其余指标。
"""
import logging
import time
from typing import Optional, Tuple

from virtwatch_agent.descriptor import resolve_devices
from virtwatch_agent.errors import ExtractionError
from virtwatch_agent.hypervisor import DomainHandle, DomainInfo
from virtwatch_agent.models import MetricRecord

logger = logging.getLogger(__name__)

NS_PER_SEC = 1_000_000_000


def memory_usage_percent(memory_kb: int, max_memory_kb: int) -> float:
    """内存使用率（百分比），最大内存为 0 时返回 0.0。"""
    if max_memory_kb == 0:
        return 0.0
    return (memory_kb * 100.0) / max_memory_kb


def estimate_uptime(cpu_time_sec: int, vcpus: int) -> int:
    """估算运行时长：CPU 总时间 / vCPU 数。

    这只是基于 CPU 消耗的近似值，并非真实的开机时长。vCPU 为 0 时按 1 计算。
    """
    return cpu_time_sec // max(vcpus, 1)


def read_network_bytes(domain: DomainHandle, device: Optional[str]) -> Tuple[int, int]:
    """读取网卡 (rx_bytes, tx_bytes)，设备不存在或读取失败时返回 (0, 0)。"""
    if not device:
        return 0, 0
    try:
        stats = domain.interface_stats(device)
        return stats.rx_bytes, stats.tx_bytes
    except Exception as e:
        logger.debug(f"Network stats unavailable for {device}: {e}")
        return 0, 0


def read_disk_bytes(domain: DomainHandle, device: Optional[str]) -> Tuple[int, int]:
    """读取磁盘 (read_bytes, write_bytes)，设备不存在或读取失败时返回 (0, 0)。"""
    if not device:
        return 0, 0
    try:
        stats = domain.disk_stats(device)
        return stats.read_bytes, stats.write_bytes
    except Exception as e:
        logger.debug(f"Disk stats unavailable for {device}: {e}")
        return 0, 0


def resolve_domain_devices(domain: DomainHandle) -> Tuple[Optional[str], Optional[str]]:
    """获取一次域 XML 并解析出 (网卡设备, 磁盘设备)。"""
    try:
        xml = domain.descriptor_xml()
    except Exception as e:
        logger.debug(f"Domain descriptor unavailable: {e}")
        return None, None
    return resolve_devices(xml)


def _read_core(domain: DomainHandle) -> Tuple[str, str, DomainInfo, int]:
    try:
        return domain.name(), domain.uuid(), domain.info(), domain.max_memory_kb()
    except Exception as e:
        raise ExtractionError("Domain core info unreadable", str(e)) from e


def build_record(domain: DomainHandle) -> MetricRecord:
    """为单个虚拟机构建指标记录。

    Args:
        domain: 本轮采集借用的域句柄。

    Returns:
        字段齐全的 MetricRecord。

    Raises:
        ExtractionError: 名称、UUID、info 或最大内存读取失败时抛出。
    """
    name, uuid, info, max_memory_kb = _read_core(domain)

    cpu_time_sec = info.cpu_time_ns // NS_PER_SEC

    net_dev, disk_dev = resolve_domain_devices(domain)
    rx, tx = read_network_bytes(domain, net_dev)
    rd, wr = read_disk_bytes(domain, disk_dev)

    return MetricRecord(
        timestamp=int(time.time() * 1000),
        vm_name=name,
        vm_uuid=uuid,
        cpu_time_ns=info.cpu_time_ns,
        cpu_time_sec=cpu_time_sec,
        vcpus=info.vcpus,
        uptime_sec=estimate_uptime(cpu_time_sec, info.vcpus),
        memory_kb=info.memory_kb,
        max_memory_kb=max_memory_kb,
        memory_usage_percent=memory_usage_percent(info.memory_kb, max_memory_kb),
        state=info.state,
        net_rx_bytes=rx,
        net_tx_bytes=tx,
        disk_read_bytes=rd,
        disk_write_bytes=wr,
    )
