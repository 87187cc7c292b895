"""
Agent 配置加载模块。

定义所有配置数据类，并从 YAML 文件加载配置。
支持环境变量覆盖（VIRTWATCH_LIBVIRT_URI、VIRTWATCH_PUSHGATEWAY_URL）
和时间间隔简写（如 '15s'、'1m'）。
"""
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class LibvirtConfig:
    """Hypervisor 连接配置。"""
    uri: str = "qemu:///system"
    read_only: bool = True


@dataclass
class PushgatewayConfig:
    """Prometheus Pushgateway 配置。"""
    url: str = "http://localhost:9091"
    job: str = "libvirt_collector"
    timeout: int = 10  # 推送超时（秒）
    delete_on_shutdown: bool = True  # 退出时删除该 job 的指标组


@dataclass
class MetricsConfig:
    """指标采集配置。"""
    interval: int = 30  # 采集间隔（秒）


@dataclass
class AgentConfig:
    """Agent 主配置，聚合所有子配置。"""
    libvirt: LibvirtConfig = field(default_factory=LibvirtConfig)
    pushgateway: PushgatewayConfig = field(default_factory=PushgatewayConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)


def _parse_interval(val) -> int:
    """解析时间间隔，支持 '15s'、'1m' 等简写格式。"""
    if isinstance(val, int):
        return val
    s = str(val).strip().lower()
    if s.endswith("s"):
        return int(s[:-1])
    if s.endswith("m"):
        return int(s[:-1]) * 60
    return int(s)


def load_config(path: str) -> AgentConfig:
    """从 YAML 文件加载 Agent 配置。

    Args:
        path: 配置文件路径。

    Returns:
        解析后的 AgentConfig 实例。

    Raises:
        FileNotFoundError: 配置文件不存在时抛出。
        ValueError: 采集间隔不是正整数时抛出。
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(p) as f:
        data = yaml.safe_load(f) or {}

    cfg = AgentConfig()

    # 解析 libvirt 配置，URI 优先从环境变量读取
    lv = data.get("libvirt") or {}
    cfg.libvirt.uri = os.environ.get("VIRTWATCH_LIBVIRT_URI", lv.get("uri", cfg.libvirt.uri))
    cfg.libvirt.read_only = bool(lv.get("read_only", cfg.libvirt.read_only))

    # 解析 Pushgateway 配置
    pg = data.get("pushgateway") or {}
    url = os.environ.get("VIRTWATCH_PUSHGATEWAY_URL", pg.get("url", cfg.pushgateway.url))
    cfg.pushgateway.url = url.rstrip("/")
    cfg.pushgateway.job = pg.get("job", cfg.pushgateway.job)
    cfg.pushgateway.timeout = _parse_interval(pg.get("timeout", cfg.pushgateway.timeout))
    cfg.pushgateway.delete_on_shutdown = bool(pg.get("delete_on_shutdown", True))

    # 解析指标采集配置
    m = data.get("metrics") or {}
    cfg.metrics.interval = _parse_interval(m.get("interval", cfg.metrics.interval))
    if cfg.metrics.interval <= 0:
        raise ValueError(f"metrics.interval must be positive, got {cfg.metrics.interval}")

    return cfg
