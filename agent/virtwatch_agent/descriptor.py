"""
虚拟机 XML 描述解析模块。

从 libvirt 域 XML 中找出第一块网卡和第一块磁盘的目标设备名（target/@dev），
供统计接口 interfaceStats / blockStats 使用。设备可能热插拔，因此每轮都重新解析。
"""
import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional, Tuple

from virtwatch_agent.errors import DescriptorParseError

logger = logging.getLogger(__name__)

# 可识别的磁盘设备名：virtio / scsi / ide / xen / nvme
DISK_DEVICE_RE = re.compile(r"(vd|sd|hd|xvd|nvme)[a-z0-9]+")


def parse_descriptor(xml: str) -> ET.Element:
    """解析域 XML 描述，返回根元素。

    Raises:
        DescriptorParseError: XML 格式错误时抛出。
    """
    try:
        return ET.fromstring(xml)
    except ET.ParseError as e:
        raise DescriptorParseError("Malformed domain descriptor", str(e)) from e


def _target_devs(root: ET.Element, family: str):
    """按文档顺序产出 <family> 元素下所有 target 的 dev 属性。"""
    for device in root.iter(family):
        for target in device.iter("target"):
            dev = target.get("dev")
            # dev="" counts as absent; scanning moves on to the next target
            if dev:
                yield dev


def first_network_device(root: ET.Element) -> Optional[str]:
    """返回第一个 <interface> 的 target 设备名（如 vnet0），不做名称过滤。"""
    return next(_target_devs(root, "interface"), None)


def first_disk_device(root: ET.Element) -> Optional[str]:
    """返回第一个名称可识别的磁盘设备（如 vda、sdb、nvme0n1）。

    不可识别的设备（如软驱 fd0）跳过，继续检查后续磁盘。
    """
    for dev in _target_devs(root, "disk"):
        if DISK_DEVICE_RE.fullmatch(dev):
            return dev
    return None


def resolve_first_network_device(xml: str) -> Optional[str]:
    try:
        return first_network_device(parse_descriptor(xml))
    except DescriptorParseError as e:
        logger.debug(f"Network device unresolved: {e.detail}")
        return None


def resolve_first_disk_device(xml: str) -> Optional[str]:
    try:
        return first_disk_device(parse_descriptor(xml))
    except DescriptorParseError as e:
        logger.debug(f"Disk device unresolved: {e.detail}")
        return None


def resolve_devices(xml: str) -> Tuple[Optional[str], Optional[str]]:
    """解析一次 XML，同时返回 (网卡设备名, 磁盘设备名)，解析失败时均为 None。"""
    try:
        root = parse_descriptor(xml)
    except DescriptorParseError as e:
        logger.debug(f"Descriptor parse failed, devices unresolved: {e.detail}")
        return None, None
    return first_network_device(root), first_disk_device(root)
