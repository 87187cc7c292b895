"""
VirtWatch Agent 测试基础配置

提供伪造的域句柄、hypervisor 连接和记录型 sink，测试不依赖 libvirt 或 Pushgateway。
"""
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from virtwatch_agent.errors import DomainLookupError, EnumerationError
from virtwatch_agent.hypervisor import DiskStats, DomainInfo, InterfaceStats

BASIC_XML = """
<domain type='kvm'>
  <name>web-01</name>
  <devices>
    <disk type='file' device='disk'>
      <source file='/var/lib/libvirt/images/web-01.qcow2'/>
      <target dev='vda' bus='virtio'/>
    </disk>
    <interface type='network'>
      <source network='default'/>
      <target dev='vnet0'/>
    </interface>
  </devices>
</domain>
"""


def make_domain(
    name: str = "web-01",
    uuid: str = "6f1c2c4e-0000-4000-8000-000000000001",
    state: int = 1,
    memory_kb: int = 1048576,
    max_memory_kb: int = 2097152,
    vcpus: int = 2,
    cpu_time_ns: int = 120_000_000_000,
    xml: str = BASIC_XML,
    net: Optional[InterfaceStats] = InterfaceStats(100, 200),
    disk: Optional[DiskStats] = DiskStats(4096, 8192),
) -> MagicMock:
    """构造一个行为类似 DomainHandle 的 mock。"""
    dom = MagicMock()
    dom.name.return_value = name
    dom.uuid.return_value = uuid
    dom.info.return_value = DomainInfo(state, max_memory_kb, memory_kb, vcpus, cpu_time_ns)
    dom.max_memory_kb.return_value = max_memory_kb
    dom.descriptor_xml.return_value = xml
    if net is None:
        dom.interface_stats.side_effect = Exception("interface stats not supported")
    else:
        dom.interface_stats.return_value = net
    if disk is None:
        dom.disk_stats.side_effect = Exception("block stats not supported")
    else:
        dom.disk_stats.return_value = disk
    return dom


class FakeConnection:
    """内存中的 hypervisor 连接，按 ID 返回预置的域。"""

    def __init__(self, domains: Dict[int, MagicMock], fail_listing: bool = False):
        self.domains = domains
        self.fail_listing = fail_listing
        self.uri = "test:///default"
        self.opened = 0
        self.closed = 0

    def open(self):
        self.opened += 1

    def close(self):
        self.closed += 1

    def list_active_domain_ids(self) -> List[int]:
        if self.fail_listing:
            raise EnumerationError("Failed to list active domains", "connection reset")
        return list(self.domains)

    def lookup_domain(self, domain_id: int):
        dom = self.domains.get(domain_id)
        if dom is None:
            raise DomainLookupError(domain_id, "Domain not found")
        return dom


class RecordingSink:
    def __init__(self):
        self.records = []
        self.closed = False

    def write(self, record):
        self.records.append(record)

    def close(self):
        self.closed = True


@pytest.fixture
def sink():
    return RecordingSink()
