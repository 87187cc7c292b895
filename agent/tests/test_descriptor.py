"""域 XML 设备解析测试。"""
import pytest

from virtwatch_agent.descriptor import (
    first_disk_device,
    first_network_device,
    parse_descriptor,
    resolve_devices,
    resolve_first_disk_device,
    resolve_first_network_device,
)
from virtwatch_agent.errors import DescriptorParseError

from tests.conftest import BASIC_XML


class TestNetworkDevice:
    def test_first_interface_target(self):
        assert resolve_first_network_device(BASIC_XML) == "vnet0"

    def test_no_interfaces(self):
        xml = "<domain><devices><disk><target dev='vda'/></disk></devices></domain>"
        assert resolve_first_network_device(xml) is None

    def test_interface_without_target_is_skipped(self):
        xml = """
        <domain><devices>
          <interface type='network'><source network='default'/></interface>
          <interface type='bridge'><target dev='tap3'/></interface>
        </devices></domain>
        """
        assert resolve_first_network_device(xml) == "tap3"

    def test_any_name_accepted(self):
        xml = "<domain><devices><interface><target dev='macvtap7'/></interface></devices></domain>"
        assert resolve_first_network_device(xml) == "macvtap7"

    def test_document_order(self):
        xml = """
        <domain><devices>
          <interface><target dev='vnet4'/></interface>
          <interface><target dev='vnet1'/></interface>
        </devices></domain>
        """
        assert first_network_device(parse_descriptor(xml)) == "vnet4"

    def test_disk_target_not_taken_as_interface(self):
        xml = "<domain><devices><disk><target dev='vda'/></disk></devices></domain>"
        assert first_network_device(parse_descriptor(xml)) is None


class TestDiskDevice:
    def test_first_disk_target(self):
        assert resolve_first_disk_device(BASIC_XML) == "vda"

    def test_floppy_skipped_for_later_disk(self):
        xml = """
        <domain><devices>
          <disk type='file' device='floppy'><target dev='fd0' bus='fdc'/></disk>
          <disk type='file' device='disk'><target dev='vda' bus='virtio'/></disk>
        </devices></domain>
        """
        assert resolve_first_disk_device(xml) == "vda"

    @pytest.mark.parametrize("dev", ["vda", "sdb", "hdc", "xvda", "nvme0n1"])
    def test_recognized_prefixes(self, dev):
        xml = f"<domain><devices><disk><target dev='{dev}'/></disk></devices></domain>"
        assert first_disk_device(parse_descriptor(xml)) == dev

    @pytest.mark.parametrize("dev", ["fd0", "vd", "sr0", "VDA", "vda-1"])
    def test_unrecognized_names(self, dev):
        xml = f"<domain><devices><disk><target dev='{dev}'/></disk></devices></domain>"
        assert first_disk_device(parse_descriptor(xml)) is None

    def test_no_disks(self):
        xml = "<domain><devices><interface><target dev='vnet0'/></interface></devices></domain>"
        assert resolve_first_disk_device(xml) is None


class TestMalformedDescriptor:
    def test_parse_error_raised(self):
        with pytest.raises(DescriptorParseError):
            parse_descriptor("<domain><devices>")

    def test_parse_error_is_parse_error(self):
        from xml.etree.ElementTree import ParseError
        with pytest.raises(ParseError):
            parse_descriptor("not xml at all")

    def test_resolvers_return_none(self):
        assert resolve_first_network_device("<domain>") is None
        assert resolve_first_disk_device("<domain>") is None

    def test_resolve_devices(self):
        assert resolve_devices(BASIC_XML) == ("vnet0", "vda")
        assert resolve_devices("<broken") == (None, None)


class TestEmptyDeviceName:
    def test_empty_interface_dev_skipped(self):
        xml = """
        <domain><devices>
          <interface type='network'><target dev=''/></interface>
          <interface type='bridge'><target dev='vnet2'/></interface>
        </devices></domain>
        """
        assert resolve_first_network_device(xml) == "vnet2"

    def test_only_empty_dev_is_absent(self):
        xml = "<domain><devices><interface><target dev=''/></interface></devices></domain>"
        assert resolve_first_network_device(xml) is None
