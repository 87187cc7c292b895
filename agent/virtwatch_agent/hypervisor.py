"""
libvirt connection wrapper.

Translates libvirt's tuple-shaped results into named types and libvirt errors
into the agent's error taxonomy. The libvirt binding is imported lazily so the
rest of the agent (and its tests) work on hosts without libvirt-python.
"""
import logging
from typing import List, NamedTuple

from virtwatch_agent.errors import (
    DomainLookupError,
    EnumerationError,
    HypervisorUnavailableError,
)

logger = logging.getLogger(__name__)


class DomainInfo(NamedTuple):
    state: int
    max_memory_kb: int
    memory_kb: int
    vcpus: int
    cpu_time_ns: int


class InterfaceStats(NamedTuple):
    rx_bytes: int
    tx_bytes: int


class DiskStats(NamedTuple):
    read_bytes: int
    write_bytes: int


class DomainHandle:
    """A running domain, borrowed from the connection for one pass."""

    def __init__(self, domain):
        self._dom = domain

    def name(self) -> str:
        return self._dom.name()

    def uuid(self) -> str:
        return self._dom.UUIDString()

    def info(self) -> DomainInfo:
        # virDomainGetInfo: [state, maxMem, memory, nrVirtCpu, cpuTime]
        state, max_mem, mem, vcpus, cpu_time = self._dom.info()[:5]
        return DomainInfo(int(state), int(max_mem), int(mem), int(vcpus), int(cpu_time))

    def max_memory_kb(self) -> int:
        return int(self._dom.maxMemory())

    def descriptor_xml(self) -> str:
        return self._dom.XMLDesc(0)

    def interface_stats(self, device: str) -> InterfaceStats:
        # (rx_bytes, rx_packets, rx_errs, rx_drop, tx_bytes, tx_packets, tx_errs, tx_drop)
        stats = self._dom.interfaceStats(device)
        return InterfaceStats(int(stats[0]), int(stats[4]))

    def disk_stats(self, device: str) -> DiskStats:
        # (rd_req, rd_bytes, wr_req, wr_bytes, errs)
        stats = self._dom.blockStats(device)
        return DiskStats(int(stats[1]), int(stats[3]))


class HypervisorConnection:
    """Read-mostly connection to a libvirt daemon.

    Args:
        uri: libvirt connection URI, e.g. ``qemu:///system``.
        read_only: open with ``openReadOnly`` (the agent never mutates domains).
        conn: an already opened ``virConnect``; skips :meth:`open`.
    """

    def __init__(self, uri: str = "qemu:///system", read_only: bool = True, conn=None):
        self.uri = uri
        self.read_only = read_only
        self._conn = conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Open the libvirt connection.

        Raises:
            HypervisorUnavailableError: binding missing or daemon unreachable.
        """
        if self._conn is not None:
            return
        try:
            import libvirt  # type: ignore
        except ImportError as e:
            raise HypervisorUnavailableError("libvirt-python is not installed", str(e)) from e

        try:
            if self.read_only:
                conn = libvirt.openReadOnly(self.uri)
            else:
                conn = libvirt.open(self.uri)
        except libvirt.libvirtError as e:
            raise HypervisorUnavailableError(f"Cannot connect to libvirt at {self.uri}", str(e)) from e
        if conn is None:
            raise HypervisorUnavailableError(f"Cannot connect to libvirt at {self.uri}")
        self._conn = conn
        logger.info(f"Connected to libvirt at {self.uri} (read_only={self.read_only})")

    def list_active_domain_ids(self) -> List[int]:
        if self._conn is None:
            raise EnumerationError("Hypervisor connection is not open")
        try:
            return list(self._conn.listDomainsID())
        except Exception as e:
            raise EnumerationError("Failed to list active domains", str(e)) from e

    def lookup_domain(self, domain_id: int) -> DomainHandle:
        if self._conn is None:
            raise DomainLookupError(domain_id, "Hypervisor connection is not open")
        try:
            dom = self._conn.lookupByID(domain_id)
        except Exception as e:
            raise DomainLookupError(domain_id, str(e)) from e
        if dom is None:
            raise DomainLookupError(domain_id, "lookupByID returned None")
        return DomainHandle(dom)

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
            logger.info("Disconnected from libvirt")
        except Exception as e:
            logger.error(f"Error closing libvirt connection: {e}")
        finally:
            self._conn = None

