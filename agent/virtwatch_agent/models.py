"""Per-domain metric record produced by one collection pass."""
from dataclasses import asdict, dataclass

# libvirt virDomainState ordinals
STATE_NAMES = {
    0: "nostate",
    1: "running",
    2: "blocked",
    3: "paused",
    4: "shutdown",
    5: "shutoff",
    6: "crashed",
    7: "pmsuspended",
}


@dataclass(frozen=True)
class MetricRecord:
    """Normalized telemetry for one domain.

    Every field is always populated. Sub-metrics that could not be read
    (network, disk) are zero, never missing.

    ``uptime_sec`` is cpu_time_sec divided by the vCPU count. It approximates
    how long the guest has been executing and is NOT wall-clock uptime.
    """
    timestamp: int  # ms since epoch
    vm_name: str
    vm_uuid: str
    cpu_time_ns: int
    cpu_time_sec: int
    vcpus: int
    uptime_sec: int
    memory_kb: int
    max_memory_kb: int
    memory_usage_percent: float
    state: int
    net_rx_bytes: int = 0
    net_tx_bytes: int = 0
    disk_read_bytes: int = 0
    disk_write_bytes: int = 0

    @property
    def state_name(self) -> str:
        return STATE_NAMES.get(self.state, "unknown")

    def to_dict(self) -> dict:
        return asdict(self)
