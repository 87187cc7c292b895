"""Metric sinks - push records to a Prometheus Pushgateway or print them."""
import json
import logging
from typing import Dict

import click
from prometheus_client import CollectorRegistry, Gauge, delete_from_gateway, pushadd_to_gateway

from virtwatch_agent.models import MetricRecord

logger = logging.getLogger(__name__)

DEFAULT_JOB = "libvirt_collector"
LABELS = ("vm_name", "vm_uuid")

# gauge name -> (help text, MetricRecord field)
GAUGES = {
    "vm_cpu_time_seconds": ("Cumulative guest CPU time in seconds", "cpu_time_sec"),
    "vm_vcpu_count": ("Number of virtual CPUs", "vcpus"),
    "vm_uptime_seconds": ("Estimated run time (CPU time / vCPUs)", "uptime_sec"),
    "vm_memory_used_kb": ("Current memory in KB", "memory_kb"),
    "vm_memory_max_kb": ("Maximum memory in KB", "max_memory_kb"),
    "vm_memory_usage_percent": ("Memory usage percentage", "memory_usage_percent"),
    "vm_network_receive_bytes_total": ("Bytes received on the first interface", "net_rx_bytes"),
    "vm_network_transmit_bytes_total": ("Bytes transmitted on the first interface", "net_tx_bytes"),
    "vm_disk_read_bytes_total": ("Bytes read from the first disk", "disk_read_bytes"),
    "vm_disk_write_bytes_total": ("Bytes written to the first disk", "disk_write_bytes"),
    "vm_state_code": ("libvirt domain state code", "state"),
}


class PushgatewaySink:
    """Exposes records as labeled gauges and pushes them to a Pushgateway.

    The gauges live in a registry owned by this sink (never the global
    prometheus_client REGISTRY). Values set by earlier writes stay in the
    registry, so each push carries every domain seen so far.
    Label sets of domains that have since stopped are not removed: their last
    values (including vm_state_code) keep being pushed until close().
    """

    def __init__(self, url: str, job: str = DEFAULT_JOB, timeout: float = 10,
                 delete_on_close: bool = True):
        self.url = url
        self.job = job
        self.timeout = timeout
        self.delete_on_close = delete_on_close
        self.registry = CollectorRegistry()
        self.gauges: Dict[str, Gauge] = {
            name: Gauge(name, help_text, labelnames=LABELS, registry=self.registry)
            for name, (help_text, _) in GAUGES.items()
        }
        self._closed = False
        logger.info(f"Pushgateway sink ready: {url} (job={job})")

    def write(self, record: MetricRecord) -> None:
        """Set all gauges for one domain and push the registry. Transport errors are logged."""
        if self._closed:
            logger.warning(f"Sink closed, dropping metrics for {record.vm_name}")
            return

        for name, (_, field_name) in GAUGES.items():
            self.gauges[name].labels(record.vm_name, record.vm_uuid).set(getattr(record, field_name))

        try:
            pushadd_to_gateway(self.url, job=self.job, registry=self.registry, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Push to {self.url} failed for {record.vm_name}: {e}")
            return

        logger.info(
            f"Metrics pushed: {record.vm_name} (CPU: {record.cpu_time_sec}s, "
            f"Mem: {record.memory_kb} KB, vCPU: {record.vcpus}, "
            f"NetRX: {record.net_rx_bytes}, DiskR: {record.disk_read_bytes}, "
            f"state: {record.state_name})"
        )

    def close(self) -> None:
        """Delete this job's group from the Pushgateway and drop the registry."""
        if self._closed:
            return
        self._closed = True
        if self.delete_on_close:
            try:
                delete_from_gateway(self.url, job=self.job, timeout=self.timeout)
                logger.info(f"Deleted job {self.job} from {self.url}")
            except Exception as e:
                logger.error(f"Failed to delete job {self.job} from {self.url}: {e}")
        for gauge in self.gauges.values():
            self.registry.unregister(gauge)
        self.gauges.clear()


class StdoutSink:
    """Prints each record as a JSON line (dry run)."""

    def write(self, record: MetricRecord) -> None:
        click.echo(json.dumps(record.to_dict(), sort_keys=True))

    def close(self) -> None:
        pass
