"""VirtWatch Agent - libvirt guest metrics to Prometheus Pushgateway."""
__version__ = "0.1.0"
