"""
批量采集模块。

列出 hypervisor 上所有活动虚拟机，逐个提取指标并写入 sink。
单个虚拟机的查找 / 提取 / 写入失败只记录日志并跳过，不影响同一轮的其他虚拟机。
每次调用互相独立，不缓存域句柄或设备名。
"""
import logging

from virtwatch_agent.errors import EnumerationError, ExtractionError
from virtwatch_agent.extractor import build_record

logger = logging.getLogger(__name__)


def collect(connection, sink) -> None:
    """执行一轮采集。

    Args:
        connection: 提供 list_active_domain_ids() / lookup_domain() 的连接对象。
        sink: 提供 write(record) 的指标输出端。

    Raises:
        EnumerationError: 无法列出活动虚拟机，本轮中止，由调度方在下一周期重试。
    """
    try:
        ids = connection.list_active_domain_ids()
    except EnumerationError as e:
        logger.error(f"Failed to list domains: {e.message} ({e.detail})")
        raise

    if not ids:
        logger.warning("No active domains")
        return

    written = skipped = 0
    for domain_id in ids:
        if _collect_domain(connection, sink, domain_id):
            written += 1
        else:
            skipped += 1

    logger.info(f"Collection pass done: {written} written, {skipped} skipped of {len(ids)} domains")


def _collect_domain(connection, sink, domain_id: int) -> bool:
    """采集单个虚拟机，成功写入 sink 时返回 True。"""
    try:
        domain = connection.lookup_domain(domain_id)
    except LookupError as e:
        logger.warning(f"Skipping domain {domain_id}: lookup failed ({getattr(e, 'detail', e)})")
        return False

    try:
        record = build_record(domain)
    except ExtractionError as e:
        logger.warning(f"Skipping domain {domain_id}: {e.message} ({e.detail})")
        return False
    except Exception as e:
        logger.warning(f"Skipping domain {domain_id}: unexpected extraction error: {e!r}")
        return False

    try:
        sink.write(record)
    except Exception as e:
        logger.warning(f"Sink write failed for {record.vm_name}: {e}")
        return False
    return True
