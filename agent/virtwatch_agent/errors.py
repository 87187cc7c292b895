"""
采集异常定义模块 (Collection Error Definitions)

按影响范围划分异常：整轮采集失败、单个虚拟机失败、单项子指标失败。

Errors are grouped by blast radius: a whole pass (EnumerationError), a single
domain (DomainLookupError, ExtractionError) or a single sub-metric
(DescriptorParseError, stats failures, which are zero-filled by the extractor).
"""
from typing import Optional
from xml.etree.ElementTree import ParseError


class VirtwatchError(Exception):
    """Agent 异常基类 (Base agent error)"""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class HypervisorUnavailableError(VirtwatchError):
    """无法建立 hypervisor 连接 (Hypervisor connection could not be opened)"""


class EnumerationError(VirtwatchError):
    """列出活动虚拟机失败，本轮采集中止 (Listing active domains failed)"""


class DomainLookupError(VirtwatchError, LookupError):
    """按 ID 查找虚拟机失败 (Domain ID could not be resolved)"""

    def __init__(self, domain_id: int, detail: Optional[str] = None):
        self.domain_id = domain_id
        super().__init__(f"Domain {domain_id} lookup failed", detail)


class ExtractionError(VirtwatchError):
    """虚拟机核心信息不可读，丢弃该记录 (Core info block unreadable)"""


class DescriptorParseError(VirtwatchError, ParseError):
    """虚拟机 XML 描述解析失败 (Domain XML descriptor is malformed)"""
