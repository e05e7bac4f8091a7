"""
AI 服务工具集

提供增量解析、兜底处理等通用工具。
"""

from .partial_parser import (
    ROAST_FIELD_MAPPINGS,
    find_balanced_object,
    strip_code_fences,
    extract_fields_from_dict,
    roast_from_object,
    parse_single_object,
    IncrementalObjectExtractor,
)

from .fallback import (
    ai_fallback,
    log_and_reraise
)

__all__ = [
    # partial_parser
    'ROAST_FIELD_MAPPINGS',
    'find_balanced_object',
    'strip_code_fences',
    'extract_fields_from_dict',
    'roast_from_object',
    'parse_single_object',
    'IncrementalObjectExtractor',
    # fallback
    'ai_fallback',
    'log_and_reraise',
]
