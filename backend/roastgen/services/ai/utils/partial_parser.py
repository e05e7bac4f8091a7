"""
增量解析工具 - 从流式文本中提取完整的 JSON 对象

The generation service emits one JSON object per record with no enclosing
array, no separators and no guarantee that chunk boundaries line up with
object boundaries. Body text may itself contain braces, so object ends are
found with a quote-aware brace balance scan rather than a regex.
"""
import json
import re
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ..errors import MalformedResponseError
from ..schemas.roast_schema import Roast


# Wire field aliases seen from different models: {'目标字段': ['源字段1', '源字段2', ...]}
ROAST_FIELD_MAPPINGS: Dict[str, List[str]] = {
    "style": ["style", "label"],
    "content": ["content", "text", "body"],
    "attackPower": ["attackPower", "attack_power", "score"],
    "explanation": ["explanation", "reason"],
    "sources": ["sources", "citations"],
}

_CODE_FENCE = re.compile(r"```[A-Za-z0-9_-]*")


class _BraceScanner:
    """
    Resumable quote-aware brace balance scanner.

    A backslash suppresses the special meaning of the next character for
    exactly one position. Braces only count outside quoted strings.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.depth = 0
        self.in_string = False
        self.escape = False

    def scan(self, text: str, start: int) -> int:
        """
        Continue scanning text from start.

        Returns:
            Index of the brace that closes the object, or -1 if the text
            ended first (state is kept for the next call)
        """
        for i in range(start, len(text)):
            ch = text[i]
            if self.escape:
                self.escape = False
                continue
            if ch == "\\":
                self.escape = True
                continue
            if ch == '"':
                self.in_string = not self.in_string
                continue
            if self.in_string:
                continue
            if ch == "{":
                self.depth += 1
            elif ch == "}":
                self.depth -= 1
                if self.depth == 0:
                    return i
        return -1


def find_balanced_object(text: str) -> Optional[str]:
    """
    Locate the first balanced {...} span in text.

    Example:
        >>> find_balanced_object('noise {"a": "}{"} tail')
        '{"a": "}{"}'
    """
    start = text.find("{")
    if start < 0:
        return None
    end = _BraceScanner().scan(text, start)
    if end < 0:
        return None
    return text[start:end + 1]


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code-fence markup (```json ... ```) from a response.

    Example:
        >>> strip_code_fences('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    return _CODE_FENCE.sub("", text or "").strip()


def extract_fields_from_dict(
    data: Dict[str, Any],
    field_mappings: Dict[str, List[str]]
) -> Dict[str, Any]:
    """
    从字典中提取指定字段（支持别名映射）

    Args:
        data: 原始字典
        field_mappings: {'目标字段': ['源字段1', '源字段2', ...]}

    Returns:
        提取后的字典

    Example:
        >>> extract_fields_from_dict({'label': 'A', 'text': 'x'}, ROAST_FIELD_MAPPINGS)
        {'style': 'A', 'content': 'x'}
    """
    result = {}
    for target_field, source_fields in field_mappings.items():
        for source_field in source_fields:
            # 仅当字段存在且值不为 None 时才使用（空字符串是有效值）
            if source_field in data and data[source_field] is not None:
                result[target_field] = data[source_field]
                break
    return result


def roast_from_object(data: Any) -> Roast:
    """
    Normalize field aliases and build a Roast with a fresh identifier.

    Raises:
        ValueError: If the object lacks a usable style or content
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return Roast.from_payload(extract_fields_from_dict(data, ROAST_FIELD_MAPPINGS))


def parse_single_object(text: str) -> Dict[str, Any]:
    """
    Parse one JSON object from a (possibly fenced or padded) response.

    Tries a direct parse first, then falls back to the first balanced
    {...} span.

    Raises:
        MalformedResponseError: If neither method yields a JSON object
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
        if isinstance(data, dict):
            return data
    except (json.JSONDecodeError, RecursionError):
        pass

    span = find_balanced_object(cleaned)
    if span is not None:
        try:
            data = json.loads(span)
            if isinstance(data, dict):
                return data
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"JSON 解析失败: {e}")

    raise MalformedResponseError(
        f"Response is not a JSON object (len={len(cleaned)})",
        raw_content=cleaned[:500],
    )


class IncrementalObjectExtractor:
    """
    Incremental object extractor for one stream.

    Keeps a carry-over buffer across feed() calls and returns every record
    that became complete. A fresh instance is required per stream/attempt.

    Example:
        >>> extractor = IncrementalObjectExtractor()
        >>> extractor.feed('{"style":"A","content":"x{y}z","attackPower":10}junk{"style"')
        [Roast(style='A', content='x{y}z', attack_power=10, ...)]
        >>> extractor.has_pending_object
        True
    """

    def __init__(self, record_factory: Callable[[Any], Roast] = roast_from_object):
        self._record_factory = record_factory
        self._buffer = ""
        self._scanner = _BraceScanner()
        self._object_open = False
        self._scan_pos = 0
        self.discarded = 0
        self.extracted = 0

    @property
    def buffer(self) -> str:
        """Unconsumed text retained for the next feed() call."""
        return self._buffer

    @property
    def has_pending_object(self) -> bool:
        """True if an opening brace has been seen whose object is unfinished."""
        return self._object_open

    def feed(self, chunk: str) -> List[Roast]:
        """
        Append a chunk and return the records completed by it.

        Spans that look complete but fail to parse or validate are discarded
        and scanning continues with the next opening brace.
        """
        if chunk:
            self._buffer += chunk

        records: List[Roast] = []
        while True:
            span = self._next_span()
            if span is None:
                break
            record = self._parse_span(span)
            if record is not None:
                records.append(record)
        return records

    def _next_span(self) -> Optional[str]:
        if not self._object_open:
            start = self._buffer.find("{")
            if start < 0:
                # Nothing can start here; stray text is dropped
                self._buffer = ""
                return None
            self._buffer = self._buffer[start:]
            self._scanner.reset()
            self._object_open = True
            self._scan_pos = 0

        end = self._scanner.scan(self._buffer, self._scan_pos)
        if end < 0:
            self._scan_pos = len(self._buffer)
            return None

        span = self._buffer[:end + 1]
        self._buffer = self._buffer[end + 1:]
        self._object_open = False
        self._scan_pos = 0
        return span

    def _parse_span(self, span: str) -> Optional[Roast]:
        try:
            record = self._record_factory(json.loads(span))
        except (ValueError, OverflowError, RecursionError) as e:
            # JSONDecodeError and ValidationError are ValueErrors; deep nesting recurses
            self.discarded += 1
            logger.debug(f"丢弃无效片段 ({type(e).__name__}): {span[:100]}")
            return None

        self.extracted += 1
        return record


__all__ = [
    "ROAST_FIELD_MAPPINGS",
    "find_balanced_object",
    "strip_code_fences",
    "extract_fields_from_dict",
    "roast_from_object",
    "parse_single_object",
    "IncrementalObjectExtractor",
]
