"""
Lattice Redaction

Every payload value that reaches an execution event passes through
`redact_content`. Prompts and tool inputs are always force-redacted by
the event mapper; other values are redacted by key and summarized.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
import re

from ..config import get_config
from ..schemas.execution import REDACTED, RedactedContent, RedactionLevel


SENSITIVE_KEY_PATTERN = re.compile(r"(token|password|secret|api[_-]?key|authorization)", re.IGNORECASE)

# Bearer credentials and OpenAI/Anthropic style secret keys
SENSITIVE_VALUE_PATTERN = re.compile(r"(\bbearer\s+[A-Za-z0-9._~+/-]+=*|\bsk-[A-Za-z0-9_-]{8,})", re.IGNORECASE)

DEFAULT_REDACTION_REASON = "sensitive-by-default"
SUMMARY_MAX_KEYS = 8


def summarize_value(value: Any, max_chars: Optional[int] = None) -> Any:
    """
    Shape-only summary of a value.

    Lists become {kind, length}, mappings {kind, keys, keyCount}, and long
    strings are truncated with "...". Scalars pass through.
    """
    if max_chars is None:
        max_chars = get_config().events.summary_max_chars
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return {"kind": "array", "length": len(value)}
    if isinstance(value, Mapping):
        keys = list(value.keys())
        return {"kind": "object", "keys": keys[:SUMMARY_MAX_KEYS], "keyCount": len(keys)}
    if isinstance(value, str):
        if len(value) > max_chars:
            return value[: max_chars - 3] + "..."
        return value
    return value


def is_sensitive_key(key: Any) -> bool:
    return isinstance(key, str) and SENSITIVE_KEY_PATTERN.search(key) is not None


def redact_content(
    value: Any,
    force: bool = False,
    redaction_level: RedactionLevel = RedactionLevel.PARTIAL,
    redaction_reason: Optional[str] = None,
) -> RedactedContent:
    """
    Redact a value for inclusion in an event.

    Args:
        value: Raw value; never stored as-is when it could carry secrets
        force: Replace the whole value with "[REDACTED]"
        redaction_level: Level reported when something was redacted
        redaction_reason: Reason reported when something was redacted
    """
    reason = redaction_reason or DEFAULT_REDACTION_REASON
    if force:
        return RedactedContent(
            value=REDACTED,
            redaction_level=RedactionLevel.FULL,
            is_redacted=True,
            redaction_reason=reason,
        )

    if isinstance(value, Mapping):
        redacted: Dict[str, Any] = {}
        hit = False
        for key, entry in value.items():
            if is_sensitive_key(key):
                redacted[key] = REDACTED
                hit = True
            elif isinstance(entry, str) and SENSITIVE_VALUE_PATTERN.search(entry):
                redacted[key] = summarize_value(SENSITIVE_VALUE_PATTERN.sub(REDACTED, entry))
                hit = True
            else:
                redacted[key] = summarize_value(entry)
        return RedactedContent(
            value=redacted,
            redaction_level=redaction_level if hit else RedactionLevel.NONE,
            is_redacted=hit,
            redaction_reason=reason if hit else None,
        )

    if isinstance(value, str) and SENSITIVE_VALUE_PATTERN.search(value):
        return RedactedContent(
            value=summarize_value(SENSITIVE_VALUE_PATTERN.sub(REDACTED, value)),
            redaction_level=redaction_level,
            is_redacted=True,
            redaction_reason=reason,
        )

    return RedactedContent(value=summarize_value(value), redaction_level=RedactionLevel.NONE)
