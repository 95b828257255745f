"""
Lattice Execution Schemas

Canonical execution event stream types - provider-neutral, no UI concepts.
"""

from __future__ import annotations
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from enum import Enum


EVENT_VERSION = "1.0"
REDACTED = "[REDACTED]"


# =============================================================================
# Event Types
# =============================================================================

class EventType(str, Enum):
    """Canonical execution event types."""
    RUN_STARTED = "run.started"
    RUN_COMPLETED = "run.completed"
    RUN_FAILED = "run.failed"
    STAGE_STARTED = "stage.started"
    STAGE_COMPLETED = "stage.completed"
    STAGE_FAILED = "stage.failed"
    TOOL_CALLED = "tool.called"
    TOOL_RESULT = "tool.result"
    TOOL_FAILED = "tool.failed"
    LLM_STEP_STARTED = "llm.step.started"
    LLM_STEP_COMPLETED = "llm.step.completed"
    LLM_STEP_FAILED = "llm.step.failed"
    TRACE_BREADCRUMB = "trace.breadcrumb"


# =============================================================================
# Redacted Content
# =============================================================================

class RedactionLevel(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


@dataclass
class RedactedContent:
    """
    A payload value after redaction.

    `value` is what may be shown or stored; the original is never kept.
    """
    value: Any
    redaction_level: RedactionLevel = RedactionLevel.NONE
    is_redacted: bool = False
    redaction_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "value": self.value,
            "redactionLevel": self.redaction_level.value,
            "isRedacted": self.is_redacted,
        }
        if self.redaction_reason is not None:
            data["redactionReason"] = self.redaction_reason
        return data


# =============================================================================
# Provider Failures
# =============================================================================

class ProviderFailureCode(str, Enum):
    """Failure categories; also the tags escalation policies match on."""
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


class ProviderName(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    UNKNOWN = "unknown"


@dataclass
class ProviderFailure:
    """Classified provider failure. Reported, never raised."""
    code: ProviderFailureCode = ProviderFailureCode.UNKNOWN
    provider: ProviderName = ProviderName.UNKNOWN
    retryable: bool = False
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code.value,
            "provider": self.provider.value,
            "retryable": self.retryable,
        }
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        return data


# =============================================================================
# Event Envelope
# =============================================================================

def to_jsonable(value: Any) -> Any:
    """Convert payload values (nested dataclasses, enums) to plain JSON data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


@dataclass
class ExecutionEvent:
    """
    Canonical execution event.

    `seq` is strictly increasing per run_id; the pair (run_id, seq)
    identifies an event.
    """
    run_id: str
    seq: int
    timestamp: str
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    stage_id: Optional[str] = None
    event_version: str = EVENT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "eventVersion": self.event_version,
            "runId": self.run_id,
            "seq": self.seq,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }
        if self.stage_id is not None:
            data["stageId"] = self.stage_id
        data["payload"] = to_jsonable(self.payload)
        return data
