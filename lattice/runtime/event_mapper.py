"""
Lattice Event Mapper

Maps provider SDK events onto the canonical execution event stream.
Prompts and tool inputs are always fully redacted; tool outputs are
redacted by key and summarized.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from dataclasses import dataclass, field
import logging

from ..schemas.execution import (
    EventType,
    ExecutionEvent,
    ProviderFailure,
    ProviderFailureCode,
    ProviderName,
    RedactedContent,
)
from .events import EventSequencer
from .redaction import redact_content

logger = logging.getLogger(__name__)


PROMPT_REDACTION_REASON = "prompt-redacted-by-default"
TOOL_INPUT_REDACTION_REASON = "tool-input-redacted-by-default"


# =============================================================================
# Provider Events
# =============================================================================

@dataclass
class StepStart:
    stage_id: str
    model_class: str
    prompt: Any = None


@dataclass
class ToolCall:
    stage_id: str
    tool_name: str
    args: Any = None


@dataclass
class ToolResult:
    stage_id: str
    tool_name: str
    result: Any = None


@dataclass
class StepComplete:
    stage_id: str
    model_used: str
    usage: Dict[str, int] = field(default_factory=dict)
    response: Any = None


@dataclass
class StepFail:
    stage_id: str
    error: str
    status_code: Optional[int] = None
    code: Optional[str] = None
    provider: Optional[str] = None


ProviderEvent = Union[StepStart, ToolCall, ToolResult, StepComplete, StepFail]


def _as_int(value: Any) -> int:
    """Token counters: null, missing or non-numeric values count as 0."""
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _as_status(value: Any) -> Optional[int]:
    """HTTP status from an int or a numeric string (JSON clients send both)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_provider_event(data: Union[ProviderEvent, Mapping[str, Any]]) -> ProviderEvent:
    """
    Build a provider event from its dict form (camelCase or snake_case keys).

    Raises:
        ValueError: If the event type is not recognised
    """
    if isinstance(data, (StepStart, ToolCall, ToolResult, StepComplete, StepFail)):
        return data

    event_type = data.get("type")
    stage_id = _pick(data, "stageId", "stage_id", default="")
    if event_type == "step-start":
        return StepStart(
            stage_id=stage_id,
            model_class=_pick(data, "modelClass", "model_class", default=""),
            prompt=data.get("prompt"),
        )
    if event_type == "tool-call":
        return ToolCall(
            stage_id=stage_id,
            tool_name=_pick(data, "toolName", "tool_name", default=""),
            args=data.get("args"),
        )
    if event_type == "tool-result":
        return ToolResult(
            stage_id=stage_id,
            tool_name=_pick(data, "toolName", "tool_name", default=""),
            result=data.get("result"),
        )
    if event_type == "step-complete":
        usage = data.get("usage")
        return StepComplete(
            stage_id=stage_id,
            model_used=_pick(data, "modelUsed", "model_used", default=""),
            usage=dict(usage) if isinstance(usage, Mapping) else {},
            response=data.get("response"),
        )
    if event_type == "step-fail":
        return StepFail(
            stage_id=stage_id,
            error=str(data.get("error", "")),
            status_code=_as_status(_pick(data, "statusCode", "status_code", "status")),
            code=data.get("code"),
            provider=data.get("provider"),
        )
    raise ValueError(f"Unknown provider event type: {event_type}")


# =============================================================================
# Failure Classification
# =============================================================================

_AUTH_CODES = {"auth", "unauthorized", "invalid_api_key", "authentication_error", "permission_denied"}
_RATE_LIMIT_CODES = {"rate_limit", "rate_limit_exceeded", "rate_limit_error"}
_MALFORMED_CODES = {"malformed_output", "invalid_response", "malformed"}


def normalize_provider(provider: Optional[str]) -> ProviderName:
    name = (provider or "").lower()
    if "openai" in name:
        return ProviderName.OPENAI
    if "anthropic" in name or "claude" in name:
        return ProviderName.ANTHROPIC
    return ProviderName.UNKNOWN


def classify_provider_failure(
    status_code: Optional[Union[int, str]] = None,
    code: Optional[str] = None,
    provider: Optional[str] = None,
) -> ProviderFailure:
    """Classify a provider error by HTTP status first, then by error code."""
    status_code = _as_status(status_code)
    name = normalize_provider(provider)
    normalized = code.lower() if isinstance(code, str) else ""

    if status_code in (401, 403) or normalized in _AUTH_CODES:
        failure_code, retryable = ProviderFailureCode.AUTH, False
    elif status_code == 429 or normalized in _RATE_LIMIT_CODES:
        failure_code, retryable = ProviderFailureCode.RATE_LIMIT, True
    elif status_code in (408, 504) or "timeout" in normalized or normalized == "etimedout":
        failure_code, retryable = ProviderFailureCode.TIMEOUT, True
    elif normalized in _MALFORMED_CODES:
        failure_code, retryable = ProviderFailureCode.MALFORMED_OUTPUT, False
    else:
        failure_code, retryable = ProviderFailureCode.UNKNOWN, False

    return ProviderFailure(code=failure_code, provider=name, retryable=retryable, status_code=status_code)


# =============================================================================
# Mapper
# =============================================================================

class ProviderEventMapper:
    """
    Maps provider events for one run.

    Call the mapper with each provider event in arrival order; seq is
    assigned from the run's own counter.
    """

    def __init__(self, run_id: str, sequencer: Optional[EventSequencer] = None):
        self.run_id = run_id
        self._sequencer = sequencer or EventSequencer(run_id)

    def __call__(self, event: Union[ProviderEvent, Mapping[str, Any]]) -> ExecutionEvent:
        return self.map(event)

    def map(self, event: Union[ProviderEvent, Mapping[str, Any]]) -> ExecutionEvent:
        event = parse_provider_event(event)

        if isinstance(event, StepStart):
            return self._emit(EventType.LLM_STEP_STARTED, event.stage_id, {
                "stageId": event.stage_id,
                "modelClass": event.model_class,
                "prompt": redact_content(
                    event.prompt, force=True, redaction_reason=PROMPT_REDACTION_REASON
                ),
            })

        if isinstance(event, ToolCall):
            return self._emit(EventType.TOOL_CALLED, event.stage_id, {
                "stageId": event.stage_id,
                "toolName": event.tool_name,
                "input": redact_content(
                    event.args, force=True, redaction_reason=TOOL_INPUT_REDACTION_REASON
                ),
            })

        if isinstance(event, ToolResult):
            return self._emit(EventType.TOOL_RESULT, event.stage_id, {
                "stageId": event.stage_id,
                "toolName": event.tool_name,
                "status": "success",
                "output": redact_content(event.result),
            })

        if isinstance(event, StepComplete):
            usage = event.usage if isinstance(event.usage, Mapping) else {}
            payload: Dict[str, Any] = {
                "stageId": event.stage_id,
                "modelUsed": event.model_used,
                "usage": {
                    "promptTokens": _as_int(_pick(usage, "promptTokens", "prompt_tokens")),
                    "completionTokens": _as_int(_pick(usage, "completionTokens", "completion_tokens")),
                },
            }
            if event.response is not None:
                payload["response"] = RedactedContent(value=event.response)
            return self._emit(EventType.LLM_STEP_COMPLETED, event.stage_id, payload)

        failure = classify_provider_failure(event.status_code, event.code, event.provider)
        logger.debug(f"Run {self.run_id} stage {event.stage_id} failed: {failure.code.value}")
        return self._emit(EventType.LLM_STEP_FAILED, event.stage_id, {
            "stageId": event.stage_id,
            "error": event.error,
            "providerFailure": failure,
        })

    def _emit(self, event_type: EventType, stage_id: str, payload: Dict[str, Any]) -> ExecutionEvent:
        return self._sequencer.emit(event_type, payload, stage_id=stage_id or None)


def map_provider_events(
    run_id: str,
    events: Iterable[Union[ProviderEvent, Mapping[str, Any]]],
) -> List[ExecutionEvent]:
    """Map a complete provider event sequence for one run."""
    mapper = ProviderEventMapper(run_id)
    return [mapper(event) for event in events]
