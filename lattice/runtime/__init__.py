"""Lattice Runtime Module - Event mapping, redaction, escalation, edge conditions and output validation."""

from .conditions import evaluate_when, select_next_edge
from .escalation import (
    EscalationDecision,
    EscalationEngine,
    StepFailure,
    should_escalate,
)
from .events import (
    EventProtocolError,
    EventSequencer,
    serialize_event,
    validate_envelope,
    validate_event_stream,
)
from .event_mapper import (
    ProviderEventMapper,
    StepComplete,
    StepFail,
    StepStart,
    ToolCall,
    ToolResult,
    classify_provider_failure,
    map_provider_events,
    parse_provider_event,
)
from .redaction import redact_content, summarize_value, SENSITIVE_KEY_PATTERN
from .validator import (
    OutputError,
    OutputErrorType,
    OutputValidationResult,
    Validator,
    evaluate_invariant,
)

__all__ = [
    "evaluate_when",
    "select_next_edge",
    "EscalationDecision",
    "EscalationEngine",
    "StepFailure",
    "should_escalate",
    "EventProtocolError",
    "EventSequencer",
    "serialize_event",
    "validate_envelope",
    "validate_event_stream",
    "ProviderEventMapper",
    "StepComplete",
    "StepFail",
    "StepStart",
    "ToolCall",
    "ToolResult",
    "classify_provider_failure",
    "map_provider_events",
    "parse_provider_event",
    "redact_content",
    "summarize_value",
    "SENSITIVE_KEY_PATTERN",
    "OutputError",
    "OutputErrorType",
    "OutputValidationResult",
    "Validator",
    "evaluate_invariant",
]
