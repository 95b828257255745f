"""
Lattice Output Validator

Runs the validators declared on an IR node against a step's output before
the interpreter accepts it:
- json_schema: the output must satisfy the schema (every violation reported)
- invariant: `$out.<key> in $in.<key>` membership checks
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging
import re

from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.validators import validator_for

from ..compiler.ir_types import ExecNode, ValidatorDef, ValidatorType

logger = logging.getLogger(__name__)


MEMBERSHIP_INVARIANT = re.compile(r"^\$out\.([A-Za-z0-9_]+) in \$in\.([A-Za-z0-9_]+)$")

_MISSING = object()


class OutputErrorType(str, Enum):
    SCHEMA = "schema"
    INVARIANT = "invariant"


@dataclass
class OutputError:
    """A single reason an output was rejected."""
    type: OutputErrorType
    message: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.path is not None:
            data["path"] = self.path
        return data


@dataclass
class OutputValidationResult:
    valid: bool
    errors: List[OutputError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}


def evaluate_invariant(expr: str, output: Any, input: Mapping[str, Any]) -> bool:
    """
    Evaluate an invariant expression.

    Only membership (`$out.k in $in.k`, where the input value is a list) is
    understood; any other expression holds.
    """
    match = MEMBERSHIP_INVARIANT.match(expr)
    if match is None:
        logger.debug(f"Invariant {expr!r} has no evaluator; treating as satisfied")
        return True

    out_key, in_key = match.groups()
    out_value = output.get(out_key, _MISSING) if isinstance(output, Mapping) else _MISSING
    in_value = input.get(in_key)
    if out_value is _MISSING or not isinstance(in_value, list):
        return False
    return out_value in in_value


def _instance_path(error: ValidationError) -> str:
    # Root-level violations have an empty path
    return "".join(f"/{part}" for part in error.absolute_path)


class Validator:
    """
    Output validator for LLM steps.

    Features:
    - Inline JSON schemas, or schema ids looked up in `schemas`
    - Every schema violation reported, not just the first
    - Membership invariants against the step's input
    """

    def __init__(self, schemas: Optional[Mapping[str, Any]] = None):
        self.schemas: Dict[str, Any] = dict(schemas or {})

    def validate(
        self,
        output: Any,
        node: ExecNode,
        input: Optional[Mapping[str, Any]] = None,
    ) -> OutputValidationResult:
        """Check `output` against every validator on `node`. Nodes without validators accept anything."""
        input = input or {}
        errors: List[OutputError] = []

        for validator in getattr(node, "validators", None) or []:
            if validator.type == ValidatorType.JSON_SCHEMA:
                errors.extend(self._schema_errors(validator, output))
            elif validator.type == ValidatorType.INVARIANT:
                expr = validator.expr or ""
                if not evaluate_invariant(expr, output, input):
                    errors.append(OutputError(
                        type=OutputErrorType.INVARIANT,
                        message=f"Invariant failed: {expr}",
                    ))

        if errors:
            logger.debug(f"Output of node {node.id} rejected with {len(errors)} error(s)")
        return OutputValidationResult(valid=not errors, errors=errors)

    def _schema_errors(self, validator: ValidatorDef, output: Any) -> List[OutputError]:
        schema = validator.schema
        if isinstance(schema, str):
            if schema not in self.schemas:
                return [OutputError(type=OutputErrorType.SCHEMA, message=f"Unknown schema: {schema}")]
            schema = self.schemas[schema]
        if not isinstance(schema, (Mapping, bool)):
            return [OutputError(type=OutputErrorType.SCHEMA, message="Invalid schema: expected an object")]

        schema_cls = validator_for(schema)
        try:
            schema_cls.check_schema(schema)
        except SchemaError as e:
            return [OutputError(type=OutputErrorType.SCHEMA, message=f"Invalid schema: {e.message}")]

        return [
            OutputError(type=OutputErrorType.SCHEMA, message=error.message, path=_instance_path(error))
            for error in schema_cls(schema).iter_errors(output)
        ]
