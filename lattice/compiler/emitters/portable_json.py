"""
Lattice Portable JSON Emitter

Platform-neutral bundle: the workflow, the model it was compiled for and,
when available, the ExecIR program.
"""

from __future__ import annotations
from typing import Any, Dict
import json
import logging

from .base import CompileInput, CompileOutput, CompilerTarget, Emitter, OutputFile

logger = logging.getLogger(__name__)


PORTABLE_SCHEMA_VERSION = "1.0.0"


class PortableJsonEmitter(Emitter):
    target = CompilerTarget.PORTABLE_JSON
    name = "Portable JSON"
    description = "Generates a platform-neutral JSON bundle."

    def emit(self, compile_input: CompileInput) -> CompileOutput:
        workflow = compile_input.workflow
        document = workflow.to_dict()
        document["nodes"] = sorted(document.get("nodes", []), key=lambda n: n["id"])

        bundle: Dict[str, Any] = {
            "schemaVersion": PORTABLE_SCHEMA_VERSION,
            "compiledFor": compile_input.model.id,
            "workflow": document,
        }
        if compile_input.program is not None:
            bundle["execir"] = compile_input.program.to_dict()

        content = json.dumps(bundle, indent=2)
        path = f"out/{self.file_stem(workflow)}.portable.json"
        logger.debug(f"Emitted portable bundle {path}")
        return CompileOutput(
            target=self.target,
            files=[OutputFile(path=path, content=content)],
            preview=content,
            warnings=self.capability_warnings(compile_input.model),
        )
