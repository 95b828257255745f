"""
Lattice API Routes

FastAPI endpoints for the Lattice workflow compiler:
- Workflow storage and legacy migration
- Lowering to ExecIR
- Compilation to platform artifacts
- Provider event mapping
"""

from __future__ import annotations
from typing import Dict, Any, Optional, List
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
import logging

from .. import __version__
from ..compiler.emitters import CompileInput, CompilerTarget, EmitterNotFoundError
from ..compiler.validation import CompilationError
from ..compiler.workflow_compiler import WorkflowCompiler, workflow_compiler
from ..persistence import WorkflowRepository, get_workflow_repository
from ..registry.models import ModelRegistry, UnknownModelError
from ..runtime.event_mapper import map_provider_events
from ..schemas.migration import migrate_legacy_workflow
from ..schemas.models import ModelDefinition
from ..schemas.workflow import WorkflowDocument, WorkflowNodeType

logger = logging.getLogger(__name__)


# =============================================================================
# API Models
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str


class NodeTypeInfo(BaseModel):
    name: str
    lowerable: bool


class SchemaInfoResponse(BaseModel):
    """Node types and compiler targets."""
    node_types: List[NodeTypeInfo]
    targets: List[str]


class LowerRequest(BaseModel):
    workflow: WorkflowDocument


class CompileRequest(BaseModel):
    """Request to compile a workflow for a target platform."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "workflow": {
                    "id": "wf_summarize",
                    "name": "Summarize",
                    "nodes": [
                        {"id": "start", "type": "start"},
                        {"id": "summarize", "type": "prompt", "config": {"prompt": "Summarize the input"}},
                        {"id": "end", "type": "end"},
                    ],
                    "edges": [
                        {"id": "e1", "source": "start", "target": "summarize"},
                        {"id": "e2", "source": "summarize", "target": "end"},
                    ],
                },
                "modelId": "claude-sonnet",
                "target": "claude",
            }
        },
    )

    workflow: WorkflowDocument
    model_id: str = Field(..., alias="modelId", description="Model catalog id")
    target: str = Field(..., description="claude | openai-assistants | portable-json")


class MapEventsRequest(BaseModel):
    """Provider events for a single run."""
    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(..., min_length=1, alias="runId")
    events: List[Dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Router
# =============================================================================

router = APIRouter(prefix="/api/v1", tags=["Lattice Compiler"])

# Repository singleton (will be injected in production)
_repository: Optional[WorkflowRepository] = None
_models: Optional[ModelRegistry] = None


def get_repository() -> WorkflowRepository:
    """Get or create the workflow repository."""
    global _repository
    if _repository is None:
        _repository = get_workflow_repository()
    return _repository


def get_model_registry() -> ModelRegistry:
    global _models
    if _models is None:
        _models = ModelRegistry()
    return _models


def get_compiler() -> WorkflowCompiler:
    return workflow_compiler


def _compilation_failed(error: CompilationError) -> HTTPException:
    logger.info(f"Compilation rejected ({error.code}): {error.message}")
    return HTTPException(
        status_code=422,
        detail={"code": error.code, "message": error.message, "nodes": error.nodes or []},
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get(
    "/schema",
    response_model=SchemaInfoResponse,
    summary="Get Schema Info",
    description="Workflow node types (and whether they can be lowered) and compiler targets.",
)
async def get_schema_info(compiler: WorkflowCompiler = Depends(get_compiler)):
    return SchemaInfoResponse(
        node_types=[
            NodeTypeInfo(name=t.value, lowerable=compiler.lowerers.get(t) is not None)
            for t in WorkflowNodeType
        ],
        targets=[t.value for t in compiler.emitters.targets()],
    )


@router.get(
    "/models",
    response_model=List[ModelDefinition],
    response_model_by_alias=True,
    summary="List Models",
)
async def list_models(models: ModelRegistry = Depends(get_model_registry)):
    return models.list()


@router.post(
    "/workflows",
    summary="Save Workflow",
    description="Create or replace a workflow document.",
)
async def save_workflow(
    workflow: WorkflowDocument,
    repository: WorkflowRepository = Depends(get_repository),
):
    await repository.save(workflow)
    return workflow.to_dict()


@router.get(
    "/workflows/{workflow_id}",
    summary="Get Workflow",
)
async def get_workflow(
    workflow_id: str,
    repository: WorkflowRepository = Depends(get_repository),
):
    workflow = await repository.get(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow.to_dict()


@router.post(
    "/workflows/migrate",
    summary="Migrate Legacy Workflow",
    description="Convert a legacy editor document into a current workflow document.",
)
async def migrate_workflow(legacy: Dict[str, Any]):
    try:
        return migrate_legacy_workflow(legacy).to_dict()
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid legacy workflow: {e}")


@router.post(
    "/lower",
    summary="Lower Workflow",
    description="Lower a workflow to an ExecIR program.",
)
async def lower_workflow(
    request: LowerRequest,
    compiler: WorkflowCompiler = Depends(get_compiler),
):
    try:
        program = compiler.lower(request.workflow)
    except CompilationError as e:
        raise _compilation_failed(e)
    return program.to_dict()


@router.post(
    "/compile",
    summary="Compile Workflow",
    description="Lower a workflow and emit artifacts for a target platform.",
)
async def compile_workflow(
    request: CompileRequest,
    compiler: WorkflowCompiler = Depends(get_compiler),
    models: ModelRegistry = Depends(get_model_registry),
):
    try:
        target = CompilerTarget(request.target)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown compiler target: {request.target}")
    try:
        model = models.get(request.model_id)
    except UnknownModelError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        output = compiler.compile(CompileInput(workflow=request.workflow, model=model, target=target))
    except CompilationError as e:
        raise _compilation_failed(e)
    except EmitterNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return output.to_dict()


@router.post(
    "/events/map",
    summary="Map Provider Events",
    description="Map provider SDK events for one run onto the canonical event stream.",
)
async def map_events(request: MapEventsRequest):
    try:
        events = map_provider_events(request.run_id, request.events)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [event.to_dict() for event in events]
