"""
Lattice Main Application

FastAPI application entry point for the Lattice workflow compiler.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from . import __version__
from .api.routes import router
from .config import get_config


config = get_config()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else config.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Lattice compiler starting...")
    yield
    logging.info("Lattice compiler shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Lattice Workflow Compiler",
    description="""
## Lattice - Agent Workflow Compiler

Lattice compiles agent workflows designed as typed node graphs into:
- **ExecIR**: a canonical, platform-neutral program
- **Platform artifacts**: Claude commands, OpenAI Assistants JSON, portable JSON

### API

- `POST /api/v1/workflows` - Save a workflow document
- `POST /api/v1/workflows/migrate` - Convert a legacy document
- `POST /api/v1/lower` - Lower a workflow to ExecIR
- `POST /api/v1/compile` - Emit artifacts for a target
- `POST /api/v1/events/map` - Map provider events to the canonical stream

### Guarantees
1. **Deterministic output** - Same workflow produces the same program and files
2. **All-or-nothing lowering** - Invalid workflows fail; no partial programs
3. **Redaction by default** - Prompts and tool inputs never reach the event stream
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include router
app.include_router(router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "name": "Lattice Workflow Compiler",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
