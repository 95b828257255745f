"""
Lattice Configuration Module

Centralized configuration from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class PersistenceBackend(str, Enum):
    """Supported workflow repository backends."""
    MEMORY = "memory"
    SQLITE = "sqlite"


@dataclass
class CompilerSettings:
    """Settings consulted by the lowering pipeline."""
    execir_version: str = "1.0"
    # Cyclic-but-reachable workflows fail lowering unless this is off
    reject_cycles: bool = True


@dataclass
class EventSettings:
    """Settings for canonical execution events."""
    seq_start: int = 1
    summary_max_chars: int = 120


@dataclass
class PersistenceConfig:
    """Workflow repository configuration."""
    backend: PersistenceBackend = PersistenceBackend.MEMORY
    sqlite_path: str = "./lattice_workflows.db"


@dataclass
class LatticeConfig:
    """Main configuration container."""
    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    events: EventSettings = field(default_factory=EventSettings)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    debug: bool = False
    log_level: str = "INFO"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def load_config() -> LatticeConfig:
    """
    Load configuration from environment variables.

    Environment Variables:
        LATTICE_EXECIR_VERSION: ExecIR version stamped on programs (default: 1.0)
        LATTICE_REJECT_CYCLES: Fail lowering for cyclic workflows (default: true)
        LATTICE_EVENT_SEQ_START: First seq assigned per run (default: 1)
        LATTICE_SUMMARY_MAX_CHARS: Max chars kept for summarized strings (default: 120)
        LATTICE_PERSISTENCE_BACKEND: Workflow repository (memory|sqlite)
        LATTICE_SQLITE_PATH: SQLite database path (default: ./lattice_workflows.db)
        LATTICE_DEBUG: Enable debug mode (default: false)
        LATTICE_LOG_LEVEL: Log level (default: INFO)
    """
    compiler = CompilerSettings(
        execir_version=os.getenv("LATTICE_EXECIR_VERSION", "1.0"),
        reject_cycles=_env_flag("LATTICE_REJECT_CYCLES", "true"),
    )

    events = EventSettings(
        seq_start=int(os.getenv("LATTICE_EVENT_SEQ_START", "1")),
        summary_max_chars=int(os.getenv("LATTICE_SUMMARY_MAX_CHARS", "120")),
    )

    backend_str = os.getenv("LATTICE_PERSISTENCE_BACKEND", "memory").lower()
    try:
        backend = PersistenceBackend(backend_str)
    except ValueError:
        logger.warning(f"Unknown persistence backend {backend_str!r}, using memory")
        backend = PersistenceBackend.MEMORY

    persistence = PersistenceConfig(
        backend=backend,
        sqlite_path=os.getenv("LATTICE_SQLITE_PATH", "./lattice_workflows.db"),
    )

    return LatticeConfig(
        compiler=compiler,
        events=events,
        persistence=persistence,
        debug=_env_flag("LATTICE_DEBUG", "false"),
        log_level=os.getenv("LATTICE_LOG_LEVEL", "INFO").upper(),
    )


# Singleton config instance
_config: Optional[LatticeConfig] = None


def get_config() -> LatticeConfig:
    """Get the global configuration (lazy-loaded singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    global _config
    _config = None
