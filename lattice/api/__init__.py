"""Lattice API Module - FastAPI endpoints."""

from .routes import router, get_repository, get_compiler, get_model_registry

__all__ = [
    "router",
    "get_repository",
    "get_compiler",
    "get_model_registry",
]
