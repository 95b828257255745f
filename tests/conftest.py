"""Shared fixtures for the Lattice test suite."""

import pytest

from lattice.config import reset_config

from builders import chain, node, workflow


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts from default configuration."""
    for var in (
        "LATTICE_REJECT_CYCLES",
        "LATTICE_EVENT_SEQ_START",
        "LATTICE_SUMMARY_MAX_CHARS",
        "LATTICE_PERSISTENCE_BACKEND",
        "LATTICE_EXECIR_VERSION",
        "LATTICE_SQLITE_PATH",
        "LATTICE_DEBUG",
        "LATTICE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def linear_workflow():
    """start -> prompt -> end"""
    return workflow(
        [
            node("start", "start"),
            node("summarize", "prompt", prompt="Summarize the input"),
            node("end", "end"),
        ],
        chain("start", "summarize", "end"),
    )
