"""Run state and step ledger storage.

Backends are chosen by URL scheme:

* no URL: :class:`InMemoryWorkflowRepository` (lost on exit)
* ``sqlite://<path>``: :class:`SQLiteWorkflowRepository`
* ``postgres://`` or ``postgresql://``: :class:`PostgresWorkflowRepository`
"""

from __future__ import annotations

import os
from typing import Optional

from ..config import NodeflowConfig, load_config
from .inmemory import InMemoryWorkflowRepository
from .models import StepRecord, WorkflowRun
from .repository import WorkflowRepository
from .sqlite import SQLiteWorkflowRepository

try:  # pragma: no cover - asyncpg is optional at runtime
    from .postgres import PostgresWorkflowRepository
except ImportError:  # pragma: no cover
    PostgresWorkflowRepository = None  # type: ignore

_SQLITE_PREFIX = "sqlite://"
_POSTGRES_PREFIXES = ("postgres://", "postgresql://")

# Process-wide repository shared by the CLI and bootstrap helpers.
_repository_instance: WorkflowRepository | None = None


def _resolve_url(database_url: Optional[str], config: NodeflowConfig) -> Optional[str]:
    return (
        database_url
        or os.getenv("NODEFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )


def _open(database_url: Optional[str]) -> WorkflowRepository:
    if not database_url:
        return InMemoryWorkflowRepository()
    if database_url.startswith(_SQLITE_PREFIX):
        return SQLiteWorkflowRepository(database_url[len(_SQLITE_PREFIX) :])
    if database_url.startswith(_POSTGRES_PREFIXES):
        if PostgresWorkflowRepository is None:
            raise RuntimeError("asyncpg is required for Postgres run storage")
        return PostgresWorkflowRepository(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_repository(
    database_url: Optional[str] = None, config: Optional[NodeflowConfig] = None
) -> WorkflowRepository:
    """Return the run repository for this process.

    Without arguments the previously opened repository is reused. Passing a
    ``database_url`` or ``config`` opens (and remembers) a new one; the URL
    falls back to ``NODEFLOW_DATABASE_URL``, ``DATABASE_URL`` and finally
    ``config.database_url``.
    """

    global _repository_instance
    if _repository_instance is None or database_url is not None or config is not None:
        url = _resolve_url(database_url, config or load_config())
        _repository_instance = _open(url)
    return _repository_instance


__all__ = [
    "StepRecord",
    "WorkflowRun",
    "WorkflowRepository",
    "SQLiteWorkflowRepository",
    "PostgresWorkflowRepository",
    "InMemoryWorkflowRepository",
    "get_repository",
]
