"""Typed exception hierarchy for similarity-network.

Hierarchy
---------
SimilarityNetworkError (base)
├── IngestError            – raw node/edge records could not be turned into a Graph
│   ├── DanglingEdgeError  – an edge references an unknown node id
│   ├── EmptyInputError    – no nodes where the caller required some
│   ├── SelfLoopError      – an edge connects a node to itself
│   ├── DuplicateNodeError – two raw nodes share the same id
│   └── InvalidRecordError – a raw record failed schema validation
├── ConfigError            – configuration / validation errors
└── SourceError            – fetching graph data from the HTTP endpoint failed

Numeric degeneracy inside the simulation and interaction commands naming
unknown nodes are deliberately NOT part of this hierarchy: both are logged
and recovered from locally, never raised.
"""

from typing import Any


class SimilarityNetworkError(Exception):
    """Base exception for similarity-network."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Ingestion ───────────────────────────────────────────────────────────


class IngestError(SimilarityNetworkError):
    """Raw graph data could not be normalized into a Graph."""

    pass


class DanglingEdgeError(IngestError):
    """Edge references a node id that is not in the node list."""

    pass


class EmptyInputError(IngestError):
    """No nodes were supplied where the caller required at least one.

    ``build_graph()`` itself treats an empty node list as a valid empty
    graph; this is raised only by callers that opt into it
    (``GraphSource.fetch(require_nodes=True)``).
    """

    pass


class SelfLoopError(IngestError):
    """Edge connects a node to itself."""

    pass


class DuplicateNodeError(IngestError):
    """Two raw nodes carry the same id."""

    pass


class InvalidRecordError(IngestError):
    """Raw node or edge record failed validation."""

    pass


# ── Configuration ───────────────────────────────────────────────────────


class ConfigError(SimilarityNetworkError):
    """Configuration / validation errors."""

    pass


# ── Data source ─────────────────────────────────────────────────────────


class SourceError(SimilarityNetworkError):
    """Graph data could not be fetched or read."""

    pass
