"""Tests for the typed exception hierarchy."""

import pytest

from similarity_network.core.exceptions import (
    ConfigError,
    DanglingEdgeError,
    DuplicateNodeError,
    EmptyInputError,
    IngestError,
    InvalidRecordError,
    SelfLoopError,
    SimilarityNetworkError,
    SourceError,
)


class TestHierarchy:
    """Every error can be caught as SimilarityNetworkError."""

    @pytest.mark.parametrize(
        "error_cls",
        [DanglingEdgeError, EmptyInputError, SelfLoopError, DuplicateNodeError, InvalidRecordError],
    )
    def test_ingest_errors(self, error_cls):
        assert issubclass(error_cls, IngestError)
        assert issubclass(error_cls, SimilarityNetworkError)

    @pytest.mark.parametrize("error_cls", [ConfigError, SourceError])
    def test_other_errors_are_not_ingest_errors(self, error_cls):
        assert issubclass(error_cls, SimilarityNetworkError)
        assert not issubclass(error_cls, IngestError)


class TestContext:
    def test_context_defaults_to_empty(self):
        error = SourceError("boom")

        assert str(error) == "boom"
        assert error.context == {}

    def test_context_is_kept(self):
        error = DanglingEdgeError("dangling", context={"node_id": 7})

        assert error.context["node_id"] == 7
