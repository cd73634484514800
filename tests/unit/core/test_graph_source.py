"""Unit tests for the graph data source (HTTP endpoint and files)."""

import httpx
import orjson
import pytest

from similarity_network.core.exceptions import (
    EmptyInputError,
    InvalidRecordError,
    SourceError,
)
from similarity_network.core.models import GraphPayload
from similarity_network.core.source import (
    GraphSource,
    apply_limits,
    clamp_query,
    load_payload,
    load_payload_file,
    parse_payload,
)


def json_transport(body, status_code: int = 200, seen: list | None = None):
    """MockTransport answering every request with ``body``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, content=orjson.dumps(body))

    return httpx.MockTransport(handler)


class TestQueryLimits:
    def test_clamp_query(self):
        assert clamp_query(1.7, 9999) == (1.0, 500)
        assert clamp_query(-0.2, 0) == (0.0, 1)
        assert clamp_query(0.5, 120) == (0.5, 120)

    def test_apply_limits_caps_nodes_and_filters_edges(self, endpoint_response):
        payload = parse_payload(endpoint_response)

        limited = apply_limits(payload, threshold=0.72, max_nodes=2)

        assert [n.id for n in limited.nodes] == [11, 12]
        assert [(e.source_id, e.target_id) for e in limited.edges] == [(11, 12)]

    def test_threshold_filter(self, endpoint_response):
        payload = parse_payload(endpoint_response)

        limited = apply_limits(payload, threshold=0.8, max_nodes=50)

        assert len(limited.nodes) == 4
        assert [e.similarity for e in limited.edges] == [0.93]


class TestParsePayload:
    def test_envelope_is_unwrapped(self, endpoint_response):
        payload = parse_payload(endpoint_response)

        assert len(payload.nodes) == 4
        assert payload.nodes[0].label == "Getting started with Go"
        assert payload.nodes[0].metadata == {"article_id": 101}

    def test_bare_object_accepted(self):
        payload = parse_payload({"nodes": [{"id": "a"}], "edges": []})

        assert payload.nodes[0].id == "a"

    def test_null_edges_mean_no_edges(self):
        payload = parse_payload({"graph": {"nodes": [{"id": 1}], "edges": None}})

        assert payload.edges == []

    def test_non_object_rejected(self):
        with pytest.raises(InvalidRecordError):
            parse_payload([1, 2, 3])

    def test_bad_record_rejected(self):
        with pytest.raises(InvalidRecordError):
            parse_payload({"nodes": [{"id": 1}], "edges": [{"source": 1}]})


class TestFileSource:
    def test_load_file(self, graph_file):
        payload = load_payload_file(graph_file)

        assert isinstance(payload, GraphPayload)
        assert len(payload.edges) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError):
            load_payload_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(SourceError):
            load_payload_file(path)

    @pytest.mark.asyncio
    async def test_load_payload_applies_limits_to_files(self, graph_file):
        payload = await load_payload(str(graph_file), threshold=0.9, max_nodes=3)

        assert len(payload.nodes) == 3
        assert len(payload.edges) == 1


class TestGraphSource:
    @pytest.mark.asyncio
    async def test_fetch_sends_query_params(self, endpoint_response):
        seen: list[httpx.Request] = []
        source = GraphSource(
            "https://cms.example.com/",
            transport=json_transport(endpoint_response, seen=seen),
        )

        payload = await source.fetch(threshold=0.75, max_nodes=10)

        assert source.url == "https://cms.example.com/api/embeddings/similarity-graph"
        request = seen[0]
        assert request.url.path == "/api/embeddings/similarity-graph"
        assert request.url.params["threshold"] == "0.75"
        assert request.url.params["max_nodes"] == "10"
        assert len(payload.nodes) == 4
        assert [e.similarity for e in payload.edges] == [0.93]

    @pytest.mark.asyncio
    async def test_fetch_clamps_max_nodes(self, endpoint_response):
        seen: list[httpx.Request] = []
        source = GraphSource(
            "https://cms.example.com", transport=json_transport(endpoint_response, seen=seen)
        )

        await source.fetch(max_nodes=10_000)

        assert seen[0].url.params["max_nodes"] == "500"

    @pytest.mark.asyncio
    async def test_server_error(self):
        source = GraphSource("https://cms.example.com", transport=json_transport({}, 503))

        with pytest.raises(SourceError) as exc_info:
            await source.fetch()

        assert exc_info.value.context["status_code"] == 503
        assert "server error" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        source = GraphSource("https://cms.example.com", transport=json_transport({}, 401))

        with pytest.raises(SourceError, match="Not authorized"):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        source = GraphSource(
            "https://cms.example.com", timeout=1.0, transport=httpx.MockTransport(handler)
        )

        with pytest.raises(SourceError, match="timed out"):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = GraphSource("https://cms.example.com", transport=httpx.MockTransport(handler))

        with pytest.raises(SourceError, match="failed"):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        source = GraphSource("https://cms.example.com", transport=httpx.MockTransport(handler))

        with pytest.raises(SourceError, match="invalid JSON"):
            await source.fetch()

    @pytest.mark.asyncio
    async def test_empty_graph_allowed_by_default(self):
        body = {"graph": {"nodes": [], "edges": None}, "threshold": 0.7, "max_nodes": 50}
        source = GraphSource("https://cms.example.com", transport=json_transport(body))

        payload = await source.fetch()

        assert payload.nodes == []
        assert payload.edges == []

    @pytest.mark.asyncio
    async def test_empty_graph_rejected_when_required(self):
        body = {"graph": {"nodes": [], "edges": []}}
        source = GraphSource("https://cms.example.com", transport=json_transport(body))

        with pytest.raises(EmptyInputError):
            await source.fetch(require_nodes=True)
