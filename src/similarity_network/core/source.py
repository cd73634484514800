"""Graph data source: fetch or read ``{nodes, edges}`` payloads.

The layout engine never fetches anything itself. This module is the caller
side of that boundary: it talks to the similarity-graph endpoint, reads
exported JSON files, and applies the ``threshold`` / ``max_nodes`` limits
when the data was not already filtered server side.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import orjson
from loguru import logger
from pydantic import ValidationError

from ..config.defaults import (
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_NODES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_THRESHOLD,
    MAX_NODES_LIMIT,
)
from .exceptions import EmptyInputError, InvalidRecordError, SourceError
from .models import GraphPayload


def clamp_query(threshold: float, max_nodes: int) -> tuple[float, int]:
    """Bring query parameters into the ranges the endpoint accepts."""
    return (
        min(1.0, max(0.0, threshold)),
        min(MAX_NODES_LIMIT, max(1, max_nodes)),
    )


def apply_limits(payload: GraphPayload, threshold: float, max_nodes: int) -> GraphPayload:
    """Keep the first ``max_nodes`` nodes and the edges at or above ``threshold``
    whose endpoints both survive the cap.
    """
    nodes = payload.nodes[:max_nodes]
    kept = {node.id for node in nodes}
    edges = [
        edge
        for edge in payload.edges
        if edge.similarity >= threshold
        and edge.source_id in kept
        and edge.target_id in kept
    ]
    dropped = len(payload.edges) - len(edges)
    if dropped or len(nodes) < len(payload.nodes):
        logger.debug(
            f"Applied limits (threshold={threshold}, max_nodes={max_nodes}): "
            f"dropped {len(payload.nodes) - len(nodes)} nodes, {dropped} edges"
        )
    return GraphPayload(nodes=nodes, edges=edges)


def parse_payload(data: Any) -> GraphPayload:
    """Validate decoded JSON into a GraphPayload.

    Raises:
        InvalidRecordError: If the data does not match the input contract
    """
    if not isinstance(data, dict):
        raise InvalidRecordError(
            f"Expected a JSON object with 'nodes' and 'edges', got {type(data).__name__}"
        )
    try:
        return GraphPayload.from_response(data)
    except ValidationError as e:
        raise InvalidRecordError(
            f"Invalid graph payload: {e.errors()[0]['msg']}",
            context={"errors": e.errors()},
        ) from e


def load_payload_file(path: Path) -> GraphPayload:
    """Read a graph payload exported to disk."""
    try:
        data = orjson.loads(path.read_bytes())
    except FileNotFoundError as e:
        raise SourceError(f"Graph file not found: {path}") from e
    except orjson.JSONDecodeError as e:
        raise SourceError(f"Graph file {path} is not valid JSON: {e}") from e
    return parse_payload(data)


class GraphSource:
    """Client for the similarity-graph HTTP endpoint.

    ``GET {base_url}{endpoint}?threshold=<float>&max_nodes=<int>`` returning
    ``{"graph": {"nodes": [...], "edges": [...]}, "threshold": ..., "max_nodes": ...}``.
    """

    def __init__(
        self,
        base_url: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.endpoint = endpoint
        self.timeout = timeout
        self.headers = headers or {}
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    async def fetch(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        max_nodes: int = DEFAULT_MAX_NODES,
        require_nodes: bool = False,
    ) -> GraphPayload:
        """Fetch the graph for a similarity threshold and node cap.

        Args:
            threshold: Minimum similarity for included edges (clamped to [0, 1])
            max_nodes: Node cap (clamped to [1, 500])
            require_nodes: Raise EmptyInputError when the graph has no nodes

        Returns:
            Validated payload with limits applied

        Raises:
            SourceError: Timeout, HTTP error status, or undecodable body
            InvalidRecordError: Body does not match the input contract
            EmptyInputError: No nodes and ``require_nodes`` is set
        """
        threshold, max_nodes = clamp_query(threshold, max_nodes)
        params = {"threshold": threshold, "max_nodes": max_nodes}
        logger.info(f"Fetching similarity graph from {self.url} ({params})")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, headers=self.headers, transport=self._transport
            ) as client:
                response = await client.get(self.url, params=params)
                response.raise_for_status()
                data = orjson.loads(response.content)

        except httpx.TimeoutException as e:
            logger.error(f"Similarity graph request timed out after {self.timeout}s")
            raise SourceError(
                f"Request to {self.url} timed out after {self.timeout} seconds"
            ) from e

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_msg = f"Similarity graph endpoint returned HTTP {status_code}"
            if status_code in (401, 403):
                error_msg = "Not authorized to read the similarity graph. Check the auth header."
            elif status_code >= 500:
                error_msg = "Similarity graph endpoint server error. Please try again later."
            logger.error(error_msg)
            raise SourceError(error_msg, context={"status_code": status_code}) from e

        except httpx.HTTPError as e:
            logger.error(f"Similarity graph request failed: {e}")
            raise SourceError(f"Request to {self.url} failed: {e}") from e

        except orjson.JSONDecodeError as e:
            raise SourceError(f"Endpoint returned invalid JSON: {e}") from e

        payload = apply_limits(parse_payload(data), threshold, max_nodes)
        if require_nodes and not payload.nodes:
            raise EmptyInputError(
                "Similarity graph has no nodes",
                context={"threshold": threshold, "max_nodes": max_nodes},
            )
        logger.info(
            f"Received {len(payload.nodes)} nodes, {len(payload.edges)} edges"
        )
        return payload


async def load_payload(
    location: str,
    threshold: float = DEFAULT_THRESHOLD,
    max_nodes: int = DEFAULT_MAX_NODES,
    endpoint: str = DEFAULT_ENDPOINT,
) -> GraphPayload:
    """Load a payload from an ``http(s)://`` base URL or a local JSON file.

    File payloads are assumed unfiltered and have the limits applied here.
    """
    if location.startswith(("http://", "https://")):
        return await GraphSource(location, endpoint=endpoint).fetch(threshold, max_nodes)
    payload = load_payload_file(Path(location))
    return apply_limits(payload, threshold, max_nodes)
