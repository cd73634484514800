"""Wire models for similarity-network.

Two contracts cross the boundary of this package:

- the graph payload supplied by the external similarity endpoint
  (``{nodes, edges}``), validated into ``RawNode`` / ``RawEdge`` records;
- the render frame handed to whatever paints the scene on every tick
  (``RenderFrame``).

Both are pydantic models so malformed input fails with a precise message
before it reaches the graph model.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

NodeId = int | str

# Cosine similarities computed in float64 can overshoot 1.0 by a few ulps
_SIMILARITY_TOLERANCE = 1e-9


# --- Input contract ---


class RawNode(BaseModel):
    """A node record as delivered by the data source.

    Accepts both the canonical field names and the names used by the
    similarity-graph endpoint (``title``, ``language``, ``size``). Any other
    fields (e.g. ``article_id``) are kept in ``metadata``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: NodeId
    label: str = Field(default="", validation_alias=AliasChoices("label", "title"))
    category: str = Field(
        default="", validation_alias=AliasChoices("category", "language")
    )
    weight: float = Field(
        default=1.0,
        ge=0.0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("weight", "size"),
    )

    @property
    def metadata(self) -> dict[str, Any]:
        """Passthrough fields not covered by the schema."""
        return dict(self.model_extra or {})


class RawEdge(BaseModel):
    """An edge record as delivered by the data source.

    ``weight`` from the endpoint is ignored: render thickness is derived
    from ``similarity``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_id: NodeId = Field(validation_alias=AliasChoices("source_id", "source"))
    target_id: NodeId = Field(validation_alias=AliasChoices("target_id", "target"))
    similarity: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)

    @field_validator("similarity", mode="before")
    @classmethod
    def _clamp_rounding(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            if 1.0 < value <= 1.0 + _SIMILARITY_TOLERANCE:
                return 1.0
            if -_SIMILARITY_TOLERANCE <= value < 0.0:
                return 0.0
        return value


class GraphPayload(BaseModel):
    """The ``{nodes, edges}`` input contract."""

    nodes: list[RawNode] = Field(default_factory=list)
    edges: list[RawEdge] = Field(default_factory=list)

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        # The endpoint serializes an empty edge list as null
        return [] if value is None else value

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> GraphPayload:
        """Parse either a bare ``{nodes, edges}`` object or the endpoint
        envelope ``{"graph": {nodes, edges}, "threshold": ..., "max_nodes": ...}``.
        """
        if isinstance(data, dict) and isinstance(data.get("graph"), dict):
            data = data["graph"]
        return cls.model_validate(data)


# --- Render adapter contract ---


class RenderNode(BaseModel):
    id: NodeId
    x: float
    y: float
    radius: float
    category: str
    label: str
    color: str
    is_selected: bool = False
    is_hovered: bool = False
    pinned: bool = False


class RenderEdge(BaseModel):
    source_id: NodeId
    target_id: NodeId
    x1: float
    y1: float
    x2: float
    y2: float
    similarity: float
    width: float
    highlighted: bool = False


class ViewportState(BaseModel):
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0


class NeighborEntry(BaseModel):
    """One row of the selected node's ranked detail list."""

    id: NodeId
    label: str
    category: str
    similarity: float


class RenderFrame(BaseModel):
    """Everything the renderer needs to paint one frame."""

    nodes: list[RenderNode] = Field(default_factory=list)
    edges: list[RenderEdge] = Field(default_factory=list)
    viewport_transform: ViewportState = Field(default_factory=ViewportState)
    alpha: float = 0.0
    state: str = "idle"
    selected_id: NodeId | None = None
    hovered_id: NodeId | None = None
    details: list[NeighborEntry] = Field(default_factory=list)
