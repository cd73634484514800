"""Core functionality for similarity-network."""

from .exceptions import (
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
from .graph import Edge, Graph, Node, build_graph
from .interaction import (
    Drag,
    DragEnd,
    DragStart,
    Hover,
    InteractionController,
    Pan,
    ResetView,
    Select,
    TogglePause,
    Zoom,
)
from .models import GraphPayload, RawEdge, RawNode, RenderFrame
from .session import VisualizationSession
from .simulation import ForceSimulation, SimulationState
from .viewport import ViewportController, ViewportTransform

__all__ = [
    "ConfigError",
    "DanglingEdgeError",
    "Drag",
    "DragEnd",
    "DragStart",
    "DuplicateNodeError",
    "Edge",
    "EmptyInputError",
    "ForceSimulation",
    "Graph",
    "GraphPayload",
    "Hover",
    "IngestError",
    "InteractionController",
    "InvalidRecordError",
    "Node",
    "Pan",
    "RawEdge",
    "RawNode",
    "RenderFrame",
    "ResetView",
    "Select",
    "SelfLoopError",
    "SimilarityNetworkError",
    "SimulationState",
    "SourceError",
    "TogglePause",
    "ViewportController",
    "ViewportTransform",
    "VisualizationSession",
    "Zoom",
    "build_graph",
]
