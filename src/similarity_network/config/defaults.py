"""Default configurations for similarity-network."""

# Data source query defaults (applied by the caller, not the graph model)
DEFAULT_THRESHOLD = 0.7  # Minimum similarity for an edge to be included
DEFAULT_MAX_NODES = 50  # Node cap requested from the endpoint
MAX_NODES_LIMIT = 500  # Endpoint rejects larger caps

# Viewport
DEFAULT_MIN_SCALE = 0.1
DEFAULT_MAX_SCALE = 4.0

# Simulation cooling (d3-force defaults: ~300 ticks to settle)
DEFAULT_ALPHA_INITIAL = 1.0
DEFAULT_ALPHA_MIN = 0.001
DEFAULT_COOLING_RATE = 1 - DEFAULT_ALPHA_MIN ** (1 / 300)  # ≈ 0.0228
DEFAULT_DRAG_ALPHA = 0.3  # Reheat on drag, never a full re-layout
DEFAULT_DAMPING_FACTOR = 0.6

# Forces
DEFAULT_BASE_DISTANCE = 100.0  # ideal = base / (similarity + epsilon)
DEFAULT_DISTANCE_EPSILON = 0.1
DEFAULT_CHARGE_STRENGTH = -300.0  # Negative = repulsive
DEFAULT_CENTER_STRENGTH = 1.0
DEFAULT_COLLISION_PADDING = 5.0
DEFAULT_WEIGHT_FLOOR = 1.0  # radius = sqrt(weight) >= 1
DEFAULT_BARNES_HUT_THRESHOLD = 300  # Switch to quadtree above this node count
DEFAULT_BARNES_HUT_THETA = 0.9

# Canvas
DEFAULT_WIDTH = 800.0
DEFAULT_HEIGHT = 600.0

# Rendering
DEFAULT_LABEL_MAX_LENGTH = 20

# d3.schemeCategory10
CATEGORY_PALETTE = [
    "#1f77b4",  # Blue
    "#ff7f0e",  # Orange
    "#2ca02c",  # Green
    "#d62728",  # Red
    "#9467bd",  # Purple
    "#8c564b",  # Brown
    "#e377c2",  # Pink
    "#7f7f7f",  # Gray
    "#bcbd22",  # Olive
    "#17becf",  # Cyan
]

# External graph endpoint
DEFAULT_ENDPOINT = "/api/embeddings/similarity-graph"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Environment variable prefix for NetworkConfig overrides
ENV_PREFIX = "SIMILARITY_NETWORK_"
