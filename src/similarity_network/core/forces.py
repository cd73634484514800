"""Force kernels for the similarity layout.

Every kernel reads positions from a snapshot array taken at the start of a
tick and accumulates into a separate velocity-delta array, so the order in
which forces run (or nodes are visited) never changes the result.

    - link:        spring toward base / (similarity + eps), strength = similarity
    - many-body:   charge scaled by alpha / squared distance, all-pairs (numpy)
                   or Barnes-Hut quadtree for large graphs
    - centering:   translation moving the centroid onto the canvas center
    - collision:   positional correction after integration, not a force

Shapes: positions and deltas are float64 arrays of shape (n, 2).
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

FloatArray = NDArray[np.float64]
IntArray = NDArray[np.intp]

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))
_JIGGLE = 1e-6
# Squared distance floor for the many-body force (d3 distanceMin = 1)
_MIN_DISTANCE_SQ = 1.0
_MAX_QUAD_DEPTH = 48


def jitter_direction(k: int) -> tuple[float, float]:
    """Deterministic unit vector for separating coincident points."""
    angle = k * GOLDEN_ANGLE
    return (math.cos(angle), math.sin(angle))


def ideal_distance(
    similarity: FloatArray | float, base_distance: float, epsilon: float
) -> FloatArray | float:
    """Target separation: more similar pairs sit closer together."""
    return base_distance / (similarity + epsilon)


# ── Link force ──────────────────────────────────────────────────────────


def apply_link_force(
    positions: FloatArray,
    delta: FloatArray,
    source: IntArray,
    target: IntArray,
    distance: FloatArray,
    strength: FloatArray,
    bias: FloatArray,
    alpha: float,
) -> None:
    """Pull or push each linked pair toward its ideal distance.

    ``bias`` is the share of the correction taken by the target endpoint
    (source degree / summed degree), so hubs move less than leaves.
    """
    if source.size == 0:
        return

    diff = positions[target] - positions[source]
    length = np.hypot(diff[:, 0], diff[:, 1])

    degenerate = length == 0
    if np.any(degenerate):
        for k in np.flatnonzero(degenerate):
            diff[k] = np.multiply(jitter_direction(int(k)), _JIGGLE)
        length = np.hypot(diff[:, 0], diff[:, 1])

    factor = (length - distance) / length * alpha * strength
    correction = diff * factor[:, None]

    np.subtract.at(delta, target, correction * bias[:, None])
    np.add.at(delta, source, correction * (1 - bias)[:, None])


# ── Many-body force ─────────────────────────────────────────────────────


def apply_many_body_force(
    positions: FloatArray,
    delta: FloatArray,
    charged: NDArray[np.bool_],
    strength: float,
    alpha: float,
) -> None:
    """All-pairs charge. O(n²) time and memory; fine up to a few hundred nodes.

    Only ``charged`` nodes act as sources; every node receives the force.
    Negative strength repels.
    """
    if positions.shape[0] < 2 or not np.any(charged):
        return

    sources = positions[charged]
    # diff[i, j] points from node i toward charged node j
    diff = sources[None, :, :] - positions[:, None, :]
    dist_sq = np.maximum(np.einsum("ijk,ijk->ij", diff, diff), _MIN_DISTANCE_SQ)
    weight = strength * alpha / dist_sq

    # A node never pushes itself (diff is zero there anyway)
    coincident = (diff[:, :, 0] == 0) & (diff[:, :, 1] == 0)
    weight[coincident] = 0.0

    delta += np.einsum("ijk,ij->ik", diff, weight)


class QuadTree:
    """Barnes-Hut quadtree over charged bodies.

    Each cell aggregates body count and center of mass; a cell far enough
    from the query point (width² / theta² < distance²) is treated as one
    body carrying the cell's total charge.
    """

    __slots__ = ("x0", "y0", "x1", "y1", "children", "bodies", "count", "cx", "cy")

    def __init__(self, x0: float, y0: float, x1: float, y1: float) -> None:
        self.x0, self.y0, self.x1, self.y1 = x0, y0, x1, y1
        self.children: list[QuadTree | None] | None = None
        self.bodies: list[tuple[int, float, float]] = []
        self.count = 0
        self.cx = 0.0
        self.cy = 0.0

    @classmethod
    def from_points(cls, points: FloatArray, indices: IntArray) -> QuadTree:
        xs, ys = points[indices, 0], points[indices, 1]
        x0, x1 = float(xs.min()), float(xs.max())
        y0, y1 = float(ys.min()), float(ys.max())
        # Square extent so cell width is meaningful in both axes
        size = max(x1 - x0, y1 - y0, 1.0)
        tree = cls(x0, y0, x0 + size, y0 + size)
        for i in indices:
            tree.insert(int(i), float(points[i, 0]), float(points[i, 1]))
        return tree

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    def insert(self, index: int, x: float, y: float, depth: int = 0) -> None:
        # Running center of mass
        self.cx = (self.cx * self.count + x) / (self.count + 1)
        self.cy = (self.cy * self.count + y) / (self.count + 1)
        self.count += 1

        if self.children is None:
            coincident = all(bx == x and by == y for _, bx, by in self.bodies)
            if not self.bodies or coincident or depth >= _MAX_QUAD_DEPTH:
                self.bodies.append((index, x, y))
                return
            # Split: push existing bodies down one level
            self.children = [None, None, None, None]
            existing, self.bodies = self.bodies, []
            for b_index, bx, by in existing:
                self._child_for(bx, by).insert(b_index, bx, by, depth + 1)

        self._child_for(x, y).insert(index, x, y, depth + 1)

    def _child_for(self, x: float, y: float) -> QuadTree:
        xm = (self.x0 + self.x1) / 2
        ym = (self.y0 + self.y1) / 2
        right = x >= xm
        bottom = y >= ym
        slot = int(bottom) * 2 + int(right)
        if self.children is None:
            self.children = [None, None, None, None]
        child = self.children[slot]
        if child is None:
            child = QuadTree(
                xm if right else self.x0,
                ym if bottom else self.y0,
                self.x1 if right else xm,
                self.y1 if bottom else ym,
            )
            self.children[slot] = child
        return child

    def accumulate(
        self, index: int, x: float, y: float, strength: float, theta_sq: float
    ) -> tuple[float, float]:
        """Net many-body velocity delta (before alpha) acting on one point."""
        fx = fy = 0.0
        stack: list[QuadTree] = [self]
        while stack:
            quad = stack.pop()
            if quad.count == 0:
                continue

            if quad.children is None:
                for b_index, bx, by in quad.bodies:
                    if b_index == index:
                        continue
                    dx, dy = bx - x, by - y
                    dist_sq = dx * dx + dy * dy
                    if dist_sq == 0:
                        continue
                    w = strength / max(dist_sq, _MIN_DISTANCE_SQ)
                    fx += dx * w
                    fy += dy * w
                continue

            dx, dy = quad.cx - x, quad.cy - y
            dist_sq = dx * dx + dy * dy
            if dist_sq > 0 and quad.width * quad.width / theta_sq < dist_sq:
                w = strength * quad.count / max(dist_sq, _MIN_DISTANCE_SQ)
                fx += dx * w
                fy += dy * w
            else:
                stack.extend(c for c in quad.children if c is not None)
        return fx, fy


def apply_barnes_hut_force(
    positions: FloatArray,
    delta: FloatArray,
    charged: NDArray[np.bool_],
    strength: float,
    alpha: float,
    theta: float,
) -> None:
    """Approximate many-body force in O(n log n)."""
    indices = np.flatnonzero(charged)
    if positions.shape[0] < 2 or indices.size == 0:
        return

    tree = QuadTree.from_points(positions, indices)
    theta_sq = theta * theta
    scaled = strength * alpha
    for i in range(positions.shape[0]):
        fx, fy = tree.accumulate(
            i, float(positions[i, 0]), float(positions[i, 1]), scaled, theta_sq
        )
        delta[i, 0] += fx
        delta[i, 1] += fy


# ── Centering ───────────────────────────────────────────────────────────


def centering_shift(
    positions: FloatArray, center: tuple[float, float], strength: float
) -> FloatArray:
    """Translation that moves the centroid toward ``center``."""
    if positions.shape[0] == 0:
        return np.zeros(2)
    centroid = positions.mean(axis=0)
    return (np.asarray(center) - centroid) * strength


# ── Collision ───────────────────────────────────────────────────────────


def _candidate_pairs(
    positions: FloatArray, reach: FloatArray, cell: float
) -> list[tuple[int, int]]:
    """Pairs whose centers are within ``reach[i] + reach[j]`` (grid hash)."""
    grid: dict[tuple[int, int], list[int]] = {}
    for i, (x, y) in enumerate(positions):
        # Non-finite entries are left for the simulation's sanitizer
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(reach[i])):
            continue
        grid.setdefault((math.floor(x / cell), math.floor(y / cell)), []).append(i)

    pairs: set[tuple[int, int]] = set()
    for (gx, gy), members in grid.items():
        for ox in (-1, 0, 1):
            for oy in (-1, 0, 1):
                others = grid.get((gx + ox, gy + oy))
                if not others:
                    continue
                for i in members:
                    for j in others:
                        if i < j:
                            pairs.add((i, j))

    close = []
    for i, j in pairs:
        dx = positions[j, 0] - positions[i, 0]
        dy = positions[j, 1] - positions[i, 1]
        limit = reach[i] + reach[j]
        if dx * dx + dy * dy < limit * limit:
            close.append((i, j))
    return close


def resolve_collisions(
    positions: FloatArray,
    radii: FloatArray,
    padding: float,
    movable: NDArray[np.bool_],
    rank: IntArray,
    passes: int = 8,
) -> int:
    """Separate overlapping circles in place.

    Pairs are resolved in ascending (rank[i], rank[j]) order, where ``rank`` is
    each node's position in ascending-id order, so the outcome does not depend
    on storage order. Immovable (pinned) nodes never move; a movable node
    overlapping one takes the whole correction. Positions end with every pair
    at least ``radii[i] + radii[j]`` apart unless both nodes are pinned.

    Returns:
        Number of pair corrections applied
    """
    n = positions.shape[0]
    if n < 2:
        return 0

    reach = radii + padding / 2
    finite_reach = reach[np.isfinite(reach)]
    cell = max(float(finite_reach.max()) * 2, 1.0) if finite_reach.size else 1.0
    corrections = 0

    for _ in range(passes):
        pairs = _candidate_pairs(positions, reach, cell)
        pairs = [(i, j) if rank[i] < rank[j] else (j, i) for i, j in pairs]
        pairs.sort(key=lambda p: (rank[p[0]], rank[p[1]]))

        moved = False
        for i, j in pairs:
            if not movable[i] and not movable[j]:
                continue
            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            dist = math.hypot(dx, dy)
            target = radii[i] + radii[j] + padding
            if dist >= target or not math.isfinite(dist):
                continue

            if dist == 0:
                ux, uy = jitter_direction(int(rank[i]) * n + int(rank[j]))
            else:
                ux, uy = dx / dist, dy / dist
            overlap = target - dist

            if movable[i] and movable[j]:
                ri2, rj2 = radii[i] ** 2, radii[j] ** 2
                share_i = rj2 / (ri2 + rj2)
            else:
                share_i = 1.0 if movable[i] else 0.0
            share_j = 1.0 - share_i

            positions[i, 0] -= ux * overlap * share_i
            positions[i, 1] -= uy * overlap * share_i
            positions[j, 0] += ux * overlap * share_j
            positions[j, 1] += uy * overlap * share_j
            corrections += 1
            moved = True

        if not moved:
            break

    return corrections
