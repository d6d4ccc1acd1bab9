"""Force-directed layout: a stepped simulation with a decaying alpha.

Forces follow the usual link / many-body / center / collide model. Positions
and velocities live in numpy arrays indexed by node order, so a step is a
handful of vectorized passes (the many-body and collide passes are O(n^2)).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

import numpy as np

from booklog.models.graph_models import GraphEdge, GraphNode

logger = logging.getLogger(__name__)

DEFAULT_LINK_DISTANCE = 80.0
DEFAULT_CHARGE_STRENGTH = -200.0
DEFAULT_COLLIDE_RADIUS = 30.0

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - math.pow(ALPHA_MIN, 1 / 300)
VELOCITY_DECAY = 0.4
DRAG_ALPHA_TARGET = 0.3

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
# Squared distances below this are clamped in the many-body pass
_DISTANCE_MIN2 = 1.0

TickListener = Callable[["ForceSimulation"], None]


class SimulationClosedError(RuntimeError):
    """Raised when stepping or pinning a destroyed simulation."""


class ForceSimulation:
    """One owned layout simulation for a single graph view."""

    def __init__(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        width: float,
        height: float,
        *,
        link_distance: float = DEFAULT_LINK_DISTANCE,
        charge_strength: float = DEFAULT_CHARGE_STRENGTH,
        collide_radius: float = DEFAULT_COLLIDE_RADIUS,
        seed: int = 0,
    ):
        self.node_ids = [n.id for n in nodes]
        self._index = {node_id: i for i, node_id in enumerate(self.node_ids)}
        self.width = float(width)
        self.height = float(height)
        self.link_distance = link_distance
        self.charge_strength = charge_strength

        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY

        n = len(self.node_ids)
        self.positions = self._initial_positions(n)
        self.velocities = np.zeros((n, 2))
        self.fixed = np.full((n, 2), np.nan)
        self.radii = np.full(n, float(collide_radius))

        pairs = [
            (self._index[e.source], self._index[e.target])
            for e in edges
            if e.source in self._index and e.target in self._index
        ]
        self._sources = np.array([s for s, _ in pairs], dtype=int)
        self._targets = np.array([t for _, t in pairs], dtype=int)
        degree = np.bincount(
            np.concatenate([self._sources, self._targets]), minlength=n
        ).astype(float)
        if pairs:
            src_deg = degree[self._sources]
            tgt_deg = degree[self._targets]
            self._link_strength = 1.0 / np.minimum(src_deg, tgt_deg)
            self._link_bias = src_deg / (src_deg + tgt_deg)
        else:
            self._link_strength = np.zeros(0)
            self._link_bias = np.zeros(0)

        self._rng = np.random.default_rng(seed)
        self._listeners: list[TickListener] = []
        self._destroyed = False
        self.tick_count = 0

    # --- lifecycle ---

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    @property
    def converged(self) -> bool:
        return self.alpha < self.alpha_min

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def on_tick(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def destroy(self) -> None:
        self._listeners.clear()
        self._destroyed = True

    def reheat(self, alpha_target: float = DRAG_ALPHA_TARGET, alpha: float | None = None) -> None:
        """Raise the temperature so the layout reacts again."""
        self._check_open()
        self.alpha_target = alpha_target
        if alpha is not None:
            self.alpha = alpha

    def pin(self, node_id: str, pos: tuple[float, float]) -> None:
        """Fix a node at ``pos``; every step overwrites its position until unpinned."""
        self._check_open()
        i = self._index[node_id]
        self.fixed[i] = pos
        self.positions[i] = pos
        self.velocities[i] = 0.0

    def unpin(self, node_id: str) -> None:
        self._check_open()
        self.fixed[self._index[node_id]] = np.nan

    def is_pinned(self, node_id: str) -> bool:
        return not np.isnan(self.fixed[self._index[node_id], 0])

    def position(self, node_id: str) -> tuple[float, float]:
        x, y = self.positions[self._index[node_id]]
        return float(x), float(y)

    def positions_by_id(self) -> dict[str, tuple[float, float]]:
        return {
            node_id: (float(self.positions[i, 0]), float(self.positions[i, 1]))
            for i, node_id in enumerate(self.node_ids)
        }

    # --- stepping ---

    def step(self) -> None:
        """Advance one relaxation step and notify tick listeners."""
        self._check_open()
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

        if self.node_ids:
            self._apply_link()
            self._apply_charge()
            self._apply_center()
            self._apply_collide()
            self._integrate()

        self.tick_count += 1
        for listener in list(self._listeners):
            listener(self)

    def run(self, max_steps: int = 300) -> int:
        """Step until converged or ``max_steps`` is reached; return steps taken."""
        steps = 0
        while steps < max_steps and not self.converged:
            self.step()
            steps += 1
        return steps

    # --- forces ---

    def _apply_link(self) -> None:
        if not len(self._sources):
            return
        s, t = self._sources, self._targets
        delta = (self.positions[t] + self.velocities[t]) - (self.positions[s] + self.velocities[s])
        dist = np.hypot(delta[:, 0], delta[:, 1])
        coincident = dist == 0
        if coincident.any():
            delta[coincident] = self._jiggle((int(coincident.sum()), 2))
            dist = np.hypot(delta[:, 0], delta[:, 1])
        scale = (dist - self.link_distance) / dist * self.alpha * self._link_strength
        delta *= scale[:, None]
        np.add.at(self.velocities, t, -delta * self._link_bias[:, None])
        np.add.at(self.velocities, s, delta * (1 - self._link_bias)[:, None])

    def _apply_charge(self) -> None:
        # diff[i, j] points from node i to node j
        diff = self.positions[None, :, :] - self.positions[:, None, :]
        dist2 = np.maximum((diff ** 2).sum(axis=-1), _DISTANCE_MIN2)
        weight = self.charge_strength * self.alpha / dist2
        np.fill_diagonal(weight, 0.0)
        self.velocities += (diff * weight[:, :, None]).sum(axis=1)

    def _apply_center(self) -> None:
        shift = self.positions.mean(axis=0) - np.array(self.center)
        self.positions -= shift

    def _apply_collide(self) -> None:
        n = len(self.node_ids)
        if n < 2:
            return
        predicted = self.positions + self.velocities
        # diff[i, j] points from node j to node i
        diff = predicted[:, None, :] - predicted[None, :, :]
        dist2 = (diff ** 2).sum(axis=-1)
        reach = self.radii[:, None] + self.radii[None, :]
        overlap = dist2 < reach ** 2
        np.fill_diagonal(overlap, False)
        if not overlap.any():
            return

        coincident = overlap & (dist2 == 0)
        if coincident.any():
            rows, cols = np.nonzero(np.triu(coincident))
            offsets = self._jiggle((len(rows), 2))
            diff[rows, cols] = offsets
            diff[cols, rows] = -offsets
            dist2 = (diff ** 2).sum(axis=-1)

        dist = np.sqrt(np.where(overlap, dist2, 1.0))
        push = np.where(overlap, (reach - dist) / dist, 0.0)
        r2 = self.radii ** 2
        share = r2[None, :] / (r2[:, None] + r2[None, :])
        self.velocities += (diff * (push * share)[:, :, None]).sum(axis=1)

    def _integrate(self) -> None:
        self.velocities *= 1 - self.velocity_decay
        self.positions += self.velocities
        pinned = ~np.isnan(self.fixed[:, 0])
        if pinned.any():
            self.positions[pinned] = self.fixed[pinned]
            self.velocities[pinned] = 0.0

    # --- helpers ---

    def _initial_positions(self, n: int) -> np.ndarray:
        """Phyllotaxis spiral around the canvas center."""
        i = np.arange(n, dtype=float)
        radius = _INITIAL_RADIUS * np.sqrt(0.5 + i)
        angle = i * _INITIAL_ANGLE
        cx, cy = self.center
        return np.column_stack([cx + radius * np.cos(angle), cy + radius * np.sin(angle)])

    def _jiggle(self, shape: tuple[int, int]) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _check_open(self) -> None:
        if self._destroyed:
            raise SimulationClosedError("Simulation has been destroyed")
