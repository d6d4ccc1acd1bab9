"""Zoom/pan transform applied on top of physics coordinates."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from booklog.models.graph_models import TransformState

MIN_SCALE = 0.1
MAX_SCALE = 4.0


def _clamp_scale(k: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, k))


class ViewTransform(BaseModel):
    """Screen = physics * k + (x, y). Immutable; operations return a new transform."""

    model_config = ConfigDict(frozen=True)

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        px, py = point
        return px * self.k + self.x, py * self.k + self.y

    def invert(self, point: tuple[float, float]) -> tuple[float, float]:
        sx, sy = point
        return (sx - self.x) / self.k, (sy - self.y) / self.k

    def scale_by(self, factor: float, anchor: tuple[float, float] = (0.0, 0.0)) -> ViewTransform:
        """Zoom by ``factor`` keeping the screen point ``anchor`` stationary."""
        k = _clamp_scale(self.k * factor)
        ax, ay = anchor
        px, py = self.invert(anchor)
        return ViewTransform(k=k, x=ax - px * k, y=ay - py * k)

    def translate_by(self, dx: float, dy: float) -> ViewTransform:
        return ViewTransform(k=self.k, x=self.x + dx, y=self.y + dy)

    def to_svg(self) -> str:
        return f"translate({self.x:.2f},{self.y:.2f}) scale({self.k:.4f})"

    def to_state(self) -> TransformState:
        return TransformState(k=self.k, x=self.x, y=self.y)
