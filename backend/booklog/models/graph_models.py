"""Pydantic models for the knowledge graph and its interactive view."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class NodeKind(str, Enum):
    ROOT = "root"
    BOOK = "book"
    AUTHOR = "author"
    KEYWORD = "keyword"


class GraphNode(BaseModel):
    """A node in the knowledge graph."""

    id: str
    kind: NodeKind
    label: str


class GraphEdge(BaseModel):
    """An undirected link: root->book, book->author or book->keyword."""

    source: str
    target: str


class GraphModel(BaseModel):
    nodes: list[GraphNode]
    edges: list[GraphEdge]


class PresentationMode(str, Enum):
    INLINE = "inline"
    FULLSCREEN = "fullscreen"


class TransformState(BaseModel):
    k: float = 1.0
    x: float = 0.0
    y: float = 0.0


class PositionedNode(GraphNode):
    x: float
    y: float
    pinned: bool = False


class GraphViewState(BaseModel):
    """Snapshot of a live graph view returned to the client after each action."""

    mode: PresentationMode
    width: float
    height: float
    alpha: float
    running: bool
    frame: int
    transform: TransformState
    nodes: list[PositionedNode]
    edges: list[GraphEdge]


class OpenViewRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    width: float | None = Field(default=None, gt=0, le=10000)
    height: float | None = Field(default=None, gt=0, le=10000)
    settle_steps: int = Field(default=0, ge=0, le=1000)


class StepRequest(BaseModel):
    steps: int = Field(default=1, ge=1, le=500)


class DragRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    phase: Literal["start", "move", "end"]
    node_id: str
    x: float = 0.0
    y: float = 0.0


class ZoomRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    factor: float = Field(gt=0)
    x: float = 0.0
    y: float = 0.0


class PanRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    dx: float
    dy: float


class ModeRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    mode: PresentationMode
    width: float | None = Field(default=None, gt=0, le=10000)
    height: float | None = Field(default=None, gt=0, le=10000)
