"""One interactive knowledge-graph view per profile.

A ``GraphView`` owns a graph model, a ``ForceSimulation``, a ``GraphRenderer``
and a ``ViewTransform``. The registry keeps at most one view per profile and
throws the whole thing away whenever that profile's books change; nothing
(pins, zoom) carries over to the replacement.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence

from booklog.models.book_models import BookRecord
from booklog.models.graph_models import GraphViewState, PositionedNode, PresentationMode
from booklog.services.graph_builder import build_graph
from booklog.services.graph_renderer import INLINE_HEIGHT, INLINE_WIDTH, GraphRenderer
from booklog.services.layout import ForceSimulation, ViewTransform
from booklog.services.layout.simulation import DRAG_ALPHA_TARGET

logger = logging.getLogger(__name__)


class UnknownNodeError(KeyError):
    """Raised when an interaction names a node that is not in the graph."""


class GraphView:
    def __init__(
        self,
        books: Sequence[BookRecord],
        width: float = INLINE_WIDTH,
        height: float = INLINE_HEIGHT,
    ):
        self.model = build_graph(books)
        self.mode = PresentationMode.INLINE
        self.transform = ViewTransform()
        self.simulation: ForceSimulation | None = None
        self.renderer: GraphRenderer | None = None
        self._dragging: str | None = None
        self._start(width, height)

    # --- lifecycle ---

    def _start(self, width: float, height: float) -> None:
        if self.simulation is not None:
            self.simulation.destroy()
        self.width = width
        self.height = height
        self._dragging = None
        self.simulation = ForceSimulation(self.model.nodes, self.model.edges, width, height)
        self.renderer = GraphRenderer(
            self.model.nodes, self.model.edges, width, height, mode=self.mode
        )
        self.simulation.on_tick(self._on_tick)
        self._redraw()

    def _on_tick(self, simulation: ForceSimulation) -> None:
        self.renderer.draw(simulation.positions_by_id(), self.transform)

    def _redraw(self) -> None:
        self.renderer.draw(self.simulation.positions_by_id(), self.transform)

    @property
    def closed(self) -> bool:
        return self.simulation.destroyed

    def close(self) -> None:
        self.simulation.destroy()

    # --- stepping ---

    @property
    def running(self) -> bool:
        return self._dragging is not None or not self.simulation.converged

    def advance(self, steps: int = 1) -> int:
        """Run up to ``steps`` ticks, stopping early once the layout has cooled."""
        taken = 0
        while taken < steps and self.running:
            self.simulation.step()
            taken += 1
        return taken

    def settle(self, max_steps: int = 300) -> int:
        return self.simulation.run(max_steps)

    # --- presentation ---

    def set_mode(
        self,
        mode: PresentationMode,
        width: float | None = None,
        height: float | None = None,
    ) -> None:
        """Switch inline/fullscreen; recomputes bounds and restarts the layout."""
        self.mode = mode
        if mode == PresentationMode.FULLSCREEN:
            new_width = width or self.width
            new_height = height or self.height
        else:
            new_width = width or INLINE_WIDTH
            new_height = INLINE_HEIGHT
        self._start(new_width, new_height)

    def zoom(self, factor: float, anchor: tuple[float, float] = (0.0, 0.0)) -> None:
        self.transform = self.transform.scale_by(factor, anchor)
        self._redraw()

    def pan(self, dx: float, dy: float) -> None:
        self.transform = self.transform.translate_by(dx, dy)
        self._redraw()

    def svg(self) -> str:
        return self.renderer.markup

    def print_document(self) -> str:
        return self.renderer.print_document()

    # --- drag ---

    def _require_node(self, node_id: str) -> None:
        if node_id not in self.simulation.node_ids:
            raise UnknownNodeError(node_id)

    def drag_start(self, node_id: str, pointer: tuple[float, float]) -> None:
        self._require_node(node_id)
        self._dragging = node_id
        self.simulation.reheat(DRAG_ALPHA_TARGET)
        self.simulation.pin(node_id, self.transform.invert(pointer))

    def drag_move(self, node_id: str, pointer: tuple[float, float]) -> None:
        self._require_node(node_id)
        self.simulation.pin(node_id, self.transform.invert(pointer))

    def drag_end(self, node_id: str) -> None:
        self._require_node(node_id)
        self.simulation.reheat(0.0)
        self.simulation.unpin(node_id)
        if self._dragging == node_id:
            self._dragging = None

    # --- state ---

    def state(self) -> GraphViewState:
        sim = self.simulation
        positions = sim.positions_by_id()
        nodes = [
            PositionedNode(
                id=node.id,
                kind=node.kind,
                label=node.label,
                x=positions[node.id][0],
                y=positions[node.id][1],
                pinned=sim.is_pinned(node.id),
            )
            for node in self.model.nodes
        ]
        return GraphViewState(
            mode=self.mode,
            width=self.width,
            height=self.height,
            alpha=sim.alpha,
            running=self.running,
            frame=self.renderer.frame,
            transform=self.transform.to_state(),
            nodes=nodes,
            edges=self.model.edges,
        )


class GraphViewRegistry:
    """Keeps the live view for each profile and discards stale loads."""

    def __init__(self):
        self._views: dict[str, GraphView] = {}
        self._generations: dict[str, int] = {}

    def _bump(self, owner: str) -> int:
        generation = self._generations.get(owner, 0) + 1
        self._generations[owner] = generation
        return generation

    async def open(
        self,
        owner: str,
        load_books: Callable[[], Awaitable[Sequence[BookRecord]]],
        width: float = INLINE_WIDTH,
        height: float = INLINE_HEIGHT,
    ) -> GraphView | None:
        """Load books and install a fresh view.

        Returns None when a newer open/close for the same owner happened
        while the books were loading; the loaded result is dropped.
        """
        generation = self._bump(owner)
        books = await load_books()
        if self._generations.get(owner) != generation:
            logger.info("Discarding stale graph load for %s", owner)
            return None
        previous = self._views.pop(owner, None)
        if previous is not None:
            previous.close()
        view = GraphView(books, width=width, height=height)
        self._views[owner] = view
        logger.info(
            "Opened graph view for %s (%d nodes, %d edges)",
            owner, len(view.model.nodes), len(view.model.edges),
        )
        return view

    def get(self, owner: str) -> GraphView | None:
        return self._views.get(owner)

    def close(self, owner: str) -> None:
        """Tear down the owner's view and invalidate any in-flight open."""
        self._bump(owner)
        view = self._views.pop(owner, None)
        if view is not None:
            view.close()
            logger.info("Closed graph view for %s", owner)


view_registry = GraphViewRegistry()
