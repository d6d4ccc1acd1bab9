"""Knowledge graph: the pure model plus the interactive per-profile view."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import HTMLResponse

from booklog.models.graph_models import (
    DragRequest,
    GraphModel,
    GraphViewState,
    ModeRequest,
    OpenViewRequest,
    PanRequest,
    StepRequest,
    ZoomRequest,
)
from booklog.services.auth import current_profile
from booklog.services.graph_builder import build_graph
from booklog.services.graph_renderer import INLINE_HEIGHT, INLINE_WIDTH
from booklog.services.graph_view import GraphView, UnknownNodeError, view_registry
from booklog.services.store import BookStore, DataAccessError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/graph", tags=["graph"])


def _require_view(owner: str) -> GraphView:
    view = view_registry.get(owner)
    if view is None:
        raise HTTPException(status_code=404, detail="No open graph view")
    return view


@router.get("/model", response_model=GraphModel)
async def get_graph_model(
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> GraphModel:
    """Nodes and edges for the profile's current books, without layout."""
    try:
        books = await store.get_books_by_owner(owner)
    except DataAccessError:
        logger.exception("Loading books for graph failed (%s)", owner)
        raise HTTPException(status_code=502, detail="Could not load books")
    return build_graph(books)


@router.post("/view", response_model=GraphViewState)
async def open_view(
    body: OpenViewRequest,
    owner: str = Depends(current_profile),
    store: BookStore = Depends(get_store),
) -> GraphViewState:
    """Rebuild the graph from current books and start a fresh simulation."""
    try:
        view = await view_registry.open(
            owner,
            lambda: store.get_books_by_owner(owner),
            width=body.width or INLINE_WIDTH,
            height=body.height or INLINE_HEIGHT,
        )
    except DataAccessError:
        logger.exception("Loading books for graph failed (%s)", owner)
        raise HTTPException(status_code=502, detail="Could not load books")
    if view is None:
        raise HTTPException(status_code=409, detail="Graph view was replaced while loading")
    if body.settle_steps:
        view.advance(body.settle_steps)
    return view.state()


@router.get("/view", response_model=GraphViewState)
async def get_view(owner: str = Depends(current_profile)) -> GraphViewState:
    return _require_view(owner).state()


@router.delete("/view", status_code=204)
async def close_view(owner: str = Depends(current_profile)) -> Response:
    view_registry.close(owner)
    return Response(status_code=204)


@router.post("/view/step", response_model=GraphViewState)
async def step_view(body: StepRequest, owner: str = Depends(current_profile)) -> GraphViewState:
    """Advance the layout; stops early once it has cooled down."""
    view = _require_view(owner)
    view.advance(body.steps)
    return view.state()


@router.post("/view/drag", response_model=GraphViewState)
async def drag_node(body: DragRequest, owner: str = Depends(current_profile)) -> GraphViewState:
    view = _require_view(owner)
    pointer = (body.x, body.y)
    try:
        if body.phase == "start":
            view.drag_start(body.node_id, pointer)
        elif body.phase == "move":
            view.drag_move(body.node_id, pointer)
        else:
            view.drag_end(body.node_id)
    except UnknownNodeError:
        raise HTTPException(status_code=404, detail="Node not found")
    return view.state()


@router.post("/view/zoom", response_model=GraphViewState)
async def zoom_view(body: ZoomRequest, owner: str = Depends(current_profile)) -> GraphViewState:
    view = _require_view(owner)
    view.zoom(body.factor, (body.x, body.y))
    return view.state()


@router.post("/view/pan", response_model=GraphViewState)
async def pan_view(body: PanRequest, owner: str = Depends(current_profile)) -> GraphViewState:
    view = _require_view(owner)
    view.pan(body.dx, body.dy)
    return view.state()


@router.post("/view/mode", response_model=GraphViewState)
async def set_view_mode(body: ModeRequest, owner: str = Depends(current_profile)) -> GraphViewState:
    """Toggle inline/fullscreen; the layout restarts within the new bounds."""
    view = _require_view(owner)
    view.set_mode(body.mode, body.width, body.height)
    return view.state()


@router.get("/view/svg")
async def get_view_svg(owner: str = Depends(current_profile)) -> Response:
    view = _require_view(owner)
    return Response(content=view.svg(), media_type="image/svg+xml")


@router.get("/view/print", response_class=HTMLResponse)
async def print_view(owner: str = Depends(current_profile)) -> HTMLResponse:
    """Standalone page with the current frame that opens the print dialog."""
    view = _require_view(owner)
    return HTMLResponse(content=view.print_document())
