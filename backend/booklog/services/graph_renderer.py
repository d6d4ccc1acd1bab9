"""Draw the knowledge graph to an SVG surface and build the printable snapshot."""

from __future__ import annotations

import html as html_mod
from collections.abc import Sequence

from booklog.models.graph_models import GraphEdge, GraphNode, NodeKind, PresentationMode
from booklog.services.layout.transform import ViewTransform

INLINE_WIDTH = 800
INLINE_HEIGHT = 400

PRINT_SETTLE_DELAY_MS = 500

NODE_RADIUS: dict[NodeKind, int] = {
    NodeKind.ROOT: 20,
    NodeKind.BOOK: 15,
    NodeKind.AUTHOR: 10,
    NodeKind.KEYWORD: 8,
}

NODE_COLOR: dict[NodeKind, str] = {
    NodeKind.ROOT: "#6d5dfc",
    NodeKind.BOOK: "#e91e63",
    NodeKind.AUTHOR: "#f39c12",
    NodeKind.KEYWORD: "#00b894",
}

LEGEND: list[tuple[NodeKind, str]] = [
    (NodeKind.ROOT, "전집(Root)"),
    (NodeKind.BOOK, "도서"),
    (NodeKind.AUTHOR, "대표 저자"),
    (NodeKind.KEYWORD, "키워드"),
]


def _html_escape(s: str) -> str:
    return html_mod.escape(s, quote=True)


class GraphRenderer:
    """Holds the latest SVG frame; ``draw`` is called on every simulation tick."""

    def __init__(
        self,
        nodes: Sequence[GraphNode],
        edges: Sequence[GraphEdge],
        width: float = INLINE_WIDTH,
        height: float = INLINE_HEIGHT,
        mode: PresentationMode = PresentationMode.INLINE,
    ):
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.width = width
        self.height = height
        self.mode = mode
        self.markup = ""
        self.frame = 0

    def draw(
        self,
        positions: dict[str, tuple[float, float]],
        transform: ViewTransform,
    ) -> str:
        """Re-draw every edge and node at its current position."""
        lines: list[str] = []
        for edge in self.edges:
            if edge.source not in positions or edge.target not in positions:
                continue
            x1, y1 = positions[edge.source]
            x2, y2 = positions[edge.target]
            lines.append(
                f'<line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}"></line>'
            )

        groups: list[str] = []
        for node in self.nodes:
            if node.id not in positions:
                continue
            x, y = positions[node.id]
            font_size = "10px" if node.kind == NodeKind.KEYWORD else "12px"
            font_weight = "bold" if node.kind == NodeKind.BOOK else "normal"
            groups.append(
                f'<g class="node node-{node.kind.value}" data-id="{_html_escape(node.id)}" '
                f'transform="translate({x:.2f},{y:.2f})" cursor="pointer">'
                f'<circle r="{NODE_RADIUS[node.kind]}" fill="{NODE_COLOR[node.kind]}"></circle>'
                f'<text x="15" y="5" style="font-size:{font_size};fill:#333;'
                f'font-weight:{font_weight};text-shadow:1px 1px 0px white">'
                f"{_html_escape(node.label)}</text></g>"
            )

        if self.mode == PresentationMode.FULLSCREEN:
            size_attrs = f'width="{self.width:g}" height="{self.height:g}"'
        else:
            size_attrs = f'width="100%" height="{self.height:g}"'

        self.markup = (
            f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {self.width:g} {self.height:g}" '
            f'{size_attrs} class="knowledge-graph knowledge-graph-{self.mode.value}">'
            f'<g transform="{transform.to_svg()}">'
            f'<g class="links" stroke="#999" stroke-opacity="0.6">{"".join(lines)}</g>'
            f'<g class="nodes">{"".join(groups)}</g>'
            "</g></svg>"
        )
        self.frame += 1
        return self.markup

    def print_document(self, title: str = "나의 독서 지식 그래프") -> str:
        """Standalone HTML holding the current frame, printing itself once laid out."""
        legend = "".join(
            f'<span><span style="color:{NODE_COLOR[kind]}">&#9679;</span> {_html_escape(label)}</span>'
            for kind, label in LEGEND
        )
        return f"""<!DOCTYPE html>
<html lang="ko">
<head>
<meta charset="utf-8">
<title>{_html_escape(title)}</title>
<style>
  @page {{ size: A4 landscape; margin: 10mm; }}
  html, body {{ margin: 0; padding: 0; background: #fff; }}
  h1 {{ font-size: 16px; text-align: center; margin: 0 0 8px; }}
  .graph svg {{ display: block; width: 100%; height: auto; max-height: 175mm; }}
  .legend {{ display: flex; gap: 15px; justify-content: center; font-size: 11px; margin-top: 8px; }}
</style>
</head>
<body>
<h1>{_html_escape(title)}</h1>
<div class="graph">{self.markup}</div>
<div class="legend">{legend}</div>
<script>
  window.addEventListener("load", function () {{
    setTimeout(function () {{ window.print(); }}, {PRINT_SETTLE_DELAY_MS});
  }});
</script>
</body>
</html>
"""
