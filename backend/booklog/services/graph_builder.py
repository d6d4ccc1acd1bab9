"""Build the knowledge graph (root, books, primary authors, keywords) from book records."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from booklog.models.book_models import MAX_KEYWORDS, BookRecord
from booklog.models.graph_models import GraphEdge, GraphModel, GraphNode, NodeKind

ROOT_ID = "Root"
ROOT_LABEL = "지식 창고"

MIN_KEYWORD_LENGTH = 2

_AUTHOR_DELIMITERS = re.compile(r"[,|/]")

# Tokens too generic to be worth a node
DEFAULT_STOP_WORDS = frozenset({
    "책", "독서", "이야기", "내용", "생각", "느낌", "정말", "너무", "그리고", "하지만",
    "그래서", "이것", "저것", "그것", "우리", "나는", "있다", "없다", "한다", "했다",
    "the", "and", "for", "with", "this", "that", "book", "story", "about", "from",
})


def primary_author(author: str | None) -> str:
    """First name listed in a delimited author field, trimmed ('' if none)."""
    if not author:
        return ""
    return _AUTHOR_DELIMITERS.split(author)[0].strip()


def normalize_keyword(keyword: str) -> str:
    return keyword.strip().casefold()


def select_keywords(
    keywords: Iterable[str],
    stop_words: frozenset[str] = DEFAULT_STOP_WORDS,
    limit: int = MAX_KEYWORDS,
) -> list[str]:
    """Filter, dedupe (order-preserving) and cap one book's keywords."""
    kept: list[str] = []
    seen: set[str] = set()
    for raw in keywords:
        token = raw.strip()
        key = normalize_keyword(token)
        if len(token) < MIN_KEYWORD_LENGTH or key in stop_words or key in seen:
            continue
        seen.add(key)
        kept.append(token)
        if len(kept) >= limit:
            break
    return kept


def build_graph(
    books: Sequence[BookRecord],
    stop_words: frozenset[str] = DEFAULT_STOP_WORDS,
    max_keywords: int = MAX_KEYWORDS,
) -> GraphModel:
    """Transform book records into a node/edge graph.

    Exactly one root node is emitted. Every book links to the root, to its
    primary author (if any) and to up to ``max_keywords`` of its stored
    keywords. Author and keyword nodes are shared across books.
    """
    nodes: dict[str, GraphNode] = {
        ROOT_ID: GraphNode(id=ROOT_ID, kind=NodeKind.ROOT, label=ROOT_LABEL),
    }
    edges: list[GraphEdge] = []

    def _add_node(node_id: str, kind: NodeKind, label: str) -> None:
        if node_id not in nodes:
            nodes[node_id] = GraphNode(id=node_id, kind=kind, label=label)

    for book in books:
        _add_node(book.id, NodeKind.BOOK, book.title)
        edges.append(GraphEdge(source=ROOT_ID, target=book.id))

        author = primary_author(book.author)
        if author:
            author_id = f"author-{author}"
            _add_node(author_id, NodeKind.AUTHOR, author)
            edges.append(GraphEdge(source=book.id, target=author_id))

        for keyword in select_keywords(book.keywords, stop_words, max_keywords):
            keyword_id = f"keyword-{normalize_keyword(keyword)}"
            _add_node(keyword_id, NodeKind.KEYWORD, keyword)
            edges.append(GraphEdge(source=book.id, target=keyword_id))

    return GraphModel(nodes=list(nodes.values()), edges=edges)
