"""Lexical similarity between notes: related notes, tag and link suggestions.

Everything here is word-based (tag overlap, word frequency, TF-IDF); no
learned embeddings are involved.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass

import networkx as nx
import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from vaultgraph.graph import VaultGraph
from vaultgraph.vault import Document

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"\b[a-z]{4,}\b")
_STOPWORDS = frozenset(
    {"that", "this", "with", "from", "have", "been", "were", "will", "what", "when", "there"}
)
# Rough cap on text per note fed to the vectorizer.
MAX_CHARS = 32000


@dataclass
class LinkSuggestion:
    """Two unlinked notes whose text is similar."""

    note_a: str
    note_b: str
    similarity: float
    graph_distance: int | None  # hops in the undirected link graph; None = disconnected
    bridge_score: float


def related_notes(
    documents: list[Document],
    tags: list[str],
    language: str | None = None,
    limit: int = 5,
    exclude: frozenset[str] = frozenset(),
) -> list[dict]:
    """Rank notes by shared tags (2 points each) and matching ``language``.

    Tags are compared by exact string equality.
    """
    wanted = set(tags)
    scored = []
    for doc in documents:
        if doc.name in exclude:
            continue
        score = 2 * len(wanted.intersection(doc.tags))
        if language and doc.header.get("language") == language:
            score += 1
        if score > 0:
            scored.append({"filename": doc.name, "title": doc.title, "score": score})
    scored.sort(key=lambda r: r["score"], reverse=True)
    return scored[:limit]


def suggest_tags(doc: Document, known_tags: list[str], limit: int = 10) -> list[str]:
    """Suggest tags for *doc*.

    Known vault tags that appear in the body come first, then the most
    frequent words of four or more letters.
    """
    body = doc.body.lower()
    current = set(doc.tags)
    suggestions = [t for t in known_tags if t not in current and t.lower() in body]

    freq = Counter(w for w in _KEYWORD_RE.findall(body) if w not in _STOPWORDS)
    for word, _ in sorted(freq.items(), key=lambda kv: (-kv[1], kv[0]))[:5]:
        if word not in suggestions and word not in current:
            suggestions.append(word)
    return suggestions[:limit]


def _note_text(doc: Document) -> str:
    return f"{doc.title}\n\n{doc.body}"[:MAX_CHARS]


def similarity_matrix(documents: list[Document]) -> np.ndarray:
    """Pairwise TF-IDF cosine similarity of note texts."""
    vectorizer = TfidfVectorizer(lowercase=True)
    tfidf = vectorizer.fit_transform([_note_text(d) for d in documents])
    return cosine_similarity(tfidf)


def suggest_links(
    documents: list[Document],
    graph: VaultGraph,
    top_k: int = 20,
    min_similarity: float = 0.3,
) -> list[LinkSuggestion]:
    """Find note pairs that read alike but are far apart in the link graph.

        bridge_score = similarity * distance_factor

    where distance_factor is 3 for disconnected pairs and ``log2(d + 1)``
    (capped at 3) for pairs *d* hops apart. Directly linked pairs are
    skipped.
    """
    if len(documents) < 2:
        return []
    try:
        sim = similarity_matrix(documents)
    except ValueError as exc:
        # Raised by the vectorizer when no note has any word in it.
        logger.debug("No vocabulary for link suggestions: %s", exc)
        return []

    undirected = graph.undirected()
    lengths = dict(nx.all_pairs_shortest_path_length(undirected))
    names = [d.name for d in documents]

    suggestions: list[LinkSuggestion] = []
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            score = float(sim[i, j])
            if score < min_similarity:
                continue
            dist = lengths.get(names[i], {}).get(names[j])
            if dist is not None and dist <= 1:
                continue
            if dist is None:
                distance_factor = 3.0
            else:
                distance_factor = min(float(np.log2(dist + 1)), 3.0)
            suggestions.append(
                LinkSuggestion(
                    note_a=names[i],
                    note_b=names[j],
                    similarity=score,
                    graph_distance=dist,
                    bridge_score=score * distance_factor,
                )
            )

    suggestions.sort(key=lambda s: s.bridge_score, reverse=True)
    return suggestions[:top_k]
