"""
Similarity measures for mind map concepts.

All measures return floats in [0, 1] (cosine can go negative for embedding
vectors pointing apart).  Degenerate inputs such as empty word sets or
zero-magnitude vectors score 0 rather than NaN.

Two interchangeable strategies share the ``similarity(text1, text2)``
interface so analysis code can pick one per run:

  TextSimilarity       word Jaccard averaged with character-bigram Jaccard
  EmbeddingSimilarity  cosine similarity of externally supplied vectors
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Set

import numpy as np


def _word_set(text: str) -> Set[str]:
    return set(text.lower().split())


def _set_jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def jaccard_similarity(text1: str, text2: str) -> float:
    """Word-set Jaccard similarity (case-insensitive, whitespace tokens)."""
    return _set_jaccard(_word_set(text1), _word_set(text2))


def get_ngrams(text: str, n: int = 2) -> List[str]:
    """Character n-grams of *text* in order of appearance."""
    return [text[i: i + n] for i in range(len(text) - n + 1)]


def ngram_similarity(text1: str, text2: str, n: int = 2) -> float:
    """Character n-gram Jaccard similarity (case-insensitive)."""
    return _set_jaccard(
        set(get_ngrams(text1.lower(), n)),
        set(get_ngrams(text2.lower(), n)),
    )


def text_similarity(text1: str, text2: str) -> float:
    """Mean of word Jaccard and character-bigram Jaccard."""
    return (jaccard_similarity(text1, text2) + ngram_similarity(text1, text2, 2)) / 2


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity; 0.0 when either vector has zero magnitude."""
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 0.0
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class TextSimilarity:
    """Lexical similarity; needs no external service."""

    method = 'text'

    def similarity(self, text1: str, text2: str) -> float:
        return text_similarity(text1, text2)


class EmbeddingSimilarity:
    """
    Cosine similarity over precomputed embeddings.

    Parameters
    ----------
    vectors : mapping of concept text -> embedding vector.  Every text that
              will be compared must be present.  Raises ``ValueError`` for
              any vector that is not a non-empty, finite, 1-D numeric array.
    """

    method = 'embedding'

    def __init__(self, vectors: Dict[str, Sequence[float]]):
        self.vectors = {}
        for text, vec in vectors.items():
            try:
                arr = np.asarray(vec, dtype=np.float64)
            except TypeError as e:
                raise ValueError(f'embedding for {text!r} is not numeric: {e}') from e
            if arr.ndim != 1 or arr.size == 0 or not np.all(np.isfinite(arr)):
                raise ValueError(f'embedding for {text!r} must be a non-empty finite 1-D vector')
            self.vectors[text] = arr

    def similarity(self, text1: str, text2: str) -> float:
        return cosine_similarity(self.vectors[text1], self.vectors[text2])
