"""
Semantic analysis of mind map concepts.

Finds relationships the tree structure does not show:

  * moderately similar concept pairs (similar enough to be related, not so
    similar that they are redundant)
  * thematic clusters from label propagation over the concept graph
  * cross-branch connections worth drawing
  * a concept -> related concepts lookup

Similarity is lexical by default.  With ``use_ai`` and an embedding provider
the analyzer embeds every concept once per call and switches to cosine
similarity; any provider failure falls back to the lexical measure.
"""

from __future__ import annotations

import logging
import random
from collections import Counter, defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

from concept_graph import CENTRAL_ID, ConceptGraph
from text_similarity import EmbeddingSimilarity, TextSimilarity, text_similarity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tuneable constants
# ---------------------------------------------------------------------------
MIN_RELATED_SIMILARITY: float = 0.3   # at or below: unrelated
MAX_RELATED_SIMILARITY: float = 0.8   # at or above: redundant, not related
MAX_SUGGESTION_CANDIDATES: int = 10
MIN_CLUSTER_SIZE: int = 2
MIN_THEME_WORD_LENGTH: int = 4

THEME_STOP_WORDS = {'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for'}

EmbeddingProvider = Callable[[Sequence[str]], Sequence[Sequence[float]]]


class SemanticAnalyzer:
    """
    Discover non-hierarchical relationships between concepts.

    Parameters
    ----------
    mind_map           : validated mind map dict
    embedding_provider : optional callable ``texts -> vectors`` (for example
                         ``GeminiEmbeddingClient().embed``)
    rng                : random source handed to the concept graph's
                         clustering
    """

    def __init__(
        self,
        mind_map: Dict[str, Any],
        embedding_provider: Optional[EmbeddingProvider] = None,
        rng: Optional[random.Random] = None,
    ):
        self.mind_map = mind_map
        self.embedding_provider = embedding_provider
        self.graph = ConceptGraph(mind_map, rng=rng)
        self.strategy = TextSimilarity()

    def analyze(self, use_ai: bool = False) -> Dict[str, Any]:
        """Run the full analysis and return a JSON-ready result."""
        self.strategy = self._select_strategy(use_ai)

        similarities = self.find_similar_concepts()
        clusters = self.identify_clusters()
        suggestions = self.suggest_new_connections(similarities)
        related = self.build_related_concepts_map(similarities)

        logger.info(
            "Semantic analysis (%s): %d similar pair(s), %d cluster(s), %d suggestion(s)",
            self.strategy.method, len(similarities), len(clusters), len(suggestions),
        )
        return {
            'similarities': similarities,
            'clusters': clusters,
            'suggested_connections': suggestions,
            'related_concepts': related,
            'method': self.strategy.method,
        }

    def _select_strategy(self, use_ai: bool):
        if not use_ai:
            return TextSimilarity()
        if self.embedding_provider is None:
            logger.warning("AI similarity requested but no embedding provider configured")
            return TextSimilarity()

        texts = list(dict.fromkeys(node['label'] for node in self.graph.get_all_nodes()))
        try:
            vectors = list(self.embedding_provider(texts))
            if len(vectors) != len(texts):
                raise ValueError(f'expected {len(texts)} vectors, got {len(vectors)}')
            strategy = EmbeddingSimilarity(dict(zip(texts, vectors)))
        except Exception as e:
            logger.warning("Failed to generate embeddings, falling back to text similarity: %s", e)
            return TextSimilarity()

        return strategy

    # =========================================================================
    # Similar concepts
    # =========================================================================

    def find_similar_concepts(self) -> List[Dict[str, Any]]:
        nodes = self.graph.get_all_nodes()
        similarities: List[Dict[str, Any]] = []

        for i in range(len(nodes)):
            for j in range(i + 1, len(nodes)):
                first, second = nodes[i], nodes[j]
                score = self.strategy.similarity(first['label'], second['label'])
                if MIN_RELATED_SIMILARITY < score < MAX_RELATED_SIMILARITY:
                    similarities.append({
                        'concept1': first['label'],
                        'concept2': second['label'],
                        'source_id': first['id'],
                        'target_id': second['id'],
                        'similarity': score,
                        'method': self.strategy.method,
                    })

        similarities.sort(key=lambda s: s['similarity'], reverse=True)
        return similarities

    # =========================================================================
    # Clusters
    # =========================================================================

    def identify_clusters(self) -> List[Dict[str, Any]]:
        labels = self.graph.find_clusters()
        members: Dict[int, List[str]] = defaultdict(list)
        for node_id, label in labels.items():
            if node_id != CENTRAL_ID:
                members[label].append(node_id)

        clusters: List[Dict[str, Any]] = []
        for label, node_ids in members.items():
            if len(node_ids) < MIN_CLUSTER_SIZE:
                continue
            concepts = [self.graph.get_node(nid)['label'] for nid in node_ids]
            clusters.append({
                'id': label,
                'concepts': concepts,
                'node_ids': node_ids,
                'theme': self._identify_theme(concepts),
                'coherence': self._cluster_coherence(concepts),
            })

        clusters.sort(key=lambda c: c['coherence'], reverse=True)
        return clusters

    @staticmethod
    def _identify_theme(concepts: List[str]) -> str:
        """Most frequent meaningful word, capitalised; else the first concept."""
        freq: Counter = Counter()
        for concept in concepts:
            for word in concept.lower().split():
                if word not in THEME_STOP_WORDS and len(word) >= MIN_THEME_WORD_LENGTH:
                    freq[word] += 1

        if not freq:
            return concepts[0]
        word = freq.most_common(1)[0][0]
        return word[0].upper() + word[1:]

    @staticmethod
    def _cluster_coherence(concepts: List[str]) -> float:
        """Mean pairwise lexical similarity inside a cluster."""
        total = 0.0
        count = 0
        for i in range(len(concepts)):
            for j in range(i + 1, len(concepts)):
                total += text_similarity(concepts[i], concepts[j])
                count += 1
        return total / count if count else 0.0

    # =========================================================================
    # Suggestions
    # =========================================================================

    def suggest_new_connections(self, similarities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Cross-branch links among the strongest similar pairs."""
        suggestions: List[Dict[str, Any]] = []

        for sim in similarities[:MAX_SUGGESTION_CANDIDATES]:
            source = self.graph.get_node(sim['source_id'])
            target = self.graph.get_node(sim['target_id'])
            if source is None or target is None:
                continue
            if source.get('branch_index') == target.get('branch_index'):
                continue

            suggestions.append({
                'from': sim['concept1'],
                'to': sim['concept2'],
                'source_id': source['id'],
                'target_id': target['id'],
                'reason': (
                    f"These concepts are semantically related "
                    f"({round(sim['similarity'] * 100)}% similar) but in different branches"
                ),
                'confidence': sim['similarity'],
            })

        suggestions.sort(key=lambda s: s['confidence'], reverse=True)
        return suggestions

    @staticmethod
    def build_related_concepts_map(similarities: List[Dict[str, Any]]) -> Dict[str, List[str]]:
        related: Dict[str, List[str]] = {}
        for sim in similarities:
            related.setdefault(sim['concept1'], []).append(sim['concept2'])
            related.setdefault(sim['concept2'], []).append(sim['concept1'])
        return related
