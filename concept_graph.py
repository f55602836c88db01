"""
Concept graph over a generated mind map.

The mind map is materialised as an undirected graph with one node per
concept occurrence:

  central            the central idea (id ``central``)
  branch-{i}         title of branch i
  branch-{i}-sub-{j} sub-branch j of branch i

Edges only join the central node to branches and branches to their
sub-branches, so the result is always a three-level tree.  The algorithms
below are written for general undirected graphs anyway.

Queries on unknown node ids never raise: they return None, an empty list
or ``math.inf``.
"""

from __future__ import annotations

import logging
import math
import random
from collections import Counter, deque
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tuneable constants
# ---------------------------------------------------------------------------
CENTRAL_ID: str = 'central'
DEFAULT_MAX_PATH_DEPTH: int = 10
BETWEENNESS_MAX_DEPTH: int = 8
MAX_CLUSTER_ITERATIONS: int = 100
EDGE_WEIGHT: float = 1.0


def branch_node_id(branch_index: int) -> str:
    return f'branch-{branch_index}'


def sub_branch_node_id(branch_index: int, sub_index: int) -> str:
    return f'branch-{branch_index}-sub-{sub_index}'


class ConceptGraph:
    """
    Addressable node/edge view of a mind map.

    Usage::

        graph = ConceptGraph(mind_map)
        path = graph.find_shortest_path('branch-0-sub-0', 'branch-1-sub-1')

    Parameters
    ----------
    mind_map : dict with ``centralIdea`` and ``branches`` (see mindmap_model)
    rng      : random source used to shuffle the label-propagation visit
               order; pass a seeded ``random.Random`` for repeatable clusters
    """

    def __init__(self, mind_map: Dict[str, Any], rng: Optional[random.Random] = None):
        self.nodes: Dict[str, Dict[str, Any]] = {}
        self.edges: List[Dict[str, Any]] = []
        # node id -> {neighbour id: weight}; dicts keep insertion order
        self.adjacency: Dict[str, Dict[str, float]] = {}
        self.rng = rng or random.Random()
        self._build_graph(mind_map)

    # =========================================================================
    # Construction
    # =========================================================================

    def _build_graph(self, mind_map: Dict[str, Any]) -> None:
        self._add_node({
            'id': CENTRAL_ID,
            'label': mind_map['centralIdea'],
            'type': 'central',
        })

        for branch_index, branch in enumerate(mind_map['branches']):
            branch_id = branch_node_id(branch_index)
            self._add_node({
                'id': branch_id,
                'label': branch['title'],
                'type': 'branch',
                'branch_index': branch_index,
            })
            self._add_edge(CENTRAL_ID, branch_id)

            for sub_index, sub_branch in enumerate(branch['subBranches']):
                sub_id = sub_branch_node_id(branch_index, sub_index)
                self._add_node({
                    'id': sub_id,
                    'label': sub_branch,
                    'type': 'subbranch',
                    'branch_index': branch_index,
                    'sub_branch_index': sub_index,
                })
                self._add_edge(branch_id, sub_id)

        logger.debug(
            "ConceptGraph built: %d nodes, %d edges", len(self.nodes), len(self.edges)
        )

    def _add_node(self, node: Dict[str, Any]) -> None:
        self.nodes[node['id']] = node
        self.adjacency[node['id']] = {}

    def _add_edge(self, source: str, target: str, weight: float = EDGE_WEIGHT) -> None:
        self.edges.append({'source': source, 'target': target, 'weight': weight})
        self.adjacency[source][target] = weight
        self.adjacency[target][source] = weight

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_all_nodes(self) -> List[Dict[str, Any]]:
        return list(self.nodes.values())

    def get_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        return self.nodes.get(node_id)

    def get_neighbors(self, node_id: str) -> List[Dict[str, Any]]:
        return [self.nodes[n] for n in self.adjacency.get(node_id, {})]

    def get_edges(self) -> List[Dict[str, Any]]:
        return list(self.edges)

    def find_node_by_label(self, label: str) -> Optional[Dict[str, Any]]:
        """First node whose label equals *label*; labels may repeat."""
        for node in self.nodes.values():
            if node['label'] == label:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': self.get_all_nodes(),
            'edges': self.get_edges(),
            'metadata': {
                'total_nodes': len(self.nodes),
                'total_edges': len(self.edges),
            },
        }

    # =========================================================================
    # Paths
    # =========================================================================

    def _make_path(self, node_ids: List[str]) -> Dict[str, Any]:
        distance = len(node_ids) - 1
        return {
            'nodes': [self.nodes[nid] for nid in node_ids],
            'distance': distance,
            # a node is maximally connected to itself
            'strength': 1.0 / distance if distance > 0 else 1.0,
        }

    def find_shortest_path(self, start_id: str, end_id: str) -> Optional[Dict[str, Any]]:
        """
        Breadth-first search for the shortest path between two nodes.

        Returns:
            Path dict (nodes, distance, strength) or None if either id is
            unknown or the nodes are disconnected
        """
        if start_id not in self.nodes or end_id not in self.nodes:
            return None
        if start_id == end_id:
            return self._make_path([start_id])

        queue = deque([[start_id]])
        visited = {start_id}
        while queue:
            path = queue.popleft()
            for neighbour in self.adjacency[path[-1]]:
                if neighbour in visited:
                    continue
                if neighbour == end_id:
                    return self._make_path(path + [neighbour])
                visited.add(neighbour)
                queue.append(path + [neighbour])

        return None

    def find_all_paths(
        self,
        start_id: str,
        end_id: str,
        max_depth: int = DEFAULT_MAX_PATH_DEPTH,
    ) -> List[Dict[str, Any]]:
        """
        Enumerate every simple path of at most *max_depth* hops.

        The visited set is local to the current search branch, so a node can
        appear on several returned paths.  Results are ordered by distance.
        """
        if start_id not in self.nodes or end_id not in self.nodes:
            return []

        paths: List[Dict[str, Any]] = []
        visited = set()

        def dfs(current: str, path: List[str], depth: int) -> None:
            if depth > max_depth:
                return
            if current == end_id:
                paths.append(self._make_path(path))
                return
            visited.add(current)
            for neighbour in self.adjacency[current]:
                if neighbour not in visited:
                    path.append(neighbour)
                    dfs(neighbour, path, depth + 1)
                    path.pop()
            visited.discard(current)

        dfs(start_id, [start_id], 0)
        paths.sort(key=lambda p: p['distance'])
        return paths

    def calculate_distance(self, node_a: str, node_b: str) -> float:
        """Shortest-path length, or ``math.inf`` when unreachable or unknown."""
        path = self.find_shortest_path(node_a, node_b)
        return path['distance'] if path else math.inf

    # =========================================================================
    # Centrality
    # =========================================================================

    def calculate_betweenness_centrality(self) -> Dict[str, float]:
        """
        Score nodes by how often they sit inside shortest paths.

        For every unordered pair, each interior node of each shortest path
        gains ``1 / number_of_shortest_paths`` for that pair.
        """
        centrality = {nid: 0.0 for nid in self.nodes}
        node_ids = list(self.nodes)

        for i in range(len(node_ids)):
            for j in range(i + 1, len(node_ids)):
                paths = self.find_all_paths(node_ids[i], node_ids[j], BETWEENNESS_MAX_DEPTH)
                if not paths:
                    continue

                shortest = paths[0]['distance']
                shortest_paths = [p for p in paths if p['distance'] == shortest]
                share = 1.0 / len(shortest_paths)
                for path in shortest_paths:
                    for node in path['nodes'][1:-1]:
                        centrality[node['id']] += share

        return centrality

    def calculate_degree_centrality(self) -> Dict[str, int]:
        return {nid: len(neighbours) for nid, neighbours in self.adjacency.items()}

    def get_central_concepts(self, top_n: int = 5) -> List[Dict[str, Any]]:
        """Rank concepts by betweenness plus degree, highest first."""
        betweenness = self.calculate_betweenness_centrality()
        degree = self.calculate_degree_centrality()
        ranked = [
            {
                'id': nid,
                'concept': self.nodes[nid]['label'],
                'score': score + degree.get(nid, 0),
            }
            for nid, score in betweenness.items()
        ]
        ranked.sort(key=lambda item: item['score'], reverse=True)
        return ranked[:top_n]

    # =========================================================================
    # Communities
    # =========================================================================

    def find_clusters(self) -> Dict[str, int]:
        """
        Label-propagation community detection.

        Every node starts with its own label; in each round nodes are visited
        in shuffled order and adopt the most frequent label among their
        neighbours (ties go to the label seen first).  Stops after a round
        with no change or MAX_CLUSTER_ITERATIONS rounds.
        """
        node_ids = list(self.nodes)
        labels = {nid: idx for idx, nid in enumerate(node_ids)}

        changed = True
        iterations = 0
        while changed and iterations < MAX_CLUSTER_ITERATIONS:
            changed = False
            iterations += 1

            order = list(node_ids)
            self.rng.shuffle(order)
            for nid in order:
                neighbours = self.adjacency[nid]
                if not neighbours:
                    continue
                counts = Counter(labels[n] for n in neighbours)
                best_label = counts.most_common(1)[0][0]
                if labels[nid] != best_label:
                    labels[nid] = best_label
                    changed = True

        logger.debug(
            "Label propagation finished after %d round(s), %d distinct label(s)",
            iterations, len(set(labels.values())),
        )
        return labels
