"""
Consistency checker for generated mind maps.

Runs four heuristic passes over the concept text and the branch structure:

  1. Contradictions
     – Concept pairs that each contain one side of a known antonym pair,
       or where one concept is the other with a "not " prefix.

  2. Redundancies
     – Concept pairs whose word sets overlap heavily (Jaccard > 0.7).

  3. Hierarchy
     – Sub-branches that repeat their parent title, or are a single word.

  4. Completeness
     – Branches that are much thinner or much broader than the rest.

Each issue costs points off a perfect 100; a well balanced map earns a
small bonus.  Matching is substring based and will over-trigger on
incidental substrings ("address" contains "add").
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Tuple

from concept_graph import ConceptGraph
from mindmap_model import get_all_concepts
from text_similarity import jaccard_similarity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tuneable constants
# ---------------------------------------------------------------------------
CONTRADICTORY_TERMS: List[Tuple[str, str]] = [
    ('increase', 'decrease'),
    ('save', 'spend'),
    ('expand', 'reduce'),
    ('grow', 'shrink'),
    ('more', 'less'),
    ('add', 'remove'),
    ('start', 'stop'),
    ('open', 'close'),
    ('gain', 'lose'),
    ('fast', 'slow'),
    ('big', 'small'),
    ('always', 'never'),
    ('success', 'failure'),
]
NEGATION_MARKER: str = 'not '

REDUNDANCY_THRESHOLD: float = 0.7
HIGH_REDUNDANCY_THRESHOLD: float = 0.9

THIN_BRANCH_MAX_SIZE: int = 3
BROAD_BRANCH_MIN_SIZE: int = 8

SEVERITY_PENALTIES: Dict[str, int] = {'high': 10, 'medium': 5, 'low': 2}
BALANCE_BONUS_THRESHOLD: float = 0.8
BALANCE_BONUS: int = 5


def _branch_size_stats(sizes: List[int]) -> Tuple[float, float]:
    """Population mean and standard deviation; (0, 0) for no branches."""
    if not sizes:
        return 0.0, 0.0
    mean = sum(sizes) / len(sizes)
    variance = sum((s - mean) ** 2 for s in sizes) / len(sizes)
    return mean, math.sqrt(variance)


class ConsistencyChecker:
    """
    Heuristic quality scoring of a mind map's logical structure.

    Usage::

        report = ConsistencyChecker(mind_map).check()
        report['score']   # 0..100
    """

    def __init__(self, mind_map: Dict[str, Any]):
        self.mind_map = mind_map
        self.graph = ConceptGraph(mind_map)

    def check(self) -> Dict[str, Any]:
        """Run every pass and score the result."""
        issues: List[Dict[str, Any]] = []
        issues.extend(self.detect_contradictions())
        issues.extend(self.find_redundancies())
        issues.extend(self.validate_hierarchy())
        issues.extend(self.check_completeness())

        statistics = self.calculate_statistics()
        score = self.calculate_score(issues, statistics)

        logger.info(
            "Consistency check: score=%d, %d issue(s) over %d concept(s)",
            score, len(issues), statistics['total_nodes'],
        )
        return {
            'score': score,
            'issues': issues,
            'statistics': statistics,
        }

    # =========================================================================
    # 1. Contradictions
    # =========================================================================

    def detect_contradictions(self) -> List[Dict[str, Any]]:
        contradictions: List[Dict[str, Any]] = []
        concepts = get_all_concepts(self.mind_map)

        for i in range(len(concepts)):
            for j in range(i + 1, len(concepts)):
                first = concepts[i].lower()
                second = concepts[j].lower()

                for word1, word2 in CONTRADICTORY_TERMS:
                    if (word1 in first and word2 in second) or (word2 in first and word1 in second):
                        contradictions.append({
                            'type': 'contradiction',
                            'severity': 'medium',
                            'concept1': concepts[i],
                            'concept2': concepts[j],
                            'reason': f'Concepts contain contradictory terms: "{word1}" vs "{word2}"',
                            'suggestion': (
                                f'Review if both "{concepts[i]}" and "{concepts[j]}" are needed, '
                                'or clarify their relationship'
                            ),
                        })

                if self._is_negation(first, second):
                    contradictions.append({
                        'type': 'contradiction',
                        'severity': 'high',
                        'concept1': concepts[i],
                        'concept2': concepts[j],
                        'reason': 'Direct negation of another concept',
                        'suggestion': 'Choose one direction or clarify when each applies',
                    })

        if contradictions:
            logger.debug("Found %d contradiction(s)", len(contradictions))
        return contradictions

    @staticmethod
    def _is_negation(first: str, second: str) -> bool:
        """True when one text is the other with a "not " marker added."""
        if NEGATION_MARKER not in first and NEGATION_MARKER not in second:
            return False
        return first.replace(NEGATION_MARKER, '', 1) == second.replace(NEGATION_MARKER, '', 1)

    # =========================================================================
    # 2. Redundancies
    # =========================================================================

    def find_redundancies(self) -> List[Dict[str, Any]]:
        redundancies: List[Dict[str, Any]] = []
        concepts = get_all_concepts(self.mind_map)

        for i in range(len(concepts)):
            for j in range(i + 1, len(concepts)):
                similarity = jaccard_similarity(concepts[i], concepts[j])
                if similarity <= REDUNDANCY_THRESHOLD:
                    continue

                nearly_identical = similarity > HIGH_REDUNDANCY_THRESHOLD
                redundancies.append({
                    'type': 'redundancy',
                    'severity': 'high' if nearly_identical else 'medium',
                    'concepts': [concepts[i], concepts[j]],
                    'similarity': similarity,
                    'suggestion': (
                        'These concepts are nearly identical - consider merging them'
                        if nearly_identical else
                        'These concepts are very similar - clarify their differences or combine them'
                    ),
                })

        return redundancies

    # =========================================================================
    # 3. Hierarchy
    # =========================================================================

    def validate_hierarchy(self) -> List[Dict[str, Any]]:
        issues: List[Dict[str, Any]] = []

        for branch in self.mind_map['branches']:
            title = branch['title']
            for sub_branch in branch['subBranches']:
                if title.lower() in sub_branch.lower():
                    issues.append({
                        'type': 'hierarchy',
                        'severity': 'low',
                        'parent': title,
                        'child': sub_branch,
                        'reason': 'Sub-branch might be redundant with parent branch',
                        'suggestion': 'Make sub-branch more specific or merge with parent',
                    })

                if len(sub_branch.split()) < 2:
                    issues.append({
                        'type': 'hierarchy',
                        'severity': 'low',
                        'parent': title,
                        'child': sub_branch,
                        'reason': 'Sub-branch is very brief',
                        'suggestion': 'Consider adding more detail or context',
                    })

        return issues

    # =========================================================================
    # 4. Completeness
    # =========================================================================

    def check_completeness(self) -> List[Dict[str, Any]]:
        gaps: List[Dict[str, Any]] = []
        sizes = [len(b['subBranches']) for b in self.mind_map['branches']]
        mean, std_dev = _branch_size_stats(sizes)

        for branch, size in zip(self.mind_map['branches'], sizes):
            title = branch['title']

            if size < mean - std_dev and size < THIN_BRANCH_MAX_SIZE:
                gaps.append({
                    'type': 'gap',
                    'severity': 'medium',
                    'branch': title,
                    'reason': f'Branch has fewer sub-topics ({size}) than average ({round(mean)})',
                    'suggestions': [
                        f'Add more specific aspects of "{title}"',
                        'Consider breaking down the concept further',
                        'Add practical examples or applications',
                    ],
                })

            if size == 0:
                gaps.append({
                    'type': 'gap',
                    'severity': 'high',
                    'branch': title,
                    'reason': 'Branch has no sub-topics',
                    'suggestions': [
                        'Add at least 2-3 sub-topics to develop this branch',
                        'Consider if this branch should be a sub-topic of another branch',
                    ],
                })

            if size > mean + 2 * std_dev and size > BROAD_BRANCH_MIN_SIZE:
                gaps.append({
                    'type': 'gap',
                    'severity': 'low',
                    'branch': title,
                    'reason': f'Branch has many sub-topics ({size}) - might benefit from grouping',
                    'suggestions': [
                        'Consider creating sub-categories within this branch',
                        'Group related sub-topics together',
                        'Some sub-topics might deserve their own branches',
                    ],
                })

        return gaps

    # =========================================================================
    # Scoring
    # =========================================================================

    def calculate_statistics(self) -> Dict[str, Any]:
        sizes = [len(b['subBranches']) for b in self.mind_map['branches']]
        mean, std_dev = _branch_size_stats(sizes)

        if mean == 0:
            balance_score = 0.0
        else:
            balance_score = max(0.0, 1 - (std_dev ** 2) / (mean * mean))

        return {
            'total_nodes': len(self.graph.get_all_nodes()),
            'branch_count': len(sizes),
            'avg_branch_depth': mean,
            'balance_score': balance_score,
        }

    def calculate_score(self, issues: List[Dict[str, Any]], statistics: Dict[str, Any]) -> int:
        score = 100
        for issue in issues:
            score -= SEVERITY_PENALTIES.get(issue['severity'], 0)

        if statistics['balance_score'] > BALANCE_BONUS_THRESHOLD:
            score += BALANCE_BONUS

        return max(0, min(100, score))
