"""
Mind map payload helpers.

A mind map travels through the service as the plain JSON object returned by
the generation model::

    {
        "centralIdea": "Learn Guitar",
        "branches": [
            {"title": "Technique", "subBranches": ["Finger exercises", "Chord transitions"]}
        ]
    }

Analysis code treats these dicts as read-only.
"""

from typing import Any, Dict, List


class MindMapValidationError(ValueError):
    """Raised when a payload does not have the mind map shape."""


def validate_mindmap(data: Any) -> Dict[str, Any]:
    """
    Check a decoded JSON payload and return a normalised copy.

    Args:
        data: Decoded JSON value

    Returns:
        New mind map dict with only ``centralIdea`` and ``branches``

    Raises:
        MindMapValidationError: if a required field is missing or mistyped
    """
    if not isinstance(data, dict):
        raise MindMapValidationError('Mind map must be a JSON object')

    central_idea = data.get('centralIdea')
    if not isinstance(central_idea, str) or not central_idea.strip():
        raise MindMapValidationError('Mind map is missing "centralIdea"')

    branches = data.get('branches')
    if not isinstance(branches, list):
        raise MindMapValidationError('Mind map "branches" must be an array')

    normalised: List[Dict[str, Any]] = []
    for idx, branch in enumerate(branches):
        if not isinstance(branch, dict):
            raise MindMapValidationError(f'Branch {idx} must be an object')
        title = branch.get('title')
        if not isinstance(title, str):
            raise MindMapValidationError(f'Branch {idx} is missing "title"')
        sub_branches = branch.get('subBranches', [])
        if not isinstance(sub_branches, list) or not all(isinstance(s, str) for s in sub_branches):
            raise MindMapValidationError(f'Branch {idx} "subBranches" must be an array of strings')
        normalised.append({'title': title, 'subBranches': list(sub_branches)})

    return {'centralIdea': central_idea, 'branches': normalised}


def get_all_concepts(mind_map: Dict[str, Any]) -> List[str]:
    """Central idea, then each branch title followed by its sub-branches."""
    concepts = [mind_map['centralIdea']]
    for branch in mind_map['branches']:
        concepts.append(branch['title'])
        concepts.extend(branch['subBranches'])
    return concepts
