"""
Example Python client for the Mind Map Insights API
"""

import requests
import json


class MindMapInsightsClient:
    """Client for interacting with the Mind Map Insights API."""

    def __init__(self, base_url='http://localhost:5000', timeout=60):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the API server
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _post(self, path, payload):
        response = requests.post(f'{self.base_url}{path}', json=payload, timeout=self.timeout)
        return response.json()

    def health_check(self):
        """Check if the API is healthy."""
        response = requests.get(f'{self.base_url}/health', timeout=self.timeout)
        return response.json()

    def generate_mindmap(self, topic, save=False):
        """
        Generate a mind map from a topic.

        Args:
            topic: Free text describing the problem or idea
            save: Also store the result server-side

        Returns:
            Dictionary with the API response
        """
        return self._post('/api/mindmap/generate', {'topic': topic, 'save': save})

    def get_insights(self, mind_map, use_ai=False):
        """Consistency score, central concepts, clusters and suggestions."""
        return self._post('/api/mindmap/insights', {'mind_map': mind_map, 'use_ai': use_ai})

    def explore_path(self, mind_map, source, target, all_paths=False):
        """Find how two concepts (by node id) connect."""
        return self._post('/api/mindmap/path', {
            'mind_map': mind_map,
            'source': source,
            'target': target,
            'all_paths': all_paths,
        })

    def list_saved(self):
        response = requests.get(f'{self.base_url}/api/maps', timeout=self.timeout)
        return response.json()


def main():
    """Example usage of the client."""
    client = MindMapInsightsClient()

    print("=" * 60)
    print("Mind Map Insights API - Example Client")
    print("=" * 60)

    print("\n1. Health Check:")
    print(json.dumps(client.health_check(), indent=2))

    mind_map = {
        'centralIdea': 'Learn Guitar',
        'branches': [
            {'title': 'Technique', 'subBranches': ['Finger exercises', 'Chord transitions']},
            {'title': 'Theory', 'subBranches': ['Scales', 'Key signatures']},
        ]
    }

    print("\n2. Insights:")
    insights = client.get_insights(mind_map)
    if insights.get('success'):
        data = insights['data']
        print(f"   Score: {data['score']}/100")
        print(f"   Issues: {len(data['issues'])}")
        for concept in data['central_concepts']:
            print(f"   Central: {concept['concept']} ({concept['score']:.2f})")
    else:
        print(f"   Error: {insights.get('error')}")

    print("\n3. Path Explorer:")
    path = client.explore_path(mind_map, 'branch-0-sub-0', 'branch-1-sub-1')
    if path.get('success'):
        labels = [n['label'] for n in path['data']['shortest_path']['nodes']]
        print("   " + " -> ".join(labels))

    print("\n" + "=" * 60)


if __name__ == '__main__':
    main()
