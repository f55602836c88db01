import os
import sys
import json

import pytest

# If Flask isn't installed in the environment running the tests, skip this module.
try:
    import flask  # noqa: F401
except Exception:
    pytest.skip("Flask is not installed; skipping endpoint tests.", allow_module_level=True)

# Load the app module from the project root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import app as app_module
from app import app as flask_app
from embedding_client import EmbeddingError
from mindmap_generator import MindMapGenerationError
from mindmap_storage import MindMapStorage


GUITAR = {
    'centralIdea': 'Learn Guitar',
    'branches': [
        {'title': 'Technique', 'subBranches': ['Finger exercises', 'Chord transitions']},
        {'title': 'Theory', 'subBranches': ['Scales', 'Key signatures']},
    ]
}


class StubGenerator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.topics = []

    def generate(self, topic):
        self.topics.append(topic)
        if self.error:
            raise self.error
        return self.result


class StubEmbeddings:
    def __init__(self, error=None):
        self.error = error

    def embed(self, texts):
        if self.error:
            raise self.error
        return [[float(len(t)), 1.0] for t in texts]


@pytest.fixture()
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(app_module, 'storage', MindMapStorage(str(tmp_path / 'maps.json')))
    monkeypatch.setattr(app_module, 'embedding_client', StubEmbeddings())
    monkeypatch.setattr(app_module, 'mindmap_generator', StubGenerator(result=GUITAR))
    return flask_app.test_client()


def post(client, path, payload):
    return client.post(path, data=json.dumps(payload), content_type='application/json')


def test_health_check(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json().get('status') == 'healthy'


def test_generate(client):
    resp = post(client, '/api/mindmap/generate', {'topic': 'guitar'})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['success'] is True
    assert data['data'] == GUITAR
    assert app_module.mindmap_generator.topics == ['guitar']


def test_generate_and_save(client):
    resp = post(client, '/api/mindmap/generate', {'topic': 'guitar', 'save': True})
    saved = resp.get_json()['saved']
    assert saved['userInput'] == 'guitar'
    assert app_module.storage.get_by_id(saved['id'])['mindMap'] == GUITAR


def test_generate_input_error(client, monkeypatch):
    monkeypatch.setattr(
        app_module, 'mindmap_generator',
        StubGenerator(error=MindMapGenerationError('User input cannot be empty')),
    )
    resp = post(client, '/api/mindmap/generate', {'topic': ''})
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


def test_generate_upstream_error(client, monkeypatch):
    monkeypatch.setattr(
        app_module, 'mindmap_generator',
        StubGenerator(error=MindMapGenerationError('Gemini API request failed: 500', upstream=True)),
    )
    resp = post(client, '/api/mindmap/generate', {'topic': 'guitar'})
    assert resp.status_code == 502


def test_generate_without_body(client):
    resp = client.post('/api/mindmap/generate')
    assert resp.status_code == 400


def test_embeddings(client):
    resp = post(client, '/api/mindmap/embeddings', {'texts': ['ab', 'abc']})
    assert resp.status_code == 200
    assert resp.get_json()['embeddings'] == [[2.0, 1.0], [3.0, 1.0]]


def test_embeddings_failure(client, monkeypatch):
    monkeypatch.setattr(app_module, 'embedding_client', StubEmbeddings(EmbeddingError('quota')))
    resp = post(client, '/api/mindmap/embeddings', {'texts': ['a']})
    assert resp.status_code == 502
    assert resp.get_json()['error'] == 'quota'


def test_graph(client):
    resp = post(client, '/api/mindmap/graph', {'mind_map': GUITAR})
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['metadata'] == {'total_nodes': 7, 'total_edges': 6}
    assert data['degree_centrality']['central'] == 2
    assert data['betweenness_centrality']['central'] == pytest.approx(9.0)
    assert set(data['clusters']) == {n['id'] for n in data['nodes']}


def test_graph_rejects_invalid_mind_map(client):
    resp = post(client, '/api/mindmap/graph', {'mind_map': {'branches': []}})
    assert resp.status_code == 400
    assert 'centralIdea' in resp.get_json()['error']


def test_path(client):
    resp = post(client, '/api/mindmap/path', {
        'mind_map': GUITAR,
        'source': 'branch-0-sub-0',
        'target': 'branch-1-sub-1',
        'all_paths': True,
    })
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['distance'] == 4
    assert data['shortest_path']['strength'] == pytest.approx(0.25)
    assert len(data['shortest_path']['nodes']) == 5
    assert len(data['all_paths']) == 1


def test_path_unknown_node(client):
    resp = post(client, '/api/mindmap/path', {
        'mind_map': GUITAR, 'source': 'central', 'target': 'branch-9',
    })
    assert resp.status_code == 404


@pytest.mark.parametrize('payload', [
    {'source': 'central', 'target': 'branch-1', 'all_paths': True, 'max_depth': 'deep'},
    {'source': ['central'], 'target': 'branch-1'},
    {'source': 'central', 'target': {'id': 'branch-1'}},
])
def test_path_bad_parameters(client, payload):
    resp = post(client, '/api/mindmap/path', dict(payload, mind_map=GUITAR))
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


@pytest.mark.parametrize('path', [
    '/api/mindmap/graph',
    '/api/mindmap/path',
    '/api/mindmap/consistency',
    '/api/mindmap/semantic',
    '/api/mindmap/insights',
    '/api/mindmap/generate',
    '/api/mindmap/embeddings',
    '/api/maps',
])
def test_array_body_is_rejected(client, path):
    resp = post(client, path, [GUITAR])
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


def test_consistency(client):
    resp = post(client, '/api/mindmap/consistency', {'mindMap': GUITAR})
    assert resp.status_code == 200
    report = resp.get_json()['data']
    assert 0 <= report['score'] <= 100
    # "Scales" is a single word
    assert any(i['type'] == 'hierarchy' and i['child'] == 'Scales' for i in report['issues'])


def test_semantic_text_and_ai(client):
    resp = post(client, '/api/mindmap/semantic', {'mind_map': GUITAR})
    assert resp.get_json()['data']['method'] == 'text'

    resp = post(client, '/api/mindmap/semantic', {'mind_map': GUITAR, 'use_ai': True})
    assert resp.get_json()['data']['method'] == 'embedding'


def test_semantic_ai_failure_degrades(client, monkeypatch):
    monkeypatch.setattr(app_module, 'embedding_client', StubEmbeddings(EmbeddingError('down')))
    resp = post(client, '/api/mindmap/semantic', {'mind_map': GUITAR, 'use_ai': True})
    assert resp.status_code == 200
    assert resp.get_json()['data']['method'] == 'text'


def test_semantic_unusable_embeddings_degrade(client, monkeypatch):
    class NoneEmbeddings:
        def embed(self, texts):
            return [None for _ in texts]

    monkeypatch.setattr(app_module, 'embedding_client', NoneEmbeddings())
    resp = post(client, '/api/mindmap/semantic', {'mind_map': GUITAR, 'use_ai': True})
    assert resp.status_code == 200
    assert resp.get_json()['data']['method'] == 'text'


def test_insights(client):
    resp = post(client, '/api/mindmap/insights', {'mind_map': GUITAR})
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert {'score', 'issues', 'statistics', 'central_concepts', 'clusters',
            'suggested_connections', 'method'} <= set(data)
    assert len(data['central_concepts']) == 5
    assert data['statistics']['total_nodes'] == 7


def test_saved_maps_crud(client):
    resp = post(client, '/api/maps', {'mindMap': GUITAR, 'userInput': 'guitar'})
    assert resp.status_code == 201
    map_id = resp.get_json()['data']['id']

    listing = client.get('/api/maps').get_json()
    assert listing['info']['count'] == 1

    assert client.get(f'/api/maps/{map_id}').status_code == 200

    changed = {'centralIdea': 'Learn Piano', 'branches': []}
    resp = client.put(f'/api/maps/{map_id}', data=json.dumps({'mindMap': changed}),
                      content_type='application/json')
    assert resp.get_json()['data']['mindMap'] == changed

    assert client.delete(f'/api/maps/{map_id}').status_code == 200
    assert client.get(f'/api/maps/{map_id}').status_code == 404
    assert client.delete(f'/api/maps/{map_id}').status_code == 404


def test_export_import(client):
    post(client, '/api/maps', {'mindMap': GUITAR, 'userInput': 'guitar'})
    exported = client.get('/api/maps/export').get_data(as_text=True)
    assert len(json.loads(exported)) == 1

    assert client.delete('/api/maps').status_code == 200
    resp = client.post('/api/maps/import', data=exported, content_type='application/json')
    assert resp.get_json()['imported'] == 1

    resp = client.post('/api/maps/import', data='{broken', content_type='application/json')
    assert resp.status_code == 400
