import json
import os
import sys

import pytest
import requests

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import mindmap_generator as generator_module
from mindmap_generator import GeminiMindMapGenerator, MindMapGenerationError
from mindmap_model import MindMapValidationError, get_all_concepts, validate_mindmap


GUITAR = {
    'centralIdea': 'Learn Guitar',
    'branches': [
        {'title': 'Technique', 'subBranches': ['Finger exercises', 'Chord transitions']},
        {'title': 'Theory', 'subBranches': ['Scales', 'Key signatures']},
    ]
}


class MockResp:
    def __init__(self, status_code=200, payload=None, text='', reason='OK'):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON body')
        return self._payload


def gemini_payload(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


@pytest.fixture()
def generator():
    return GeminiMindMapGenerator(api_key='test-key', model='gemini-test', api_base='http://gemini.test')


def test_generate_success(generator, monkeypatch):
    captured = {}

    def fake_post(url, **kwargs):
        captured['url'] = url
        captured.update(kwargs)
        return MockResp(payload=gemini_payload(json.dumps(GUITAR)))

    monkeypatch.setattr(generator_module.requests, 'post', fake_post)

    mind_map = generator.generate('How do I learn guitar?')
    assert mind_map == GUITAR
    assert captured['url'] == 'http://gemini.test/models/gemini-test:generateContent'
    assert captured['params'] == {'key': 'test-key'}
    assert captured['json']['generationConfig']['responseMimeType'] == 'application/json'
    assert 'How do I learn guitar?' in captured['json']['contents'][0]['parts'][0]['text']


@pytest.mark.parametrize('topic', ['', '   ', None])
def test_empty_topic_rejected(generator, topic):
    with pytest.raises(MindMapGenerationError) as exc:
        generator.generate(topic)
    assert exc.value.upstream is False


def test_missing_api_key():
    with pytest.raises(MindMapGenerationError, match='API key is required'):
        GeminiMindMapGenerator(api_key='').generate('topic')


@pytest.mark.parametrize('response', [
    MockResp(status_code=500, text='boom', reason='Internal Server Error'),
    MockResp(payload={'candidates': []}),
    MockResp(payload=gemini_payload('not json at all')),
    MockResp(payload=gemini_payload(json.dumps({'branches': []}))),
    MockResp(payload=gemini_payload(json.dumps({'centralIdea': 'X', 'branches': 'nope'}))),
])
def test_upstream_failures(generator, monkeypatch, response):
    monkeypatch.setattr(generator_module.requests, 'post', lambda *a, **k: response)
    with pytest.raises(MindMapGenerationError) as exc:
        generator.generate('topic')
    assert exc.value.upstream is True


def test_transport_error(generator, monkeypatch):
    def fail(*a, **k):
        raise requests.ConnectionError('unreachable')

    monkeypatch.setattr(generator_module.requests, 'post', fail)
    with pytest.raises(MindMapGenerationError, match='request failed'):
        generator.generate('topic')


def test_validate_mindmap_normalises():
    raw = {'centralIdea': 'Idea', 'branches': [{'title': 'A'}], 'extra': 1}
    assert validate_mindmap(raw) == {
        'centralIdea': 'Idea',
        'branches': [{'title': 'A', 'subBranches': []}],
    }


@pytest.mark.parametrize('raw', [
    None,
    [],
    {'branches': []},
    {'centralIdea': '', 'branches': []},
    {'centralIdea': 'Idea'},
    {'centralIdea': 'Idea', 'branches': ['title only']},
    {'centralIdea': 'Idea', 'branches': [{'subBranches': []}]},
    {'centralIdea': 'Idea', 'branches': [{'title': 'A', 'subBranches': [1, 2]}]},
])
def test_validate_mindmap_rejects(raw):
    with pytest.raises(MindMapValidationError):
        validate_mindmap(raw)


def test_get_all_concepts_order():
    assert get_all_concepts(GUITAR) == [
        'Learn Guitar', 'Technique', 'Finger exercises', 'Chord transitions',
        'Theory', 'Scales', 'Key signatures',
    ]
