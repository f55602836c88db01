"""
Mind Map Insights Backend API
This Flask application generates AI mind maps and analyses their concept graph.
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
import logging
import random
from config import Config
from concept_graph import ConceptGraph
from consistency_checker import ConsistencyChecker
from embedding_client import EmbeddingError, GeminiEmbeddingClient
from mindmap_generator import GeminiMindMapGenerator, MindMapGenerationError
from mindmap_model import MindMapValidationError, validate_mindmap
from mindmap_storage import MindMapStorage, StorageError
from semantic_analyzer import SemanticAnalyzer

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = Config.MAX_CONTENT_LENGTH
CORS(app, origins=Config.CORS_ORIGINS)

# Initialize collaborators
mindmap_generator = GeminiMindMapGenerator()
embedding_client = GeminiEmbeddingClient()
storage = MindMapStorage(Config.STORAGE_PATH)


def _error(message, status):
    return jsonify({
        'success': False,
        'error': message
    }), status


def _make_rng():
    """Seeded random source when CLUSTER_SEED is set, otherwise None."""
    if Config.CLUSTER_SEED is None:
        return None
    return random.Random(Config.CLUSTER_SEED)


def _mindmap_from_request(data):
    """Pull and validate the mind map from a request body."""
    if not data:
        raise MindMapValidationError('No JSON data provided')
    if not isinstance(data, dict):
        raise MindMapValidationError('Request body must be a JSON object')
    return validate_mindmap(data.get('mind_map', data.get('mindMap')))


def _build_insights(mind_map, use_ai):
    """Compose consistency, centrality and semantic results for display."""
    report = ConsistencyChecker(mind_map).check()
    graph = ConceptGraph(mind_map, rng=_make_rng())
    analyzer = SemanticAnalyzer(
        mind_map,
        embedding_provider=embedding_client.embed,
        rng=_make_rng(),
    )
    semantic = analyzer.analyze(use_ai=use_ai)

    return {
        'score': report['score'],
        'issues': report['issues'],
        'statistics': report['statistics'],
        'central_concepts': graph.get_central_concepts(5),
        'clusters': semantic['clusters'][:5],
        'suggested_connections': semantic['suggested_connections'][:10],
        'method': semantic['method'],
    }


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'service': 'Mind Map Insights API'
    }), 200


@app.route('/api/mindmap/generate', methods=['POST'])
def generate_mindmap():
    """
    Generate a mind map from a free-text topic.

    Request Body:
    {
        "topic": "How do I learn guitar as an adult?",
        "save": false
    }

    Response:
    {
        "success": true,
        "data": {"centralIdea": "...", "branches": [...]},
        "saved": {...}            # only when "save" is true
    }
    """
    try:
        data = request.get_json(silent=True)

        if not data or not isinstance(data, dict):
            return _error('No JSON data provided', 400)

        topic = data.get('topic') or data.get('userInput') or data.get('text')
        logger.info("Received mind map generation request")
        mind_map = mindmap_generator.generate(topic)

        response_payload = {
            'success': True,
            'data': mind_map
        }
        if data.get('save'):
            response_payload['saved'] = storage.save(mind_map, topic)

        return jsonify(response_payload), 200

    except MindMapGenerationError as e:
        logger.error(f"Error generating mind map: {str(e)}")
        return _error(str(e), 502 if e.upstream else 400)
    except StorageError as e:
        return _error(str(e), 500)
    except Exception as e:
        logger.error(f"Unexpected error generating mind map: {str(e)}")
        return _error(str(e), 500)


@app.route('/api/mindmap/embeddings', methods=['POST'])
def generate_embeddings():
    """
    Embed a list of texts.

    Request Body:
    {
        "texts": ["text1", "text2", ...]
    }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'texts' not in data:
        return _error('Invalid request: texts array is required', 400)

    try:
        embeddings = embedding_client.embed(data['texts'])
    except EmbeddingError as e:
        logger.error(f"Error generating embeddings: {str(e)}")
        return _error(str(e), 502)

    return jsonify({
        'success': True,
        'embeddings': embeddings
    }), 200


@app.route('/api/mindmap/graph', methods=['POST'])
def analyse_graph():
    """Concept graph with degree/betweenness centrality and clusters."""
    try:
        mind_map = _mindmap_from_request(request.get_json(silent=True))
    except MindMapValidationError as e:
        return _error(str(e), 400)

    graph = ConceptGraph(mind_map, rng=_make_rng())
    payload = graph.to_dict()
    payload['degree_centrality'] = graph.calculate_degree_centrality()
    payload['betweenness_centrality'] = graph.calculate_betweenness_centrality()
    payload['clusters'] = graph.find_clusters()

    return jsonify({
        'success': True,
        'data': payload
    }), 200


@app.route('/api/mindmap/path', methods=['POST'])
def explore_path():
    """
    Find how two concepts connect.

    Request Body:
    {
        "mind_map": {...},
        "source": "branch-0-sub-0",
        "target": "branch-1-sub-1",
        "all_paths": false,
        "max_depth": 8
    }
    """
    data = request.get_json(silent=True)
    try:
        mind_map = _mindmap_from_request(data)
    except MindMapValidationError as e:
        return _error(str(e), 400)

    source = data.get('source')
    target = data.get('target')
    graph = ConceptGraph(mind_map)
    try:
        if graph.get_node(source) is None or graph.get_node(target) is None:
            return _error('Unknown source or target node', 404)
        max_depth = int(data.get('max_depth', Config.MAX_PATH_DEPTH))
    except (TypeError, ValueError):
        return _error('source and target must be node ids and max_depth an integer', 400)

    shortest = graph.find_shortest_path(source, target)
    result = {
        'distance': shortest['distance'] if shortest else None,
        'shortest_path': shortest,
    }
    if data.get('all_paths'):
        result['all_paths'] = graph.find_all_paths(source, target, max_depth)

    return jsonify({
        'success': True,
        'data': result
    }), 200


@app.route('/api/mindmap/consistency', methods=['POST'])
def check_consistency():
    """Consistency report (score, issues, statistics)."""
    try:
        mind_map = _mindmap_from_request(request.get_json(silent=True))
    except MindMapValidationError as e:
        return _error(str(e), 400)

    return jsonify({
        'success': True,
        'data': ConsistencyChecker(mind_map).check()
    }), 200


@app.route('/api/mindmap/semantic', methods=['POST'])
def analyse_semantics():
    """Semantic similarities, clusters and suggested connections."""
    data = request.get_json(silent=True)
    try:
        mind_map = _mindmap_from_request(data)
    except MindMapValidationError as e:
        return _error(str(e), 400)

    analyzer = SemanticAnalyzer(
        mind_map,
        embedding_provider=embedding_client.embed,
        rng=_make_rng(),
    )
    try:
        result = analyzer.analyze(use_ai=bool(data.get('use_ai', False)))
    except Exception as e:
        logger.error(f"Semantic analysis error: {str(e)}")
        return _error(str(e), 500)

    return jsonify({
        'success': True,
        'data': result
    }), 200



@app.route('/api/mindmap/insights', methods=['POST'])
def mindmap_insights():
    """Combined quality report for the insights panel."""
    data = request.get_json(silent=True)
    try:
        mind_map = _mindmap_from_request(data)
    except MindMapValidationError as e:
        return _error(str(e), 400)

    try:
        insights = _build_insights(mind_map, bool(data.get('use_ai', False)))
    except Exception as e:
        logger.error(f"Analysis error: {str(e)}")
        return _error(str(e), 500)

    return jsonify({
        'success': True,
        'data': insights
    }), 200


# =============================================================================
# Saved mind maps
# =============================================================================

@app.route('/api/maps', methods=['GET'])
def list_maps():
    return jsonify({
        'success': True,
        'data': storage.get_all(),
        'info': storage.get_storage_info()
    }), 200


@app.route('/api/maps', methods=['POST'])
def save_map():
    data = request.get_json(silent=True)
    try:
        mind_map = _mindmap_from_request(data)
        record = storage.save(mind_map, data.get('userInput', ''))
    except MindMapValidationError as e:
        return _error(str(e), 400)
    except StorageError as e:
        return _error(str(e), 500)

    return jsonify({
        'success': True,
        'data': record
    }), 201


@app.route('/api/maps', methods=['DELETE'])
def delete_all_maps():
    try:
        storage.delete_all()
    except StorageError as e:
        return _error(str(e), 500)
    return jsonify({'success': True}), 200


@app.route('/api/maps/export', methods=['GET'])
def export_maps():
    return app.response_class(
        storage.export_json(),
        mimetype='application/json',
        headers={'Content-Disposition': 'attachment; filename=mindmaps.json'}
    )


@app.route('/api/maps/import', methods=['POST'])
def import_maps():
    try:
        added = storage.import_json(request.get_data(as_text=True))
    except StorageError as e:
        return _error(str(e), 400)

    return jsonify({
        'success': True,
        'imported': added
    }), 200


@app.route('/api/maps/<map_id>', methods=['GET'])
def get_map(map_id):
    record = storage.get_by_id(map_id)
    if record is None:
        return _error(f'Mind map {map_id} not found', 404)
    return jsonify({
        'success': True,
        'data': record
    }), 200


@app.route('/api/maps/<map_id>', methods=['PUT'])
def update_map(map_id):
    data = request.get_json(silent=True)
    try:
        mind_map = _mindmap_from_request(data)
        record = storage.update(map_id, mind_map, data.get('userInput', ''))
    except MindMapValidationError as e:
        return _error(str(e), 400)
    except StorageError as e:
        return _error(str(e), 500)

    if record is None:
        return _error(f'Mind map {map_id} not found', 404)
    return jsonify({
        'success': True,
        'data': record
    }), 200


@app.route('/api/maps/<map_id>', methods=['DELETE'])
def delete_map(map_id):
    try:
        deleted = storage.delete(map_id)
    except StorageError as e:
        return _error(str(e), 500)

    if not deleted:
        return _error(f'Mind map {map_id} not found', 404)
    return jsonify({'success': True}), 200


if __name__ == '__main__':
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG)
