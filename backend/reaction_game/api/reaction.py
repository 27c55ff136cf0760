from flask import Blueprint, jsonify, request, current_app
from reaction_game.services.rounds.best_store import BestTimeStore, DatabaseStorage, validate_namespace
from reaction_game.services.rounds.inputs import ACTIVATION_KEY_CODES


reaction = Blueprint('reaction', __name__)


def _best_store(client_id):
    app = current_app._get_current_object()
    return BestTimeStore(
        DatabaseStorage(app, client_id),
        key=app.config.get('REACTION_BEST_KEY', 'rg_best_ms_v1'),
        logger=app.logger,
    )


@reaction.route('/settings', methods=['GET'])
def get_settings():
    """Round timing settings so clients can describe the game."""
    cfg = current_app.config
    return jsonify({
        'min_delay_ms': int(cfg.get('REACTION_MIN_DELAY_MS', 1000)),
        'max_delay_ms': int(cfg.get('REACTION_MAX_DELAY_MS', 5000)),
        'max_valid_ms': int(cfg.get('REACTION_MAX_VALID_MS', 60000)),
        'history_size': int(cfg.get('REACTION_HISTORY_SIZE', 10)),
        'key_codes': sorted(ACTIVATION_KEY_CODES),
    })


@reaction.route('/best', methods=['GET'])
def get_best():
    try:
        client_id = validate_namespace(request.args.get('client_id'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify({'best': _best_store(client_id).read()})


@reaction.route('/best', methods=['DELETE'])
def clear_best():
    try:
        client_id = validate_namespace(request.args.get('client_id'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    store = _best_store(client_id)
    store.clear()
    current_app.logger.info(f"[best-cleared] namespace={client_id or 'default'} via=http")
    return jsonify({'best': store.read()})
