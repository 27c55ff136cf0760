from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit
from reaction_game import socketio
from reaction_game.services.rounds.best_store import BestTimeStore, DatabaseStorage, validate_namespace
from reaction_game.services.rounds.history import AttemptHistory
from reaction_game.services.rounds.inputs import PrimaryInputFilter
from reaction_game.services.rounds.machine import RoundMachine
from reaction_game.services.rounds.timers import monotonic_ms
from typing import Any, Dict, Optional


# ---- Per-connection round sessions ----

_sessions: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _client_id(auth) -> Optional[str]:
    client_id = None
    if isinstance(auth, dict):
        client_id = auth.get('client_id')
    if not client_id:
        client_id = request.args.get('client_id')
    return validate_namespace(client_id)


def _create_session(sid: str, namespace: str, client_id) -> Dict[str, Any]:
    app = current_app._get_current_object()
    cfg = app.config

    def _emit(event: str, data: dict) -> None:
        # Also called from timer background tasks, outside any request
        socketio.emit(event, data, to=sid, namespace=namespace)

    machine = RoundMachine(
        scheduler=app.extensions['reaction_scheduler'],
        best_store=BestTimeStore(
            DatabaseStorage(app, client_id),
            key=cfg.get('REACTION_BEST_KEY', 'rg_best_ms_v1'),
            logger=app.logger,
        ),
        history=AttemptHistory(int(cfg.get('REACTION_HISTORY_SIZE', 10))),
        emit=_emit,
        clock=app.extensions.get('reaction_clock', monotonic_ms),
        min_delay_ms=int(cfg.get('REACTION_MIN_DELAY_MS', 1000)),
        max_delay_ms=int(cfg.get('REACTION_MAX_DELAY_MS', 5000)),
        max_valid_ms=float(cfg.get('REACTION_MAX_VALID_MS', 60000)),
        logger=app.logger,
        name=sid,
    )
    ctx = {'machine': machine, 'inputs': PrimaryInputFilter(), 'client_id': client_id}
    _sessions[sid] = ctx
    return ctx


def _require_session():
    ctx = _sessions.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'No active round session'})
    return ctx


def handle_connect(auth=None):
    sid = _get_sid()
    try:
        client_id = _client_id(auth)
    except ValueError as exc:
        current_app.logger.info(f"[connect-refused] sid={sid} error={exc}")
        raise ConnectionRefusedError(str(exc))
    ctx = _create_session(sid, request.namespace, client_id)
    emit('connected', {'message': 'Connected to /ws', 'client_id': ctx['client_id']})
    ctx['machine'].sync()


def handle_disconnect(*args):
    ctx = _sessions.pop(_get_sid(), None)
    if ctx:
        ctx['machine'].shutdown()


def handle_activate(data=None):
    ctx = _require_session()
    if not ctx:
        return
    if data is None:
        data = {}
    if not isinstance(data, dict):
        emit('error', {'message': 'activate payload must be an object'})
        return
    source = data.get('source') or 'pointer'
    if source == 'pointer':
        accepted = ctx['inputs'].pointer()
    elif source == 'key':
        code = data.get('code')
        repeat = data.get('repeat', False)
        if not isinstance(code, str):
            emit('error', {'message': 'code must be a string'})
            return
        if not isinstance(repeat, bool):
            emit('error', {'message': 'repeat must be a boolean'})
            return
        accepted = ctx['inputs'].key_down(code, repeat)
    else:
        emit('error', {'message': f'Unknown input source: {source}'})
        return
    if accepted:
        ctx['machine'].activate()


def handle_visibility(data=None):
    ctx = _require_session()
    if not ctx:
        return
    if not isinstance(data, dict) or not isinstance(data.get('hidden'), bool):
        emit('error', {'message': 'hidden must be a boolean'})
        return
    ctx['machine'].on_visibility_change(data['hidden'])


def handle_reset_session(data=None):
    ctx = _require_session()
    if ctx:
        ctx['machine'].reset_session()


def handle_clear_best(data=None):
    ctx = _require_session()
    if ctx:
        ctx['machine'].clear_best()


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'activate': handle_activate,
    'visibility': handle_visibility,
    'reset_session': handle_reset_session,
    'clear_best': handle_clear_best,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
