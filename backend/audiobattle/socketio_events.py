from flask import current_app, request
from flask_socketio import ConnectionRefusedError

from audiobattle import socketio
from audiobattle.errors import DuplicatePlayerError
from audiobattle.events import Inbound


def _arena():
    return current_app.extensions['arena']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def make_emitter(namespace: str):
    """Emitter used by the arena; addresses a single connection by sid."""
    def _emit(event, payload, to):
        # socketio.emit works from background tasks as well as handlers
        socketio.emit(event.value, payload, to=to, namespace=namespace)
    return _emit


def handle_connect(auth=None):
    try:
        _arena().connect(_get_sid())
    except DuplicatePlayerError as exc:
        current_app.logger.error(f"[connect-refused] {exc}")
        raise ConnectionRefusedError(str(exc))


def handle_disconnect(reason=None):
    _arena().disconnect(_get_sid())


def handle_join_queue(data=None):
    _arena().join_queue(_get_sid())


def handle_leave_queue(data=None):
    _arena().leave_queue(_get_sid())


def handle_mark_ready(data=None):
    _arena().mark_ready(_get_sid())


def handle_intensity_sample(data=None):
    _arena().intensity_sample(_get_sid(), data)


def handle_heartbeat(data=None):
    _arena().heartbeat(_get_sid(), data)


def handle_get_stats(data=None):
    return _arena().get_stats(_get_sid())


def handle_chat_message(data=None):
    _arena().chat_message(_get_sid(), data)


INBOUND_HANDLERS = {
    Inbound.JOIN_QUEUE: handle_join_queue,
    Inbound.LEAVE_QUEUE: handle_leave_queue,
    Inbound.MARK_READY: handle_mark_ready,
    Inbound.INTENSITY_SAMPLE: handle_intensity_sample,
    Inbound.HEARTBEAT: handle_heartbeat,
    Inbound.GET_STATS: handle_get_stats,
    Inbound.CHAT_MESSAGE: handle_chat_message,
}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for event, handler in INBOUND_HANDLERS.items():
        socketio.on_event(event.value, handler, namespace=namespace)
