"""Closed sets of Socket.IO event names and payload checks.

Every message the server accepts or sends is listed here; handlers and
emitters refer to these members rather than to free-form strings.
"""

from enum import Enum
import math
import numbers


class Inbound(str, Enum):
    JOIN_QUEUE = 'join-queue'
    LEAVE_QUEUE = 'leave-queue'
    MARK_READY = 'mark-ready'
    INTENSITY_SAMPLE = 'intensity-sample'
    HEARTBEAT = 'heartbeat'
    GET_STATS = 'get-stats'
    CHAT_MESSAGE = 'chat-message'


class Outbound(str, Enum):
    CONNECTION_ACK = 'connection-ack'
    QUEUE_POSITION = 'queue-position'
    QUEUE_LEFT = 'queue-left'
    READY_ACK = 'ready-ack'
    SESSION_SETUP = 'session-setup'
    SESSION_START = 'session-start'
    OPPONENT_INTENSITY = 'opponent-intensity'
    SESSION_END = 'session-end'
    OPPONENT_LEFT = 'opponent-left'
    PLAYER_STATS = 'player-stats'
    HEARTBEAT_ACK = 'heartbeat-ack'
    CHAT_MESSAGE = 'chat-message'


OPPONENT_LEFT_MESSAGE = 'Your opponent disconnected. You win!'


def is_valid_intensity(value) -> bool:
    """True for a finite real number within [0, 1]; bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    # Range first: huge ints would overflow float().
    if not 0 <= value <= 1:
        return False
    return math.isfinite(float(value))


def payload_dict(data):
    return data if isinstance(data, dict) else {}
