from audiobattle.events import Outbound
from audiobattle.models import Session


class TelemetryRelay:
    """Applies samples to a session and forwards them to the opponent only."""

    def __init__(self, emit, chat_max_length: int = 200):
        self.emit = emit
        self.chat_max_length = chat_max_length

    def deliver(self, session: Session, from_player_id: str, value: float, timestamp: int) -> None:
        state = session.per_player[from_player_id]
        state.last_intensity = value
        state.last_intensity_at = timestamp
        state.sample_count += 1
        state.total_intensity += value
        state.peak_intensity = max(state.peak_intensity, value)
        session.last_activity_at = timestamp

        payload = {'fromPlayerId': from_player_id, 'value': value, 'timestamp': timestamp}
        for pid in session.participants:
            if pid != from_player_id:
                self.emit(Outbound.OPPONENT_INTENSITY, payload, to=pid)

    def relay_chat(self, session: Session, from_player_id: str, message, timestamp: int) -> bool:
        if not isinstance(message, str) or not session.has_participant(from_player_id):
            return False
        text = message.strip()[:self.chat_max_length]
        if not text:
            return False
        payload = {'fromPlayerId': from_player_id, 'message': text, 'timestamp': timestamp}
        for pid in session.participants:
            if pid != from_player_id:
                self.emit(Outbound.CHAT_MESSAGE, payload, to=pid)
        return True
