from typing import Dict, Optional

from audiobattle.events import OPPONENT_LEFT_MESSAGE, Outbound, is_valid_intensity
from audiobattle.models import OutcomeReason, Session, SessionStatus, generate_session_id
from audiobattle.outcome import OutcomeResolver
from audiobattle.registry import ConnectionRegistry
from audiobattle.relay import TelemetryRelay


class SessionManager:
    """Creates, holds and terminates two-player sessions.

    Lifecycle per session: pending -> active (immediately on creation) ->
    finished (duration timer or participant disconnect). A finished session
    stays in the lookup tables for the cleanup grace period so late stats
    queries still resolve, then ``discard`` drops it.
    """

    def __init__(self, registry: ConnectionRegistry, emit, scheduler,
                 duration_ms: int = 30000, cleanup_grace_ms: int = 30000,
                 chat_max_length: int = 200, logger=None):
        self.registry = registry
        self.emit = emit
        self.scheduler = scheduler
        self.duration_ms = duration_ms
        self.logger = logger
        self.queue = None
        self.relay = TelemetryRelay(emit, chat_max_length=chat_max_length)
        self.resolver = OutcomeResolver(self, cleanup_grace_ms=cleanup_grace_ms)
        self._sessions: Dict[str, Session] = {}
        self._player_session: Dict[str, str] = {}
        self.total_created = 0

    def clock(self) -> int:
        return self.scheduler.now_ms()

    def log(self, message: str) -> None:
        if self.logger:
            self.logger.info(message)

    # ---- lookups ----

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def session_for(self, player_id: str) -> Optional[Session]:
        session_id = self._player_session.get(player_id)
        return self._sessions.get(session_id) if session_id else None

    def is_busy(self, player_id: str) -> bool:
        session = self.session_for(player_id)
        return session is not None and not session.is_finished

    def active_count(self) -> int:
        return sum(1 for s in self._sessions.values() if s.is_active)

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self):
        return iter(list(self._sessions.values()))

    # ---- lifecycle ----

    def create_session(self, p1: str, p2: str) -> str:
        now = self.clock()
        session = Session(
            id=generate_session_id(self._sessions),
            participants=(p1, p2),
            created_at=now,
        )
        self._sessions[session.id] = session
        for pid in session.participants:
            self._player_session[pid] = session.id
            if self.queue is not None:
                self.queue.remove(pid)
        self.total_created += 1

        for pid in session.participants:
            self.emit(Outbound.SESSION_SETUP, {}, to=pid)

        session.status = SessionStatus.ACTIVE
        session.started_at = now
        session.last_activity_at = now
        for pid in session.participants:
            self.emit(Outbound.SESSION_START, {
                'sessionId': session.id,
                'durationMs': self.duration_ms,
                'startTime': now,
                'yourId': pid,
                'opponentId': session.opponent_of(pid),
            }, to=pid)

        session.timer = self.scheduler.call_later(
            self.duration_ms,
            lambda: self._on_timer(session.id),
            label=f"duration:{session.id}",
        )
        self.log(f"[session-start] session={session.id} players={p1},{p2}")
        self.log(f"[timer-set] session={session.id} duration={self.duration_ms}ms deadline={session.timer.deadline_ms}")
        return session.id

    def _on_timer(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        self.log(f"[timer-fire] session={session_id} status={session.status.value if session else 'gone'}")
        if session is None or not session.is_active:
            return
        self.resolver.finalize(session, OutcomeReason.TIMEOUT)

    def record_intensity(self, session_id: str, player_id: str, value) -> bool:
        session = self._sessions.get(session_id)
        if session is None or not session.is_active or not session.has_participant(player_id):
            return False
        if not is_valid_intensity(value):
            return False
        self.relay.deliver(session, player_id, float(value), self.clock())
        return True

    def handle_disconnect(self, player_id: str) -> None:
        session = self.session_for(player_id)
        if session is None:
            return
        if session.is_active:
            if session.timer is not None:
                session.timer.cancel()
            opponent_id = session.opponent_of(player_id)
            if opponent_id in self.registry:
                self.emit(Outbound.OPPONENT_LEFT, {'message': OPPONENT_LEFT_MESSAGE}, to=opponent_id)
            self.resolver.finalize(session, OutcomeReason.DISCONNECT, disconnected_id=player_id)
        # The leaving player is gone for good; drop its index entry now.
        self._player_session.pop(player_id, None)

    def discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        for pid in session.participants:
            # A player may already be in a newer session; leave that mapping alone.
            if self._player_session.get(pid) == session_id:
                del self._player_session[pid]
        if session.timer is not None:
            session.timer.cancel()
        return True
