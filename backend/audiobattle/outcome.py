from typing import Optional

from audiobattle.events import Outbound
from audiobattle.models import Outcome, OutcomeReason, Session, SessionStatus


def pick_winner(session: Session, reason: OutcomeReason, disconnected_id: Optional[str] = None) -> Optional[str]:
    """Winner rule.

    On disconnect the remaining participant wins whatever the peaks say. On
    timeout the strictly greater peak wins; equal peaks are a draw (None).
    """
    if reason == OutcomeReason.DISCONNECT:
        return session.opponent_of(disconnected_id)
    first, second = session.participants
    peak_a = session.per_player[first].peak_intensity
    peak_b = session.per_player[second].peak_intensity
    if peak_a > peak_b:
        return first
    if peak_b > peak_a:
        return second
    return None


class OutcomeResolver:
    def __init__(self, manager, cleanup_grace_ms: int = 30000):
        self.manager = manager
        self.cleanup_grace_ms = cleanup_grace_ms

    def finalize(self, session: Session, reason: OutcomeReason,
                 disconnected_id: Optional[str] = None) -> Optional[Outcome]:
        # Guard makes a timeout racing a disconnect emit a single session-end.
        if session.status != SessionStatus.ACTIVE:
            return None

        manager = self.manager
        now = manager.clock()
        session.status = SessionStatus.FINISHED
        session.ended_at = now
        session.duration_ms = now - session.started_at
        if session.timer is not None:
            session.timer.cancel()

        winner_id = pick_winner(session, reason, disconnected_id)
        for pid in session.participants:
            player = manager.registry.get(pid)
            if player is None:
                continue
            player.stats.games_played += 1
            player.stats.total_time_ms += session.duration_ms
            if pid == winner_id:
                player.stats.wins += 1

        outcome = Outcome.build(session, winner_id, reason)
        session.outcome = outcome
        payload = outcome.to_dict()
        for pid in session.participants:
            if pid == disconnected_id or pid not in manager.registry:
                continue
            manager.emit(Outbound.SESSION_END, payload, to=pid)

        manager.log(
            f"[session-end] session={session.id} reason={reason.value} "
            f"winner={winner_id or 'draw'} duration={session.duration_ms}ms"
        )
        session.cleanup_timer = manager.scheduler.call_later(
            self.cleanup_grace_ms,
            lambda: self.cleanup(session.id),
            label=f"cleanup:{session.id}",
        )
        return outcome

    def cleanup(self, session_id: str) -> None:
        if self.manager.discard(session_id):
            self.manager.log(f"[cleanup] session={session_id} removed")
