"""The arena ties the matchmaking components together.

One ``Arena`` owns the connection table, the waiting queue and the session
table. Every inbound event and every timer callback runs under the arena's
lock, so handlers never observe a half-updated session or player even when
the Socket.IO server dispatches on several threads.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from audiobattle.events import Outbound, payload_dict
from audiobattle.matchmaking import MatchQueue
from audiobattle.models import EnqueueResult, Player
from audiobattle.registry import ConnectionRegistry
from audiobattle.sessions import SessionManager
from audiobattle.timers import ManualScheduler


class Arena:
    def __init__(self, emit, scheduler=None, lock=None, logger=None,
                 duration_ms: int = 30000, cleanup_grace_ms: int = 30000,
                 chat_max_length: int = 200):
        self.emit = emit
        self.scheduler = scheduler or ManualScheduler()
        self.lock = lock or threading.RLock()
        self.logger = logger or logging.getLogger(__name__)
        self.started_at = time.monotonic()

        self.registry = ConnectionRegistry(clock=self.scheduler.now_ms)
        self.sessions = SessionManager(
            self.registry, emit, self.scheduler,
            duration_ms=duration_ms,
            cleanup_grace_ms=cleanup_grace_ms,
            chat_max_length=chat_max_length,
            logger=self.logger,
        )
        self.queue = MatchQueue(
            self.registry,
            create_session=self.sessions.create_session,
            is_busy=self.sessions.is_busy,
            logger=self.logger,
        )
        self.sessions.queue = self.queue
        self.registry.on_departure(self.queue.remove)
        self.registry.on_departure(self.sessions.handle_disconnect)

    @classmethod
    def from_config(cls, config, emit, scheduler=None, lock=None, logger=None) -> 'Arena':
        return cls(
            emit,
            scheduler=scheduler,
            lock=lock,
            logger=logger,
            duration_ms=int(config.get('SESSION_DURATION_MS', 30000)),
            cleanup_grace_ms=int(config.get('CLEANUP_GRACE_MS', 30000)),
            chat_max_length=int(config.get('CHAT_MAX_LENGTH', 200)),
        )

    # ---- connection lifecycle ----

    def connect(self, player_id: str) -> Player:
        with self.lock:
            player = self.registry.register(player_id)
            self.emit(Outbound.CONNECTION_ACK, {
                'playerId': player_id,
                'serverTime': self.scheduler.now_ms(),
            }, to=player_id)
            self.logger.info(f"[connect] player={player_id} total={len(self.registry)}")
            return player

    def disconnect(self, player_id: str) -> None:
        with self.lock:
            if self.registry.unregister(player_id) is not None:
                self.logger.info(f"[disconnect] player={player_id} total={len(self.registry)}")

    # ---- inbound events ----

    def join_queue(self, player_id: str) -> Optional[EnqueueResult]:
        with self.lock:
            result = self.queue.enqueue(player_id)
            if result is not None and not result.matched:
                self.emit(Outbound.QUEUE_POSITION, {'position': result.position}, to=player_id)
            return result

    def leave_queue(self, player_id: str) -> None:
        with self.lock:
            self.queue.remove(player_id)
            if player_id in self.registry:
                self.emit(Outbound.QUEUE_LEFT, {}, to=player_id)

    def mark_ready(self, player_id: str) -> None:
        with self.lock:
            player = self.registry.get(player_id)
            if player is None:
                return
            player.ready = True
            self.emit(Outbound.READY_ACK, {'ready': True}, to=player_id)

    def intensity_sample(self, player_id: str, data) -> bool:
        with self.lock:
            session = self.sessions.session_for(player_id)
            if session is None:
                return False
            return self.sessions.record_intensity(session.id, player_id, payload_dict(data).get('value'))

    def heartbeat(self, player_id: str, data) -> None:
        with self.lock:
            if player_id in self.registry:
                self.emit(Outbound.HEARTBEAT_ACK, data, to=player_id)

    def get_stats(self, player_id: str) -> Optional[Dict[str, int]]:
        with self.lock:
            player = self.registry.get(player_id)
            if player is None:
                return None
            stats = player.stats.to_dict()
            self.emit(Outbound.PLAYER_STATS, stats, to=player_id)
            return stats

    def chat_message(self, player_id: str, data) -> bool:
        with self.lock:
            session = self.sessions.session_for(player_id)
            if session is None:
                return False
            return self.sessions.relay.relay_chat(
                session, player_id, payload_dict(data).get('message'), self.scheduler.now_ms()
            )

    # ---- timers ----

    def advance_time(self, ms: int) -> None:
        """Drive a ``ManualScheduler`` forward while holding the arena lock."""
        with self.lock:
            self.scheduler.advance(ms)

    # ---- read-only views ----

    def stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                'totalSessions': self.sessions.total_created,
                'totalConnections': self.registry.total_connections,
                'peakPlayers': self.registry.peak_players,
                'currentPlayers': len(self.registry),
                'queueSize': len(self.queue),
                'activeSessions': self.sessions.active_count(),
                'uptime': round(time.monotonic() - self.started_at, 3),
            }

    def session_summary(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self.lock:
            session = self.sessions.get(session_id)
            return session.to_dict() if session else None
