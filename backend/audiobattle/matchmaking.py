from typing import Callable, List, Optional

from audiobattle.models import EnqueueResult
from audiobattle.registry import ConnectionRegistry


class MatchQueue:
    """FIFO waitlist of players that are not yet paired.

    ``create_session`` is called with the two oldest entries as soon as two
    players are waiting; ``is_busy`` tells whether a player already sits in
    a non-finished session and therefore may not queue.
    """

    def __init__(self, registry: ConnectionRegistry,
                 create_session: Callable[[str, str], str],
                 is_busy: Callable[[str], bool],
                 logger=None):
        self.registry = registry
        self.create_session = create_session
        self.is_busy = is_busy
        self.logger = logger
        self._waiting: List[str] = []

    def enqueue(self, player_id: str) -> Optional[EnqueueResult]:
        if player_id not in self.registry or self.is_busy(player_id):
            return None
        self.remove(player_id)
        self._waiting.append(player_id)
        self._log(f"[queue-join] player={player_id} size={len(self._waiting)}")
        if len(self._waiting) >= 2:
            first, second = self._waiting[0], self._waiting[1]
            del self._waiting[:2]
            return EnqueueResult(session_id=self.create_session(first, second))
        return EnqueueResult(position=len(self._waiting))

    def remove(self, player_id: str) -> bool:
        if player_id not in self._waiting:
            return False
        self._waiting.remove(player_id)
        self._log(f"[queue-leave] player={player_id} size={len(self._waiting)}")
        return True

    def position(self, player_id: str) -> Optional[int]:
        try:
            return self._waiting.index(player_id) + 1
        except ValueError:
            return None

    def snapshot(self) -> List[str]:
        return list(self._waiting)

    def __contains__(self, player_id) -> bool:
        return player_id in self._waiting

    def __len__(self) -> int:
        return len(self._waiting)

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.info(message)
