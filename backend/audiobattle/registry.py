from typing import Callable, Dict, List, Optional

from audiobattle.errors import DuplicatePlayerError
from audiobattle.models import Player


class ConnectionRegistry:
    """Connected players keyed by transport session id."""

    def __init__(self, clock: Callable[[], int]):
        self._clock = clock
        self._players: Dict[str, Player] = {}
        self._departure_hooks: List[Callable[[str], None]] = []
        self.total_connections = 0
        self.peak_players = 0

    def on_departure(self, hook: Callable[[str], None]) -> None:
        self._departure_hooks.append(hook)

    def register(self, player_id: str) -> Player:
        if player_id in self._players:
            raise DuplicatePlayerError(player_id)
        player = Player(id=player_id, connected_at=self._clock())
        self._players[player_id] = player
        self.total_connections += 1
        self.peak_players = max(self.peak_players, len(self._players))
        return player

    def unregister(self, player_id: str) -> Optional[Player]:
        player = self._players.get(player_id)
        if player is None:
            return None
        # Hooks see the player still registered so outcome stats can land on it.
        for hook in self._departure_hooks:
            hook(player_id)
        return self._players.pop(player_id, None)

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def __contains__(self, player_id) -> bool:
        return player_id in self._players

    def __len__(self) -> int:
        return len(self._players)
