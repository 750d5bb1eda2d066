class ArenaError(Exception):
    """Base class for structural errors raised by the arena."""


class DuplicatePlayerError(ArenaError):
    def __init__(self, player_id: str):
        super().__init__(f"Player {player_id} is already connected")
        self.player_id = player_id
