from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple
import random
import string


class SessionStatus(str, Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    FINISHED = 'finished'


class OutcomeReason(str, Enum):
    TIMEOUT = 'timeout'
    DISCONNECT = 'disconnect'


@dataclass
class PlayerStats:
    games_played: int = 0
    wins: int = 0
    total_time_ms: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'gamesPlayed': self.games_played,
            'wins': self.wins,
            'totalTimeMs': self.total_time_ms,
        }


@dataclass
class Player:
    id: str
    connected_at: int
    ready: bool = False
    stats: PlayerStats = field(default_factory=PlayerStats)


@dataclass
class IntensityState:
    last_intensity: float = 0.0
    last_intensity_at: Optional[int] = None
    peak_intensity: float = 0.0
    total_intensity: float = 0.0
    sample_count: int = 0

    @property
    def average_intensity(self) -> float:
        if not self.sample_count:
            return 0.0
        return self.total_intensity / self.sample_count

    def summary(self) -> Dict[str, Any]:
        return {
            'peakIntensity': self.peak_intensity,
            'averageIntensity': self.average_intensity,
            'lastIntensity': self.last_intensity,
            'sampleCount': self.sample_count,
        }


def generate_session_id(taken, length=8) -> str:
    """Generate a short session id not present in ``taken``."""
    while True:
        code = 'session_' + ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))
        if code not in taken:
            return code


@dataclass
class Session:
    id: str
    participants: Tuple[str, str]
    created_at: int
    status: SessionStatus = SessionStatus.PENDING
    per_player: Dict[str, IntensityState] = field(default_factory=dict)
    started_at: Optional[int] = None
    ended_at: Optional[int] = None
    duration_ms: int = 0
    last_activity_at: Optional[int] = None
    timer: Any = None
    cleanup_timer: Any = None
    outcome: Optional['Outcome'] = None

    def __post_init__(self):
        if len(self.participants) != 2 or self.participants[0] == self.participants[1]:
            raise ValueError('A session needs exactly two distinct participants')
        for pid in self.participants:
            self.per_player.setdefault(pid, IntensityState())

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.FINISHED

    def has_participant(self, player_id: str) -> bool:
        return player_id in self.participants

    def opponent_of(self, player_id: str) -> Optional[str]:
        if player_id not in self.participants:
            return None
        return self.participants[1] if self.participants[0] == player_id else self.participants[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sessionId': self.id,
            'participants': list(self.participants),
            'status': self.status.value,
            'startedAt': self.started_at,
            'endedAt': self.ended_at,
            'durationMs': self.duration_ms,
            'lastActivityAt': self.last_activity_at,
            'perPlayer': {pid: state.summary() for pid, state in self.per_player.items()},
            'outcome': self.outcome.to_dict() if self.outcome else None,
        }


@dataclass(frozen=True)
class Outcome:
    session_id: str
    winner_id: Optional[str]
    per_player_summary: Mapping[str, Mapping[str, Any]]
    duration_ms: int
    reason: OutcomeReason

    @classmethod
    def build(cls, session: Session, winner_id: Optional[str], reason: OutcomeReason) -> 'Outcome':
        summary = {pid: MappingProxyType(state.summary()) for pid, state in session.per_player.items()}
        return cls(
            session_id=session.id,
            winner_id=winner_id,
            per_player_summary=MappingProxyType(summary),
            duration_ms=session.duration_ms,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sessionId': self.session_id,
            'winnerId': self.winner_id,
            'perPlayerSummary': {pid: dict(s) for pid, s in self.per_player_summary.items()},
            'durationMs': self.duration_ms,
            'reason': self.reason.value,
        }


@dataclass(frozen=True)
class EnqueueResult:
    position: Optional[int] = None
    session_id: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.session_id is not None
