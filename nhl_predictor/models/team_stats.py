"""
Team season statistics.

Provider payloads are partial and loosely typed. They are first parsed into
RawSeasonRecord (every field optional) and only then normalized into the
strict TeamStats, where every field is a finite float and anything missing
or non-numeric becomes 0.
"""

import math
import numbers
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional

from nhl_predictor.config import CURRENT_SEASON_ID
from nhl_predictor.exceptions import DataUnavailable

DEFAULT_VALUE = 0.0


def safe_number(value: Any) -> float:
    """Return value as a float if it is a finite real number, else 0."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return DEFAULT_VALUE
    value = float(value)
    return value if math.isfinite(value) else DEFAULT_VALUE


def _optional_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


@dataclass
class BasicStats:
    games_played: float = 0.0
    wins: float = 0.0
    losses: float = 0.0
    ot_losses: float = 0.0
    points: float = 0.0
    goals_for: float = 0.0
    goals_against: float = 0.0
    goal_differential: float = 0.0
    goals_for_per_game: float = 0.0
    goals_against_per_game: float = 0.0


@dataclass
class ShootingStats:
    shots_for_per_game: float = 0.0
    shots_against_per_game: float = 0.0
    shooting_pct: float = 0.0
    save_pct: float = 0.0


@dataclass
class SpecialTeamsStats:
    power_play_pct: float = 0.0
    penalty_kill_pct: float = 0.0
    faceoff_win_pct: float = 0.0


@dataclass
class TeamStats:
    basic: BasicStats = field(default_factory=BasicStats)
    shooting: ShootingStats = field(default_factory=ShootingStats)
    special: SpecialTeamsStats = field(default_factory=SpecialTeamsStats)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return asdict(self)


@dataclass
class RawSeasonRecord:
    """One provider season record with every field optional."""
    season_id: Optional[int] = None
    games_played: Optional[float] = None
    wins: Optional[float] = None
    losses: Optional[float] = None
    ot_losses: Optional[float] = None
    points: Optional[float] = None
    goals_for: Optional[float] = None
    goals_against: Optional[float] = None
    goals_for_per_game: Optional[float] = None
    goals_against_per_game: Optional[float] = None
    shots_for_per_game: Optional[float] = None
    shots_against_per_game: Optional[float] = None
    shooting_pct: Optional[float] = None
    save_pct: Optional[float] = None
    power_play_pct: Optional[float] = None
    penalty_kill_pct: Optional[float] = None
    faceoff_win_pct: Optional[float] = None

    # provider key -> attribute
    PROVIDER_KEYS = {
        "gamesPlayed": "games_played",
        "wins": "wins",
        "losses": "losses",
        "otLosses": "ot_losses",
        "points": "points",
        "goalsFor": "goals_for",
        "goalsAgainst": "goals_against",
        "goalsForPerGame": "goals_for_per_game",
        "goalsAgainstPerGame": "goals_against_per_game",
        "shotsForPerGame": "shots_for_per_game",
        "shotsAgainstPerGame": "shots_against_per_game",
        "shootingPct": "shooting_pct",
        "savePct": "save_pct",
        "powerPlayPct": "power_play_pct",
        "penaltyKillPct": "penalty_kill_pct",
        "faceoffWinPct": "faceoff_win_pct",
    }

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "RawSeasonRecord":
        if not isinstance(payload, Mapping):
            return cls()

        values = {
            attr: _optional_number(payload.get(key))
            for key, attr in cls.PROVIDER_KEYS.items()
        }
        season_id = payload.get("seasonId")
        values["season_id"] = season_id if isinstance(season_id, int) and not isinstance(season_id, bool) else None
        return cls(**values)


def _derived_shooting_pct(raw: RawSeasonRecord) -> Optional[float]:
    if raw.goals_for_per_game is None or not raw.shots_for_per_game:
        return None
    return round(raw.goals_for_per_game / raw.shots_for_per_game * 100, 2)


def _derived_save_pct(raw: RawSeasonRecord) -> Optional[float]:
    if raw.goals_against_per_game is None or not raw.shots_against_per_game:
        return None
    saves = raw.shots_against_per_game - raw.goals_against_per_game
    return round(saves / raw.shots_against_per_game * 100, 2)


def normalize_team_stats(payload: Optional[Mapping[str, Any]]) -> TeamStats:
    """
    Build a TeamStats from one provider season record.

    Never raises for missing or malformed fields. Shooting and save
    percentages fall back to values derived from the per-game rates when the
    provider omits them (the summary endpoint does).
    """
    raw = payload if isinstance(payload, RawSeasonRecord) else RawSeasonRecord.from_payload(payload)

    shooting_pct = raw.shooting_pct if raw.shooting_pct is not None else _derived_shooting_pct(raw)
    save_pct = raw.save_pct if raw.save_pct is not None else _derived_save_pct(raw)

    goals_for = safe_number(raw.goals_for)
    goals_against = safe_number(raw.goals_against)

    return TeamStats(
        basic=BasicStats(
            games_played=safe_number(raw.games_played),
            wins=safe_number(raw.wins),
            losses=safe_number(raw.losses),
            ot_losses=safe_number(raw.ot_losses),
            points=safe_number(raw.points),
            goals_for=goals_for,
            goals_against=goals_against,
            goal_differential=goals_for - goals_against,
            goals_for_per_game=safe_number(raw.goals_for_per_game),
            goals_against_per_game=safe_number(raw.goals_against_per_game),
        ),
        shooting=ShootingStats(
            shots_for_per_game=safe_number(raw.shots_for_per_game),
            shots_against_per_game=safe_number(raw.shots_against_per_game),
            shooting_pct=safe_number(shooting_pct),
            save_pct=safe_number(save_pct),
        ),
        special=SpecialTeamsStats(
            power_play_pct=safe_number(raw.power_play_pct),
            penalty_kill_pct=safe_number(raw.penalty_kill_pct),
            faceoff_win_pct=safe_number(raw.faceoff_win_pct),
        ),
    )


def select_season(
    records: Optional[List[Mapping[str, Any]]],
    team_id,
    season_id: int = CURRENT_SEASON_ID
) -> Mapping[str, Any]:
    """Pick the record for season_id, else the first one. Raises DataUnavailable if none."""
    records = [record for record in records or [] if isinstance(record, Mapping)]
    if not records:
        raise DataUnavailable(team_id)

    for record in records:
        if record.get("seasonId") == season_id:
            return record
    return records[0]

