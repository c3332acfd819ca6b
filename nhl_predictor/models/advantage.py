"""
Per-team composite advantage derived from season stats.
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from nhl_predictor.exceptions import ComputationFault
from nhl_predictor.models.team_stats import TeamStats, safe_number
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

HOME_ICE_OFFENSE_BOOST = 1.05
HOME_ICE_DEFENSE_BOOST = 1.03
HOME_ICE_BONUS = 0.1

OFFENSE_WEIGHTS = {"goals_for_per_game": 0.4, "shots_for_per_game": 0.3, "power_play_pct": 0.3}
DEFENSE_WEIGHTS = {"goals_against_per_game": 0.4, "shots_against_per_game": 0.3, "penalty_kill_pct": 0.3}
SPECIAL_WEIGHTS = {"power_play_pct": 0.4, "penalty_kill_pct": 0.4, "faceoff_win_pct": 0.2}
MOMENTUM_SCALE = 0.2


@dataclass
class TeamAdvantage:
    offense: float
    defense: float
    special: float
    efficiency_factor: float
    momentum_factor: float
    home_ice_bonus: Optional[float] = None

    @classmethod
    def neutral(cls) -> "TeamAdvantage":
        """Zero-valued advantage used when the real one cannot be computed."""
        return cls(
            offense=0.0,
            defense=0.0,
            special=0.0,
            efficiency_factor=1.0,
            momentum_factor=1.0,
        )

    @property
    def is_home(self) -> bool:
        return self.home_ice_bonus is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["home_ice_bonus"] is None:
            del data["home_ice_bonus"]
        return data


def calculate_efficiency(stats: TeamStats) -> float:
    scoring_efficiency = safe_number(stats.shooting.shooting_pct) / 100
    defensive_efficiency = safe_number(stats.shooting.save_pct) / 100
    return (scoring_efficiency + defensive_efficiency) / 2


def calculate_momentum(stats: TeamStats) -> float:
    total_games = safe_number(stats.basic.games_played)
    if total_games == 0:
        return 1.0

    win_pct = safe_number(stats.basic.wins) / total_games
    return 1 + MOMENTUM_SCALE * (win_pct - 0.5)


def _strict_advantage(stats: TeamStats, is_home: bool) -> TeamAdvantage:
    basic, shooting, special = stats.basic, stats.shooting, stats.special

    offense = (
        safe_number(basic.goals_for_per_game) * OFFENSE_WEIGHTS["goals_for_per_game"]
        + safe_number(shooting.shots_for_per_game) * OFFENSE_WEIGHTS["shots_for_per_game"]
        + safe_number(special.power_play_pct) * OFFENSE_WEIGHTS["power_play_pct"]
    )

    # Denominators clamped at 1 so near-zero goals/shots against stay bounded
    defense = (
        (1 / max(safe_number(basic.goals_against_per_game), 1)) * DEFENSE_WEIGHTS["goals_against_per_game"]
        + (1 / max(safe_number(shooting.shots_against_per_game), 1)) * DEFENSE_WEIGHTS["shots_against_per_game"]
        + safe_number(special.penalty_kill_pct) * DEFENSE_WEIGHTS["penalty_kill_pct"]
    )

    special_score = (
        safe_number(special.power_play_pct) * SPECIAL_WEIGHTS["power_play_pct"]
        + safe_number(special.penalty_kill_pct) * SPECIAL_WEIGHTS["penalty_kill_pct"]
        + safe_number(special.faceoff_win_pct) * SPECIAL_WEIGHTS["faceoff_win_pct"]
    )

    advantage = TeamAdvantage(
        offense=offense,
        defense=defense,
        special=special_score,
        efficiency_factor=calculate_efficiency(stats),
        momentum_factor=calculate_momentum(stats),
    )

    if is_home:
        advantage.offense *= HOME_ICE_OFFENSE_BOOST
        advantage.defense *= HOME_ICE_DEFENSE_BOOST
        advantage.home_ice_bonus = HOME_ICE_BONUS

    values = (advantage.offense, advantage.defense, advantage.special,
              advantage.efficiency_factor, advantage.momentum_factor)
    if not all(math.isfinite(v) for v in values):
        raise ComputationFault(f"Non-finite advantage component: {values}")

    return advantage


def compute_advantage(stats: TeamStats, is_home: bool = False) -> TeamAdvantage:
    """
    Weighted offense/defense/special-teams composite for one team.

    Never raises. Any failure (malformed stats object, overflow) is logged and
    answered with TeamAdvantage.neutral().
    """
    try:
        return _strict_advantage(stats, is_home)
    except (ComputationFault, AttributeError, TypeError, ArithmeticError) as e:
        logger.warning(f"Falling back to neutral advantage (home={is_home}): {e}")
        return TeamAdvantage.neutral()
