"""
NHL win-probability and expected-score model.

Both teams' advantages are collapsed into a composite score, the home-minus-
away differential goes through a logistic transform for win probability, and
the pace estimate (average combined goals per game) is split between the
teams by their offensive factors for the expected score.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict

from nhl_predictor.exceptions import ComputationFault
from nhl_predictor.models.base import BaseSportModel
from nhl_predictor.models.advantage import (
    TeamAdvantage, compute_advantage, HOME_ICE_OFFENSE_BOOST
)
from nhl_predictor.models.team_stats import TeamStats, safe_number
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_GAME_PACE = 5.0
NEUTRAL_SCORE = 2.5

COMPOSITE_WEIGHTS = {
    "offense": 0.3,
    "defense": 0.3,
    "special": 0.2,
    "efficiency_factor": 0.1,
    "momentum_factor": 0.1,
}
CONFIDENCE_PACE_SCALE = 0.1


@dataclass
class PredictedScore:
    home: float
    away: float


@dataclass
class PredictionFactors:
    home_advantage: TeamAdvantage
    away_advantage: TeamAdvantage
    game_pace: float
    confidence: float


@dataclass
class PredictionResult:
    home_team_win_probability: float
    away_team_win_probability: float
    predicted_score: PredictedScore
    factors: PredictionFactors
    # True when the neutral default was returned instead of a computed answer
    fallback: bool = field(default=False)

    @property
    def confidence(self) -> float:
        return self.factors.confidence

    @classmethod
    def neutral(cls) -> "PredictionResult":
        """50/50, 2.5-2.5, zero confidence."""
        return cls(
            home_team_win_probability=50.0,
            away_team_win_probability=50.0,
            predicted_score=PredictedScore(home=NEUTRAL_SCORE, away=NEUTRAL_SCORE),
            factors=PredictionFactors(
                home_advantage=TeamAdvantage.neutral(),
                away_advantage=TeamAdvantage.neutral(),
                game_pace=DEFAULT_GAME_PACE,
                confidence=0.0,
            ),
            fallback=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home_team_win_probability": self.home_team_win_probability,
            "away_team_win_probability": self.away_team_win_probability,
            "predicted_score": {
                "home": self.predicted_score.home,
                "away": self.predicted_score.away,
            },
            "factors": {
                "home_advantage": self.factors.home_advantage.to_dict(),
                "away_advantage": self.factors.away_advantage.to_dict(),
                "game_pace": self.factors.game_pace,
                "confidence": self.factors.confidence,
            },
            "fallback": self.fallback,
        }


class NHLModel(BaseSportModel):
    sport = "NHL"

    def calculate_game_pace(self, home_stats: TeamStats, away_stats: TeamStats) -> float:
        """Average combined goals per game across both teams, 5.0 if it cannot be computed."""
        try:
            home_pace = (safe_number(home_stats.basic.goals_for_per_game)
                         + safe_number(home_stats.basic.goals_against_per_game))
            away_pace = (safe_number(away_stats.basic.goals_for_per_game)
                         + safe_number(away_stats.basic.goals_against_per_game))
            pace = (home_pace + away_pace) / 2
        except (AttributeError, TypeError, ArithmeticError) as e:
            logger.warning(f"Game pace unavailable, using league average: {e}")
            return DEFAULT_GAME_PACE

        if not math.isfinite(pace):
            return DEFAULT_GAME_PACE
        return pace

    def composite_score(self, advantage: TeamAdvantage) -> float:
        score = (
            safe_number(advantage.offense) * COMPOSITE_WEIGHTS["offense"]
            + safe_number(advantage.defense) * COMPOSITE_WEIGHTS["defense"]
            + safe_number(advantage.special) * COMPOSITE_WEIGHTS["special"]
            + safe_number(advantage.efficiency_factor) * COMPOSITE_WEIGHTS["efficiency_factor"]
            + safe_number(advantage.momentum_factor) * COMPOSITE_WEIGHTS["momentum_factor"]
        )
        # Home-ice bonus is added unweighted
        return score + safe_number(advantage.home_ice_bonus)

    def calculate_confidence(self, differential: float, game_pace: float) -> float:
        """
        Heuristic in [0, 1]: bigger separation and lower pace read as more certain.
        Not a calibrated probability.
        """
        if game_pace <= 0:
            return 1.0 if differential else 0.0
        return min(abs(differential) / (game_pace * CONFIDENCE_PACE_SCALE), 1.0)

    def expected_goals(self, advantage: TeamAdvantage, game_pace: float) -> float:
        factor = advantage.offense * advantage.efficiency_factor * advantage.momentum_factor
        if advantage.is_home:
            factor *= HOME_ICE_OFFENSE_BOOST
        return max(game_pace * factor / 2, 0.0)

    def _predict(self, home_stats: TeamStats, away_stats: TeamStats) -> PredictionResult:
        home_advantage = compute_advantage(home_stats, is_home=True)
        away_advantage = compute_advantage(away_stats, is_home=False)
        game_pace = self.calculate_game_pace(home_stats, away_stats)

        differential = self.composite_score(home_advantage) - self.composite_score(away_advantage)
        home_prob = self._sigmoid(differential)
        confidence = self.calculate_confidence(differential, game_pace)

        home_goals = self.expected_goals(home_advantage, game_pace)
        away_goals = self.expected_goals(away_advantage, game_pace)

        if not all(math.isfinite(v) for v in (differential, home_prob, confidence, home_goals, away_goals)):
            raise ComputationFault(
                f"Non-finite prediction (differential={differential}, "
                f"home_goals={home_goals}, away_goals={away_goals})"
            )

        home_pct = round(home_prob * 100, 1)
        return PredictionResult(
            home_team_win_probability=home_pct,
            away_team_win_probability=round(100 - home_pct, 1),
            predicted_score=PredictedScore(
                home=round(home_goals, 1),
                away=round(away_goals, 1),
            ),
            factors=PredictionFactors(
                home_advantage=home_advantage,
                away_advantage=away_advantage,
                game_pace=game_pace,
                confidence=confidence,
            ),
        )

    def predict(self, home_stats: TeamStats, away_stats: TeamStats) -> PredictionResult:
        """Win probabilities and expected score. Never raises; degrades to PredictionResult.neutral()."""
        try:
            return self._predict(home_stats, away_stats)
        except Exception as e:
            logger.error(f"Prediction computation failed, returning neutral prediction: {e}")
            return PredictionResult.neutral()
