"""
Prediction Service

Entry points used by the API and the scheduled jobs: predict a matchup,
record a game's outcome, and report accuracy.
"""

import asyncio
from datetime import datetime
from typing import Optional, Dict, Any, Tuple

from sqlalchemy.orm import Session

from nhl_predictor.models.nhl import NHLModel, PredictionResult
from nhl_predictor.models.team_stats import TeamStats
from nhl_predictor.services import nhl_stats
from nhl_predictor.services.prediction_store import PredictionStore
from nhl_predictor.utils.status import FINAL, SCHEDULED
from nhl_predictor.utils.team_mapping import get_nhl_team_id
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

model = NHLModel()


def is_prediction_correct(
    predicted_home_score: float,
    predicted_away_score: float,
    actual_home_score: int,
    actual_away_score: int
) -> bool:
    """The predicted winner (by expected score) matches the actual winner."""
    predicted_home_win = predicted_home_score > predicted_away_score
    actual_home_win = actual_home_score > actual_away_score
    return predicted_home_win == actual_home_win


def build_prediction_record(
    game_id: int,
    home_team_id: int,
    away_team_id: int,
    result: PredictionResult,
    game_start_time: Optional[datetime] = None,
    game_status: str = SCHEDULED
) -> Dict[str, Any]:
    return {
        "game_id": int(game_id),
        "home_team_id": int(home_team_id),
        "away_team_id": int(away_team_id),
        "predicted_home_score": result.predicted_score.home,
        "predicted_away_score": result.predicted_score.away,
        "home_win_probability": result.home_team_win_probability,
        "away_win_probability": result.away_team_win_probability,
        "confidence": result.confidence,
        "game_start_time": game_start_time or datetime.utcnow(),
        "game_status": game_status,
    }


async def fetch_matchup_stats(home_nhl_id: int, away_nhl_id: int) -> Tuple[TeamStats, TeamStats]:
    """Fetch both teams' stats concurrently."""
    home_stats, away_stats = await asyncio.gather(
        nhl_stats.get_team_stats(home_nhl_id),
        nhl_stats.get_team_stats(away_nhl_id)
    )
    return home_stats, away_stats


async def predict(
    db: Optional[Session],
    home_team_id,
    away_team_id,
    game_id: Optional[int] = None,
    game_start_time: Optional[datetime] = None,
    game_status: str = SCHEDULED
) -> PredictionResult:
    """
    Predict a matchup given ESPN team ids. Saved when game_id is given.

    Raises:
        ValueError: unknown team id
        DataUnavailable: no stats for one of the teams
        UpstreamUnavailable: the stats provider failed
    """
    home_nhl_id = get_nhl_team_id(home_team_id)
    away_nhl_id = get_nhl_team_id(away_team_id)

    home_stats, away_stats = await fetch_matchup_stats(home_nhl_id, away_nhl_id)
    result = model.predict(home_stats, away_stats)

    if result.fallback:
        logger.warning(f"Neutral prediction returned for {home_team_id} vs {away_team_id}")

    if game_id is not None and db is not None:
        PredictionStore(db).save(build_prediction_record(
            game_id, home_team_id, away_team_id, result, game_start_time, game_status
        ))
        logger.info(f"Saved prediction for game {game_id}")

    return result


def record_outcome(
    db: Session,
    game_id: int,
    actual_home_score: int,
    actual_away_score: int,
    was_correct: Optional[bool] = None
) -> int:
    """
    Store a game's final score on its pending predictions and mark them FINAL.

    was_correct is derived from the newest pending predicted score when not
    given. Predictions already FINAL are left alone; returns 0 when every
    prediction for the game is graded. Raises LookupError when no prediction
    exists for the game.
    """
    store = PredictionStore(db)
    if not store.exists(game_id):
        raise LookupError(f"No prediction stored for game {game_id}")

    pending = store.pending_predictions(game_id)
    if not pending:
        logger.info(f"Game {game_id} already graded, outcome ignored")
        return 0

    if was_correct is None:
        latest = max(pending, key=lambda p: (p.created_at, p.id))
        was_correct = is_prediction_correct(
            latest.predicted_home_score, latest.predicted_away_score,
            actual_home_score, actual_away_score
        )

    return store.update_result(
        game_id, actual_home_score, actual_away_score, was_correct, FINAL, only_pending=True
    )


def get_accuracy(db: Session) -> Dict[str, Any]:
    return PredictionStore(db).accuracy()
