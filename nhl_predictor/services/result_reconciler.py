"""
Result Reconciler

Matches finished ESPN games against stored predictions, grades them, and
predicts newly scheduled games. Both jobs are idempotent and safe to run on
demand or on a timer.
"""

from datetime import date, timedelta
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from nhl_predictor.config import ACCURACY_THRESHOLD, FALLBACK_GAME_IDS
from nhl_predictor.exceptions import UpstreamUnavailable
from nhl_predictor.services import espn
from nhl_predictor.services import prediction_service
from nhl_predictor.services.prediction_store import PredictionStore
from nhl_predictor.utils.status import FINAL, is_completed_status, normalize_status
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)


def is_game_finished(game: Dict[str, Any]) -> bool:
    """Any completion signal plus a numeric score for both sides."""
    if not is_completed_status(game.get("status")):
        return False

    home_team, away_team = espn.home_and_away(game)
    if not home_team or not away_team:
        return False
    return home_team.get("score") is not None and away_team.get("score") is not None


class ResultReconciler:
    """Grades stored predictions against completed games"""

    def __init__(self, db: Session, fallback_game_ids: Optional[List[int]] = None):
        self.db = db
        self.store = PredictionStore(db)
        self.fallback_game_ids = FALLBACK_GAME_IDS if fallback_game_ids is None else fallback_game_ids

    async def list_completed_games(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Finished games from yesterday through today."""
        today = today or date.today()
        games = await espn.get_games(today - timedelta(days=1), today, use_cache=False)
        completed = [game for game in games if is_game_finished(game)]
        logger.info(f"Found {len(completed)} completed games out of {len(games)}")
        return completed

    def _apply_result(self, game: Dict[str, Any]) -> bool:
        """Grade the pending predictions for one finished game. True if any were updated."""
        pending = self.store.pending_predictions(game["id"])
        if not pending:
            return False

        home_team, away_team = espn.home_and_away(game)
        actual_home = home_team["score"]
        actual_away = away_team["score"]

        prediction = max(pending, key=lambda p: (p.created_at, p.id))
        was_correct = prediction_service.is_prediction_correct(
            prediction.predicted_home_score, prediction.predicted_away_score,
            actual_home, actual_away
        )

        self.store.update_result(game["id"], actual_home, actual_away, was_correct, FINAL, only_pending=True)
        logger.info(
            f"Game {game['id']} final {actual_home}-{actual_away}, "
            f"prediction {'correct' if was_correct else 'incorrect'}"
        )
        return True

    async def _update_from_game_details(self) -> int:
        """
        Fallback for scoreboard gaps: look each candidate game up individually.
        Candidates are the configured game ids plus stored predictions whose
        start time has passed without a result.
        """
        candidates = list(dict.fromkeys(list(self.fallback_game_ids) + self.store.pending_game_ids()))
        if not candidates:
            return 0

        logger.info(f"Checking {len(candidates)} games through the summary endpoint")
        updated = 0
        for game_id in candidates:
            try:
                game = await espn.get_game_detail(game_id)
                if game and is_game_finished(game) and self._apply_result(game):
                    updated += 1
            except Exception as e:
                logger.error(f"Error checking game {game_id}: {e}")
        return updated

    async def update_results(self) -> int:
        """Grade finished games, then prune to the accuracy threshold. Returns games updated."""
        updated = 0

        try:
            completed = await self.list_completed_games()
        except UpstreamUnavailable as e:
            logger.error(f"Could not list completed games: {e}")
            completed = []

        for game in completed:
            try:
                if self._apply_result(game):
                    updated += 1
            except Exception as e:
                logger.error(f"Error updating result for game {game.get('id')}: {e}")

        if updated == 0:
            updated += await self._update_from_game_details()

        self.store.cleanup_inaccurate(ACCURACY_THRESHOLD)

        logger.info(f"Updated results for {updated} games")
        return updated

    async def predict_todays_games(self, today: Optional[date] = None) -> int:
        """Predict every game today that has no stored prediction. Returns predictions made."""
        games = await espn.get_games(today or date.today())

        predicted = 0
        for game in games:
            game_id = game.get("id")
            try:
                if self.store.exists(game_id):
                    continue
                if is_completed_status(game.get("status")):
                    continue

                home_team, away_team = espn.home_and_away(game)
                if not home_team or not away_team:
                    logger.warning(f"Game {game_id} is missing a home or away team, skipping")
                    continue

                await prediction_service.predict(
                    self.db,
                    home_team["team_id"],
                    away_team["team_id"],
                    game_id=game_id,
                    game_start_time=espn.parse_game_time(game.get("date")),
                    game_status=normalize_status(game.get("status")),
                )
                predicted += 1
            except Exception as e:
                logger.error(f"Error predicting game {game_id}: {e}")
                self.db.rollback()

        logger.info(f"Predicted {predicted} of {len(games)} games")
        return predicted
