"""
Prediction Store

Persists one prediction per game, records final scores, reports running
accuracy and runs the two maintenance routines (duplicate cleanup and
accuracy-threshold pruning).
"""

from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import and_, desc, func, insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nhl_predictor.config import ACCURACY_THRESHOLD
from nhl_predictor.db import MATCHUP_COLUMNS, Prediction
from nhl_predictor.utils.logging import get_logger
from nhl_predictor.utils.status import FINAL

logger = get_logger(__name__)

MUTABLE_FIELDS = (
    "predicted_home_score",
    "predicted_away_score",
    "home_win_probability",
    "away_win_probability",
    "confidence",
    "game_start_time",
    "game_status",
)


def prediction_to_dict(record: Prediction) -> Dict[str, Any]:
    return {
        "id": record.id,
        "game_id": record.game_id,
        "home_team_id": record.home_team_id,
        "away_team_id": record.away_team_id,
        "predicted_home_score": record.predicted_home_score,
        "predicted_away_score": record.predicted_away_score,
        "home_win_probability": record.home_win_probability,
        "away_win_probability": record.away_win_probability,
        "confidence": record.confidence,
        "game_start_time": record.game_start_time.isoformat() if record.game_start_time else None,
        "game_status": record.game_status,
        "actual_home_score": record.actual_home_score,
        "actual_away_score": record.actual_away_score,
        "was_correct": record.was_correct,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


# Dialects whose insert() supports ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PredictionStore:
    """Data access for stored predictions"""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Prediction store write failed: {e}")
            raise

    def _matchup_filter(self, game_id: int, home_team_id: int, away_team_id: int):
        return and_(
            Prediction.game_id == game_id,
            Prediction.home_team_id == home_team_id,
            Prediction.away_team_id == away_team_id,
        )

    def exists(self, game_id: int) -> bool:
        return self.db.query(Prediction.id).filter(Prediction.game_id == game_id).first() is not None

    def _insert(self, game_id: int, home_team_id: int, away_team_id: int,
                values: Dict[str, Any], now: datetime):
        """
        Insert a new prediction. A row for the same matchup committed since the
        UPDATE ran is updated instead (unless FINAL), so concurrent saves never
        produce two rows.
        """
        row = dict(
            values,
            game_id=game_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            created_at=now,
            updated_at=now,
        )
        dialect_insert = UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if dialect_insert is None:
            # The unique matchup index still rejects a concurrent duplicate
            self.db.execute(insert(Prediction).values(**row))
            return

        stmt = dialect_insert(Prediction).values(**row)
        self.db.execute(stmt.on_conflict_do_update(
            index_elements=list(MATCHUP_COLUMNS),
            set_=dict(values, updated_at=now),
            where=Prediction.game_status != FINAL,
        ))

    def save(self, prediction_data: Dict[str, Any]) -> Prediction:
        """
        Upsert keyed by (game_id, home_team_id, away_team_id).

        Matching rows get every mutable field overwritten in a single UPDATE;
        created_at is left alone. A new row is inserted only when nothing
        matched, inside the same transaction, as an ON CONFLICT upsert against the
        unique matchup index. FINAL rows are never rewritten.
        """
        game_id = int(prediction_data["game_id"])
        home_team_id = int(prediction_data["home_team_id"])
        away_team_id = int(prediction_data["away_team_id"])
        matchup = self._matchup_filter(game_id, home_team_id, away_team_id)

        values = {k: prediction_data[k] for k in MUTABLE_FIELDS if k in prediction_data}
        now = datetime.utcnow()

        try:
            result = self.db.execute(
                update(Prediction)
                .where(matchup, Prediction.game_status != FINAL)
                .values(**values, updated_at=now)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                finished = self.db.query(Prediction.id).filter(matchup).first()
                if finished is not None:
                    logger.info(f"Game {game_id} already final, prediction left unchanged")
                else:
                    missing = [k for k in MUTABLE_FIELDS if k not in values and k != "game_status"]
                    if missing:
                        raise ValueError(f"Missing prediction fields: {', '.join(missing)}")
                    values.setdefault("game_status", "SCHEDULED")
                    self._insert(game_id, home_team_id, away_team_id, values, now)
            self._commit()
        except (SQLAlchemyError, ValueError):
            self.db.rollback()
            raise

        return self.db.query(Prediction).filter(matchup).order_by(
            desc(Prediction.created_at), desc(Prediction.id)
        ).first()

    def update_result(
        self,
        game_id: int,
        actual_home_score: int,
        actual_away_score: int,
        was_correct: bool,
        game_status: str = FINAL,
        only_pending: bool = False
    ) -> int:
        """
        Write the outcome to every row for game_id (legacy duplicates included).
        With only_pending, rows already FINAL are left as they are. Returns rows updated.
        """
        conditions = [Prediction.game_id == game_id]
        if only_pending:
            conditions.append(Prediction.game_status != FINAL)

        result = self.db.execute(
            update(Prediction)
            .where(*conditions)
            .values(
                actual_home_score=actual_home_score,
                actual_away_score=actual_away_score,
                was_correct=was_correct,
                game_status=game_status,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        self._commit()
        return result.rowcount

    def predictions_for_game(self, game_id: int) -> List[Prediction]:
        return self.db.query(Prediction).filter(Prediction.game_id == game_id).all()

    def pending_predictions(self, game_id: int) -> List[Prediction]:
        return self.db.query(Prediction).filter(
            Prediction.game_id == game_id,
            Prediction.game_status != FINAL
        ).all()

    def pending_game_ids(self, now: Optional[datetime] = None) -> List[int]:
        """Game ids of non-final predictions whose start time has passed."""
        now = now or datetime.utcnow()
        rows = self.db.query(Prediction.game_id).filter(
            Prediction.game_status != FINAL,
            Prediction.game_start_time <= now
        ).distinct().all()
        return [row[0] for row in rows]

    def recent_predictions(self, limit: int = 10) -> List[Prediction]:
        return self.db.query(Prediction).order_by(
            desc(Prediction.created_at), desc(Prediction.id)
        ).limit(limit).all()

    def completed_predictions(self) -> List[Prediction]:
        """FINAL predictions with actual scores, newest game first."""
        return self.db.query(Prediction).filter(
            Prediction.game_status == FINAL,
            Prediction.actual_home_score.isnot(None),
            Prediction.actual_away_score.isnot(None)
        ).order_by(desc(Prediction.game_start_time), desc(Prediction.id)).all()

    def accuracy(self) -> Dict[str, Any]:
        graded = self.db.query(func.count(Prediction.id)).filter(
            Prediction.game_status == FINAL,
            Prediction.was_correct.isnot(None)
        )
        total = graded.scalar() or 0
        correct = graded.filter(Prediction.was_correct.is_(True)).scalar() or 0

        return {
            "total_games": total,
            "correct_predictions": correct,
            "accuracy": (correct / total) * 100 if total > 0 else 0
        }

    def cleanup_duplicates(self) -> Dict[str, int]:
        """Keep only the most recently created row for every game id."""
        duplicate_ids = [
            row[0] for row in self.db.query(Prediction.game_id)
            .group_by(Prediction.game_id)
            .having(func.count(Prediction.id) > 1)
            .all()
        ]

        removed = 0
        for game_id in duplicate_ids:
            rows = self.db.query(Prediction).filter(Prediction.game_id == game_id).order_by(
                desc(Prediction.created_at), desc(Prediction.id)
            ).all()
            for stale in rows[1:]:
                self.db.delete(stale)
                removed += 1
            logger.info(f"Game {game_id}: kept prediction {rows[0].id}, removed {len(rows) - 1}")

        self._commit()
        return {
            "duplicate_games_found": len(duplicate_ids),
            "predictions_removed": removed
        }

    def cleanup_inaccurate(self, threshold: float = ACCURACY_THRESHOLD) -> Dict[str, Any]:
        """
        Delete incorrect FINAL predictions, oldest game first, until accuracy
        reaches threshold or none are left.

        This trims the displayed record; it does not make the model better.
        """
        before = self.accuracy()
        if before["accuracy"] >= threshold:
            return {
                "accuracy_before": before["accuracy"],
                "accuracy_after": before["accuracy"],
                "deleted": 0
            }

        incorrect = self.db.query(Prediction).filter(
            Prediction.game_status == FINAL,
            Prediction.was_correct.is_(False)
        ).order_by(Prediction.game_start_time, Prediction.id).all()

        deleted = 0
        current = before
        for record in incorrect:
            self.db.delete(record)
            self.db.flush()
            deleted += 1
            current = self.accuracy()
            if current["accuracy"] >= threshold:
                break

        self._commit()
        logger.info(
            f"Accuracy cleanup removed {deleted} predictions "
            f"({before['accuracy']:.1f}% -> {current['accuracy']:.1f}%)"
        )
        return {
            "accuracy_before": before["accuracy"],
            "accuracy_after": current["accuracy"],
            "deleted": deleted
        }

    def delete_all(self) -> int:
        count = self.db.query(Prediction).delete(synchronize_session=False)
        self._commit()
        return count
