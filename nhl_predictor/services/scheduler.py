"""
Background job that keeps predictions current.

Runs once at startup, then every PREDICTION_REFRESH_HOURS: predict newly
scheduled games first, then reconcile finished ones.
"""

import asyncio
from datetime import datetime
from typing import Optional, Dict, Any

from nhl_predictor.config import PREDICTION_REFRESH_HOURS
from nhl_predictor.db import SessionLocal
from nhl_predictor.services.result_reconciler import ResultReconciler
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)


async def run_prediction_cycle() -> Dict[str, Any]:
    """
    One predict-then-reconcile pass with its own session. A failed prediction
    pass is logged and counted as 0; grading still runs.
    """
    db = SessionLocal()
    try:
        reconciler = ResultReconciler(db)
        try:
            predicted = await reconciler.predict_todays_games()
        except Exception as e:
            logger.error(f"Predicting today's games failed, continuing with results: {e}")
            db.rollback()
            predicted = 0
        updated = await reconciler.update_results()
        return {"predicted": predicted, "results_updated": updated}
    finally:
        db.close()


class PredictionScheduler:
    """Background job for predicting games and grading results."""

    def __init__(self, interval_hours: float = PREDICTION_REFRESH_HOURS):
        self.is_running = False
        self._task: Optional[asyncio.Task] = None
        self.interval_seconds = interval_hours * 3600
        self.last_run: Optional[datetime] = None
        self.last_result: Optional[Dict[str, Any]] = None

    async def start(self):
        """Start the prediction scheduler."""
        if self.is_running:
            return

        self.is_running = True
        self._task = asyncio.create_task(self._run_scheduler())
        logger.info("Prediction scheduler started")

    async def stop(self):
        """Stop the prediction scheduler."""
        self.is_running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Prediction scheduler stopped")

    async def run_once(self) -> Optional[Dict[str, Any]]:
        try:
            logger.info("Running scheduled task: prediction cycle")
            result = await run_prediction_cycle()
            self.last_result = result
            logger.info(f"Completed prediction cycle: {result}")
            return result
        except Exception as e:
            logger.error(f"Error in prediction cycle: {e}")
            return None
        finally:
            self.last_run = datetime.utcnow()

    async def _run_scheduler(self):
        """Main scheduler loop."""
        while self.is_running:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_hours": self.interval_seconds / 3600,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_result": self.last_result,
        }


prediction_scheduler = PredictionScheduler()
