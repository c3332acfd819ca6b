"""
Predictions API Router

Matchup predictions, outcome recording, accuracy and maintenance jobs.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from nhl_predictor.config import ACCURACY_THRESHOLD
from nhl_predictor.db import get_db
from nhl_predictor.exceptions import DataUnavailable, UpstreamUnavailable
from nhl_predictor.schemas.predictions import (
    PredictionResultRead, PredictionRead, OutcomeCreate, OutcomeRecorded,
    AccuracySummary, DuplicateCleanupResult, AccuracyCleanupResult, JobResult
)
from nhl_predictor.services import prediction_service
from nhl_predictor.services.prediction_store import PredictionStore
from nhl_predictor.services.result_reconciler import ResultReconciler


router = APIRouter(prefix="/predictions", tags=["Predictions"])


@router.get("/predict/{home_team_id}/{away_team_id}", response_model=PredictionResultRead)
async def predict_matchup(
    home_team_id: str,
    away_team_id: str,
    game_id: Optional[int] = Query(None, description="ESPN event id; the prediction is saved when given"),
    db: Session = Depends(get_db)
):
    """
    Predict a matchup by ESPN team ids.

    Returns win probabilities, expected score and the factors behind them.
    """
    try:
        result = await prediction_service.predict(db, home_team_id, away_team_id, game_id=game_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return result.to_dict()


@router.post("/{game_id}/outcome", response_model=OutcomeRecorded)
async def record_outcome(
    game_id: int,
    outcome: OutcomeCreate,
    db: Session = Depends(get_db)
):
    """Record a game's final score and grade its pending predictions. FINAL predictions are left as they are."""
    try:
        updated = prediction_service.record_outcome(
            db,
            game_id,
            outcome.actual_home_score,
            outcome.actual_away_score,
            was_correct=outcome.was_correct
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"game_id": game_id, "predictions_updated": updated}


@router.get("/accuracy", response_model=AccuracySummary)
async def get_accuracy(db: Session = Depends(get_db)):
    """Accuracy over graded FINAL predictions."""
    return prediction_service.get_accuracy(db)


@router.get("/recent", response_model=List[PredictionRead])
async def get_recent_predictions(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return PredictionStore(db).recent_predictions(limit)


@router.get("/completed", response_model=List[PredictionRead])
async def get_completed_predictions(db: Session = Depends(get_db)):
    """Graded predictions, most recent game first."""
    return PredictionStore(db).completed_predictions()


@router.get("/game/{game_id}", response_model=List[PredictionRead])
async def get_game_predictions(game_id: int, db: Session = Depends(get_db)):
    predictions = PredictionStore(db).predictions_for_game(game_id)
    if not predictions:
        raise HTTPException(status_code=404, detail=f"No prediction stored for game {game_id}")
    return predictions


@router.post("/maintenance/duplicates", response_model=DuplicateCleanupResult)
async def cleanup_duplicates(db: Session = Depends(get_db)):
    """Keep only the newest prediction for each game."""
    return PredictionStore(db).cleanup_duplicates()


@router.post("/maintenance/inaccurate", response_model=AccuracyCleanupResult)
async def cleanup_inaccurate(
    threshold: float = Query(ACCURACY_THRESHOLD, ge=0, le=100),
    db: Session = Depends(get_db)
):
    """Prune the oldest incorrect predictions until accuracy reaches the threshold."""
    return PredictionStore(db).cleanup_inaccurate(threshold)


@router.post("/jobs/predict-today", response_model=JobResult)
async def predict_todays_games(db: Session = Depends(get_db)):
    try:
        count = await ResultReconciler(db).predict_todays_games()
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"job": "predict_todays_games", "count": count}


@router.post("/jobs/update-results", response_model=JobResult)
async def update_results(db: Session = Depends(get_db)):
    count = await ResultReconciler(db).update_results()
    return {"job": "update_results", "count": count}
