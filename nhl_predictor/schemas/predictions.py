from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class TeamAdvantageRead(BaseModel):
    offense: float
    defense: float
    special: float
    efficiency_factor: float
    momentum_factor: float
    home_ice_bonus: Optional[float] = None


class PredictedScoreRead(BaseModel):
    home: float
    away: float


class PredictionFactorsRead(BaseModel):
    home_advantage: TeamAdvantageRead
    away_advantage: TeamAdvantageRead
    game_pace: float
    confidence: float


class PredictionResultRead(BaseModel):
    home_team_win_probability: float
    away_team_win_probability: float
    predicted_score: PredictedScoreRead
    factors: PredictionFactorsRead
    fallback: bool = False


class PredictionRead(BaseModel):
    id: int
    game_id: int
    home_team_id: int
    away_team_id: int
    predicted_home_score: float
    predicted_away_score: float
    home_win_probability: float
    away_win_probability: float
    confidence: float
    game_start_time: datetime
    game_status: str
    actual_home_score: Optional[int] = None
    actual_away_score: Optional[int] = None
    was_correct: Optional[bool] = None
    created_at: datetime

    class Config:
        from_attributes = True


class OutcomeCreate(BaseModel):
    actual_home_score: int = Field(..., ge=0, description="Final home goals")
    actual_away_score: int = Field(..., ge=0, description="Final away goals")
    was_correct: Optional[bool] = Field(None, description="Derived from the stored prediction when omitted")


class OutcomeRecorded(BaseModel):
    game_id: int
    predictions_updated: int


class AccuracySummary(BaseModel):
    total_games: int
    correct_predictions: int
    accuracy: float


class DuplicateCleanupResult(BaseModel):
    duplicate_games_found: int
    predictions_removed: int


class AccuracyCleanupResult(BaseModel):
    accuracy_before: float
    accuracy_after: float
    deleted: int


class JobResult(BaseModel):
    job: str
    count: int
