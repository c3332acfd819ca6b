import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from nhl_predictor.db import Base, SessionLocal, engine, Prediction
from nhl_predictor.main import app
from nhl_predictor.models.team_stats import normalize_team_stats
from nhl_predictor.services.http import clear_cache


STRONG_TEAM = {
    "seasonId": 20242025,
    "goalsForPerGame": 3.5,
    "goalsAgainstPerGame": 2.5,
    "shotsForPerGame": 32,
    "shotsAgainstPerGame": 28,
    "powerPlayPct": 22,
    "penaltyKillPct": 80,
    "faceoffWinPct": 51,
    "shootingPct": 11,
    "savePct": 90,
    "gamesPlayed": 50,
    "wins": 30,
}

WEAK_TEAM = {
    "seasonId": 20242025,
    "goalsForPerGame": 2.5,
    "goalsAgainstPerGame": 3.5,
    "shotsForPerGame": 28,
    "shotsAgainstPerGame": 32,
    "powerPlayPct": 18,
    "penaltyKillPct": 76,
    "faceoffWinPct": 48,
    "shootingPct": 9,
    "savePct": 88,
    "gamesPlayed": 50,
    "wins": 20,
}


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    clear_cache()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def strong_stats():
    return normalize_team_stats(STRONG_TEAM)


@pytest.fixture
def weak_stats():
    return normalize_team_stats(WEAK_TEAM)


@pytest.fixture
def make_prediction(db):
    """Insert a prediction row directly, bypassing the upsert."""
    def _make(**overrides):
        start = datetime(2024, 11, 1, 23, 0)
        values = {
            "game_id": 401,
            "home_team_id": 1,
            "away_team_id": 2,
            "predicted_home_score": 3.0,
            "predicted_away_score": 2.0,
            "home_win_probability": 60.0,
            "away_win_probability": 40.0,
            "confidence": 0.5,
            "game_start_time": start,
            "game_status": "SCHEDULED",
            "created_at": start,
        }
        values.update(overrides)
        record = Prediction(**values)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record
    return _make


def make_game(
    game_id=401,
    home_score=4,
    away_score=1,
    completed=True,
    state="post",
    description="Final",
    home_id="1",
    away_id="2",
    game_date="2024-11-01T23:00Z",
):
    """A game in the shape returned by the ESPN client."""
    return {
        "id": game_id,
        "date": game_date,
        "status": {"completed": completed, "state": state, "description": description},
        "competitors": [
            {"home_away": "home", "team_id": home_id, "team_name": "", "abbreviation": "", "score": home_score},
            {"home_away": "away", "team_id": away_id, "team_name": "", "abbreviation": "", "score": away_score},
        ],
    }


@pytest.fixture
def game_factory():
    return make_game


@pytest.fixture
def raw_team_records():
    return {"strong": dict(STRONG_TEAM), "weak": dict(WEAK_TEAM)}
