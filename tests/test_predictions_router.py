from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from nhl_predictor.exceptions import DataUnavailable, UpstreamUnavailable
from nhl_predictor.main import app


@pytest.fixture
def team_stats(strong_stats, weak_stats):
    async def _get(team_id, *args):
        return strong_stats if team_id == 6 else weak_stats
    return AsyncMock(side_effect=_get)


class TestPredictEndpoint:

    def test_predict_matchup(self, client, team_stats):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats", team_stats):
            response = client.get("/predictions/predict/1/16")

        assert response.status_code == 200
        data = response.json()
        assert data["home_team_win_probability"] > 90
        assert data["home_team_win_probability"] + data["away_team_win_probability"] == pytest.approx(100)
        assert data["fallback"] is False
        assert data["factors"]["home_advantage"]["home_ice_bonus"] == 0.1
        assert data["factors"]["away_advantage"]["home_ice_bonus"] is None
        assert data["factors"]["confidence"] == 1.0

    def test_predict_and_save(self, client, team_stats):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats", team_stats):
            client.get("/predictions/predict/1/16?game_id=401")
            client.get("/predictions/predict/1/16?game_id=401")

        response = client.get("/predictions/game/401")
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_invalid_team(self, client):
        response = client.get("/predictions/predict/999/1")
        assert response.status_code == 400
        assert "Invalid team ID" in response.json()["detail"]

    def test_no_stats(self, client):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats", AsyncMock(side_effect=DataUnavailable(6))):
            response = client.get("/predictions/predict/1/16")
        assert response.status_code == 404

    def test_upstream_down(self, client):
        failing = AsyncMock(side_effect=UpstreamUnavailable("NHL stats API", "timeout"))
        with patch("nhl_predictor.services.nhl_stats.get_team_stats", failing):
            response = client.get("/predictions/predict/1/16")
        assert response.status_code == 503


class TestOutcomeEndpoint:

    def test_record_outcome(self, client, make_prediction):
        make_prediction()

        response = client.post("/predictions/401/outcome", json={"actual_home_score": 4, "actual_away_score": 2})

        assert response.status_code == 200
        assert response.json() == {"game_id": 401, "predictions_updated": 1}
        stored = client.get("/predictions/game/401").json()[0]
        assert stored["game_status"] == "FINAL"
        assert stored["was_correct"] is True

    def test_unknown_game(self, client):
        response = client.post("/predictions/999/outcome", json={"actual_home_score": 4, "actual_away_score": 2})
        assert response.status_code == 404

    def test_graded_game_left_unchanged(self, client, make_prediction):
        make_prediction(game_status="FINAL", actual_home_score=4, actual_away_score=1, was_correct=True)

        response = client.post("/predictions/401/outcome",
                               json={"actual_home_score": 0, "actual_away_score": 5, "game_status": "LIVE"})

        assert response.status_code == 200
        assert response.json()["predictions_updated"] == 0
        stored = client.get("/predictions/game/401").json()[0]
        assert stored["game_status"] == "FINAL"
        assert stored["actual_home_score"] == 4
        assert stored["was_correct"] is True

    def test_negative_score_rejected(self, client, make_prediction):
        make_prediction()
        response = client.post("/predictions/401/outcome", json={"actual_home_score": -1, "actual_away_score": 2})
        assert response.status_code == 422


class TestReadEndpoints:

    def test_accuracy_empty(self, client):
        response = client.get("/predictions/accuracy")
        assert response.status_code == 200
        assert response.json() == {"total_games": 0, "correct_predictions": 0, "accuracy": 0}

    def test_accuracy(self, client, make_prediction):
        make_prediction(game_id=1, game_status="FINAL", was_correct=True)
        make_prediction(game_id=2, game_status="FINAL", was_correct=False)

        data = client.get("/predictions/accuracy").json()
        assert data["total_games"] == 2
        assert data["accuracy"] == 50.0

    def test_recent(self, client, make_prediction):
        for day in range(1, 4):
            make_prediction(game_id=day, created_at=datetime(2024, 11, day))

        data = client.get("/predictions/recent?limit=2").json()
        assert [p["game_id"] for p in data] == [3, 2]

    def test_recent_limit_bounds(self, client):
        assert client.get("/predictions/recent?limit=0").status_code == 422
        assert client.get("/predictions/recent?limit=101").status_code == 422

    def test_completed(self, client, make_prediction):
        make_prediction(game_id=1, game_status="FINAL", was_correct=True, actual_home_score=3, actual_away_score=1)
        make_prediction(game_id=2)

        data = client.get("/predictions/completed").json()
        assert [p["game_id"] for p in data] == [1]
        assert data[0]["actual_home_score"] == 3

    def test_game_not_found(self, client):
        assert client.get("/predictions/game/12345").status_code == 404


class TestMaintenanceEndpoints:

    def test_cleanup_duplicates(self, client, make_prediction):
        make_prediction(created_at=datetime(2024, 11, 1, 8))
        make_prediction(home_team_id=6, away_team_id=5, created_at=datetime(2024, 11, 1, 9))

        response = client.post("/predictions/maintenance/duplicates")

        assert response.json() == {"duplicate_games_found": 1, "predictions_removed": 1}
        assert len(client.get("/predictions/game/401").json()) == 1

    def test_cleanup_inaccurate(self, client, make_prediction):
        make_prediction(game_id=1, game_status="FINAL", was_correct=True)
        make_prediction(game_id=2, game_status="FINAL", was_correct=False)

        response = client.post("/predictions/maintenance/inaccurate?threshold=60")

        assert response.json() == {"accuracy_before": 50.0, "accuracy_after": 100.0, "deleted": 1}

    def test_threshold_validated(self, client):
        assert client.post("/predictions/maintenance/inaccurate?threshold=150").status_code == 422


class TestJobEndpoints:

    def test_predict_today(self, client):
        with patch("nhl_predictor.services.espn.get_games", AsyncMock(return_value=[])):
            response = client.post("/predictions/jobs/predict-today")
        assert response.json() == {"job": "predict_todays_games", "count": 0}

    def test_predict_today_upstream_down(self, client):
        with patch("nhl_predictor.services.espn.get_games", AsyncMock(side_effect=UpstreamUnavailable("ESPN"))):
            response = client.post("/predictions/jobs/predict-today")
        assert response.status_code == 503

    def test_update_results(self, client, make_prediction, game_factory):
        make_prediction()
        with patch("nhl_predictor.services.espn.get_games", AsyncMock(return_value=[game_factory()])):
            response = client.post("/predictions/jobs/update-results")
        assert response.json() == {"job": "update_results", "count": 1}


class TestUnhandledErrors:

    def test_internal_error_shape(self):
        with patch("nhl_predictor.services.prediction_service.get_accuracy", side_effect=RuntimeError("boom")):
            with TestClient(app, raise_server_exceptions=False) as test_client:
                response = test_client.get("/predictions/accuracy")

        assert response.status_code == 500
        assert response.json() == {"detail": "An internal error occurred", "type": "RuntimeError"}
