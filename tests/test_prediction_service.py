"""
Tests for the prediction entry points.
"""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from nhl_predictor.db import Prediction
from nhl_predictor.exceptions import DataUnavailable
from nhl_predictor.services import prediction_service
from nhl_predictor.services.prediction_store import PredictionStore


def stats_by_team(strong_stats, weak_stats):
    # NHL stats ids: 6 Boston (strong), 5 Pittsburgh (weak)
    async def fake_get_team_stats(team_id, *args):
        if team_id == 6:
            return strong_stats
        if team_id == 5:
            return weak_stats
        raise DataUnavailable(team_id)
    return fake_get_team_stats


class TestIsPredictionCorrect:

    def test_home_win_predicted_and_happened(self):
        assert prediction_service.is_prediction_correct(3.2, 2.1, 4, 1) is True

    def test_away_win_predicted_and_happened(self):
        assert prediction_service.is_prediction_correct(2.0, 3.0, 1, 4) is True

    def test_wrong_winner(self):
        assert prediction_service.is_prediction_correct(3.2, 2.1, 1, 4) is False

    def test_predicted_tie_counts_as_away(self):
        assert prediction_service.is_prediction_correct(2.5, 2.5, 2, 3) is True
        assert prediction_service.is_prediction_correct(2.5, 2.5, 3, 2) is False


class TestPredict:

    @pytest.mark.asyncio
    async def test_maps_espn_ids_and_predicts(self, strong_stats, weak_stats):
        fake = AsyncMock(side_effect=stats_by_team(strong_stats, weak_stats))

        with patch("nhl_predictor.services.nhl_stats.get_team_stats", fake):
            result = await prediction_service.predict(None, "1", "16")

        assert result.home_team_win_probability > 90
        requested = sorted(call.args[0] for call in fake.await_args_list)
        assert requested == [5, 6]

    @pytest.mark.asyncio
    async def test_saves_when_game_id_given(self, db, strong_stats, weak_stats):
        start = datetime(2024, 11, 1, 23, 0)
        with patch("nhl_predictor.services.nhl_stats.get_team_stats",
                   AsyncMock(side_effect=stats_by_team(strong_stats, weak_stats))):
            result = await prediction_service.predict(db, "1", "16", game_id=401, game_start_time=start)

        stored = PredictionStore(db).predictions_for_game(401)
        assert len(stored) == 1
        assert stored[0].home_team_id == 1
        assert stored[0].away_team_id == 16
        assert stored[0].home_win_probability == result.home_team_win_probability
        assert stored[0].predicted_home_score == result.predicted_score.home
        assert stored[0].game_start_time == start
        assert stored[0].game_status == "SCHEDULED"

    @pytest.mark.asyncio
    async def test_repeat_prediction_keeps_one_row(self, db, strong_stats, weak_stats):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats",
                   AsyncMock(side_effect=stats_by_team(strong_stats, weak_stats))):
            await prediction_service.predict(db, "1", "16", game_id=401)
            await prediction_service.predict(db, "1", "16", game_id=401)

        assert db.query(Prediction).count() == 1

    @pytest.mark.asyncio
    async def test_not_saved_without_game_id(self, db, strong_stats, weak_stats):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats",
                   AsyncMock(side_effect=stats_by_team(strong_stats, weak_stats))):
            await prediction_service.predict(db, "1", "16")

        assert db.query(Prediction).count() == 0

    @pytest.mark.asyncio
    async def test_unknown_team_id(self):
        with pytest.raises(ValueError, match="Invalid team ID"):
            await prediction_service.predict(None, "999", "1")

    @pytest.mark.asyncio
    async def test_missing_stats_propagate(self, strong_stats, weak_stats):
        with patch("nhl_predictor.services.nhl_stats.get_team_stats",
                   AsyncMock(side_effect=stats_by_team(strong_stats, weak_stats))):
            with pytest.raises(DataUnavailable):
                await prediction_service.predict(None, "1", "2")


class TestRecordOutcome:

    def test_derives_correctness(self, db, make_prediction):
        make_prediction(predicted_home_score=3.0, predicted_away_score=2.0)

        updated = prediction_service.record_outcome(db, 401, 5, 2)

        assert updated == 1
        row = PredictionStore(db).predictions_for_game(401)[0]
        assert row.was_correct is True
        assert row.game_status == "FINAL"
        assert row.actual_home_score == 5

    def test_explicit_correctness(self, db, make_prediction):
        make_prediction()
        prediction_service.record_outcome(db, 401, 5, 2, was_correct=False)
        assert PredictionStore(db).predictions_for_game(401)[0].was_correct is False

    def test_uses_latest_prediction(self, db, make_prediction):
        make_prediction(predicted_home_score=3.0, predicted_away_score=2.0, created_at=datetime(2024, 11, 1, 8))
        make_prediction(home_team_id=6, away_team_id=5, predicted_home_score=1.0, predicted_away_score=2.0,
                        created_at=datetime(2024, 11, 1, 20))

        prediction_service.record_outcome(db, 401, 1, 3)

        rows = PredictionStore(db).predictions_for_game(401)
        assert all(row.was_correct is True for row in rows)

    def test_unknown_game(self, db):
        with pytest.raises(LookupError):
            prediction_service.record_outcome(db, 999, 1, 0)

    def test_accuracy(self, db, make_prediction):
        make_prediction()
        prediction_service.record_outcome(db, 401, 4, 1)
        assert prediction_service.get_accuracy(db)["accuracy"] == 100.0

    def test_graded_prediction_not_rewritten(self, db, make_prediction):
        make_prediction(game_status="FINAL", actual_home_score=4, actual_away_score=1, was_correct=True)

        updated = prediction_service.record_outcome(db, 401, 0, 5)

        assert updated == 0
        row = PredictionStore(db).predictions_for_game(401)[0]
        assert row.game_status == "FINAL"
        assert (row.actual_home_score, row.actual_away_score) == (4, 1)
        assert row.was_correct is True

    def test_only_pending_rows_graded(self, db, make_prediction):
        graded = make_prediction(game_status="FINAL", actual_home_score=4, actual_away_score=1, was_correct=True)
        pending = make_prediction(home_team_id=6, away_team_id=5, predicted_home_score=1.0,
                                  predicted_away_score=2.0, created_at=datetime(2024, 11, 2))

        updated = prediction_service.record_outcome(db, 401, 4, 1)

        assert updated == 1
        db.refresh(graded)
        db.refresh(pending)
        assert graded.was_correct is True
        assert graded.actual_away_score == 1
        assert pending.game_status == "FINAL"
        assert pending.was_correct is False
