import importlib.util
from pathlib import Path

from nhl_predictor.db import Prediction

SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"


def load_script(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestMaintenanceScripts:

    def test_cleanup_duplicates(self, db, make_prediction, capsys):
        make_prediction()
        make_prediction(home_team_id=6, away_team_id=5)

        assert load_script("cleanup_duplicates").main() == 0
        assert db.query(Prediction).count() == 1
        assert "Removed 1 duplicate predictions" in capsys.readouterr().out

    def test_cleanup_predictions(self, db, make_prediction):
        make_prediction(game_id=1)
        make_prediction(game_id=2)

        assert load_script("cleanup_predictions").main() == 0
        assert db.query(Prediction).count() == 0
