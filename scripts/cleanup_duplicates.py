#!/usr/bin/env python3
"""
Remove duplicate predictions, keeping the newest row for each game, then add
the unique matchup index if the table predates it.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nhl_predictor.db import SessionLocal, ensure_matchup_index, init_db
from nhl_predictor.services.prediction_store import PredictionStore


def main() -> int:
    print("Starting duplicate prediction cleanup...")
    init_db()
    db = SessionLocal()
    try:
        result = PredictionStore(db).cleanup_duplicates()
        ensure_matchup_index()
    except Exception as e:
        print(f"Error during cleanup: {e}")
        return 1
    finally:
        db.close()

    print("Cleanup completed successfully:")
    print(f"- Found {result['duplicate_games_found']} games with duplicate predictions")
    print(f"- Removed {result['predictions_removed']} duplicate predictions")
    return 0


if __name__ == "__main__":
    sys.exit(main())
