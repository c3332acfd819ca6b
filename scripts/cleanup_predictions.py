#!/usr/bin/env python3
"""Delete every stored prediction."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nhl_predictor.db import SessionLocal, init_db
from nhl_predictor.services.prediction_store import PredictionStore


def main() -> int:
    print("Starting database cleanup...")
    init_db()
    db = SessionLocal()
    try:
        deleted = PredictionStore(db).delete_all()
    except Exception as e:
        print(f"Cleanup failed: {e}")
        return 1
    finally:
        db.close()

    print(f"Deleted {deleted} predictions")
    return 0


if __name__ == "__main__":
    sys.exit(main())
