from sqlalchemy import (
    create_engine, Column, Integer, BigInteger, String, Float, DateTime, Boolean, Index
)
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from datetime import datetime
from nhl_predictor.config import DATABASE_URL

is_sqlite = DATABASE_URL.startswith("sqlite")
is_memory = is_sqlite and (DATABASE_URL in ("sqlite://", "sqlite:///") or ":memory:" in DATABASE_URL)
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine_options = {
    "pool_pre_ping": True,
}
if is_memory:
    # One shared connection, otherwise each session gets its own empty database
    engine_options["poolclass"] = StaticPool
elif not is_sqlite:
    engine_options["pool_recycle"] = 300

engine = create_engine(DATABASE_URL, connect_args=connect_args, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


MATCHUP_INDEX = "uq_predictions_matchup"
MATCHUP_COLUMNS = ("game_id", "home_team_id", "away_team_id")


class Prediction(Base):
    """
    One stored prediction per game.

    (game_id, home_team_id, away_team_id) is unique. game_id alone is not:
    rows written by the old create-only save path can share a game id under a
    different team pairing, and PredictionStore.cleanup_duplicates removes them.
    """
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(BigInteger, nullable=False, index=True)
    home_team_id = Column(Integer, nullable=False)
    away_team_id = Column(Integer, nullable=False)

    predicted_home_score = Column(Float, nullable=False)
    predicted_away_score = Column(Float, nullable=False)
    home_win_probability = Column(Float, nullable=False)
    away_win_probability = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False, default=0.0)

    game_start_time = Column(DateTime, nullable=False, index=True)
    game_status = Column(String(20), nullable=False, default="SCHEDULED", index=True)

    actual_home_score = Column(Integer, nullable=True)
    actual_away_score = Column(Integer, nullable=True)
    was_correct = Column(Boolean, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index(MATCHUP_INDEX, *MATCHUP_COLUMNS, unique=True),
    )

    @property
    def predicted_home_win(self) -> bool:
        return self.predicted_home_score > self.predicted_away_score


def init_db():
    Base.metadata.create_all(bind=engine)


def ensure_matchup_index():
    """
    Add the unique matchup index to a predictions table created before it
    existed. Same-matchup duplicates must be removed first.
    """
    for index in Prediction.__table__.indexes:
        if index.name == MATCHUP_INDEX:
            index.create(bind=engine, checkfirst=True)
