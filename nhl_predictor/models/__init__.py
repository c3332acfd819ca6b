from nhl_predictor.models.team_stats import TeamStats, normalize_team_stats, select_season
from nhl_predictor.models.advantage import TeamAdvantage, compute_advantage
from nhl_predictor.models.nhl import NHLModel, PredictionResult
