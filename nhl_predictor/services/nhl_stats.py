"""
NHL Stats API Integration Service

Season summaries per team from the public NHL stats REST API - No API key required.
Base URL: https://api.nhle.com/stats/rest/en/team
"""

from typing import List, Dict, Any

from nhl_predictor.config import NHL_STATS_API_BASE, CURRENT_SEASON_ID
from nhl_predictor.models.team_stats import TeamStats, normalize_team_stats, select_season
from nhl_predictor.services.http import make_request, get_cached, set_cached
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

SOURCE = "NHL stats API"


async def get_season_stats(team_id: int) -> List[Dict[str, Any]]:
    """
    Get every season summary record for a team.

    Args:
        team_id: NHL stats team id (not the ESPN id)

    Returns:
        List of raw season records, possibly empty
    """
    cache_key = f"nhl_season_stats_{team_id}"
    cached = get_cached(cache_key)
    if cached is not None:
        return cached

    url = f"{NHL_STATS_API_BASE}/summary"
    data = await make_request(SOURCE, url, {"cayenneExp": f"teamId={team_id}"})

    records = data.get("data") if isinstance(data, dict) else None
    records = records if isinstance(records, list) else []
    logger.info(f"Fetched {len(records)} season records for team {team_id}")

    set_cached(cache_key, records)
    return records


async def get_team_stats(team_id: int, season_id: int = CURRENT_SEASON_ID) -> TeamStats:
    """
    Get normalized current-season stats for a team.

    Raises:
        DataUnavailable: the provider has no season records for the team
        UpstreamUnavailable: the provider request failed
    """
    records = await get_season_stats(team_id)
    record = select_season(records, team_id, season_id)
    if record.get("seasonId") != season_id:
        logger.warning(
            f"Season {season_id} missing for team {team_id}, using season {record.get('seasonId')}"
        )
    return normalize_team_stats(record)


async def get_historical_stats(team_id: int) -> List[Dict[str, Any]]:
    """All season records for a team, unnormalized."""
    return await get_season_stats(team_id)
