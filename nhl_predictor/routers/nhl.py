"""
NHL API Router

Teams, games and raw team stats from ESPN and the NHL stats API.
"""

from fastapi import APIRouter, HTTPException, Query
from datetime import date, datetime
from typing import Optional

from nhl_predictor.exceptions import DataUnavailable, UpstreamUnavailable
from nhl_predictor.services import espn, nhl_stats
from nhl_predictor.utils.status import add_time_display, normalize_status


router = APIRouter(prefix="/nhl", tags=["NHL"])


@router.get("/teams")
async def get_teams():
    """
    Get all NHL teams.

    Returns ESPN ids alongside the NHL stats ids used for predictions.
    """
    try:
        teams = await espn.get_teams()
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "count": len(teams),
        "teams": teams
    }


@router.get("/games")
async def get_games(game_date: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today")):
    """
    Get NHL games for a date.
    """
    if game_date:
        try:
            target_date = datetime.strptime(game_date, "%Y-%m-%d").date()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")
    else:
        target_date = date.today()

    try:
        games = await espn.get_games(target_date)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "date": target_date.isoformat(),
        "count": len(games),
        "games": [
            {
                **game,
                "game_status": normalize_status(game.get("status")),
                "game_time_display": add_time_display(game.get("date")),
            }
            for game in games
        ]
    }


@router.get("/stats/{team_id}")
async def get_team_stats(team_id: int):
    """
    Current-season normalized stats.

    Args:
        team_id: NHL stats team id
    """
    try:
        stats = await nhl_stats.get_team_stats(team_id)
    except DataUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return stats.to_dict()


@router.get("/history/{team_id}")
async def get_team_history(team_id: int):
    """Every season record the stats API has for a team."""
    try:
        seasons = await nhl_stats.get_historical_stats(team_id)
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "team_id": team_id,
        "count": len(seasons),
        "seasons": seasons
    }
