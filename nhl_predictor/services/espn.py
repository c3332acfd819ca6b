"""
ESPN NHL Game Source

Uses ESPN's hidden API endpoints - No API key required.
Base URL: https://site.api.espn.com/apis/site/v2/sports/hockey/nhl
"""

import math
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from nhl_predictor.config import ESPN_NHL_BASE
from nhl_predictor.services.http import make_request, get_cached, set_cached
from nhl_predictor.utils.team_mapping import find_nhl_team_id
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

SOURCE = "ESPN"


def _parse_score(value: Any) -> Optional[int]:
    """ESPN sends scores as strings ("3"), numbers, or {"value": 3.0} blocks."""
    if isinstance(value, dict):
        value = value.get("value", value.get("displayValue"))
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_status(status_type: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "completed": status_type.get("completed") is True,
        "state": status_type.get("state", ""),
        "description": status_type.get("description") or status_type.get("detail") or "",
    }


def _parse_competition(game_id: Any, game_date: Any, competition: Dict[str, Any],
                       status_type: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        parsed_id = int(game_id)
    except (TypeError, ValueError):
        return None

    competitors = []
    for comp in competition.get("competitors", []):
        team = comp.get("team", {})
        competitors.append({
            "home_away": comp.get("homeAway", ""),
            "team_id": str(team.get("id", "")),
            "team_name": team.get("displayName", ""),
            "abbreviation": team.get("abbreviation", ""),
            "score": _parse_score(comp.get("score")),
        })

    return {
        "id": parsed_id,
        "date": game_date or competition.get("date"),
        "status": _parse_status(status_type),
        "competitors": competitors,
    }


def parse_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Convert one scoreboard event into the game shape used by the reconciler."""
    competitions = event.get("competitions") or [{}]
    competition = competitions[0]
    status_type = (event.get("status") or competition.get("status") or {}).get("type", {})
    return _parse_competition(event.get("id"), event.get("date"), competition, status_type)


def home_and_away(game: Dict[str, Any]) -> Tuple[Optional[Dict], Optional[Dict]]:
    home_team = None
    away_team = None
    for comp in game.get("competitors", []):
        if comp.get("home_away") == "home":
            home_team = comp
        elif comp.get("home_away") == "away":
            away_team = comp
    return home_team, away_team


async def get_games(start: date = None, end: Optional[date] = None, use_cache: bool = True) -> List[Dict[str, Any]]:
    """
    Get NHL games for a date or an inclusive date range.

    Args:
        start: First date (defaults to today)
        end: Last date, same as start when omitted
        use_cache: Set False when fresh scores are needed

    Returns:
        List of game dictionaries
    """
    if start is None:
        start = date.today()

    dates = start.strftime("%Y%m%d")
    if end is not None and end != start:
        dates = f"{dates}-{end.strftime('%Y%m%d')}"

    cache_key = f"nhl_scoreboard_{dates}"
    if use_cache:
        cached = get_cached(cache_key)
        if cached is not None:
            return cached

    url = f"{ESPN_NHL_BASE}/scoreboard"
    data = await make_request(SOURCE, url, {"dates": dates})

    games = []
    for event in data.get("events", []):
        game = parse_event(event)
        if game is None:
            logger.warning(f"Skipping ESPN event without a numeric id: {event.get('id')}")
            continue
        games.append(game)

    set_cached(cache_key, games)
    return games


async def get_game_detail(game_id: int) -> Optional[Dict[str, Any]]:
    """Look up a single game through the summary endpoint."""
    url = f"{ESPN_NHL_BASE}/summary"
    data = await make_request(SOURCE, url, {"event": str(game_id)})

    header = data.get("header") if isinstance(data, dict) else None
    if not header or not header.get("competitions"):
        return None

    competition = header["competitions"][0]
    status_type = competition.get("status", {}).get("type", {})
    return _parse_competition(header.get("id", game_id), competition.get("date"), competition, status_type)


async def get_teams() -> List[Dict[str, Any]]:
    """
    Get all NHL teams.

    Returns:
        List of team dictionaries with ESPN id, mapped NHL stats id, name, abbreviation
    """
    cache_key = "nhl_teams"
    cached = get_cached(cache_key)
    if cached:
        return cached

    url = f"{ESPN_NHL_BASE}/teams"
    data = await make_request(SOURCE, url)

    teams = []
    for sport in data.get("sports", []):
        for league in sport.get("leagues", []):
            for team in league.get("teams", []):
                team_info = team.get("team", {})
                espn_id = team_info.get("id")
                teams.append({
                    "espn_id": espn_id,
                    "nhl_id": find_nhl_team_id(espn_id) if espn_id else None,
                    "name": team_info.get("displayName", ""),
                    "abbreviation": team_info.get("abbreviation", ""),
                    "location": team_info.get("location", ""),
                    "logo": team_info.get("logos", [{}])[0].get("href", "") if team_info.get("logos") else "",
                })

    set_cached(cache_key, teams)
    return teams


def parse_game_time(value: Optional[str]) -> datetime:
    """ESPN ISO timestamp ("2024-10-18T23:00Z") as naive UTC; now() when unparseable."""
    if value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed
        except ValueError:
            logger.warning(f"Unparseable game time: {value}")
    return datetime.utcnow()
