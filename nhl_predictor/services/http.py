"""
Shared async GET helper and response cache for upstream APIs.
"""

import httpx
from datetime import datetime
from typing import Optional, Dict, Any

from nhl_predictor.config import HTTP_TIMEOUT_SECONDS
from nhl_predictor.exceptions import UpstreamUnavailable
from nhl_predictor.utils.logging import get_logger

logger = get_logger(__name__)

# Cache for reducing API calls
_cache: Dict[str, tuple] = {}
CACHE_TTL = 300  # 5 minutes


def get_cached(key: str) -> Optional[Any]:
    """Get cached value if not expired."""
    if key in _cache:
        data, timestamp = _cache[key]
        if datetime.now().timestamp() - timestamp < CACHE_TTL:
            return data
    return None


def set_cached(key: str, data: Any):
    """Set cached value with current timestamp."""
    _cache[key] = (data, datetime.now().timestamp())


def clear_cache():
    _cache.clear()


async def make_request(source: str, url: str, params: Optional[Dict] = None) -> Dict:
    """GET a JSON document, raising UpstreamUnavailable on network errors or non-2xx."""
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as e:
        logger.error(f"{source} request failed: {e}")
        raise UpstreamUnavailable(source, str(e)) from e
    except ValueError as e:
        logger.error(f"{source} returned invalid JSON: {e}")
        raise UpstreamUnavailable(source, "invalid JSON response") from e
