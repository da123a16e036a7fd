import os
import base64
import requests
import logging
from typing import Any, Dict, List, Optional

# Configure logging
logger = logging.getLogger(__name__)

# Ensure API_BASE is clean (strip any trailing slash or typos)
_raw_base = os.getenv("DATAFORSEO_API_BASE", "https://api.dataforseo.com/v3")
API_BASE = _raw_base.rstrip("/").replace("v3)", "v3")  # Fix common typo

VOLUME_ENDPOINT = "dataforseo_labs/google/historical_search_volume/live"
DIFFICULTY_ENDPOINT = "dataforseo_labs/google/bulk_keyword_difficulty/live"

DEFAULT_COUNTRY_CODE = "US"

# Google Ads location codes by ISO country code
LOCATION_CODES = {
    "US": 2840,
    "BG": 2100,
    "GB": 2826,
    "CA": 2124,
    "AU": 2036,
    "NZ": 2554,
    "IE": 2372,
    "DE": 2276,
}

# Country names (English and Bulgarian) accepted in business.target_country
COUNTRY_NAMES = {
    "united states": "US",
    "usa": "US",
    "сащ": "US",
    "bulgaria": "BG",
    "българия": "BG",
    "united kingdom": "GB",
    "uk": "GB",
    "великобритания": "GB",
    "canada": "CA",
    "australia": "AU",
    "new zealand": "NZ",
    "ireland": "IE",
    "germany": "DE",
    "германия": "DE",
}

# Track actual costs from DataForSEO API responses
_last_volume_cost = 0.0
_last_difficulty_cost = 0.0


def _auth_header() -> dict:
    login = os.getenv("DATAFORSEO_LOGIN")
    password = os.getenv("DATAFORSEO_PASSWORD")
    if not login or not password:
        raise ValueError("Missing DataForSEO credentials: DATAFORSEO_LOGIN/DATAFORSEO_PASSWORD")
    token = base64.b64encode(f"{login}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}", "Content-Type": "application/json"}


def resolve_country_code(business: Optional[Dict[str, Any]]) -> str:
    """Pick the DataForSEO market for a business.

    Uses target_country when it is a known code or country name, otherwise
    Bulgarian businesses map to BG and everything else to US.
    """
    business = business or {}
    target = (business.get("target_country") or "").strip()
    if target:
        if target.upper() in LOCATION_CODES:
            return target.upper()
        code = COUNTRY_NAMES.get(target.lower())
        if code:
            return code
    return "BG" if business.get("language") == "bg" else DEFAULT_COUNTRY_CODE


def location_code_for(country_code: str) -> int:
    return LOCATION_CODES.get((country_code or "").upper(), LOCATION_CODES[DEFAULT_COUNTRY_CODE])


def _post_labs_task(endpoint: str, payload: List[Dict[str, Any]]) -> tuple:
    """POST one Labs task. Returns (items, cost); failures yield ([], 0.0)."""
    url = f"{API_BASE}/{endpoint}"
    logger.info(f"[DataForSEO] Requesting endpoint: {endpoint}")
    logger.debug(f"[DataForSEO] Payload preview: {str(payload[0])[:200]}")

    headers = _auth_header()

    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=60)
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.HTTPError as e:
        logger.error(f"[DataForSEO] API ERROR [{endpoint}]: HTTP {e.response.status_code} - {e.response.text[:500]}")
        return [], 0.0
    except Exception as e:
        logger.error(f"[DataForSEO] Request FAILED [{endpoint}]: {e}", exc_info=True)
        return [], 0.0

    tasks = (data or {}).get("tasks") or []
    if not tasks:
        logger.warning(f"[DataForSEO] Response has no tasks for {endpoint}")
        return [], 0.0

    task = tasks[0]
    logger.info(f"[DataForSEO] Task Status: {task.get('status_message')} (Code: {task.get('status_code')})")
    if (task.get("status_code") or 0) >= 40000:
        logger.error(f"[DataForSEO] Task Error: {task.get('status_message')}")

    cost = task.get("cost") or 0.0
    result = task.get("result") or []
    # Labs API: tasks[0].result[0].items
    if result and isinstance(result[0], dict) and result[0].get("items"):
        items = result[0]["items"]
        logger.info(f"[DataForSEO] Success. Items found: {len(items)}")
        return items, cost

    logger.warning(f"[DataForSEO] Response structure unexpected or empty results for {endpoint}")
    return [], cost


def _competition_level(info: Dict[str, Any]) -> str:
    level = info.get("competition_level")
    if level:
        return str(level).upper()
    competition = info.get("competition") or 0
    if competition > 0.66:
        return "HIGH"
    if competition > 0.33:
        return "MEDIUM"
    return "LOW"


def paid_difficulty(info: Dict[str, Any]) -> str:
    level = _competition_level(info)
    if level == "HIGH":
        return "Hard"
    if level == "LOW":
        return "Easy"
    return "Medium"


def organic_difficulty(kd: float) -> str:
    if kd > 60:
        return "Hard"
    if kd < 30:
        return "Easy"
    return "Medium"


def get_keywords_data(keywords: List[str], country_code: str, language_code: str) -> List[Dict[str, Any]]:
    """Fetch search volume and difficulty for a list of keywords.

    Step 1: historical_search_volume (volume + paid competition)
    Step 2: bulk_keyword_difficulty (organic difficulty 0-100)

    Organic difficulty overrides the paid-competition estimate when present.
    Returns one dict per keyword the API knows about:
    {keyword, volume, difficulty, paid_difficulty, kd_score?}
    """
    global _last_volume_cost, _last_difficulty_cost

    keywords = [k for k in (keywords or []) if k and k.strip()]
    if not keywords:
        logger.warning("get_keywords_data called with empty keyword list")
        return []

    location_code = location_code_for(country_code)
    language = language_code or "en"

    volume_items, _last_volume_cost = _post_labs_task(VOLUME_ENDPOINT, [{
        "location_code": location_code,
        "language_code": language,
        "keywords": keywords,
        "include_clickstream_data": False,
    }])

    difficulty_items, _last_difficulty_cost = _post_labs_task(DIFFICULTY_ENDPOINT, [{
        "location_code": location_code,
        "language_code": language,
        "keywords": keywords,
    }])

    results: Dict[str, Dict[str, Any]] = {}

    for item in volume_items:
        kw = item.get("keyword")
        if not kw:
            continue
        info = item.get("keyword_info") or {}
        paid = paid_difficulty(info)
        results[kw.lower()] = {
            "keyword": kw,
            "volume": info.get("search_volume") or 0,
            "paid_difficulty": paid,
            "difficulty": paid,  # Default to paid, override with organic if available
        }

    for item in difficulty_items:
        kw = item.get("keyword")
        if not kw:
            continue
        current = results.get(kw.lower()) or {"keyword": kw, "volume": 0, "difficulty": "Medium"}
        kd = item.get("keyword_difficulty")
        if isinstance(kd, (int, float)) and not isinstance(kd, bool):
            current["difficulty"] = organic_difficulty(kd)
            current["kd_score"] = kd
        results[kw.lower()] = current

    logger.info(f"DataForSEO completed: {len(results)} keywords with metrics (location_code={location_code})")
    return list(results.values())


def get_dataforseo_cost() -> float:
    """Return the actual cost of the last get_keywords_data call (both endpoints)."""
    return _last_volume_cost + _last_difficulty_cost
