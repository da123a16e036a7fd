import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcfirestore

from seo_writer.core.config import get_model_for_type
from seo_writer.services import dataforseo
from seo_writer.services.firestore import get_db, get_record, list_records
from seo_writer.services.openai_service import record_usage, run_json_completion
from seo_writer.utils.prompts import (
    KEYWORD_BROADEN_PROMPT,
    KEYWORD_ESTIMATE_PROMPT,
    KEYWORD_SEED_PROMPT,
    fill_prompt,
)

logger = logging.getLogger(__name__)

# Fewer keywords with nonzero volume than this triggers one broadening round
MIN_KEYWORDS_WITH_DEMAND = 2
MAX_BROADENING_ROUNDS = 1

DIFFICULTIES = ("Easy", "Medium", "Hard")
INTENTS = ("Blog", "Landing", "Mixed")

# Bulgarian Streamlined System (official since 2009)
_BG_TO_LATIN = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ж": "zh",
    "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m", "н": "n",
    "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u", "ф": "f",
    "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sht", "ъ": "a", "ь": "y",
    "ю": "yu", "я": "ya",
}
_BG_TO_LATIN.update({
    cyr.upper(): lat.capitalize() for cyr, lat in list(_BG_TO_LATIN.items())
})


def transliterate_bg(text: str) -> str:
    """Latin spelling of Bulgarian Cyrillic text; other characters pass through."""
    return "".join(_BG_TO_LATIN.get(char, char) for char in text or "")


def expand_with_transliterations(keywords: List[str], language: Optional[str]) -> List[str]:
    """Seed list plus the Latin spelling of each Cyrillic keyword (Bulgarian only)."""
    expanded = list(keywords)
    if language != "bg":
        return expanded

    seen = {k.lower() for k in expanded}
    for kw in keywords:
        latin = transliterate_bg(kw)
        if latin != kw and latin.lower() not in seen:
            expanded.append(latin)
            seen.add(latin.lower())
    return expanded


def _clean_keywords(raw: Any) -> List[str]:
    out: List[str] = []
    seen = set()
    for kw in raw or []:
        if not isinstance(kw, str):
            continue
        cleaned = " ".join(kw.strip().rstrip(".,;:!?").split())
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            out.append(cleaned)
    return out


def count_with_demand(records: List[Dict[str, Any]]) -> int:
    return sum(1 for r in records if (r.get("volume") or 0) > 0)


def _ask_for_keywords(template: str, business: Dict[str, Any], user_id: Optional[str], **extra) -> List[str]:
    model = get_model_for_type("keywords")
    prompt = fill_prompt(
        template,
        product_description=business.get("product_description") or "",
        language=business.get("language") or "en",
        target_country=business.get("target_country") or "",
        **extra,
    )
    response = run_json_completion(
        prompt,
        model=model,
        system="You are an SEO Keyword Researcher.",
    )
    record_usage(user_id, response["usage"], model)
    return _clean_keywords(response["result"].get("keywords"))


def _build_records(keywords: List[str], metrics: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One record per requested keyword; keywords unknown to the API get volume 0."""
    by_keyword = {str(m.get("keyword", "")).lower(): m for m in metrics}
    records = []
    for seed in keywords:
        item = by_keyword.get(seed.lower())
        if item:
            records.append({
                "keyword": item["keyword"],
                "volume": item.get("volume") or 0,
                "difficulty": item.get("difficulty") or "Medium",
                "kd_score": item.get("kd_score"),
                "intent": "Mixed",
            })
        else:
            records.append({
                "keyword": seed,
                "volume": 0,
                "difficulty": "Medium",
                "kd_score": None,
                "intent": "Mixed",
            })
    return records


def _merge_records(existing: List[Dict[str, Any]], new: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    merged = {r["keyword"].lower(): r for r in existing}
    for r in new:
        current = merged.get(r["keyword"].lower())
        if current is None or (r.get("volume") or 0) > (current.get("volume") or 0):
            merged[r["keyword"].lower()] = r
    return list(merged.values())


def _estimate_with_ai(business: Dict[str, Any], keywords: List[str], user_id: Optional[str]) -> List[Dict[str, Any]]:
    logger.info("Using AI for estimated keyword metrics...")
    model = get_model_for_type("keywords")
    prompt = fill_prompt(
        KEYWORD_ESTIMATE_PROMPT,
        target_country=business.get("target_country") or "",
        keywords=json.dumps(keywords, ensure_ascii=False),
    )
    response = run_json_completion(prompt, model=model, system="You are an SEO Strategist.")
    record_usage(user_id, response["usage"], model)

    records = []
    for item in response["result"].get("keywords") or []:
        if not isinstance(item, dict) or not item.get("keyword"):
            continue
        volume = item.get("volume")
        records.append({
            "keyword": str(item["keyword"]).strip(),
            "volume": volume if isinstance(volume, int) and volume >= 0 else 0,
            "difficulty": item.get("difficulty") if item.get("difficulty") in DIFFICULTIES else "Medium",
            "kd_score": None,
            "intent": item.get("intent") if item.get("intent") in INTENTS else "Mixed",
        })
    return records


def _query_metrics(keywords: List[str], country_code: str, language_code: str) -> List[Dict[str, Any]]:
    metrics = dataforseo.get_keywords_data(keywords, country_code, language_code)
    return _build_records(keywords, metrics)


def research_keyword_demand(business: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
    """Seed → transliterate → measure demand → broaden once if demand is thin.

    Returns {"keywords", "debug_expanded_list", "broadened", "source"} where
    keywords only contains records with volume > 0 (or AI estimates when the
    metrics API produced nothing usable).
    """
    language = business.get("language") or "en"
    try:
        seeds = _ask_for_keywords(KEYWORD_SEED_PROMPT, business, user_id)
    except Exception as e:
        logger.error(f"AI seed generation failed: {e}", exc_info=True)
        seeds = []
    if not seeds:
        logger.warning(f"No seed keywords generated for business {business.get('id')}")
        return {"keywords": [], "debug_expanded_list": [], "broadened": False, "source": None}

    country_code = dataforseo.resolve_country_code(business)
    expanded = expand_with_transliterations(seeds, language)
    debug_list = list(expanded)
    records: List[Dict[str, Any]] = []
    broadened = False

    try:
        logger.info(f"Using DataForSEO for keyword metrics ({country_code}/{language}), {len(expanded)} keywords")
        records = _query_metrics(expanded, country_code, language)
    except Exception as e:
        logger.error(f"DataForSEO failed, falling back to AI: {e}", exc_info=True)
        records = []

    rounds = 0
    while records and count_with_demand(records) < MIN_KEYWORDS_WITH_DEMAND and rounds < MAX_BROADENING_ROUNDS:
        rounds += 1
        logger.info(
            f"Only {count_with_demand(records)} keywords with demand; "
            f"broadening (round {rounds}/{MAX_BROADENING_ROUNDS})"
        )
        low_demand = [r["keyword"] for r in records if not r.get("volume")]
        try:
            broader = _ask_for_keywords(
                KEYWORD_BROADEN_PROMPT,
                business,
                user_id,
                keywords=json.dumps(low_demand or seeds, ensure_ascii=False),
            )
            broader = [k for k in expand_with_transliterations(broader, language) if k.lower() not in {d.lower() for d in debug_list}]
            if not broader:
                break
            broader_records = _query_metrics(broader, country_code, language)
        except Exception as e:
            # measured records are kept
            logger.error(f"Keyword broadening failed: {e}", exc_info=True)
            break
        broadened = True
        debug_list.extend(broader)
        records = _merge_records(records, broader_records)

    before = len(records)
    records = [r for r in records if (r.get("volume") or 0) > 0]
    logger.info(f"Keywords filtered: {before} -> {len(records)}. Removed {before - len(records)} zero-volume keywords.")

    source = "dataforseo"
    if not records:
        records = _estimate_with_ai(business, seeds, user_id)
        source = "ai_estimate"

    return {
        "keywords": records,
        "debug_expanded_list": debug_list,
        "broadened": broadened,
        "source": source,
    }


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_keywords(business_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Research keywords for a business and store the ones not already saved."""
    business = get_record("businesses", business_id)
    if not business:
        raise ValueError("Business not found")

    research = research_keyword_demand(business, user_id)

    existing = {
        (k.get("keyword") or "").lower()
        for k in list_records("keywords", "business_id", business_id)
    }
    db = get_db()
    inserted = []
    checked_at = _now_iso()
    for record in research["keywords"]:
        if record["keyword"].lower() in existing:
            continue
        existing.add(record["keyword"].lower())
        row = {
            "business_id": business_id,
            "keyword": record["keyword"],
            "volume": record["volume"],
            "difficulty": record["difficulty"],
            "kd_score": record.get("kd_score"),
            "intent": record["intent"],
            "is_selected": False,
            "source": research["source"],
            "last_checked_at": checked_at,
            "do_not_retry": (record["volume"] or 0) == 0,
            "created_at": gcfirestore.SERVER_TIMESTAMP,
        }
        _, ref = db.collection("keywords").add(row)
        inserted.append({**row, "id": ref.id, "created_at": None})

    logger.info(f"Stored {len(inserted)} new keywords for business {business_id}")
    return {
        "keywords": inserted,
        "debug_expanded_list": research["debug_expanded_list"],
        "broadened": research["broadened"],
    }


def _apply_metrics(keyword_id: str, item: Dict[str, Any]):
    volume = item.get("volume") if isinstance(item.get("volume"), int) else 0
    get_db().collection("keywords").document(keyword_id).update({
        "volume": volume,
        "difficulty": item.get("difficulty") or "Medium",
        "kd_score": item.get("kd_score"),
        "source": "dataforseo",
        "last_checked_at": _now_iso(),
        # auto-refresh skips zeros, manual refresh is always allowed
        "do_not_retry": volume == 0,
    })


def refresh_unknown_volumes(business_id: str) -> int:
    """Re-query only keywords whose volume was never measured. Returns rows updated."""
    business = get_record("businesses", business_id)
    if not business:
        raise ValueError("Business not found")

    unknown = [
        k for k in list_records("keywords", "business_id", business_id)
        if k.get("volume") is None
    ]
    if not unknown:
        return 0

    results = dataforseo.get_keywords_data(
        [k["keyword"] for k in unknown],
        dataforseo.resolve_country_code(business),
        business.get("language") or "en",
    )
    by_keyword = {str(r.get("keyword", "")).lower(): r for r in results}

    updated = 0
    for row in unknown:
        item = by_keyword.get(row["keyword"].lower())
        if not item:
            continue
        _apply_metrics(row["id"], item)
        updated += 1
    return updated


def refresh_keyword_volume(business_id: str, keyword_id: str) -> Dict[str, Any]:
    business = get_record("businesses", business_id)
    keyword = get_record("keywords", keyword_id)
    if not business or not keyword or keyword.get("business_id") != business_id:
        raise LookupError("Keyword not found")

    results = dataforseo.get_keywords_data(
        [keyword["keyword"]],
        dataforseo.resolve_country_code(business),
        business.get("language") or "en",
    )
    if not results:
        raise LookupError("No DataForSEO result")

    _apply_metrics(keyword_id, results[0])
    return get_record("keywords", keyword_id)


def set_keyword_selected(business_id: str, keyword_id: str, selected: bool) -> Dict[str, Any]:
    keyword = get_record("keywords", keyword_id)
    if not keyword or keyword.get("business_id") != business_id:
        raise LookupError("Keyword not found")
    get_db().collection("keywords").document(keyword_id).update({"is_selected": bool(selected)})
    keyword["is_selected"] = bool(selected)
    return keyword


def _detach_articles(keyword_ids: List[str]):
    db = get_db()
    for keyword_id in keyword_ids:
        for doc in db.collection("articles").where("keyword_id", "==", keyword_id).stream():
            doc.reference.update({"keyword_id": None})


def delete_keyword(business_id: str, keyword_id: str):
    """Delete one keyword; articles that reference it are kept and detached."""
    keyword = get_record("keywords", keyword_id)
    if not keyword or keyword.get("business_id") != business_id:
        raise LookupError("Keyword not found")
    _detach_articles([keyword_id])
    get_db().collection("keywords").document(keyword_id).delete()


def delete_all_keywords(business_id: str) -> int:
    keywords = list_records("keywords", "business_id", business_id)
    ids = [k["id"] for k in keywords]
    _detach_articles(ids)
    db = get_db()
    for keyword_id in ids:
        db.collection("keywords").document(keyword_id).delete()
    return len(ids)
