import logging
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcfirestore

from seo_writer.core.config import get_model_for_type
from seo_writer.services.firestore import get_db, get_record, list_records
from seo_writer.services.openai_service import record_usage, run_json_completion
from seo_writer.utils.prompts import COMPETITORS_PROMPT, fill_prompt

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 20


def _clean_domain(domain: str) -> str:
    domain = (domain or "").strip().lower()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    if domain.startswith("www."):
        domain = domain[4:]
    return domain.split("/")[0]


def _parse_competitors(raw: Any) -> List[Dict[str, str]]:
    competitors = []
    seen = set()
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        domain = _clean_domain(str(item.get("domain") or ""))
        if not domain or domain in seen:
            continue
        seen.add(domain)
        competitors.append({
            "domain": domain,
            "content_type": str(item.get("content_type") or ""),
            "weakness": str(item.get("weakness") or ""),
        })
    return competitors[:MAX_COMPETITORS]


def analyze_competitors(business_id: str, user_id: Optional[str] = None, replace: bool = False) -> List[Dict[str, Any]]:
    """Discover likely competitors and store them for the business.

    With ``replace`` the existing competitor list is deleted first, but only
    once the new list is in hand. Failures are logged and return [].
    """
    business = get_record("businesses", business_id)
    if not business:
        raise ValueError("Business not found")

    prompt = fill_prompt(
        COMPETITORS_PROMPT,
        website_url=business.get("website_url") or "",
        product_description=business.get("product_description") or "",
        target_country=business.get("target_country") or "",
        language=business.get("language") or "en",
    )

    try:
        model = get_model_for_type("competitors")
        response = run_json_completion(
            prompt,
            model=model,
            system="You are an SEO Competitor Analyst.",
        )
        record_usage(user_id, response["usage"], model)
        competitors = _parse_competitors(response["result"].get("competitors"))
    except Exception as e:
        logger.error(f"Competitor analysis failed for business {business_id}: {e}", exc_info=True)
        return []

    db = get_db()
    if replace and competitors:
        for existing in list_records("competitors", "business_id", business_id):
            db.collection("competitors").document(existing["id"]).delete()

    stored = []
    for c in competitors:
        row = {
            "business_id": business_id,
            "domain": c["domain"],
            "content_type": c["content_type"],
            "weakness_summary": c["weakness"],
            "created_at": gcfirestore.SERVER_TIMESTAMP,
        }
        _, ref = db.collection("competitors").add(row)
        stored.append({**row, "id": ref.id, "created_at": None})

    logger.info(f"Stored {len(stored)} competitors for business {business_id} (replace={replace})")
    return stored
