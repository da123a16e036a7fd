import logging
from typing import Any, Dict, Optional

from seo_writer.core.config import get_model_for_type
from seo_writer.services.firestore import get_db, get_record
from seo_writer.services.openai_service import record_usage, run_json_completion
from seo_writer.utils.prompts import NICHE_PROMPT, fill_prompt

logger = logging.getLogger(__name__)

PLACEHOLDER_ANALYSIS = {
    "summary": "Analysis pending configuration.",
    "intent_mix": "Unknown",
    "angles": [],
}


def _normalize_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
    angles = raw.get("angles") or []
    if isinstance(angles, str):
        angles = [angles]
    return {
        "summary": str(raw.get("summary") or ""),
        "intent_mix": str(raw.get("intent_mix") or ""),
        "angles": [str(a) for a in angles if a],
    }


def analyze_niche(business_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Summarize the business niche and save it as business.analysis.

    Raises ValueError when the business does not exist. Any other failure
    returns the placeholder analysis and leaves the stored one untouched.
    """
    business = get_record("businesses", business_id)
    if not business:
        raise ValueError("Business not found")

    prompt = fill_prompt(
        NICHE_PROMPT,
        website_url=business.get("website_url") or "",
        business_type=business.get("business_type") or "",
        product_description=business.get("product_description") or "",
        target_country=business.get("target_country") or "",
        language=business.get("language") or "en",
    )

    try:
        model = get_model_for_type("niche")
        response = run_json_completion(
            prompt,
            model=model,
            system="You are an expert SEO Strategist.",
        )
        record_usage(user_id, response["usage"], model)

        analysis = _normalize_analysis(response["result"])
        get_db().collection("businesses").document(business_id).update({"analysis": analysis})
        logger.info(f"Niche analysis saved for business {business_id}")
        return analysis
    except Exception as e:
        logger.error(f"Niche analysis failed for business {business_id}: {e}", exc_info=True)
        return dict(PLACEHOLDER_ANALYSIS)
