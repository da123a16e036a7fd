import logging
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcfirestore

from seo_writer.core.config import get_model_for_type, language_name
from seo_writer.services import dataforseo
from seo_writer.services.firestore import get_db
from seo_writer.services.openai_service import record_usage, run_json_completion, run_text_completion
from seo_writer.utils.prompts import (
    PRODUCT_DESCRIPTION_PROMPT,
    PRODUCT_KEYWORDS_PROMPT,
    SERVICE_DESCRIPTION_PROMPT,
    SERVICE_KEYWORDS_PROMPT,
    fill_prompt,
)

logger = logging.getLogger(__name__)

# Description keywords are measured on the US/English market
METRICS_COUNTRY = "US"
METRICS_LANGUAGE = "en"


def _keyword_strings(raw: Any) -> List[str]:
    keywords = []
    for kw in raw or []:
        if isinstance(kw, str) and kw.strip() and kw.strip() not in keywords:
            keywords.append(kw.strip())
    return keywords


def _keyword_metrics(keywords: List[str]) -> List[Dict[str, Any]]:
    """DataForSEO metrics for the analysed keywords, or zero-volume placeholders."""
    if not keywords:
        return []
    unknown = [{"keyword": k, "volume": 0, "difficulty": "Unknown"} for k in keywords]
    try:
        data = dataforseo.get_keywords_data(keywords, METRICS_COUNTRY, METRICS_LANGUAGE)
    except Exception as e:
        logger.error(f"DataForSEO error: {e}")
        return unknown
    return data or unknown


def _suggest_keywords(prompt: str, model_type: str, user_id: Optional[str], image_url: Optional[str] = None) -> List[str]:
    model = get_model_for_type(model_type)
    response = run_json_completion(prompt, model=model, image_url=image_url)
    record_usage(user_id, response["usage"], model)
    return _keyword_strings(response["result"].get("keywords"))


def analyze_product(name: str, image_url: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Vision pass over the product image, then keyword metrics."""
    if not image_url:
        raise ValueError("No image provided")
    keywords = _suggest_keywords(
        fill_prompt(PRODUCT_KEYWORDS_PROMPT, name=name),
        "products",
        user_id,
        image_url=image_url,
    )
    logger.info(f"Product analysis for {name!r}: {len(keywords)} keywords")
    return {"name": name, "image_url": image_url, "keywords": _keyword_metrics(keywords)}


def analyze_service(name: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    keywords = _suggest_keywords(
        fill_prompt(SERVICE_KEYWORDS_PROMPT, name=name),
        "services",
        user_id,
    )
    logger.info(f"Service analysis for {name!r}: {len(keywords)} keywords")
    return {"name": name, "keywords": _keyword_metrics(keywords)}


def _selected_keyword_text(selected: List[Any]) -> str:
    words = [k.get("keyword", "") if isinstance(k, dict) else str(k) for k in selected]
    return ", ".join(w for w in words if w)


def _save_description(collection: str, row: Dict[str, Any]) -> Dict[str, Any]:
    row = {**row, "created_at": gcfirestore.SERVER_TIMESTAMP}
    _, ref = get_db().collection(collection).add(row)
    return {**row, "id": ref.id, "created_at": None}


def create_product_description(
    user_id: str,
    name: str,
    image_url: Optional[str],
    all_keywords: List[Dict[str, Any]],
    selected_keywords: List[Dict[str, Any]],
    language: str = "en",
    business_id: Optional[str] = None,
) -> Dict[str, Any]:
    model = get_model_for_type("products")
    prompt = fill_prompt(
        PRODUCT_DESCRIPTION_PROMPT,
        name=name,
        keywords=_selected_keyword_text(selected_keywords),
        language=language_name(language),
    )
    response = run_text_completion(prompt, model=model, image_url=image_url)
    record_usage(user_id, response["usage"], model)

    return _save_description("product_descriptions", {
        "user_id": user_id,
        "business_id": business_id,
        "name": name,
        "image_url": image_url,
        "language": language,
        "selected_keywords": selected_keywords,
        "keywords_data": all_keywords,
        "description": response["text"],
    })


def create_service_description(
    user_id: str,
    name: str,
    all_keywords: List[Dict[str, Any]],
    selected_keywords: List[Dict[str, Any]],
    language: str = "en",
    business_id: Optional[str] = None,
) -> Dict[str, Any]:
    model = get_model_for_type("services")
    prompt = fill_prompt(
        SERVICE_DESCRIPTION_PROMPT,
        name=name,
        keywords=_selected_keyword_text(selected_keywords),
        language=language_name(language),
    )
    response = run_text_completion(prompt, model=model)
    record_usage(user_id, response["usage"], model)

    return _save_description("service_descriptions", {
        "user_id": user_id,
        "business_id": business_id,
        "name": name,
        "language": language,
        "selected_keywords": selected_keywords,
        "keywords_data": all_keywords,
        "description": response["text"],
    })
