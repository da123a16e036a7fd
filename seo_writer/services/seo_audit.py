import logging
from typing import Any, Dict, Optional

from google.cloud import firestore as gcfirestore
from pydantic import ValidationError

from seo_writer.core.config import get_model_for_type, language_name
from seo_writer.schemas.seo import AUDIT_STATUSES, SeoAuditResult
from seo_writer.services.firestore import get_db, get_record
from seo_writer.services.openai_service import record_usage, run_json_completion
from seo_writer.services.seo_validation import validate_seo_meta
from seo_writer.utils.seo_audit_prompt import build_seo_audit_prompt

logger = logging.getLogger(__name__)

# page type -> (collection, field holding the Markdown body)
AUDIT_TARGETS = {
    "article": ("articles", "content"),
    "product": ("product_descriptions", "description"),
    "service": ("service_descriptions", "description"),
}


def parse_seo_audit(payload: Any) -> SeoAuditResult:
    """Validate a raw audit payload. Unknown item statuses become "na"."""
    if not isinstance(payload, dict):
        raise ValueError("SEO audit payload must be a JSON object")
    try:
        return SeoAuditResult.model_validate(payload)
    except ValidationError as e:
        raise ValueError(f"Invalid SEO audit payload: {e}")


def summarize_audit(result: SeoAuditResult) -> Dict[str, int]:
    counts = {status: 0 for status in AUDIT_STATUSES}
    for section in result.sections:
        for item in section.items:
            counts[item.status] += 1
    return counts


def _primary_keyword(page_type: str, record: Dict[str, Any]) -> str:
    if page_type == "article":
        keyword = get_record("keywords", record["keyword_id"]) if record.get("keyword_id") else None
        return (keyword or {}).get("keyword") or record.get("title") or ""

    selected = record.get("selected_keywords") or []
    if selected:
        first = selected[0]
        return first.get("keyword", "") if isinstance(first, dict) else str(first)
    return record.get("name") or ""


def run_seo_audit(page_type: str, record_id: str, user_id: Optional[str] = None, business: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Audit a stored article, product or service description and save the result on it."""
    if page_type not in AUDIT_TARGETS:
        raise ValueError(f"Unsupported page type: {page_type}")

    collection, body_field = AUDIT_TARGETS[page_type]
    record = get_record(collection, record_id)
    if not record:
        raise LookupError(f"{page_type.capitalize()} not found")

    content_md = record.get(body_field) or ""
    if not content_md.strip():
        raise ValueError("Nothing to audit: content is empty")

    business = business or (get_record("businesses", record["business_id"]) if record.get("business_id") else None) or {}
    lang = record.get("language") or business.get("language")

    prompt = build_seo_audit_prompt(
        page_type=page_type,
        primary_keyword=_primary_keyword(page_type, record),
        language_name=language_name(lang),
        business_context=business.get("product_description"),
        content_md=content_md,
    )

    model = get_model_for_type("audit")
    response = run_json_completion(
        prompt,
        model=model,
        system="You are an expert SEO auditor.",
    )
    record_usage(user_id, response["usage"], model)

    audit = parse_seo_audit(response["result"])
    meta = audit.meta.model_dump()
    meta_validation = validate_seo_meta(meta)
    summary = summarize_audit(audit)

    get_db().collection(collection).document(record_id).update({
        "seo_audit": audit.model_dump(),
        "seo_meta": meta,
        "seo_meta_validation": meta_validation,
        "seo_audit_summary": summary,
        "seo_audited_at": gcfirestore.SERVER_TIMESTAMP,
    })
    logger.info(f"[SEOAudit] {page_type} {record_id}: {summary}")

    return {
        "audit": audit.model_dump(),
        "meta_validation": meta_validation,
        "summary": summary,
    }
