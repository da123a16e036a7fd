import json
import logging
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcfirestore

from seo_writer.core.config import ARTICLE_MIN_WORDS, get_workflow_model, language_name
from seo_writer.schemas.article import ArticleMetadata, Blueprint, Draft
from seo_writer.services.firestore import get_db, get_record, list_records
from seo_writer.services.openai_service import record_usage, run_json_completion
from seo_writer.services.seo_validation import build_content_structure, validate_generated_article
from seo_writer.utils.article_prompts import (
    build_blueprint_prompt,
    build_draft_prompt,
    build_metadata_prompt,
)
from seo_writer.utils.cost_calculator import format_cost

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_CONTEXT = "A generic business"


# -------------------------------------------------
# Article records
# -------------------------------------------------
def _next_version(business_id: str, keyword_id: str, goal: str, tone: str) -> int:
    versions = [
        a.get("version") or 0
        for a in list_records("articles", "business_id", business_id)
        if a.get("keyword_id") == keyword_id and a.get("goal") == goal and a.get("tone") == tone
    ]
    return max(versions, default=0) + 1


def save_author_persona(business_id: str, name: str, bio: Optional[str]) -> Dict[str, Any]:
    """Store an author persona for reuse; an existing persona with the same name is updated."""
    db = get_db()
    for existing in list_records("saved_authors", "business_id", business_id):
        if (existing.get("name") or "").strip().lower() == name.strip().lower():
            db.collection("saved_authors").document(existing["id"]).update({"bio": bio or ""})
            existing["bio"] = bio or ""
            return existing

    row = {
        "business_id": business_id,
        "name": name.strip(),
        "bio": bio or "",
        "created_at": gcfirestore.SERVER_TIMESTAMP,
    }
    _, ref = db.collection("saved_authors").add(row)
    return {**row, "id": ref.id, "created_at": None}


def list_saved_authors(business_id: str) -> List[Dict[str, Any]]:
    authors = list_records("saved_authors", "business_id", business_id)
    return sorted(authors, key=lambda a: (a.get("name") or "").lower())


def create_article(
    business: Dict[str, Any],
    keyword_id: str,
    goal: str,
    tone: str,
    author: Optional[Dict[str, Any]] = None,
    save_author: bool = False,
) -> Dict[str, Any]:
    """Insert a placeholder article; generation runs separately."""
    keyword = get_record("keywords", keyword_id)
    if not keyword or keyword.get("business_id") != business["id"]:
        raise LookupError("Keyword not found")

    author_info = None
    if author and (author.get("name") or "").strip():
        author_info = {"name": author["name"].strip(), "bio": author.get("bio") or ""}
        if save_author:
            save_author_persona(business["id"], author_info["name"], author_info["bio"])

    row = {
        "business_id": business["id"],
        "keyword_id": keyword_id,
        "title": "Generating...",
        "goal": goal,
        "tone": tone,
        "version": _next_version(business["id"], keyword_id, goal, tone),
        "status": "draft",
        "content": None,
        "author_info": author_info,
        "created_at": gcfirestore.SERVER_TIMESTAMP,
    }
    _, ref = get_db().collection("articles").add(row)
    logger.info(f"Created article {ref.id} v{row['version']} for keyword {keyword_id}")
    return {**row, "id": ref.id, "created_at": None}


def update_article(article_id: str, content: str, title: Optional[str] = None) -> Dict[str, Any]:
    updates: Dict[str, Any] = {"content": content, "updated_at": gcfirestore.SERVER_TIMESTAMP}
    if title is not None:
        updates["title"] = title
    get_db().collection("articles").document(article_id).update(updates)
    return get_record("articles", article_id)


def validation_input(article: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a stored article the way the on-page validator expects it."""
    content = article.get("content") or ""
    structure = article.get("content_structure")
    if content:
        structure = build_content_structure(content, structure, article.get("author_info"))
    return {
        "title": article.get("title"),
        "content_md": content,
        "seo_meta": article.get("seo_meta"),
        "schema_markup": article.get("schema_markup"),
        "author_info": article.get("author_info"),
        "content_structure": structure,
    }


def validate_article(article: Dict[str, Any], min_words: int = ARTICLE_MIN_WORDS) -> List[Dict[str, Any]]:
    return validate_generated_article(validation_input(article), min_words=min_words)


# -------------------------------------------------
# Generation workflow
# -------------------------------------------------
def safe_parse_json(value: Optional[str]) -> Any:
    """JSON-LD string to object; invalid JSON yields {}."""
    if isinstance(value, dict):
        return value
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        logger.warning(f"[Workflow] Failed to parse JSON string: {str(value)[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse_schema_markup(markup: Dict[str, Optional[str]]) -> Dict[str, Any]:
    parsed = {
        key: safe_parse_json(markup.get(key))
        for key in ("article", "author", "organization", "breadcrumb")
    }
    for optional in ("faq", "howto"):
        parsed[optional] = safe_parse_json(markup[optional]) if markup.get(optional) else None
    return parsed


def _run_stage(article_id: str, step: str, prompt: str, schema, user_id: Optional[str]):
    model = get_workflow_model(step)
    response = run_json_completion(
        prompt,
        model=model,
        schema=schema,
        schema_name=step.lower(),
    )
    record_usage(user_id, response["usage"], model)
    logger.info(
        f"[Workflow][{article_id}] {step} usage: {response['usage']['total_tokens']} tokens, "
        f"{format_cost(response['usage']['estimated_cost_usd'])}"
    )
    return response["result"]


def generate_article_workflow(article_id: str, user_id: Optional[str] = None):
    """Blueprint -> draft -> metadata, then store the finished article.

    Runs as a background job: nothing is raised, failures end in
    status "failed" with the error message on the record.
    """
    logger.info(f"[Workflow][{article_id}] Starting 3-step generation workflow")
    ref = get_db().collection("articles").document(article_id)

    try:
        article = get_record("articles", article_id)
        if not article:
            logger.error(f"[Workflow][{article_id}] Article not found")
            return

        keyword = get_record("keywords", article["keyword_id"]) if article.get("keyword_id") else None
        if not keyword:
            raise LookupError("Keyword not found")
        business = get_record("businesses", article["business_id"]) if article.get("business_id") else None
        if not business:
            raise LookupError("Business not found")

        logger.info(f"[Workflow][{article_id}] Context loaded. Keyword: \"{keyword['keyword']}\"")
        ref.update({"status": "generating", "error": None})

        lang = language_name(business.get("language"))
        business_context = business.get("product_description") or DEFAULT_BUSINESS_CONTEXT
        goal = article.get("goal") or "Informational"
        tone = article.get("tone") or "Professional"

        # Step 1: blueprint
        logger.info(f"[Workflow][{article_id}] Step 1/3: Blueprint")
        blueprint: Blueprint = _run_stage(article_id, "BLUEPRINT", build_blueprint_prompt(
            keyword=keyword["keyword"],
            business_context=business_context,
            goal=goal,
            tone=tone,
            target_country=business.get("target_country") or "Global",
            language_name=lang,
        ), Blueprint, user_id)
        logger.info(
            f"[Workflow][{article_id}] Blueprint generated. Intent: {blueprint.primary_intent}, "
            f"Type: {blueprint.article_type}, Sections: {len(blueprint.recommended_structure.sections)}"
        )

        # Step 2: draft
        logger.info(f"[Workflow][{article_id}] Step 2/3: Draft")
        draft: Draft = _run_stage(article_id, "DRAFT", build_draft_prompt(
            blueprint=blueprint.model_dump(),
            keyword=keyword["keyword"],
            business_context=business_context,
            goal=goal,
            tone=tone,
            language_name=lang,
            min_words=ARTICLE_MIN_WORDS,
            author=article.get("author_info"),
        ), Draft, user_id)
        logger.info(f"[Workflow][{article_id}] Draft generated. Length: {len(draft.content_md)} chars")

        # Step 3: metadata & schema
        logger.info(f"[Workflow][{article_id}] Step 3/3: Metadata & schema")
        metadata: ArticleMetadata = _run_stage(article_id, "METADATA", build_metadata_prompt(
            content_md=draft.content_md,
            keyword=keyword["keyword"],
            business_context=business_context,
            language_name=lang,
        ), ArticleMetadata, user_id)
        logger.info(f"[Workflow][{article_id}] Metadata generated. Title: \"{metadata.seo_meta.title}\"")

        author_info = draft.author_info.model_dump() if draft.author_info else None
        payload = {
            "title": metadata.seo_meta.title,
            "content": draft.content_md,
            "seo_meta": metadata.seo_meta.model_dump(),
            "schema_markup": parse_schema_markup(metadata.schema_markup.model_dump()),
            "author_info": author_info,
            "content_structure": build_content_structure(
                draft.content_md,
                metadata.content_structure_stats.model_dump(),
                author_info,
            ),
            "blueprint": blueprint.model_dump(),
            "cta_blocks": [c.model_dump() for c in draft.cta_blocks],
        }

        issues = validate_generated_article({**payload, "content_md": payload["content"]}, min_words=ARTICLE_MIN_WORDS)
        if issues:
            logger.warning(
                f"[Workflow][{article_id}] {len(issues)} validation issues: "
                f"{', '.join(sorted({i['code'] for i in issues}))}"
            )

        ref.update({
            **payload,
            "validation_issues": issues,
            "status": "completed",
            "updated_at": gcfirestore.SERVER_TIMESTAMP,
        })
        logger.info(f"[Workflow][{article_id}] Article completed successfully")
    except Exception as e:
        logger.error(f"[Workflow][{article_id}] Execution failed: {e}", exc_info=True)
        try:
            ref.update({"status": "failed", "error": str(e)})
        except Exception as update_error:
            logger.error(f"[Workflow][{article_id}] Could not mark article failed: {update_error}")
