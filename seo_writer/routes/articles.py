import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from seo_writer.schemas.requests import CreateArticleRequest, UpdateArticleRequest
from seo_writer.services import article_workflow
from seo_writer.services.firestore import get_record, list_records
from seo_writer.services.seo_audit import run_seo_audit
from seo_writer.services.seo_validation import validate_seo_meta
from seo_writer.utils.auth import ensure_owner, get_current_business, verify_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["articles"])
limiter = Limiter(key_func=get_remote_address)


def _load_article(article_id: str, business: dict) -> dict:
    return ensure_owner(get_record("articles", article_id), business, "Article")


@router.post("/articles")
@limiter.limit("30/hour")
def create_article(
    request: Request,
    body: CreateArticleRequest,
    background_tasks: BackgroundTasks,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    """Create the article record and generate it in the background."""
    try:
        article = article_workflow.create_article(
            business,
            body.keyword_id,
            body.goal,
            body.tone,
            author=body.author.model_dump() if body.author else None,
            save_author=body.save_author,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    background_tasks.add_task(article_workflow.generate_article_workflow, article["id"], decoded.get("uid"))
    return {"id": article["id"], "version": article["version"], "status": article["status"]}


@router.get("/articles")
def list_articles(business: dict = Depends(get_current_business)):
    articles = list_records("articles", "business_id", business["id"])
    # list view: bodies are fetched per article
    return [{k: v for k, v in a.items() if k not in ("content", "blueprint", "schema_markup")} for a in articles]


@router.get("/articles/{article_id}")
def get_article(article_id: str, business: dict = Depends(get_current_business)):
    return _load_article(article_id, business)


@router.put("/articles/{article_id}")
def update_article(article_id: str, body: UpdateArticleRequest, business: dict = Depends(get_current_business)):
    _load_article(article_id, business)
    return article_workflow.update_article(article_id, body.content, body.title)


@router.get("/articles/{article_id}/validation")
def validate_article(article_id: str, business: dict = Depends(get_current_business)):
    article = _load_article(article_id, business)
    if article.get("status") != "completed":
        raise HTTPException(status_code=400, detail=f"Article is {article.get('status')}, not completed")
    issues = article_workflow.validate_article(article)
    return {
        "valid": not issues,
        "issues": issues,
        "meta": validate_seo_meta(article.get("seo_meta")),
    }


@router.post("/articles/{article_id}/audit")
@limiter.limit("30/hour")
def audit_article(
    request: Request,
    article_id: str,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    _load_article(article_id, business)
    try:
        return run_seo_audit("article", article_id, decoded.get("uid"), business)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"SEO audit failed for article {article_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"SEO audit failed: {e}")


@router.get("/authors")
def list_authors(business: dict = Depends(get_current_business)):
    return article_workflow.list_saved_authors(business["id"])
