import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from seo_writer.schemas.requests import KeywordSelectionRequest
from seo_writer.services import keyword_research
from seo_writer.services.competitors import analyze_competitors
from seo_writer.services.firestore import list_records
from seo_writer.services.niche import analyze_niche
from seo_writer.utils.auth import get_current_business, verify_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])
limiter = Limiter(key_func=get_remote_address)


# -------------------------------------------------
# Research regeneration
# -------------------------------------------------
@router.post("/dashboard/niche/regenerate")
@limiter.limit("20/hour")
def regenerate_niche(
    request: Request,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    return {"analysis": analyze_niche(business["id"], decoded.get("uid"))}


@router.post("/dashboard/competitors/regenerate")
@limiter.limit("20/hour")
def regenerate_competitors(
    request: Request,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    competitors = analyze_competitors(business["id"], decoded.get("uid"), replace=True)
    return {"competitors": competitors}


@router.post("/dashboard/keywords/regenerate")
@limiter.limit("20/hour")
def regenerate_keywords(
    request: Request,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    try:
        generated = keyword_research.generate_keywords(business["id"], decoded.get("uid"))
        refreshed = keyword_research.refresh_unknown_volumes(business["id"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Keyword regeneration failed for business {business['id']}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Keyword generation failed: {e}")

    return {
        "inserted": len(generated["keywords"]),
        "refreshed": refreshed,
        "broadened": generated["broadened"],
        "debug_expanded_list": generated["debug_expanded_list"],
    }


@router.get("/competitors")
def list_competitors(business: dict = Depends(get_current_business)):
    return list_records("competitors", "business_id", business["id"])


# -------------------------------------------------
# Keywords
# -------------------------------------------------
@router.get("/keywords")
def list_keywords(business: dict = Depends(get_current_business)):
    keywords = list_records("keywords", "business_id", business["id"])
    return sorted(keywords, key=lambda k: k.get("volume") or 0, reverse=True)


@router.post("/keywords/{keyword_id}/refresh")
@limiter.limit("60/hour")
def refresh_keyword(request: Request, keyword_id: str, business: dict = Depends(get_current_business)):
    try:
        return keyword_research.refresh_keyword_volume(business["id"], keyword_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/keywords/{keyword_id}")
def select_keyword(keyword_id: str, body: KeywordSelectionRequest, business: dict = Depends(get_current_business)):
    try:
        return keyword_research.set_keyword_selected(business["id"], keyword_id, body.is_selected)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/keywords/{keyword_id}")
def delete_keyword(keyword_id: str, business: dict = Depends(get_current_business)):
    try:
        keyword_research.delete_keyword(business["id"], keyword_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "deleted", "id": keyword_id}


@router.delete("/keywords")
def delete_all_keywords(business: dict = Depends(get_current_business)):
    deleted = keyword_research.delete_all_keywords(business["id"])
    return {"status": "deleted", "count": deleted}
