import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from seo_writer.schemas.requests import CompetitorAnalysisRequest
from seo_writer.services.competitor_analysis import create_analysis, run_analysis
from seo_writer.services.firestore import get_record, list_records
from seo_writer.utils.auth import ensure_owner, get_current_business, verify_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/competitors/analyses", tags=["competitors"])
limiter = Limiter(key_func=get_remote_address)


@router.post("")
@limiter.limit("20/hour")
def create_competitor_analysis(
    request: Request,
    body: CompetitorAnalysisRequest,
    background_tasks: BackgroundTasks,
    decoded: dict = Depends(verify_token),
    business: dict = Depends(get_current_business),
):
    """Record the comparison as "generating"; scraping and the report run in the background."""
    try:
        analysis = create_analysis(business["id"], body.page_type, body.my_url, body.competitor_url, body.language)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(
        run_analysis,
        analysis["id"],
        body.my_url,
        body.competitor_url,
        body.page_type,
        body.language,
        decoded.get("uid"),
    )
    return {"success": True, "id": analysis["id"], "status": analysis["status"]}


@router.get("")
def list_competitor_analyses(business: dict = Depends(get_current_business)):
    return list_records("competitor_analyses", "business_id", business["id"])


@router.get("/{analysis_id}")
def get_competitor_analysis(analysis_id: str, business: dict = Depends(get_current_business)):
    return ensure_owner(get_record("competitor_analyses", analysis_id), business, "Analysis")
