import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from seo_writer.schemas.requests import BusinessContextForm
from seo_writer.services.business import get_business_for_user, run_initial_research, save_business_context
from seo_writer.utils.auth import get_current_business, verify_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["onboarding"])


@router.post("/onboarding")
def onboarding(body: BusinessContextForm, background_tasks: BackgroundTasks, decoded: dict = Depends(verify_token)):
    """Save the business context; niche, keywords and competitors are researched in the background."""
    uid = decoded.get("uid")
    try:
        saved = save_business_context(uid, body.model_dump(), run_research=False)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to save business context for {uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save business context")

    background_tasks.add_task(run_initial_research, saved["business_id"], uid)
    return {"status": "researching", "business_id": saved["business_id"]}


@router.get("/business")
def get_business(business: dict = Depends(get_current_business)):
    return business


@router.get("/onboarding/status")
def onboarding_status(decoded: dict = Depends(verify_token)):
    business = get_business_for_user(decoded.get("uid"))
    return {"onboarded": business is not None, "business_id": business["id"] if business else None}
