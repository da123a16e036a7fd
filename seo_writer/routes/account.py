import logging

from fastapi import APIRouter, Depends, HTTPException

from seo_writer.services.business import delete_account_data
from seo_writer.utils.auth import verify_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["account"])


@router.delete("")
def delete_account(decoded: dict = Depends(verify_token)):
    """Delete all of the caller's data and their auth user."""
    uid = decoded.get("uid")
    try:
        deleted = delete_account_data(uid)
    except Exception as e:
        logger.error(f"Delete account failed for {uid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete account data")
    return {"success": True, "deleted": deleted}
