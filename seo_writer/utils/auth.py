from fastapi import Depends, Header, HTTPException
from firebase_admin import auth as firebase_auth

from seo_writer.services.business import get_business_for_user
from seo_writer.services.firestore import get_db


def verify_token(authorization: str = Header(None)) -> dict:
    """FastAPI dependency to verify a Firebase ID token.

    Returns the decoded token dict on success, or raises 401 on failure.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    try:
        get_db()  # initializes the Firebase app
        token = authorization.replace("Bearer ", "")
        decoded = firebase_auth.verify_id_token(token)
        return decoded
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_current_business(decoded: dict = Depends(verify_token)) -> dict:
    """The caller's business; 404 until onboarding has been completed."""
    business = get_business_for_user(decoded.get("uid"))
    if not business:
        raise HTTPException(status_code=404, detail="No business found. Complete onboarding first.")
    return business


def ensure_owner(record: dict, business: dict, label: str) -> dict:
    if not record:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    if record.get("business_id") != business["id"]:
        raise HTTPException(status_code=403, detail="Not authorized")
    return record
