import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from seo_writer.schemas.requests import AnalyzeProductRequest, AnalyzeServiceRequest, CreateDescriptionRequest
from seo_writer.services import descriptions
from seo_writer.services.business import get_business_for_user
from seo_writer.services.firestore import get_record, list_records
from seo_writer.services.seo_audit import run_seo_audit
from seo_writer.utils.auth import verify_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["descriptions"])
limiter = Limiter(key_func=get_remote_address)

COLLECTIONS = {"product": "product_descriptions", "service": "service_descriptions"}


def _load_description(kind: str, record_id: str, uid: str) -> dict:
    record = get_record(COLLECTIONS[kind], record_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"{kind.capitalize()} not found")
    if record.get("user_id") != uid:
        raise HTTPException(status_code=403, detail="Not authorized")
    return record


def _business_id(uid: str):
    business = get_business_for_user(uid)
    return business["id"] if business else None


def _audit(kind: str, record_id: str, uid: str):
    _load_description(kind, record_id, uid)
    try:
        return run_seo_audit(kind, record_id, uid, get_business_for_user(uid))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"SEO audit failed for {kind} {record_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"SEO audit failed: {e}")


# -------------------------------------------------
# Products
# -------------------------------------------------
@router.post("/products/analyze")
@limiter.limit("30/hour")
def analyze_product(request: Request, body: AnalyzeProductRequest, decoded: dict = Depends(verify_token)):
    try:
        return descriptions.analyze_product(body.name, body.image_url, decoded.get("uid"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Product analysis failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Product analysis failed: {e}")


@router.post("/products")
@limiter.limit("30/hour")
def create_product(request: Request, body: CreateDescriptionRequest, decoded: dict = Depends(verify_token)):
    uid = decoded.get("uid")
    try:
        return descriptions.create_product_description(
            uid,
            body.name,
            body.image_url,
            body.all_keywords,
            body.selected_keywords,
            language=body.language,
            business_id=_business_id(uid),
        )
    except Exception as e:
        logger.error(f"Product description failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save product")


@router.get("/products")
def list_products(decoded: dict = Depends(verify_token)):
    return list_records("product_descriptions", "user_id", decoded.get("uid"))


@router.get("/products/{product_id}")
def get_product(product_id: str, decoded: dict = Depends(verify_token)):
    return _load_description("product", product_id, decoded.get("uid"))


@router.post("/products/{product_id}/audit")
@limiter.limit("30/hour")
def audit_product(request: Request, product_id: str, decoded: dict = Depends(verify_token)):
    return _audit("product", product_id, decoded.get("uid"))


# -------------------------------------------------
# Services
# -------------------------------------------------
@router.post("/services/analyze")
@limiter.limit("30/hour")
def analyze_service(request: Request, body: AnalyzeServiceRequest, decoded: dict = Depends(verify_token)):
    try:
        return descriptions.analyze_service(body.name, decoded.get("uid"))
    except Exception as e:
        logger.error(f"Service analysis failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Service analysis failed: {e}")


@router.post("/services")
@limiter.limit("30/hour")
def create_service(request: Request, body: CreateDescriptionRequest, decoded: dict = Depends(verify_token)):
    uid = decoded.get("uid")
    try:
        return descriptions.create_service_description(
            uid,
            body.name,
            body.all_keywords,
            body.selected_keywords,
            language=body.language,
            business_id=_business_id(uid),
        )
    except Exception as e:
        logger.error(f"Service description failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save service")


@router.get("/services")
def list_services(decoded: dict = Depends(verify_token)):
    return list_records("service_descriptions", "user_id", decoded.get("uid"))


@router.get("/services/{service_id}")
def get_service(service_id: str, decoded: dict = Depends(verify_token)):
    return _load_description("service", service_id, decoded.get("uid"))


@router.post("/services/{service_id}/audit")
@limiter.limit("30/hour")
def audit_service(request: Request, service_id: str, decoded: dict = Depends(verify_token)):
    return _audit("service", service_id, decoded.get("uid"))
