import logging
from typing import Any, Dict, Optional

from firebase_admin import auth as firebase_auth
from google.cloud import firestore as gcfirestore

from seo_writer.services.competitors import analyze_competitors
from seo_writer.services.firestore import get_db, list_records
from seo_writer.services.keyword_research import generate_keywords
from seo_writer.services.niche import analyze_niche

logger = logging.getLogger(__name__)


def get_business_for_user(user_id: str) -> Optional[Dict[str, Any]]:
    """Each user owns at most one business."""
    businesses = list_records("businesses", "user_id", user_id)
    return businesses[0] if businesses else None


def run_initial_research(business_id: str, user_id: Optional[str] = None) -> Dict[str, str]:
    """Niche, keywords and competitors; each job runs even when another fails."""
    jobs = {
        "niche": lambda: analyze_niche(business_id, user_id),
        "keywords": lambda: generate_keywords(business_id, user_id),
        "competitors": lambda: analyze_competitors(business_id, user_id),
    }
    outcome = {}
    for name, job in jobs.items():
        try:
            job()
            outcome[name] = "ok"
        except Exception as e:
            logger.error(f"Background job error ({name}) for business {business_id}: {e}", exc_info=True)
            outcome[name] = "failed"
    return outcome


def save_business_context(user_id: str, form: Dict[str, Any], run_research: bool = True) -> Dict[str, Any]:
    """Create (or update) the user's business and kick off the initial research."""
    website_url = (form.get("website_url") or "").strip()
    description = (form.get("product_description") or "").strip()
    if not website_url or not description:
        raise ValueError("Missing required fields")

    data = {
        "user_id": user_id,
        "business_type": form.get("business_type") or "other",
        "website_url": website_url,
        "target_country": form.get("target_country"),
        "language": form.get("language") or "en",
        "product_description": description,
        "updated_at": gcfirestore.SERVER_TIMESTAMP,
    }

    db = get_db()
    existing = get_business_for_user(user_id)
    if existing:
        business_id = existing["id"]
        db.collection("businesses").document(business_id).update(data)
        logger.info(f"Updated business {business_id} for user {user_id}")
    else:
        _, ref = db.collection("businesses").add({**data, "created_at": gcfirestore.SERVER_TIMESTAMP})
        business_id = ref.id
        logger.info(f"Created business {business_id} for user {user_id}")

    research = run_initial_research(business_id, user_id) if run_research else {}
    return {"business_id": business_id, "research": research}


def _delete_where(collection: str, field: str, value: Any) -> int:
    db = get_db()
    deleted = 0
    for doc in db.collection(collection).where(field, "==", value).stream():
        doc.reference.delete()
        deleted += 1
    if deleted:
        logger.info(f"Deleted {deleted} docs from {collection}")
    return deleted


def delete_account_data(user_id: str) -> Dict[str, int]:
    """Remove everything the user owns, children before parents, then the auth user."""
    counts = {
        "service_descriptions": _delete_where("service_descriptions", "user_id", user_id),
        "product_descriptions": _delete_where("product_descriptions", "user_id", user_id),
    }

    business = get_business_for_user(user_id)
    if business:
        business_id = business["id"]
        for collection in ("articles", "saved_authors", "competitor_analyses", "keywords", "competitors"):
            counts[collection] = _delete_where(collection, "business_id", business_id)
        get_db().collection("businesses").document(business_id).delete()
        counts["businesses"] = 1

    get_db().collection("users").document(user_id).delete()

    try:
        firebase_auth.delete_user(user_id)
        logger.info(f"User {user_id} deleted from Firebase Auth")
    except Exception as e:
        # data is already gone at this point
        logger.error(f"Auth deletion failed for {user_id}: {e}")

    return counts
