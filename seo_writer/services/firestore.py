import os
import json
import logging
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

# Client initialized lazily
_db = None


def _load_credentials() -> credentials.Certificate:
    """Service account from GOOGLE_APPLICATION_CREDENTIALS_JSON (hosted) or the
    file named by GOOGLE_APPLICATION_CREDENTIALS (local)."""
    json_str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON")
    if json_str:
        try:
            return credentials.Certificate(json.loads(json_str))
        except json.JSONDecodeError:
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS_JSON contains invalid JSON.")

    json_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if json_path and os.path.exists(json_path):
        return credentials.Certificate(json_path)

    raise ValueError(
        "No Firestore credentials found. Set GOOGLE_APPLICATION_CREDENTIALS_JSON "
        "or point GOOGLE_APPLICATION_CREDENTIALS at a service account file."
    )


def init_firestore():
    if not firebase_admin._apps:
        firebase_admin.initialize_app(_load_credentials())
        logger.info("Firebase app initialized")
    return firestore.client()


def get_db():
    """Get or create the Firestore client (lazy initialization)."""
    global _db
    if _db is None:
        _db = init_firestore()
    return _db


def doc_to_dict(snapshot) -> Optional[Dict[str, Any]]:
    """Snapshot data with the document id folded in, or None when missing."""
    if snapshot is None or not snapshot.exists:
        return None
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


def get_record(collection: str, record_id: str) -> Optional[Dict[str, Any]]:
    return doc_to_dict(get_db().collection(collection).document(record_id).get())


def list_records(collection: str, field: str, value: Any) -> list:
    docs = get_db().collection(collection).where(field, "==", value).stream()
    return [doc_to_dict(d) for d in docs]
