# seo_writer/schemas/seo.py

from pydantic import BaseModel, field_validator
from typing import Any, List, Literal, Optional

AUDIT_STATUSES = ("pass", "warn", "fail", "na")

SeoAuditStatus = Literal["pass", "warn", "fail", "na"]


class SeoAuditItem(BaseModel):
    id: str
    title: str
    status: SeoAuditStatus = "na"
    notes: Optional[str] = None
    how_to_fix: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        status = str(value or "").strip().lower()
        return status if status in AUDIT_STATUSES else "na"


class SeoAuditSection(BaseModel):
    id: str
    title: str
    items: List[SeoAuditItem] = []


class SeoMeta(BaseModel):
    title: str = ""
    description: str = ""
    slug: str = ""
    canonical_url: Optional[str] = None
    title_alternatives: List[str] = []
    description_alternatives: List[str] = []


class SeoAuditResult(BaseModel):
    meta: SeoMeta
    sections: List[SeoAuditSection] = []


class ValidationIssue(BaseModel):
    code: Literal[
        "missing_title",
        "missing_content",
        "word_count_low",
        "missing_h1",
        "multiple_h1",
        "no_external_link",
        "missing_toc",
        "meta_invalid",
        "missing_schema",
        "missing_author_info",
        "missing_content_structure",
    ]
    message: str
    details: Optional[Any] = None
