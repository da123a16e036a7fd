# seo_writer/schemas/requests.py

from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional


class BusinessContextForm(BaseModel):
    business_type: str = "other"
    website_url: str
    target_country: Optional[str] = None
    language: Literal["bg", "en"] = "en"
    product_description: str


class AuthorPersona(BaseModel):
    name: str
    bio: Optional[str] = None


class CreateArticleRequest(BaseModel):
    keyword_id: str
    goal: str = "Inform"
    tone: str = "Expert"
    author: Optional[AuthorPersona] = None
    save_author: bool = False


class UpdateArticleRequest(BaseModel):
    content: str
    title: Optional[str] = None


class KeywordSelectionRequest(BaseModel):
    is_selected: bool


class AnalyzeProductRequest(BaseModel):
    name: str
    image_url: str


class AnalyzeServiceRequest(BaseModel):
    name: str


class CreateDescriptionRequest(BaseModel):
    name: str
    image_url: Optional[str] = None
    all_keywords: List[Dict[str, Any]] = []
    selected_keywords: List[Dict[str, Any]] = []
    language: Literal["bg", "en"] = "en"


class CompetitorAnalysisRequest(BaseModel):
    page_type: Literal["Home", "Service", "Product", "Article"]
    my_url: str
    competitor_url: str
    language: Literal["bg", "en"] = "en"
