# seo_writer/schemas/article.py

from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional

MIN_BLUEPRINT_SECTIONS = 10


# -------------------------------------------------
# Stage 1: Blueprint
# -------------------------------------------------
class BlueprintSection(BaseModel):
    h2: str
    purpose: str
    search_intent_match: str


class RecommendedStructure(BaseModel):
    h1: str
    sections: List[BlueprintSection]


class SchemaRecommendations(BaseModel):
    article: bool
    faq: bool
    howto: bool


class Blueprint(BaseModel):
    primary_intent: Literal["informational", "commercial", "transactional"]
    article_type: Literal["guide", "comparison", "service-page", "pillar", "news"]
    user_expectations: List[str]
    recommended_structure: RecommendedStructure
    faq_candidates: List[str]
    schema_recommendations: SchemaRecommendations
    conversion_opportunities: List[str]

    @model_validator(mode="after")
    def check_depth(self):
        if len(self.recommended_structure.sections) < MIN_BLUEPRINT_SECTIONS:
            raise ValueError(
                f"Blueprint must have at least {MIN_BLUEPRINT_SECTIONS} main sections "
                "to ensure article depth."
            )
        return self


# -------------------------------------------------
# Stage 2: Draft
# -------------------------------------------------
class AuthorInfo(BaseModel):
    name: str
    bio: str
    credentials: List[str] = []


class CtaBlock(BaseModel):
    type: str
    placement: str
    message: str


class Draft(BaseModel):
    content_md: str
    author_info: Optional[AuthorInfo]
    cta_blocks: List[CtaBlock]


# -------------------------------------------------
# Stage 3: Metadata & schema
# -------------------------------------------------
class SeoMetaOutput(BaseModel):
    title: str = Field(max_length=70)
    description: str = Field(max_length=165)
    slug: str
    title_alternatives: List[str]
    description_alternatives: List[str]


class SchemaMarkupStrings(BaseModel):
    article: str = Field(description="JSON-LD Article object as a string")
    author: str = Field(description="JSON-LD Person object as a string")
    organization: str = Field(description="JSON-LD Organization object as a string")
    breadcrumb: str = Field(description="JSON-LD BreadcrumbList object as a string")
    faq: Optional[str] = Field(default=None, description="JSON-LD FAQPage object as a string (if applicable)")
    howto: Optional[str] = Field(default=None, description="JSON-LD HowTo object as a string (if applicable)")


class ContentStructureStats(BaseModel):
    h1_count: int
    h2_count: int
    images_count: int
    links_count: int
    toc_found: bool


class ArticleMetadata(BaseModel):
    seo_meta: SeoMetaOutput
    schema_markup: SchemaMarkupStrings
    content_structure_stats: ContentStructureStats
