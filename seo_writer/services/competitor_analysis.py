import logging
from typing import Any, Dict, Optional

from google.cloud import firestore as gcfirestore

from seo_writer.core.config import get_model_for_type, language_name
from seo_writer.services.firestore import get_db
from seo_writer.services.openai_service import record_usage, run_text_completion
from seo_writer.services.scrape import scrape_page
from seo_writer.utils.prompts import COMPETITOR_PAGE_PROMPT, fill_prompt

logger = logging.getLogger(__name__)

PAGE_TYPES = ("Home", "Service", "Product", "Article")

# Characters of each page's text that go into the comparison prompt
PROMPT_TEXT_CHARS = 4000


def create_analysis(business_id: str, page_type: str, my_url: str, competitor_url: str, language: str = "en") -> Dict[str, Any]:
    """Insert a competitor_analyses record in "generating" state."""
    if page_type not in PAGE_TYPES:
        raise ValueError(f"Invalid page type: {page_type}")
    if not my_url or not competitor_url:
        raise ValueError("Missing fields")

    row = {
        "business_id": business_id,
        "page_type": page_type,
        "my_url": my_url,
        "competitor_url": competitor_url,
        "language": language,
        "status": "generating",
        "report_markdown": None,
        "created_at": gcfirestore.SERVER_TIMESTAMP,
    }
    _, ref = get_db().collection("competitor_analyses").add(row)
    return {**row, "id": ref.id, "created_at": None}


def build_comparison_prompt(page_type: str, mine: Dict[str, Any], theirs: Dict[str, Any], language: str) -> str:
    return fill_prompt(
        COMPETITOR_PAGE_PROMPT,
        my_url=mine["url"],
        competitor_url=theirs["url"],
        page_type=page_type,
        my_title=mine["title"],
        my_h1s=", ".join(mine["headings"]["h1"]),
        competitor_title=theirs["title"],
        competitor_h1s=", ".join(theirs["headings"]["h1"]),
        language=language_name(language),
        my_text=mine["text"][:PROMPT_TEXT_CHARS],
        competitor_text=theirs["text"][:PROMPT_TEXT_CHARS],
    )


def run_analysis(
    analysis_id: str,
    my_url: str,
    competitor_url: str,
    page_type: str,
    language: str = "en",
    user_id: Optional[str] = None,
):
    """Background job: scrape both pages and store a Markdown comparison report."""
    ref = get_db().collection("competitor_analyses").document(analysis_id)
    try:
        logger.info(f"[CompetitorAnalysis][{analysis_id}] {my_url} vs {competitor_url}")
        mine = scrape_page(my_url)
        theirs = scrape_page(competitor_url)

        model = get_model_for_type("competitors")
        response = run_text_completion(
            build_comparison_prompt(page_type, mine, theirs, language),
            model=model,
        )
        record_usage(user_id, response["usage"], model)

        report = response["text"] or "Failed to generate report."
        ref.update({
            "status": "completed",
            "report_markdown": report,
            "updated_at": gcfirestore.SERVER_TIMESTAMP,
        })
        logger.info(f"[CompetitorAnalysis][{analysis_id}] completed ({len(report)} chars)")
    except Exception as e:
        logger.error(f"[CompetitorAnalysis][{analysis_id}] failed: {e}", exc_info=True)
        ref.update({
            "status": "failed",
            "error": str(e),
            "report_markdown": f"Analysis failed: {e}",
            "updated_at": gcfirestore.SERVER_TIMESTAMP,
        })
