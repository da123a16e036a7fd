from typing import Optional

from seo_writer.services.seo_validation import SEO_LIMITS
from seo_writer.utils.prompts import fill_prompt

# (section id, section title, checklist items)
SEO_CHECKLIST = [
    ("content-semantic-depth", "Content & Semantic Depth", [
        "Primary keyword targeting",
        "One clear main intent per page",
        "Semantic variants used naturally",
        "Search intent alignment (Informational/Commercial/Transactional/Navigational)",
        "Topical completeness",
        "Entity coverage",
        "LSI & NLP keywords",
        "Original insights",
        "Content freshness",
        "Clear structure",
        "Readability",
        "Multimedia enrichment",
        "Content length",
        "Unique content",
    ]),
    ("headings-structure", "Headings & On-Page Structure", [
        "Single H1",
        "Hierarchical headings (H2→H3→H4 without skipping)",
        "Descriptive headings",
        "Keyword-optimized headings",
        "Table of contents (if long content)",
    ]),
    ("meta-serp", "Meta & SERP Optimization", [
        "Meta title length + CTR",
        "Meta description length + CTA",
        "Clean URL",
        "Breadcrumbs in SERP",
        "Date handling",
    ]),
    ("schema-structured-data", "Schema & Structured Data", [
        "Article/BlogPosting schema (if applicable)",
        "Author schema",
        "Organization/Publisher schema",
        "BreadcrumbList schema",
        "FAQ schema (if applicable)",
        "HowTo schema (if applicable)",
        "Speakable schema (optional)",
        "ImageObject schema",
        "MainEntityOfPage",
    ]),
    ("internal-linking", "Internal Linking & Site Architecture", [
        "Contextual internal links",
        "Topic cluster support",
        "No orphan pages",
        "Descriptive anchor text",
        "Logical crawl depth",
    ]),
    ("external-linking", "External Linking & Trust Signals", [
        "Outbound links to authoritative sources",
        "Correct rel attributes",
        "Citations for data/claims",
        "No broken external links",
    ]),
    ("eeat", "E-E-A-T", [
        "Author bio",
        "Author page",
        "Editorial policy page",
        "Fact-checking signals",
        "Contact & About pages",
        "Company transparency",
        "Reviews/mentions support",
    ]),
    ("ux-engagement", "UX & Engagement Signals", [
        "Fast perceived load",
        "Clear typography",
        "Mobile-first layout",
        "Comfortable line length/white space",
        "Sticky TOC (optional)",
        "Scroll depth optimization",
        "Clear next actions (related/CTA)",
        "No intrusive popups",
        "Accessibility basics",
    ]),
    ("core-web-vitals", "Core Web Vitals & Performance", [
        "LCP",
        "CLS",
        "INP",
        "Optimized images",
        "Font optimization",
        "Minimal JS",
        "Server response optimization",
    ]),
    ("image-media", "Image & Media SEO", [
        "Descriptive filenames",
        "Alt text",
        "Captions when useful",
        "Compression",
        "Video schema (if video exists)",
    ]),
    ("technical-hygiene", "Technical SEO Hygiene", [
        "Indexable page (no accidental noindex)",
        "Canonical tag",
        "hreflang (if applicable)",
        "HTML validity",
        "No mixed content",
        "No render-blocking resources",
        "Clean DOM structure",
    ]),
    ("conversion-business", "Conversion & Business Layer", [
        "Contextual CTAs",
        "Lead magnets / email capture (non-intrusive)",
        "Trust badges",
        "Clear value proposition",
        "Tracking (GA4/GSC/events)",
    ]),
]

SEO_AUDIT_PROMPT = """
You are an expert SEO auditor and editor.

Goal: evaluate the provided page content against a strict SEO checklist and propose compliant meta tags.

Constraints:
- Output MUST be valid JSON only (no markdown, no commentary).
- Keep every "notes" and "how_to_fix" very short (1-2 sentences max).
- Status must be one of: "pass" | "warn" | "fail" | "na".
- If something cannot be determined from the content, use "na" and explain briefly.

Page:
- Type: {page_type}
- Primary keyword: {primary_keyword}
- Language: {language_name}
{business_line}

Meta rules (HARD MAXES):
- meta.title max {title_max} chars (recommended {title_min_rec}-{title_max_rec})
- meta.description max {description_max} chars (recommended {description_min_rec}-{description_max_rec})
- meta.slug max {slug_max} chars

If you cannot fit the limits, you MUST provide shorter alternatives in:
- meta.title_alternatives (3 options, each <= max)
- meta.description_alternatives (3 options, each <= max)

Return JSON with EXACT shape:
{
  "meta": {
    "title": string,
    "description": string,
    "slug": string,
    "canonical_url": string (optional),
    "title_alternatives": string[],
    "description_alternatives": string[]
  },
  "sections": [
    {
      "id": "content-semantic-depth",
      "title": "Content & Semantic Depth",
      "items": [
        { "id": "primary-keyword-targeting", "title": "Primary keyword targeting", "status": "pass|warn|fail|na", "notes": "...", "how_to_fix": "..." }
      ]
    }
  ]
}

Checklist sections & items to include (ALL):
{checklist}

Now audit the content below:
CONTENT (Markdown):
{content_md}
"""


def render_checklist() -> str:
    blocks = []
    for number, (section_id, title, items) in enumerate(SEO_CHECKLIST, start=1):
        lines = [f"{number}) {title} (id: {section_id})"]
        lines.extend(f"- {item}" for item in items)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_seo_audit_prompt(
    *,
    page_type: str,
    primary_keyword: str,
    language_name: str,
    content_md: str,
    business_context: Optional[str] = None,
) -> str:
    title = SEO_LIMITS["meta_title"]
    description = SEO_LIMITS["meta_description"]
    return fill_prompt(
        SEO_AUDIT_PROMPT,
        page_type=page_type,
        primary_keyword=primary_keyword,
        language_name=language_name,
        business_line=f"- Business context: {business_context}" if business_context else "",
        title_max=title["hard_max"],
        title_min_rec=title["recommended_min"],
        title_max_rec=title["recommended_max"],
        description_max=description["hard_max"],
        description_min_rec=description["recommended_min"],
        description_max_rec=description["recommended_max"],
        slug_max=SEO_LIMITS["url_slug"]["hard_max"],
        checklist=render_checklist(),
        content_md=content_md,
    )
