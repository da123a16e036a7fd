"""Prompt builders for the three article workflow stages."""

from typing import Optional

from seo_writer.utils.prompts import fill_prompt, to_prompt_json

# Only the head of the draft goes into the metadata stage
METADATA_CONTENT_EXCERPT = 3000

BLUEPRINT_PROMPT = """
You are an expert SEO Strategist.
Goal: Design the perfect article blueprint to rank for the keyword: "{keyword}"
Context:
- Business: {business_context}
- Target Goal: {goal}
- Tone: {tone}
- Country: {target_country}
- Language: {language_name}

Task:
1. Classify the search intent (Informational, Commercial, Transactional).
2. Decide the best article type (Guide, Comparison, etc.).
3. Create a structural blueprint (H1, Sections).
   - Rules:
     - H1 must include the keyword.
     - Sections must logically flow to satisfy the intent.
     - NO intro/conclusion labels in H2s (use descriptive headers).
     - MANDATORY: Create a COMPREHENSIVE outline with at least 10-15 main sections (H2).
     - MANDATORY: Each main section MUST have 3-5 sub-points (H3) to ensure depth.
     - The structure must support a long-form article of 2500+ words.
4. Identify 3-5 FAQ candidates based on "People Also Ask".
5. Recommend schema types.

Output JSON ONLY matching this schema:
{
  "primary_intent": "informational | commercial | transactional",
  "article_type": "guide | comparison | service-page | pillar | news",
  "user_expectations": ["..."],
  "recommended_structure": {
    "h1": "...",
    "sections": [
      { "h2": "...", "purpose": "...", "search_intent_match": "..." }
    ]
  },
  "faq_candidates": ["..."],
  "schema_recommendations": { "article": true, "faq": boolean, "howto": boolean },
  "conversion_opportunities": ["..."]
}
"""

AUTHOR_PERSONA_INSTRUCTION = """
STRICT AUTHOR PERSONA REQUIREMENT:
You are writing as: {author_name}
Bio/Expertise: {author_bio}

- Write in the voice of this specific persona.
- Leverage this expertise to add authority and unique insights.
- The "author_info" in the output JSON MUST match this name and bio exactly.
"""

BRAND_VOICE_INSTRUCTION = """
- Do NOT create a specific author persona.
- Write in a high-quality {tone} tone representing the brand.
- The "author_info" field in the output JSON must be NULL.
"""

DRAFT_PROMPT = """
{author_instruction}

You are an expert SEO Copywriter.
Goal: Write a long-form article based strictly on the provided Blueprint.

Context:
- Keyword: "{keyword}"
- Business: {business_context}
- Goal: {goal}
- Tone: {tone}
- Language: {language_name} (MUST write in this language)
- Min Words: {min_words}

Blueprint (Structure & Strategy):
{blueprint}

Instructions:
1. Write the full article in Markdown, starting with exactly ONE H1 (# ...).
2. Follow the "Recommended Structure" exactly (H1, Sections).
3. Integrate the "User Expectations" content naturally.
4. Add the "Conversion Opportunities" (CTAs) where appropriate.
5. Use proper Markdown formatting (bold, italics, lists, tables).
6. WRITE EXTENSIVELY:
   - This must be a deep-dive comprehensive guide (Target: 2500+ words).
   - FOR EACH H2 SECTION: Write at least 4-5 long paragraphs.
   - FOR EACH H3 SUBSECTION: Write at least 2 detailed paragraphs with examples.
   - Do NOT summarize. If the blueprint is short, EXPAND on each point significantly.
7. Add a "Table of Contents" section after the introduction with anchor links (#section-name).
8. Include images using markdown syntax: ![Alt text](image_description)
9. Include at least 2 authoritative external links as anchors: [Link Text](https://...)

Output JSON ONLY matching this schema:
{
  "content_md": "...",
  "author_info": { "name": "...", "bio": "...", "credentials": ["..."] } OR null,
  "cta_blocks": [{ "type": "soft/hard", "placement": "...", "message": "..." }]
}
"""

METADATA_PROMPT = """
You are an expert SEO Technical Specialist.
Goal: Generate perfect metadata and Schema.org JSON-LD for the article below.

Context:
- Keyword: "{keyword}"
- Business: {business_context}
- Language: {language_name}
- Article Content (Excerpt):
{content_excerpt}... (truncated for context)

Rules:
1. Generate valid JSON-LD for: Article, Author, Organization, Breadcrumb.
2. If the content implies FAQ or HowTo, generate those schema types too.
3. Create a compelling Meta Title (50-60 chars) and Description (140-160 chars).
4. Analyze the content structure (H1s, H2s, images, links) and report stats.
5. CRITICAL: For the "schema_markup" fields, return the JSON-LD objects as STRINGIFIED JSON.
   - Example: "article": "{\\"@context\\": \\"https://schema.org\\", \\"@type\\": \\"Article\\"...}"

Output JSON ONLY matching this schema:
{
  "seo_meta": {
    "title": "...",
    "description": "...",
    "slug": "...",
    "title_alternatives": ["..."],
    "description_alternatives": ["..."]
  },
  "schema_markup": {
    "article": "stringified_json_ld_object",
    "author": "stringified_json_ld_object",
    "organization": "stringified_json_ld_object",
    "breadcrumb": "stringified_json_ld_object",
    "faq": "stringified_json_ld_object" (or null),
    "howto": "stringified_json_ld_object" (or null)
  },
  "content_structure_stats": {
    "h1_count": 0,
    "h2_count": 0,
    "images_count": 0,
    "links_count": 0,
    "toc_found": boolean
  }
}
"""


def build_blueprint_prompt(
    *,
    keyword: str,
    business_context: str,
    goal: str,
    tone: str,
    target_country: str,
    language_name: str,
) -> str:
    return fill_prompt(
        BLUEPRINT_PROMPT,
        keyword=keyword,
        business_context=business_context,
        goal=goal,
        tone=tone,
        target_country=target_country,
        language_name=language_name,
    )


def build_draft_prompt(
    *,
    blueprint: dict,
    keyword: str,
    business_context: str,
    goal: str,
    tone: str,
    language_name: str,
    min_words: int,
    author: Optional[dict] = None,
) -> str:
    if author and author.get("name"):
        author_instruction = fill_prompt(
            AUTHOR_PERSONA_INSTRUCTION,
            author_name=author.get("name"),
            author_bio=author.get("bio") or "",
        )
    else:
        author_instruction = fill_prompt(BRAND_VOICE_INSTRUCTION, tone=tone)

    return fill_prompt(
        DRAFT_PROMPT,
        author_instruction=author_instruction,
        keyword=keyword,
        business_context=business_context,
        goal=goal,
        tone=tone,
        language_name=language_name,
        min_words=min_words,
        blueprint=to_prompt_json(blueprint),
    )


def build_metadata_prompt(
    *,
    content_md: str,
    keyword: str,
    business_context: str,
    language_name: str,
) -> str:
    return fill_prompt(
        METADATA_PROMPT,
        keyword=keyword,
        business_context=business_context,
        language_name=language_name,
        content_excerpt=content_md[:METADATA_CONTENT_EXCERPT],
    )
