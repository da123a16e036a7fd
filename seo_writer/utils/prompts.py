import json
from datetime import date, datetime


def _json_default(o):
    """JSON serializer for Firestore timestamps and datetimes."""
    if isinstance(o, (datetime, date)) or hasattr(o, "isoformat"):
        try:
            return o.isoformat()
        except Exception:
            return str(o)
    return str(o)


def to_prompt_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, default=_json_default)


def fill_prompt(template: str, **values) -> str:
    """Substitute {name} placeholders.

    Plain replace instead of str.format so literal JSON braces in the
    templates need no escaping.
    """
    prompt = template
    for key, value in values.items():
        prompt = prompt.replace("{" + key + "}", "" if value is None else str(value))
    return prompt.strip()


# -------------------------------------------------
# Keyword research
# -------------------------------------------------
KEYWORD_SEED_PROMPT = """
Generate 10 realistic SEO keywords only for this business.

Business: {product_description}
Language: {language}
Target Country: {target_country}

Return JSON format:
{
  "keywords": ["keyword 1", "keyword 2", ...]
}

IMPORTANT: The keywords must be in the language "{language}".
If language is 'bg', the keywords MUST be in Cyrillic/Bulgarian.
"""

KEYWORD_BROADEN_PROMPT = """
The keywords below show little or no measurable search demand.

Business: {product_description}
Language: {language}
Target Country: {target_country}

Low-demand keywords:
{keywords}

Generate 10 adjacent, BROADER keywords that real people search for more often:
- shorter head terms (1-3 words) for the same products/services
- category-level terms and common synonyms
- no brand names, no locations unless they are part of how people search

Return JSON format:
{
  "keywords": ["keyword 1", "keyword 2", ...]
}

IMPORTANT: The keywords must be in the language "{language}".
If language is 'bg', the keywords MUST be in Cyrillic/Bulgarian.
"""

KEYWORD_ESTIMATE_PROMPT = """
Estimate SEO metrics for these keywords for a business in {target_country}.

Keywords: {keywords}

Return JSON format:
{
  "keywords": [
    { "keyword": "...", "volume": 1200, "difficulty": "Medium", "intent": "Blog" }
  ]
}

"difficulty" is one of "Easy", "Medium", "Hard".
"intent" is one of "Blog", "Landing", "Mixed".
"""

# -------------------------------------------------
# Niche & competitor research
# -------------------------------------------------
NICHE_PROMPT = """
Analyze the following business for SEO strategy.

URL: {website_url}
Type: {business_type}
Description: {product_description}
Target Country: {target_country}
Language: {language}

Provide a JSON output with:
1. "summary": A concise definition of what the business actually does (2 sentences).
2. "intent_mix": A string describing the balance of Transactional vs Informational intent suitable for this business.
3. "angles": An array of 3 distinct content angles/topics that would rank well and drive customers.

IMPORTANT: The output content for summary, intent_mix, and angles MUST be in the language "{language}".
Output JSON only.
"""

COMPETITORS_PROMPT = """
Identify up to 20 likely online competitors for this business.

Business: {website_url}
Description: {product_description}
Country: {target_country}

Return JSON format:
{
  "competitors": [
    { "domain": "example.com", "content_type": "Blog", "weakness": "Low update frequency" }
  ]
}

IMPORTANT: The "weakness" and "content_type" fields MUST be in the language "{language}".
If the language is 'bg' (Bulgarian), write the weakness in Bulgarian.
"""

COMPETITOR_PAGE_PROMPT = """
You are an expert SEO and Conversion Rate Optimization consultant.
I am the owner of "My Page" ({my_url}).
I want to compare my page against a "Competitor Page" ({competitor_url}).
The page type is: "{page_type}".

**My Page Data:**
- Title: {my_title}
- H1s: {my_h1s}
- Content Preview: {my_text}...

**Competitor Page Data:**
- Title: {competitor_title}
- H1s: {competitor_h1s}
- Content Preview: {competitor_text}...

**Your Goal:**
Analyze where the competitor is outperforming me and give me a brutally honest but constructive comparison.
Speak directly to me (use "Your website", "You", "The competitor").

**Required Output Structure (Formatted in Markdown):**

# Executive Summary
(2-3 sentences max. Direct verdict: who is winning and why?)

## Where the Competitor Wins
(List 3-5 specific things they do better. Be specific about their UX, Content, or SEO.)
*   **Feature/Area:** Explanation of why theirs is better.

## Your Strengths
(What are you doing well? Don't invent things if I'm failing, be honest.)

## Action Plan
(Checklist of 3-5 high-impact changes I should make immediately to beat them.)
- [ ] Action item 1
- [ ] Action item 2

**Tone:** Professional, direct, actionable. No fluff.
**Language:** Output ONLY in {language}.
"""

# -------------------------------------------------
# Product & service descriptions
# -------------------------------------------------
PRODUCT_KEYWORDS_PROMPT = """
Analyze this product image and the following context: "{name}".
Identify the product and generate 5-10 specific SEO keywords.
Return ONLY a JSON object with a "keywords" array of strings.
"""

SERVICE_KEYWORDS_PROMPT = """
Analyze this service description: "{name}".
Identify the core service and generate 5-10 specific SEO keywords people might use to find this service.
Return ONLY a JSON object with a "keywords" array of strings.
"""

PRODUCT_DESCRIPTION_PROMPT = """
Write a compelling, SEO-optimized product description.

Context: {name}
Target Keywords: {keywords}

Instructions:
- Focus heavily on the target keywords.
- Reference Language: {language} (MUST WRITE IN THIS LANGUAGE)
- Length: 2-3 paragraphs.
"""

SERVICE_DESCRIPTION_PROMPT = """
Write a compelling, SEO-optimized service description.

Service Context: {name}
Target Keywords: {keywords}

Instructions:
- Focus heavily on the target keywords.
- Highlight benefits and professionalism.
- Reference Language: {language} (MUST WRITE IN THIS LANGUAGE)
- Length: 2-3 paragraphs.
"""
