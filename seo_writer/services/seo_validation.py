import re
import logging
from typing import Any, Dict, List, Optional

from seo_writer.schemas.seo import ValidationIssue

logger = logging.getLogger(__name__)

SEO_LIMITS = {
    "meta_title": {
        "recommended_min": 50,
        "recommended_max": 60,
        "hard_max": 60,
    },
    "meta_description": {
        "recommended_min": 140,
        "recommended_max": 160,
        "hard_max": 160,
    },
    "url_slug": {
        "hard_max": 75,
    },
}

# Word count at which a table of contents becomes mandatory
TOC_WORD_THRESHOLD = 1200
MIN_EXTERNAL_LINKS = 2

_MD_SYMBOLS = re.compile(r"[`*_>#-]")
_MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_H1_LINE = re.compile(r"^#\s+")
_EXTERNAL_LINK = re.compile(r"\[[^\]]+\]\((https?://[^)\s]+)[^)]*\)", re.IGNORECASE)
_TOC_HEADING = re.compile(r"^##\s+(table of contents|toc)\b", re.IGNORECASE | re.MULTILINE)
_ANCHOR_LINK = re.compile(r"\[[^\]]+\]\(#[-a-z0-9]+\)", re.IGNORECASE)


def _normalize(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def validate_length(
    value_raw: Any,
    recommended_min: Optional[int] = None,
    recommended_max: Optional[int] = None,
    hard_max: Optional[int] = None,
) -> Dict[str, Any]:
    """Check one meta field against its limits.

    Returns a dict with value, length, the limits, status (pass/warn/fail)
    and a short message. Exceeding hard_max fails; falling outside the
    recommended range (when both bounds are given) warns.
    """
    value = _normalize(value_raw)
    length = len(value)
    result = {
        "value": value,
        "length": length,
        "recommended_min": recommended_min,
        "recommended_max": recommended_max,
        "hard_max": hard_max,
    }

    if hard_max is not None and length > hard_max:
        result.update(status="fail", message=f"Too long: {length}/{hard_max}.")
        return result

    if (
        recommended_min is not None
        and recommended_max is not None
        and (length < recommended_min or length > recommended_max)
    ):
        result.update(
            status="warn",
            message=f"Outside recommended range: {length}/{recommended_min}-{recommended_max}.",
        )
        return result

    result.update(status="pass", message="Within recommended range.")
    return result


def validate_seo_meta(meta: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    meta = meta or {}
    return {
        "meta_title": validate_length(meta.get("title"), **SEO_LIMITS["meta_title"]),
        "meta_description": validate_length(meta.get("description"), **SEO_LIMITS["meta_description"]),
        "slug": validate_length(meta.get("slug"), hard_max=SEO_LIMITS["url_slug"]["hard_max"]),
    }


# -------------------------------------------------
# Markdown inspection helpers
# -------------------------------------------------
def word_count(text: str) -> int:
    text = _MD_SYMBOLS.sub(" ", text or "")
    text = _MD_LINK.sub(r"\1", text)  # links -> visible text
    return len(text.split())


def count_h1(md: str) -> int:
    """Lines starting with "# " (not "##")."""
    return sum(1 for line in (md or "").split("\n") if _H1_LINE.match(line))


def external_links(md: str) -> List[str]:
    return _EXTERNAL_LINK.findall(md or "")


def has_external_link(md: str) -> bool:
    return bool(external_links(md))


def has_toc(md: str) -> bool:
    """A "Table of contents" heading or any list of in-page anchor links."""
    if _TOC_HEADING.search(md or ""):
        return True
    return bool(_ANCHOR_LINK.search(md or ""))


def _issue(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    issue = ValidationIssue(code=code, message=message, details=details).model_dump()
    if details is None:
        del issue["details"]
    return issue


def validate_generated_article(result: Optional[Dict[str, Any]], min_words: int = 1500) -> List[Dict[str, Any]]:
    """Check a generated article against the fixed on-page rule set.

    ``result`` carries title, content_md, seo_meta, schema_markup (parsed
    objects), author_info and content_structure. Returns a list of issues;
    an empty list means the article is compliant.
    """
    result = result or {}
    issues: List[Dict[str, Any]] = []

    title = result.get("title")
    if not isinstance(title, str) or not title.strip():
        issues.append(_issue("missing_title", "Missing title."))

    content = str(result.get("content_md") or "")
    wc = 0
    if not content.strip():
        issues.append(_issue("missing_content", "Missing content_md."))
    else:
        wc = word_count(content)
        if wc < min_words:
            issues.append(_issue(
                "word_count_low",
                f"Article too short ({wc} words). Must be >= {min_words}.",
                {"wc": wc, "min_words": min_words},
            ))

        h1 = count_h1(content)
        if h1 == 0:
            issues.append(_issue("missing_h1", "Missing H1 (# Title)."))
        if h1 > 1:
            issues.append(_issue("multiple_h1", f"Multiple H1 found ({h1}). Must be exactly 1."))

        if not has_external_link(content):
            issues.append(_issue("no_external_link", "No outbound (http/https) link found for citations."))

        if wc >= TOC_WORD_THRESHOLD and not has_toc(content):
            issues.append(_issue("missing_toc", "Missing table of contents with anchor links."))

    meta = result.get("seo_meta")
    if not meta:
        issues.append(_issue("meta_invalid", "Missing seo_meta."))
    else:
        checks = validate_seo_meta(meta)
        bad = [check for check in checks.values() if check["status"] == "fail"]
        if bad:
            issues.append(_issue("meta_invalid", "Meta fields exceed hard limits.", bad))

    schema_markup = result.get("schema_markup")
    if not isinstance(schema_markup, dict):
        issues.append(_issue("missing_schema", "Missing schema_markup object."))
    else:
        for key, label in (
            ("article", "Article/BlogPosting schema"),
            ("author", "Person schema"),
            ("organization", "Organization schema"),
        ):
            if not isinstance(schema_markup.get(key), dict) or not schema_markup.get(key):
                issues.append(_issue("missing_schema", f"Missing schema_markup.{key} ({label})."))

    author_info = result.get("author_info")
    if not isinstance(author_info, dict):
        issues.append(_issue("missing_author_info", "Missing author_info object."))
    else:
        for key in ("name", "bio"):
            value = author_info.get(key)
            if not isinstance(value, str) or not value.strip():
                issues.append(_issue("missing_author_info", f"Missing author_info.{key}."))

    structure = result.get("content_structure")
    if not isinstance(structure, dict):
        issues.append(_issue("missing_content_structure", "Missing content_structure object."))
    else:
        if structure.get("h1_count") != 1:
            issues.append(_issue(
                "multiple_h1",
                f"content_structure.h1_count should be 1, got {structure.get('h1_count')}.",
            ))
        if not structure.get("has_author_bio"):
            issues.append(_issue(
                "missing_content_structure",
                "content_structure.has_author_bio should be true (author bio section required).",
            ))
        links = structure.get("external_links")
        if not isinstance(links, list) or len(links) < MIN_EXTERNAL_LINKS:
            issues.append(_issue(
                "no_external_link",
                f"Need at least {MIN_EXTERNAL_LINKS} external links (http/https) for citations.",
            ))
        if wc >= TOC_WORD_THRESHOLD and not structure.get("has_toc"):
            issues.append(_issue("missing_toc", f"Table of contents required for long content (>={TOC_WORD_THRESHOLD} words)."))

    return issues


def build_content_structure(content_md: str, stats: Optional[Dict[str, Any]] = None, author_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Content structure measured from the Markdown, merged over model-reported stats.

    The metadata stage reports counts it estimated; the fields the validator
    relies on are recomputed from the body itself.
    """
    structure = dict(stats or {})
    links = external_links(content_md)
    structure.update({
        "h1_count": count_h1(content_md),
        "h2_count": sum(1 for line in (content_md or "").split("\n") if line.startswith("## ")),
        "external_links": links,
        "has_toc": has_toc(content_md),
        "has_author_bio": bool(author_info and author_info.get("bio")),
        "word_count": word_count(content_md),
    })
    return structure
