import pytest
from conftest import make_article_md, make_metadata
from pydantic import ValidationError

from seo_writer.schemas.seo import ValidationIssue
from seo_writer.services.seo_validation import (
    build_content_structure,
    count_h1,
    has_toc,
    validate_generated_article,
    validate_length,
    validate_seo_meta,
    word_count,
)


def _codes(issues):
    return {i["code"] for i in issues}


def _compliant_article(**overrides):
    content = make_article_md()
    author = {"name": "Ana Petrova", "bio": "Leather artisan"}
    result = {
        "title": "Leather Wallet Guide",
        "content_md": content,
        "seo_meta": make_metadata()["seo_meta"],
        "schema_markup": {
            "article": {"@type": "Article"},
            "author": {"@type": "Person"},
            "organization": {"@type": "Organization"},
        },
        "author_info": author,
        "content_structure": build_content_structure(content, None, author),
    }
    result.update(overrides)
    return result


def test_validate_length_pass_warn_fail():
    assert validate_length("x" * 55, 50, 60, 60)["status"] == "pass"
    assert validate_length("x" * 40, 50, 60, 60)["status"] == "warn"

    too_long = validate_length("x" * 61, 50, 60, 60)
    assert too_long["status"] == "fail"
    assert too_long["message"] == "Too long: 61/60."


def test_validate_length_trims_and_ignores_non_strings():
    assert validate_length("  abc  ", hard_max=5)["length"] == 3
    assert validate_length(None, hard_max=5)["value"] == ""
    # recommended range is only checked when both bounds are set
    assert validate_length("abc", recommended_min=10, hard_max=75)["status"] == "pass"


def test_validate_seo_meta_keys_and_slug_limit():
    checks = validate_seo_meta({"title": "t" * 55, "description": "d" * 150, "slug": "s" * 80})
    assert set(checks) == {"meta_title", "meta_description", "slug"}
    assert checks["meta_title"]["status"] == "pass"
    assert checks["meta_description"]["status"] == "pass"
    assert checks["slug"]["status"] == "fail"


def test_markdown_helpers():
    md = "# Title\n\n## Sub\n\nSome **bold** [link text](https://example.com) here"
    assert count_h1(md) == 1
    assert word_count(md) == 7
    assert not has_toc(md)
    assert has_toc("Jump to [Costs](#costs)")
    assert has_toc("## TOC\n- one")


def test_compliant_article_has_no_issues():
    assert validate_generated_article(_compliant_article()) == []


def test_missing_everything():
    codes = _codes(validate_generated_article({}))
    assert {
        "missing_title",
        "missing_content",
        "meta_invalid",
        "missing_schema",
        "missing_author_info",
        "missing_content_structure",
    } <= codes


def test_issues_follow_validation_issue_shape():
    issues = validate_generated_article({"title": "T"})
    for issue in issues:
        ValidationIssue.model_validate(issue)

    missing_content = next(i for i in issues if i["code"] == "missing_content")
    assert missing_content == {"code": "missing_content", "message": "Missing content_md."}


def test_validation_issue_rejects_unknown_codes():
    with pytest.raises(ValidationError):
        ValidationIssue(code="too_many_emojis", message="x")


def test_short_article_without_links_or_h1():
    content = "Just a few words without structure."
    issues = validate_generated_article(_compliant_article(
        content_md=content,
        content_structure=build_content_structure(content, None, {"bio": "x"}),
    ))
    codes = _codes(issues)
    assert "word_count_low" in codes
    assert "missing_h1" in codes
    assert "no_external_link" in codes
    # short content does not need a table of contents
    assert "missing_toc" not in codes

    low = next(i for i in issues if i["code"] == "word_count_low")
    assert low["details"]["min_words"] == 1500


def test_multiple_h1_and_missing_toc():
    content = "# One\n\n# Two\n\n" + " ".join(["word"] * 1300) + " [a](https://a.com) [b](https://b.com)"
    issues = validate_generated_article(
        _compliant_article(
            content_md=content,
            content_structure=build_content_structure(content, None, {"bio": "x"}),
        ),
        min_words=1000,
    )
    codes = _codes(issues)
    assert "multiple_h1" in codes
    assert "missing_toc" in codes


def test_meta_over_hard_max_is_invalid():
    meta = {"title": "t" * 61, "description": "d" * 150, "slug": "ok"}
    issues = validate_generated_article(_compliant_article(seo_meta=meta))
    meta_issue = next(i for i in issues if i["code"] == "meta_invalid")
    assert [d["status"] for d in meta_issue["details"]] == ["fail"]


def test_schema_entries_must_be_objects():
    issues = validate_generated_article(_compliant_article(schema_markup={
        "article": {"@type": "Article"},
        "author": {},
        "organization": "not an object",
    }))
    messages = [i["message"] for i in issues if i["code"] == "missing_schema"]
    assert len(messages) == 2


def test_author_info_requires_name_and_bio():
    issues = validate_generated_article(_compliant_article(author_info={"name": " ", "bio": "Bio"}))
    assert [i["message"] for i in issues] == ["Missing author_info.name."]


def test_content_structure_rules():
    content = make_article_md()
    structure = build_content_structure(content)
    issues = validate_generated_article(_compliant_article(content_structure={**structure, "external_links": ["https://a.com"]}))
    codes = _codes(issues)
    # no author bio and only one external link
    assert "missing_content_structure" in codes
    assert "no_external_link" in codes


def test_build_content_structure_recomputes_from_markdown():
    content = make_article_md()
    structure = build_content_structure(content, {"h1_count": 3, "images_count": 2}, {"name": "A", "bio": "B"})
    assert structure["h1_count"] == 1
    assert structure["images_count"] == 2
    assert structure["has_toc"] is True
    assert structure["has_author_bio"] is True
    assert len(structure["external_links"]) == 2
    assert structure["word_count"] >= 1600
