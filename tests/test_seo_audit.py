import pytest

from seo_writer.services.seo_audit import parse_seo_audit, run_seo_audit, summarize_audit
from seo_writer.utils.seo_audit_prompt import SEO_CHECKLIST, build_seo_audit_prompt


def _audit_payload(title="Leather Wallets: Handmade, Durable and Built to Last Years"):
    return {
        "meta": {
            "title": title,
            "description": "Short description",
            "slug": "leather-wallets",
            "title_alternatives": ["Leather Wallets"],
        },
        "sections": [
            {
                "id": "content-semantic-depth",
                "title": "Content & Semantic Depth",
                "items": [
                    {"id": "primary-keyword-targeting", "title": "Primary keyword targeting", "status": "pass"},
                    {"id": "content-length", "title": "Content length", "status": "WARN", "notes": "Thin"},
                    {"id": "entity-coverage", "title": "Entity coverage", "status": "unknown"},
                ],
            },
            {
                "id": "meta-serp",
                "title": "Meta & SERP Optimization",
                "items": [{"id": "clean-url", "title": "Clean URL", "status": "fail", "how_to_fix": "Shorten"}],
            },
        ],
    }


def test_prompt_lists_all_sections_and_limits():
    prompt = build_seo_audit_prompt(
        page_type="article",
        primary_keyword="leather wallet",
        language_name="English",
        content_md="# Body",
        business_context="Handmade wallets",
    )
    assert len(SEO_CHECKLIST) == 12
    for _, title, _ in SEO_CHECKLIST:
        assert title in prompt
    assert "meta.title max 60 chars (recommended 50-60)" in prompt
    assert "meta.slug max 75 chars" in prompt
    assert "- Business context: Handmade wallets" in prompt
    assert prompt.rstrip().endswith("# Body")


def test_prompt_without_business_context():
    prompt = build_seo_audit_prompt(page_type="product", primary_keyword="k", language_name="Bulgarian", content_md="x")
    assert "Business context" not in prompt


def test_parse_normalizes_unknown_statuses():
    result = parse_seo_audit(_audit_payload())
    statuses = [item.status for item in result.sections[0].items]
    assert statuses == ["pass", "warn", "na"]
    assert result.meta.description_alternatives == []


def test_parse_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_seo_audit(["not", "an", "object"])
    with pytest.raises(ValueError):
        parse_seo_audit({"sections": []})


def test_summarize_audit():
    assert summarize_audit(parse_seo_audit(_audit_payload())) == {"pass": 1, "warn": 1, "fail": 1, "na": 1}


def test_run_seo_audit_on_article(fake_db, fake_openai, business, keyword):
    fake_db.seed("articles", "a-1", {
        "business_id": business["id"],
        "keyword_id": keyword["id"],
        "title": "Wallets",
        "content": "# Leather wallets\n\nBody",
    })
    fake_openai.script(_audit_payload())

    result = run_seo_audit("article", "a-1", "user-1")

    assert result["summary"]["fail"] == 1
    assert result["meta_validation"]["meta_description"]["status"] == "warn"

    stored = fake_db.docs("articles")["a-1"]
    assert stored["seo_meta"]["slug"] == "leather-wallets"
    assert stored["seo_audit"]["sections"][0]["items"][2]["status"] == "na"
    assert "seo_meta_validation" in stored

    prompt = fake_openai.calls[0]["messages"][-1]["content"]
    assert "Primary keyword: leather wallet" in prompt


def test_run_seo_audit_on_product_uses_selected_keyword(fake_db, fake_openai):
    fake_db.seed("product_descriptions", "p-1", {
        "user_id": "user-1",
        "name": "Wallet",
        "language": "bg",
        "selected_keywords": [{"keyword": "кожен портфейл", "volume": 100}],
        "description": "Описание",
    })
    fake_openai.script(_audit_payload())

    run_seo_audit("product", "p-1")

    prompt = fake_openai.calls[0]["messages"][-1]["content"]
    assert "Primary keyword: кожен портфейл" in prompt
    assert "Language: Bulgarian" in prompt


def test_run_seo_audit_errors(fake_db, fake_openai):
    with pytest.raises(ValueError):
        run_seo_audit("landing", "x")
    with pytest.raises(LookupError):
        run_seo_audit("service", "missing")

    fake_db.seed("service_descriptions", "s-1", {"user_id": "u", "name": "Repair", "description": "  "})
    with pytest.raises(ValueError):
        run_seo_audit("service", "s-1")
