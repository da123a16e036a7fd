from unittest.mock import MagicMock, patch

import pytest
import requests

from seo_writer.services import competitor_analysis, scrape
from seo_writer.services.competitors import analyze_competitors
from seo_writer.services.niche import PLACEHOLDER_ANALYSIS, analyze_niche

PAGE_HTML = """
<html>
<head>
  <title> Leather Wallets | Shop </title>
  <meta name="description" content="Handmade wallets">
  <script>var tracking = 1;</script>
  <style>.x {}</style>
</head>
<body>
  <nav>Menu</nav>
  <main>
    <h1>Leather   Wallets</h1>
    <h2>Why leather</h2>
    <h2></h2>
    <h3>Care</h3>
    <p>Full grain
       leather lasts.</p>
    <svg><text>icon</text></svg>
  </main>
</body>
</html>
"""


def _http_response(html):
    resp = MagicMock()
    resp.text = html
    resp.raise_for_status.return_value = None
    return resp


# -------------------------------------------------
# Scraper
# -------------------------------------------------
def test_parse_page_extracts_main_content():
    data = scrape.parse_page("https://shop.example.com", PAGE_HTML)

    assert data["title"] == "Leather Wallets | Shop"
    assert data["description"] == "Handmade wallets"
    assert data["headings"] == {"h1": ["Leather Wallets"], "h2": ["Why leather"], "h3": ["Care"]}
    assert data["text"] == "Leather Wallets Why leather Care Full grain leather lasts."


def test_parse_page_caps_text_and_falls_back_to_body():
    html = "<html><body><p>" + "word " * 5000 + "</p></body></html>"
    data = scrape.parse_page("https://x.com", html)
    assert len(data["text"]) == scrape.MAX_TEXT_CHARS
    assert data["title"] == ""


def test_scrape_page_uses_browser_headers():
    with patch.object(scrape.requests, "get", return_value=_http_response(PAGE_HTML)) as get:
        data = scrape.scrape_page("https://shop.example.com")

    assert data["url"] == "https://shop.example.com"
    assert "Mozilla/5.0" in get.call_args.kwargs["headers"]["User-Agent"]


def test_scrape_page_propagates_http_errors():
    failing = MagicMock()
    failing.raise_for_status.side_effect = requests.exceptions.HTTPError("403 Forbidden")
    with patch.object(scrape.requests, "get", return_value=failing):
        with pytest.raises(requests.exceptions.HTTPError):
            scrape.scrape_page("https://blocked.example.com")


# -------------------------------------------------
# Competitor page analysis
# -------------------------------------------------
def test_create_analysis_starts_generating(fake_db, business):
    analysis = competitor_analysis.create_analysis(business["id"], "Product", "https://a.com", "https://b.com")
    assert fake_db.docs("competitor_analyses")[analysis["id"]]["status"] == "generating"

    with pytest.raises(ValueError):
        competitor_analysis.create_analysis(business["id"], "Landing", "https://a.com", "https://b.com")


def test_run_analysis_stores_report(fake_db, fake_openai, business):
    analysis = competitor_analysis.create_analysis(business["id"], "Home", "https://a.com", "https://b.com", "bg")
    fake_openai.script("# Executive Summary\nThe competitor wins.")

    with patch.object(scrape.requests, "get", return_value=_http_response(PAGE_HTML)):
        competitor_analysis.run_analysis(analysis["id"], "https://a.com", "https://b.com", "Home", "bg")

    stored = fake_db.docs("competitor_analyses")[analysis["id"]]
    assert stored["status"] == "completed"
    assert stored["report_markdown"].startswith("# Executive Summary")
    prompt = fake_openai.calls[0]["messages"][-1]["content"]
    assert "Output ONLY in Bulgarian" in prompt
    assert "H1s: Leather Wallets" in prompt


def test_run_analysis_marks_failure(fake_db, fake_openai, business):
    analysis = competitor_analysis.create_analysis(business["id"], "Home", "https://a.com", "https://b.com")

    with patch.object(scrape.requests, "get", side_effect=requests.exceptions.ConnectionError("refused")):
        competitor_analysis.run_analysis(analysis["id"], "https://a.com", "https://b.com", "Home")

    stored = fake_db.docs("competitor_analyses")[analysis["id"]]
    assert stored["status"] == "failed"
    assert stored["report_markdown"].startswith("Analysis failed: refused")
    assert fake_openai.calls == []


# -------------------------------------------------
# Niche & competitors
# -------------------------------------------------
def test_analyze_niche_saves_analysis(fake_db, fake_openai, business):
    fake_openai.script({"summary": "Sells wallets.", "intent_mix": "70% transactional", "angles": ["Care", "Gifts", "Sizes"]})

    analysis = analyze_niche(business["id"], "user-1")

    assert analysis["angles"] == ["Care", "Gifts", "Sizes"]
    assert fake_db.docs("businesses")[business["id"]]["analysis"] == analysis


def test_analyze_niche_returns_placeholder_on_failure(fake_db, fake_openai, business):
    fake_openai.script("not json at all")

    assert analyze_niche(business["id"]) == PLACEHOLDER_ANALYSIS
    assert "analysis" not in fake_db.docs("businesses")[business["id"]]


def test_analyze_niche_missing_business(fake_openai):
    with pytest.raises(ValueError):
        analyze_niche("nope")


def test_analyze_competitors_cleans_domains_and_replaces(fake_db, fake_openai, business):
    fake_db.seed("competitors", "old", {"business_id": business["id"], "domain": "old.com"})
    fake_openai.script({"competitors": [
        {"domain": "https://www.Rival.com/shop", "content_type": "Blog", "weakness": "Thin content"},
        {"domain": "rival.com", "content_type": "Shop", "weakness": "dupe"},
        {"domain": "", "content_type": "x"},
    ]})

    stored = analyze_competitors(business["id"], replace=True)

    assert [c["domain"] for c in stored] == ["rival.com"]
    assert stored[0]["weakness_summary"] == "Thin content"
    assert "old" not in fake_db.docs("competitors")


def test_analyze_competitors_failure_keeps_existing(fake_db, fake_openai, business):
    fake_db.seed("competitors", "old", {"business_id": business["id"], "domain": "old.com"})
    fake_openai.script(RuntimeError("boom"))

    assert analyze_competitors(business["id"], replace=True) == []
    assert "old" in fake_db.docs("competitors")
