from unittest.mock import MagicMock, patch

import pytest
import requests

from seo_writer.services import dataforseo


@pytest.fixture(autouse=True)
def credentials(monkeypatch):
    monkeypatch.setenv("DATAFORSEO_LOGIN", "login")
    monkeypatch.setenv("DATAFORSEO_PASSWORD", "secret")


def _labs_response(items, cost=0.01):
    resp = MagicMock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = {
        "tasks": [{
            "status_code": 20000,
            "status_message": "Ok.",
            "cost": cost,
            "result": [{"items": items}],
        }]
    }
    return resp


def _route(volume_items, difficulty_items):
    def fake_post(url, json=None, headers=None, timeout=None):
        if url.endswith(dataforseo.VOLUME_ENDPOINT):
            return _labs_response(volume_items)
        return _labs_response(difficulty_items, cost=0.02)
    return fake_post


def test_get_keywords_data_merges_volume_and_difficulty():
    volume = [
        {"keyword": "Leather Wallet", "keyword_info": {"search_volume": 5400, "competition_level": "HIGH"}},
        {"keyword": "card holder", "keyword_info": {"search_volume": 880, "competition": 0.2}},
    ]
    difficulty = [
        {"keyword": "leather wallet", "keyword_difficulty": 25},
    ]

    with patch.object(dataforseo.requests, "post", side_effect=_route(volume, difficulty)) as post:
        results = dataforseo.get_keywords_data(["leather wallet", "card holder"], "US", "en")

    by_kw = {r["keyword"].lower(): r for r in results}
    wallet = by_kw["leather wallet"]
    assert wallet["volume"] == 5400
    assert wallet["paid_difficulty"] == "Hard"
    # organic difficulty overrides paid competition
    assert wallet["difficulty"] == "Easy"
    assert wallet["kd_score"] == 25

    holder = by_kw["card holder"]
    assert holder["difficulty"] == "Easy"
    assert "kd_score" not in holder

    payload = post.call_args_list[0].kwargs["json"][0]
    assert payload["location_code"] == 2840
    assert post.call_args_list[0].kwargs["headers"]["Authorization"].startswith("Basic ")
    assert dataforseo.get_dataforseo_cost() == pytest.approx(0.03)


def test_http_error_yields_empty_results():
    error_resp = MagicMock()
    error_resp.status_code = 401
    error_resp.text = "Unauthorized"
    failing = MagicMock()
    failing.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_resp)

    with patch.object(dataforseo.requests, "post", return_value=failing):
        assert dataforseo.get_keywords_data(["wallet"], "BG", "bg") == []


def test_missing_credentials_raise(monkeypatch):
    monkeypatch.delenv("DATAFORSEO_LOGIN")
    with pytest.raises(ValueError):
        dataforseo.get_keywords_data(["wallet"], "US", "en")


def test_empty_keyword_list_skips_api():
    with patch.object(dataforseo.requests, "post") as post:
        assert dataforseo.get_keywords_data(["", "  "], "US", "en") == []
    post.assert_not_called()


@pytest.mark.parametrize("kd,expected", [(75, "Hard"), (60, "Medium"), (30, "Medium"), (10, "Easy")])
def test_organic_difficulty_bands(kd, expected):
    assert dataforseo.organic_difficulty(kd) == expected


def test_paid_difficulty_from_numeric_competition():
    assert dataforseo.paid_difficulty({"competition": 0.9}) == "Hard"
    assert dataforseo.paid_difficulty({"competition": 0.5}) == "Medium"
    assert dataforseo.paid_difficulty({}) == "Easy"


def test_resolve_country_code():
    assert dataforseo.resolve_country_code({"target_country": "bg"}) == "BG"
    assert dataforseo.resolve_country_code({"target_country": "България"}) == "BG"
    assert dataforseo.resolve_country_code({"target_country": "Mars", "language": "bg"}) == "BG"
    assert dataforseo.resolve_country_code({"target_country": "Mars", "language": "en"}) == "US"
    assert dataforseo.location_code_for("XX") == 2840
