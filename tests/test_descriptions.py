import pytest

from seo_writer.services import descriptions


@pytest.fixture
def metrics(monkeypatch):
    calls = []

    def install(result):
        def fake(keywords, country_code, language_code):
            calls.append((keywords, country_code, language_code))
            if isinstance(result, Exception):
                raise result
            return result
        monkeypatch.setattr(descriptions.dataforseo, "get_keywords_data", fake)
        return calls
    return install


def test_analyze_product_sends_image_and_measures_us_market(fake_openai, metrics):
    fake_openai.script({"keywords": ["leather wallet", "bifold wallet", "leather wallet"]})
    calls = metrics([{"keyword": "leather wallet", "volume": 5000, "difficulty": "Hard"}])

    result = descriptions.analyze_product("Brown wallet", "https://cdn.example.com/w.jpg")

    assert calls == [(["leather wallet", "bifold wallet"], "US", "en")]
    assert result["keywords"][0]["volume"] == 5000
    content = fake_openai.calls[0]["messages"][-1]["content"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "https://cdn.example.com/w.jpg"}}


def test_analyze_product_requires_image(fake_openai):
    with pytest.raises(ValueError):
        descriptions.analyze_product("Wallet", "")


def test_analyze_service_metrics_failure_marks_unknown(fake_openai, metrics):
    fake_openai.script({"keywords": ["boiler repair", "emergency plumber"]})
    metrics(RuntimeError("quota"))

    result = descriptions.analyze_service("Plumbing")

    assert result["keywords"] == [
        {"keyword": "boiler repair", "volume": 0, "difficulty": "Unknown"},
        {"keyword": "emergency plumber", "volume": 0, "difficulty": "Unknown"},
    ]


def test_analyze_service_empty_metrics_marks_unknown(fake_openai, metrics):
    fake_openai.script({"keywords": ["boiler repair"]})
    metrics([])

    result = descriptions.analyze_service("Plumbing")

    assert result["keywords"] == [{"keyword": "boiler repair", "volume": 0, "difficulty": "Unknown"}]


def test_create_product_description_stores_keywords(fake_db, fake_openai):
    fake_openai.script("Handmade from full-grain leather...")
    selected = [{"keyword": "leather wallet", "volume": 5000}]
    all_keywords = selected + [{"keyword": "bifold wallet", "volume": 300}]

    saved = descriptions.create_product_description(
        "user-1", "Brown wallet", "https://cdn.example.com/w.jpg", all_keywords, selected, language="bg",
    )

    stored = fake_db.docs("product_descriptions")[saved["id"]]
    assert stored["description"] == "Handmade from full-grain leather..."
    assert stored["selected_keywords"] == selected
    assert stored["keywords_data"] == all_keywords
    assert stored["user_id"] == "user-1"

    call = fake_openai.calls[0]
    assert "response_format" not in call
    prompt = call["messages"][-1]["content"][0]["text"]
    assert "Target Keywords: leather wallet" in prompt
    assert "Reference Language: Bulgarian" in prompt


def test_create_service_description(fake_db, fake_openai):
    fake_openai.script("We fix boilers fast.")

    saved = descriptions.create_service_description(
        "user-1", "Plumbing", [], [{"keyword": "boiler repair"}, {"keyword": "plumber"}],
    )

    assert fake_db.docs("service_descriptions")[saved["id"]]["description"] == "We fix boilers fast."
    prompt = fake_openai.calls[0]["messages"][-1]["content"]
    assert "Target Keywords: boiler repair, plumber" in prompt
    assert "Reference Language: English" in prompt
