import copy
import itertools
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from google.cloud import firestore as gcfirestore

from seo_writer.services import firestore as firestore_service
from seo_writer.services import openai_service

_ids = itertools.count(1)


# -------------------------------------------------
# In-memory Firestore
# -------------------------------------------------
def _resolve(value, current=None):
    """Apply the server-side transforms the app writes."""
    if value is gcfirestore.SERVER_TIMESTAMP:
        return datetime.now(timezone.utc)
    if isinstance(value, gcfirestore.Increment):
        return (current or 0) + value.value
    return copy.deepcopy(value)


class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, store, collection, doc_id):
        self._store = store
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._store.setdefault(self._collection, {})

    def get(self):
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data, merge=False):
        current = self._docs.get(self.id) if merge else None
        current = dict(current or {})
        for key, value in data.items():
            current[key] = _resolve(value, current.get(key))
        self._docs[self.id] = current

    def update(self, data):
        if self.id not in self._docs:
            raise KeyError(f"No document to update: {self._collection}/{self.id}")
        self.set(data, merge=True)

    def delete(self):
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, store, collection, filters=()):
        self._store = store
        self._collection = collection
        self._filters = list(filters)

    def where(self, field, op, value):
        return FakeQuery(self._store, self._collection, self._filters + [(field, op, value)])

    def _matches(self, data):
        for field, op, value in self._filters:
            if op == "==" and data.get(field) != value:
                return False
            if op == "in" and data.get(field) not in value:
                return False
        return True

    def stream(self):
        docs = self._store.get(self._collection, {})
        for doc_id, data in list(docs.items()):
            if self._matches(data):
                yield FakeSnapshot(FakeDocument(self._store, self._collection, doc_id), data)


class FakeCollection(FakeQuery):
    def document(self, doc_id=None):
        return FakeDocument(self._store, self._collection, doc_id or f"doc{next(_ids)}")

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return datetime.now(timezone.utc), ref


class FakeFirestore:
    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(self.store, name)

    def docs(self, name):
        return {doc_id: dict(data) for doc_id, data in self.store.get(name, {}).items()}

    def seed(self, name, doc_id, data):
        self.collection(name).document(doc_id).set(data)
        return doc_id


# -------------------------------------------------
# Scripted OpenAI client
# -------------------------------------------------
class FakeCompletions:
    def __init__(self):
        self.responses = []
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.responses:
            raise AssertionError("No scripted OpenAI response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        content = response if isinstance(response, str) else json.dumps(response, ensure_ascii=False)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(prompt_tokens=100, completion_tokens=50, total_tokens=150),
        )


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def script(self, *responses):
        self.completions.responses.extend(responses)

    @property
    def calls(self):
        return self.completions.calls


@pytest.fixture(autouse=True)
def clean_model_env(monkeypatch):
    for name in ("OPENAI_DEFAULT_MODEL", "OPENAI_MODEL_BLUEPRINT", "OPENAI_MODEL_DRAFT", "OPENAI_MODEL_METADATA"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firestore_service, "_db", db)
    return db


@pytest.fixture
def fake_openai(monkeypatch):
    client = FakeOpenAI()
    monkeypatch.setattr(openai_service, "_client", client)
    return client


@pytest.fixture
def business(fake_db):
    data = {
        "user_id": "user-1",
        "business_type": "ecommerce",
        "website_url": "https://shop.example.com",
        "target_country": "United States",
        "language": "en",
        "product_description": "Handmade leather wallets",
    }
    fake_db.seed("businesses", "biz-1", data)
    return {**data, "id": "biz-1"}


@pytest.fixture
def keyword(fake_db, business):
    data = {
        "business_id": business["id"],
        "keyword": "leather wallet",
        "volume": 1200,
        "difficulty": "Medium",
        "intent": "Mixed",
        "is_selected": True,
    }
    fake_db.seed("keywords", "kw-1", data)
    return {**data, "id": "kw-1"}


# -------------------------------------------------
# Canned model outputs
# -------------------------------------------------
def make_blueprint(sections=10):
    return {
        "primary_intent": "commercial",
        "article_type": "guide",
        "user_expectations": ["How to pick a wallet"],
        "recommended_structure": {
            "h1": "Leather Wallet Guide",
            "sections": [
                {"h2": f"Section {i}", "purpose": "Explain", "search_intent_match": "commercial"}
                for i in range(1, sections + 1)
            ],
        },
        "faq_candidates": ["Are leather wallets durable?"],
        "schema_recommendations": {"article": True, "faq": True, "howto": False},
        "conversion_opportunities": ["Shop the collection"],
    }


def make_article_md(words=1600):
    body = " ".join(["leather"] * words)
    return (
        "# Leather Wallet Guide\n\n"
        "## Table of contents\n\n"
        "- [Why leather](#why-leather)\n\n"
        "## Why leather\n\n"
        f"{body}\n\n"
        "See [Leather Working Group](https://www.leatherworkinggroup.com) and "
        "[Wikipedia](https://en.wikipedia.org/wiki/Leather).\n"
    )


def make_draft(content_md=None, author=True):
    return {
        "content_md": content_md or make_article_md(),
        "author_info": {"name": "Ana Petrova", "bio": "Leather artisan for 15 years", "credentials": []} if author else None,
        "cta_blocks": [{"type": "soft", "placement": "end", "message": "Browse wallets"}],
    }


def make_metadata(title="Leather Wallet Guide: How to Choose the Best One for You"):
    return {
        "seo_meta": {
            "title": title,
            "description": "Everything you need to know about leather wallets: materials, stitching, sizes and care, "
                           "so you can choose one that lasts for years.",
            "slug": "leather-wallet-guide",
            "title_alternatives": [],
            "description_alternatives": [],
        },
        "schema_markup": {
            "article": json.dumps({"@context": "https://schema.org", "@type": "Article"}),
            "author": json.dumps({"@type": "Person", "name": "Ana Petrova"}),
            "organization": json.dumps({"@type": "Organization", "name": "Shop"}),
            "breadcrumb": "{not valid json",
            "faq": None,
            "howto": None,
        },
        "content_structure_stats": {
            "h1_count": 1,
            "h2_count": 2,
            "images_count": 0,
            "links_count": 2,
            "toc_found": True,
        },
    }
