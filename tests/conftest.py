from types import SimpleNamespace

import pytest

import main
from analyzer import pagespeed, recommendations
from config import Settings


def lighthouse_payload(performance, seo, accessibility, best_practices):
    return {
        "lighthouseResult": {
            "categories": {
                "performance": {"score": performance},
                "seo": {"score": seo},
                "accessibility": {"score": accessibility},
                "best-practices": {"score": best_practices},
            }
        }
    }


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")


class FakeGemini:
    """Stands in for google.genai.Client; records prompts and replays ``text``."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []
        self.clients = 0

    def __call__(self, **kwargs):
        self.clients += 1
        return SimpleNamespace(models=SimpleNamespace(generate_content=self._generate))

    def _generate(self, model, contents, **kwargs):
        self.prompts.append(contents)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeTable:
    def __init__(self, db, name):
        self.db = db
        self.name = name
        self._row = None

    def insert(self, row):
        self._row = row
        return self

    def execute(self):
        if self.db.error:
            raise self.db.error
        stored = dict(self._row, id=f"lead-{len(self.db.rows) + 1}")
        self.db.rows.append((self.name, stored))
        return SimpleNamespace(data=[stored])


class FakeSupabase:
    def __init__(self, error=None):
        self.rows = []
        self.error = error

    def table(self, name):
        return FakeTable(self, name)


@pytest.fixture
def settings():
    return Settings(
        pagespeed_api_key="psi-key",
        gemini_api_key="gemini-key",
        stripe_secret_key="sk_test_123",
        supabase_url="https://project.supabase.co",
        supabase_key="service-key",
    )


@pytest.fixture
def client(settings):
    original = main.app.config["SETTINGS"]
    main.app.config["SETTINGS"] = settings
    main.app.config["TESTING"] = True
    with main.app.test_client() as test_client:
        yield test_client
    main.app.config["SETTINGS"] = original


@pytest.fixture
def psi_calls(monkeypatch):
    """Replace requests.get in the PageSpeed client; set ``.response`` per test."""
    calls = SimpleNamespace(args=[], response=FakeResponse(200, lighthouse_payload(0.9, 0.9, 0.9, 0.9)))

    def fake_get(url, params=None, timeout=None):
        calls.args.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(calls.response, Exception):
            raise calls.response
        return calls.response

    monkeypatch.setattr(pagespeed.requests, "get", fake_get)
    return calls


@pytest.fixture
def gemini(monkeypatch):
    fake = FakeGemini(text="not json at all")
    monkeypatch.setattr(recommendations.genai, "Client", fake)
    return fake


@pytest.fixture
def supabase_db(monkeypatch):
    db = FakeSupabase()
    monkeypatch.setattr(main, "get_supabase", lambda settings: db)
    return db
