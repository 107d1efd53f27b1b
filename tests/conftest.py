"""
Shared fixtures for the DX case service tests.

The environment is configured before `dxcases` is imported: settings are read
once at import time, so the SQLite URL, secret and admin credentials below are
what every module sees.

Run with: pytest tests/ -v
"""

import os
import tempfile

import bcrypt
import pytest

_db_dir = tempfile.mkdtemp(prefix="dxcases-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'cases.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["INIT_MODE"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["FRONTEND_DIST_DIR"] = os.path.join(_db_dir, "no-frontend")
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD_HASH"] = bcrypt.hashpw(b"correct horse", bcrypt.gensalt()).decode("utf-8")
os.environ["CONVERSATION_TURN_THRESHOLD"] = "3"
os.environ["SUGGESTION_TURN_LIMIT"] = "8"

from dxcases.database.config.connection_engine import connection_engine, init_db, metadata  # noqa: E402

ADMIN_PASSWORD = "correct horse"


# =============================================================================
# FAKE COMPLETION CLIENT
# =============================================================================

class FakeCompletionClient:
    """
    Scripted stand-in for `CompletionClient`.

    Every method records its call in `calls` and returns the configured value;
    an exception stored in `errors[<method>]` is raised instead.
    """

    def __init__(self):
        self.calls = []
        self.errors = {}
        self.extraction_reply = "いつ頃の出来事でしたか？"
        self.extracted = {}
        self.plain_reply = "詳しく教えてください。"
        self.paragraph_summary = "ある会社で新しいツールを導入したが、誰も使わなかった。"
        self.tags_and_title = {"tags": ["ツール導入", "定着失敗"], "title": "使われなかったツール"}
        self.image_prompt = "A flat illustration of an unused dashboard"
        self.image_url = "https://images.example.com/case.png"
        self.moderation = {"flagged": False, "categories": {"violence": False}, "category_scores": {"violence": 0.01}}
        self.analysis = {"title": "失敗", "summary": "要約", "tags": ["DX"]}

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.errors:
            raise self.errors[name]

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)

    def extract_conversation_data(self, system_prompt, messages):
        self._record("extract_conversation_data", system_prompt, messages)
        return self.extraction_reply, dict(self.extracted)

    def generate_reply(self, system_prompt, messages):
        self._record("generate_reply", system_prompt, messages)
        return self.plain_reply

    def generate_paragraph_summary(self, messages):
        self._record("generate_paragraph_summary", messages)
        return self.paragraph_summary

    def generate_tags_and_title(self, paragraph):
        self._record("generate_tags_and_title", paragraph)
        return dict(self.tags_and_title)

    def generate_image_prompt(self, summary, title=None):
        self._record("generate_image_prompt", summary, title)
        return self.image_prompt

    def generate_image(self, prompt):
        self._record("generate_image", prompt)
        return self.image_url

    def moderate(self, content):
        self._record("moderate", content)
        return dict(self.moderation)

    def analyze(self, text):
        self._record("analyze", text)
        return dict(self.analysis)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def database():
    """Fresh tables for every test."""
    init_db()
    yield
    metadata.drop_all(connection_engine)


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def app():
    from dxcases.main import app

    yield app
    app.dependency_overrides.clear()
    if hasattr(app.state, "completion_client"):
        del app.state.completion_client


@pytest.fixture
def client(app, fake_client):
    """Test client whose AI calls go to `fake_client`."""
    from fastapi.testclient import TestClient
    from dxcases.api.fast_api import get_completion_client

    app.dependency_overrides[get_completion_client] = lambda: fake_client
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """Test client holding a valid admin cookie."""
    response = client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def conversation_data():
    return {
        "when": "2023年4月",
        "who": "営業部",
        "summary": "新しいCRMを導入したが入力されなかった",
        "paragraph_summary": "営業部で新しいCRMを導入したが、入力の手間から誰も使わなくなった。",
        "tags": ["CRM", "定着失敗"],
        "title": "入力されないCRM",
        "image_url": "https://images.example.com/crm.png",
    }
