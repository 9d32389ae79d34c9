import pytest

from app import create_app
from config import TestingConfig
from models import db


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(subject_id="user_2abc"):
        with client.session_transaction() as sess:
            sess['subject_id'] = subject_id
        return subject_id
    return _login


@pytest.fixture
def gemini_calls(monkeypatch):
    """Replace the Gemini call with a canned reply and record every prompt"""
    calls = []

    def fake_generate_text(prompt, model=None):
        calls.append(prompt)
        return "```python\nprint('hello')\n```"

    monkeypatch.setattr("gemini.generate_text", fake_generate_text)
    return calls
