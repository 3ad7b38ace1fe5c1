from datetime import date
from types import SimpleNamespace

import pytest

from routes import create_app
from settings import Settings


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeCompletions:
    """Stands in for ``OpenAI().chat.completions``."""

    def __init__(self, reply="nonsense", tokens=12):
        self.reply = reply
        self.tokens = tokens
        self.error = None
        self.calls = []

    def create(self, **kwargs):
        # copy, the caller's list is a snapshot anyway
        self.calls.append({**kwargs, "messages": [dict(m) for m in kwargs["messages"]]})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))],
            usage=SimpleNamespace(total_tokens=self.tokens),
        )


class FakeOpenAI:
    def __init__(self, **kwargs):
        self.chat = SimpleNamespace(completions=FakeCompletions(**kwargs))

    @property
    def completions(self) -> FakeCompletions:
        return self.chat.completions


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def today():
    box = {"value": date(2026, 10, 19)}

    def _today():
        return box["value"]

    _today.box = box
    return _today


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def settings():
    return Settings(openai_api_key=None, chat_rate_limit=3, chat_rate_window=60, daily_message_limit=5)


@pytest.fixture
def app(settings, fake_openai, clock, today):
    return create_app(settings, client=fake_openai, start_sweeper=False, clock=clock, today=today)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def state(app):
    return app.extensions["relay"]
