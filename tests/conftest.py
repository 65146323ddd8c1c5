"""Shared test fixtures and configuration."""

import threading
from unittest.mock import MagicMock

import pytest

from pr_checker.config import Config, ModelChain
from pr_checker.inference.outcomes import InvocationOutcome, TaskSpec


class ScriptedInvoker:
    """Invoker stand-in returning scripted outcomes per backend identifier.

    Each backend pops its outcomes in order; the last one repeats.
    """

    def __init__(self, script: dict[str, list[InvocationOutcome]]):
        self.script = {backend: list(outcomes) for backend, outcomes in script.items()}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def invoke(self, backend, task):
        with self._lock:
            self.calls.append(backend.identifier)
            outcomes = self.script[backend.identifier]
            return outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]


def make_config(primary: str = "free-model-X", fallbacks: list[str] | None = None) -> Config:
    """Config with the same chain for every task category."""
    config = Config()
    config.models = {
        name: ModelChain(primary=primary, fallbacks=list(fallbacks or []))
        for name in ("code-review", "schema", "sequence")
    }
    return config


def make_response(status_code: int = 200, json_data=None, text: str = "", headers=None):
    """Mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.headers = headers or {}
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def chat_completion(content: str = "## Review\nLooks good", model: str = "free-model-X") -> dict:
    """OpenAI-compatible chat completion body."""
    return {
        "id": "gen-123",
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
    }


@pytest.fixture
def task_spec():
    """Default task."""
    return TaskSpec(
        system_instructions="You are a code reviewer.",
        user_payload="Review this diff",
        task_name="code-review",
    )


@pytest.fixture
def sleep_calls():
    """Records sleep durations instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleep_calls):
    return sleep_calls.append


@pytest.fixture
def scripted_invoker():
    """Factory for ScriptedInvoker."""
    return ScriptedInvoker


@pytest.fixture
def config_factory():
    """Factory for Config with one chain for all categories."""
    return make_config


@pytest.fixture
def response_factory():
    """Factory for mock requests.Response objects."""
    return make_response


@pytest.fixture
def completion_factory():
    """Factory for chat completion bodies."""
    return chat_completion
