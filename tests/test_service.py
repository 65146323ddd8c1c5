"""Tests for the orchestration service."""

import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from pr_checker.config import DEFAULT_PRIMARY_MODEL, Config, Credentials
from pr_checker.execution.fallback import FallbackOrchestrator
from pr_checker.execution.service import OrchestrationService, TaskRequest, build_service
from pr_checker.inference.outcomes import (
    Exhausted,
    HardFailure,
    OrchestrationSuccess,
    RetryableFailure,
    Success,
)
from pr_checker.inference.registry import (
    ModelRegistry,
    TaskCategory,
    UnknownTaskCategoryError,
)
from pr_checker.output.results import ResultStore


def _service(invoker, config, run_dir: Path, label: str = "primary-with-fallbacks"):
    return OrchestrationService(
        registry=ModelRegistry.from_config(config),
        orchestrator=FallbackOrchestrator(invoker, sleep=lambda s: None),
        store=ResultStore(run_dir),
        label=label,
    )


class TestRunOrchestratedTask:
    """Single task: orchestrate then persist."""

    def test_success_is_persisted(self, tmp_path, scripted_invoker, config_factory):
        invoker = scripted_invoker({
            "free-model-X": [HardFailure(reason="Malformed JSON response from free-model-X")],
            "free-model-Y": [
                Success(content="erDiagram\n  A ||--o{ B : has", backend_used="free-model-Y")
            ],
        })
        config = config_factory(primary="free-model-X", fallbacks=["free-model-Y"])
        service = _service(invoker, config, tmp_path)

        result = service.run_orchestrated_task("schema", "Draw the schema", "diff")

        assert isinstance(result, OrchestrationSuccess)
        assert result.backend_used == "free-model-Y"
        path = tmp_path / "primary-with-fallbacks-schema.md"
        assert path.read_text() == "erDiagram\n  A ||--o{ B : has"
        assert service.result_path(TaskCategory.SCHEMA) == path

    def test_exhausted_is_persisted(self, tmp_path, scripted_invoker, config_factory):
        invoker = scripted_invoker({"a": [HardFailure(reason="network down")]})
        service = _service(invoker, config_factory(primary="a", fallbacks=[]), tmp_path, label="X")

        result = service.run_orchestrated_task(TaskCategory.CODE_REVIEW, "sys", "payload")

        assert isinstance(result, Exhausted)
        text = (tmp_path / "X-code-review.md").read_text()
        assert text.startswith("# Error with X")
        assert "network down" in text

    def test_unknown_category_raises_before_invoking(
        self, tmp_path, scripted_invoker, config_factory
    ):
        invoker = scripted_invoker({"a": [Success(content="ok", backend_used="a")]})
        service = _service(invoker, config_factory(primary="a"), tmp_path)

        with pytest.raises(UnknownTaskCategoryError):
            service.run_orchestrated_task("translation", "sys", "payload")

        assert invoker.calls == []
        assert list(tmp_path.iterdir()) == []

    def test_task_name_reaches_invoker(self, tmp_path, config_factory):
        seen = []

        class RecordingInvoker:
            def invoke(self, backend, task):
                seen.append(task)
                return Success(content="ok", backend_used=backend.identifier)

        service = _service(RecordingInvoker(), config_factory(primary="a"), tmp_path)

        service.run_orchestrated_task("sequence", "Draw the sequence", "the diff")

        assert seen[0].task_name == "sequence"
        assert seen[0].system_instructions == "Draw the sequence"
        assert seen[0].user_payload == "the diff"

    def test_repeated_runs_are_idempotent(self, tmp_path, scripted_invoker, config_factory):
        config = config_factory(primary="a", fallbacks=["b"])

        for _ in range(2):
            invoker = scripted_invoker({
                "a": [HardFailure(reason="down")],
                "b": [Success(content="same", backend_used="b")],
            })
            result = _service(invoker, config, tmp_path).run_orchestrated_task(
                "code-review", "sys", "payload"
            )
            assert result.backend_used == "b"

        assert (tmp_path / "primary-with-fallbacks-code-review.md").read_text() == "same"
        assert len(list(tmp_path.iterdir())) == 1


class TestRunMany:
    """Independent tasks in parallel."""

    def test_schema_and_sequence_concurrently(self, tmp_path, config_factory):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierInvoker:
            """Both tasks must be in flight at once to pass the barrier."""

            def invoke(self, backend, task):
                barrier.wait()
                return Success(content=f"{task.task_name} diagram", backend_used=backend.identifier)

        service = _service(BarrierInvoker(), config_factory(primary="a"), tmp_path)

        results = service.run_many([
            TaskRequest(TaskCategory.SCHEMA, "schema prompt", "diff"),
            TaskRequest("sequence", "sequence prompt", "diff"),
        ])

        assert set(results) == {TaskCategory.SCHEMA, TaskCategory.SEQUENCE}
        assert all(r.success for r in results.values())
        assert (tmp_path / "primary-with-fallbacks-schema.md").read_text() == "schema diagram"
        assert (tmp_path / "primary-with-fallbacks-sequence.md").read_text() == "sequence diagram"

    def test_one_failure_does_not_affect_other(self, tmp_path, config_factory):
        class MixedInvoker:
            def invoke(self, backend, task):
                if task.task_name == "schema":
                    return HardFailure(reason="schema backend down")
                return Success(content="ok", backend_used=backend.identifier)

        service = _service(MixedInvoker(), config_factory(primary="a"), tmp_path)

        results = service.run_many([
            TaskRequest("schema", "s", "p"),
            TaskRequest("sequence", "s", "p"),
        ])

        assert isinstance(results[TaskCategory.SCHEMA], Exhausted)
        assert isinstance(results[TaskCategory.SEQUENCE], OrchestrationSuccess)

    def test_retry_wait_does_not_block_other_tasks(self, tmp_path, config_factory):
        schema_sleeping = threading.Event()
        release_schema = threading.Event()
        schema_outcomes = [
            RetryableFailure(reason="Rate limited", retry_after_seconds=30),
            Success(content="schema diagram", backend_used="a"),
        ]

        class TaskInvoker:
            def invoke(self, backend, task):
                if task.task_name == "schema":
                    return schema_outcomes.pop(0)
                return Success(content="sequence diagram", backend_used=backend.identifier)

        def blocking_sleep(seconds):
            schema_sleeping.set()
            release_schema.wait(timeout=5)

        service = OrchestrationService(
            registry=ModelRegistry.from_config(config_factory(primary="a")),
            orchestrator=FallbackOrchestrator(TaskInvoker(), sleep=blocking_sleep),
            store=ResultStore(tmp_path),
        )
        results = {}
        worker = threading.Thread(target=lambda: results.update(service.run_many([
            TaskRequest("schema", "s", "p"),
            TaskRequest("sequence", "s", "p"),
        ])))
        worker.start()

        try:
            assert schema_sleeping.wait(timeout=5)
            sequence_file = tmp_path / "primary-with-fallbacks-sequence.md"
            deadline = time.monotonic() + 5
            while not sequence_file.exists() and time.monotonic() < deadline:
                time.sleep(0.01)

            assert sequence_file.read_text() == "sequence diagram"
            assert not (tmp_path / "primary-with-fallbacks-schema.md").exists()
            assert worker.is_alive()
        finally:
            release_schema.set()
            worker.join(timeout=5)

        assert results[TaskCategory.SCHEMA].backend_used == "a"
        assert len(results[TaskCategory.SCHEMA].attempts) == 2

    def test_duplicate_categories_rejected_before_running(
        self, tmp_path, scripted_invoker, config_factory
    ):
        invoker = scripted_invoker({"a": [Success(content="ok", backend_used="a")]})
        service = _service(invoker, config_factory(primary="a"), tmp_path)

        with pytest.raises(ValueError, match="schema"):
            service.run_many([
                TaskRequest("schema", "first", "p"),
                TaskRequest(TaskCategory.SCHEMA, "second", "p"),
            ])

        assert invoker.calls == []
        assert list(tmp_path.iterdir()) == []

    def test_empty(self, tmp_path, scripted_invoker, config_factory):
        service = _service(scripted_invoker({}), config_factory(), tmp_path)

        assert service.run_many([]) == {}


class TestBuildService:
    def test_uses_config(self, tmp_path, config_factory):
        config = config_factory(primary="a", fallbacks=["b"])
        config.output.label = "chain"

        class Provider:
            def complete(self, backend, task):
                return Success(content="ok", backend_used=backend.identifier)

        service = build_service(config, Credentials(), tmp_path, provider=Provider())

        result = service.run_orchestrated_task("code-review", "sys", "payload")

        assert result.backend_used == "a"
        assert (tmp_path / "chain-code-review.md").exists()

    def test_default_config_waits_for_long_hint(self, tmp_path):
        slept = []
        outcomes = [
            RetryableFailure(reason="Rate limited", retry_after_seconds=180),
            Success(content="ok", backend_used="primary"),
        ]

        class Provider:
            def complete(self, backend, task):
                return outcomes.pop(0)

        with patch("pr_checker.execution.fallback.time.sleep", side_effect=slept.append):
            service = build_service(Config(), Credentials(), tmp_path, provider=Provider())
            result = service.run_orchestrated_task("code-review", "sys", "payload")

        assert slept == [180]
        assert result.success
        assert [a.backend for a in result.attempts] == [DEFAULT_PRIMARY_MODEL] * 2

    def test_missing_key_without_provider(self, tmp_path, config_factory):
        with pytest.raises(ValueError, match="OPENROUTER_API_KEY"):
            build_service(config_factory(), Credentials(), tmp_path)
