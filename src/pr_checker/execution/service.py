"""Public entry point: run one orchestrated task, or several in parallel."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from pr_checker.config import Config, Credentials
from pr_checker.execution.fallback import FallbackOrchestrator
from pr_checker.inference.invoker import BackendInvoker, InferenceProvider
from pr_checker.inference.outcomes import OrchestrationResult, TaskSpec
from pr_checker.inference.providers import build_provider
from pr_checker.inference.registry import ModelRegistry, TaskCategory, parse_category
from pr_checker.output.results import ResultStore


@dataclass(frozen=True)
class TaskRequest:
    """Inputs for one orchestrated task."""

    category: TaskCategory | str
    system_instructions: str
    user_payload: str


class OrchestrationService:
    """Resolves candidates, runs the fallback chain and persists the result."""

    def __init__(
        self,
        registry: ModelRegistry,
        orchestrator: FallbackOrchestrator,
        store: ResultStore,
        label: str = "primary-with-fallbacks",
    ):
        self.registry = registry
        self.orchestrator = orchestrator
        self.store = store
        self.label = label

    def run_orchestrated_task(
        self,
        task_category: TaskCategory | str,
        system_instructions: str,
        user_payload: str,
    ) -> OrchestrationResult:
        """Run one task through its primary and fallback backends.

        The result is written to the run directory whether or not a backend
        answered, so downstream formatting always has a file to read.

        Raises:
            UnknownTaskCategoryError: If the category is not configured.
            ResultStoreError: If the result file cannot be written.
        """
        category = parse_category(task_category)
        task = TaskSpec(
            system_instructions=system_instructions,
            user_payload=user_payload,
            task_name=category.value,
        )

        primary = self.registry.primary_for(category)
        fallbacks = self.registry.fallbacks_for(category)
        print(f"🤖 Running {task.task_name} (primary: {primary}, fallbacks: {len(fallbacks)})")

        result = self.orchestrator.run(primary, fallbacks, task)
        self.store.record(self.label, task.task_name, result)
        return result

    def result_path(self, task_category: TaskCategory | str) -> Path:
        return self.store.path_for(self.label, parse_category(task_category).value)

    def run_many(self, requests: list[TaskRequest]) -> dict[TaskCategory, OrchestrationResult]:
        """Run independent tasks concurrently, one thread per task.

        Raises:
            UnknownTaskCategoryError: If a category is not configured.
            ValueError: If two requests share a category, since both would
                write the same result file.
        """
        if not requests:
            return {}

        categories = [parse_category(r.category) for r in requests]
        duplicates = sorted({c.value for c in categories if categories.count(c) > 1})
        if duplicates:
            raise ValueError(f"Duplicate task categories in one run: {', '.join(duplicates)}")

        with ThreadPoolExecutor(max_workers=len(requests)) as executor:
            futures = {
                category: executor.submit(
                    self.run_orchestrated_task,
                    category,
                    r.system_instructions,
                    r.user_payload,
                )
                for category, r in zip(categories, requests)
            }
            return {category: future.result() for category, future in futures.items()}


def build_service(
    config: Config,
    credentials: Credentials,
    run_dir: Path,
    provider: InferenceProvider | None = None,
) -> OrchestrationService:
    """Wire registry, invoker, orchestrator and store from configuration."""
    registry = ModelRegistry.from_config(config)
    invoker = BackendInvoker(provider or build_provider(config, credentials))
    orchestrator = FallbackOrchestrator(
        invoker,
        max_retry_delay_seconds=config.retry.max_retry_delay_seconds,
    )
    return OrchestrationService(
        registry=registry,
        orchestrator=orchestrator,
        store=ResultStore(run_dir),
        label=config.output.label,
    )
