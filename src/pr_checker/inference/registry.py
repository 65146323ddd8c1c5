"""Registry of candidate inference backends per task category."""

from dataclasses import dataclass
from enum import Enum

from pr_checker.config import Config

FREE_TIER_SUFFIX = ":free"


class TaskCategory(Enum):
    """Logical kinds of work, each with its own candidate list."""

    CODE_REVIEW = "code-review"
    SCHEMA = "schema"
    SEQUENCE = "sequence"


class UnknownTaskCategoryError(ValueError):
    """Raised when a task category has no configured backends."""


@dataclass(frozen=True)
class BackendDescriptor:
    """One inference backend, identified as provider/model-name."""

    identifier: str

    @property
    def provider(self) -> str:
        if "/" not in self.identifier:
            return ""
        return self.identifier.split("/", 1)[0]

    @property
    def model_name(self) -> str:
        return self.identifier.split("/", 1)[-1]

    @property
    def is_free(self) -> bool:
        """Free-tier backends carry the ':free' suffix and need no billing."""
        return self.identifier.endswith(FREE_TIER_SUFFIX)

    @property
    def short_name(self) -> str:
        return short_name(self.identifier)

    def __str__(self) -> str:
        return self.identifier


Chain = tuple[BackendDescriptor, list[BackendDescriptor]]


def short_name(identifier: str) -> str:
    """Last path segment of an identifier with any ':suffix' removed."""
    return identifier.split("/")[-1].split(":", 1)[0]


def parse_category(category: TaskCategory | str) -> TaskCategory:
    """Resolve a category given as enum member or its string value."""
    if isinstance(category, TaskCategory):
        return category
    try:
        return TaskCategory(category)
    except ValueError:
        raise UnknownTaskCategoryError(f"Unknown task category: {category!r}") from None


class ModelRegistry:
    """Read-only mapping of task category to primary and fallback backends."""

    def __init__(self, chains: dict[TaskCategory, Chain]):
        missing = [c.value for c in TaskCategory if c not in chains]
        if missing:
            raise UnknownTaskCategoryError(
                f"No backends configured for task categories: {', '.join(missing)}"
            )
        self._chains = {
            category: (primary, tuple(fallbacks))
            for category, (primary, fallbacks) in chains.items()
        }

    @classmethod
    def from_config(cls, config: Config) -> "ModelRegistry":
        """Build the registry from the `models` config section."""
        chains = {}
        for name, chain in config.models.items():
            category = parse_category(name)
            if not chain.primary or not chain.primary.strip():
                raise UnknownTaskCategoryError(
                    f"Empty primary model for task category {name!r}"
                )
            chains[category] = (
                BackendDescriptor(chain.primary.strip()),
                [BackendDescriptor(m.strip()) for m in chain.fallbacks if m and m.strip()],
            )
        return cls(chains)

    def primary_for(self, category: TaskCategory | str) -> BackendDescriptor:
        return self._chains[parse_category(category)][0]

    def fallbacks_for(self, category: TaskCategory | str) -> list[BackendDescriptor]:
        return list(self._chains[parse_category(category)][1])

    def candidates_for(self, category: TaskCategory | str) -> list[BackendDescriptor]:
        """Traversal order: primary first, fallbacks as listed (duplicates kept)."""
        return [self.primary_for(category), *self.fallbacks_for(category)]
