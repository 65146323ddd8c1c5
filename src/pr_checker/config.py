"""Configuration loading for PR Checker."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_PRIMARY_MODEL = "deepseek/deepseek-chat-v3-0324:free"
DEFAULT_FALLBACK_MODELS = [
    "meta-llama/llama-3-8b-instruct:free",
    "mistralai/mistral-small-3.1-24b-instruct:free",
]


@dataclass
class LLMConfig:
    """LLM provider configuration."""

    provider: str = "openrouter"
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    temperature: float = 0.3
    max_tokens: int = 4000
    timeout_seconds: int = 120
    referer: str = "https://github.com/pr-checker"
    title: str = "PR Checker"


@dataclass
class ModelChain:
    """Primary model plus ordered fallbacks for one task category."""

    primary: str = DEFAULT_PRIMARY_MODEL
    fallbacks: list[str] = field(default_factory=lambda: list(DEFAULT_FALLBACK_MODELS))


def _default_models() -> dict[str, ModelChain]:
    return {
        "code-review": ModelChain(),
        "schema": ModelChain(),
        "sequence": ModelChain(),
    }


@dataclass
class RetryConfig:
    """Rate-limit retry configuration."""

    max_retry_delay_seconds: int | None = None


@dataclass
class OutputConfig:
    """Result file configuration."""

    results_dir: str = "results"
    label: str = "primary-with-fallbacks"


@dataclass
class CommentConfig:
    """PR comment and diagram rendering configuration."""

    enabled: bool = False
    render_diagrams: bool = True
    mermaid_command: str = "mmdc"
    render_timeout_seconds: int = 60


@dataclass
class Config:
    """Main configuration object."""

    version: int = 1
    llm: LLMConfig = field(default_factory=LLMConfig)
    models: dict[str, ModelChain] = field(default_factory=_default_models)
    retry: RetryConfig = field(default_factory=RetryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    comment: CommentConfig = field(default_factory=CommentConfig)
    ignore: list[str] = field(default_factory=list)


@dataclass
class Credentials:
    """Secrets read from the environment at startup."""

    openrouter_api_key: str | None = None
    anthropic_api_key: str | None = None
    github_token: str | None = None
    github_app_id: str | None = None
    github_app_installation_id: str | None = None
    github_app_private_key: str | None = None
    imgbb_api_key: str | None = None

    @classmethod
    def from_env(cls) -> "Credentials":
        """Collect credentials from environment variables."""
        return cls(
            openrouter_api_key=os.environ.get("OPENROUTER_API_KEY"),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            github_token=os.environ.get("GITHUB_TOKEN"),
            github_app_id=os.environ.get("GITHUB_APP_ID"),
            github_app_installation_id=os.environ.get("GITHUB_APP_INSTALLATION_ID"),
            github_app_private_key=os.environ.get("GITHUB_APP_PRIVATE_KEY_BASE64"),
            imgbb_api_key=os.environ.get("IMGBB_API_KEY"),
        )

    @property
    def has_github_app(self) -> bool:
        return bool(
            self.github_app_id
            and self.github_app_installation_id
            and self.github_app_private_key
        )


def _filter_fields(cls: type, data: dict) -> dict:
    return {k: v for k, v in data.items() if k in cls.__dataclass_fields__}


def _load_models(data: dict) -> dict[str, ModelChain]:
    models = _default_models()
    for category, chain in data.items():
        if isinstance(chain, str):
            models[category] = ModelChain(primary=chain, fallbacks=[])
            continue
        chain = chain or {}
        fallbacks = chain.get("fallbacks") or []
        if isinstance(fallbacks, str):
            # A single fallback written as a YAML scalar
            fallbacks = [fallbacks]
        models[category] = ModelChain(
            primary=chain.get("primary", DEFAULT_PRIMARY_MODEL),
            fallbacks=list(fallbacks),
        )
    return models


def load_config(path: Path) -> Config:
    """Load configuration from YAML file, with defaults for missing values."""
    config = Config()

    if not path.exists():
        return config

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if "llm" in data:
        config.llm = LLMConfig(**_filter_fields(LLMConfig, data["llm"]))

    if "models" in data:
        config.models = _load_models(data["models"] or {})

    if "retry" in data:
        config.retry = RetryConfig(**_filter_fields(RetryConfig, data["retry"]))

    if "output" in data:
        config.output = OutputConfig(**_filter_fields(OutputConfig, data["output"]))

    if "comment" in data:
        config.comment = CommentConfig(**_filter_fields(CommentConfig, data["comment"]))

    if "ignore" in data:
        config.ignore = data["ignore"]

    return config
