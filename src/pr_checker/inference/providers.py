"""Provider adapters: one request per call, one explicit response parser each."""

from typing import Any

import anthropic
import requests

from pr_checker.config import Config, Credentials, LLMConfig
from pr_checker.inference.invoker import InferenceProvider, classify_error_status
from pr_checker.inference.outcomes import HardFailure, InvocationOutcome, Success, TaskSpec
from pr_checker.inference.registry import FREE_TIER_SUFFIX, BackendDescriptor
from pr_checker.metrics.token_tracker import usage_from_counts


def parse_chat_completion(data: Any, backend: BackendDescriptor) -> InvocationOutcome:
    """Parse an OpenAI-compatible chat completion body.

    Only choices[0].message.content is accepted; any other shape is a
    HardFailure rather than a guess.
    """
    if not isinstance(data, dict):
        return HardFailure(reason=f"Malformed response from {backend.identifier}: not an object")

    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("code"), int):
        # Some upstream failures are reported inside an HTTP 200 body
        return classify_error_status(error["code"], str(error.get("message", "")), backend)

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return HardFailure(reason=f"No choices in response from {backend.identifier}")

    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        return HardFailure(reason=f"Response from {backend.identifier} has no message content")

    # The provider may substitute a different model than the one requested
    reported_model = data.get("model")
    if not isinstance(reported_model, str) or not reported_model:
        reported_model = backend.identifier

    usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
    return Success(
        content=content,
        backend_used=reported_model,
        token_usage=usage_from_counts(
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        ),
    )


class OpenRouterProvider:
    """Chat completions through the OpenRouter API."""

    MODELS_URL = "https://openrouter.ai/api/v1/models"

    def __init__(self, api_key: str, llm_config: LLMConfig):
        self._api_key = api_key
        self._config = llm_config

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._config.referer,
            "X-Title": self._config.title,
        }

    def _sanitize_error(self, error: str) -> str:
        """Remove the API key from error messages."""
        if self._api_key and self._api_key in error:
            error = error.replace(self._api_key, "[REDACTED]")
        return error

    def complete(self, backend: BackendDescriptor, task: TaskSpec) -> InvocationOutcome:
        payload = {
            "model": backend.identifier,
            "messages": [
                {"role": "system", "content": task.system_instructions},
                {"role": "user", "content": task.user_payload},
            ],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }

        try:
            response = requests.post(
                self._config.api_url,
                headers=self._headers(),
                json=payload,
                timeout=self._config.timeout_seconds,
            )
        except requests.RequestException as e:
            return HardFailure(
                reason=f"Network error calling {backend.identifier}: {self._sanitize_error(str(e))}"
            )

        if not response.ok:
            return classify_error_status(
                response.status_code, response.text, backend, response.headers
            )

        try:
            data = response.json()
        except ValueError:
            return HardFailure(reason=f"Malformed JSON response from {backend.identifier}")

        return parse_chat_completion(data, backend)

    def list_models(self, free_only: bool = True) -> list[dict[str, Any]]:
        """List models available through OpenRouter.

        Raises:
            requests.HTTPError: If the API returns an error status.
        """
        response = requests.get(
            self.MODELS_URL,
            headers=self._headers(),
            timeout=self._config.timeout_seconds,
        )
        response.raise_for_status()
        models = response.json().get("data", [])
        if free_only:
            models = [m for m in models if str(m.get("id", "")).endswith(FREE_TIER_SUFFIX)]
        return models


class AnthropicProvider:
    """Messages API through the Anthropic SDK."""

    def __init__(self, api_key: str, llm_config: LLMConfig):
        self.client = anthropic.Anthropic(
            api_key=api_key,
            timeout=llm_config.timeout_seconds,
            max_retries=0,
        )
        self._config = llm_config

    def complete(self, backend: BackendDescriptor, task: TaskSpec) -> InvocationOutcome:
        model = backend.model_name if backend.provider == "anthropic" else backend.identifier

        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=task.system_instructions,
                messages=[{"role": "user", "content": task.user_payload}],
            )
        except anthropic.APIStatusError as e:
            return classify_error_status(
                e.status_code, e.response.text, backend, e.response.headers
            )
        except anthropic.APIConnectionError as e:
            return HardFailure(reason=f"Network error calling {backend.identifier}: {e}")

        text_blocks = [
            block.text for block in response.content
            if getattr(block, "type", None) == "text" and block.text.strip()
        ]
        if not text_blocks:
            return HardFailure(reason=f"Response from {backend.identifier} has no text content")

        return Success(
            content="\n".join(text_blocks),
            backend_used=f"anthropic/{response.model}" if response.model else backend.identifier,
            token_usage=usage_from_counts(
                response.usage.input_tokens,
                response.usage.output_tokens,
            ),
        )


def build_provider(config: Config, credentials: Credentials) -> InferenceProvider:
    """Create the provider adapter named in config.llm.provider.

    Raises:
        ValueError: If the provider is unknown or its API key is missing.
    """
    provider = config.llm.provider.strip().lower()

    if provider == "openrouter":
        if not credentials.openrouter_api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable required")
        return OpenRouterProvider(credentials.openrouter_api_key, config.llm)

    if provider == "anthropic":
        if not credentials.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable required")
        return AnthropicProvider(credentials.anthropic_api_key, config.llm)

    raise ValueError(f"Unsupported LLM provider: {config.llm.provider!r}")
