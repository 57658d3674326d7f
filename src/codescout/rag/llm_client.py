"""LiteLLM client wrapper for the embedding and completion backend.

All embedding and completion calls route through this module. Each call
carries an explicit timeout plus LiteLLM's built-in retry; a timeout that
survives the retries is raised as ``BackendTimeoutError`` so callers can
retry the whole operation. Every other backend failure propagates unchanged.
"""

from __future__ import annotations

import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


class BackendError(RuntimeError):
    """Base class for backend failures raised by codescout itself."""


class BackendTimeoutError(BackendError):
    """An embedding or completion call timed out. Safe to retry."""


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    prompt: str,
    *,
    api_base: str | None = None,
    max_tokens: int = 2048,
    temperature: float = 0.0,
    timeout: float = 60.0,
    num_retries: int = 2,
) -> str:
    """Send *prompt* as a single user message and return the reply text.

    Raises:
        BackendTimeoutError: If the call timed out after retries.
    """
    try:
        response = litellm.completion(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            api_base=api_base,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
            num_retries=num_retries,
        )
    except litellm.Timeout as exc:
        raise BackendTimeoutError(
            f"Completion with '{model}' timed out after {timeout:g}s"
        ) from exc
    return response.choices[0].message.content or ""


def embed(
    model: str,
    text: str,
    *,
    api_base: str | None = None,
    timeout: float = 60.0,
    num_retries: int = 2,
) -> list[float]:
    """Return the embedding vector for *text*.

    Raises:
        BackendTimeoutError: If the call timed out after retries.
    """
    try:
        response = litellm.embedding(
            model=model,
            input=[text],
            api_base=api_base,
            timeout=timeout,
            num_retries=num_retries,
        )
    except litellm.Timeout as exc:
        raise BackendTimeoutError(
            f"Embedding with '{model}' timed out after {timeout:g}s"
        ) from exc
    return list(response.data[0]["embedding"])
