"""Model resolver wiring using environment-derived settings.

Agents declared in YAML name a model id; the resolver turns that id into a
``ChatOpenAI`` client against the configured OpenAI-compatible endpoint.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from langchain_openai import ChatOpenAI

from swarmAgent.config.settings import Settings, get_settings
from swarmAgent.utils.error_handler import ConfigurationError

ModelResolver = Callable[..., Any]


def _chat_kwargs(
    model: str,
    api_key: Optional[str],
    base_url: Optional[str],
    timeout: float,
    temperature: Optional[float],
) -> Dict[str, Any]:
    if not api_key:
        raise ConfigurationError(
            f"Missing API key for model {model}; set SWARM_MODEL_API_KEY or OPENAI_API_KEY in .env"
        )
    kwargs: Dict[str, Any] = {"model": model, "api_key": api_key, "timeout": timeout}
    if base_url:
        kwargs["base_url"] = base_url
    if temperature is not None:
        kwargs["temperature"] = temperature
    return kwargs


def build_model_resolver(settings: Optional[Settings] = None) -> ModelResolver:
    """Construct a resolver returning ChatOpenAI clients.

    Clients are created on first request and reused per (model, base_url,
    temperature) combination.

    Example:
        >>> resolver = build_model_resolver()
        >>> chat_model = resolver("gpt-4o-mini")
    """
    settings = settings or get_settings()
    models = settings.models
    cache: Dict[tuple, ChatOpenAI] = {}

    def resolver(
        model_id: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> ChatOpenAI:
        model = model_id or models.default_model
        url = base_url or models.base_url
        key = (model, url, temperature)
        if key not in cache:
            cache[key] = ChatOpenAI(**_chat_kwargs(
                model, api_key or models.api_key, url, models.request_timeout, temperature
            ))
        return cache[key]

    return resolver
