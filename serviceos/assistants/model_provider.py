"""Resolve the configured assistant model."""

from __future__ import annotations

from typing import Union

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.providers.anthropic import AnthropicProvider

from serviceos.server.core.config import AssistantConfig


def build_model(config: AssistantConfig) -> Union[Model, str]:
    """Model instance for ``config.model``.

    ``anthropic:<name>`` with an explicit API key gets a dedicated provider;
    anything else is handed to pydantic-ai as a model string, which reads the
    provider's key from the environment.
    """
    provider, _, name = config.model.partition(":")
    if provider == "anthropic" and name and config.anthropic_api_key:
        return AnthropicModel(name, provider=AnthropicProvider(api_key=config.anthropic_api_key))
    return config.model
