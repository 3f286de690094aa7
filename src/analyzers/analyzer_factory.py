# src/analyzers/analyzer_factory.py — v1
"""Factory: build the configured analyzer from settings."""

from __future__ import annotations

import logging

from proofline.analyzers.base_analyzer import BaseAnalyzer
from proofline.config.settings import ConfigurationError, Settings
from proofline.llm.client_factory import create_llm_client

logger = logging.getLogger(__name__)

_HOSTED_PROVIDERS = {"openai", "anthropic"}


def create_analyzer(settings: Settings) -> BaseAnalyzer:
    """Instantiate an LLMAnalyzer for the configured provider and model.

    Raises:
        ConfigurationError: If a hosted provider has no API key configured.
    """
    provider = settings.analyzer_provider
    if provider in _HOSTED_PROVIDERS and not settings.api_key_for(provider):
        raise ConfigurationError(
            f"PROOFLINE_{provider.upper()}_API_KEY is required "
            f"for PROOFLINE_ANALYZER_PROVIDER={provider}"
        )

    from proofline.analyzers.llm_analyzer import LLMAnalyzer

    client = create_llm_client(provider, settings.analyzer_model, settings=settings)
    logger.info("Analyzer: %s:%s", provider, settings.analyzer_model)
    return LLMAnalyzer(
        client,
        max_tokens=settings.analyzer_max_tokens,
        temperature=settings.analyzer_temperature,
    )
