"""
Transport Adapters Module

This module provides a unified interface for different generation services
through the adapter pattern. New transports can be added by:
1. Creating a new adapter class inheriting from BaseTransportAdapter
2. Registering it with register_transport()
3. Referencing its name as `provider` in config.yaml (ai.transports)

Architecture:
    - Adapter Pattern: Each provider has its own adapter
    - Factory Pattern: get_transport_adapter() creates adapter instances
    - Registry Pattern: TRANSPORT_REGISTRY enables dynamic extension
"""
from typing import Dict, Optional, Tuple, Type

from ..errors import ConfigurationError
from .base_provider import BaseTransportAdapter
from .gemini_provider import GeminiTransportAdapter
from .openai_provider import OpenAICompatibleTransportAdapter


# Transport registry - supports dynamic extension
TRANSPORT_REGISTRY: Dict[str, Type[BaseTransportAdapter]] = {
    "gemini": GeminiTransportAdapter,
    "google": GeminiTransportAdapter,  # Alias for Gemini
    "openai": OpenAICompatibleTransportAdapter,
}


def register_transport(name: str, adapter_class: Type[BaseTransportAdapter]):
    """
    Register a new transport adapter.

    Args:
        name: Provider name (lowercase)
        adapter_class: Adapter class inheriting from BaseTransportAdapter

    Examples:
        >>> from roastgen.services.ai.providers import register_transport
        >>> register_transport("deepseek", DeepSeekTransportAdapter)
    """
    TRANSPORT_REGISTRY[name.lower()] = adapter_class


def get_transport_adapter(provider: str, name: Optional[str] = None, **kwargs) -> BaseTransportAdapter:
    """
    Get a transport adapter instance.

    Args:
        provider: Provider name (case-insensitive)
        name: Name used in logs
        **kwargs: Provider-specific parameters (api_key, base_url, timeout, client)

    Returns:
        BaseTransportAdapter: Transport adapter instance

    Raises:
        ConfigurationError: If provider is not registered

    Examples:
        >>> adapter = get_transport_adapter(
        ...     "gemini",
        ...     name="proxy",
        ...     api_key="xxx",
        ...     base_url="https://www.yangjiehui.xyz"
        ... )
    """
    provider = provider.lower()
    if provider not in TRANSPORT_REGISTRY:
        available = list(TRANSPORT_REGISTRY.keys())
        raise ConfigurationError(
            f"Unknown provider: {provider}. "
            f"Available providers: {available}"
        )

    adapter_class = TRANSPORT_REGISTRY[provider]
    return adapter_class(name=name, **kwargs)


def build_transports(settings) -> Tuple[BaseTransportAdapter, ...]:
    """
    Build the ordered transport clients described by GenerationSettings.

    Args:
        settings: GenerationSettings (uses .transports and .request_timeout)

    Returns:
        Tuple of adapters in configured order

    Raises:
        ConfigurationError: Missing API key or unknown provider
    """
    return tuple(
        get_transport_adapter(
            transport.provider,
            name=transport.name,
            api_key=transport.resolve_api_key(),
            base_url=transport.base_url,
            timeout=settings.request_timeout,
        )
        for transport in settings.transports
    )


def list_transports() -> list[str]:
    """
    List all registered transports.

    Returns:
        List of provider names
    """
    return list(TRANSPORT_REGISTRY.keys())


__all__ = [
    "BaseTransportAdapter",
    "GeminiTransportAdapter",
    "OpenAICompatibleTransportAdapter",
    "TRANSPORT_REGISTRY",
    "register_transport",
    "get_transport_adapter",
    "build_transports",
    "list_transports",
]
