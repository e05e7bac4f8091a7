"""
Base Transport Adapter Module

This module defines the abstract base class for all transport adapters.
A transport adapter is one configured path (credentials + base address) to a
generation service. Adapters hide SDK differences and translate SDK errors
into RateLimitedError / TransportError at this boundary.
"""
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Type

from pydantic import BaseModel

from ..errors import RateLimitedError, TransportError, is_rate_limit_error


class BaseTransportAdapter(ABC):
    """
    Abstract base class for transport adapters.

    Each adapter implements the specific logic for:
    - Initializing the SDK client
    - Streaming plain-text generation
    - Single schema-constrained (JSON) generation

    Design Pattern: Adapter Pattern
    - Allows different providers to be used interchangeably in the fallback chain
    - Encapsulates provider-specific logic
    """

    provider = "base"

    def __init__(self, name: Optional[str] = None, **kwargs):
        """
        Initialize the transport adapter.

        Args:
            name: Name used in logs (e.g. "primary", "proxy")
            **kwargs: Provider-specific parameters (api_key, base_url, timeout, client)
        """
        self.name = name or self.provider
        self.base_url = kwargs.get("base_url")
        self._initialize_client(**kwargs)

    @abstractmethod
    def _initialize_client(self, **kwargs):
        """
        Initialize the provider's client.

        Args:
            **kwargs: Provider-specific parameters (api_key, base_url, etc.)
        """
        pass

    @abstractmethod
    def stream_text(self, model: str, prompt: str, temperature: float) -> Iterator[str]:
        """
        Stream a plain-text completion.

        Yields:
            Non-empty text chunks in arrival order

        Raises:
            RateLimitedError: Quota or rate limit hit
            TransportError: Any other failure, before or during the stream
        """
        pass

    @abstractmethod
    def generate_text(
        self,
        model: str,
        prompt: str,
        temperature: float,
        response_schema: Optional[Type[BaseModel]] = None,
    ) -> str:
        """
        Run one non-streaming completion.

        Args:
            response_schema: When given, request JSON output matching this schema

        Returns:
            Raw response text

        Raises:
            RateLimitedError: Quota or rate limit hit
            TransportError: Any other failure
        """
        pass

    def translate_error(self, exc: Exception, model: str) -> Exception:
        """
        Wrap an SDK exception in RateLimitedError or TransportError.

        Errors that already belong to roastgen are returned unchanged.
        """
        if isinstance(exc, (RateLimitedError, TransportError)):
            return exc
        if is_rate_limit_error(exc):
            return RateLimitedError(f"{self.name}/{model} rate limited: {exc}")
        return TransportError(f"{self.name}/{model} call failed: {exc}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, base_url={self.base_url!r})"
