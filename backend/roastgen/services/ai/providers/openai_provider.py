"""
OpenAI-Compatible Transport Adapter

This module implements the adapter for OpenAI-compatible chat completion APIs
(OpenAI, Moonshot, Zhipu, OpenRouter, self-hosted gateways, ...).
These support JSON mode via response_format but not a native response schema.
"""
from typing import Iterator, Optional, Type

from openai import OpenAI
from pydantic import BaseModel

from .base_provider import BaseTransportAdapter


class OpenAICompatibleTransportAdapter(BaseTransportAdapter):
    """
    OpenAI-compatible transport adapter.

    Method: JSON Mode
    - Streaming: chat.completions.create(stream=True), text from choices[0].delta
    - Single: response_format={"type": "json_object"}
    """

    provider = "openai"

    def _initialize_client(self, **kwargs):
        """Initialize OpenAI-compatible client."""
        client = kwargs.get("client")
        if client is not None:
            self.client = client
            return

        client_kwargs = {"api_key": kwargs.get("api_key")}
        if kwargs.get("base_url"):
            client_kwargs["base_url"] = kwargs["base_url"]
        if kwargs.get("timeout"):
            client_kwargs["timeout"] = float(kwargs["timeout"])
        self.client = OpenAI(**client_kwargs)

    def stream_text(self, model: str, prompt: str, temperature: float) -> Iterator[str]:
        try:
            stream = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                stream=True,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                text = getattr(chunk.choices[0].delta, "content", None)
                if text:
                    yield text
        except Exception as e:
            raise self.translate_error(e, model) from e

    def generate_text(
        self,
        model: str,
        prompt: str,
        temperature: float,
        response_schema: Optional[Type[BaseModel]] = None,
    ) -> str:
        create_kwargs = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if response_schema is not None:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(**create_kwargs)
        except Exception as e:
            raise self.translate_error(e, model) from e
        return response.choices[0].message.content or ""
