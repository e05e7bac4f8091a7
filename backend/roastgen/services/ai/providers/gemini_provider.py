"""
Gemini Transport Adapter

This module implements the adapter for the Google Gemini API (google-genai SDK).
A custom base_url routes the same API through a reverse proxy.
"""
from typing import Iterator, Optional, Type

from google import genai
from google.genai import types
from pydantic import BaseModel

from .base_provider import BaseTransportAdapter


class GeminiTransportAdapter(BaseTransportAdapter):
    """
    Gemini transport adapter.

    Method: Native Structured Output
    - Streaming: generate_content_stream with response_mime_type="text/plain"
    - Single: generate_content with response_mime_type="application/json"
      and the Pydantic model as response_schema

    Reference: https://googleapis.github.io/python-genai/
    """

    provider = "gemini"

    def _initialize_client(self, **kwargs):
        """Initialize google-genai client, optionally pointed at a proxy."""
        client = kwargs.get("client")
        if client is not None:
            self.client = client
            return

        base_url = kwargs.get("base_url")
        timeout = kwargs.get("timeout")
        http_options = None
        if base_url or timeout:
            http_options = types.HttpOptions(
                base_url=base_url,
                # HttpOptions.timeout is in milliseconds
                timeout=int(float(timeout) * 1000) if timeout else None,
            )
        self.client = genai.Client(api_key=kwargs.get("api_key"), http_options=http_options)

    def stream_text(self, model: str, prompt: str, temperature: float) -> Iterator[str]:
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="text/plain",
        )
        try:
            stream = self.client.models.generate_content_stream(
                model=model,
                contents=prompt,
                config=config,
            )
            for chunk in stream:
                text = chunk.text
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
        if response_schema is not None:
            config = types.GenerateContentConfig(
                temperature=temperature,
                response_mime_type="application/json",
                response_schema=response_schema,
            )
        else:
            config = types.GenerateContentConfig(temperature=temperature)

        try:
            response = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise self.translate_error(e, model) from e
        return response.text or ""
