"""Thin wrapper around the Gemini client shared by generation and chat."""
import base64
import logging
import os
from typing import Any, Optional

from google import genai
from google.genai import types

from skillsage.config import DEFAULT_CHAT_MODEL
from skillsage.models.plan import Attachment

logger = logging.getLogger(__name__)

MISSING_API_KEY = "MISSING_API_KEY"


class GenAIClient:
    """Holds the Gemini client and the last user-facing error.

    Without an API key, `error` stays at MISSING_API_KEY and `ready()` is
    False; callers return their fallback value instead of calling the model.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Any = None,
    ):
        self.model = model or os.getenv("CHAT_MODEL", DEFAULT_CHAT_MODEL)
        self.error: Optional[str] = None

        if client is not None:
            self._client = client
            return

        api_key = api_key or os.getenv("GOOGLE_API_KEY")
        if api_key:
            self._client = genai.Client(api_key=api_key)
        else:
            logger.error("GOOGLE_API_KEY is missing. Generation is disabled until configured.")
            self._client = None
            self.error = MISSING_API_KEY

    def ready(self) -> bool:
        if self._client is None:
            self.error = MISSING_API_KEY
            return False
        return True

    def clear_error(self) -> None:
        if self.error != MISSING_API_KEY:
            self.error = None

    async def generate(
        self,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
    ) -> Any:
        logger.debug(f"Calling {self.model}")
        return await self._client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )

    async def generate_text(
        self,
        contents: Any,
        config: Optional[types.GenerateContentConfig] = None,
    ) -> str:
        response = await self.generate(contents, config)
        return response.text or ""


def text_part(text: str) -> types.Part:
    return types.Part.from_text(text=text)


def attachment_part(attachment: Attachment) -> types.Part:
    """Inline media part from a base64 attachment."""
    return types.Part.from_bytes(
        data=base64.b64decode(attachment.data),
        mime_type=attachment.mime_type,
    )


def json_config(
    schema: Optional[types.Schema] = None,
    max_output_tokens: Optional[int] = None,
    thinking_budget: Optional[int] = None,
) -> types.GenerateContentConfig:
    """Config asking for JSON output, optionally schema-constrained."""
    return types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=schema,
        max_output_tokens=max_output_tokens,
        thinking_config=(
            types.ThinkingConfig(thinking_budget=thinking_budget)
            if thinking_budget is not None
            else None
        ),
    )
