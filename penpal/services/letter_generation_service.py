"""
Letter Generation Service - writes creature replies with the OpenAI chat API
"""
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

import core.config as config
from penpal.errors import GenerationFailed

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None


def _get_client() -> AsyncOpenAI:
    """Lazily initialize the OpenAI client."""
    global _client
    if _client is None:
        _client = AsyncOpenAI(
            api_key=config.OPENAI_API_KEY,
            timeout=config.LETTER_GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


class OpenAILetterGenerator:
    """``LetterGeneratorPort`` backed by OpenAI chat completions."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        self._client = client
        self.model = model or config.OPENAI_MODEL
        self.max_tokens = max_tokens or config.LETTER_MAX_TOKENS
        self.temperature = config.LETTER_TEMPERATURE if temperature is None else temperature

    async def generate_letter(self, prompt: str) -> str:
        client = self._client or _get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": "Please write the letter response."},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"Letter generation failed: {type(e).__name__}: {str(e)}")
            raise GenerationFailed() from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.error("Letter generation returned empty content")
            raise GenerationFailed("Letter generation returned no text")
        return content.strip()
