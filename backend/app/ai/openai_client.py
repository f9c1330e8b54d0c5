from __future__ import annotations

from openai import AsyncOpenAI

from ..core.errors import UpstreamUnavailable

SYSTEM_PROMPT = "You are a compassionate, supportive mental health journaling assistant."


class OpenAIClient:
    """Thin wrapper above the OpenAI async SDK."""

    def __init__(self, api_key: str | None, *, timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout) if api_key else None

    @property
    def available(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        *,
        model: str,
        prompt: str,
        max_tokens: int,
    ) -> str:
        """Return the completion text for a single user prompt."""

        if not self._client:
            raise UpstreamUnavailable("OpenAI API key is not configured")

        completion = await self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
        )
        message = completion.choices[0].message.content or ""
        text = message.strip()
        if not text:
            raise UpstreamUnavailable("empty completion")
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
