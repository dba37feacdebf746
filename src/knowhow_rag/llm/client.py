from typing import Any, Dict, List, Optional

import httpx


class LLMClient:
    """
    Thin client for an OpenAI-compatible chat completions endpoint.

    Transport and HTTP errors are raised unchanged (``httpx.HTTPError``
    subclasses); classifying them is the caller's job.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        timeout: float,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Returns the content of the first choice's message.
        """
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            resp = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"].get("content") or ""

    async def generate(self, prompt: str, model: str, timeout: float) -> str:
        return await self.chat(
            [{"role": "user", "content": prompt}],
            model=model,
            timeout=timeout,
        )
