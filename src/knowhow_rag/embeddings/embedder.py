"""
Embedding Client

Calls an OpenAI-compatible ``/embeddings`` endpoint to turn segment text and
queries into dense vectors. Responsible for:

- Batching inputs to stay under provider request limits
- Wrapping transport failures in EmbeddingError
- Validating response shape and vector dimensionality
"""

from __future__ import annotations

from typing import List, Optional, Sequence
import logging
import httpx

logger = logging.getLogger("knowhow.embedder")


class EmbeddingError(RuntimeError):
    """Raised when embedding generation fails."""


class Embedder:
    """
    Asynchronous embedding generator.

    The class is stateless apart from configuration and safe to reuse.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        dimension: int,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        batch_size: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_key : str
            Bearer token for the embeddings API.

        model : str
            Embedding model name.

        dimension : int
            Expected vector size; must match the vector index dimension.

        base_url : str
            API root; ``/embeddings`` is appended.

        timeout : float
            HTTP timeout for each request.

        batch_size : int
            Maximum number of inputs per request.
        """
        self.api_key = api_key
        self.model = model
        self.dimension = dimension
        self.url = base_url.rstrip("/") + "/embeddings"
        self.timeout = timeout
        self.batch_size = batch_size
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate one embedding per input text, in input order.

        Raises
        ------
        EmbeddingError
            If any batch fails or the response is malformed.
        """
        if not texts:
            return []

        all_embeddings: List[List[float]] = []
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for start in range(0, len(texts), self.batch_size):
                batch = list(texts[start : start + self.batch_size])
                payload = {
                    "model": self.model,
                    "input": batch,
                    "dimensions": self.dimension,
                }

                try:
                    response = await client.post(self.url, json=payload, headers=headers)
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    logger.error(
                        "Embedding request failed (%s): batch size=%d, error=%s",
                        type(exc).__name__,
                        len(batch),
                        str(exc),
                    )
                    raise EmbeddingError(
                        f"Embedding generation failed: {type(exc).__name__}"
                    ) from exc

                try:
                    data = response.json()
                except ValueError as exc:
                    raise EmbeddingError("Embedding response is not valid JSON.") from exc

                embeddings = self._extract_embeddings(data)
                if len(embeddings) != len(batch):
                    raise EmbeddingError(
                        f"Expected {len(batch)} embeddings, got {len(embeddings)}."
                    )
                all_embeddings.extend(embeddings)

        return all_embeddings

    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        embeddings = await self.embed([text])
        return embeddings[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _extract_embeddings(self, data: dict) -> List[List[float]]:
        """
        Parse ``{"data": [{"embedding": [...]}, ...]}`` into float lists.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingError("'data' field must be a list.")

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingError(f"Malformed embedding record at index {index}.")

            emb = record["embedding"]
            if not isinstance(emb, list) or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise EmbeddingError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )
            if len(emb) != self.dimension:
                raise EmbeddingError(
                    f"Embedding at index {index} has dimension {len(emb)}, expected {self.dimension}."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings
