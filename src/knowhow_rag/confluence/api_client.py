import logging
from typing import Any, Dict, List, Optional

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError

from ..core.errors import ContentSourceError
from ..core.models import Page
from .models import ContentResponse, ContentResult

logger = logging.getLogger("knowhow.confluence")

CONTENT_EXPAND = "body.storage,version,metadata.labels"


def clean_content(raw_content: Optional[str]) -> str:
    """Strip Confluence storage-format HTML down to plain text."""
    if not raw_content:
        return ""
    return BeautifulSoup(raw_content, "html.parser").get_text(" ", strip=True)


class ConfluenceClient:
    def __init__(
        self,
        base_url: str,
        space_key: str,
        username: str = "",
        api_token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = str(base_url).rstrip("/")
        self.space_key = space_key
        self.timeout = timeout
        self._auth = httpx.BasicAuth(username, api_token) if username and api_token else None
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            auth=self._auth,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ContentSourceError(
                f"Confluence request failed ({type(exc).__name__}): {exc}"
            ) from exc

    async def _get_content(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[ContentResult]:
        data = await self._get_json(url, params)
        try:
            return ContentResponse.model_validate(data).results
        except ValidationError as exc:
            raise ContentSourceError("Malformed Confluence content response") from exc

    async def fetch_pages(self, start: int, limit: int) -> List[Page]:
        cql = f'space="{self.space_key}" AND type="page" ORDER BY created'
        return await self.fetch_content(cql, start, limit)

    async def fetch_blog_posts(self, start: int, limit: int) -> List[Page]:
        cql = f'space="{self.space_key}" AND type="blogpost" ORDER BY id'
        return await self.fetch_content(cql, start, limit)

    async def fetch_content(self, cql: str, start: int, limit: int) -> List[Page]:
        """
        Fetch one batch of content matching a CQL query.

        Results without a storage body are dropped, so a non-empty response
        can still produce an empty batch.
        """
        params = {
            "cql": cql,
            "expand": CONTENT_EXPAND,
            "start": start,
            "limit": limit,
        }
        logger.debug("Fetching content: cql=%s start=%d limit=%d", cql, start, limit)
        results = await self._get_content(f"{self.base_url}/rest/api/content/search", params)

        pages: List[Page] = []
        for result in results:
            storage = result.storage_value()
            if storage is None:
                continue
            webui = result.links.webui if result.links and result.links.webui else ""
            pages.append(Page(
                id=result.id,
                title=result.title,
                content=clean_content(storage),
                url=self.base_url + webui,
                tags=result.label_names(),
            ))
        return pages

    async def fetch_attachments(self, content_id: str) -> List[Page]:
        url = f"{self.base_url}/rest/api/content/{content_id}/child/attachment"
        results = await self._get_content(url)

        attachments: List[Page] = []
        for result in results:
            download = result.links.download if result.links and result.links.download else ""
            attachments.append(Page(
                id=result.id,
                title=result.title,
                url=self.base_url + download,
                media_type=result.metadata.media_type if result.metadata else None,
            ))
        return attachments

    async def download_attachment(self, download_url: str) -> Optional[bytes]:
        """Return the attachment bytes, or None when the download fails."""
        try:
            async with self._client() as client:
                resp = await client.get(download_url)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Error downloading attachment %s: %s", download_url, exc)
            return None
        return resp.content
