import httpx

from toddler_ai.config import ImageSearchConfig
from toddler_ai.exceptions import ImageResolutionError


class PixabayClient:
    """Thin async client for the Pixabay image search API.

    Only returns the ``webformatURL`` of each hit, in Pixabay's ranking
    order. Any transport failure or non-2xx status becomes an
    ``ImageResolutionError``.
    """

    def __init__(
        self,
        config: ImageSearchConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def search(self, query: str, *, category: str | None = None) -> list[str]:
        params: dict = {
            "key": self._config.api_key,
            "q": query,
            "image_type": self._config.image_type,
            "safesearch": "true",
            "min_width": self._config.min_width,
            "per_page": self._config.per_page,
        }
        if category:
            params["category"] = category

        try:
            resp = await self._http.get(self._config.base_url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ImageResolutionError(f"Pixabay search failed for {query!r}", e) from e

        return _hit_urls(data, query)

    async def aclose(self) -> None:
        await self._http.aclose()


def _hit_urls(data, query: str) -> list[str]:
    """Pull ``webformatURL`` out of a search body, rejecting any other shape."""
    if not isinstance(data, dict):
        raise ImageResolutionError(f"Unexpected Pixabay response for {query!r}")
    hits = data.get("hits") or []
    if not isinstance(hits, list):
        raise ImageResolutionError(f"Unexpected Pixabay hits for {query!r}")

    urls = []
    for hit in hits:
        if not isinstance(hit, dict):
            raise ImageResolutionError(f"Unexpected Pixabay hit for {query!r}")
        url = hit.get("webformatURL")
        if url is None or url == "":
            continue
        if not isinstance(url, str):
            raise ImageResolutionError(f"Unexpected Pixabay hit for {query!r}")
        urls.append(url)
    return urls
