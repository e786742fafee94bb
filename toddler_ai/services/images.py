import logging
import random

from toddler_ai.clients import PixabayClient
from toddler_ai.config import ImageSearchConfig
from toddler_ai.exceptions import ImageResolutionError
from toddler_ai.services.keywords import extract_keywords

logger = logging.getLogger(__name__)

QUALIFIER_TERMS = "children cartoon illustration educational"
GENERIC_QUERY = "learning education children cartoon"
TOP_N = 5
FALLBACK_IMAGE_URL = "https://via.placeholder.com/400x300/FF6B6B/FFFFFF?text=Learning+Fun"


class ImageResolver:
    """Find a cartoon illustration for a question.

    Three tiers, each broader than the last:

    1. Keywords + qualifier terms, restricted to the configured category.
       A random pick among the top ``TOP_N`` hits, for variety.
    2. A generic children's-education query with no category; first hit.
    3. ``FALLBACK_IMAGE_URL``.

    ``resolve`` never raises: search failures fall straight through to tier 3.
    """

    def __init__(
        self,
        config: ImageSearchConfig,
        pixabay: PixabayClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.pixabay = pixabay or PixabayClient(config)
        self.rng = rng or random.Random()

    async def resolve(self, question: str) -> str:
        try:
            return await self._search(question)
        except ImageResolutionError as e:
            logger.warning(
                "Image search failed, using placeholder",
                extra={"error": str(e), "cause": repr(e.cause)},
            )
            return FALLBACK_IMAGE_URL

    async def _search(self, question: str) -> str:
        query = f"{extract_keywords(question)} {QUALIFIER_TERMS}"
        urls = await self.pixabay.search(query, category=self.config.category)
        if urls:
            return self.rng.choice(urls[:TOP_N])

        logger.info("No tier-1 image hits, broadening search", extra={"query": query})
        urls = await self.pixabay.search(GENERIC_QUERY)
        if urls:
            return urls[0]

        logger.info("No image hits at all, using placeholder")
        return FALLBACK_IMAGE_URL
