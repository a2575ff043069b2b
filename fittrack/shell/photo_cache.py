"""Photo Resolver - Downloads progress photos into a local file cache.

Each photo id is fetched at most once at a time: a fetch starts only when
the id is neither cached nor in flight, and the in-flight flag is cleared
whether the download succeeds or fails.
"""

import asyncio
import logging
import re
from pathlib import Path

import httpx

from ..core.models import PhotoCacheEntry
from ..core.state import (
    PhotoFetchFailed,
    PhotoFetchStarted,
    PhotoFetchSucceeded,
    TrackingState,
    reduce,
    should_fetch_photo,
)


logger = logging.getLogger(__name__)

# Ids end up in file names and URL paths
PHOTO_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class PhotoUriResolver:
    """Resolve photo ids to local file URIs."""

    def __init__(
        self,
        base_url: str,
        cache_dir: Path,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache_dir = Path(cache_dir)
        self._token = token
        self._transport = transport
        self._timeout = timeout
        self.state = TrackingState()

    def local_path(self, photo_id: str | int) -> Path:
        """Cache file for a photo id.

        Raises:
            ValueError: If the id is not a plain token
        """
        if not PHOTO_ID_PATTERN.fullmatch(str(photo_id)):
            raise ValueError(f"Unsafe photo id: {photo_id!r}")
        return self.cache_dir / f"photo_{photo_id}.jpg"

    def cached(self, photo_id: str | int) -> PhotoCacheEntry | None:
        return self.state.photo_cache.get(str(photo_id))

    async def fetch(self, photo_id: str | int) -> PhotoCacheEntry | None:
        """Resolve one photo, reusing an on-disk copy when present.

        Returns:
            The cache entry, or None if another fetch is already running
        """
        if not should_fetch_photo(self.state, photo_id):
            return self.cached(photo_id)

        try:
            path = self.local_path(photo_id)
        except ValueError as e:
            logger.warning("Refusing to fetch photo: %s", str(e))
            self.state = reduce(self.state, PhotoFetchFailed(photo_id=photo_id))
            return self.cached(photo_id)

        self.state = reduce(self.state, PhotoFetchStarted(photo_id=photo_id))
        try:
            if path.exists():
                self.state = reduce(
                    self.state, PhotoFetchSucceeded(photo_id=photo_id, local_uri=path.as_uri())
                )
                return self.cached(photo_id)

            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self.base_url}/api/tracking/photos/{photo_id}", headers=headers
                )
            if response.status_code != 200:
                raise httpx.HTTPStatusError(
                    f"Server returned {response.status_code}",
                    request=response.request,
                    response=response,
                )

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(response.content)
            self.state = reduce(
                self.state, PhotoFetchSucceeded(photo_id=photo_id, local_uri=path.as_uri())
            )
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Photo %s could not be fetched: %s", photo_id, str(e))
            self.state = reduce(self.state, PhotoFetchFailed(photo_id=photo_id))
        finally:
            # in-flight never outlives the fetch
            if str(photo_id) in self.state.photos_in_flight:
                self.state = self.state.model_copy(
                    update={"photos_in_flight": self.state.photos_in_flight - {str(photo_id)}}
                )
        return self.cached(photo_id)

    async def prefetch(self, photo_ids: list[str | int]) -> dict[str, PhotoCacheEntry | None]:
        """Resolve several photos concurrently."""
        results = await asyncio.gather(*(self.fetch(pid) for pid in photo_ids))
        return {str(pid): entry for pid, entry in zip(photo_ids, results)}
