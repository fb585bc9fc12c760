from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Iterable, Optional
from urllib.parse import urlparse
import logging

import httpx
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

from .. import config
from .warning_sink import WarningSink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedImage:
    reader: ImageReader
    width: int
    height: int


ImageCache = Dict[str, Optional[LoadedImage]]


def _decode(content: bytes) -> LoadedImage:
    image = Image.open(BytesIO(content))
    image.load()
    if image.mode not in ("RGB", "RGBA", "L"):
        image = image.convert("RGBA")
    return LoadedImage(reader=ImageReader(image), width=image.width, height=image.height)


def _fetch_one(client: httpx.Client, url: str, warnings: WarningSink) -> Optional[LoadedImage]:
    context = {"url": url}
    try:
        resp = client.get(url)
        resp.raise_for_status()
    except httpx.TimeoutException:
        warnings.add("image", "image fetch timed out", context)
        return None
    except httpx.HTTPStatusError as exc:
        warnings.add("image", "image fetch failed", {**context, "status": exc.response.status_code})
        return None
    except httpx.HTTPError as exc:
        warnings.add("image", "image fetch failed", {**context, "error": type(exc).__name__})
        return None

    content_type = resp.headers.get("content-type", "")
    if not content_type.lower().startswith("image/"):
        warnings.add("image", "unexpected content type for image", {**context, "contentType": content_type})
        return None

    try:
        loaded = _decode(resp.content)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        warnings.add("image", "image could not be decoded", {**context, "error": str(exc)})
        return None
    logger.debug("Fetched image %s (%sx%s)", url, loaded.width, loaded.height)
    return loaded


def prefetch_images(
    urls: Iterable[str],
    warnings: WarningSink,
    timeout: float = config.IMAGE_FETCH_TIMEOUT,
) -> ImageCache:
    """Fetch every distinct URL once. Failures are cached as None."""
    cache: ImageCache = {}
    fetchable = []
    for url in dict.fromkeys(u.strip() for u in urls if u and u.strip()):
        scheme = urlparse(url).scheme.lower()
        if scheme not in ("http", "https"):
            warnings.add("image", "unsupported image url scheme", {"url": url, "scheme": scheme or "-"})
            cache[url] = None
            continue
        fetchable.append(url)

    if not fetchable:
        return cache

    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        for url in fetchable:
            cache[url] = _fetch_one(client, url, warnings)
    return cache
