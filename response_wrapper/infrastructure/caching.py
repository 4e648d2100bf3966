"""
HTTP caching metadata: ETags and cache keys.

ETagEnricher fingerprints the data of successful GET envelopes and
compares it with ``If-None-Match``; CacheMetadataProvider reports the
outcome under the ``cache`` namespace. There is no cache backend
here: a caching layer in front of the application can use the
``ETag`` header and the ``cache_key`` context item.
"""

import hashlib
import json
import logging
from typing import Any
from urllib.parse import urlencode

from fastapi.encoders import jsonable_encoder

from response_wrapper.domain.context import RequestContext
from response_wrapper.domain.models import Envelope
from response_wrapper.domain.ports import MetadataProvider, ResponseEnricher

logger = logging.getLogger(__name__)

CACHE_KEY_ITEM = "cache_key"
CACHE_HIT_ITEM = "cache_hit"
DEFAULT_KEY_PREFIX = "rw:"
MAX_KEY_LENGTH = 250


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def generate_cache_key(context: RequestContext, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Build a cache key from method, path, sorted query and user.

    Keys longer than MAX_KEY_LENGTH are replaced by their hash.
    """
    key = f"{prefix}{context.method}:{context.path}"
    if context.query_params:
        key += "?" + urlencode(sorted(context.query_params.items()))
    if context.user_name:
        key += f":user:{context.user_name}"
    if len(key) > MAX_KEY_LENGTH:
        return prefix + _sha256(key)
    return key


def generate_etag(data: Any) -> str | None:
    """Return a strong ETag for the JSON form of ``data``, or None for no data."""
    if data is None:
        return None
    canonical = json.dumps(
        jsonable_encoder(data), sort_keys=True, separators=(",", ":"), default=str
    )
    return f'"{_sha256(canonical)}"'


class ETagEnricher(ResponseEnricher):
    """Sets the ``ETag`` header on successful GET envelopes.

    Also records the request's cache key and whether the client's
    ``If-None-Match`` already matches, for CacheMetadataProvider.

    Args:
        key_prefix: Prefix for generated cache keys.
    """

    order = 50

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.key_prefix = key_prefix

    async def enrich(self, envelope: Envelope, context: RequestContext) -> None:
        if context.method != "GET" or not envelope.success:
            return
        etag = generate_etag(envelope.data)
        if etag is None:
            return

        context.response_headers["ETag"] = etag
        context.items[CACHE_KEY_ITEM] = generate_cache_key(context, self.key_prefix)
        context.items[CACHE_HIT_ITEM] = context.header("If-None-Match") == etag
        logger.debug(
            "ETag %s for request %s (hit=%s)",
            etag,
            context.request_id,
            context.items[CACHE_HIT_ITEM],
        )


class CacheMetadataProvider(MetadataProvider):
    """Reports cache information as ``cache_*`` metadata.

    Contributes nothing unless a cache key was recorded for the request.

    Args:
        ttl_seconds: Freshness lifetime to advertise, if any.
    """

    name = "cache"

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds

    async def get_metadata(self, context: RequestContext) -> dict[str, Any] | None:
        key = context.items.get(CACHE_KEY_ITEM)
        if key is None:
            return None
        metadata: dict[str, Any] = {
            "hit": bool(context.items.get(CACHE_HIT_ITEM)),
            "key": key,
        }
        if self.ttl_seconds is not None:
            metadata["ttl_seconds"] = self.ttl_seconds
        etag = context.response_headers.get("ETag")
        if etag:
            metadata["etag"] = etag
        return metadata
