"""
HTTP request executor for the CodyVerse API.
"""

from typing import Any, Dict, Iterable, Optional, Type, Union

import httpx

from shared.logging import correlation_context, get_logger
from ..caching import TTLCache, cache_key
from ..domain.envelope import ApiFailure, ApiSuccess, parse_envelope

JSON_HEADERS = {"Content-Type": "application/json"}


class RequestExecutor:
    """Issues API calls, serving and filling the GET cache.

    Every outcome is an envelope: transport and decode failures are turned
    into ``ApiFailure`` with code 500 instead of being raised. No retries,
    no de-duplication of concurrent identical requests, and no timeout
    unless one is configured.

    Any GET answered with a 2xx status is cached, including a
    ``success: false`` envelope. A cache hit returns the same envelope
    object every time, so callers must treat its ``data`` as read-only.
    """

    def __init__(
        self,
        base_url: str,
        cache: TTLCache,
        *,
        timeout: Optional[float] = None,
        default_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.cache = cache
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})
        self.transport = transport
        self.logger = get_logger("client.request_executor")

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        data_model: Optional[Type[Any]] = None,
        cache_tags: Iterable[str] = (),
    ) -> Union[ApiSuccess[Any], ApiFailure]:
        """Execute a request and return its envelope."""
        method = method.upper()
        with correlation_context() as request_id:
            logger = self.logger.bind(request_id=request_id, method=method, endpoint=endpoint)
            return await self._request(logger, endpoint, method, json, headers, data_model, cache_tags)

    async def _request(
        self,
        logger: Any,
        endpoint: str,
        method: str,
        json: Optional[Any],
        headers: Optional[Dict[str, str]],
        data_model: Optional[Type[Any]],
        cache_tags: Iterable[str],
    ) -> Union[ApiSuccess[Any], ApiFailure]:
        key = cache_key(method, endpoint)
        cacheable = method == "GET"

        if cacheable:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Serving response from cache", key=key)
                return cached.data

        url = f"{self.base_url}{endpoint}"
        request_headers = {**JSON_HEADERS, **self.default_headers, **(headers or {})}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, headers=request_headers, json=json)
            body = response.json()
        except Exception as exc:
            logger.error("API request failed", url=url, error=str(exc), error_type=type(exc).__name__)
            return ApiFailure.from_exception(exc)

        envelope = parse_envelope(body, response.status_code, data_model)

        if not envelope.success:
            logger.warning(
                "API returned failure envelope",
                url=url,
                status_code=response.status_code,
                error=envelope.error,
                code=envelope.code,
            )

        if cacheable and response.is_success:
            self.cache.set(key, envelope, tags=cache_tags)
            logger.debug("Cached response", key=key, ttl=self.cache.default_ttl)

        return envelope
