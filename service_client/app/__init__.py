"""
CodyVerse API client package.

The client mediates all access to the learning-platform REST API:
- Typed façade: one coroutine per API operation, resolving to envelopes
- Request execution: httpx transport with failure normalization
- Caching: short-lived GET response cache with targeted invalidation

Structure:
- app.api_service: ApiService façade.
- app.adapters: HTTP request executor.
- app.caching: TTL cache.
- app.domain: Envelopes, typed payloads and call-state tracking.
"""

from .api_service import ApiService

__all__ = ["ApiService"]
