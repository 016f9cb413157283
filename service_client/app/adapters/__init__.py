"""
Adapters package for the API client.

Contains the HTTP transport wrapper for the CodyVerse REST API. The adapter
encapsulates:

- Base URL and default request headers
- GET response caching
- Mapping of transport failures onto failure envelopes

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .request_executor import RequestExecutor

__all__ = ["RequestExecutor"]
