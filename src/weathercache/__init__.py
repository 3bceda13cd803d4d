"""
weathercache - Cache-aside forecast fetcher.

Serves weather forecasts from a keyed cache, retries upstream rate limits
with exponential backoff and falls back to stale data when the upstream
keeps throttling.
"""

__version__ = "0.1.0"
__app_name__ = "weathercache"
