"""
HTTP layer: connectivity checks and bug report delivery.
"""

from proxy_control.api.http_client import AsyncHttpClient

__all__ = ["AsyncHttpClient"]
