"""HTTP adapters."""

from ckanwms.adapters.http.requests_client import RequestsHttpClient


__all__ = ["RequestsHttpClient"]
