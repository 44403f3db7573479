"""Proxy adapters."""

from ckanwms.adapters.proxy.cors_proxy import CorsProxy


__all__ = ["CorsProxy"]
