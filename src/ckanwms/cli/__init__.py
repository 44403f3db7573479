"""CLI for ckanwms."""

from ckanwms.cli.main import app, main


__all__ = ["app", "main"]
