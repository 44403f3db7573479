"""Error reporting adapters."""

from ckanwms.adapters.reporting.rich_reporter import RichErrorReporter


__all__ = ["RichErrorReporter"]
