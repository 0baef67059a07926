"""
Calendar event sources.
"""

from .source import EventSource, FileEventSource

__all__ = ["EventSource", "FileEventSource"]
