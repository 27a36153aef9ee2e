"""Clients for external services."""

from .youtube_client import YouTubeClient

__all__ = ["YouTubeClient"]
