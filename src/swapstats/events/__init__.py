"""Swap event sources -- PostHog HogQL integration."""

from swapstats.events.posthog import PostHogEventSource
from swapstats.events.source import EventSource

__all__ = ["EventSource", "PostHogEventSource"]
