"""
Services module for external API integrations.

- openai_realtime_client: Creates realtime calls by exchanging an SDP offer and
  session configuration for an SDP answer.
"""

from realtime.services.openai_realtime_client import (
    OpenaiConfig,
    OpenaiRealtimeClient,
    OpenaiRealtimeService,
    RealtimeCallError,
    RealtimeClientError,
)

__all__ = [
    "OpenaiConfig",
    "OpenaiRealtimeClient",
    "OpenaiRealtimeService",
    "RealtimeCallError",
    "RealtimeClientError",
]
