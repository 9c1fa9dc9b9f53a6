"""
Models module for the realtime package.

Key components:
- set: Generic Set container with membership, add/remove reporting prior
  presence, snapshotting and lazy iteration.
- session_schemas: Pydantic models for the session configuration sent along
  with the WebRTC offer.
"""

from realtime.models.session_schemas import (
    AudioConfig,
    AudioInputConfig,
    AudioOutputConfig,
    AudioPCMFormat,
    AudioTranscription,
    NoiseReduction,
    RealtimeSessionCreateRequest,
    SemanticVad,
    ServerVad,
    default_session_request,
)
from realtime.models.set import Set

__all__ = [
    "AudioConfig",
    "AudioInputConfig",
    "AudioOutputConfig",
    "AudioPCMFormat",
    "AudioTranscription",
    "NoiseReduction",
    "RealtimeSessionCreateRequest",
    "SemanticVad",
    "ServerVad",
    "Set",
    "default_session_request",
]
