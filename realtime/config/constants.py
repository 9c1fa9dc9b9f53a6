"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "realtime"

# OpenAI Realtime API
DEFAULT_BASE_URL = "https://api.openai.com/v1"
REALTIME_CALLS_PATH = "/realtime/calls"
DEFAULT_REALTIME_MODEL = "gpt-realtime"
DATA_CHANNEL_LABEL = "oai-events"

# Session audio format (what the model consumes and produces)
SESSION_AUDIO_FORMAT = "audio/pcm"
SESSION_SAMPLE_RATE = 24000

# Local audio device parameters
SAMPLE_RATE = 48000
CHANNELS = 1
FRAME_SAMPLES = 960  # 20ms at 48kHz

# Opus codec used on the WebRTC audio transceiver
OPUS_MIME_TYPE = "audio/opus"
OPUS_CLOCK_RATE = 48000
