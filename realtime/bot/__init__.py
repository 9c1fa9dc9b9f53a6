"""
Bot module for realtime audio sessions over WebRTC.

Key components:
- RealtimeWebRTCSession: Owns the peer connection, the ``oai-events`` data
  channel and the audio transceiver for one call.
- MicrophoneStreamTrack / SpeakerPlayer: Local audio capture and playback.

Usage example:
```python
from realtime.bot import RealtimeWebRTCSession

session = RealtimeWebRTCSession(logger, client, default_session_request())
await session.open()
await session.run_until_closed(stop_event)
```
"""

from realtime.bot.audio_tracks import MicrophoneStreamTrack, SpeakerPlayer
from realtime.bot.webrtc_session import RealtimeWebRTCSession

__all__ = ["MicrophoneStreamTrack", "RealtimeWebRTCSession", "SpeakerPlayer"]
