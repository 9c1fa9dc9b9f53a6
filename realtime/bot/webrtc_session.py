"""
WebRTC session with the OpenAI Realtime API.

RealtimeWebRTCSession owns the peer connection for one realtime call:

- an ``oai-events`` data channel carrying JSON client and server events
- a sendrecv audio transceiver fed by the microphone, Opus preferred
- a speaker player for the model's audio track

Opening the session creates the SDP offer, exchanges it through the
OpenAI realtime client and applies the answer. aiortc gathers all ICE
candidates during setLocalDescription, so the offer sent to the API is
complete and no trickle ICE is needed.
"""

import asyncio
import json
from typing import Any, Callable, Dict, Optional

from aiortc import RTCPeerConnection, RTCRtpSender, RTCSessionDescription

from realtime.bot.audio_tracks import MicrophoneStreamTrack, SpeakerPlayer
from realtime.config.constants import DATA_CHANNEL_LABEL, OPUS_CLOCK_RATE, OPUS_MIME_TYPE
from realtime.config.logging_config import FieldLogger
from realtime.models.session_schemas import RealtimeSessionCreateRequest
from realtime.models.set import Set
from realtime.services.openai_realtime_client import OpenaiRealtimeClient

CLOSED_STATES = ("failed", "closed")


def prefer_opus(transceiver) -> bool:
    """Restrict the transceiver's codecs to Opus. Returns False if Opus is unavailable."""
    capabilities = RTCRtpSender.getCapabilities("audio")
    opus = [
        c for c in capabilities.codecs
        if c.mimeType.lower() == OPUS_MIME_TYPE and c.clockRate == OPUS_CLOCK_RATE
    ]
    if not opus:
        return False
    transceiver.setCodecPreferences(opus)
    return True


class RealtimeWebRTCSession:
    """A realtime audio call over a single peer connection."""

    def __init__(
        self,
        logger: FieldLogger,
        client: OpenaiRealtimeClient,
        session: RealtimeSessionCreateRequest,
        microphone_factory: Callable[[], Any] = MicrophoneStreamTrack,
        speaker_factory: Callable[[Any], Any] = SpeakerPlayer,
    ):
        self.logger = logger
        self.client = client
        self.session = session
        self._microphone_factory = microphone_factory
        self._speaker_factory = speaker_factory

        self.pc: Optional[RTCPeerConnection] = None
        self.dc = None
        self.microphone = None
        self.speaker = None
        self.event_types: Set[str] = Set()
        self.closed = asyncio.Event()
        self._is_closing = False

    async def open(self):
        """
        Create the peer connection, exchange the offer and apply the answer.

        Any failure closes the session before the error is re-raised.

        Raises:
            RealtimeCallError: If the API rejects the offer
        """
        self.pc = RTCPeerConnection()
        self.pc.on("connectionstatechange", self._on_connectionstatechange)
        self.pc.on("track", self._on_track)
        self.pc.on("datachannel", self._on_datachannel)

        try:
            self.dc = self.pc.createDataChannel(DATA_CHANNEL_LABEL)
            self._watch_data_channel(self.dc)

            self.microphone = self._microphone_factory()
            transceiver = self.pc.addTransceiver(self.microphone, direction="sendrecv")
            if not prefer_opus(transceiver):
                self.logger.warning("Opus codec not available, using default codec order")

            offer = await self.pc.createOffer()
            await self.pc.setLocalDescription(offer)
            self.logger.debug(f"Offer SDP: {self.pc.localDescription.sdp}")

            answer_sdp = await self.client.acreate_call(self.pc.localDescription.sdp, self.session)
            await self.pc.setRemoteDescription(RTCSessionDescription(sdp=answer_sdp, type="answer"))
        except Exception:
            await self.close()
            raise

        self.logger.info("Remote description set, waiting for media")

    def _watch_data_channel(self, channel):
        label = channel.label

        def on_open():
            self.logger.info("Data channel opened", fields={"label": label})

        def on_message(message):
            self.handle_message(label, message)

        channel.on("open", on_open)
        channel.on("message", on_message)

    def _on_datachannel(self, channel):
        self.logger.info("Remote data channel opened", fields={"label": channel.label})
        self._watch_data_channel(channel)

    async def _on_track(self, track):
        self.logger.info(f"Received {track.kind} track")
        if track.kind != "audio":
            return
        if self.speaker:
            await self.speaker.stop()
        self.speaker = self._speaker_factory(track)
        await self.speaker.start()

    async def _on_connectionstatechange(self):
        state = self.pc.connectionState
        self.logger.info("Connection state changed", fields={"state": state})
        if state in CLOSED_STATES:
            self.closed.set()

    def handle_message(self, label: str, message) -> Optional[Dict[str, Any]]:
        """
        Parse a server event and record its type.

        Returns:
            The parsed event, or None if the message was not a JSON object
            with a string type
        """
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        try:
            event = json.loads(message)
        except json.JSONDecodeError:
            self.logger.warning("Malformed message on data channel", fields={"label": label})
            return None
        if not isinstance(event, dict):
            self.logger.warning("Unexpected message on data channel", fields={"label": label})
            return None

        event_type = event.get("type", "unknown")
        if not isinstance(event_type, str):
            self.logger.warning("Event type is not a string", fields={"label": label})
            return None
        if not self.event_types.add(event_type):
            self.logger.info("First event of type received", fields={"type": event_type})
        if event_type == "error":
            self.logger.warning(f"Server error event: {event.get('error')}")
        else:
            self.logger.trace("Event received", fields={"label": label, "type": event_type})
        return event

    def send_event(self, event: Dict[str, Any]):
        """Send a client event over the data channel."""
        if self.dc is None or self.dc.readyState != "open":
            raise RuntimeError("data channel is not open")
        self.dc.send(json.dumps(event))

    async def run_until_closed(self, stop_event: asyncio.Event):
        """Wait until ``stop_event`` is set or the connection drops, then close."""
        waiters = [
            asyncio.create_task(stop_event.wait()),
            asyncio.create_task(self.closed.wait()),
        ]
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
            await self.close()

    async def close(self):
        """Stop audio, close the peer connection and report the events seen."""
        if self._is_closing:
            return
        self._is_closing = True
        self.logger.info("Closing realtime session")

        if self.speaker:
            await self.speaker.stop()
        if self.microphone:
            self.microphone.stop()
        if self.pc:
            await self.pc.close()

        self.logger.info(
            "Realtime session closed",
            fields={"event_type_count": self.event_types.size(), "event_types": str(self.event_types)},
        )
        self.closed.set()
