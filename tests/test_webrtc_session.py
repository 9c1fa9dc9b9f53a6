"""
Unit tests for the realtime WebRTC session.

The peer connection, the realtime client and the local audio devices are
mocked; these tests cover the offer/answer sequence, data channel event
handling and the session lifecycle.
"""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from realtime.bot.webrtc_session import RealtimeWebRTCSession, prefer_opus
from realtime.config.logging_config import FieldLogger
from realtime.models.session_schemas import default_session_request
from realtime.services.openai_realtime_client import RealtimeCallError

OFFER_SDP = "v=0\r\no=- 0 0 IN IP4 127.0.0.1\r\n"
ANSWER_SDP = "v=0\r\no=- 1 1 IN IP4 10.0.0.1\r\n"


@pytest.fixture
def logger():
    return FieldLogger(logging.getLogger("realtime.tests"), package="realtime", example="test")


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.acreate_call = AsyncMock(return_value=ANSWER_SDP)
    return client


@pytest.fixture
def microphone():
    return MagicMock()


@pytest.fixture
def speaker_factory():
    speaker = MagicMock()
    speaker.start = AsyncMock()
    speaker.stop = AsyncMock()
    return MagicMock(return_value=speaker)


@pytest.fixture
def session(logger, mock_client, microphone, speaker_factory):
    return RealtimeWebRTCSession(
        logger,
        mock_client,
        default_session_request(),
        microphone_factory=lambda: microphone,
        speaker_factory=speaker_factory,
    )


@pytest.fixture
def mock_pc():
    with patch("realtime.bot.webrtc_session.RTCPeerConnection") as mock_pc_class:
        pc = mock_pc_class.return_value
        pc.createOffer = AsyncMock(return_value=MagicMock())
        pc.setLocalDescription = AsyncMock()
        pc.setRemoteDescription = AsyncMock()
        pc.close = AsyncMock()
        pc.on = MagicMock()
        pc.localDescription = MagicMock()
        pc.localDescription.sdp = OFFER_SDP

        channel = MagicMock()
        channel.label = "oai-events"
        channel.readyState = "open"
        pc.createDataChannel = MagicMock(return_value=channel)
        pc.addTransceiver = MagicMock(return_value=MagicMock())

        with patch("realtime.bot.webrtc_session.prefer_opus", return_value=True):
            yield pc


def registered_handlers(mock):
    """Map event name to handler for calls like obj.on(name, handler)"""
    return {call.args[0]: call.args[1] for call in mock.on.call_args_list}


class TestOpen:
    @pytest.mark.asyncio
    async def test_offer_answer_exchange(self, session, mock_pc, mock_client, microphone):
        await session.open()

        mock_pc.createDataChannel.assert_called_once_with("oai-events")
        mock_pc.addTransceiver.assert_called_once_with(microphone, direction="sendrecv")
        mock_pc.createOffer.assert_called_once()
        mock_pc.setLocalDescription.assert_called_once_with(mock_pc.createOffer.return_value)
        mock_client.acreate_call.assert_called_once_with(OFFER_SDP, session.session)

        mock_pc.setRemoteDescription.assert_called_once()
        answer = mock_pc.setRemoteDescription.call_args.args[0]
        assert answer.sdp == ANSWER_SDP
        assert answer.type == "answer"

    @pytest.mark.asyncio
    async def test_registers_handlers(self, session, mock_pc):
        await session.open()

        assert set(registered_handlers(mock_pc)) == {"connectionstatechange", "track", "datachannel"}
        channel_handlers = registered_handlers(session.dc)
        assert set(channel_handlers) == {"open", "message"}

    @pytest.mark.asyncio
    async def test_rejected_offer_closes_session(self, session, mock_pc, mock_client, microphone):
        mock_client.acreate_call.side_effect = RealtimeCallError("rejected", status_code=400)

        with pytest.raises(RealtimeCallError):
            await session.open()

        mock_pc.setRemoteDescription.assert_not_called()
        microphone.stop.assert_called_once()
        mock_pc.close.assert_called_once()
        assert session.closed.is_set()

    @pytest.mark.asyncio
    async def test_bad_answer_closes_session(self, session, mock_pc, microphone):
        mock_pc.setRemoteDescription.side_effect = ValueError("bad sdp")

        with pytest.raises(ValueError, match="bad sdp"):
            await session.open()

        microphone.stop.assert_called_once()
        mock_pc.close.assert_called_once()
        assert session.closed.is_set()

    @pytest.mark.asyncio
    async def test_failed_offer_closes_session(self, session, mock_pc, mock_client, microphone):
        mock_pc.createOffer.side_effect = RuntimeError("no transceivers")

        with pytest.raises(RuntimeError):
            await session.open()

        mock_client.acreate_call.assert_not_called()
        microphone.stop.assert_called_once()
        mock_pc.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_message_handler_records_event_types(self, session, mock_pc):
        await session.open()

        on_message = registered_handlers(session.dc)["message"]
        on_message(json.dumps({"type": "session.created"}))
        on_message(json.dumps({"type": "session.created"}))
        on_message(json.dumps({"type": "response.done"}))

        assert sorted(session.event_types.to_list()) == ["response.done", "session.created"]


class TestHandlers:
    @pytest.mark.asyncio
    async def test_audio_track_starts_speaker(self, session, speaker_factory):
        track = MagicMock()
        track.kind = "audio"

        await session._on_track(track)

        speaker_factory.assert_called_once_with(track)
        speaker_factory.return_value.start.assert_called_once()
        assert session.speaker is speaker_factory.return_value

    @pytest.mark.asyncio
    async def test_second_audio_track_replaces_speaker(self, session, speaker_factory):
        first, second = MagicMock(), MagicMock()
        for speaker in (first, second):
            speaker.start = AsyncMock()
            speaker.stop = AsyncMock()
        speaker_factory.side_effect = [first, second]
        track = MagicMock()
        track.kind = "audio"

        await session._on_track(track)
        await session._on_track(track)

        first.stop.assert_called_once()
        second.start.assert_called_once()
        second.stop.assert_not_called()
        assert session.speaker is second

    @pytest.mark.asyncio
    async def test_video_track_ignored(self, session, speaker_factory):
        track = MagicMock()
        track.kind = "video"

        await session._on_track(track)

        speaker_factory.assert_not_called()
        assert session.speaker is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state, closed", [("connected", False), ("failed", True), ("closed", True)])
    async def test_connection_state(self, session, state, closed):
        session.pc = MagicMock()
        session.pc.connectionState = state

        await session._on_connectionstatechange()

        assert session.closed.is_set() is closed

    def test_remote_data_channel_is_watched(self, session):
        channel = MagicMock()
        channel.label = "remote"

        session._on_datachannel(channel)

        assert set(registered_handlers(channel)) == {"open", "message"}


class TestHandleMessage:
    def test_parses_event(self, session):
        event = session.handle_message("oai-events", '{"type": "session.created", "session": {}}')
        assert event == {"type": "session.created", "session": {}}
        assert session.event_types.contains("session.created")

    def test_bytes_message(self, session):
        event = session.handle_message("oai-events", b'{"type": "response.done"}')
        assert event["type"] == "response.done"

    def test_malformed_json_is_skipped(self, session):
        assert session.handle_message("oai-events", "{not json") is None
        assert session.event_types.size() == 0

    def test_non_object_is_skipped(self, session):
        assert session.handle_message("oai-events", "[1, 2]") is None
        assert session.event_types.size() == 0

    @pytest.mark.parametrize("event_type", [["a"], {"name": "x"}, 3, None])
    def test_non_string_type_is_skipped(self, session, event_type):
        message = json.dumps({"type": event_type})
        assert session.handle_message("oai-events", message) is None
        assert session.event_types.size() == 0

    def test_missing_type(self, session):
        session.handle_message("oai-events", "{}")
        assert session.event_types.contains("unknown")

    def test_error_event(self, session):
        event = session.handle_message(
            "oai-events", json.dumps({"type": "error", "error": {"message": "bad"}})
        )
        assert event["error"] == {"message": "bad"}
        assert session.event_types.contains("error")


class TestSendEvent:
    def test_send_when_open(self, session):
        session.dc = MagicMock()
        session.dc.readyState = "open"

        session.send_event({"type": "response.create"})

        session.dc.send.assert_called_once_with('{"type": "response.create"}')

    def test_send_when_not_open(self, session):
        session.dc = MagicMock()
        session.dc.readyState = "connecting"

        with pytest.raises(RuntimeError, match="data channel is not open"):
            session.send_event({"type": "response.create"})

    def test_send_before_open(self, session):
        with pytest.raises(RuntimeError):
            session.send_event({"type": "response.create"})


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_releases_everything_once(self, session, mock_pc, microphone, speaker_factory):
        await session.open()
        track = MagicMock()
        track.kind = "audio"
        await session._on_track(track)

        await session.close()
        await session.close()

        speaker_factory.return_value.stop.assert_called_once()
        microphone.stop.assert_called_once()
        mock_pc.close.assert_called_once()
        assert session.closed.is_set()

    @pytest.mark.asyncio
    async def test_run_until_stop_event(self, session, mock_pc):
        await session.open()
        stop_event = asyncio.Event()

        runner = asyncio.create_task(session.run_until_closed(stop_event))
        await asyncio.sleep(0)
        assert not runner.done()

        stop_event.set()
        await asyncio.wait_for(runner, timeout=1)
        mock_pc.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_run_until_connection_drops(self, session, mock_pc):
        await session.open()
        session.pc.connectionState = "failed"

        runner = asyncio.create_task(session.run_until_closed(asyncio.Event()))
        await session._on_connectionstatechange()
        await asyncio.wait_for(runner, timeout=1)

        mock_pc.close.assert_called_once()


class TestPreferOpus:
    def test_restricts_to_opus(self):
        transceiver = MagicMock()

        assert prefer_opus(transceiver) is True

        codecs = transceiver.setCodecPreferences.call_args.args[0]
        assert codecs
        assert all(codec.mimeType.lower() == "audio/opus" for codec in codecs)

    def test_no_opus_available(self):
        transceiver = MagicMock()
        capabilities = MagicMock()
        capabilities.codecs = []
        with patch("realtime.bot.webrtc_session.RTCRtpSender.getCapabilities", return_value=capabilities):
            assert prefer_opus(transceiver) is False
        transceiver.setCodecPreferences.assert_not_called()
