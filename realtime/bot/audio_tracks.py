"""
Local audio I/O for the WebRTC session.

MicrophoneStreamTrack captures 20ms PCM frames from the default input device
and feeds them to aiortc, which encodes them with Opus. SpeakerPlayer pulls
decoded frames from the remote track and plays them on the default output
device.
"""

import asyncio
import fractions
import logging
import threading
from typing import Optional

import av
import numpy as np
import pyaudio
from aiortc import MediaStreamTrack
from aiortc.mediastreams import MediaStreamError

from realtime.config.constants import CHANNELS, FRAME_SAMPLES, LOGGER_NAME, SAMPLE_RATE

logger = logging.getLogger(LOGGER_NAME)

FORMAT = pyaudio.paInt16
LAYOUT = "mono" if CHANNELS == 1 else "stereo"


class MicrophoneStreamTrack(MediaStreamTrack):
    """MediaStreamTrack that captures audio from the microphone."""

    kind = "audio"

    def __init__(self, frames_per_buffer: int = FRAME_SAMPLES):
        super().__init__()
        self.frames_per_buffer = frames_per_buffer
        self.p = pyaudio.PyAudio()
        self.stream = self.p.open(
            format=FORMAT,
            channels=CHANNELS,
            rate=SAMPLE_RATE,
            input=True,
            frames_per_buffer=frames_per_buffer,
        )
        self.timestamp = 0
        self._stopped = False
        # Held by the executor thread for the duration of a read
        self._stream_lock = threading.Lock()
        logger.info(f"Microphone initialized: {SAMPLE_RATE}Hz, {CHANNELS} channel(s)")

    def _read(self) -> Optional[bytes]:
        with self._stream_lock:
            if self._stopped:
                return None
            return self.stream.read(self.frames_per_buffer, exception_on_overflow=False)

    async def recv(self):
        """Read one buffer from the microphone and return it as an audio frame."""
        if self._stopped:
            raise MediaStreamError
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self._read)
        if data is None:
            raise MediaStreamError

        frame = av.AudioFrame.from_ndarray(
            np.frombuffer(data, np.int16).reshape(1, -1),
            format="s16",
            layout=LAYOUT,
        )
        frame.sample_rate = SAMPLE_RATE
        frame.pts = self.timestamp
        frame.time_base = fractions.Fraction(1, SAMPLE_RATE)
        self.timestamp += self.frames_per_buffer
        return frame

    def stop(self):
        """Stop the microphone stream, waiting for an in-flight read to return first."""
        super().stop()
        if self._stopped:
            return
        self._stopped = True
        with self._stream_lock:
            if self.stream:
                self.stream.stop_stream()
                self.stream.close()
            if self.p:
                self.p.terminate()
        logger.info("Microphone stopped")


class SpeakerPlayer:
    """Plays a remote audio track on the default output device."""

    def __init__(self, track, frames_per_buffer: int = FRAME_SAMPLES):
        self.track = track
        self.frames_per_buffer = frames_per_buffer
        self.p: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.resampler = None
        self.frame_count = 0
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        """Open the output device and start pulling frames from the track."""
        self.resampler = av.AudioResampler(format="s16", layout=LAYOUT, rate=SAMPLE_RATE)
        self.p = pyaudio.PyAudio()
        self.stream = self.p.open(
            format=FORMAT,
            channels=CHANNELS,
            rate=SAMPLE_RATE,
            output=True,
            frames_per_buffer=self.frames_per_buffer,
        )
        self.stream.start_stream()
        self._task = asyncio.create_task(self._receive_frames())
        logger.info("Speaker playback started")

    async def _receive_frames(self):
        while True:
            try:
                frame = await self.track.recv()
            except MediaStreamError:
                logger.info("Remote audio track ended")
                return

            try:
                for resampled in self.resampler.resample(frame):
                    data = resampled.to_ndarray().astype(np.int16).tobytes()
                    await asyncio.to_thread(self.stream.write, data)
            except Exception as e:
                logger.error(f"Speaker playback failed: {str(e)}", exc_info=True)
                return
            self.frame_count += 1
            if self.frame_count % 500 == 0:
                logger.debug(f"Played {self.frame_count} frames")

    async def stop(self):
        """Stop playback and release the output device."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.p:
            self.p.terminate()
            self.p = None
        logger.info("Speaker playback stopped")
