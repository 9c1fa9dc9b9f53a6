#!/usr/bin/env python3
"""
Talk to the OpenAI Realtime API from the terminal over WebRTC.

Streams the default microphone to the model and plays its answers on the
default speaker until interrupted with Ctrl+C.

Usage:
    python openai_webrtc.py [--language LANG] [--prompt PROMPT] [--voice VOICE]
"""

import argparse
import asyncio
import signal
from pathlib import Path

import dotenv

from realtime.bot.webrtc_session import RealtimeWebRTCSession
from realtime.config.logging_config import LOG_LEVEL, FieldLogger, new_logger
from realtime.models.session_schemas import default_session_request
from realtime.services.openai_realtime_client import (
    OpenaiConfig,
    OpenaiRealtimeService,
    RealtimeCallError,
    RealtimeClientError,
)

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Open a realtime audio session with OpenAI over WebRTC"
    )
    parser.add_argument(
        "--instructions",
        default="You are a helpful assistant.",
        help="System instructions for the model",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="ISO-639-1 language of the input audio, e.g. 'en' (default: auto)",
    )
    parser.add_argument(
        "--prompt",
        default=None,
        help="Transcription prompt, e.g. 'expect words related to web technologies'",
    )
    parser.add_argument("--voice", default="cedar", help="Output voice (default: cedar)")
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


async def run(args, logger: FieldLogger):
    svc = OpenaiRealtimeService(logger, OpenaiConfig.from_env())
    try:
        client = svc.new_client()
    except RealtimeClientError as e:
        logger.fatal(str(e))

    request = default_session_request(
        instructions=args.instructions,
        language=args.language,
        prompt=args.prompt,
        voice=args.voice,
    )
    logger.info(f"Session config: {request.to_json()}")

    session = RealtimeWebRTCSession(logger, client, request)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await session.open()
    except RealtimeCallError as e:
        logger.error("Failed to create realtime call", err=e)
        return 1

    logger.info("Session open, speak into the microphone (Ctrl+C to stop)")
    await session.run_until_closed(stop_event)
    logger.info("Shutting down")
    return 0


def main(argv=None):
    args = parse_args(argv)
    logger = new_logger(args.log_level, package="realtime", example="openai")
    return asyncio.run(run(args, logger))


if __name__ == "__main__":
    raise SystemExit(main())
