"""
HTTP client for creating OpenAI Realtime calls over WebRTC.

A realtime WebRTC call is created by POSTing the local SDP offer together with
the session configuration as a multipart form to ``{base_url}/realtime/calls``.
The API answers ``201 Created`` with the SDP answer as the response body.

Typical usage:
```python
cfg = OpenaiConfig.from_env()
client = OpenaiRealtimeService(logger, cfg).new_client()
answer_sdp = await client.acreate_call(pc.localDescription.sdp, session_request)
```
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import requests

from realtime.config.constants import DEFAULT_BASE_URL, REALTIME_CALLS_PATH
from realtime.config.env import getenv_string, must_getenv
from realtime.config.logging_config import FieldLogger
from realtime.models.session_schemas import RealtimeSessionCreateRequest

REQUEST_TIMEOUT = 30  # seconds


class RealtimeClientError(Exception):
    """Raised when a realtime client cannot be created."""


class RealtimeCallError(Exception):
    """Raised when the API rejects a call offer or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class OpenaiConfig:
    """Credentials and endpoint for the OpenAI API."""
    api_key: str
    org_id: str
    project_id: str
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_env(cls) -> "OpenaiConfig":
        """Read the configuration from the environment, exiting if anything required is missing."""
        return cls(
            api_key=must_getenv(getenv_string, "OPENAI_API_KEY", required=True),
            org_id=must_getenv(getenv_string, "OPENAI_ORG_ID", required=True),
            project_id=must_getenv(getenv_string, "OPENAI_PROJECT_ID", required=True),
            base_url=must_getenv(getenv_string, "OPENAI_BASE_URL", default=DEFAULT_BASE_URL),
        )


class OpenaiRealtimeClient:
    """
    Client for the OpenAI Realtime calls endpoint.
    """

    def __init__(
        self,
        logger: FieldLogger,
        api_key: str,
        org_id: str,
        project_id: str,
        base_url: str = DEFAULT_BASE_URL,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        if not org_id:
            raise ValueError("org_id is required")
        if not project_id:
            raise ValueError("project_id is required")
        if not base_url:
            base_url = DEFAULT_BASE_URL
        self.logger = logger
        self.api_key = api_key
        self.org_id = org_id
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")

    @property
    def calls_url(self) -> str:
        return f"{self.base_url}{REALTIME_CALLS_PATH}"

    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Organization": self.org_id,
            "OpenAI-Project": self.project_id,
        }

    def create_call(self, offer_sdp: str, session: RealtimeSessionCreateRequest) -> str:
        """
        Send the SDP offer and session configuration, returning the SDP answer.

        Args:
            offer_sdp: Local SDP offer, ICE candidates included
            session: Session configuration for the call

        Returns:
            str: The SDP answer from the API

        Raises:
            RealtimeCallError: If the request fails or the API does not answer 201
        """
        session_json = session.to_json()
        files = {
            "sdp": (None, offer_sdp, "application/sdp"),
            "session": (None, session_json, "application/json"),
        }

        self.logger.info(f"Sending offer to {self.calls_url}")
        self.logger.debug("Using headers: Authorization: Bearer [API_KEY_HIDDEN]")
        self.logger.debug(f"Session config: {session_json}")

        try:
            response = requests.post(
                self.calls_url,
                headers=self._headers(),
                files=files,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise RealtimeCallError(f"failed to send offer to OpenAI: {e}") from e

        if response.status_code != 201:
            self.logger.error(
                "OpenAI rejected the offer",
                fields={"status": response.status_code},
            )
            raise RealtimeCallError(
                f"OpenAI returned status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        self.logger.info("Received SDP answer from OpenAI")
        self.logger.debug(f"Answer SDP: {response.text}")
        return response.text

    async def acreate_call(self, offer_sdp: str, session: RealtimeSessionCreateRequest) -> str:
        """Run create_call in a worker thread so the event loop keeps serving the peer connection."""
        return await asyncio.to_thread(self.create_call, offer_sdp, session)


class OpenaiRealtimeService:
    """Builds realtime clients from a shared configuration."""

    def __init__(self, logger: FieldLogger, cfg: OpenaiConfig):
        self.logger = logger
        self.cfg = cfg

    def new_client(self) -> OpenaiRealtimeClient:
        try:
            return OpenaiRealtimeClient(
                self.logger,
                self.cfg.api_key,
                self.cfg.org_id,
                self.cfg.project_id,
                self.cfg.base_url,
            )
        except ValueError as e:
            raise RealtimeClientError(f"failed to create client: {e}") from e
