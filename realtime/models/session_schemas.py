"""
Pydantic models for the OpenAI Realtime session create request.

The session request is sent alongside the SDP offer when a WebRTC call is
created. Only the fields the example uses are modelled; unset optional fields
are left out of the serialized JSON.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from realtime.config.constants import (
    DEFAULT_REALTIME_MODEL,
    SESSION_AUDIO_FORMAT,
    SESSION_SAMPLE_RATE,
)


class AudioPCMFormat(BaseModel):
    """Raw 16-bit PCM audio format."""
    type: Literal["audio/pcm"] = SESSION_AUDIO_FORMAT
    rate: Literal[24000] = SESSION_SAMPLE_RATE


class NoiseReduction(BaseModel):
    """Input noise reduction setting."""
    type: Literal["near_field", "far_field"] = "near_field"


class AudioTranscription(BaseModel):
    """Input audio transcription settings."""
    model: str = "whisper-1"
    language: Optional[str] = Field(None, description="ISO-639-1 language code, e.g. 'en'")
    prompt: Optional[str] = None


class SemanticVad(BaseModel):
    """Semantic voice activity detection."""
    type: Literal["semantic_vad"] = "semantic_vad"
    create_response: Optional[bool] = None
    interrupt_response: Optional[bool] = None
    eagerness: Optional[Literal["low", "medium", "high", "auto"]] = None


class ServerVad(BaseModel):
    """Server-side voice activity detection based on audio volume."""
    type: Literal["server_vad"] = "server_vad"
    create_response: Optional[bool] = None
    interrupt_response: Optional[bool] = None
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0)
    prefix_padding_ms: Optional[int] = Field(None, ge=0)
    silence_duration_ms: Optional[int] = Field(None, ge=0)


class AudioInputConfig(BaseModel):
    """Input side of the session audio configuration."""
    format: AudioPCMFormat = Field(default_factory=AudioPCMFormat)
    noise_reduction: Optional[NoiseReduction] = None
    transcription: Optional[AudioTranscription] = None
    turn_detection: Optional[Union[SemanticVad, ServerVad]] = None


class AudioOutputConfig(BaseModel):
    """Output side of the session audio configuration."""
    format: AudioPCMFormat = Field(default_factory=AudioPCMFormat)
    voice: Optional[str] = None
    speed: Optional[float] = None

    @field_validator("speed")
    def validate_speed(cls, v):
        """Validate that speed is within the range the API accepts."""
        if v is not None and not 0.25 <= v <= 1.5:
            raise ValueError("speed must be between 0.25 and 1.5")
        return v


class AudioConfig(BaseModel):
    """Session audio configuration."""
    input: AudioInputConfig = Field(default_factory=AudioInputConfig)
    output: AudioOutputConfig = Field(default_factory=AudioOutputConfig)


class RealtimeSessionCreateRequest(BaseModel):
    """Session configuration sent with the call offer."""
    type: Literal["realtime"] = "realtime"
    model: str = DEFAULT_REALTIME_MODEL
    instructions: Optional[str] = None
    audio: AudioConfig = Field(default_factory=AudioConfig)
    max_output_tokens: Optional[Union[int, Literal["inf"]]] = None

    @field_validator("max_output_tokens")
    def validate_max_output_tokens(cls, v):
        """Validate that an integer token limit is positive."""
        if isinstance(v, int) and v <= 0:
            raise ValueError("max_output_tokens must be positive or 'inf'")
        return v

    def to_json(self) -> str:
        """Serialize the request, leaving out unset optional fields."""
        return self.model_dump_json(exclude_none=True)


def default_session_request(
    instructions: str = "You are a helpful assistant.",
    language: Optional[str] = None,
    prompt: Optional[str] = None,
    voice: str = "cedar",
    speed: float = 0.9,
    max_output_tokens: int = 1024,
) -> RealtimeSessionCreateRequest:
    """
    Build the session request used by the example program.

    PCM at 24kHz in both directions, semantic VAD that creates and interrupts
    responses with low eagerness, near-field noise reduction and whisper-1
    input transcription.
    """
    return RealtimeSessionCreateRequest(
        instructions=instructions,
        audio=AudioConfig(
            input=AudioInputConfig(
                turn_detection=SemanticVad(
                    create_response=True,
                    interrupt_response=True,
                    eagerness="low",
                ),
                noise_reduction=NoiseReduction(type="near_field"),
                transcription=AudioTranscription(language=language, prompt=prompt),
            ),
            output=AudioOutputConfig(voice=voice, speed=speed),
        ),
        max_output_tokens=max_output_tokens,
    )
