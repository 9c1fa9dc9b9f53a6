"""
Realtime - OpenAI Realtime API audio sessions over WebRTC

This package opens a realtime speech-to-speech session with the OpenAI Realtime
API over WebRTC. The local microphone is streamed to the model as an Opus audio
track, the model's audio is played on the speaker, and server events arrive as
JSON on the ``oai-events`` data channel.

Key Components:
- bot: Peer connection lifecycle and local audio I/O (microphone and speaker)
- config: Application-wide constants, logging setup and typed environment variables
- models: The generic Set container and the session request schema
- services: HTTP client that exchanges the SDP offer for an answer

Getting Started:
1. Set up environment variables (or a .env file):
   - OPENAI_API_KEY: Your OpenAI API key
   - OPENAI_ORG_ID: Your organization ID
   - OPENAI_PROJECT_ID: Your project ID
   - OPENAI_BASE_URL: API base URL (default https://api.openai.com/v1)
   - LOG_LEVEL: Logging level (default INFO)

2. Run the example:
   ```bash
   python openai_webrtc.py --language en
   ```
"""
