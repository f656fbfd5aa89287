"""
Gemini Text Client for CoachRoom

Handles all non-realtime AI operations:
- Structured JSON generation (debriefs)
- Skill extraction
- Resume document summarization
- Ephemeral token issuance for the live endpoint

Integrated with Langfuse for observability and tracing.
"""

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from google import genai
from google.genai import types
from langfuse import Langfuse

from coachroom.config.settings import get_settings

logger = logging.getLogger(__name__)


class AIConfigError(Exception):
    """Raised when the Gemini API key is not configured."""
    pass


class GeminiTextClient:
    """
    Central AI component using Gemini models through google-genai.

    Model Selection:
    - gemini_text_model: debriefs, extraction, resume parsing
    - gemini_live_model: only referenced when issuing live tokens

    Observability:
    - Langfuse spans around every generation call when configured
    """

    def __init__(self, api_key: str | None = None):
        """Initialize the client. The SDK client is created lazily."""
        self.settings = get_settings()
        self.api_key = api_key if api_key is not None else self.settings.gemini_api_key
        self._client: genai.Client | None = None

        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    @property
    def client(self) -> genai.Client:
        if not self.api_key:
            raise AIConfigError("GEMINI_API_KEY not configured")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def close(self):
        """Flush Langfuse."""
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    @contextmanager
    def _span(self, name: str, metadata: dict | None = None):
        """Wrap a call in a Langfuse span when tracing is enabled."""
        span = None
        if self.langfuse:
            try:
                span = self.langfuse.start_span(name=name, metadata=metadata or {})
            except Exception as lf_err:
                logger.warning(f"Langfuse span start failed: {lf_err}")
                span = None
        try:
            yield span
        finally:
            if span:
                span.end()

    def _extract_content(self, response: Any) -> str:
        """Extract text content from a generate_content response."""
        text = getattr(response, "text", None)
        if text:
            return text

        # Fall back to concatenating candidate parts
        candidates = getattr(response, "candidates", None) or []
        if candidates and candidates[0].content and candidates[0].content.parts:
            return "".join(part.text or "" for part in candidates[0].content.parts)
        return ""

    async def _generate(
        self,
        contents: Any,
        config: types.GenerateContentConfig | None = None,
        trace_name: str = "gemini_call",
        trace_metadata: dict | None = None,
    ) -> str:
        """Call the text model and return the response text."""
        with self._span(trace_name, trace_metadata) as span:
            response = await self.client.aio.models.generate_content(
                model=self.settings.gemini_text_model,
                contents=contents,
                config=config,
            )
            text = self._extract_content(response)
            if span:
                span.update(output={"length": len(text)})
            return text

    async def generate_json(
        self,
        prompt: str,
        schema: dict,
        trace_name: str = "structured_generation",
        trace_metadata: dict | None = None,
    ) -> str:
        """
        Generate a structured JSON response.

        Args:
            prompt: The prompt to send
            schema: Response schema the output must follow

        Returns:
            Raw response text (JSON, not yet parsed)
        """
        return await self._generate(
            prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=schema,
            ),
            trace_name=trace_name,
            trace_metadata=trace_metadata,
        )

    async def generate_text(
        self,
        prompt: str,
        system_instruction: str | None = None,
        temperature: float | None = None,
        trace_name: str = "text_generation",
    ) -> str:
        """Generate free-form text."""
        return await self._generate(
            prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=temperature,
            ),
            trace_name=trace_name,
        )

    async def summarize_document(
        self,
        data: bytes,
        mime_type: str,
        instruction: str,
    ) -> str:
        """Send a document inline together with an instruction."""
        return await self._generate(
            [
                instruction,
                types.Part.from_bytes(data=data, mime_type=mime_type),
            ],
            trace_name="document_summary",
            trace_metadata={"mime_type": mime_type, "size": len(data)},
        )

    # =========================================================================
    # LIVE TOKENS
    # =========================================================================

    async def create_live_token(self) -> str:
        """
        Create a short-lived token restricted to the live model.

        Returns:
            Token name usable as an API key by the live client
        """
        if not self.api_key:
            raise AIConfigError("GEMINI_API_KEY not configured")

        client = genai.Client(
            api_key=self.api_key,
            http_options={"api_version": "v1alpha"},
        )
        now = datetime.now(tz=timezone.utc)
        config = {
            "uses": 1,
            "expire_time": now + timedelta(minutes=30),
            "new_session_expire_time": now + timedelta(minutes=1),
            "live_connect_constraints": {
                "model": self.settings.gemini_live_model,
                "config": {"response_modalities": ["AUDIO"]},
            },
        }

        # The token API is synchronous; keep it off the event loop
        loop = asyncio.get_event_loop()
        token = await loop.run_in_executor(
            None,
            lambda: client.auth_tokens.create(config=config),
        )
        return token.name
