"""Gemini client speaking the OpenAI-compatible chat completions API."""

import base64
import json
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from calorie_tracker.services.analysis import AiClient


@dataclass
class GeminiClient(AiClient):
    """Structured-output client backed by Gemini via the ``openai`` SDK."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> "GeminiClient":
        """Create a client with a managed httpx session."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=http_client or httpx.AsyncClient(timeout=timeout_seconds),
                max_retries=0,
            )
        )

    async def generate_json(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        schema: dict[str, object],
        images: list[bytes] | None = None,
        audio: bytes | None = None,
        audio_format: str = "aac",
    ) -> dict[str, object] | None:
        """Call the model with a JSON schema and decode its answer."""
        content: list[dict[str, object]] = [{"type": "text", "text": prompt}]
        for image in images or []:
            content.append(
                {"type": "image_url", "image_url": {"url": _to_data_url(image)}}
            )
        if audio is not None:
            content.append(
                {
                    "type": "input_audio",
                    "input_audio": {
                        "data": base64.b64encode(audio).decode("utf-8"),
                        "format": audio_format,
                    },
                }
            )
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "nutrition", "schema": schema},
            },
        )
        if not response.choices:
            return None
        output_text = response.choices[0].message.content
        if not output_text:
            return None
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
