"""Grok utilities: text summarization and image analysis.

Both go straight to the premium backend. There is no default-backend equivalent,
so a disabled or unconfigured premium backend surfaces as ConfigurationError.
"""

import base64
import binascii
from typing import Any

from app.services.llm_client import TextBackendFactory
from app.utils.exceptions import ValidationException

SUMMARY_PROMPT = "Summarise the following text briefly and concisely, keeping the main points:\n\n{text}"
ANALYSIS_PROMPT = "Analyse this image in detail and describe its key elements, content and notable aspects."


class GrokService:
    def __init__(self, backend_factory: TextBackendFactory):
        self._backend_factory = backend_factory

    async def summarize(self, text: str) -> dict[str, Any]:
        backend = await self._backend_factory.premium()
        summary = await backend.complete(
            [{"role": "user", "content": SUMMARY_PROMPT.format(text=text)}],
            temperature=0.3,
            max_tokens=500,
        )
        return {
            "summary": summary,
            "originalLength": len(text),
            "summaryLength": len(summary),
            "model": backend.model,
        }

    async def analyze_image(self, image_base64: str) -> dict[str, Any]:
        if image_base64.startswith("data:"):
            image_base64 = image_base64.split(",", 1)[-1]
        try:
            base64.b64decode(image_base64, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationException("imageBase64 is not valid base64 data")

        backend = await self._backend_factory.vision()
        analysis = await backend.complete(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": ANALYSIS_PROMPT},
                        {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}},
                    ],
                }
            ],
            temperature=0.2,
            max_tokens=500,
        )
        return {"analysis": analysis, "model": backend.model}
