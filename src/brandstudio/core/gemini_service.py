"""Gemini API client for Brand Studio.

This module provides :class:`GeminiService`, the single point of contact
with the Gemini API.  It wraps the four calls the studio makes:

- **Analysis** — describe a person or product from up to five reference
  photos.  Failures propagate; they are not retried.
- **Generation** — compose a marketing photograph from reference images and
  an instruction block.  The whole request + extraction is retried with the
  fixed-delay policy from :mod:`brandstudio.core.retry`.
- **Refinement** — expand a rough idea into a detailed prompt.  Best effort:
  falls back to the original idea.
- **Suggestion** — three prompt ideas as a JSON array.  Best effort: falls
  back to a fixed list.

The SDK client is synchronous, so every call runs in a worker thread via
``asyncio.to_thread`` and the public methods are coroutines.

Usage
-----
::

    from brandstudio.core.config import config
    from brandstudio.core.gemini_service import GeminiService

    service = GeminiService(config)
    description = await service.analyze_images(images, SubjectType.PERSON)
    url = await service.generate_brand_visual(request)
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import types

from brandstudio.core.config import BrandStudioConfig
from brandstudio.core.errors import ModelRefusalError, NoImageGeneratedError
from brandstudio.core.images import JPEG_MIME_TYPE, to_jpeg_bytes, to_png_data_uri
from brandstudio.core.models import SubjectType
from brandstudio.core.prompt_assembly import GenerationRequest, assemble_generation_request
from brandstudio.core.retry import retry_operation

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Prompt text.
# ---------------------------------------------------------------------------

_ANALYSIS_PROMPTS: dict[SubjectType, str] = {
    SubjectType.PERSON: (
        "As a professional portrait photographer, analyze these photos. Describe the "
        "subject's physical appearance in high detail for a casting sheet. Cover: face "
        "shape, eye color/shape, hair style/color, skin tone, and key facial features. "
        "Keep it objective and precise. Do NOT describe clothing."
    ),
    SubjectType.PRODUCT: (
        "As a professional product photographer, analyze these photos. Create a visual "
        "specification for a 3D render. Describe: shape, geometry, material finish "
        "(matte/glossy), colors, and text/logos. Focus purely on the physical object."
    ),
}

NO_DESCRIPTION = "No description generated."

FALLBACK_SUGGESTIONS: tuple[str, ...] = (
    "Studio shot with dramatic lighting",
    "Lifestyle outdoors in sunlight",
    "Close-up product focus with bokeh",
)

SUGGESTION_COUNT = 3


def _refinement_prompt(rough_idea: str, context: str | None) -> str:
    context_line = f"Context: {context}\n" if context else ""
    return (
        "You are an expert AI art prompter.\n"
        "Refine this rough idea into a highly detailed, creative image generation prompt.\n"
        f'Rough idea: "{rough_idea}"\n'
        f"{context_line}\n"
        "Requirements:\n"
        "- Focus on lighting, composition, camera angle, and mood.\n"
        "- Keep it under 60 words.\n"
        "- Output ONLY the refined prompt text, no explanations."
    )


def _suggestion_prompt(user_description: str, product_description: str) -> str:
    return (
        f'Given a person described as: "{user_description}..."\n'
        f'and a product described as: "{product_description}...",\n'
        f"generate {SUGGESTION_COUNT} creative, distinct marketing prompt ideas.\n"
        "Return as a JSON array of strings."
    )


# ---------------------------------------------------------------------------
# Response helpers.
# ---------------------------------------------------------------------------


def _first_candidate_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def extract_image_data_uri(response: Any) -> str:
    """Pull the first inline image out of a generation response.

    Only the first candidate is inspected.

    Args:
        response: A ``GenerateContentResponse`` (or anything shaped like one).

    Returns:
        The image as a ``data:image/png;base64,...`` URI.

    Raises:
        ModelRefusalError: No image, but the model returned text.
        NoImageGeneratedError: Neither an image nor text was returned.
    """
    parts = _first_candidate_parts(response)

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return to_png_data_uri(inline.data)

    # No image: a text part is almost always a refusal or safety message.
    for part in parts:
        text = getattr(part, "text", None)
        if text:
            raise ModelRefusalError(text)

    raise NoImageGeneratedError()


def parse_suggestions(text: str | None) -> list[str] | None:
    """Parse a JSON array of prompt suggestions.

    Returns:
        Up to three suggestions, or ``None`` when *text* is not a non-empty
        JSON array of strings.
    """
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list) or not data:
        return None
    if not all(isinstance(item, str) for item in data):
        return None
    return data[:SUGGESTION_COUNT]


class GeminiService:
    """Async facade over the Gemini API.

    Attributes:
        _config (BrandStudioConfig):
            Model names, retry budget, and request limits.
        _client:
            The ``google.genai.Client`` (or a stand-in exposing
            ``models.generate_content``).  Created lazily when not supplied.
    """

    def __init__(self, config: BrandStudioConfig, client: Any | None = None) -> None:
        self._config = config
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self._config.gemini_api_key)
            logger.info("Gemini client initialised.")
        return self._client

    async def _generate_content(self, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self.client.models.generate_content, **kwargs)

    async def _image_parts(self, images: Sequence[str]) -> list[types.Part]:
        # Pillow re-encoding is CPU-bound; keep it off the event loop.
        payloads = await asyncio.to_thread(lambda: [to_jpeg_bytes(image) for image in images])
        return [types.Part.from_bytes(data=data, mime_type=JPEG_MIME_TYPE) for data in payloads]

    # -- Analysis -----------------------------------------------------------

    async def analyze_images(self, images: Sequence[str], subject_type: SubjectType) -> str:
        """Describe the subject of a set of reference photos.

        Args:
            images: Base64 images (bare or data URIs).  Only the first
                ``max_analysis_images`` are sent.
            subject_type: Selects the person- or product-oriented instruction.

        Returns:
            The description, or ``"No description generated."`` when the
            model returns no text.

        Raises:
            Exception: Any SDK or payload error, unchanged.
        """
        try:
            parts = await self._image_parts(images[: self._config.max_analysis_images])
            parts.append(types.Part.from_text(text=_ANALYSIS_PROMPTS[subject_type]))

            response = await self._generate_content(
                model=self._config.analysis_model,
                contents=[types.Content(role="user", parts=parts)],
            )
            return response.text or NO_DESCRIPTION
        except Exception as e:
            logger.error(f"Error analyzing {subject_type.value} images: {e}")
            raise

    # -- Generation ---------------------------------------------------------

    async def generate_brand_visual(self, request: GenerationRequest) -> str:
        """Generate a composite photograph for *request*.

        The request is assembled once; each attempt resends it and re-runs
        extraction, so a refusal is retried like a network failure.

        Returns:
            The generated image as a PNG data URI.

        Raises:
            ModelRefusalError: The model kept answering with text.
            NoImageGeneratedError: The model kept returning nothing.
            Exception: The last SDK error once retries are exhausted.
        """
        assembled = assemble_generation_request(request)

        parts = await self._image_parts(assembled.image_payloads)
        parts.append(types.Part.from_text(text=assembled.text))
        contents = [types.Content(role="user", parts=parts)]
        generation_config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=self._config.aspect_ratio),
        )

        async def perform_generation() -> str:
            response = await self._generate_content(
                model=self._config.image_model,
                contents=contents,
                config=generation_config,
            )
            return extract_image_data_uri(response)

        return await retry_operation(
            perform_generation,
            self._config.generation_retries,
            delay=self._config.retry_delay_seconds,
        )

    # -- Prompt help --------------------------------------------------------

    async def refine_prompt(self, rough_idea: str, context: str | None = None) -> str:
        """Rewrite a rough idea as a detailed prompt.

        Never raises: on any failure, or an empty answer, the idea is
        returned unchanged.
        """
        try:
            response = await self._generate_content(
                model=self._config.text_model,
                contents=_refinement_prompt(rough_idea, context),
            )
            return response.text or rough_idea
        except Exception as e:
            logger.error(f"Prompt refinement failed: {e}")
            return rough_idea

    async def suggest_prompts(self, user_description: str, product_description: str) -> list[str]:
        """Ask for three marketing prompt ideas.

        Both descriptions are truncated to ``suggestion_context_chars``.
        Never raises: malformed output or a failed call yields
        :data:`FALLBACK_SUGGESTIONS`.
        """
        limit = self._config.suggestion_context_chars
        try:
            response = await self._generate_content(
                model=self._config.text_model,
                contents=_suggestion_prompt(user_description[:limit], product_description[:limit]),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=types.Schema(
                        type=types.Type.ARRAY,
                        items=types.Schema(type=types.Type.STRING),
                    ),
                ),
            )
            suggestions = parse_suggestions(response.text)
        except Exception as e:
            logger.error(f"Prompt suggestion failed: {e}")
            suggestions = None

        if suggestions is None:
            logger.warning("Falling back to default prompt suggestions.")
            return list(FALLBACK_SUGGESTIONS)
        return suggestions
