"""Pydantic request and response models for the Brand Studio API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.  Domain records (profiles, gallery images) are
returned as the core models themselves.

Models
------
OnboardingRequest
    Payload for ``POST /api/onboarding``.
ProductCreateRequest
    Payload for ``POST /api/products``.
GenerateRequest
    Payload for ``POST /api/generate``.
FeedbackRequest
    Payload for ``POST /api/gallery/{id}/feedback``.
RefineRequest
    Payload for ``POST /api/prompt/refine``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from brandstudio.core.models import EntityProfile, Feedback, GenerationMode


class OnboardingRequest(BaseModel):
    """Request body for the ``POST /api/onboarding`` endpoint.

    Attributes:
        user_name: Display name of the user.
        user_images: Base64 photos of the user (bare or data URIs).
        product_name: Name of the first product.
        product_images: Base64 photos of the product.
    """

    user_name: str = Field(..., description="Display name of the user.")
    user_images: list[str] = Field(..., description="Base64 photos of the user.")
    product_name: str = Field(..., description="Name of the first product.")
    product_images: list[str] = Field(..., description="Base64 photos of the product.")


class ProductCreateRequest(BaseModel):
    """Request body for the ``POST /api/products`` endpoint.

    Attributes:
        name: Product name.
        images: Base64 product photos.
        description: Optional description.  When omitted the photos are
            analysed to produce one.
    """

    name: str = Field(..., description="Product name.")
    images: list[str] = Field(..., description="Base64 product photos.")
    description: str | None = Field(
        default=None,
        description="Description; analysed from the photos when omitted.",
    )


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Free-text scene description.
        mode: ``USER_ONLY``, ``PRODUCT_ONLY``, or ``COMBINED``.
        product_ids: Selected product ids, in selection order.
    """

    prompt: str = Field(..., description="Free-text scene description.")
    mode: GenerationMode = Field(
        default=GenerationMode.COMBINED,
        description="Which profiles contribute reference images.",
    )
    product_ids: list[str] = Field(
        default_factory=list,
        description="Selected product ids, in selection order.",
    )


class FeedbackRequest(BaseModel):
    """Request body for the ``POST /api/gallery/{id}/feedback`` endpoint."""

    feedback: Feedback = Field(..., description="'like' or 'dislike'.")


class RefineRequest(BaseModel):
    """Request body for the ``POST /api/prompt/refine`` endpoint."""

    idea: str = Field(..., description="Rough idea to refine.")
    product_id: str | None = Field(
        default=None,
        description="Product used as context; defaults to the first product.",
    )


class StateResponse(BaseModel):
    """Response body for ``GET /api/state``."""

    needs_onboarding: bool
    user: EntityProfile | None
    products: list[EntityProfile]
    liked_prompt_count: int
    gallery_count: int
