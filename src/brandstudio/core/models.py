"""Domain records for Brand Studio.

Profiles, gallery entries, and the persisted studio snapshot are Pydantic
models so that the repository can serialise them to JSON and the API layer
can return them directly.  The enums are ``str`` subclasses, which keeps
their persisted form human-readable (``"COMBINED"``, ``"like"``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SubjectType(str, Enum):
    """What a profile depicts."""

    PERSON = "PERSON"
    PRODUCT = "PRODUCT"


class GenerationMode(str, Enum):
    """Which profiles contribute reference images to a generation request."""

    USER_ONLY = "USER_ONLY"
    PRODUCT_ONLY = "PRODUCT_ONLY"
    COMBINED = "COMBINED"

    @property
    def includes_user(self) -> bool:
        return self in (GenerationMode.USER_ONLY, GenerationMode.COMBINED)

    @property
    def includes_products(self) -> bool:
        return self in (GenerationMode.PRODUCT_ONLY, GenerationMode.COMBINED)


class Feedback(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class EntityProfile(BaseModel):
    """A person or product with reference photos and a derived description.

    Attributes:
        id: Stable identifier (``user_main`` for the user profile).
        name: Display name, also used in product reference instructions.
        description: Free-text description produced by image analysis.
        images: Ordered base64 images; raw base64 or ``data:`` URIs.
        type: Whether the profile depicts a person or a product.
    """

    id: str
    name: str
    description: str = ""
    images: list[str] = Field(default_factory=list)
    type: SubjectType

    @property
    def primary_image(self) -> str | None:
        """First reference image, or ``None`` when the profile has none."""
        return self.images[0] if self.images else None


class GeneratedImage(BaseModel):
    """A generated visual recorded in the gallery.

    Attributes:
        id: UUID of the gallery entry.
        url: ``data:image/png;base64,...`` URI.  Blank when the payload was
            dropped by the storage quota fallback.
        prompt: The free-text prompt the user typed.
        mode: Generation mode used.
        product_id: First selected product, if any.
        timestamp: Creation time (seconds since the epoch).
        feedback: Optional like/dislike.
    """

    id: str
    url: str
    prompt: str
    mode: GenerationMode
    product_id: str | None = None
    timestamp: float
    feedback: Feedback | None = None


class StudioState(BaseModel):
    """Everything the studio persists.

    ``gallery`` is kept newest first; ``liked_prompts`` is chronological
    (oldest first), so the most recent liked prompt is the last element.
    """

    user: EntityProfile | None = None
    products: list[EntityProfile] = Field(default_factory=list)
    gallery: list[GeneratedImage] = Field(default_factory=list)
    liked_prompts: list[str] = Field(default_factory=list)


class TrainingData(BaseModel):
    """Input collected by the onboarding flow."""

    user_name: str
    user_images: list[str]
    product_name: str
    product_images: list[str]
