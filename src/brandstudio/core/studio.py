"""Studio session: the state transitions behind onboarding, editing, and generation.

:class:`Studio` owns the in-memory :class:`~brandstudio.core.models.StudioState`
and writes a full snapshot through a
:class:`~brandstudio.core.repository.StudioRepository` after every change.
Writes are optimistic: memory is updated first and a failed write is never
rolled back.  Only a terminal
:class:`~brandstudio.core.errors.StorageFullError` is surfaced; other write
failures are logged.

Liked-Prompt Memory
-------------------
Liking a gallery image appends its prompt to ``liked_prompts`` (once);
disliking removes it again.  Generation passes the whole history to the
prompt assembly, which uses only the most recent entry as a style hint.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence

from brandstudio.core.config import BrandStudioConfig
from brandstudio.core.errors import (
    AnalysisError,
    NotFoundError,
    StorageFullError,
    ValidationError,
)
from brandstudio.core.gemini_service import GeminiService
from brandstudio.core.models import (
    EntityProfile,
    Feedback,
    GeneratedImage,
    GenerationMode,
    StudioState,
    SubjectType,
    TrainingData,
)
from brandstudio.core.prompt_assembly import GenerationRequest
from brandstudio.core.repository import SaveOutcome, StudioRepository

logger = logging.getLogger(__name__)

USER_PROFILE_ID = "user_main"

ANALYSIS_FAILED_MESSAGE = "Failed to analyze images. Please try again."


class Studio:
    """One user's studio: profiles, gallery, and liked prompts.

    Attributes:
        state (StudioState):
            Current in-memory state.  Treat as read-only outside this class.
    """

    def __init__(
        self,
        repository: StudioRepository,
        service: GeminiService,
        config: BrandStudioConfig,
    ) -> None:
        self._repository = repository
        self._service = service
        self._config = config
        self.state = repository.load_state()
        logger.info(
            f"Studio loaded: user={'yes' if self.state.user else 'no'}, "
            f"{len(self.state.products)} product(s), {len(self.state.gallery)} image(s)"
        )

    @property
    def needs_onboarding(self) -> bool:
        return self.state.user is None

    def reset(self) -> StudioState:
        """Delete the stored snapshot and start over with an empty studio."""
        self._repository.clear()
        self.state = StudioState()
        logger.info("Studio reset; onboarding required.")
        return self.state

    # -- Persistence --------------------------------------------------------

    def _persist(self) -> SaveOutcome | None:
        try:
            return self._repository.save_state(self.state)
        except StorageFullError:
            logger.error("Storage full; in-memory state kept but not persisted.")
            raise
        except OSError as e:
            logger.error(f"Failed to persist studio state: {e}")
            return None

    # -- Validation ---------------------------------------------------------

    def _validate_profile_input(self, label: str, name: str, images: Sequence[str]) -> None:
        if not name or not name.strip():
            raise ValidationError(f"{label} name is required")
        if not images:
            raise ValidationError(f"At least one {label.lower()} photo is required")
        if len(images) > self._config.max_profile_images:
            raise ValidationError(
                f"{label} photos must be 1-{self._config.max_profile_images}, got {len(images)}"
            )

    # -- Onboarding ---------------------------------------------------------

    async def complete_onboarding(self, data: TrainingData) -> StudioState:
        """Analyse the onboarding photos and create the user and first product.

        The user photos are analysed first, then the product photos.  The
        user profile always gets the id ``user_main``; the product is
        appended to any existing products.

        Raises:
            ValidationError: Missing names or photos, or too many photos.
            AnalysisError: Either analysis call failed.
        """
        self._validate_profile_input("User", data.user_name, data.user_images)
        self._validate_profile_input("Product", data.product_name, data.product_images)

        try:
            user_description = await self._service.analyze_images(
                data.user_images, SubjectType.PERSON
            )
            product_description = await self._service.analyze_images(
                data.product_images, SubjectType.PRODUCT
            )
        except Exception as e:
            logger.error(f"Onboarding analysis failed: {e}")
            raise AnalysisError(ANALYSIS_FAILED_MESSAGE) from e

        self.state.user = EntityProfile(
            id=USER_PROFILE_ID,
            name=data.user_name.strip(),
            description=user_description,
            images=list(data.user_images),
            type=SubjectType.PERSON,
        )
        self.state.products.append(
            EntityProfile(
                id=uuid.uuid4().hex,
                name=data.product_name.strip(),
                description=product_description,
                images=list(data.product_images),
                type=SubjectType.PRODUCT,
            )
        )
        self._persist()
        return self.state

    # -- Profiles -----------------------------------------------------------

    def update_user(self, user: EntityProfile) -> EntityProfile:
        if user.type is not SubjectType.PERSON:
            raise ValidationError("The user profile must be of type PERSON")
        self.state.user = user
        self._persist()
        return user

    def get_product(self, product_id: str) -> EntityProfile:
        product = next((p for p in self.state.products if p.id == product_id), None)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        return product

    async def add_product(
        self,
        name: str,
        images: Sequence[str],
        description: str | None = None,
    ) -> EntityProfile:
        """Add a product, analysing its photos when no description is given.

        Raises:
            ValidationError: Missing name or photos.
            AnalysisError: The analysis call failed.
        """
        self._validate_profile_input("Product", name, images)

        if description is None:
            try:
                description = await self._service.analyze_images(images, SubjectType.PRODUCT)
            except Exception as e:
                logger.error(f"Product analysis failed: {e}")
                raise AnalysisError(ANALYSIS_FAILED_MESSAGE) from e

        product = EntityProfile(
            id=uuid.uuid4().hex,
            name=name.strip(),
            description=description,
            images=list(images),
            type=SubjectType.PRODUCT,
        )
        self.state.products.append(product)
        self._persist()
        return product

    def update_product(self, product: EntityProfile) -> EntityProfile:
        self.get_product(product.id)
        if product.type is not SubjectType.PRODUCT:
            raise ValidationError("Products must be of type PRODUCT")
        self.state.products = [product if p.id == product.id else p for p in self.state.products]
        self._persist()
        return product

    def delete_product(self, product_id: str) -> None:
        self.get_product(product_id)
        self.state.products = [p for p in self.state.products if p.id != product_id]
        self._persist()

    # -- Generation ---------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        mode: GenerationMode,
        product_ids: Sequence[str] = (),
    ) -> GeneratedImage:
        """Generate a visual and record it at the head of the gallery.

        Args:
            prompt: Free-text scene description.
            mode: Which profiles contribute reference images.
            product_ids: Selected products, in selection order.  Ignored for
                ``USER_ONLY`` apart from the recorded primary product.

        Raises:
            ValidationError: Blank prompt, or no product selected in a mode
                that needs one.
            NotFoundError: A selected product does not exist.
            GenerationError: The model refused or produced nothing.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Please enter a prompt description.")
        if mode is not GenerationMode.USER_ONLY and not product_ids:
            raise ValidationError("Please select at least one product for this mode.")

        products = [self.get_product(product_id) for product_id in product_ids]
        primary_product = products[0] if products else None

        url = await self._service.generate_brand_visual(
            GenerationRequest(
                prompt=prompt,
                mode=mode,
                user=self.state.user,
                products=products,
                liked_prompts=list(self.state.liked_prompts),
            )
        )

        image = GeneratedImage(
            id=str(uuid.uuid4()),
            url=url,
            prompt=prompt,
            mode=mode,
            product_id=primary_product.id if primary_product else None,
            timestamp=time.time(),
        )
        self.state.gallery.insert(0, image)
        self._persist()
        return image

    def recent_images(self) -> list[GeneratedImage]:
        """Gallery entries, newest first."""
        return sorted(self.state.gallery, key=lambda image: image.timestamp, reverse=True)

    # -- Feedback -----------------------------------------------------------

    def set_feedback(self, image_id: str, feedback: Feedback) -> GeneratedImage:
        """Record like/dislike and update the liked-prompt memory.

        Raises:
            NotFoundError: No gallery image with *image_id*.
        """
        image = next((g for g in self.state.gallery if g.id == image_id), None)
        if image is None:
            raise NotFoundError(f"Image not found: {image_id}")

        liked = self.state.liked_prompts
        if feedback is Feedback.LIKE:
            if image.prompt not in liked:
                liked.append(image.prompt)
        else:
            self.state.liked_prompts = [p for p in liked if p != image.prompt]

        image.feedback = feedback
        self._persist()
        return image

    # -- Prompt help --------------------------------------------------------

    def _primary_product(self, product_id: str | None) -> EntityProfile | None:
        if product_id is not None:
            return self.get_product(product_id)
        return self.state.products[0] if self.state.products else None

    async def refine_prompt(self, idea: str, product_id: str | None = None) -> str:
        """Refine *idea* with the current user and product as context."""
        if not idea or not idea.strip():
            return idea

        product = self._primary_product(product_id)
        subject = self.state.user.name if self.state.user else "A person"
        if product is not None:
            subject += f" and {product.name}"
        return await self._service.refine_prompt(idea, f"Subject: {subject}.")

    async def suggest_prompts(self, product_id: str | None = None) -> list[str]:
        """Prompt ideas for the user and the selected (or first) product.

        Returns an empty list when there is no user or product to describe.
        """
        product = self._primary_product(product_id)
        if self.state.user is None or product is None:
            return []
        return await self._service.suggest_prompts(self.state.user.description, product.description)
