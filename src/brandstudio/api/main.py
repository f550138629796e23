"""Brand Studio — FastAPI Application.

This module defines the FastAPI application factory, all REST API routes,
and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`~brandstudio.core.config.config`.
- **Studio state** lives in a :class:`~brandstudio.core.studio.Studio`
  stored on ``app.state``; it persists through a JSON-file repository.
- **Gemini calls** go through :class:`~brandstudio.core.gemini_service.GeminiService`.

Endpoints
---------
========  ================================  ================================
Method    Path                              Purpose
========  ================================  ================================
GET       ``/api/state``                    Profiles and onboarding flag
DELETE    ``/api/state``                    Clear all stored data
POST      ``/api/onboarding``               Analyse photos, create profiles
PUT       ``/api/user``                     Update the user profile
POST      ``/api/products``                 Add a product
PUT       ``/api/products/{id}``            Update a product
DELETE    ``/api/products/{id}``            Delete a product
POST      ``/api/generate``                 Generate a visual
GET       ``/api/gallery``                  Gallery, newest first
POST      ``/api/gallery/{id}/feedback``    Like / dislike
POST      ``/api/prompt/refine``            Refine a rough idea
GET       ``/api/prompt/suggestions``       Three prompt ideas
========  ================================  ================================

Error Mapping
-------------
Validation errors are 400, unknown profiles/images 404, analysis and
generation failures 502 (the message, including any model refusal text,
is in ``detail``), and a full store 507.

Usage
-----
CLI (installed entry point)::

    brandstudio

Direct invocation::

    python -m brandstudio.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from brandstudio import __version__
from brandstudio.api.models import (
    FeedbackRequest,
    GenerateRequest,
    OnboardingRequest,
    ProductCreateRequest,
    RefineRequest,
    StateResponse,
)
from brandstudio.core.config import config
from brandstudio.core.errors import (
    AnalysisError,
    BrandStudioError,
    GenerationError,
    NotFoundError,
    StorageFullError,
    ValidationError,
)
from brandstudio.core.gemini_service import GeminiService
from brandstudio.core.models import EntityProfile, GeneratedImage, TrainingData
from brandstudio.core.repository import JsonFileRepository
from brandstudio.core.studio import Studio

logger = logging.getLogger(__name__)


def _http_error(error: BrandStudioError) -> HTTPException:
    """Translate a studio error into an :class:`HTTPException`."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, StorageFullError):
        return HTTPException(status_code=507, detail=str(error))
    if isinstance(error, (AnalysisError, GenerationError)):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def build_default_studio() -> Studio:
    """Create a studio backed by the configured state file and Gemini."""
    repository = JsonFileRepository(config.state_path, max_bytes=config.storage_quota_bytes)
    return Studio(repository, GeminiService(config), config)


def create_app(studio: Studio | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        studio: Studio to serve.  When ``None`` one is created on startup
            from the global configuration.

    Returns:
        The configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.studio = studio if studio is not None else build_default_studio()
        logger.info("Studio ready.")
        yield

    app = FastAPI(
        title="Brand Studio",
        description="Personal brand and product visual generation API.",
        version=__version__,
        lifespan=lifespan,
    )

    # Allow cross-origin requests so the frontend can be served from a
    # different port during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_studio() -> Studio:
        return app.state.studio

    # -----------------------------------------------------------------------
    # Profiles.
    # -----------------------------------------------------------------------

    @app.get("/api/state", response_model=StateResponse)
    async def get_state() -> StateResponse:
        """Return profiles and whether onboarding is still required."""
        studio = get_studio()
        return StateResponse(
            needs_onboarding=studio.needs_onboarding,
            user=studio.state.user,
            products=studio.state.products,
            liked_prompt_count=len(studio.state.liked_prompts),
            gallery_count=len(studio.state.gallery),
        )

    @app.delete("/api/state", response_model=StateResponse)
    async def reset_state() -> StateResponse:
        """Delete all profiles, gallery images, and liked prompts."""
        get_studio().reset()
        return await get_state()

    @app.post("/api/onboarding", response_model=StateResponse)
    async def complete_onboarding(req: OnboardingRequest) -> StateResponse:
        """Analyse the onboarding photos and create the user and first product.

        Raises:
            HTTPException: 400 for missing names/photos, 502 when analysis
                fails.
        """
        studio = get_studio()
        try:
            await studio.complete_onboarding(TrainingData(**req.model_dump()))
        except BrandStudioError as e:
            raise _http_error(e) from e
        return await get_state()

    @app.put("/api/user", response_model=EntityProfile)
    async def update_user(profile: EntityProfile) -> EntityProfile:
        try:
            return get_studio().update_user(profile)
        except BrandStudioError as e:
            raise _http_error(e) from e

    @app.post("/api/products", response_model=EntityProfile)
    async def add_product(req: ProductCreateRequest) -> EntityProfile:
        try:
            return await get_studio().add_product(req.name, req.images, req.description)
        except BrandStudioError as e:
            raise _http_error(e) from e

    @app.put("/api/products/{product_id}", response_model=EntityProfile)
    async def update_product(product_id: str, profile: EntityProfile) -> EntityProfile:
        if profile.id != product_id:
            raise HTTPException(status_code=400, detail="Product id does not match the path")
        try:
            return get_studio().update_product(profile)
        except BrandStudioError as e:
            raise _http_error(e) from e

    @app.delete("/api/products/{product_id}")
    async def delete_product(product_id: str) -> dict:
        try:
            get_studio().delete_product(product_id)
        except BrandStudioError as e:
            raise _http_error(e) from e
        return {"success": True, "deleted": product_id}

    # -----------------------------------------------------------------------
    # Generation and gallery.
    # -----------------------------------------------------------------------

    @app.post("/api/generate", response_model=GeneratedImage)
    async def generate(req: GenerateRequest) -> GeneratedImage:
        """Generate a visual from the selected profiles and prompt.

        Raises:
            HTTPException: 400 for a blank prompt or missing product
                selection, 404 for an unknown product, 502 when generation
                fails or the model refuses.
        """
        try:
            return await get_studio().generate(req.prompt, req.mode, req.product_ids)
        except BrandStudioError as e:
            logger.error(f"Generation failed: {e}")
            raise _http_error(e) from e

    @app.get("/api/gallery", response_model=list[GeneratedImage])
    async def get_gallery() -> list[GeneratedImage]:
        return get_studio().recent_images()

    @app.post("/api/gallery/{image_id}/feedback", response_model=GeneratedImage)
    async def set_feedback(image_id: str, req: FeedbackRequest) -> GeneratedImage:
        try:
            return get_studio().set_feedback(image_id, req.feedback)
        except BrandStudioError as e:
            raise _http_error(e) from e

    # -----------------------------------------------------------------------
    # Prompt help.
    # -----------------------------------------------------------------------

    @app.post("/api/prompt/refine")
    async def refine_prompt(req: RefineRequest) -> dict:
        try:
            refined = await get_studio().refine_prompt(req.idea, req.product_id)
        except BrandStudioError as e:
            raise _http_error(e) from e
        return {"prompt": refined}

    @app.get("/api/prompt/suggestions")
    async def suggest_prompts(product_id: str | None = None) -> dict:
        try:
            suggestions = await get_studio().suggest_prompts(product_id)
        except BrandStudioError as e:
            raise _http_error(e) from e
        return {"suggestions": suggestions}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port, and log level from
    :data:`~brandstudio.core.config.config` (``BRANDSTUDIO_SERVER_HOST``,
    ``BRANDSTUDIO_SERVER_PORT``, ``BRANDSTUDIO_LOG_LEVEL``).

    This function is registered as the ``brandstudio`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "brandstudio.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
