"""Shared pytest fixtures for Brand Studio tests."""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fakes import FakeClient, image_response
from fastapi.testclient import TestClient
from PIL import Image

from brandstudio.api.main import create_app
from brandstudio.core.config import BrandStudioConfig
from brandstudio.core.gemini_service import GeminiService
from brandstudio.core.models import EntityProfile, SubjectType
from brandstudio.core.repository import InMemoryRepository
from brandstudio.core.studio import Studio

# ---------------------------------------------------------------------------
# Fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> BrandStudioConfig:
    """Create a test configuration with a temporary data directory and no retry delay."""
    return BrandStudioConfig(
        _env_file=None,
        gemini_api_key="test-key",
        data_dir=str(temp_dir / "data"),
        retry_delay_seconds=0.0,
    )


def _encode(image: Image.Image, fmt: str) -> str:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def png_b64() -> str:
    """A tiny red PNG as bare base64."""
    return _encode(Image.new("RGB", (4, 4), (255, 0, 0)), "PNG")


@pytest.fixture
def jpeg_b64() -> str:
    """A tiny blue JPEG as bare base64."""
    return _encode(Image.new("RGB", (4, 4), (0, 0, 255)), "JPEG")


@pytest.fixture
def user_profile(jpeg_b64: str) -> EntityProfile:
    return EntityProfile(
        id="user_main",
        name="Alex",
        description="Oval face, short dark hair, brown eyes.",
        images=[f"data:image/jpeg;base64,{jpeg_b64}"],
        type=SubjectType.PERSON,
    )


@pytest.fixture
def watch(jpeg_b64: str) -> EntityProfile:
    return EntityProfile(
        id="prod-watch",
        name="Chronos Watch",
        description="Round steel case, black dial, leather strap.",
        images=[jpeg_b64],
        type=SubjectType.PRODUCT,
    )


@pytest.fixture
def sneaker(png_b64: str) -> EntityProfile:
    return EntityProfile(
        id="prod-sneaker",
        name="Aero Sneaker",
        description="White knit upper, gum sole.",
        images=[png_b64],
        type=SubjectType.PRODUCT,
    )


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient(image_response())


@pytest.fixture
def service(test_config: BrandStudioConfig, fake_client: FakeClient) -> GeminiService:
    return GeminiService(test_config, client=fake_client)


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def studio(
    repository: InMemoryRepository,
    service: GeminiService,
    test_config: BrandStudioConfig,
) -> Studio:
    """An empty studio backed by memory and the fake client."""
    return Studio(repository, service, test_config)


@pytest.fixture
def onboarded_studio(
    studio: Studio,
    user_profile: EntityProfile,
    watch: EntityProfile,
    sneaker: EntityProfile,
) -> Studio:
    """A studio with a user and two products, without going through analysis."""
    studio.state.user = user_profile
    studio.state.products = [watch, sneaker]
    return studio


@pytest.fixture
def test_client(onboarded_studio: Studio) -> Generator[TestClient, None, None]:
    """FastAPI TestClient serving the onboarded studio.

    Used as a context manager so the application lifespan runs.
    """
    with TestClient(create_app(onboarded_studio)) as client:
        yield client
