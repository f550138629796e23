"""Core functionality for Brand Studio.

Architecture Overview
---------------------
1. **Configuration** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with BRANDSTUDIO_ in .env files

2. **Generation client** (gemini_service.py, prompt_assembly.py,
   references.py, retry.py):
   - Reference label assignment as a pure function
   - Images-first, text-last request assembly
   - Fixed-delay retry around request + image extraction
   - Best-effort prompt refinement and suggestions

3. **Studio session** (studio.py):
   - Onboarding, profile edits, gallery, liked-prompt memory

4. **Persistence** (repository.py):
   - Storage-independent snapshot repository with a quota fallback

Usage Example
-------------
    from brandstudio.core import (
        GeminiService, GenerationMode, JsonFileRepository, Studio, config,
    )

    studio = Studio(
        JsonFileRepository(config.state_path, max_bytes=config.storage_quota_bytes),
        GeminiService(config),
        config,
    )
    image = await studio.generate("Rooftop at dusk", GenerationMode.COMBINED, [product_id])
"""

from brandstudio.core.config import BrandStudioConfig, config
from brandstudio.core.gemini_service import GeminiService
from brandstudio.core.models import (
    EntityProfile,
    Feedback,
    GeneratedImage,
    GenerationMode,
    StudioState,
    SubjectType,
)
from brandstudio.core.repository import InMemoryRepository, JsonFileRepository
from brandstudio.core.studio import Studio

__all__ = [
    "BrandStudioConfig",
    "config",
    "EntityProfile",
    "Feedback",
    "GeneratedImage",
    "GenerationMode",
    "GeminiService",
    "InMemoryRepository",
    "JsonFileRepository",
    "Studio",
    "StudioState",
    "SubjectType",
]
