"""Shared fixtures and fakes for the stylist test-suite."""

from __future__ import annotations

import asyncio
import base64
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional

# Keep test runs from writing a log file into the working directory
os.environ.setdefault("LOG_FILE", "")

import pytest  # noqa: E402

from virtual_stylist.core.images import ItemImage  # noqa: E402
from virtual_stylist.models import OutfitAnalysis, OutfitSuggestion  # noqa: E402

NAVY_BLAZER = "Solid navy wool blazer with notch lapels and two gold buttons"


def analysis_payload() -> Dict[str, Any]:
    return {
        "originalItemDescription": NAVY_BLAZER,
        "suggestions": [
            {
                "category": "Casual",
                "description": "Relaxed weekend look",
                "items": ["White crew-neck tee", "Light-wash jeans", "White sneakers"],
                "stylingTips": "Push the sleeves up for an easy feel.",
            },
            {
                "category": "Business",
                "description": "Sharp office outfit",
                "items": ["Light blue oxford shirt", "Grey trousers", "Brown loafers"],
                "stylingTips": "Match your belt to your shoes.",
            },
            {
                "category": "Night Out",
                "description": "Evening polish",
                "items": ["Black silk camisole", "Black leather trousers", "Gold hoops"],
                "stylingTips": "Drape the blazer over your shoulders.",
            },
        ],
    }


def image_uri(label: str, media_type: str = "image/png") -> str:
    return f"data:{media_type};base64,{base64.b64encode(label.encode()).decode()}"


class FakeGeminiClient:
    """Scripted stand-in for GeminiClient used by session and API tests."""

    def __init__(
        self,
        analysis: Optional[OutfitAnalysis] = None,
        analysis_error: Optional[Exception] = None,
        image_errors: Optional[Dict[str, Exception]] = None,
        edit_errors: Optional[Dict[str, Exception]] = None,
        edit_hook: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.analysis = analysis or OutfitAnalysis.model_validate(analysis_payload())
        self.analysis_error = analysis_error
        self.image_errors = image_errors or {}
        self.edit_errors = edit_errors or {}
        # Awaited while an edit is in flight, before its result is returned
        self.edit_hook = edit_hook
        self.calls: List[tuple] = []
        self.progress: List[str] = []
        self.session = None

    def _record_progress(self) -> None:
        if self.session is not None:
            self.progress.append(self.session.state.progress_message)

    async def analyze_item_and_suggest_outfits(self, image_b64: str, media_type: str):
        self.calls.append(("analyze", media_type))
        self._record_progress()
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.analysis

    async def generate_outfit_image(self, item_description: str, suggestion: OutfitSuggestion):
        category = suggestion.category.value
        self.calls.append(("generate", category))
        self._record_progress()
        if category in self.image_errors:
            raise self.image_errors[category]
        return image_uri(f"flat-lay {category}")

    async def edit_outfit_image(self, current_image: str, instruction: str):
        self.calls.append(("edit", current_image, instruction))
        await asyncio.sleep(0)
        if self.edit_hook is not None:
            await self.edit_hook()
        if instruction in self.edit_errors:
            raise self.edit_errors[instruction]
        return image_uri(f"{current_image} + {instruction}")

    async def aclose(self) -> None:
        return None


@pytest.fixture
def blazer_image() -> ItemImage:
    return ItemImage(data=b"\xff\xd8\xff\xe0navy-blazer", media_type="image/jpeg")


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()
