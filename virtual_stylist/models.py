"""Pydantic models describing outfit suggestions and generated outfits."""

from __future__ import annotations

import re
from enum import Enum
from typing import List

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class OutfitCategory(str, Enum):
    """The three fixed occasions every analysis must cover."""

    CASUAL = "Casual"
    BUSINESS = "Business"
    NIGHT_OUT = "Night Out"

    @classmethod
    def _missing_(cls, value: object) -> "OutfitCategory | None":
        # Accept "NightOut", "night out", "night_out" and friends
        if not isinstance(value, str):
            return None
        key = re.sub(r"[\s_\-]+", "", value).lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == key:
                return member
        return None


class OutfitSuggestion(BaseModel):
    """A textual outfit recommendation prior to image rendering."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: OutfitCategory
    description: str
    items: List[str] = Field(default_factory=list)
    styling_tips: str = Field(..., alias="stylingTips")

    @field_validator("category", mode="before")
    @classmethod
    def _normalise_category(cls, value):
        if isinstance(value, str):
            try:
                return OutfitCategory(value.strip())
            except ValueError:
                return value
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _split_item_string(cls, value):
        if isinstance(value, str):
            return [piece.strip() for piece in value.split(",") if piece.strip()]
        return value


class OutfitAnalysis(BaseModel):
    """Structured result of the analysis call."""

    model_config = ConfigDict(populate_by_name=True)

    item_description: str = Field(
        ...,
        validation_alias=AliasChoices(
            "originalItemDescription", "itemDescription", "item_description"
        ),
        serialization_alias="originalItemDescription",
    )
    suggestions: List[OutfitSuggestion]

    @model_validator(mode="after")
    def _check_categories(self) -> "OutfitAnalysis":
        categories = [suggestion.category for suggestion in self.suggestions]
        if len(categories) != len(OutfitCategory) or set(categories) != set(
            OutfitCategory
        ):
            raise ValueError(
                "Analysis must contain exactly one suggestion per category "
                f"({', '.join(c.value for c in OutfitCategory)}); "
                f"got {[c.value for c in categories]}"
            )
        return self


class GeneratedOutfit(BaseModel):
    """An outfit card: a suggestion paired with its rendered image."""

    category: OutfitCategory
    image_url: str = Field(..., description="Data URI of the current outfit image")
    suggestion: OutfitSuggestion


__all__ = [
    "OutfitCategory",
    "OutfitSuggestion",
    "OutfitAnalysis",
    "GeneratedOutfit",
]
