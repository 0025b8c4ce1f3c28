"""Prompt templates and builders for the Gemini styling flows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable


# --- ANALYSIS PROMPT ---

ANALYSIS_PROMPT = """Analyze this clothing item in the image.
1. Provide a concise description of the item (color, pattern, material, style).
2. Suggest 3 distinct outfits featuring this exact item for the following categories: Casual, Business, and Night Out.
3. For each outfit, list the complementary pieces (e.g., 'White silk blouse', 'Gold hoop earrings', 'Black leather boots') and provide a brief styling tip.
"""

ANALYSIS_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "originalItemDescription": {"type": "STRING"},
        "suggestions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "category": {
                        "type": "STRING",
                        "enum": ["Casual", "Business", "Night Out"],
                    },
                    "description": {"type": "STRING"},
                    "items": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "stylingTips": {"type": "STRING"},
                },
                "required": ["category", "description", "items", "stylingTips"],
            },
        },
    },
    "required": ["originalItemDescription", "suggestions"],
}


def build_analysis_prompt() -> str:
    """Return the fixed analysis prompt."""
    return ANALYSIS_PROMPT


# --- FLAT-LAY PROMPT ---

FLAT_LAY_PROMPT_TEMPLATE = """A professional high-fashion flat-lay photograph of an outfit on {BACKGROUND}.
The outfit includes: {ITEM_DESCRIPTION} as the central piece, paired with {COMPLEMENTARY_ITEMS}.
{ARRANGEMENT}. {CAMERA_EFFECTS}, no people.
"""


@dataclass(frozen=True)
class PromptDefaults:
    """Default configuration values for flat-lay rendering prompts."""

    background: str = "a clean minimalist light grey background"
    arrangement: str = "Arranged neatly like a magazine spread"
    camera_effects: str = "Sharp focus, studio lighting"
    no_items: str = "no additional pieces"


DEFAULTS = PromptDefaults()


def build_flat_lay_prompt(item_description: str, items: Iterable[str]) -> str:
    """Render the flat-lay prompt for one outfit suggestion."""
    pieces = [item.strip() for item in items if item and item.strip()]

    return FLAT_LAY_PROMPT_TEMPLATE.format(
        BACKGROUND=DEFAULTS.background,
        ITEM_DESCRIPTION=item_description.strip(),
        COMPLEMENTARY_ITEMS=", ".join(pieces) if pieces else DEFAULTS.no_items,
        ARRANGEMENT=DEFAULTS.arrangement,
        CAMERA_EFFECTS=DEFAULTS.camera_effects,
    )


__all__ = [
    "ANALYSIS_PROMPT",
    "ANALYSIS_RESPONSE_SCHEMA",
    "FLAT_LAY_PROMPT_TEMPLATE",
    "DEFAULTS",
    "PromptDefaults",
    "build_analysis_prompt",
    "build_flat_lay_prompt",
]
