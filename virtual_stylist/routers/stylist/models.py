"""Pydantic models used by the stylist router."""

from typing import List, Optional

from pydantic import BaseModel, Field


class RunAcceptedResponse(BaseModel):
    """Response model for an item upload that started a run."""

    success: bool
    run_id: str
    status: str = Field(..., description="Current processing status for the run")
    message: str


class EditRequest(BaseModel):
    """Request payload for editing one outfit image."""

    instruction: str = Field(..., description="Free-text edit, e.g. 'Add retro filter'")


class OutfitCardView(BaseModel):
    """One rendered outfit card."""

    index: int
    category: str
    description: str
    items: List[str] = Field(default_factory=list)
    styling_tips: str
    image_url: str = Field(..., description="Data URI of the current outfit image")
    is_editing: bool = False


class NoticeView(BaseModel):
    """A failure notice raised for the run or for one card."""

    scope: str
    message: str
    run_id: Optional[str] = None
    card_index: Optional[int] = None


class SessionView(BaseModel):
    """Everything the upload, processing and results views need."""

    view: str = Field(..., description="One of 'upload', 'processing' or 'results'")
    status: str
    run_id: Optional[str] = None
    progress_message: str = ""
    selected_image: Optional[str] = Field(
        None, description="Data URI of the uploaded item"
    )
    item_description: Optional[str] = None
    outfits: List[OutfitCardView] = Field(default_factory=list)
    notices: List[NoticeView] = Field(default_factory=list)
    upload_hint: str
