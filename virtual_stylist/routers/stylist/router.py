"""FastAPI router for the virtual stylist endpoints."""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from virtual_stylist.config import logger
from virtual_stylist.core.errors import DecodeError, EditInProgressError
from virtual_stylist.core.images import ItemImage
from virtual_stylist.services.stylist_session import (
    EDIT_FAILURE_MESSAGE,
    RunStatus,
    StylistSession,
)

from .dependencies import get_session
from .models import EditRequest, OutfitCardView, RunAcceptedResponse, SessionView
from .views import build_card, build_session_view

router = APIRouter(prefix="/api/v1", tags=["Virtual Stylist"])


@router.post("/items", response_model=RunAcceptedResponse)
async def upload_item(
    item_image: UploadFile = File(..., description="Photo of the clothing item"),
    wait: bool = Query(False, description="Block until the run has finished"),
    session: StylistSession = Depends(get_session),
) -> RunAcceptedResponse:
    """Accept a new item photo and start a fresh styling run."""

    try:
        data = await item_image.read()
        image = ItemImage.from_upload(data, item_image.content_type)
    except DecodeError as exc:
        logger.warning(f"Rejected unreadable upload: {exc}")
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info(
        "Item upload received",
        extra={
            "session_id": session.session_id,
            "media_type": image.media_type,
            "size_bytes": len(image.data),
        },
    )

    run_id = session.submit_item(image)

    if not wait:
        return RunAcceptedResponse(
            success=True,
            run_id=run_id,
            status=RunStatus.PROCESSING.value,
            message="Item accepted. Your outfits are being styled.",
        )

    state = await session.wait()
    succeeded = state.run_id == run_id and state.status is RunStatus.READY
    notice = session.run_notice(run_id)
    return RunAcceptedResponse(
        success=succeeded,
        run_id=run_id,
        status=state.status.value if state.run_id == run_id else "superseded",
        message=(
            f"{len(state.outfits)} outfits ready."
            if succeeded
            else (notice.message if notice is not None else "Run did not complete.")
        ),
    )


@router.get("/session", response_model=SessionView)
async def get_session_view(
    session: StylistSession = Depends(get_session),
) -> SessionView:
    """Return the state the upload, processing and results views render from."""

    return build_session_view(session)


@router.post("/outfits/{index}/edit", response_model=OutfitCardView)
async def edit_outfit(
    index: int,
    payload: EditRequest,
    session: StylistSession = Depends(get_session),
) -> OutfitCardView:
    """Edit one outfit image from a text instruction."""

    run_id = session.state.run_id
    try:
        outcome = await session.edit_outfit(index, payload.instruction)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except EditInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    if not outcome.success:
        raise HTTPException(status_code=502, detail=EDIT_FAILURE_MESSAGE)

    state = session.state
    if state.run_id != run_id:
        # The run was replaced while the edit was in flight
        raise HTTPException(status_code=409, detail="The outfit was replaced by a newer run")
    return build_card(session, index, state.outfits[index])


@router.get("/health")
async def health_check() -> dict:
    """Simple health check endpoint."""

    return {
        "status": "healthy",
        "service": "virtual-stylist-api",
        "version": "1.0.0",
    }
