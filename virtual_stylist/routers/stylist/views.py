"""Turn session state into the view models returned by the router."""

from virtual_stylist.core.images import UPLOAD_HINT
from virtual_stylist.models import GeneratedOutfit
from virtual_stylist.services.stylist_session import RunStatus, StylistSession

from .models import NoticeView, OutfitCardView, SessionView


def view_name(status: RunStatus, outfit_count: int) -> str:
    if status is RunStatus.PROCESSING:
        return "processing"
    if status is RunStatus.READY and outfit_count > 0:
        return "results"
    return "upload"


def build_card(session: StylistSession, index: int, outfit: GeneratedOutfit) -> OutfitCardView:
    suggestion = outfit.suggestion
    return OutfitCardView(
        index=index,
        category=outfit.category.value,
        description=suggestion.description,
        items=list(suggestion.items),
        styling_tips=suggestion.styling_tips,
        image_url=outfit.image_url,
        is_editing=session.is_editing(index),
    )


def build_session_view(session: StylistSession) -> SessionView:
    state = session.state
    selected = state.selected_image.data_uri if state.selected_image else None

    return SessionView(
        view=view_name(state.status, len(state.outfits)),
        status=state.status.value,
        run_id=state.run_id,
        progress_message=state.progress_message,
        selected_image=selected,
        item_description=state.item_description,
        outfits=[build_card(session, idx, outfit) for idx, outfit in enumerate(state.outfits)],
        notices=[
            NoticeView(
                scope=notice.scope,
                message=notice.message,
                run_id=notice.run_id,
                card_index=notice.card_index,
            )
            for notice in session.notices
        ],
        upload_hint=UPLOAD_HINT,
    )
