"""Run orchestration for outfit analysis, rendering and per-card edits."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from virtual_stylist.config import DEFAULT_MAX_SESSIONS, logger
from virtual_stylist.core.errors import EditInProgressError
from virtual_stylist.core.gemini import GeminiClient
from virtual_stylist.core.images import ItemImage
from virtual_stylist.core.outcomes import CallOutcome, capture
from virtual_stylist.models import GeneratedOutfit

ANALYZING_MESSAGE = "Analyzing your style pieces..."
VISUALIZING_MESSAGE = "Visualizing {category} outfit..."
RUN_FAILURE_MESSAGE = "Failed to analyze your item. Please try again with a different photo."
EDIT_FAILURE_MESSAGE = "Something went wrong while editing. Please try again."


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


class RunStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class RunState:
    """Snapshot of the current run. Replaced, never mutated."""

    run_id: Optional[str] = None
    status: RunStatus = RunStatus.IDLE
    selected_image: Optional[ItemImage] = None
    progress_message: str = ""
    item_description: Optional[str] = None
    outfits: Tuple[GeneratedOutfit, ...] = ()
    error: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self.status is RunStatus.PROCESSING


# -------------------------
# Events
# -------------------------
@dataclass(frozen=True)
class RunStarted:
    run_id: str
    image: ItemImage


@dataclass(frozen=True)
class ProgressUpdated:
    run_id: str
    message: str


@dataclass(frozen=True)
class RunCompleted:
    run_id: str
    item_description: str
    outfits: Tuple[GeneratedOutfit, ...]


@dataclass(frozen=True)
class RunFailed:
    run_id: str
    error: str


@dataclass(frozen=True)
class OutfitImageReplaced:
    run_id: str
    index: int
    image_url: str


RunEvent = Union[RunStarted, ProgressUpdated, RunCompleted, RunFailed, OutfitImageReplaced]


def transition(state: RunState, event: RunEvent) -> RunState:
    """
    Apply one event to a run state and return the next state.

    A new upload always starts a fresh run. Every other event is ignored
    unless it belongs to the current run and the current status accepts it.
    """
    if isinstance(event, RunStarted):
        return RunState(
            run_id=event.run_id,
            status=RunStatus.PROCESSING,
            selected_image=event.image,
        )

    if not isinstance(event, (ProgressUpdated, RunCompleted, RunFailed, OutfitImageReplaced)):
        raise TypeError(f"Unknown run event: {event!r}")

    if event.run_id != state.run_id:
        return state

    if isinstance(event, ProgressUpdated):
        if state.status is not RunStatus.PROCESSING:
            return state
        return replace(state, progress_message=event.message)

    if isinstance(event, RunCompleted):
        if state.status is not RunStatus.PROCESSING:
            return state
        return replace(
            state,
            status=RunStatus.READY,
            progress_message="",
            item_description=event.item_description,
            outfits=tuple(event.outfits),
            error=None,
        )

    if isinstance(event, RunFailed):
        if state.status is not RunStatus.PROCESSING:
            return state
        # Failed is idle-equivalent: nothing from the aborted run is kept
        return RunState(run_id=state.run_id, status=RunStatus.FAILED, error=event.error)

    # OutfitImageReplaced
    if state.status is not RunStatus.READY:
        return state
    if not 0 <= event.index < len(state.outfits):
        return state
    outfits = list(state.outfits)
    outfits[event.index] = outfits[event.index].model_copy(
        update={"image_url": event.image_url}
    )
    return replace(state, outfits=tuple(outfits))


@dataclass(frozen=True)
class FailureNotice:
    """A user-facing failure message, scoped to the run or to one card."""

    scope: str
    message: str
    run_id: Optional[str] = None
    card_index: Optional[int] = None


NoticeCallback = Callable[[FailureNotice], None]


@dataclass
class StylistSession:
    """
    One user's in-memory styling session.

    Runs are serialized per session: submitting a new item cancels the
    previous run's task, and the run id carried by every event keeps late
    responses of a superseded run from touching the new state.
    """

    client: GeminiClient
    session_id: str = "default"
    on_notice: Optional[NoticeCallback] = None
    state: RunState = field(default_factory=RunState)
    notices: List[FailureNotice] = field(default_factory=list)
    _editing: Set[Tuple[str, int]] = field(default_factory=set, repr=False)
    _task: Optional[asyncio.Task] = field(default=None, repr=False)

    def dispatch(self, event: RunEvent) -> RunState:
        self.state = transition(self.state, event)
        return self.state

    def is_editing(self, index: int) -> bool:
        return (self.state.run_id, index) in self._editing

    def submit_item(self, image: ItemImage) -> str:
        """Start a fresh run for a newly uploaded item. Must be called inside a running loop."""

        run_id = uuid.uuid4().hex
        previous = self._task
        if previous is not None and not previous.done():
            previous.cancel()
            _log(
                logging.INFO,
                "run_superseded",
                session_id=self.session_id,
                previous_run_id=self.state.run_id,
                run_id=run_id,
            )

        self._editing.clear()
        self.notices.clear()
        self.dispatch(RunStarted(run_id=run_id, image=image))
        self._task = asyncio.create_task(self.run_pipeline(run_id, image))

        _log(
            logging.INFO,
            "run_started",
            session_id=self.session_id,
            run_id=run_id,
            media_type=image.media_type,
            size_bytes=len(image.data),
        )
        return run_id

    async def run_pipeline(self, run_id: str, image: ItemImage) -> bool:
        """Analyze the item then render every suggestion, one at a time.

        Returns True when the run published its outfits.
        """
        self.dispatch(ProgressUpdated(run_id=run_id, message=ANALYZING_MESSAGE))
        analysis_outcome = await capture(
            self.client.analyze_item_and_suggest_outfits(image.b64, image.media_type)
        )
        if not analysis_outcome.success:
            self._fail_run(run_id, "analysis", analysis_outcome)
            return False

        analysis = analysis_outcome.value
        generated: List[GeneratedOutfit] = []
        for suggestion in analysis.suggestions:
            self.dispatch(
                ProgressUpdated(
                    run_id=run_id,
                    message=VISUALIZING_MESSAGE.format(category=suggestion.category.value),
                )
            )
            image_outcome = await capture(
                self.client.generate_outfit_image(analysis.item_description, suggestion)
            )
            if not image_outcome.success:
                self._fail_run(run_id, f"image:{suggestion.category.value}", image_outcome)
                return False

            generated.append(
                GeneratedOutfit(
                    category=suggestion.category,
                    image_url=image_outcome.value,
                    suggestion=suggestion,
                )
            )
            _log(
                logging.INFO,
                "outfit_image_generated",
                run_id=run_id,
                category=suggestion.category.value,
                image_chars=len(image_outcome.value),
            )

        self.dispatch(
            RunCompleted(
                run_id=run_id,
                item_description=analysis.item_description,
                outfits=tuple(generated),
            )
        )
        _log(logging.INFO, "run_completed", run_id=run_id, outfits=len(generated))
        return self.state.run_id == run_id

    def _fail_run(self, run_id: str, stage: str, outcome: CallOutcome) -> None:
        _log(
            logging.ERROR,
            "run_failed",
            session_id=self.session_id,
            run_id=run_id,
            stage=stage,
            error_kind=outcome.error_kind,
            error=outcome.error_message,
        )
        if self.state.run_id != run_id:
            return
        self.dispatch(RunFailed(run_id=run_id, error=outcome.error_message or stage))
        self._raise_notice(FailureNotice(scope="run", message=RUN_FAILURE_MESSAGE, run_id=run_id))

    async def edit_outfit(self, index: int, instruction: str) -> CallOutcome[str]:
        """
        Edit one card's image from a text instruction.

        Raises:
            ValueError: If the instruction is blank
            IndexError: If no displayed card has this index
            EditInProgressError: If the card is already being edited
        """
        prompt = (instruction or "").strip()
        if not prompt:
            raise ValueError("Edit instruction must not be empty")

        state = self.state
        if state.status is not RunStatus.READY or not 0 <= index < len(state.outfits):
            raise IndexError(f"No outfit card at index {index}")

        run_id = state.run_id
        key = (run_id, index)
        if key in self._editing:
            raise EditInProgressError(f"Outfit card {index} is already being edited")

        self._editing.add(key)
        _log(logging.INFO, "edit_started", run_id=run_id, index=index, instruction=prompt)
        try:
            outcome = await capture(
                self.client.edit_outfit_image(state.outfits[index].image_url, prompt)
            )
        finally:
            self._editing.discard(key)

        if outcome.success:
            self.dispatch(OutfitImageReplaced(run_id=run_id, index=index, image_url=outcome.value))
            _log(logging.INFO, "edit_completed", run_id=run_id, index=index)
            return outcome

        _log(
            logging.ERROR,
            "edit_failed",
            run_id=run_id,
            index=index,
            error_kind=outcome.error_kind,
            error=outcome.error_message,
        )
        if self.state.run_id == run_id:
            self._raise_notice(
                FailureNotice(
                    scope="card",
                    message=EDIT_FAILURE_MESSAGE,
                    run_id=run_id,
                    card_index=index,
                )
            )
        return outcome

    def _raise_notice(self, notice: FailureNotice) -> None:
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    def run_notice(self, run_id: str) -> Optional[FailureNotice]:
        """Return the run-scoped notice raised for ``run_id``, if any."""
        for notice in reversed(self.notices):
            if notice.scope == "run" and notice.run_id == run_id:
                return notice
        return None

    async def wait(self) -> RunState:
        """Wait for the current run to settle and return the resulting state."""
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.state

    async def close(self) -> None:
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


class SessionRegistry:
    """In-memory sessions keyed by caller-provided session id.

    At most ``max_sessions`` are kept; the least recently used session is
    closed and dropped when a new one would exceed the limit.
    """

    def __init__(self, client: GeminiClient, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.client = client
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, StylistSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def get(self, session_id: str) -> StylistSession:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session

        while len(self._sessions) >= self.max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            await evicted.close()
            _log(logging.INFO, "session_evicted", session_id=evicted_id)

        session = StylistSession(client=self.client, session_id=session_id)
        self._sessions[session_id] = session
        _log(logging.DEBUG, "session_created", session_id=session_id)
        return session

    async def close(self) -> None:
        for session in self._sessions.values():
            await session.close()
        self._sessions.clear()


__all__ = [
    "ANALYZING_MESSAGE",
    "VISUALIZING_MESSAGE",
    "RUN_FAILURE_MESSAGE",
    "EDIT_FAILURE_MESSAGE",
    "RunStatus",
    "RunState",
    "RunStarted",
    "ProgressUpdated",
    "RunCompleted",
    "RunFailed",
    "OutfitImageReplaced",
    "transition",
    "FailureNotice",
    "StylistSession",
    "SessionRegistry",
]
