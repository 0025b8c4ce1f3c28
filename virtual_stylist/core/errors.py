"""Error kinds raised by the stylist client and session."""

from typing import Optional


class StylistError(Exception):
    """Base class for recoverable stylist failures."""

    kind = "unexpected"


class DecodeError(StylistError):
    """The uploaded file could not be read as an image."""

    kind = "decode"


class ParseError(StylistError):
    """The analysis response did not match the expected shape."""

    kind = "parse"


class GenerationError(StylistError):
    """A generation or edit response carried no inline image."""

    kind = "generation"


class TransportError(StylistError):
    """The Gemini service or the network failed the request."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EditInProgressError(StylistError):
    """An edit was submitted for a card that is already being edited."""

    kind = "edit_in_progress"


__all__ = [
    "StylistError",
    "DecodeError",
    "ParseError",
    "GenerationError",
    "TransportError",
    "EditInProgressError",
]
