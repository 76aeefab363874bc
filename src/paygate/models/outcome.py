"""Dispatch outcome model."""

from dataclasses import dataclass

from .enums import OutcomeKind


@dataclass(frozen=True)
class Outcome:
    """What a handler decided about an event.

    Construct with the named constructors rather than directly:

        Outcome.processed()
        Outcome.acknowledged("duplicate, already processed")
        Outcome.ignored("not paid")
        Outcome.rejected("missing customer email")
    """

    kind: OutcomeKind
    message: str

    @classmethod
    def processed(cls, message: str = "processed") -> "Outcome":
        return cls(OutcomeKind.PROCESSED, message)

    @classmethod
    def acknowledged(cls, message: str) -> "Outcome":
        return cls(OutcomeKind.ACKNOWLEDGED, message)

    @classmethod
    def ignored(cls, message: str) -> "Outcome":
        return cls(OutcomeKind.IGNORED, message)

    @classmethod
    def rejected(cls, message: str) -> "Outcome":
        return cls(OutcomeKind.REJECTED, message)
