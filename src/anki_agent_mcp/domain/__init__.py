"""Domain model for deck presets and card submissions."""

from .presets import SUPPORTED_NOTE_TYPES, DeckInfo, DeckPreset, NoteType
from .submission import (
    BACK_FIELD,
    FRONT_FIELD,
    Cancelled,
    CardPreview,
    ConfirmationDecision,
    Created,
    DuplicateCandidate,
    PendingSubmission,
    PreviewField,
    Rejected,
    SubmissionOutcome,
    SubmissionRequest,
    SubmissionState,
    Updated,
)

__all__ = [
    "BACK_FIELD",
    "FRONT_FIELD",
    "SUPPORTED_NOTE_TYPES",
    "Cancelled",
    "CardPreview",
    "ConfirmationDecision",
    "Created",
    "DeckInfo",
    "DeckPreset",
    "DuplicateCandidate",
    "NoteType",
    "PendingSubmission",
    "PreviewField",
    "Rejected",
    "SubmissionOutcome",
    "SubmissionRequest",
    "SubmissionState",
    "Updated",
]
