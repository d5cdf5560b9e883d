"""Submission wizard and local draft persistence."""

from .drafts import DraftKeeper, DraftSnapshot, draft_key
from .forms import AuthorInput, SubmissionForm
from .submission import SubmissionOutcome, SubmissionWorkflow, WizardStage

__all__ = [
    "AuthorInput",
    "DraftKeeper",
    "DraftSnapshot",
    "SubmissionForm",
    "SubmissionOutcome",
    "SubmissionWorkflow",
    "WizardStage",
    "draft_key",
]
