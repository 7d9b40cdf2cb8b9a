"""
Error types shared by the QA and synthesis pipelines.

Callers distinguish three situations by class:
- bad input (InputValidationError)
- nothing usable was found (PolicyError subclasses)
- a collaborator broke (UpstreamError, carrying the failing stage)
"""

from typing import Optional


class MedlitError(Exception):
    """Base class for all medlit errors."""


class InputValidationError(MedlitError, ValueError):
    """Raised before any work is done when arguments are missing or invalid."""


class UpstreamError(MedlitError):
    """A search, fetch or generation call failed."""

    def __init__(self, stage: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{stage} failed{detail}")


class PolicyError(MedlitError):
    """The pipeline ran but produced nothing it is allowed to return."""


class NoDocumentsFoundError(PolicyError):
    pass


class NoRelevantDocumentsError(PolicyError):
    pass


class TermNotFoundError(PolicyError):
    """A controlled-vocabulary lookup matched nothing."""


class OperationCancelled(MedlitError):
    """The caller cancelled the call while it was in progress."""


class DeadlineExceeded(OperationCancelled):
    pass


class EUtilsError(MedlitError):
    """NCBI E-utilities request failed."""


class RateLimitError(EUtilsError):
    pass


class UnsafePromptError(InputValidationError):
    """Prompt rejected by the sanitizer."""


class PromptLengthError(UnsafePromptError):
    pass


class ShellMetacharError(UnsafePromptError):
    pass


class PromptInjectionError(UnsafePromptError):
    pass


class DisallowedURLError(UnsafePromptError):
    pass
