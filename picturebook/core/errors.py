"""Exception hierarchy for the book pipeline."""

from pathlib import Path
from typing import Optional


class PicturebookError(Exception):
    """Base class for all pipeline errors."""


class FieldCollisionError(AssertionError):
    """A stage tried to add a field the previous record already has.

    This is a programming error, so it subclasses AssertionError and is never
    caught by the pipeline.
    """

    def __init__(self, field_name: str, record_type: str):
        self.field_name = field_name
        self.record_type = record_type
        super().__init__(f"Field '{field_name}' already exists on {record_type}; stages must not overwrite")


class IncompleteBriefError(PicturebookError):
    """Extracted requirements are missing required brief fields."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(f"Brief is missing required fields: {', '.join(missing_fields)}")


class PageGenerationError(PicturebookError):
    """A per-page generation call failed; earlier pages are already kept."""

    def __init__(self, page_number: int, completed_pages: int):
        self.page_number = page_number
        self.completed_pages = completed_pages
        super().__init__(f"Generation failed on page {page_number} ({completed_pages} pages completed)")


class StageFailedError(PicturebookError):
    """A pipeline stage failed. Carries enough context to resume precisely."""

    def __init__(self, stage: str, page_number: Optional[int] = None):
        self.stage = stage
        self.page_number = page_number
        where = f"stage '{stage}'"
        if page_number is not None:
            where += f" at page {page_number}"
        super().__init__(f"Pipeline stopped in {where}")


# =============================================================================
# Resume errors
# =============================================================================


class ResumeError(PicturebookError):
    """Base class for errors reading a story folder back."""


class NoResumableArtifactError(ResumeError):
    def __init__(self, folder: Path):
        self.folder = folder
        super().__init__(f"No resumable artifacts found in {folder}")


class AmbiguousArtifactError(ResumeError):
    """A legacy artifact cannot be mapped to exactly one stage."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot determine stage of {path}: {reason}")


class ArtifactFormatError(ResumeError):
    """An artifact exists but does not match its expected schema."""

    def __init__(self, path: Path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid artifact {path}: {detail}")
