"""
Helpers for turning partially extracted requirements into a Brief.

Requirements extraction can return a partial draft (the user may not have
mentioned a setting yet). Drafts merge field by field, and a draft becomes a
Brief only once every required field is filled.
"""

from pydantic import ValidationError

from .errors import IncompleteBriefError
from .types import Brief, BriefDraft

REQUIRED_BRIEF_FIELDS = ["title", "story_arc", "setting", "age_range", "characters"]

# Applied when the user gave no age range
DEFAULT_AGE_RANGE = {"min": 4, "max": 7}


def _is_empty(value) -> bool:
    return value is None or (isinstance(value, (list, str)) and len(value) == 0)


def merge_brief_drafts(base: BriefDraft, update: BriefDraft) -> BriefDraft:
    """Fields set in `update` win; empty values in `update` never erase `base`."""
    values = {name: getattr(base, name) for name in BriefDraft.model_fields}
    for name in BriefDraft.model_fields:
        value = getattr(update, name)
        if not _is_empty(value):
            values[name] = value
    return BriefDraft(**values)


def missing_required_fields(draft: BriefDraft) -> list[str]:
    return [name for name in REQUIRED_BRIEF_FIELDS if _is_empty(getattr(draft, name))]


def complete_brief(draft: BriefDraft, default_age_range: bool = True) -> Brief:
    """
    Validate a draft into a Brief.

    Raises:
        IncompleteBriefError: a required field is still missing or invalid
    """
    if default_age_range and draft.age_range is None:
        draft = merge_brief_drafts(draft, BriefDraft(age_range=DEFAULT_AGE_RANGE))

    missing = missing_required_fields(draft)
    if missing:
        raise IncompleteBriefError(missing)

    values = {name: value for name, value in draft if value is not None}
    try:
        return Brief(**values)
    except ValidationError as e:
        invalid = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
        raise IncompleteBriefError(invalid) from e
