"""
DSPy Module for turning free text into book requirements.
"""

from typing import Optional

import dspy

from ..briefs import merge_brief_drafts
from ..types import BriefDraft
from ..signatures.requirements import RequirementsSignature
from .structured_output import StructuredOutput, to_prompt_json


class RequirementsExtractor(dspy.Module):
    """
    Extract a BriefDraft from what the user wrote.

    Extraction is partial: fields the user never mentioned stay empty, and a
    draft passed as `current` is merged with the new extraction.
    """

    def __init__(self):
        super().__init__()
        self.extract = dspy.ChainOfThought(RequirementsSignature)
        self.output = StructuredOutput()

    def forward(self, raw_text: str, current: Optional[BriefDraft] = None) -> BriefDraft:
        result = self.extract(
            raw_text=raw_text,
            current_brief=to_prompt_json(current or BriefDraft()),
        )
        extracted = self.output(BriefDraft, result.brief_json, target="brief")
        if current is None:
            return extracted
        return merge_brief_drafts(current, extracted)
