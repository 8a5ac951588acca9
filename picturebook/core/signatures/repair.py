"""
DSPy Signature for repairing model output that failed validation.
"""

import dspy


class RepairJsonSignature(dspy.Signature):
    """
    Fix JSON that failed to parse or failed schema validation.

    Change only what the error points at. Keep every other value as written.
    """

    target: str = dspy.InputField(desc="Name of the record the JSON should describe")
    invalid_json: str = dspy.InputField(desc="The output that failed")
    error: str = dspy.InputField(desc="The parse or validation error")
    schema_notes: str = dspy.InputField(desc="Extra constraints on the schema, or 'none'")

    repaired_json: str = dspy.OutputField(desc="The corrected JSON. Return ONLY the JSON.")
