"""Hypothesis input model handed to the coordinator."""

from pydantic import BaseModel, Field, field_validator


class Hypothesis(BaseModel):
    """
    A research hypothesis awaiting peer review.

    Example:
        ```python
        hyp = Hypothesis(
            hypothesis_id="hyp_20251017_001",
            statement="NAD+ precursors slow epigenetic aging in mice",
            methodology="Longitudinal cohort with methylation clocks",
            field="aging"
        )
        ```
    """
    hypothesis_id: str = Field(..., min_length=1, description="Unique hypothesis identifier")
    statement: str = Field(..., min_length=1, description="The hypothesis text")
    methodology: str = Field(..., min_length=1, description="Proposed methodology")
    field: str = Field(..., min_length=1, description="Research field (e.g. aging, longevity)")

    @field_validator('hypothesis_id', 'statement', 'methodology', 'field')
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject whitespace-only values."""
        if not v.strip():
            raise ValueError("Value cannot be blank")
        return v.strip()
