"""
Error models for the breeding analytics engine.

Errors are plain data, not exceptions: every engine and service function
returns ``Err(<one of these>)`` so the HTTP layer can classify failures
without catching anything. The ``type`` literal is the discriminator.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .enums import BreedingEventType


class ValidationError(BaseModel):
    """Malformed input, or a computed metric outside its valid domain."""

    type: Literal["ValidationError"] = "ValidationError"
    message: str
    field: Optional[str] = Field(default=None, description="Offending input or metric field")


class DataInsufficientError(BaseModel):
    """Nothing to analyze: zero events in the window, or an empty trend series."""

    type: Literal["DataInsufficientError"] = "DataInsufficientError"
    message: str
    required_data: list[str] = Field(default_factory=list)


class PeriodError(BaseModel):
    """Start period is chronologically after the end period."""

    type: Literal["PeriodError"] = "PeriodError"
    message: str
    invalid_period: Optional[str] = Field(default=None, description="Offending range label")


class CalculationError(BaseModel):
    """An arithmetic invariant was violated during aggregation."""

    type: Literal["CalculationError"] = "CalculationError"
    message: str
    cause: Optional[str] = None


class MetricError(BaseModel):
    """A built metric value violates its bounds."""

    type: Literal["MetricError"] = "MetricError"
    message: str
    metric_type: Optional[str] = None
    value: Optional[float] = None


class InfraError(BaseModel):
    """The external data source failed. ``cause`` is opaque and never serialized."""

    type: Literal["InfraError"] = "InfraError"
    message: str
    cause: Optional[Any] = Field(default=None, exclude=True)


KpiError = Annotated[
    Union[
        ValidationError,
        DataInsufficientError,
        PeriodError,
        CalculationError,
        MetricError,
        InfraError,
    ],
    Field(discriminator="type"),
]

# Data categories a breeding-metrics window needs; reported when it is empty.
REQUIRED_BREEDING_DATA = [
    BreedingEventType.INSEMINATION.value,
    BreedingEventType.CALVING.value,
    BreedingEventType.PREGNANCY_CHECK.value,
]
