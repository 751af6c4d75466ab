"""Column analysis models."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AnalysisType(str, Enum):
    """Supported column analysis kinds."""

    DISTRIBUTION = "distribution"
    NULLS = "nulls"
    UNIQUE = "unique"
    RANGE = "range"


class ValueDistribution(BaseModel):
    """Frequency of one column value."""

    value: Any = Field(..., description="Column value")
    count: int = Field(..., description="Rows holding the value")
    percentage: float = Field(..., description="Share of non-null rows, 0-100")


class NullAnalysis(BaseModel):
    """NULL ratio of a column."""

    total_rows: int = Field(..., description="Rows in the table")
    null_rows: int = Field(..., description="Rows where the column is NULL")
    null_percentage: float = Field(..., description="null_rows / total_rows * 100")


class UniqueAnalysis(BaseModel):
    """Distinct-value ratio of a column."""

    total_rows: int = Field(..., description="Non-null rows")
    unique_rows: int = Field(..., description="Distinct non-null values")
    unique_percentage: float = Field(
        ..., description="unique_rows / total_rows * 100"
    )


class RangeAnalysis(BaseModel):
    """Value range of a column."""

    min_value: Optional[Union[int, float, str]] = Field(None, description="Minimum")
    max_value: Optional[Union[int, float, str]] = Field(None, description="Maximum")
    avg_value: Optional[float] = Field(None, description="Average (numeric only)")
    standard_deviation: Optional[float] = Field(
        None, description="Population standard deviation (numeric only)"
    )

    @property
    def spread(self) -> Optional[float]:
        """max - min for numeric ranges."""
        if isinstance(self.min_value, (int, float)) and isinstance(
            self.max_value, (int, float)
        ):
            return self.max_value - self.min_value
        return None


class AnalysisResult(BaseModel):
    """Kind-specific results; only the requested kind is populated."""

    distribution: Optional[list[ValueDistribution]] = None
    null_analysis: Optional[NullAnalysis] = None
    unique_analysis: Optional[UniqueAnalysis] = None
    range_analysis: Optional[RangeAnalysis] = None


class ColumnAnalysis(BaseModel):
    """Outcome of analyzing one column."""

    model_config = ConfigDict(use_enum_values=True)

    analysis_type: AnalysisType = Field(..., description="Analysis kind")
    table_name: str = Field(..., description="Analyzed table")
    column_name: str = Field(..., description="Analyzed column")
    result: AnalysisResult = Field(..., description="Kind-specific result")
    timestamp: str = Field(..., description="Analysis time (ISO)")
