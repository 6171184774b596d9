from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# A single cell value once a record has been ingested.
Scalar = Union[str, int, float, bool, None]
Record = Dict[str, Scalar]

ColumnType = Literal["string", "number", "date", "boolean"]
AggregationType = Literal["sum", "avg", "count"]
ChartType = Literal["bar", "line", "pie"]
SpecChartType = Literal["bar", "line", "pie", "area", "scatter"]
DisplayType = Literal["number", "chart", "table"]


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColumnDescriptor(BaseModel):
    """Represents metadata for a single column."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    sample: str = ""


class Dataset(BaseModel):
    """
    Represents an ingested dataset held by the DatasetStore.
    Rows only carry keys that appear in the schema.
    """
    id: str
    name: str
    rows: List[Record]
    schema_: List[ColumnDescriptor] = Field(alias="schema")
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class QueryIntent(CamelModel):
    """Structured interpretation of a natural-language question."""
    sql: str = ""
    aggregation_type: AggregationType = "count"
    group_by_field: str = ""
    aggregate_field: str = ""
    chart_type: ChartType = "bar"

    @field_validator("sql", mode="before")
    @classmethod
    def _blank_sql(cls, v):
        return str(v).strip() if v else ""

    @field_validator("aggregation_type", mode="before")
    @classmethod
    def _default_aggregation(cls, v):
        return str(v).strip().lower() if v else "count"

    @field_validator("chart_type", mode="before")
    @classmethod
    def _default_chart(cls, v):
        return str(v).strip().lower() if v else "bar"

    @field_validator("group_by_field", "aggregate_field", mode="before")
    @classmethod
    def _blank_field(cls, v):
        return str(v).strip() if v else ""

    @property
    def is_grouped(self) -> bool:
        return bool(self.group_by_field)


class AggregationGroup(BaseModel):
    key: str
    sum: float = 0.0
    count: int = 0


class AnalysisResult(CamelModel):
    data: List[Dict[str, Any]]
    sql: str
    display_type: DisplayType
    explanations: Optional[str] = None


class ChartConfig(CamelModel):
    """Input for the fixed bar/line/pie chart primitives."""
    type: SpecChartType = "bar"
    x_field: str
    y_field: str


class ChartSpec(CamelModel):
    """Declarative chart description returned by the chart generator."""
    chart_type: SpecChartType = "bar"
    x_field: str
    y_field: str
    title: str = ""
    colors: List[str] = Field(default_factory=list, max_length=12)
    show_legend: bool = True

    @field_validator("chart_type", mode="before")
    @classmethod
    def _lower_chart(cls, v):
        return str(v).strip().lower() if v else "bar"

    @field_validator("colors")
    @classmethod
    def _hex_colors(cls, v: List[str]) -> List[str]:
        for colour in v:
            if not (colour.startswith("#") and len(colour) in (4, 7)):
                raise ValueError(f"Colour must be a hex string, got {colour!r}")
        return v


class ChartCodeResult(BaseModel):
    success: bool
    code: Optional[str] = None
    spec: Optional[ChartSpec] = None
    error: Optional[str] = None


class IntentOutcome(BaseModel):
    """What one resolver tier produced."""
    resolver: str
    success: bool
    intent: Optional[QueryIntent] = None
    error: Optional[str] = None


class IntentResolution(BaseModel):
    """Final intent plus the tiers that failed on the way to it."""
    intent: QueryIntent
    resolver: str
    failures: List[IntentOutcome] = Field(default_factory=list)


# --- Result filters ---

class CategoryFilter(CamelModel):
    column: str
    type: Literal["category"] = "category"
    selected_values: List[str] = Field(default_factory=list)
    available_values: List[str] = Field(default_factory=list)


class DateFilter(CamelModel):
    column: str
    type: Literal["date"] = "date"
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    min_date: Optional[str] = None
    max_date: Optional[str] = None


class NumericFilter(CamelModel):
    column: str
    type: Literal["numeric"] = "numeric"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    range_min: Optional[float] = None
    range_max: Optional[float] = None


ResultFilter = Annotated[
    Union[CategoryFilter, DateFilter, NumericFilter], Field(discriminator="type")
]
