from __future__ import annotations
import copy
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, IO, List, Mapping, Optional, Sequence, Tuple, Union

# type aliases used across the code
BinaryInput = Union[bytes, bytearray, IO[bytes]]
Cell = Union[None, str, int, float, bool, datetime, date, time]
Record = Dict[str, Cell]


class ColumnType(str, Enum):
    EMPTY = "empty"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    BOOLEAN = "boolean"
    STRING = "string"


class ChartFamily(str, Enum):
    CATEGORY = "category"
    POINT = "point"
    PROPORTION = "proportion"


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    SCATTER = "scatter"
    PIE = "pie"
    AREA = "area"
    BUBBLE = "bubble"
    RADAR = "radar"
    DOUGHNUT = "doughnut"
    SURFACE_3D = "3d-surface"
    SCATTER_3D = "3d-scatter"
    BAR_3D = "3d-bar"

    @property
    def family(self) -> ChartFamily:
        try:
            return _CHART_FAMILIES[self]
        except KeyError:
            raise ValueError(f"No chart family registered for chart type '{self.value}'") from None

    @property
    def is_3d(self) -> bool:
        return self.value.startswith("3d-")

    @property
    def base_type(self) -> str:
        return self.value[len("3d-"):] if self.is_3d else self.value


_CHART_FAMILIES: Dict[ChartType, ChartFamily] = {
    ChartType.LINE: ChartFamily.CATEGORY,
    ChartType.BAR: ChartFamily.CATEGORY,
    ChartType.AREA: ChartFamily.CATEGORY,
    ChartType.RADAR: ChartFamily.CATEGORY,
    ChartType.SCATTER: ChartFamily.POINT,
    ChartType.BUBBLE: ChartFamily.POINT,
    ChartType.PIE: ChartFamily.PROPORTION,
    ChartType.DOUGHNUT: ChartFamily.PROPORTION,
    ChartType.SURFACE_3D: ChartFamily.CATEGORY,
    ChartType.SCATTER_3D: ChartFamily.POINT,
    ChartType.BAR_3D: ChartFamily.CATEGORY,
}


class Aggregation(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


@dataclass
class RawWorkbook:
    sheet_names: List[str]
    sheets: Dict[str, List[List[Cell]]]
    source_format: str
    bytes_read: int

    def rows(self, sheet_name: str) -> List[List[Cell]]:
        return self.sheets[sheet_name]

    @property
    def total_rows(self) -> int:
        # row 0 of every non-empty sheet is its header
        return sum(max(len(rows) - 1, 0) for rows in self.sheets.values())

    @property
    def total_columns(self) -> int:
        widths = [len(row) for rows in self.sheets.values() for row in rows]
        return max(widths) if widths else 0


@dataclass
class TypedDataset:
    sheet_name: str
    headers: List[str]
    records: List[Record]
    column_types: Dict[str, ColumnType]

    @property
    def row_count(self) -> int:
        return len(self.records)

    def column(self, name: str) -> List[Cell]:
        return [record.get(name) for record in self.records]

    def schema(self) -> List[Dict[str, str]]:
        return [{"name": name, "type": self.column_types[name].value} for name in self.headers]


@dataclass(frozen=True)
class Quartiles:
    q1: Optional[float] = None
    q2: Optional[float] = None
    q3: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"q1": self.q1, "q2": self.q2, "q3": self.q3}


@dataclass(frozen=True)
class ColumnStatistics:
    column: str
    count: int = 0
    sum: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    mode: Union[None, float, List[float]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    range: Optional[float] = None
    variance: Optional[float] = None
    standard_deviation: Optional[float] = None
    quartiles: Quartiles = field(default_factory=Quartiles)
    outliers: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column": self.column,
            "count": self.count,
            "sum": self.sum,
            "mean": self.mean,
            "median": self.median,
            "mode": list(self.mode) if isinstance(self.mode, list) else self.mode,
            "min": self.min,
            "max": self.max,
            "range": self.range,
            "variance": self.variance,
            "standardDeviation": self.standard_deviation,
            "quartiles": self.quartiles.to_dict(),
            "outliers": list(self.outliers),
        }


@dataclass(frozen=True)
class CorrelationResult:
    coefficient: Optional[float]
    strength: str
    significance: Optional[str]
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation": self.coefficient,
            "strength": self.strength,
            "significance": self.significance,
            "sampleSize": self.sample_size,
        }


@dataclass(frozen=True)
class Insight:
    kind: str
    category: str
    message: str
    confidence: float
    column: Optional[str] = None
    columns: Optional[Tuple[str, str]] = None
    data: Any = None
    recommendation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind,
            "category": self.category,
            "message": self.message,
            "confidence": self.confidence,
        }
        if self.column is not None:
            payload["column"] = self.column
        if self.columns is not None:
            payload["columns"] = list(self.columns)
        if self.data is not None:
            payload["data"] = copy.deepcopy(self.data)
        if self.recommendation is not None:
            payload["recommendation"] = self.recommendation
        return payload


@dataclass(frozen=True)
class ChartSeries:
    family: ChartFamily
    datasets: Tuple[Dict[str, Any], ...]
    labels: Optional[Tuple[Any, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.labels is not None:
            payload["labels"] = list(self.labels)
        payload["datasets"] = copy.deepcopy(list(self.datasets))
        return payload

    @property
    def point_count(self) -> int:
        return sum(len(dataset.get("data") or []) for dataset in self.datasets)


@dataclass
class AxisSelection:
    column: str
    label: Optional[str] = None
    data_type: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Union[str, Mapping[str, Any]]) -> "AxisSelection":
        if isinstance(raw, str):
            return cls(column=raw)
        return cls(column=str(raw["column"]), label=raw.get("label"), data_type=raw.get("dataType"))

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "label": self.label, "dataType": self.data_type}


@dataclass
class Customizations:
    title: str = ""
    theme: str = "light"
    show_legend: bool = True
    show_grid: bool = True
    animations: bool = True
    colors: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "Customizations":
        raw = raw or {}
        colors = raw.get("colors")
        return cls(
            title=str(raw.get("title") or ""),
            theme=str(raw.get("theme") or "light"),
            show_legend=bool(raw.get("showLegend", True)),
            show_grid=bool(raw.get("showGrid", True)),
            animations=bool(raw.get("animations", True)),
            colors=list(colors) if colors else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "theme": self.theme,
            "showLegend": self.show_legend,
            "showGrid": self.show_grid,
            "animations": self.animations,
            "colors": list(self.colors) if self.colors else None,
        }


@dataclass
class CleaningOptions:
    remove_nulls: bool = True
    remove_empty_strings: bool = True
    trim_strings: bool = True
    remove_duplicates: bool = False
    convert_types: bool = True

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CleaningOptions":
        return cls(
            remove_nulls=bool(raw.get("removeNulls", True)),
            remove_empty_strings=bool(raw.get("removeEmptyStrings", True)),
            trim_strings=bool(raw.get("trimStrings", True)),
            remove_duplicates=bool(raw.get("removeDuplicates", False)),
            convert_types=bool(raw.get("convertTypes", True)),
        )

    def to_dict(self) -> Dict[str, bool]:
        return {
            "removeNulls": self.remove_nulls,
            "removeEmptyStrings": self.remove_empty_strings,
            "trimStrings": self.trim_strings,
            "removeDuplicates": self.remove_duplicates,
            "convertTypes": self.convert_types,
        }


@dataclass
class ColumnTransformation:
    type: str
    column: str
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ColumnTransformation":
        return cls(type=str(raw["type"]), column=str(raw["column"]), options=dict(raw.get("options") or {}))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "column": self.column, "options": dict(self.options)}


@dataclass
class AnalysisConfiguration:
    selected_sheet: str
    x_axis: AxisSelection
    y_axis: AxisSelection
    chart_type: ChartType
    group_by: Optional[str] = None
    aggregation: Aggregation = Aggregation.SUM
    filters: Dict[str, Any] = field(default_factory=dict)
    customizations: Customizations = field(default_factory=Customizations)
    cleaning: Optional[CleaningOptions] = None
    transformations: List[ColumnTransformation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AnalysisConfiguration":
        cleaning = raw.get("cleaning")
        return cls(
            selected_sheet=str(raw["selectedSheet"]),
            x_axis=AxisSelection.from_dict(raw["xAxis"]),
            y_axis=AxisSelection.from_dict(raw["yAxis"]),
            chart_type=ChartType(raw["chartType"]),
            group_by=raw.get("groupBy") or None,
            aggregation=Aggregation(raw.get("aggregation") or Aggregation.SUM.value),
            filters=dict(raw.get("filters") or {}),
            customizations=Customizations.from_dict(raw.get("customizations")),
            cleaning=CleaningOptions.from_dict(cleaning) if cleaning else None,
            transformations=[ColumnTransformation.from_dict(item) for item in raw.get("transformations") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectedSheet": self.selected_sheet,
            "xAxis": self.x_axis.to_dict(),
            "yAxis": self.y_axis.to_dict(),
            "chartType": self.chart_type.value,
            "groupBy": self.group_by,
            "aggregation": self.aggregation.value,
            "filters": copy.deepcopy(self.filters),
            "customizations": self.customizations.to_dict(),
            "cleaning": self.cleaning.to_dict() if self.cleaning else None,
            "transformations": [item.to_dict() for item in self.transformations],
        }


@dataclass
class AnalysisJob:
    job_id: str
    dataset_ref: str
    configuration: Dict[str, Any]
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    processing_duration_ms: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AnalysisJob":
        return cls(
            job_id=str(record["jobId"]),
            dataset_ref=str(record.get("datasetRef") or ""),
            configuration=dict(record.get("configuration") or {}),
            status=JobStatus(record.get("status") or JobStatus.PENDING.value),
            error=record.get("error"),
            result=record.get("result"),
            processing_duration_ms=record.get("processingDurationMs"),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "jobId": self.job_id,
            "datasetRef": self.dataset_ref,
            "configuration": copy.deepcopy(self.configuration),
            "status": self.status.value,
            "error": self.error,
            "processingDurationMs": self.processing_duration_ms,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        # result is only ever present on completed jobs
        if self.status is JobStatus.COMPLETED and self.result is not None:
            record["result"] = copy.deepcopy(self.result)
        return record


@dataclass
class PipelineResult:
    phases: Dict[str, Dict[str, Any]]
    metrics: Dict[str, Any]
    chart_data: Dict[str, Any]
    chart_config: Dict[str, Any]
    statistics: Dict[str, Any]
    insights: List[Dict[str, Any]]
    profile: Dict[str, Any]
    schema: List[Dict[str, str]] = field(default_factory=list)
