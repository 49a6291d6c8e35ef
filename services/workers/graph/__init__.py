"""Spreadsheet analysis pipeline: decoding, typing, statistics, insights and chart shaping."""
from .app import build_graph, run_pipeline
from .core.errors import AnalysisError, DecodeError, JobNotFoundError, SheetNotFoundError
from .core.types import (
    Aggregation, AnalysisConfiguration, AnalysisJob, ChartFamily, ChartSeries, ChartType, ColumnStatistics,
    ColumnType, CorrelationResult, Insight, JobStatus, PipelineResult, RawWorkbook, TypedDataset,
)
from .io.clean import clean_records, transform_records
from .io.ingest import decode_workbook
from .io.schema import build_typed_dataset, infer_column_type, select_sheet
from .nodes.chart import process_data_for_chart, transform_for_chart
from .nodes.chart_config import (
    build_3d_chart_config, build_chart_config, generate_colors, get_color_palette, optimize_chart_config,
    validate_chart_data,
)
from .nodes.descriptive import compute_skewness, compute_statistics
from .nodes.insights import generate_insights, rank_insights
from .nodes.profile import get_sample_data
from .nodes.relationships import compute_correlation

__all__ = [
    "Aggregation",
    "AnalysisConfiguration",
    "AnalysisError",
    "AnalysisJob",
    "ChartFamily",
    "ChartSeries",
    "ChartType",
    "ColumnStatistics",
    "ColumnType",
    "CorrelationResult",
    "DecodeError",
    "Insight",
    "JobNotFoundError",
    "JobStatus",
    "PipelineResult",
    "RawWorkbook",
    "SheetNotFoundError",
    "TypedDataset",
    "build_3d_chart_config",
    "build_chart_config",
    "build_graph",
    "build_typed_dataset",
    "clean_records",
    "compute_correlation",
    "compute_skewness",
    "compute_statistics",
    "decode_workbook",
    "generate_colors",
    "generate_insights",
    "get_color_palette",
    "get_sample_data",
    "infer_column_type",
    "optimize_chart_config",
    "process_data_for_chart",
    "rank_insights",
    "run_pipeline",
    "select_sheet",
    "transform_for_chart",
    "transform_records",
    "validate_chart_data",
]
