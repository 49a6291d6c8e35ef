PHASE_ORDER = [
    "ingest",
    "profile",
    "prepare",
    "chart_data",
    "descriptive_stats",
    "relationships",
    "insights",
    "chart_config",
    "finalize",
]

# schema inference
_NUMERIC_TYPE_RATIO = 0.8
_INTEGER_SUBSET_RATIO = 0.9
_DATE_TYPE_RATIO = 0.8
_BOOLEAN_TYPE_RATIO = 0.8
_BOOLEAN_TOKENS = {"true", "false", "yes", "no", "1", "0"}
_DEFAULT_SHEET_NAME = "Sheet1"

# statistics
_IQR_FACTOR = 1.5
_MIN_SKEW_SAMPLES = 3
_SIGNIFICANCE_Z = 1.96
_CORRELATION_DECIMALS = 4
_STRENGTH_BANDS = [
    (0.8, "very strong"),
    (0.6, "strong"),
    (0.4, "moderate"),
    (0.2, "weak"),
]

# insights
_NUMERIC_SAMPLE_ROWS = 100
_OUTLIER_HIGH_CONFIDENCE_PCT = 10.0
_OUTLIER_INVESTIGATE_PCT = 5.0
_SKEW_THRESHOLD = 1.0
_SKEW_LOG_TRANSFORM_THRESHOLD = 2.0
_HIGH_VARIABILITY_CV = 1.0
_STRONG_CORRELATION = 0.7
_MULTICOLLINEARITY_CORRELATION = 0.9
_INDEPENDENCE_CORRELATION = 0.1
_INDEPENDENCE_MIN_SAMPLES = 100
_MISSING_DATA_PCT = 10.0

# profile
_MAX_PREVIEW_ROWS = 10
_MAX_SAMPLE_VALUES = 5

# chart config
_LARGE_DATASET_POINTS = 1000
_MAX_LEGEND_DATASETS = 10
_DEFAULT_LINE_TENSION = 0.4
_DEFAULT_BUBBLE_RADIUS = 5
_SERIES_BACKGROUND = "rgba(54, 162, 235, 0.6)"
_SERIES_BORDER = "rgba(54, 162, 235, 1)"

_COLOR_PALETTES = {
    "light": (
        "#36A2EB", "#FF6384", "#FFCE56", "#4BC0C0",
        "#9966FF", "#FF9F40", "#FF6384", "#C9CBCF",
        "#4BC0C0", "#FF6384",
    ),
    "dark": (
        "#5DADE2", "#F1948A", "#F7DC6F", "#76D7C4",
        "#BB8FCE", "#F8C471", "#85C1E9", "#D5DBDB",
        "#76D7C4", "#F1948A",
    ),
    "colorful": (
        "#E74C3C", "#3498DB", "#2ECC71", "#F39C12",
        "#9B59B6", "#1ABC9C", "#E67E22", "#34495E",
        "#E91E63", "#00BCD4",
    ),
}

_SERIES_COLORS = (
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0",
    "#9966FF", "#FF9F40", "#FF6384", "#C9CBCF",
    "#4BC0C0", "#FF6384", "#36A2EB", "#FFCE56",
)

_ERROR_MESSAGE_LIMIT = 1000
_DELIMITED_STREAM_CHUNK_SIZE = 64 * 1024

_EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
_DELIMITED_EXTENSIONS = {".csv": ",", ".tsv": "\t"}
_ZIP_MAGIC = b"PK\x03\x04"
_OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
