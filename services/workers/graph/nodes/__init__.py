from .ingest import ingest_node
from .profile import profile_node
from .prepare import prepare_node
from .chart import chart_data_node
from .descriptive import descriptive_stats_node
from .relationships import relationships_node
from .insights import insights_node
from .chart_config import chart_config_node
from .finalize import finalize_node

__all__ = [
    "ingest_node",
    "profile_node",
    "prepare_node",
    "chart_data_node",
    "descriptive_stats_node",
    "relationships_node",
    "insights_node",
    "chart_config_node",
    "finalize_node",
]
