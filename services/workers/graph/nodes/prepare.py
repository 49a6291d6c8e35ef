from __future__ import annotations
import logging
from typing import Any, Dict, List, MutableMapping, Optional
from ..core.types import AnalysisConfiguration, Record, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..io.clean import clean_records, derived_columns, transform_records
from ..io.schema import infer_column_type

logger = logging.getLogger(__name__)


def prepare_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    configuration: AnalysisConfiguration = state["configuration"]
    cleaning = configuration.cleaning

    records: List[Record] = dataset.records
    cleaning_stats: Optional[Dict[str, int]] = None
    transformation_log: List[Dict[str, Any]] = []

    if cleaning is not None:
        records, cleaning_stats = clean_records(
            records,
            remove_nulls=cleaning.remove_nulls,
            remove_empty_strings=cleaning.remove_empty_strings,
            trim_strings=cleaning.trim_strings,
            remove_duplicates=cleaning.remove_duplicates,
            convert_types=cleaning.convert_types,
        )
    if configuration.transformations:
        records, transformation_log = transform_records(records, configuration.transformations)

    added = derived_columns(dataset.headers, records)
    if cleaning is not None or configuration.transformations:
        headers = list(dataset.headers) + added
        for record in records:
            for name in added:
                record.setdefault(name, None)
        dataset = TypedDataset(
            sheet_name=dataset.sheet_name,
            headers=headers,
            records=records,
            column_types={name: infer_column_type([record.get(name) for record in records]) for name in headers},
        )
        logger.info(
            "Prepared dataset",
            extra={"job_id": state.get("job_id"), "rows": dataset.row_count, "added_columns": len(added)},
        )

    payload = {
        "applied": cleaning is not None or bool(configuration.transformations),
        "cleaning": cleaning_stats,
        "transformations": transformation_log,
        "addedColumns": added,
        "rows": dataset.row_count,
    }
    update = _with_phase(state, "prepare", payload, dataset=dataset)
    _emit_callback(state, "prepare", payload)
    return update
