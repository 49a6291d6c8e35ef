from __future__ import annotations
from typing import Any, Dict, List, Mapping, MutableMapping, Sequence
from ..core.types import RawWorkbook, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..core.utils import _format_preview, is_missing
from ..core.constants import _MAX_PREVIEW_ROWS, _MAX_SAMPLE_VALUES


def get_sample_data(records: Sequence[Mapping[str, Any]], limit: int = _MAX_PREVIEW_ROWS) -> List[Dict[str, Any]]:
    return [{name: _format_preview(value) for name, value in record.items()} for record in records[:limit]]


def column_profile(dataset: TypedDataset, name: str) -> Dict[str, Any]:
    values = dataset.column(name)
    null_count = sum(1 for value in values if is_missing(value))
    samples: List[Any] = []
    for value in values:
        if is_missing(value):
            continue
        preview = _format_preview(value)
        if preview not in samples:
            samples.append(preview)
        if len(samples) >= _MAX_SAMPLE_VALUES:
            break
    total = len(values)
    return {
        "name": name,
        "inferredType": dataset.column_types[name].value,
        "nullCount": null_count,
        "nullRatio": (null_count / total) if total else 0.0,
        "nonNullCount": total - null_count,
        "sampleValues": samples,
    }


def profile_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    workbook: RawWorkbook = state["workbook"]
    profiles = [column_profile(dataset, name) for name in dataset.headers]
    completeness = 0.0
    if profiles and dataset.row_count:
        completeness = sum(1.0 - p["nullRatio"] for p in profiles) / len(profiles)

    payload = {
        "columnProfiles": profiles,
        "datasetCompleteness": completeness,
        "sheetNames": list(workbook.sheet_names),
        "totalRows": workbook.total_rows,
        "totalColumns": workbook.total_columns,
        "preview": get_sample_data(dataset.records),
    }
    update = _with_phase(state, "profile", payload, profile_summary=payload)
    _emit_callback(state, "profile", payload)
    return update
