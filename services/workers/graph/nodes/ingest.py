from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.types import AnalysisConfiguration
from ..core.state import _with_phase, _emit_callback
from ..io.ingest import decode_workbook
from ..io.schema import select_sheet


def ingest_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    configuration: AnalysisConfiguration = state["configuration"]
    body = state.get("body")
    if body is None:
        body = b""

    workbook = decode_workbook(body, filename=state.get("filename"))
    dataset = select_sheet(workbook, configuration.selected_sheet)

    payload = {
        "sheetNames": list(workbook.sheet_names),
        "selectedSheet": dataset.sheet_name,
        "rows": dataset.row_count,
        "columns": list(dataset.headers),
        "bytesRead": workbook.bytes_read,
        "sourceFormat": workbook.source_format,
    }

    update = _with_phase(state, "ingest", payload, workbook=workbook, dataset=dataset, body=None)
    _emit_callback(state, "ingest", payload)
    return update
