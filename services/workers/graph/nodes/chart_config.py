from __future__ import annotations
import copy
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Union
from ..core.types import AnalysisConfiguration, ChartFamily, ChartSeries, ChartType, Customizations
from ..core.state import _with_phase, _emit_callback
from ..core.constants import (
    _COLOR_PALETTES, _DEFAULT_BUBBLE_RADIUS, _DEFAULT_LINE_TENSION, _LARGE_DATASET_POINTS,
    _MAX_LEGEND_DATASETS, _SERIES_COLORS,
)

SeriesInput = Union[ChartSeries, Mapping[str, Any]]
CustomizationsInput = Union[Customizations, Mapping[str, Any], None]

_DEFAULT_3D_COLORS = ["#36A2EB", "#FF6384", "#FFCE56"]


def get_color_palette(theme: str, count: int = 10) -> List[str]:
    palette = _COLOR_PALETTES.get(theme, _COLOR_PALETTES["light"])
    return list(palette[:count])


def generate_colors(count: int) -> List[str]:
    return [_SERIES_COLORS[index % len(_SERIES_COLORS)] for index in range(max(count, 0))]


def _as_data(series: SeriesInput) -> Dict[str, Any]:
    if isinstance(series, ChartSeries):
        return series.to_dict()
    return copy.deepcopy(dict(series))


def _as_customizations(customizations: CustomizationsInput) -> Customizations:
    if isinstance(customizations, Customizations):
        return customizations
    return Customizations.from_dict(customizations)


def _text_color(theme: str) -> str:
    return "#fff" if theme == "dark" else "#333"


def _grid_color(theme: str) -> str:
    return "rgba(255,255,255,0.1)" if theme == "dark" else "rgba(0,0,0,0.1)"


def _axis(theme: str, show_grid: bool, **extra: Any) -> Dict[str, Any]:
    axis: Dict[str, Any] = {
        "display": True,
        "grid": {"display": show_grid, "color": _grid_color(theme)},
        "ticks": {"color": _text_color(theme)},
    }
    axis.update(extra)
    return axis


def _base_config(chart_type: ChartType, data: Dict[str, Any], options: Customizations) -> Dict[str, Any]:
    theme = options.theme
    dark = theme == "dark"
    count = max(len(data.get("labels") or []), len(data.get("datasets") or []), 1)
    return {
        "type": chart_type.value,
        "data": data,
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "palette": get_color_palette(theme, count),
            "plugins": {
                "title": {
                    "display": bool(options.title),
                    "text": options.title,
                    "font": {"size": 16, "weight": "bold"},
                    "color": _text_color(theme),
                },
                "legend": {
                    "display": options.show_legend,
                    "position": "top",
                    "labels": {"color": _text_color(theme), "usePointStyle": True, "padding": 20},
                },
                "tooltip": {
                    "backgroundColor": "rgba(0,0,0,0.8)" if dark else "rgba(255,255,255,0.9)",
                    "titleColor": _text_color(theme),
                    "bodyColor": _text_color(theme),
                    "borderColor": "#555" if dark else "#ddd",
                    "borderWidth": 1,
                    "cornerRadius": 8,
                    "displayColors": True,
                },
            },
            "animation": {"duration": 750 if options.animations else 0, "easing": "easeInOutQuart"},
            "interaction": {"intersect": False, "mode": "index"},
        },
    }


def _percentages(values: List[Any]) -> List[float]:
    numbers = [float(value) for value in values if isinstance(value, (int, float))]
    total = sum(numbers)
    if not total:
        return [0.0 for _ in values]
    return [round(float(value) / total * 100, 1) if isinstance(value, (int, float)) else 0.0 for value in values]


def _apply_family(chart_type: ChartType, config: Dict[str, Any], options: Customizations) -> None:
    theme = options.theme
    datasets: List[Dict[str, Any]] = config["data"].get("datasets") or []
    family = chart_type.family

    if family is ChartFamily.PROPORTION:
        config["options"].pop("scales", None)
        config["options"]["plugins"]["legend"]["position"] = "right"
        first = datasets[0].get("data", []) if datasets else []
        config["options"]["plugins"]["tooltip"]["callbacks"] = {
            "format": "percentage",
            "percentages": _percentages(list(first)),
        }
        return

    if family is ChartFamily.POINT:
        config["options"]["scales"] = {
            "x": _axis(theme, options.show_grid, type="linear", position="bottom"),
            "y": _axis(theme, options.show_grid),
        }
        if chart_type is ChartType.BUBBLE:
            for dataset in datasets:
                points = dataset.get("data") or []
                if not any(isinstance(point, Mapping) and "r" in point for point in points):
                    for point in points:
                        point["r"] = _DEFAULT_BUBBLE_RADIUS
        return

    if chart_type is ChartType.RADAR:
        config["options"]["scales"] = {
            "r": {
                "beginAtZero": True,
                "grid": {"color": _grid_color(theme)},
                "pointLabels": {"color": _text_color(theme)},
                "ticks": {"color": _text_color(theme), "backdropColor": "transparent"},
            }
        }
        return

    config["options"]["scales"] = {
        "x": _axis(theme, options.show_grid),
        "y": _axis(theme, options.show_grid),
    }
    if chart_type is ChartType.BAR:
        config["options"]["indexAxis"] = "x"
    elif chart_type in (ChartType.LINE, ChartType.AREA):
        for dataset in datasets:
            dataset["tension"] = _DEFAULT_LINE_TENSION
            dataset["fill"] = chart_type is ChartType.AREA
            background = dataset.get("backgroundColor")
            if chart_type is ChartType.AREA and isinstance(background, str) and background.endswith("1)"):
                dataset["backgroundColor"] = background[: -len("1)")] + "0.3)"


def build_chart_config(chart_type: Union[ChartType, str], series: SeriesInput, customizations: CustomizationsInput = None) -> Dict[str, Any]:
    """Wrap chart data with presentational options for a Chart.js style renderer.

    3-D chart types are delegated to :func:`build_3d_chart_config`. The inputs are
    deep-copied so callers can keep reusing their series.
    """
    chart_type = ChartType(chart_type)
    options = _as_customizations(customizations)
    if chart_type.is_3d:
        return build_3d_chart_config(chart_type, series, options)

    data = _as_data(series)
    if options.colors:
        for index, dataset in enumerate(data.get("datasets") or []):
            if index < len(options.colors) and options.colors[index]:
                dataset["backgroundColor"] = options.colors[index]
                dataset["borderColor"] = options.colors[index]

    config = _base_config(chart_type, data, options)
    _apply_family(chart_type, config, options)
    return config


def build_3d_chart_config(chart_type: Union[ChartType, str], series: SeriesInput, customizations: CustomizationsInput = None) -> Dict[str, Any]:
    value = chart_type.value if isinstance(chart_type, ChartType) else str(chart_type)
    chart_type = ChartType(value if value.startswith("3d-") else f"3d-{value}")
    options = _as_customizations(customizations)
    return {
        "type": chart_type.value,
        "data": _as_data(series),
        "options": {
            "width": 800,
            "height": 600,
            "title": options.title,
            "theme": options.theme,
            "colors": list(options.colors) if options.colors else list(_DEFAULT_3D_COLORS),
            "camera": {
                "position": {"x": 0, "y": 0, "z": 10},
                "rotation": {"x": 0, "y": 0, "z": 0},
            },
            "lighting": {"ambient": 0.4, "directional": 0.6},
            "animation": {"enabled": options.animations, "duration": 1000 if options.animations else 0},
        },
    }


def validate_chart_data(data: Any, chart_type: Union[ChartType, str]) -> bool:
    chart_type = ChartType(chart_type)
    if not isinstance(data, Mapping) or not isinstance(data.get("datasets"), list):
        return False
    if chart_type.family is not ChartFamily.POINT and not isinstance(data.get("labels"), list):
        return False
    return all(isinstance(dataset, Mapping) and isinstance(dataset.get("data"), list) for dataset in data["datasets"])


def _data_size(config: Mapping[str, Any]) -> int:
    datasets = (config.get("data") or {}).get("datasets") or []
    return sum(len(dataset.get("data") or []) for dataset in datasets)


def optimize_chart_config(config: Mapping[str, Any], data_size: Optional[int] = None) -> Dict[str, Any]:
    optimized = copy.deepcopy(dict(config))
    size = _data_size(optimized) if data_size is None else data_size
    options = optimized.setdefault("options", {})

    if size > _LARGE_DATASET_POINTS:
        animation = options.setdefault("animation", {})
        animation["duration"] = 0
        if "enabled" in animation:
            animation["enabled"] = False

    datasets = (optimized.get("data") or {}).get("datasets") or []
    if len(datasets) > _MAX_LEGEND_DATASETS and "plugins" in options:
        options["plugins"].setdefault("legend", {})["display"] = False
    return optimized


def chart_config_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    configuration: AnalysisConfiguration = state["configuration"]
    series: ChartSeries = state["series"]

    config = build_chart_config(configuration.chart_type, series, configuration.customizations)
    config = optimize_chart_config(config, series.point_count)

    payload = {
        "type": config["type"],
        "valid": validate_chart_data(config["data"], configuration.chart_type),
        "dataPoints": series.point_count,
    }
    update = _with_phase(state, "chart_config", payload, chart_spec=config)
    _emit_callback(state, "chart_config", payload)
    return update
