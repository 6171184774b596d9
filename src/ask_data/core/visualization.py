"""
visualization.py
─────────────────────────────────────────────────────────────────────────────
Fixed chart primitives, driven by a ChartConfig or a validated ChartSpec.

  bar      → Bar chart of y per x
  line     → Line chart with markers
  pie      → Pie / donut of y shares per x
  area     → Filled line          (ChartSpec only)
  scatter  → x vs y points        (ChartSpec only)

Returns Plotly figure JSON; drawing pixels is left to the client.
─────────────────────────────────────────────────────────────────────────────
"""

from typing import Any, Dict, List, Optional, Sequence, Union

import plotly.graph_objects as go
import plotly.express as px

from ask_data.models import ChartConfig, ChartSpec
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

# ── colour palette (dark-theme friendly) ─────────────────────────────────────
CLR_NORMAL   = "#4C9BE8"   # blue   – primary series
CLR_ACCENT   = "#FF4B4B"   # red    – highlights
CLR_MEDIAN   = "#F5A623"   # orange – reference lines
CLR_BG       = "rgba(0,0,0,0)"
FONT_COLOR   = "#FFFFFF"

LAYOUT_BASE = dict(
    paper_bgcolor=CLR_BG,
    plot_bgcolor ="rgba(14,17,23,1)",
    font         =dict(color=FONT_COLOR, size=13),
    margin       =dict(l=60, r=40, t=70, b=80),
    xaxis        =dict(gridcolor="#2a2f3a", zerolinecolor="#2a2f3a"),
    yaxis        =dict(gridcolor="#2a2f3a", zerolinecolor="#2a2f3a"),
)


def _apply_layout(fig, title: str, xlabel: str = None, ylabel: str = None) -> go.Figure:
    updates = dict(**LAYOUT_BASE, title=dict(text=title, font=dict(size=18, color=FONT_COLOR)))
    if xlabel:
        updates["xaxis"] = {**LAYOUT_BASE.get("xaxis", {}), "title": xlabel}
    if ylabel:
        updates["yaxis"] = {**LAYOUT_BASE.get("yaxis", {}), "title": ylabel}
    fig.update_layout(**updates)
    return fig


def _palette(colors: List[str]) -> List[str]:
    return colors or [CLR_NORMAL, CLR_ACCENT, CLR_MEDIAN] + px.colors.qualitative.Bold


# ── primitives ────────────────────────────────────────────────────────────────
def _chart_bar(x, y, x_col, y_col, colors) -> go.Figure:
    fig = go.Figure(go.Bar(
        x=x, y=y, name=y_col,
        marker_color=colors[0],
        hovertemplate=f"<b>%{{x}}</b><br>{y_col}: %{{y:,.2f}}<extra></extra>",
    ))
    return fig


def _chart_line(x, y, x_col, y_col, colors) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=x, y=y, name=y_col, mode="lines+markers",
        line=dict(color=colors[0], width=2), marker=dict(size=6),
    ))
    return fig


def _chart_area(x, y, x_col, y_col, colors) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=x, y=y, name=y_col, mode="lines", fill="tozeroy",
        line=dict(color=colors[0], width=2),
    ))
    return fig


def _chart_scatter(x, y, x_col, y_col, colors) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=x, y=y, name=y_col, mode="markers",
        marker=dict(color=colors[0], size=8, opacity=0.75),
    ))
    return fig


def _chart_pie(x, y, x_col, y_col, colors) -> go.Figure:
    fig = go.Figure(go.Pie(
        labels=x, values=y, hole=0.35,
        marker=dict(colors=colors),
        hovertemplate="<b>%{label}</b><br>%{value:,.2f} (%{percent})<extra></extra>",
    ))
    return fig


_PRIMITIVES = {
    "bar": _chart_bar,
    "line": _chart_line,
    "area": _chart_area,
    "scatter": _chart_scatter,
    "pie": _chart_pie,
}


# ── PUBLIC ENTRY POINT ────────────────────────────────────────────────────────
def render_chart(
    data: Sequence[Dict[str, Any]],
    config: Union[ChartConfig, ChartSpec],
) -> Optional[str]:
    """
    Draw `data` with one of the fixed primitives and return Plotly JSON,
    or None when there is nothing to draw.
    """
    if not data:
        logger.info("No data to chart.")
        return None

    if isinstance(config, ChartSpec):
        chart_type, title = config.chart_type, config.title
        colors, show_legend = _palette(config.colors), config.show_legend
    else:
        chart_type, title = config.type, ""
        colors, show_legend = _palette([]), chart_type == "pie"

    x_col, y_col = config.x_field, config.y_field
    if any(x_col not in row or y_col not in row for row in data):
        logger.warning(f"Chart fields {x_col!r}/{y_col!r} missing from result rows.")
        return None

    x = [row[x_col] for row in data]
    y = [row[y_col] for row in data]

    fig = _PRIMITIVES[chart_type](x, y, x_col, y_col, colors)
    title = title or f"<b>{y_col}</b> by <b>{x_col}</b>"
    if chart_type == "pie":
        fig = _apply_layout(fig, title)
    else:
        fig = _apply_layout(fig, title, xlabel=x_col, ylabel=y_col)
    fig.update_layout(showlegend=show_legend)

    logger.info(f"Rendered {chart_type} chart ({len(data)} points).")
    return fig.to_json()
