from __future__ import annotations
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import matplotlib.pyplot as plt

from sustainability_dashboard.config import (
    CO2_COL,
    ENERGY_COL,
    OUT_CO2,
    OUT_ENERGY,
    OUT_RATIO,
    OUT_YEAR,
    PALETTE,
    TITLE_COL,
    VALUE_COL,
)
from sustainability_dashboard.engine import to_number

MODEBAR_REMOVE = [
    "zoom2d", "pan2d", "zoomIn2d", "zoomOut2d", "autoScale2d", "resetScale2d",
    "select2d", "lasso2d", "toImage", "toggleSpikelines",
]

SERIES_NAMES = {OUT_CO2: "CO₂e (t)", OUT_ENERGY: "Energy (MWh)"}


def _empty_figure(message: str):
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False)
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(plot_bgcolor="white", paper_bgcolor="white")
    return fig


def _finish(fig, *, xaxis_title: str = "Year", yaxis_title: str = "", year_axis: bool = True):
    fig.update_layout(
        xaxis_title=xaxis_title,
        yaxis_title=yaxis_title,
        margin=dict(l=60, r=20, t=20, b=50),
        hovermode="x unified" if year_axis else "closest",
        plot_bgcolor="white",
        paper_bgcolor="white",
        autosize=True,
        legend_title_text="",
    )
    fig.update_xaxes(showgrid=False, automargin=True)
    fig.update_yaxes(showgrid=True, gridcolor="#e5e7eb", automargin=True)
    if year_axis:
        fig.update_xaxes(dtick=1, tickformat="d")
    fig.update_layout(dragmode=False, modebar_remove=MODEBAR_REMOVE)
    return fig


def _rename_traces(fig, names: dict[str, str]):
    fig.for_each_trace(lambda t: t.update(name=names.get(t.name, t.name)))
    return fig


# -----------------------------
# Competitive intelligence
# -----------------------------

def benchmark_figure(wide: pd.DataFrame):
    # a company named "Year" would shadow the x column
    wide = wide.loc[:, ~wide.columns.duplicated()]
    companies = [c for c in wide.columns if c != OUT_YEAR]
    if wide.empty or not companies:
        return _empty_figure("No benchmark data available")
    fig = px.line(wide, x=OUT_YEAR, y=companies, markers=True, color_discrete_sequence=PALETTE)
    fig.update_traces(connectgaps=False, line=dict(width=3))
    return _finish(fig, yaxis_title="Emissions intensity")


def yearly_area_figure(by_year: pd.DataFrame):
    if by_year.empty:
        return _empty_figure("No observations in the selected range")
    # overlapping areas, not stacked
    fig = px.line(by_year, x=OUT_YEAR, y=[OUT_CO2, OUT_ENERGY], color_discrete_sequence=PALETTE)
    fig.update_traces(fill="tozeroy")
    _rename_traces(fig, SERIES_NAMES)
    return _finish(fig)


# -----------------------------
# Sustainable innovation
# -----------------------------

def efficiency_figure(ranking: pd.DataFrame, title_col: str = TITLE_COL):
    if ranking.empty:
        return _empty_figure("No titles to rank")
    fig = px.bar(
        ranking,
        x=OUT_RATIO,
        y=title_col,
        orientation="h",
        color_discrete_sequence=[PALETTE[1]],
    )
    fig.update_traces(hovertemplate="%{y}<br>CO₂e / MWh: %{x:.3f}<extra></extra>")
    fig = _finish(fig, xaxis_title="CO₂e / MWh", yaxis_title="", year_axis=False)
    # most efficient on top
    fig.update_yaxes(autorange="reversed", showgrid=False)
    fig.update_xaxes(showgrid=True, gridcolor="#e5e7eb")
    return fig


def composition_figure(
    rows: pd.DataFrame,
    *,
    title_col: str = TITLE_COL,
    energy_col: str = ENERGY_COL,
    co2_col: str = CO2_COL,
):
    """Two static pies: energy and CO2e share by title for the filtered rows."""
    fig, axes = plt.subplots(1, 2, figsize=(10.0, 4.6))
    panels = [(axes[0], energy_col, "Energy by Title"), (axes[1], co2_col, "CO₂e by Title")]

    totals = pd.DataFrame()
    if not rows.empty and title_col in rows.columns:
        totals = pd.DataFrame({
            title_col: rows[title_col],
            energy_col: to_number(rows[energy_col]) if energy_col in rows.columns else 0.0,
            co2_col: to_number(rows[co2_col]) if co2_col in rows.columns else 0.0,
        })
        totals = totals.loc[totals[title_col].notna()]
        totals = totals.groupby(title_col, sort=False).sum()

    for ax, col, caption in panels:
        values = totals[col] if col in totals.columns else pd.Series(dtype="float64")
        values = values[values > 0]
        if values.empty:
            ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)
            ax.axis("off")
        else:
            colors = [PALETTE[i % len(PALETTE)] for i in range(len(values))]
            ax.pie(
                values.values,
                labels=[str(t) for t in values.index],
                colors=colors,
                startangle=90,
                counterclock=False,
                wedgeprops=dict(edgecolor="#ffffff", linewidth=1.0),
                textprops=dict(fontsize=9, color="#334155"),
            )
            ax.axis("equal")
        ax.set_title(caption, fontsize=10, color="#475569", y=-0.08)

    fig.patch.set_facecolor("white")
    fig.subplots_adjust(left=0.04, right=0.96, top=0.95, bottom=0.08, wspace=0.35)
    return fig


# -----------------------------
# SDG / ESG
# -----------------------------

def metric_figure(series: pd.DataFrame, label: str, kind: str = "line"):
    if series.empty:
        return _empty_figure(f"No data for {label}")
    d = series.loc[series[OUT_YEAR].notna()]
    if kind == "area":
        fig = px.area(d, x=OUT_YEAR, y=VALUE_COL, color_discrete_sequence=[PALETTE[4]])
    else:
        fig = px.line(d, x=OUT_YEAR, y=VALUE_COL, markers=True, color_discrete_sequence=[PALETTE[0]])
        fig.update_traces(line=dict(width=3))
    fig.update_traces(hovertemplate=f"Year: %{{x}}<br>{label}: %{{y}}<extra></extra>")
    return _finish(fig, yaxis_title=label)


def co2_by_year_figure(by_year: pd.DataFrame):
    if by_year.empty:
        return _empty_figure("No observations in the selected range")
    fig = px.line(by_year, x=OUT_YEAR, y=OUT_CO2, markers=True, color_discrete_sequence=[PALETTE[3]])
    fig.update_traces(line=dict(width=3), hovertemplate="Year: %{x}<br>CO₂e (t): %{y:,.0f}<extra></extra>")
    return _finish(fig, yaxis_title=SERIES_NAMES[OUT_CO2])


def energy_by_year_figure(by_year: pd.DataFrame):
    if by_year.empty:
        return _empty_figure("No observations in the selected range")
    fig = px.bar(by_year, x=OUT_YEAR, y=OUT_ENERGY, color_discrete_sequence=[PALETTE[0]])
    fig.update_traces(hovertemplate="Year: %{x}<br>Energy (MWh): %{y:,.0f}<extra></extra>")
    return _finish(fig, yaxis_title=SERIES_NAMES[OUT_ENERGY])
