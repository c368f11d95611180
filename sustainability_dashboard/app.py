from __future__ import annotations
import logging
from pathlib import Path
from typing import Callable

import pandas as pd
from shiny import App, reactive, render, ui
from shinywidgets import output_widget, render_widget

from sustainability_dashboard import charts, config, ingest
from sustainability_dashboard.engine import (
    compute_kpis,
    esg_summary,
    filter_rows,
    group_by_year,
    group_metrics_by_name,
    metric_series,
    number_fmt,
    pivot_benchmark,
    region_choices,
    top_efficiency,
    year_bounds,
)
from sustainability_dashboard.ingest import DatasetError
from sustainability_dashboard.samples import sample_benchmarks, sample_metrics, sample_observations

config.configure_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# Start-up data
# =============================================================================
# Configured CSVs (SUSTAINABILITY_*_CSV) win; anything missing or unreadable
# falls back to the bundled sample data so the dashboard always renders.
# =============================================================================


def _initial_dataset(path: Path | None, kind: str, fallback: Callable[[], pd.DataFrame]) -> pd.DataFrame:
    if path is None:
        return fallback()
    try:
        return ingest.load(path, kind)
    except DatasetError as e:
        logger.warning("Could not load %s from %s (%s); using sample data", kind, path, e)
        return fallback()


OBSERVATIONS = _initial_dataset(config.OBSERVATIONS_FILE, "observations", sample_observations)
METRICS = _initial_dataset(config.ESG_FILE, "metrics", sample_metrics)
BENCHMARKS = _initial_dataset(config.BENCHMARK_FILE, "benchmarks", sample_benchmarks)

MIN_YEAR, MAX_YEAR = year_bounds(OBSERVATIONS)
REGIONS = [str(r) for r in region_choices(OBSERVATIONS)]

UPLOADS = [
    ("xbox_file", "Xbox Sustainability CSV", "Columns: Title, FiscalYear, Region, AverageACPower_W, TitleEnergy_MWh, TitleCO2e_MetricTon"),
    ("esg_file", "ESG Metrics CSV", "Columns: Metric, Year, Value, Unit, SDG"),
    ("bench_file", "(Optional) Benchmark CSV", "Columns: Company, Year, EmissionsIntensity"),
]


def _plot_card(header: str, output_id: str, height: str = "300px"):
    return ui.card(
        ui.card_header(header),
        output_widget(output_id, width="100%", height=height),
        class_="plot-card",
        full_screen=False,
    )


def _kpi_card(header: str, output_id: str):
    return ui.column(
        3,
        ui.card(
            ui.h6(header, class_="card-title"),
            ui.output_ui(output_id),
            full_screen=False,
        ),
    )


# -----------------------------
# UI
# -----------------------------
app_ui = ui.page_fluid(
    ui.tags.head(ui.tags.title("Sustainable Innovation Dashboard")),
    ui.tags.style(
        """
        :root {
          --ink: #1f2937;
          --muted: #6b7280;
          --accent: #16a34a;
          --accent-soft: #ecfdf3;
          --card-bg: #ffffff;
          --stroke: #e5e7eb;
        }
        body { color: var(--ink); background: #f8fafc; }
        .app-title { margin-top: 0.9rem; margin-bottom: 0.35rem; letter-spacing: 0.2px; }
        .muted { color: var(--muted); }
        .hint { color: var(--muted); font-size: 0.78rem; margin-top: -0.6rem; }
        .card-title { margin-bottom: 0.25rem; }
        .vb-number { font-size: 1.7rem; font-weight: 700; line-height: 1.2; }
        .vb-label { font-size: 0.9rem; color: var(--muted); text-transform: uppercase; letter-spacing: 0.04em; }
        .vb-row { align-items: stretch; margin-bottom: 0.15rem; }
        .vb-row > div[class^="col"], .vb-row > div[class*=" col"] { display: flex; }
        .vb-row > div[class^="col"] > .card, .vb-row > div[class*=" col"] > .card { width: 100%; }
        .main-stack { display: flex; flex-direction: column; gap: 0.4rem; }
        .plot-card { margin-top: 0.25rem; }
        .plot-card .card-body { padding: 0.5rem 0.75rem; }
        .html-widget { width: 100% !important; display: block; }
        .plotly-graph-div { width: 100% !important; height: 100% !important; }
        .card { background: var(--card-bg); border: 1px solid var(--stroke); box-shadow: 0 6px 18px rgba(15, 23, 42, 0.04); }
        .card-header { background: var(--accent-soft); border-bottom: 1px solid var(--stroke); font-weight: 600; }
        .sidebar { background: #f3f6fb; border-right: 1px solid var(--stroke); }
        .sdg-card .sdg-code { font-weight: 700; }
        .sdg-card .sdg-metric { font-size: 0.85rem; margin-top: 0.3rem; }
        .sdg-card .sdg-delta-up { color: #16a34a; }
        .sdg-card .sdg-delta-down { color: #dc2626; }
        .nav-tabs { margin-top: 0.5rem; }
        """
    ),
    ui.h2("Microsoft: CI + Generative AI for Sustainable Innovation", class_="app-title fw-bold"),
    ui.p(
        "Interactive dashboard aligning operational metrics with SDGs and competitive intelligence.",
        class_="muted",
    ),
    ui.layout_sidebar(
        ui.sidebar(
            ui.h5("Data Inputs", class_="fw-bold"),
            *[
                ui.div(
                    ui.input_file(input_id, label, accept=[".csv"], multiple=False, width="100%"),
                    ui.p(hint, class_="hint"),
                )
                for input_id, label, hint in UPLOADS
            ],
            ui.hr(),
            ui.h5("Filters", class_="fw-bold"),
            ui.input_radio_buttons(
                "region",
                "Region",
                choices=REGIONS,
                selected=config.ALL_REGIONS,
                inline=True,
            ),
            ui.input_slider(
                "year_range",
                "Fiscal Year Range",
                min=MIN_YEAR,
                max=MAX_YEAR,
                value=(MIN_YEAR, MAX_YEAR),
                step=1,
                sep="",
            ),
            width=340,
        ),
        ui.div(
            ui.row(
                _kpi_card("Total Energy (MWh)", "vb_energy"),
                _kpi_card("Total CO₂e (t)", "vb_co2"),
                _kpi_card("Avg Power (W)", "vb_power"),
                _kpi_card("Active Titles", "vb_titles"),
                class_="vb-row",
            ),
            ui.navset_tab(
                ui.nav_panel(
                    "Competitive Intelligence",
                    ui.row(
                        ui.column(6, _plot_card("Emissions Intensity Benchmark (optional)", "plot_benchmark")),
                        ui.column(6, _plot_card("CO₂e vs Energy (Yearly)", "plot_yearly")),
                    ),
                    value="ci",
                ),
                ui.nav_panel(
                    "Sustainable Innovation",
                    ui.row(
                        ui.column(
                            6,
                            _plot_card(
                                f"Top {config.TOP_N} Titles by Efficiency (lowest CO₂e per MWh)",
                                "plot_efficiency",
                                height="340px",
                            ),
                        ),
                        ui.column(
                            6,
                            ui.card(
                                ui.card_header("Energy & CO₂e Composition"),
                                ui.output_plot("plot_composition", width="100%", height="340px"),
                                class_="plot-card",
                                full_screen=False,
                            ),
                        ),
                    ),
                    value="innovation",
                ),
                ui.nav_panel(
                    "SDG Alignment",
                    ui.output_ui("sdg_cards"),
                    ui.row(
                        ui.column(6, _plot_card(config.SDG_CHARTS[0][1], "plot_sdg_0")),
                        ui.column(6, _plot_card(config.SDG_CHARTS[1][1], "plot_sdg_1")),
                    ),
                    ui.row(
                        ui.column(6, _plot_card(config.SDG_CHARTS[2][1], "plot_sdg_2")),
                        ui.column(6, _plot_card(config.SDG_CHARTS[3][1], "plot_sdg_3")),
                    ),
                    value="sdg",
                ),
                ui.nav_panel(
                    "ESG Metrics",
                    ui.row(
                        ui.column(6, _plot_card("CO₂e (t) by Year", "plot_co2_year")),
                        ui.column(6, _plot_card("Energy (MWh) by Year", "plot_energy_year")),
                    ),
                    ui.card(
                        ui.card_header("Filtered Observations"),
                        ui.output_data_frame("tbl"),
                        full_screen=True,
                    ),
                    value="esg",
                ),
                ui.nav_panel(
                    "About",
                    ui.card(
                        ui.card_header("How to Use This Dashboard"),
                        ui.tags.ul(
                            ui.tags.li(
                                "Upload your ", ui.tags.strong("Xbox sustainability CSV"), " and ",
                                ui.tags.strong("ESG metrics CSV"), " to replace the sample data.",
                            ),
                            ui.tags.li(
                                "Use the ", ui.tags.strong("Region"), " chips and ",
                                ui.tags.strong("Fiscal Year range"), " to filter visualizations.",
                            ),
                            ui.tags.li(
                                "The ", ui.tags.strong("Competitive Intelligence"),
                                " tab lets you optionally add a peer benchmark for emissions intensity.",
                            ),
                            ui.tags.li(
                                "The ", ui.tags.strong("SDG"), " and ", ui.tags.strong("ESG"),
                                " tabs visualize alignment with SDG 6, 7, 9, 12, and 13 using your ESG time series.",
                            ),
                            ui.tags.li("All charts update instantly on data and filter changes."),
                        ),
                        ui.p(
                            "Note: Sample numbers are illustrative. Replace with official datasets for publication.",
                            class_="muted small",
                        ),
                    ),
                    value="about",
                ),
                id="tabs",
                selected="ci",
            ),
            class_="main-stack",
        ),
    ),
)


# -----------------------------
# Server
# -----------------------------


def server(input, output, session):
    observations = reactive.value(OBSERVATIONS)
    metrics = reactive.value(METRICS)
    benchmarks = reactive.value(BENCHMARKS)

    def _replace_from_upload(target: reactive.Value, file_infos, kind: str, label: str) -> None:
        # Uploads replace the dataset wholesale; a rejected file keeps the current one.
        try:
            df = ingest.load_uploaded(file_infos, kind)
        except DatasetError as e:
            logger.warning("Rejected %s upload: %s", kind, e)
            ui.notification_show(f"{label}: {e}", type="error", duration=8)
            return
        if df is None:
            return
        target.set(df)
        ui.notification_show(f"{label}: loaded {len(df):,} rows", type="message", duration=4)

    @reactive.effect
    @reactive.event(input.xbox_file)
    def _upload_observations():
        _replace_from_upload(observations, input.xbox_file(), "observations", "Xbox Sustainability CSV")

    @reactive.effect
    @reactive.event(input.esg_file)
    def _upload_metrics():
        _replace_from_upload(metrics, input.esg_file(), "metrics", "ESG Metrics CSV")

    @reactive.effect
    @reactive.event(input.bench_file)
    def _upload_benchmarks():
        _replace_from_upload(benchmarks, input.bench_file(), "benchmarks", "Benchmark CSV")

    # ---- Filters follow the current observation dataset ----
    @reactive.effect
    def _reset_filters():
        d = observations()
        lo, hi = year_bounds(d)
        ui.update_slider("year_range", min=lo, max=hi, value=(lo, hi))
        ui.update_radio_buttons(
            "region",
            choices=[str(r) for r in region_choices(d)],
            selected=config.ALL_REGIONS,
            inline=True,
        )

    # ---- Derived views ----
    @reactive.calc
    def filtered() -> pd.DataFrame:
        d = observations()
        rng = input.year_range()
        lo, hi = (int(rng[0]), int(rng[1])) if rng else year_bounds(d)
        return filter_rows(d, (lo, hi), input.region() or config.ALL_REGIONS)

    @reactive.calc
    def kpis() -> dict:
        return compute_kpis(filtered())

    @reactive.calc
    def by_year() -> pd.DataFrame:
        return group_by_year(filtered())

    @reactive.calc
    def esg_series() -> dict:
        return group_metrics_by_name(metrics())

    # ---- Value boxes (never blank) ----
    def _value_box(value: str, label: str):
        return ui.div(
            ui.div(value, class_="vb-number"),
            ui.div(label, class_="vb-label"),
        )

    @render.ui
    def vb_energy():
        return _value_box(number_fmt(kpis()["total_energy"]), "MWh")

    @render.ui
    def vb_co2():
        return _value_box(number_fmt(kpis()["total_co2"]), "metric tons")

    @render.ui
    def vb_power():
        return _value_box(number_fmt(kpis()["avg_power"], 1), "watts per title-year")

    @render.ui
    def vb_titles():
        return _value_box(number_fmt(kpis()["titles"]), "unique titles")

    # ---- Competitive intelligence ----
    @render_widget
    def plot_benchmark():
        return charts.benchmark_figure(pivot_benchmark(benchmarks()))

    @render_widget
    def plot_yearly():
        return charts.yearly_area_figure(by_year())

    # ---- Sustainable innovation ----
    @render_widget
    def plot_efficiency():
        return charts.efficiency_figure(top_efficiency(filtered(), config.TOP_N))

    @render.plot(alt="Energy and CO2e composition by title")
    def plot_composition():
        return charts.composition_figure(filtered())

    # ---- SDG alignment ----
    @render.ui
    def sdg_cards():
        summary = esg_summary(metrics())
        cards = []
        for sdg in config.SDGS:
            aligned = summary.loc[summary[config.SDG_COL].astype(str) == sdg["code"]]
            lines = []
            for _, row in aligned.iterrows():
                change = row["Change"]
                delta = ""
                delta_class = ""
                if pd.notna(change) and change != 0:
                    delta = f" ({'+' if change > 0 else ''}{number_fmt(change, 1)})"
                    delta_class = "sdg-delta-up" if change > 0 else "sdg-delta-down"
                unit = "" if pd.isna(row[config.UNIT_COL]) else f" {row[config.UNIT_COL]}"
                lines.append(
                    ui.div(
                        f"{row[config.METRIC_COL]}: {number_fmt(row[config.VALUE_COL], 1)}{unit}",
                        ui.tags.span(delta, class_=delta_class),
                        class_="sdg-metric",
                    )
                )
            if not lines:
                lines.append(ui.div("No aligned metrics uploaded", class_="sdg-metric muted"))
            cards.append(
                ui.card(
                    ui.div(sdg["code"], class_="sdg-code"),
                    ui.div(sdg["label"], class_="muted small"),
                    *lines,
                    class_="sdg-card",
                )
            )
        return ui.layout_columns(*cards, col_widths=[2, 2, 3, 2, 3])

    def _sdg_figure(i: int):
        name, _, label, kind = config.SDG_CHARTS[i]
        return charts.metric_figure(metric_series(esg_series(), name), label, kind)

    @render_widget
    def plot_sdg_0():
        return _sdg_figure(0)

    @render_widget
    def plot_sdg_1():
        return _sdg_figure(1)

    @render_widget
    def plot_sdg_2():
        return _sdg_figure(2)

    @render_widget
    def plot_sdg_3():
        return _sdg_figure(3)

    # ---- ESG metrics ----
    @render_widget
    def plot_co2_year():
        return charts.co2_by_year_figure(by_year())

    @render_widget
    def plot_energy_year():
        return charts.energy_by_year_figure(by_year())

    @render.data_frame
    def tbl():
        d = filtered()
        cols = [c for c in config.OBSERVATION_COLUMNS if c in d.columns]
        return render.DataGrid(
            d[cols].reset_index(drop=True),
            filters=True,
            height="420px",
        )


app = App(app_ui, server)
