"""
Filtering and aggregation over CSV-shaped rows.

Every function here is pure: it accepts a DataFrame (or any iterable of
mappings), never mutates it, and never raises on missing or malformed
fields. Unparseable measures count as 0, empty selections give zero-valued
summaries, and grouped outputs always end with an explicit stable sort.
"""
from __future__ import annotations
import logging
import math
from typing import Any, Iterable, Mapping, Union

import pandas as pd

from sustainability_dashboard.config import (
    ALL_REGIONS,
    CO2_COL,
    COMPANY_COL,
    DEFAULT_YEAR_RANGE,
    ENERGY_COL,
    FISCAL_YEAR_COL,
    INTENSITY_COL,
    METRIC_COL,
    OUT_CO2,
    OUT_ENERGY,
    OUT_RATIO,
    OUT_YEAR,
    POWER_COL,
    REGION_COL,
    SDG_COL,
    TITLE_COL,
    TOP_N,
    UNIT_COL,
    VALUE_COL,
    YEAR_COL,
)

logger = logging.getLogger(__name__)

Rows = Union[pd.DataFrame, Iterable[Mapping[str, Any]], None]

METRIC_SERIES_COLUMNS = [OUT_YEAR, VALUE_COL, UNIT_COL, SDG_COL]
ESG_SUMMARY_COLUMNS = [METRIC_COL, OUT_YEAR, VALUE_COL, UNIT_COL, SDG_COL, "Change"]


# -----------------------------
# Shared helpers
# -----------------------------

def _as_frame(rows: Rows) -> pd.DataFrame:
    if rows is None:
        return pd.DataFrame()
    if isinstance(rows, pd.DataFrame):
        return rows
    return pd.DataFrame(list(rows))


def _column(d: pd.DataFrame, col: str) -> pd.Series:
    if col in d.columns:
        return d[col]
    return pd.Series(float("nan"), index=d.index, dtype="float64")


def _numeric(s: pd.Series) -> pd.Series:
    # nullable Int64/Float64 inputs come back as plain float64 with NaN
    out = pd.to_numeric(s, errors="coerce").astype("float64")
    return out.where(out.abs() != math.inf)


def to_number(s: pd.Series) -> pd.Series:
    """Numeric view of ``s`` where missing or unparseable values are 0."""
    return _numeric(s).fillna(0.0)


def _as_year(s: pd.Series) -> pd.Series:
    s = s.astype("float64")
    if s.notna().all() and (s % 1 == 0).all():
        return s.astype("int64")
    return s


def _empty(columns: list[str]) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype="float64") for c in columns})


def number_fmt(value: Any, digits: int = 0) -> str:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return "–"
    if math.isnan(x) or math.isinf(x):
        return "–"
    return f"{x:,.{digits}f}"


# -----------------------------
# Filter stage
# -----------------------------

def filter_rows(
    rows: Rows,
    year_range: tuple[int, int],
    region: Any = ALL_REGIONS,
    *,
    year_col: str = FISCAL_YEAR_COL,
    region_col: str = REGION_COL,
) -> pd.DataFrame:
    """
    Keep rows whose fiscal year lies in the inclusive ``year_range`` and whose
    region equals ``region`` (any region when it is ``ALL_REGIONS`` or None).
    Rows with a missing or non-numeric year never pass the interval test.
    """
    d = _as_frame(rows)
    if d.empty:
        return d.copy()

    lo, hi = year_range
    if lo > hi:
        lo, hi = hi, lo

    mask = _numeric(_column(d, year_col)).between(lo, hi)
    if region is not None and region != ALL_REGIONS:
        same = _column(d, region_col) == region
        mask &= same.fillna(False).astype(bool)

    out = d.loc[mask].copy()
    logger.debug("filter_rows %s region=%s: %d -> %d rows", (lo, hi), region, len(d), len(out))
    return out


def year_bounds(rows: Rows, *, year_col: str = FISCAL_YEAR_COL) -> tuple[int, int]:
    d = _as_frame(rows)
    years = _numeric(_column(d, year_col)).dropna()
    years = years[years != 0]
    if years.empty:
        return DEFAULT_YEAR_RANGE
    return int(years.min()), int(years.max())


def region_choices(rows: Rows, *, region_col: str = REGION_COL) -> list:
    """Wildcard first, then each non-blank region in order of first appearance."""
    d = _as_frame(rows)
    regions = _column(d, region_col).dropna()
    seen = [r for r in pd.unique(regions) if str(r).strip() != ""]
    return [ALL_REGIONS] + seen


# -----------------------------
# Aggregation stage
# -----------------------------

def compute_kpis(
    rows: Rows,
    *,
    title_col: str = TITLE_COL,
    energy_col: str = ENERGY_COL,
    co2_col: str = CO2_COL,
    power_col: str = POWER_COL,
) -> dict[str, float | int]:
    """
    Scalar summary of the filtered rows:

    - ``total_energy`` / ``total_co2``: sums, missing values as 0
    - ``avg_power``: mean over all rows, 0 for an empty selection
    - ``titles``: number of distinct labels, not rows
    """
    d = _as_frame(rows)
    n = len(d)
    if n == 0:
        return {"total_energy": 0.0, "total_co2": 0.0, "avg_power": 0.0, "titles": 0}

    return {
        "total_energy": float(to_number(_column(d, energy_col)).sum()),
        "total_co2": float(to_number(_column(d, co2_col)).sum()),
        "avg_power": float(to_number(_column(d, power_col)).sum()) / n,
        "titles": int(_column(d, title_col).dropna().nunique()),
    }


def group_by_year(
    rows: Rows,
    *,
    fill_gaps: bool = False,
    year_col: str = FISCAL_YEAR_COL,
    energy_col: str = ENERGY_COL,
    co2_col: str = CO2_COL,
) -> pd.DataFrame:
    """
    Energy and CO2e summed per year, ascending by year.

    Years without rows are absent unless ``fill_gaps`` is set, in which case
    every year between the first and last one appears with zero totals.
    """
    columns = [OUT_YEAR, OUT_ENERGY, OUT_CO2]
    d = _as_frame(rows)
    if d.empty:
        return _empty(columns)

    frame = pd.DataFrame({
        OUT_YEAR: _numeric(_column(d, year_col)),
        OUT_ENERGY: to_number(_column(d, energy_col)),
        OUT_CO2: to_number(_column(d, co2_col)),
    })
    frame = frame.loc[frame[OUT_YEAR].notna()]
    if frame.empty:
        return _empty(columns)

    out = frame.groupby(OUT_YEAR, sort=True)[[OUT_ENERGY, OUT_CO2]].sum()
    out = out.reset_index()
    out[OUT_YEAR] = _as_year(out[OUT_YEAR])

    if fill_gaps and out[OUT_YEAR].dtype == "int64":
        span = range(int(out[OUT_YEAR].min()), int(out[OUT_YEAR].max()) + 1)
        out = (
            out.set_index(OUT_YEAR)
            .reindex(span, fill_value=0.0)
            .rename_axis(OUT_YEAR)
            .reset_index()
        )

    return out[columns]


def top_efficiency(
    rows: Rows,
    k: int | None = TOP_N,
    *,
    title_col: str = TITLE_COL,
    energy_col: str = ENERGY_COL,
    co2_col: str = CO2_COL,
) -> pd.DataFrame:
    """
    Rank labels by CO2e per MWh, lowest (most efficient) first.

    The ratio is 0 for a label whose summed energy is not positive. Ties keep
    the order in which labels first appear, and at most ``k`` labels are
    returned.
    """
    columns = [title_col, OUT_ENERGY, OUT_CO2, OUT_RATIO]
    k = TOP_N if k is None else int(k)
    d = _as_frame(rows)
    if d.empty or k <= 0:
        return _empty(columns)

    frame = pd.DataFrame({
        title_col: _column(d, title_col),
        OUT_ENERGY: to_number(_column(d, energy_col)),
        OUT_CO2: to_number(_column(d, co2_col)),
    })
    frame = frame.loc[frame[title_col].notna()]
    if frame.empty:
        return _empty(columns)

    grouped = frame.groupby(title_col, sort=False)[[OUT_ENERGY, OUT_CO2]].sum().reset_index()
    energy = grouped[OUT_ENERGY]
    grouped[OUT_RATIO] = (grouped[OUT_CO2] / energy.where(energy > 0)).fillna(0.0)

    ranked = grouped.sort_values(OUT_RATIO, kind="mergesort").head(k)
    return ranked[columns].reset_index(drop=True)


def group_metrics_by_name(
    metric_rows: Rows,
    *,
    metric_col: str = METRIC_COL,
    year_col: str = YEAR_COL,
    value_col: str = VALUE_COL,
    unit_col: str = UNIT_COL,
    sdg_col: str = SDG_COL,
) -> dict[Any, pd.DataFrame]:
    d = _as_frame(metric_rows)
    if d.empty or metric_col not in d.columns:
        return {}

    frame = pd.DataFrame({
        OUT_YEAR: _numeric(_column(d, year_col)),
        VALUE_COL: _numeric(_column(d, value_col)),
        UNIT_COL: _column(d, unit_col),
        SDG_COL: _column(d, sdg_col),
    })

    series: dict[Any, pd.DataFrame] = {}
    for name, group in frame.groupby(d[metric_col], sort=False, dropna=True):
        g = group.sort_values(OUT_YEAR, kind="mergesort").reset_index(drop=True)
        g[OUT_YEAR] = _as_year(g[OUT_YEAR])
        series[name] = g
    logger.debug("group_metrics_by_name: %d rows -> %d metrics", len(d), len(series))
    return series


def metric_series(series: Mapping[Any, pd.DataFrame], name: Any) -> pd.DataFrame:
    found = series.get(name)
    if found is None:
        return _empty(METRIC_SERIES_COLUMNS)
    return found


def esg_summary(metric_rows: Rows) -> pd.DataFrame:
    """Latest reported value per metric plus its change against the previous report."""
    records = []
    for name, g in group_metrics_by_name(metric_rows).items():
        g = g.loc[g[OUT_YEAR].notna()]
        if g.empty:
            continue
        last = g.iloc[-1]
        change = float("nan")
        if len(g) > 1:
            change = last[VALUE_COL] - g.iloc[-2][VALUE_COL]
        records.append({
            METRIC_COL: name,
            OUT_YEAR: last[OUT_YEAR],
            VALUE_COL: last[VALUE_COL],
            UNIT_COL: last[UNIT_COL],
            SDG_COL: last[SDG_COL],
            "Change": change,
        })
    if not records:
        return _empty(ESG_SUMMARY_COLUMNS)
    return pd.DataFrame(records, columns=ESG_SUMMARY_COLUMNS)


# -----------------------------
# Benchmark reshaper
# -----------------------------

def pivot_benchmark(
    benchmark_rows: Rows,
    *,
    company_col: str = COMPANY_COL,
    year_col: str = YEAR_COL,
    value_col: str = INTENSITY_COL,
) -> pd.DataFrame:
    """
    Long (company, year, value) rows to one wide record per year.

    Companies become columns in order of first appearance; a repeated
    (year, company) pair keeps the value that appears last in the input.
    """
    d = _as_frame(benchmark_rows)
    if d.empty:
        return _empty([OUT_YEAR])

    frame = pd.DataFrame({
        OUT_YEAR: _numeric(_column(d, year_col)),
        "_company": _column(d, company_col),
        "_value": _numeric(_column(d, value_col)),
    })
    frame = frame.loc[frame[OUT_YEAR].notna() & frame["_company"].notna()]
    if frame.empty:
        return _empty([OUT_YEAR])

    companies = list(pd.unique(frame["_company"]))
    frame = frame.drop_duplicates(subset=[OUT_YEAR, "_company"], keep="last")
    wide = (
        frame.pivot(index=OUT_YEAR, columns="_company", values="_value")
        .reindex(columns=companies)
        .sort_index()
    )
    years = _as_year(pd.Series(wide.index, dtype="float64"))
    wide = wide.reset_index(drop=True)
    wide.columns.name = None
    # a company may itself be called "Year"; the year column stays first
    wide.insert(0, OUT_YEAR, years.to_numpy(), allow_duplicates=True)
    return wide
