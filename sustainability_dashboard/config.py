from __future__ import annotations
import logging
import os
from pathlib import Path


# =============================================================================
# Dataset layout
# =============================================================================
# Observation rows (sustainability per title):
#   Title,FiscalYear,Region,AverageACPower_W,TitleEnergy_MWh,TitleCO2e_MetricTon
# ESG metric rows:
#   Metric,Year,Value,Unit,SDG
# Benchmark rows (optional):
#   Company,Year,EmissionsIntensity
# =============================================================================

TITLE_COL = "Title"
FISCAL_YEAR_COL = "FiscalYear"
REGION_COL = "Region"
POWER_COL = "AverageACPower_W"
ENERGY_COL = "TitleEnergy_MWh"
CO2_COL = "TitleCO2e_MetricTon"

OBSERVATION_COLUMNS = [TITLE_COL, FISCAL_YEAR_COL, REGION_COL, POWER_COL, ENERGY_COL, CO2_COL]
OBSERVATION_REQUIRED = [TITLE_COL, FISCAL_YEAR_COL]
OBSERVATION_NUMERIC = [FISCAL_YEAR_COL, POWER_COL, ENERGY_COL, CO2_COL]

METRIC_COL = "Metric"
YEAR_COL = "Year"
VALUE_COL = "Value"
UNIT_COL = "Unit"
SDG_COL = "SDG"

METRIC_COLUMNS = [METRIC_COL, YEAR_COL, VALUE_COL, UNIT_COL, SDG_COL]
METRIC_REQUIRED = [METRIC_COL, YEAR_COL, VALUE_COL]
METRIC_NUMERIC = [YEAR_COL, VALUE_COL]

COMPANY_COL = "Company"
INTENSITY_COL = "EmissionsIntensity"

BENCHMARK_COLUMNS = [COMPANY_COL, YEAR_COL, INTENSITY_COL]
BENCHMARK_REQUIRED = [COMPANY_COL, YEAR_COL, INTENSITY_COL]
BENCHMARK_NUMERIC = [YEAR_COL, INTENSITY_COL]

# Output field names of the derived views (stable, charts key on them)
OUT_YEAR = "Year"
OUT_ENERGY = "Energy_MWh"
OUT_CO2 = "CO2e_t"
OUT_RATIO = "CO2e_per_MWh"

# =============================================================================
# Filters & defaults
# =============================================================================

ALL_REGIONS = "ALL"
DEFAULT_YEAR_RANGE = (2022, 2024)  # nominal reporting span when data has no usable year
TOP_N = 10

SDGS = [
    {"code": "SDG 6", "label": "Clean Water & Sanitation"},
    {"code": "SDG 7", "label": "Affordable & Clean Energy"},
    {"code": "SDG 9", "label": "Industry, Innovation & Infrastructure"},
    {"code": "SDG 12", "label": "Responsible Consumption & Production"},
    {"code": "SDG 13", "label": "Climate Action"},
]

# (metric name, card title, series label, chart kind) per SDG tab chart
SDG_CHARTS = [
    ("RenewableEnergyShare", "SDG 7 • Renewable Energy Share (%)", "Renewables %", "line"),
    ("WaterReplenished", "SDG 6 • Water Replenished (billion L)", "Water (bn L)", "line"),
    ("WasteDiverted", "SDG 12 • Waste Diverted (%)", "Waste Diverted %", "line"),
    ("LowCarbonContracts", "SDG 13 • Low-Carbon Power Contracts (GW)", "GW", "area"),
]

PALETTE = ["#2563eb", "#16a34a", "#f59e0b", "#ef4444", "#14b8a6", "#a855f7", "#0ea5e9"]

# =============================================================================
# Environment
# =============================================================================


def _env_path(name: str) -> Path | None:
    raw = os.environ.get(name, "").strip()
    return Path(raw) if raw else None


OBSERVATIONS_FILE = _env_path("SUSTAINABILITY_OBSERVATIONS_CSV")
ESG_FILE = _env_path("SUSTAINABILITY_ESG_CSV")
BENCHMARK_FILE = _env_path("SUSTAINABILITY_BENCHMARK_CSV")
LOG_LEVEL = os.environ.get("SUSTAINABILITY_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
