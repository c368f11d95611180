from __future__ import annotations
import pandas as pd

# Illustrative numbers so the dashboard is usable before any upload.
# Replace with official datasets for publication.

SAMPLE_OBSERVATIONS = [
    {"Title": "Halo Infinite", "FiscalYear": 2022, "Region": "US", "AverageACPower_W": 78, "TitleEnergy_MWh": 1200, "TitleCO2e_MetricTon": 540},
    {"Title": "Forza Horizon 5", "FiscalYear": 2022, "Region": "US", "AverageACPower_W": 72, "TitleEnergy_MWh": 950, "TitleCO2e_MetricTon": 410},
    {"Title": "Sea of Thieves", "FiscalYear": 2022, "Region": "EU", "AverageACPower_W": 65, "TitleEnergy_MWh": 620, "TitleCO2e_MetricTon": 270},
    {"Title": "Halo Infinite", "FiscalYear": 2023, "Region": "US", "AverageACPower_W": 70, "TitleEnergy_MWh": 1100, "TitleCO2e_MetricTon": 480},
    {"Title": "Forza Horizon 5", "FiscalYear": 2023, "Region": "EU", "AverageACPower_W": 69, "TitleEnergy_MWh": 900, "TitleCO2e_MetricTon": 380},
    {"Title": "Sea of Thieves", "FiscalYear": 2023, "Region": "EU", "AverageACPower_W": 60, "TitleEnergy_MWh": 540, "TitleCO2e_MetricTon": 240},
    {"Title": "Starfield", "FiscalYear": 2024, "Region": "US", "AverageACPower_W": 82, "TitleEnergy_MWh": 1300, "TitleCO2e_MetricTon": 560},
    {"Title": "Forza Motorsport", "FiscalYear": 2024, "Region": "US", "AverageACPower_W": 75, "TitleEnergy_MWh": 980, "TitleCO2e_MetricTon": 420},
    {"Title": "Hi-Fi Rush", "FiscalYear": 2024, "Region": "APAC", "AverageACPower_W": 52, "TitleEnergy_MWh": 300, "TitleCO2e_MetricTon": 120},
]

SAMPLE_ESG = [
    {"Metric": "RenewableEnergyShare", "Year": 2022, "Value": 58, "Unit": "%", "SDG": "SDG 7"},
    {"Metric": "RenewableEnergyShare", "Year": 2023, "Value": 64, "Unit": "%", "SDG": "SDG 7"},
    {"Metric": "RenewableEnergyShare", "Year": 2024, "Value": 71, "Unit": "%", "SDG": "SDG 7"},
    {"Metric": "WaterReplenished", "Year": 2023, "Value": 6.1, "Unit": "billion L", "SDG": "SDG 6"},
    {"Metric": "WaterReplenished", "Year": 2024, "Value": 7.4, "Unit": "billion L", "SDG": "SDG 6"},
    {"Metric": "WasteDiverted", "Year": 2023, "Value": 82, "Unit": "%", "SDG": "SDG 12"},
    {"Metric": "WasteDiverted", "Year": 2024, "Value": 85, "Unit": "%", "SDG": "SDG 12"},
    {"Metric": "LowCarbonContracts", "Year": 2023, "Value": 18, "Unit": "GW", "SDG": "SDG 13"},
    {"Metric": "LowCarbonContracts", "Year": 2024, "Value": 22, "Unit": "GW", "SDG": "SDG 13"},
    {"Metric": "SustainableInnovationPilots", "Year": 2024, "Value": 35, "Unit": "projects", "SDG": "SDG 9"},
]

SAMPLE_BENCHMARK = [
    {"Company": "Microsoft", "Year": 2022, "EmissionsIntensity": 18.5},
    {"Company": "Microsoft", "Year": 2023, "EmissionsIntensity": 17.2},
    {"Company": "Microsoft", "Year": 2024, "EmissionsIntensity": 16.0},
    {"Company": "Peer Avg", "Year": 2022, "EmissionsIntensity": 22.0},
    {"Company": "Peer Avg", "Year": 2023, "EmissionsIntensity": 21.1},
    {"Company": "Peer Avg", "Year": 2024, "EmissionsIntensity": 20.4},
]


def sample_observations() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_OBSERVATIONS)


def sample_metrics() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_ESG)


def sample_benchmarks() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_BENCHMARK)
