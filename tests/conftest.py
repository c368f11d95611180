"""
Shared pytest fixtures for the dashboard tests.

- sample frames (the bundled datasets)
- the two-title scenario rows used across engine tests
- ``write_csv`` to drop CSV text into ``tmp_path``
"""
import matplotlib

matplotlib.use("Agg")

import pytest

from sustainability_dashboard.samples import sample_benchmarks, sample_metrics, sample_observations


@pytest.fixture
def observations():
    return sample_observations()


@pytest.fixture
def metrics():
    return sample_metrics()


@pytest.fixture
def benchmarks():
    return sample_benchmarks()


@pytest.fixture
def scenario_rows():
    return [
        {"Title": "X", "FiscalYear": 2022, "Region": "US", "TitleEnergy_MWh": 100, "TitleCO2e_MetricTon": 50},
        {"Title": "Y", "FiscalYear": 2022, "Region": "EU", "TitleEnergy_MWh": 200, "TitleCO2e_MetricTon": 40},
    ]


@pytest.fixture
def write_csv(tmp_path):
    def _write(name: str, text: str):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
