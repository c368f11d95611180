"""Tests for ``sustainability_dashboard.engine``: filtering and aggregation."""

from __future__ import annotations

import math

import pandas as pd
import pytest

from sustainability_dashboard.config import ALL_REGIONS, DEFAULT_YEAR_RANGE
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
    to_number,
    top_efficiency,
    year_bounds,
)


class TestFilterRows:
    def test_full_bounds_and_wildcard_is_identity(self, observations):
        out = filter_rows(observations, year_bounds(observations), ALL_REGIONS)
        pd.testing.assert_frame_equal(out, observations)

    def test_year_interval_is_inclusive(self, observations):
        out = filter_rows(observations, (2023, 2024), ALL_REGIONS)
        assert len(out) == 6
        assert set(out["FiscalYear"]) == {2023, 2024}

    def test_region_equality(self, observations):
        out = filter_rows(observations, (2023, 2023), "EU")
        assert out["Title"].tolist() == ["Forza Horizon 5", "Sea of Thieves"]

    def test_matches_predicate_for_every_row(self, observations):
        out = filter_rows(observations, (2022, 2023), "US")
        expected = observations[
            observations["FiscalYear"].between(2022, 2023) & (observations["Region"] == "US")
        ]
        pd.testing.assert_frame_equal(out, expected)

    def test_none_region_means_all(self, observations):
        assert len(filter_rows(observations, (2022, 2024), None)) == len(observations)

    def test_reversed_interval_is_normalised(self, observations):
        assert len(filter_rows(observations, (2024, 2022))) == len(observations)

    def test_unusable_years_are_excluded(self):
        rows = [
            {"Title": "A", "FiscalYear": None, "Region": "US"},
            {"Title": "B", "FiscalYear": "soon", "Region": "US"},
            {"Title": "C", "FiscalYear": "2023", "Region": "US"},
        ]
        out = filter_rows(rows, (2000, 2100), ALL_REGIONS)
        assert out["Title"].tolist() == ["C"]

    def test_missing_region_column_matches_only_wildcard(self):
        rows = [{"Title": "A", "FiscalYear": 2022}]
        assert len(filter_rows(rows, (2022, 2022), ALL_REGIONS)) == 1
        assert filter_rows(rows, (2022, 2022), "US").empty

    def test_empty_input(self):
        assert filter_rows([], (2022, 2024), ALL_REGIONS).empty
        assert filter_rows(pd.DataFrame(), (2022, 2024), "US").empty

    def test_input_not_mutated(self, observations):
        before = observations.copy()
        out = filter_rows(observations, (2022, 2022), "US")
        out["Title"] = "changed"
        pd.testing.assert_frame_equal(observations, before)


class TestYearBoundsAndRegions:
    def test_bounds_from_data(self, observations):
        assert year_bounds(observations) == (2022, 2024)

    def test_zero_and_non_numeric_years_ignored(self):
        rows = [{"FiscalYear": 0}, {"FiscalYear": "x"}, {"FiscalYear": 2019}, {"FiscalYear": 2021}]
        assert year_bounds(rows) == (2019, 2021)

    def test_default_interval_without_usable_years(self):
        assert year_bounds([]) == DEFAULT_YEAR_RANGE
        assert year_bounds([{"FiscalYear": None}, {"FiscalYear": 0}]) == DEFAULT_YEAR_RANGE
        assert year_bounds([{"Title": "A"}]) == DEFAULT_YEAR_RANGE

    def test_region_choices_first_appearance(self, observations):
        assert region_choices(observations) == [ALL_REGIONS, "US", "EU", "APAC"]

    def test_region_choices_skip_blank(self):
        rows = [{"Region": ""}, {"Region": None}, {"Region": "EU"}, {"Region": "EU"}]
        assert region_choices(rows) == [ALL_REGIONS, "EU"]


class TestComputeKpis:
    def test_empty_selection_is_all_zero(self):
        kpis = compute_kpis([])
        assert kpis == {"total_energy": 0.0, "total_co2": 0.0, "avg_power": 0.0, "titles": 0}
        assert not any(isinstance(v, float) and math.isnan(v) for v in kpis.values())

    def test_sample_totals(self, observations):
        kpis = compute_kpis(observations)
        assert kpis["total_energy"] == 7890
        assert kpis["total_co2"] == 3420
        assert kpis["avg_power"] == pytest.approx(623 / 9)
        assert kpis["titles"] == 6

    def test_distinct_titles_not_rows(self):
        rows = [
            {"Title": "A", "TitleEnergy_MWh": 1},
            {"Title": "A", "TitleEnergy_MWh": 2},
            {"Title": "B", "TitleEnergy_MWh": 3},
        ]
        assert compute_kpis(rows)["titles"] == 2

    def test_missing_and_non_numeric_measures_count_as_zero(self):
        rows = [
            {"Title": "A", "AverageACPower_W": "n/a", "TitleEnergy_MWh": "n/a", "TitleCO2e_MetricTon": None},
            {"Title": "B", "AverageACPower_W": 80, "TitleEnergy_MWh": 10, "TitleCO2e_MetricTon": 4},
        ]
        kpis = compute_kpis(rows)
        assert kpis["total_energy"] == 10
        assert kpis["total_co2"] == 4
        # mean is over all rows, the unparseable one contributes 0
        assert kpis["avg_power"] == 40

    def test_missing_columns(self):
        kpis = compute_kpis([{"Title": "A"}])
        assert kpis == {"total_energy": 0.0, "total_co2": 0.0, "avg_power": 0.0, "titles": 1}


class TestGroupByYear:
    def test_sample_series(self, observations):
        out = group_by_year(observations)
        assert out.columns.tolist() == ["Year", "Energy_MWh", "CO2e_t"]
        assert out["Year"].tolist() == [2022, 2023, 2024]
        assert out["Energy_MWh"].tolist() == [2770, 2540, 2580]
        assert out["CO2e_t"].tolist() == [1220, 1100, 1100]

    def test_sum_conservation(self, observations):
        out = group_by_year(observations)
        assert out["Energy_MWh"].sum() == observations["TitleEnergy_MWh"].sum()
        assert out["CO2e_t"].sum() == observations["TitleCO2e_MetricTon"].sum()

    def test_ascending_regardless_of_input_order(self):
        rows = [
            {"FiscalYear": 2024, "TitleEnergy_MWh": 1},
            {"FiscalYear": 2022, "TitleEnergy_MWh": 2},
            {"FiscalYear": 2023, "TitleEnergy_MWh": 3},
        ]
        assert group_by_year(rows)["Year"].tolist() == [2022, 2023, 2024]

    def test_gaps_are_not_filled_by_default(self):
        rows = [{"FiscalYear": 2020, "TitleEnergy_MWh": 5}, {"FiscalYear": 2023, "TitleEnergy_MWh": 7}]
        assert group_by_year(rows)["Year"].tolist() == [2020, 2023]

    def test_fill_gaps_inserts_zero_years(self):
        rows = [{"FiscalYear": 2020, "TitleEnergy_MWh": 5}, {"FiscalYear": 2023, "TitleEnergy_MWh": 7}]
        out = group_by_year(rows, fill_gaps=True)
        assert out["Year"].tolist() == [2020, 2021, 2022, 2023]
        assert out["Energy_MWh"].tolist() == [5, 0, 0, 7]
        assert out["CO2e_t"].tolist() == [0, 0, 0, 0]

    def test_empty(self):
        out = group_by_year([])
        assert out.empty
        assert out.columns.tolist() == ["Year", "Energy_MWh", "CO2e_t"]


class TestTopEfficiency:
    def test_scenario_ranking(self, scenario_rows):
        out = top_efficiency(scenario_rows, 10)
        assert out["Title"].tolist() == ["Y", "X"]
        assert out["CO2e_per_MWh"].tolist() == pytest.approx([0.2, 0.5])

    def test_sample_ranking(self, observations):
        out = top_efficiency(observations, 3)
        assert out["Title"].tolist() == ["Hi-Fi Rush", "Forza Horizon 5", "Forza Motorsport"]
        assert out.columns.tolist() == ["Title", "Energy_MWh", "CO2e_t", "CO2e_per_MWh"]

    def test_sums_per_title(self, observations):
        out = top_efficiency(observations, 10).set_index("Title")
        assert out.loc["Halo Infinite", "Energy_MWh"] == 2300
        assert out.loc["Halo Infinite", "CO2e_t"] == 1020

    def test_zero_energy_yields_zero_ratio(self):
        rows = [
            {"Title": "NoEnergy", "TitleEnergy_MWh": 0, "TitleCO2e_MetricTon": 500},
            {"Title": "Missing", "TitleCO2e_MetricTon": 10},
        ]
        out = top_efficiency(rows, 10)
        assert out["CO2e_per_MWh"].tolist() == [0.0, 0.0]
        assert all(math.isfinite(v) for v in out["CO2e_per_MWh"])

    def test_ties_keep_first_appearance_order(self):
        rows = [
            {"Title": "C", "TitleEnergy_MWh": 10, "TitleCO2e_MetricTon": 5},
            {"Title": "B", "TitleEnergy_MWh": 10, "TitleCO2e_MetricTon": 1},
            {"Title": "A", "TitleEnergy_MWh": 20, "TitleCO2e_MetricTon": 2},
        ]
        assert top_efficiency(rows, 10)["Title"].tolist() == ["B", "A", "C"]

    def test_length_is_min_of_k_and_titles(self, observations):
        assert len(top_efficiency(observations, 4)) == 4
        assert len(top_efficiency(observations, 50)) == 6
        assert top_efficiency(observations, 0).empty

    def test_deterministic(self, observations):
        pd.testing.assert_frame_equal(top_efficiency(observations, 5), top_efficiency(observations, 5))

    def test_rows_without_title_are_not_ranked(self):
        rows = [{"Title": None, "TitleEnergy_MWh": 1}, {"Title": "A", "TitleEnergy_MWh": 1}]
        assert top_efficiency(rows)["Title"].tolist() == ["A"]


class TestMetricSeries:
    def test_grouped_and_sorted_by_year(self):
        rows = [
            {"Metric": "M", "Year": 2024, "Value": 3, "Unit": "%", "SDG": "SDG 7"},
            {"Metric": "N", "Year": 2023, "Value": 9, "Unit": "GW", "SDG": "SDG 13"},
            {"Metric": "M", "Year": 2022, "Value": 1, "Unit": "%", "SDG": "SDG 7"},
        ]
        series = group_metrics_by_name(rows)
        assert list(series) == ["M", "N"]
        assert series["M"]["Year"].tolist() == [2022, 2024]
        assert series["M"]["Value"].tolist() == [1, 3]
        assert series["M"].columns.tolist() == ["Year", "Value", "Unit", "SDG"]

    def test_sample(self, metrics):
        series = group_metrics_by_name(metrics)
        assert len(series) == 5
        assert series["RenewableEnergyShare"]["Value"].tolist() == [58, 64, 71]

    def test_missing_lookup_is_empty(self, metrics):
        out = metric_series(group_metrics_by_name(metrics), "NotAMetric")
        assert out.empty
        assert out.columns.tolist() == ["Year", "Value", "Unit", "SDG"]

    def test_no_metric_column(self):
        assert group_metrics_by_name([{"Year": 2022}]) == {}
        assert group_metrics_by_name([]) == {}

    def test_esg_summary_latest_and_change(self, metrics):
        summary = esg_summary(metrics).set_index("Metric")
        assert summary.loc["RenewableEnergyShare", "Value"] == 71
        assert summary.loc["RenewableEnergyShare", "Change"] == 7
        assert summary.loc["WaterReplenished", "Change"] == pytest.approx(1.3)
        assert math.isnan(summary.loc["SustainableInnovationPilots", "Change"])

    def test_esg_summary_empty(self):
        assert esg_summary([]).empty


class TestPivotBenchmark:
    def test_last_write_wins(self):
        rows = [
            {"Company": "A", "Year": 2022, "EmissionsIntensity": 10},
            {"Company": "A", "Year": 2022, "EmissionsIntensity": 20},
        ]
        assert pivot_benchmark(rows).to_dict("records") == [{"Year": 2022, "A": 20.0}]

    def test_sample_wide_table(self, benchmarks):
        wide = pivot_benchmark(benchmarks)
        assert wide.columns.tolist() == ["Year", "Microsoft", "Peer Avg"]
        assert wide["Year"].tolist() == [2022, 2023, 2024]
        assert wide["Peer Avg"].tolist() == [22.0, 21.1, 20.4]

    def test_company_missing_for_a_year(self):
        rows = [
            {"Company": "B", "Year": 2023, "EmissionsIntensity": 2},
            {"Company": "A", "Year": 2022, "EmissionsIntensity": 1},
        ]
        wide = pivot_benchmark(rows)
        assert wide.columns.tolist() == ["Year", "B", "A"]
        assert wide["Year"].tolist() == [2022, 2023]
        assert math.isnan(wide.loc[0, "B"])
        assert wide.loc[1, "B"] == 2

    def test_empty(self):
        assert pivot_benchmark([]).columns.tolist() == ["Year"]
        assert pivot_benchmark([{"Company": "A"}]).empty

    def test_company_named_like_year_column(self):
        rows = [
            {"Company": "Year", "Year": 2022, "EmissionsIntensity": 1},
            {"Company": "A", "Year": 2023, "EmissionsIntensity": 2},
        ]
        wide = pivot_benchmark(rows)
        assert wide.columns.tolist() == ["Year", "Year", "A"]
        assert wide.iloc[:, 0].tolist() == [2022, 2023]
        assert wide.iloc[0, 1] == 1
        assert math.isnan(wide.iloc[1, 1])


class TestInputsUnchanged:
    def test_observation_stages(self):
        rows = pd.DataFrame({
            "Title": ["B", None, "A", "B"],
            "FiscalYear": ["2023", 2022, "n/a", 2022.0],
            "Region": ["US", None, " EU", "US"],
            "AverageACPower_W": [None, "x", 60, float("inf")],
            "TitleEnergy_MWh": ["10", 0, None, "abc"],
            "TitleCO2e_MetricTon": [5, "", float("nan"), 2],
        })
        before = rows.copy()
        filter_rows(rows, (2022, 2023), "US")
        compute_kpis(rows)
        group_by_year(rows, fill_gaps=True)
        top_efficiency(rows, 2)
        year_bounds(rows)
        region_choices(rows)
        pd.testing.assert_frame_equal(rows, before)

    def test_metric_stages(self):
        rows = pd.DataFrame({
            "Metric": ["Water", None, "Water", "Waste"],
            "Year": [2024, 2022, "x", 2023],
            "Value": ["6.1", 3, None, "bad"],
            "Unit": ["L", None, "L", "t"],
            "SDG": ["SDG 6", None, "SDG 6", None],
        })
        before = rows.copy()
        metric_series(group_metrics_by_name(rows), "Water")
        esg_summary(rows)
        pd.testing.assert_frame_equal(rows, before)

    def test_benchmark_stage(self):
        rows = pd.DataFrame({
            "Company": ["A", "A", None, "B"],
            "Year": [2022, 2022, 2023, "x"],
            "EmissionsIntensity": ["1", 2, 3, None],
        })
        before = rows.copy()
        pivot_benchmark(rows)
        pd.testing.assert_frame_equal(rows, before)


class TestHelpers:
    def test_to_number(self):
        s = pd.Series([1, "2", "x", None, float("inf")])
        assert to_number(s).tolist() == [1.0, 2.0, 0.0, 0.0, 0.0]

    @pytest.mark.parametrize(
        "value,digits,expected",
        [
            (1234567, 0, "1,234,567"),
            (1234.56, 1, "1,234.6"),
            (0, 0, "0"),
            (None, 0, "–"),
            (float("nan"), 1, "–"),
            ("abc", 0, "–"),
        ],
    )
    def test_number_fmt(self, value, digits, expected):
        assert number_fmt(value, digits) == expected


class TestEndToEnd:
    def test_scenario(self, scenario_rows):
        rows = filter_rows(scenario_rows, (2022, 2022), ALL_REGIONS)
        kpis = compute_kpis(rows)
        assert kpis["total_energy"] == 300
        assert kpis["total_co2"] == 90
        assert kpis["titles"] == 2
        ranking = top_efficiency(rows, 10)
        assert ranking[["Title", "CO2e_per_MWh"]].to_dict("records") == [
            {"Title": "Y", "CO2e_per_MWh": pytest.approx(0.2)},
            {"Title": "X", "CO2e_per_MWh": pytest.approx(0.5)},
        ]
