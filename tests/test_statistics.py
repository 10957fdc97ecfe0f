"""
测试 StatisticsAggregator 与统计纯函数

测试内容：
1. 通量 / 计数率 / 差值及误差传播
2. 立体角、绝对效率与本征效率
3. 品质因数
4. 宽度直方图与分区平均宽度
5. RunAccumulator 折叠与 RunSummary
"""

import math

import numpy as np
import pytest

from psd_analysis.core.classification import PulseLabel
from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.features import FeatureRecord
from psd_analysis.core.foundation.constants import EJ426_GEOMETRY
from psd_analysis.core.statistics import (
    Measurement,
    RunAccumulator,
    SourceSetup,
    StatisticsAggregator,
    count_rate,
    efficiencies,
    figure_of_merit,
    neutron_flux,
    rate_difference,
    region_width_means,
    solid_angle,
    width_histogram,
)


def _record(width=13, width_valid=True, risetime=16.0):
    return FeatureRecord(
        baseline=100.0,
        peak_signed=50.0,
        peak_abs=50.0,
        low_cross_index=36,
        high_cross_index=36 + width,
        width=width,
        width_valid=width_valid,
        total_integral=750.0,
        peak_integral=0.0,
        tail_integral=750.0,
        risetime=risetime,
        pga_value=50.0,
    )


class TestFluxAndRates:
    def test_flux_value_and_error(self):
        flux = neutron_flux(100, 3600.0, area=255.0, area_err=0.5, time_err=0.5)
        expected = 100 / (255.0 * 3600.0)
        assert flux.value == pytest.approx(expected)
        relative = math.sqrt(1 / 100 + (0.5 / 255.0) ** 2 + (0.5 / 3600.0) ** 2)
        assert flux.error == pytest.approx(expected * relative)

    def test_default_area_is_detector_face(self):
        assert EJ426_GEOMETRY.active_area == pytest.approx(255.0)
        assert neutron_flux(10, 10.0).value == pytest.approx(10 / 2550.0)

    def test_zero_count_has_zero_flux(self):
        assert tuple(neutron_flux(0, 100.0)) == (0.0, 0.0)

    @pytest.mark.parametrize("run_time", [0.0, -5.0])
    def test_run_time_must_be_positive(self, run_time):
        with pytest.raises(ConfigurationError):
            neutron_flux(1, run_time)
        with pytest.raises(ConfigurationError):
            count_rate(1, run_time)

    def test_count_rate(self):
        rate = count_rate(100, 100.0, time_err=0.5)
        assert rate.value == pytest.approx(1.0)
        assert rate.error == pytest.approx(math.sqrt(100.25) / 100.0)

    def test_count_rate_per_hour(self):
        per_second = count_rate(100, 100.0)
        per_hour = count_rate(100, 100.0, per_hour=True)
        assert per_hour.value == pytest.approx(3600.0)
        assert per_hour.error == pytest.approx(per_second.error * 3600.0)

    def test_rate_difference(self):
        diff = rate_difference(Measurement(5.0, 3.0), Measurement(2.0, 4.0))
        assert diff.value == pytest.approx(3.0)
        assert diff.error == pytest.approx(5.0)


class TestEfficiency:
    def test_far_field_solid_angle(self):
        omega = solid_angle(100.0, "horizontal")
        distance = 100.0 + 0.054 / 2
        assert omega == pytest.approx(0.0235 * 0.5 / distance ** 2, rel=1e-3)

    def test_orientation_changes_facing_width(self):
        assert solid_angle(0.5, "vertical") > solid_angle(0.5, "horizontal")

    def test_invalid_orientation(self):
        with pytest.raises(ConfigurationError):
            solid_angle(0.5, "diagonal")

    def test_non_positive_effective_distance(self):
        with pytest.raises(ConfigurationError):
            solid_angle(-1.0, "horizontal")

    def test_efficiencies(self):
        absolute, intrinsic = efficiencies(3600, 3600.0, 2.738e5, 0.5, "horizontal")
        assert absolute == pytest.approx(1 / 2.738e5)
        omega = solid_angle(0.5, "horizontal")
        assert intrinsic == pytest.approx(absolute * 4 * math.pi / omega)
        assert intrinsic > absolute

    def test_source_activity_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            efficiencies(1, 1.0, 0.0, 0.5, "horizontal")


class TestFigureOfMerit:
    def test_value_and_error(self):
        fom = figure_of_merit(75, 2, 5, 2, 50, 2)
        assert fom.value == pytest.approx(75 / 55)
        expected = math.sqrt(4 / 55 ** 2 + 2 * (75 * 2 / 55 ** 2) ** 2)
        assert fom.error == pytest.approx(expected)

    def test_zero_total_width(self):
        with pytest.raises(ConfigurationError):
            figure_of_merit(1, 0, 2, 0, -2, 0)


class TestWidthSpectrum:
    def test_histogram_normalised_by_run_time(self):
        hist = width_histogram(np.array([1, 1, 2, 3.4]), run_time=2.0, bin_size=1.0, w_size=5)
        assert hist.shape == (5, 2)
        np.testing.assert_allclose(hist[:, 0], [0, 1, 2, 3, 4])
        np.testing.assert_allclose(hist[:, 1], [0, 1.0, 0.5, 0.5, 0])

    def test_widths_beyond_last_bin_are_ignored(self):
        hist = width_histogram(np.array([2, 50]), run_time=1.0, bin_size=2.0, w_size=10)
        assert hist[:, 1].sum() == pytest.approx(1.0)

    def test_half_bin_rounds_up(self):
        hist = width_histogram(np.array([5.0]), run_time=4.0, bin_size=2.0, w_size=10)
        assert hist[3, 1] == pytest.approx(0.25)
        assert hist[2, 1] == 0.0

    def test_region_means(self):
        neutron, below = region_width_means(np.array([3, 4, 10, 20, 60]), 5, 50)
        assert neutron == pytest.approx(15.0)
        assert below == pytest.approx(3.5)

    def test_empty_region_is_nan(self):
        neutron, below = region_width_means(np.array([10.0]), 5, 50)
        assert neutron == pytest.approx(10.0)
        assert math.isnan(below)


class TestRunAccumulator:
    def test_fold_counts_labels(self):
        records = [_record(), _record(width=1), _record()]
        labels = [PulseLabel.NEUTRON, PulseLabel.NON_NEUTRON, PulseLabel.NEUTRON]
        acc = RunAccumulator.fold(records, labels)
        assert (acc.neutron_count, acc.non_neutron_count, acc.total_count) == (2, 1, 3)

    def test_fold_rejects_mismatched_labels(self):
        with pytest.raises(ValueError, match="3 feature records but 2 labels"):
            RunAccumulator.fold([_record(), _record(), _record()], [PulseLabel.NEUTRON, PulseLabel.NEUTRON])

    def test_invalid_width_is_excluded_from_counts(self):
        acc = RunAccumulator()
        acc.add_record(_record(width=90, width_valid=False), PulseLabel.NON_NEUTRON)
        assert acc.total_count == 0
        assert acc.n_width_rejected == 1
        assert acc.exclusion_reasons == {"width_out_of_range": 1}

    def test_undefined_risetime_still_counted(self):
        acc = RunAccumulator()
        acc.add_record(_record(risetime=float("nan")), PulseLabel.NEUTRON)
        assert acc.n_risetime_undefined == 1
        assert acc.neutron_count == 1

    def test_frame_diagnostics(self):
        acc = RunAccumulator()
        acc.add_frame(100.0, 50.0, 1.0)
        acc.add_frame(102.0, 30.0, 3.0)
        acc.add_degenerate("no_crossing")
        assert acc.mean_baseline == pytest.approx(101.0)
        assert acc.mean_peak == pytest.approx(40.0)
        assert acc.mean_deviation == pytest.approx(2.0)
        assert acc.exclusion_reasons == {"no_crossing": 1}

    def test_empty_means_are_nan(self):
        assert math.isnan(RunAccumulator().mean_baseline)


class TestStatisticsAggregator:
    def test_summary_without_source(self):
        acc = RunAccumulator.fold([_record()] * 3, [PulseLabel.NEUTRON, PulseLabel.NEUTRON, PulseLabel.NON_NEUTRON])
        summary = StatisticsAggregator().summarize(acc, "run_001", run_time=100.0)
        assert summary.neutron_count == 2
        assert summary.non_neutron_count == 1
        assert summary.total_count == 3
        assert summary.flux.value == pytest.approx(2 / (255.0 * 100.0))
        assert summary.neutron_rate.value == pytest.approx(0.02)
        assert summary.neutron_rate_hr.value == pytest.approx(72.0)
        assert summary.rate_difference.value == pytest.approx(0.01 - 0.02)
        assert summary.absolute_efficiency is None
        assert summary.intrinsic_efficiency is None

    def test_summary_with_source(self):
        acc = RunAccumulator.fold([_record()], [PulseLabel.NEUTRON])
        source = SourceSetup(activity=2.738e5, distance=0.5, orientation="horizontal")
        summary = StatisticsAggregator().summarize(acc, "run_002", run_time=10.0, source=source)
        absolute, intrinsic = efficiencies(1, 10.0, 2.738e5, 0.5, "horizontal")
        assert summary.absolute_efficiency == pytest.approx(absolute)
        assert summary.intrinsic_efficiency == pytest.approx(intrinsic)

    def test_to_dict_flattens_measurements(self):
        acc = RunAccumulator.fold([_record()], [PulseLabel.NEUTRON])
        flat = StatisticsAggregator().summarize(acc, "run_003", run_time=10.0).to_dict()
        assert flat["run_id"] == "run_003"
        assert flat["flux"] == pytest.approx(1 / 2550.0)
        assert "flux_error" in flat
        assert "neutron_rate_hr_error" in flat

    def test_summary_is_immutable(self):
        summary = StatisticsAggregator().summarize(RunAccumulator(), "run_004", run_time=1.0)
        with pytest.raises(AttributeError):
            summary.neutron_count = 5
