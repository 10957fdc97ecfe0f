"""
测试标准插件链：raw_samples -> frames -> pulse_features -> frame_stats
-> neutron_labels -> run_summary
"""

import numpy as np
import pytest

from psd_analysis.core.context import Context
from psd_analysis.core.exceptions import ConfigurationError, ResourceNotFoundError
from psd_analysis.core.features import FEATURE_RECORD_DTYPE
from psd_analysis.core.plugins import (
    FRAME_STATS_DTYPE,
    NEUTRON_LABEL_DTYPE,
    FramesPlugin,
    FrameStatsPlugin,
    NeutronClassifierPlugin,
    PulseFeaturesPlugin,
    RawSamplesPlugin,
    RunSummaryPlugin,
    standard_plugins,
)
from psd_analysis.core.processing import FramedRun
from tests.utils import SMALL_LAYOUT, flat_frame, gamma_frame, neutron_frame, write_samples

FEATURE_CONFIG = {
    key: SMALL_LAYOUT[key] for key in ("base_l_end", "peak_x", "tail_end", "w_start", "w_end", "pga_sample")
}


def pileup_frame():
    """Two separated spikes: crossing width 83 samples, beyond 0.8 * w_size."""
    frame = flat_frame()
    frame[12] = 150.0
    frame[95] = 150.0
    return frame


def _framed(*frames):
    return FramedRun(frames=np.vstack(frames))


def _downstream_context(frames, **run_summary):
    ctx = Context(plugins=[PulseFeaturesPlugin(), FrameStatsPlugin(), NeutronClassifierPlugin(), RunSummaryPlugin()])
    ctx._set_data("run_001", "frames", frames)
    ctx.set_config(
        {
            "pulse_features": FEATURE_CONFIG,
            "neutron_labels": {"low_cut": 5.0, "high_cut": 50.0},
            "run_summary": {"run_time": 100.0, **run_summary},
        }
    )
    return ctx


class TestPulseFeaturesPlugin:
    def test_degenerate_frames_produce_no_record(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"pulse_features": FEATURE_CONFIG},
            data={"frames": _framed(neutron_frame(), flat_frame(), gamma_frame())},
        )
        features = PulseFeaturesPlugin().compute(ctx, "run_001")
        assert features.dtype == FEATURE_RECORD_DTYPE
        assert features["frame_index"].tolist() == [0, 2]
        assert features["width"].tolist() == [13, 1]
        assert features["width_valid"].all()

    def test_progress_bar_option(self, fake_context_factory, mixed_frames):
        ctx = fake_context_factory(
            config={"pulse_features": dict(FEATURE_CONFIG, show_progress=True)},
            data={"frames": FramedRun(frames=mixed_frames)},
        )
        assert len(PulseFeaturesPlugin().compute(ctx, "run_001")) == 5

    def test_no_frames(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"pulse_features": FEATURE_CONFIG},
            data={"frames": FramedRun(frames=np.zeros((0, 100)))},
        )
        features = PulseFeaturesPlugin().compute(ctx, "run_001")
        assert features.shape == (0,)
        assert features.dtype == FEATURE_RECORD_DTYPE

    def test_window_outside_frame_is_configuration_error(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"pulse_features": dict(FEATURE_CONFIG, pga_sample=150)},
            data={"frames": _framed(neutron_frame())},
        )
        with pytest.raises(ConfigurationError):
            PulseFeaturesPlugin().compute(ctx, "run_001")

    def test_pileup_marked_invalid(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"pulse_features": FEATURE_CONFIG},
            data={"frames": _framed(pileup_frame())},
        )
        features = PulseFeaturesPlugin().compute(ctx, "run_001")
        assert features["width"][0] == 83
        assert not features["width_valid"][0]


class TestFrameStatsPlugin:
    def test_every_frame_gets_a_row(self, fake_context_factory):
        framed = _framed(neutron_frame(pre_noise=2.0), flat_frame(), gamma_frame())
        features = np.zeros(2, dtype=FEATURE_RECORD_DTYPE)
        features["frame_index"] = [0, 2]
        ctx = fake_context_factory(
            config={"pulse_features": {"base_l_end": 10}},
            data={"frames": framed, "pulse_features": features},
        )
        stats = FrameStatsPlugin().compute(ctx, "run_001")
        assert stats.dtype == FRAME_STATS_DTYPE
        assert stats["degenerate"].tolist() == [False, True, False]
        np.testing.assert_allclose(stats["baseline"], [100.0, 100.0, 100.0])
        np.testing.assert_allclose(stats["peak_abs"], [50.0, 0.0, 50.0])
        assert stats["baseline_deviation"][0] == pytest.approx(2.0)


class TestNeutronClassifierPlugin:
    def _features(self):
        features = np.zeros(3, dtype=FEATURE_RECORD_DTYPE)
        features["frame_index"] = [0, 1, 3]
        features["width"] = [13, 1, 50]
        features["pga_value"] = [2.0, 30.0, 7.0]
        return features

    def test_width_window(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"neutron_labels": {"low_cut": 5.0, "high_cut": 50.0}},
            data={"pulse_features": self._features()},
        )
        labels = NeutronClassifierPlugin().compute(ctx, "run_001")
        assert labels.dtype == NEUTRON_LABEL_DTYPE
        assert labels["frame_index"].tolist() == [0, 1, 3]
        assert labels["label"].tolist() == [1, 0, 1]

    def test_alternative_feature(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"neutron_labels": {"feature": "pga_value", "low_cut": 5.0, "high_cut": 10.0}},
            data={"pulse_features": self._features()},
        )
        labels = NeutronClassifierPlugin().compute(ctx, "run_001")
        assert labels["label"].tolist() == [0, 0, 1]
        np.testing.assert_allclose(labels["feature"], [2.0, 30.0, 7.0])

    def test_unknown_feature_rejected(self, fake_context_factory):
        ctx = fake_context_factory(
            config={"neutron_labels": {"feature": "colour"}},
            data={"pulse_features": self._features()},
        )
        with pytest.raises(ValueError):
            NeutronClassifierPlugin().compute(ctx, "run_001")

    def test_requires_structured_features(self, fake_context_factory):
        ctx = fake_context_factory(data={"pulse_features": [13, 1]})
        with pytest.raises(ConfigurationError):
            NeutronClassifierPlugin().compute(ctx, "run_001")


class TestRunSummaryPlugin:
    def test_counts_and_exclusions(self, mixed_frames):
        framed = FramedRun(frames=np.vstack([mixed_frames, flat_frame(), pileup_frame()]), n_dropped_samples=4)
        summary = _downstream_context(framed).get_data("run_001", "run_summary")
        assert summary.n_frames == 7
        assert summary.neutron_count == 3
        assert summary.non_neutron_count == 2
        assert summary.n_degenerate == 1
        assert summary.n_width_rejected == 1
        assert summary.n_excluded == 2
        assert summary.n_dropped_samples == 4
        assert summary.mean_baseline == pytest.approx(100.0)
        assert summary.mean_peak == pytest.approx(300.0 / 7)
        assert summary.absolute_efficiency is None

    def test_source_enables_efficiency(self, mixed_frames):
        ctx = _downstream_context(
            FramedRun(frames=mixed_frames), source_activity=2.738e5, source_distance=0.5, orientation="vertical"
        )
        summary = ctx.get_data("run_001", "run_summary")
        assert summary.absolute_efficiency == pytest.approx(3 / 100.0 / 2.738e5)
        assert summary.intrinsic_efficiency > summary.absolute_efficiency

    def test_zero_distance_means_no_source(self, mixed_frames):
        ctx = _downstream_context(FramedRun(frames=mixed_frames), source_activity=2.738e5, source_distance=0.0)
        assert ctx.get_data("run_001", "run_summary").absolute_efficiency is None

    def test_run_time_required(self, mixed_frames):
        ctx = _downstream_context(FramedRun(frames=mixed_frames), run_time=None)
        with pytest.raises(ConfigurationError) as excinfo:
            ctx.get_data("run_001", "run_summary")
        assert excinfo.value.run_id == "run_001"


class TestInputPlugins:
    def _context(self, path, w_size=100, n_columns=2):
        ctx = Context(plugins=[RawSamplesPlugin(), FramesPlugin()])
        ctx.set_config({"raw_samples": {"input_path": str(path), "n_columns": n_columns}, "frames": {"w_size": w_size}})
        return ctx

    def test_file_to_frames(self, tmp_path, mixed_frames):
        path = write_samples(tmp_path / "run.txt", mixed_frames, trailing=[1, 2, 3])
        framed = self._context(path).get_data("run", "frames")
        assert framed.n_frames == 5
        assert framed.n_dropped_samples == 3
        np.testing.assert_allclose(framed.frames[1], gamma_frame())

    def test_malformed_file_keeps_complete_frames(self, tmp_path, mixed_frames):
        path = write_samples(tmp_path / "run.dat", mixed_frames[:2], n_columns=1, trailing=[5, 5])
        with open(path, "a", encoding="utf-8") as f:
            f.write("garbage\n7\n")
        framed = self._context(path, n_columns=1).get_data("run", "frames")
        assert framed.n_frames == 2
        assert framed.error is not None
        assert framed.error.run_id == "run"

    def test_missing_input_file(self, tmp_path):
        with pytest.raises(ResourceNotFoundError):
            self._context(tmp_path / "absent.txt").get_data("run", "frames")

    def test_input_path_required(self):
        ctx = Context(plugins=[RawSamplesPlugin()])
        with pytest.raises(ConfigurationError):
            ctx.get_data("run", "raw_samples")


def test_standard_plugins_cover_the_chain():
    ctx = Context(plugins=standard_plugins())
    assert ctx.resolve_dependencies("run_summary") == [
        "raw_samples",
        "frames",
        "pulse_features",
        "frame_stats",
        "neutron_labels",
        "run_summary",
    ]


def test_standard_plugins_are_fresh_instances():
    first, second = standard_plugins(), standard_plugins()
    assert all(a is not b for a, b in zip(first, second))
