from pathlib import Path

import numpy as np
import pytest

from tests.utils import FakeContext, gamma_frame, make_run_config, neutron_frame


@pytest.fixture
def fake_context_factory():
    """Factory fixture for creating FakeContext with custom config/data."""

    def _create(config=None, data=None):
        return FakeContext(config=config, data=data)

    return _create


@pytest.fixture
def neutron_pulse():
    return neutron_frame()


@pytest.fixture
def gamma_pulse():
    return gamma_frame()


@pytest.fixture
def mixed_frames():
    """Three neutron-like frames and two gamma-like frames, interleaved."""
    return np.vstack([neutron_frame(), gamma_frame(), neutron_frame(), gamma_frame(), neutron_frame()])


@pytest.fixture
def run_config_factory(tmp_path: Path):
    """Factory fixture for a small-layout RunConfig rooted in tmp_path.

    Usage:
        cfg = run_config_factory("run_001", run_time=50.0)
    """

    def _create(file_name: str = "run_001", **overrides):
        return make_run_config(tmp_path, file_name=file_name, **overrides)

    return _create
