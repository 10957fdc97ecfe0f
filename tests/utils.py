from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import numpy as np

from psd_analysis.core.config import RunConfig

# Small frame layout shared by the plugin and pipeline tests
SMALL_LAYOUT = dict(
    w_size=100,
    base_l_end=10,
    peak_x=30,
    tail_end=60,
    w_start=10,
    w_end=80,
    pga_sample=60,
    width_low_cut=5,
    width_high_cut=50,
)


def make_pulse_frame(
    w_size: int = 100,
    baseline: float = 100.0,
    height: float = 50.0,
    start: int = 30,
    rise: int = 10,
    fall: int = 20,
    pre_noise: float = 0.0,
    base_l_end: int = 10,
) -> np.ndarray:
    """Triangular pulse on a flat baseline.

    The pulse rises linearly from ``start`` to ``start + rise`` (height) and
    falls back to the baseline at ``start + rise + fall``. ``pre_noise`` adds
    an alternating +/- offset to the first ``base_l_end`` samples.
    """
    frame = np.full(w_size, baseline, dtype=np.float64)
    peak = start + rise
    for i in range(start, peak + 1):
        frame[i] = baseline + height * (i - start) / rise
    for i in range(peak, min(peak + fall + 1, w_size)):
        frame[i] = baseline + height * (peak + fall - i) / fall
    if pre_noise:
        frame[:base_l_end] += pre_noise * np.where(np.arange(base_l_end) % 2 == 0, -1.0, 1.0)
    return frame


def neutron_frame(**kwargs) -> np.ndarray:
    """Slow pulse: width 13 samples with the default 0.5 threshold."""
    return make_pulse_frame(rise=10, fall=20, **kwargs)


def gamma_frame(**kwargs) -> np.ndarray:
    """Fast pulse: width 1 sample with the default 0.5 threshold."""
    return make_pulse_frame(rise=2, fall=4, **kwargs)


def flat_frame(w_size: int = 100, baseline: float = 100.0) -> np.ndarray:
    return np.full(w_size, baseline, dtype=np.float64)


def write_samples(
    path: Path,
    frames: Iterable[np.ndarray],
    n_columns: int = 2,
    trailing: Iterable[float] = (),
    sep: str = "\n",
) -> Path:
    """Write frames as a sample file (``timestamp amplitude`` per line when n_columns=2)."""
    amplitudes = [float(v) for frame in frames for v in frame] + [float(v) for v in trailing]
    if n_columns == 2:
        tokens = [f"{i} {a:g}" for i, a in enumerate(amplitudes)]
    else:
        tokens = [f"{a:g}" for a in amplitudes]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(sep.join(tokens) + "\n", encoding="utf-8")
    return path


def make_run_config(destination: Path, file_name: str = "run_001", **overrides: Any) -> RunConfig:
    params: Dict[str, Any] = dict(SMALL_LAYOUT)
    params.update(file_name=file_name, run_time=100.0, destination=str(destination), file_suffix=".txt")
    params.update(overrides)
    return RunConfig(**params)


class FakeContext:
    """Minimal stand-in for Context: scoped config lookup and pre-computed data."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, data: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.data = data or {}

    def get_config(self, plugin, name):
        if isinstance(plugin, str):
            scoped = self.config.get(plugin, {})
            if name in scoped:
                return scoped[name]
            raise KeyError(f"{plugin}.{name} is not configured")
        scoped = self.config.get(plugin.provides, {})
        value = scoped.get(name, self.config.get(name, plugin.options[name].default))
        return plugin.options[name].validate_value(name, value, plugin_name=plugin.provides)

    def get_data(self, run_id, name):
        return self.data[name]
