import numpy as np
import pytest

from psd_analysis.core.classification import (
    LABEL_NEUTRON,
    LABEL_NON_NEUTRON,
    PulseLabel,
    classify,
    classify_array,
)
from psd_analysis.core.exceptions import ConfigurationError


@pytest.mark.parametrize(
    "feature, expected",
    [
        (5.0, PulseLabel.NEUTRON),
        (4.999, PulseLabel.NON_NEUTRON),
        (50.0, PulseLabel.NEUTRON),
        (50.001, PulseLabel.NON_NEUTRON),
        (20.0, PulseLabel.NEUTRON),
        (-1.0, PulseLabel.NON_NEUTRON),
    ],
)
def test_window_is_inclusive(feature, expected):
    assert classify(feature, 5.0, 50.0) is expected


def test_nan_is_non_neutron():
    assert classify(float("nan"), 5.0, 50.0) is PulseLabel.NON_NEUTRON


def test_degenerate_window():
    assert classify(7.0, 7.0, 7.0) is PulseLabel.NEUTRON
    with pytest.raises(ConfigurationError):
        classify(7.0, 10.0, 5.0)


def test_classify_array_matches_scalar():
    features = np.array([1.0, 5.0, 13.0, 50.0, 51.0, np.nan])
    labels = classify_array(features, 5.0, 50.0)
    assert labels.dtype == np.int8
    np.testing.assert_array_equal(labels, [0, 1, 1, 1, 0, 0])
    assert [int(classify(f, 5.0, 50.0)) for f in features] == labels.tolist()


def test_label_values():
    assert int(PulseLabel.NEUTRON) == LABEL_NEUTRON == 1
    assert int(PulseLabel.NON_NEUTRON) == LABEL_NON_NEUTRON == 0


def test_classify_array_rejects_inverted_cuts():
    with pytest.raises(ConfigurationError):
        classify_array(np.array([1.0]), 3.0, 2.0)
