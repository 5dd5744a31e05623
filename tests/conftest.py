"""Pytest settings: puts the repository root on the import path and shares small datasets."""

import os
import sys

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def two_blobs():
    """Two well separated classes on the first of three features."""
    rng = np.random.default_rng(7)
    n = 60
    X = rng.normal(size=(n, 3))
    y = np.zeros(n, dtype=np.int64)
    y[n // 2:] = 1
    X[n // 2:, 0] += 10.0
    return X, y


@pytest.fixture
def three_classes():
    rng = np.random.default_rng(3)
    n = 90
    X = rng.uniform(0.0, 1.0, size=(n, 4))
    y = np.repeat(np.array([0, 1, 2]), n // 3)
    X[:, 1] += y * 2.0
    return X, y
