#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import numpy as np
from time import perf_counter
from contextlib import contextmanager
from typing import Dict, Any


@contextmanager
def timer(name: str, store: Dict[str, float] | None = None):
	t0 = perf_counter()
	try:
		yield
	finally:
		dt = perf_counter() - t0
		if store is not None:
			store[name] = dt

def precision_from_preds(y_true: np.ndarray, y_pred: np.ndarray, n_classes: int | None = None) -> Dict[str, Any]:
	"""Per-class good/total counts and the overall accuracy."""
	y_true = np.asarray(y_true, dtype=np.int64)
	y_pred = np.asarray(y_pred, dtype=np.int64)
	if n_classes is None:
		n_classes = int(max(y_true.max(initial=-1), y_pred.max(initial=-1))) + 1
	total = np.bincount(y_true, minlength=n_classes)
	good = np.bincount(y_true[y_true == y_pred], minlength=n_classes)
	all_good = int(good.sum())
	acc = all_good / y_true.size if y_true.size > 0 else 0.0
	return {"good": good, "total": total, "all_good": all_good, "n": int(y_true.size), "acc": float(acc)}

def evaluate_precision(model, X: np.ndarray, y: np.ndarray, n_classes: int | None = None) -> Dict[str, Any]:
	"""
	Classifies every row with `model.classify` (scratch forest) or
	`model.predict` (scikit) and counts the hits per true class.
	"""
	X = np.asarray(X, dtype=np.float64)
	if hasattr(model, "classify"):
		y_pred = np.array([model.classify(X[i])[0] for i in range(X.shape[0])], dtype=np.int64)
	else:
		y_pred = np.asarray(model.predict(X), dtype=np.int64)
	res = precision_from_preds(y, y_pred, n_classes)
	res["y_pred"] = y_pred
	return res


# ---------- Benchmark helper ----------
def benchmark_classification(model, X_train: np.ndarray, y_train: np.ndarray,
							 X_test: np.ndarray, y_test: np.ndarray) -> Dict[str, Any]:
	"""
	Trains a model (with .fit), measures the times, then evaluates the
	precision on the train set and on the test set.
	"""
	n_classes = int(max(np.max(y_train), np.max(y_test))) + 1
	times: Dict[str, float] = {}
	with timer("fit", store=times):
		model.fit(X_train, y_train)
	with timer("predict(train)", store=times):
		train = evaluate_precision(model, X_train, y_train, n_classes)
	with timer("predict(test)", store=times):
		test = evaluate_precision(model, X_test, y_test, n_classes)
	return {"model": model, "times": times, "train": train, "test": test}
