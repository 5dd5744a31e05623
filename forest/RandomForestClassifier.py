#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import logging
import numpy as np
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, wait
from time import perf_counter
from typing import List, Sequence, Tuple

from forest.DecisionTreeClassifier import DecisionTreeClassifier
from forest.TrainArgs import TrainArgs
from forest.errors import DimensionMismatchError
from forest.sampling import RandomState, sample_with_replacement, sample_without_replacement, tree_generators
from forest.validation import sanity_checks

log = logging.getLogger(__name__)


def _fit_one_tree(tree_id: int,
				  columns: np.ndarray,
				  labels: np.ndarray,
				  n_classes: int,
				  args: TrainArgs,
				  rng: np.random.Generator,
				  slots: List[DecisionTreeClassifier | None]) -> None:
	"""
	Task run by a worker thread: draws the bootstrap rows and the feature
	subset of one tree, grows it and stores it in its own slot.
	"""
	log.info("Training tree #%d", tree_id)
	t0 = perf_counter()
	sample_size = labels.size
	feature_dimension = columns.shape[0]
	samples = sample_with_replacement(sample_size, min(sample_size, args.max_records_per_tree), rng)
	features = sample_without_replacement(feature_dimension, min(feature_dimension, args.max_features_per_tree), rng)
	tree = DecisionTreeClassifier(max_depth=args.max_tree_depth,
								  min_samples=args.min_samples_per_node)
	slots[tree_id] = tree.fit(columns, labels, samples, features, n_classes=n_classes)
	log.info("Done training tree #%d, took %.4f seconds", tree_id, perf_counter() - t0)


class RandomForestClassifier:
	"""
	RandomForestClassifier implemented in NumPy, trees trained on a bounded
	thread pool.

	Each tree is trained on:
	  1) a bootstrap sample of the training rows (sampling with replacement,
	     at most `max_records_per_tree` rows),
	  2) a subset of features drawn once per tree (without replacement, at
	     most `max_features_per_tree`), used for every split of that tree.

	The prediction is the majority vote of the trees, each tree counting for
	one vote whatever the purity of the leaf it lands in.

	Parameters
	----------
	args : TrainArgs or None
		Hyperparameters. When None, keyword arguments are forwarded to TrainArgs.
	random_state : int, np.random.SeedSequence or None
		Seed of the per-tree random streams. None draws fresh OS entropy.

	Notes
	-----
	Training:
		- Inputs are validated first; nothing is sampled or started on error.
		- Rows are transposed once into a read-only column-major matrix that
		  every task reads without copying.
		- At most `parallel` trees are trained at the same time
		  (`ThreadPoolExecutor`), each writing only its own slot of the
		  pre-sized tree list. `fit` returns once every task is done.
		- Each tree gets its own generator spawned from `random_state`, so the
		  result does not depend on the order in which the threads finish.
		- There is no timeout: a task that never ends blocks `fit`.

	Prediction:
		- `classify`: (label, vote fraction) for one vector; ties go to the
		  label first seen while counting.
		- `predict_proba`: vote fractions per class id.

	Attributes
	----------
	classes_ : np.ndarray
		Class ids 0..max label seen at training.
	"""

	def __init__(self, args: TrainArgs | None = None, random_state: RandomState = None, **params):
		self.args = args if args is not None else TrainArgs(**params)
		self.random_state = random_state

		# learned
		self._trees: Tuple[DecisionTreeClassifier, ...] = ()
		self._n_features: int | None = None
		self.classes_: np.ndarray | None = None

	@property
	def trees_(self) -> Tuple[DecisionTreeClassifier, ...]:
		return self._trees

	@property
	def n_trees_(self) -> int:
		return len(self._trees)

	@property
	def n_features_(self) -> int | None:
		return self._n_features

	def fit(self, X: Sequence[Sequence[float]], y: Sequence[int]):
		args = self.args
		feature_dimension = sanity_checks(X, y, args)
		log.debug("Train args: %s", args)

		columns = np.array(np.asarray(X, dtype=np.float64).T, order="C")
		columns.flags.writeable = False
		labels = np.array(y, dtype=np.int64).reshape(-1)
		labels.flags.writeable = False
		n_classes = int(labels.max()) + 1

		slots: List[DecisionTreeClassifier | None] = [None] * args.num_trees
		rngs = tree_generators(self.random_state, args.num_trees)
		with ThreadPoolExecutor(max_workers=args.parallel) as ex:
			futures = [ex.submit(_fit_one_tree, i, columns, labels, n_classes, args, rngs[i], slots)
					   for i in range(args.num_trees)]
			wait(futures)
		for fut in futures:
			# re-raises the error of a failed task, no partial model is kept
			fut.result()

		self._trees = tuple(slots)
		self._n_features = feature_dimension
		self.classes_ = np.arange(n_classes)
		return self

	def _check_fitted(self) -> None:
		if not self._trees:
			raise RuntimeError("The model isn't trained, call `fit` first")

	def classify(self, x: Sequence[float]) -> Tuple[int, float]:
		self._check_fitted()
		x = np.asarray(x, dtype=np.float64)
		if x.ndim != 1 or x.shape[0] != self._n_features:
			raise DimensionMismatchError(
				f"Feature dimension mismatch: model={self._n_features}, input={x.size}")
		votes = Counter(tree.predict_one(x) for tree in self._trees)
		label, count = votes.most_common(1)[0]
		return int(label), count / len(self._trees)

	def predict(self, X) -> np.ndarray:
		self._check_fitted()
		X = np.asarray(X, dtype=np.float64)
		return np.array([self.classify(X[i])[0] for i in range(X.shape[0])], dtype=np.int64)

	def predict_proba(self, X) -> np.ndarray:
		self._check_fitted()
		X = np.asarray(X, dtype=np.float64)
		n = X.shape[0]
		if X.ndim != 2 or X.shape[1] != self._n_features:
			raise DimensionMismatchError(
				f"Feature dimension mismatch: model={self._n_features}, input={X.shape[-1]}")
		probs = np.zeros((n, self.classes_.size), dtype=np.float64)
		for tree in self._trees:
			pred = tree.predict(X)
			probs[np.arange(n), pred] += 1.0
		probs /= float(len(self._trees))
		return probs


def train_random_forest(features: Sequence[Sequence[float]],
						labels: Sequence[int],
						args: TrainArgs,
						random_state: RandomState = None) -> RandomForestClassifier:
	"""Validates the inputs, trains `args.num_trees` trees and returns the fitted forest."""
	return RandomForestClassifier(args, random_state=random_state).fit(features, labels)
