#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*-
import numpy as np
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

from forest.errors import InternalInvariantError

_MIN_WEIGHT = 1e-6		# class weights below this count as zero in the entropy
_SAME_VALUE = 1e-9		# sorted neighbours closer than this cannot be separated
_NO_SPLIT = np.inf		# entropy returned when no boundary exists


@dataclass(frozen=True)
class Leaf:
	label: int
	confidence: float		# vote fraction of `label` among the node's training samples


@dataclass(frozen=True)
class Split:
	feature: int			# index of the feature in the full feature vector
	threshold: float		# x[feature] < threshold goes left
	left: "Node"
	right: "Node"


Node = Union[Leaf, Split]


def _label_weights(labels: np.ndarray, samples: np.ndarray, n_classes: int) -> np.ndarray:
	return np.bincount(labels[samples], minlength=n_classes).astype(np.float64)


def _entropy(weights: np.ndarray, total) -> np.ndarray:
	"""
	Shannon entropy (base 2) of class weight histograms.
	`weights` is (C,) or (k, C); `total` is a scalar or (k,) matching it.
	"""
	weights = np.asarray(weights, dtype=np.float64)
	total = np.asarray(total, dtype=np.float64)[..., None]
	with np.errstate(divide="ignore", invalid="ignore"):
		p = np.where(weights >= _MIN_WEIGHT, weights / total, 0.0)
		terms = np.where(p > 0.0, p * np.log2(p), 0.0)
	return -np.sum(terms, axis=-1)


def _new_leaf(weights: np.ndarray, total: float) -> Leaf:
	label = int(np.argmax(weights))
	return Leaf(label=label, confidence=float(weights[label] / total))


def _midpoint(lo: float, hi: float) -> float:
	# lo < result <= hi, so lo goes left and hi goes right even when the
	# halfway point overflows or rounds onto lo
	mid = lo + (hi - lo) * 0.5
	if not lo < mid <= hi:
		return hi
	return mid


def min_entropy_split(values: np.ndarray,
					  labels: np.ndarray,
					  samples: np.ndarray,
					  n_classes: int | None = None) -> Tuple[float, float]:
	"""
	Finds the threshold on one feature minimizing the size-weighted entropy
	of the two sides.

	The samples are sorted by feature value, then swept left to right: the
	running left histogram is the cumulative sum of one-hot labels, the right
	one is what remains of the total. Boundaries between values closer than
	1e-9 are skipped. The threshold is the midpoint of the two values around
	the best boundary (first one on ties).

	Returns (entropy, threshold); (inf, 0.0) when there is nothing to split.
	"""
	n = samples.size
	if n == 0:
		return _NO_SPLIT, 0.0
	if n_classes is None:
		n_classes = int(labels[samples].max()) + 1

	ordered = samples[np.argsort(values[samples])]
	xs = values[ordered]
	ys = labels[ordered]

	with np.errstate(over="ignore"):
		pos = np.nonzero(np.abs(np.diff(xs)) >= _SAME_VALUE)[0]
	if pos.size == 0:
		return _NO_SPLIT, 0.0

	one_hot = np.zeros((n, n_classes), dtype=np.float64)
	one_hot[np.arange(n), ys] = 1.0
	csum = np.cumsum(one_hot, axis=0)
	left_cnt = csum[pos]						# boundary after sorted sample i
	right_cnt = csum[-1] - left_cnt
	left_n = (pos + 1).astype(np.float64)
	right_n = n - left_n

	split_h = (left_n / n) * _entropy(left_cnt, left_n) + (right_n / n) * _entropy(right_cnt, right_n)
	k = int(np.argmin(split_h))
	i = int(pos[k])
	return float(split_h[k]), _midpoint(float(xs[i]), float(xs[i + 1]))


def _split_range(samples: np.ndarray, values: np.ndarray, threshold: float) -> Tuple[np.ndarray, np.ndarray]:
	# samples with value < threshold first, then the others, written back into
	# the same buffer. Vectorized (boolean mask + one concatenated copy) rather
	# than a two-pointer swap loop, which would run element by element in Python.
	mask = values[samples] < threshold
	begin = int(np.count_nonzero(mask))
	samples[:] = np.concatenate((samples[mask], samples[~mask]))
	return samples[:begin], samples[begin:]


class DecisionTreeClassifier:
	"""
	Binary decision tree grown by entropy minimization, one member of a
	random forest.

	The tree is trained on a subset of rows (given as indices into the
	shared column-major matrix, duplicates allowed) and on a fixed subset of
	features: every split of every path only looks at those features.

	Parameters
	----------
	max_depth : int
		Nodes at this depth are leaves (root is depth 0).
	min_samples : int
		Nodes holding this many samples or fewer are leaves.
	min_gain : float
		A split is kept only if its information gain is strictly above this.

	Notes
	-----
	- Pure nodes become leaves of confidence 1.0, whatever the depth budget.
	- A leaf predicts the majority class (smallest class id on ties) and
	  keeps the fraction of its samples in that class.
	- The index buffer passed to `fit` is partitioned in place; children work
	  on slices of it, feature values are never copied.

	Attributes
	----------
	root_ : Leaf or Split or None
		Root of the trained tree.
	features_ : np.ndarray or None
		Feature subset the tree was allowed to split on.
	"""

	def __init__(self, max_depth: int = 12, min_samples: int = 3, min_gain: float = 1e-6):
		self.max_depth = int(max_depth)
		self.min_samples = int(min_samples)
		self.min_gain = float(min_gain)
		self.root_: Node | None = None
		self.features_: np.ndarray | None = None

	def _build(self, depth: int, samples: np.ndarray) -> Node:
		if samples.size == 0:
			raise InternalInvariantError("Selected samples cannot be empty!")

		weights = _label_weights(self._labels, samples, self._n_classes)
		total = float(samples.size)
		if np.count_nonzero(weights) == 1 or depth >= self.max_depth or samples.size <= self.min_samples:
			return _new_leaf(weights, total)

		entropy = float(_entropy(weights, total))
		best_gain, split_index, split_threshold = self.min_gain, -1, 0.0
		for index in self.features_:
			split_entropy, threshold = min_entropy_split(self._columns[index], self._labels, samples, self._n_classes)
			gain = entropy - split_entropy
			if gain > best_gain:
				best_gain, split_index, split_threshold = gain, int(index), threshold

		if split_index == -1:
			return _new_leaf(weights, total)

		left, right = _split_range(samples, self._columns[split_index], split_threshold)
		return Split(feature=split_index,
					 threshold=split_threshold,
					 left=self._build(depth + 1, left),
					 right=self._build(depth + 1, right))

	# ---------- API ----------
	def fit(self, columns: np.ndarray, labels: np.ndarray,
			samples: np.ndarray | None = None,
			features: np.ndarray | None = None,
			n_classes: int | None = None):
		"""
		columns : (n_features, n_samples) matrix, read only
		labels : (n_samples,) non-negative class ids
		samples : row indices to train on (default: every row); reordered in place
		features : feature indices allowed for splitting (default: all)
		"""
		columns = np.asarray(columns)
		labels = np.asarray(labels)
		if samples is None:
			samples = np.arange(labels.size, dtype=np.intp)
		if features is None:
			features = np.arange(columns.shape[0], dtype=np.intp)
		self.features_ = np.asarray(features, dtype=np.intp)
		self._columns = columns
		self._labels = labels
		self._n_classes = int(labels.max()) + 1 if n_classes is None else int(n_classes)
		try:
			self.root_ = self._build(0, samples)
		finally:
			# the tree does not keep a reference to the training data
			del self._columns, self._labels, self._n_classes
		return self

	def predict_one(self, x: np.ndarray) -> int:
		node = self.root_
		if node is None:
			raise RuntimeError("DecisionTreeClassifier isn't trained, call `fit` first")
		while isinstance(node, Split):
			node = node.left if x[node.feature] < node.threshold else node.right
		return node.label

	def predict(self, X):
		X = np.asarray(X, dtype=np.float64)
		return np.array([self.predict_one(X[i]) for i in range(X.shape[0])], dtype=np.int64)

	def leaves(self) -> Iterator[Tuple[int, Leaf]]:
		"""Yields (depth, leaf) for every leaf, left to right."""
		if self.root_ is None:
			return
		stack = [(0, self.root_)]
		while stack:
			depth, node = stack.pop()
			if isinstance(node, Leaf):
				yield depth, node
			else:
				stack.append((depth + 1, node.right))
				stack.append((depth + 1, node.left))

	def depth(self) -> int:
		return max((d for d, _ in self.leaves()), default=0)

	def n_leaves(self) -> int:
		return sum(1 for _ in self.leaves())
