#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import numpy as np
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict

from forest.errors import ValidationError


@dataclass(frozen=True)
class TrainArgs:
	"""
	Hyperparameters of a random forest training run.

	Parameters
	----------
	num_trees : int
		Number of trees in the ensemble.
	max_tree_depth : int
		Depth at which a node is forced to be a leaf (root is depth 0).
	max_records_per_tree : int
		Size cap of the bootstrap sample drawn for each tree.
	max_features_per_tree : int
		Size cap of the feature subset drawn for each tree. The subset is
		fixed for every split of that tree.
	min_samples_per_node : int
		A node holding this many samples or fewer becomes a leaf.
	parallel : int
		Maximum number of trees trained at the same time.
	learning_rate : float
		Reserved. Carried through the configuration, never used by induction.
	"""

	num_trees: int = 10
	max_tree_depth: int = 12
	max_records_per_tree: int = 10000
	max_features_per_tree: int = 60
	min_samples_per_node: int = 3
	parallel: int = 2
	learning_rate: float = 0.1

	def __post_init__(self):
		self.check()

	def counts(self) -> Dict[str, int]:
		return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "learning_rate"}

	def check(self) -> None:
		for name, value in self.counts().items():
			if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)) or value <= 0:
				raise ValidationError(f"Invalid train args: {self}")

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	@classmethod
	def from_dict(cls, par: Dict[str, Any] | None) -> "TrainArgs":
		par = dict(par or {})
		known = {f.name for f in fields(cls)}
		unknown = sorted(set(par) - known)
		if unknown:
			raise ValidationError(f"Unknown train args: {', '.join(unknown)}")
		return cls(**par)
