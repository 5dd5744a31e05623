#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import numpy as np
from typing import List, Union

RandomState = Union[int, np.random.SeedSequence, None]


def seed_sequence(random_state: RandomState = None) -> np.random.SeedSequence:
	if isinstance(random_state, np.random.SeedSequence):
		return random_state
	return np.random.SeedSequence(random_state)


def tree_generators(random_state: RandomState, num_trees: int) -> List[np.random.Generator]:
	"""One independent stream per tree, so no generator is shared between threads."""
	return [np.random.default_rng(s) for s in seed_sequence(random_state).spawn(num_trees)]


def sample_with_replacement(total_num: int, wanted_num: int, rng: np.random.Generator) -> np.ndarray:
	"""Bootstrap: `wanted_num` indices uniform over [0, total_num), duplicates allowed."""
	return rng.integers(0, total_num, size=wanted_num).astype(np.intp, copy=False)


def sample_without_replacement(total_num: int, wanted_num: int, rng: np.random.Generator) -> np.ndarray:
	"""Full-range shuffle truncated to the first `wanted_num` entries."""
	return rng.permutation(total_num).astype(np.intp, copy=False)[:wanted_num]
