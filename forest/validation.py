#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
from typing import Sequence

from forest.TrainArgs import TrainArgs
from forest.errors import ValidationError


def sanity_checks(features: Sequence[Sequence[float]], labels: Sequence[int], args: TrainArgs) -> int:
	"""
	Checks the training inputs before any work starts.
	Works on plain nested sequences as well as 2-D arrays, since ragged rows
	must be caught before the data is turned into a matrix.
	Returns the feature dimension.
	"""
	args.check()
	sample_size = len(features)
	if sample_size == 0:
		raise ValidationError("No training sample!")
	if len(labels) != sample_size:
		raise ValidationError(
			f"Label size does not match sample size: labels={len(labels)}, samples={sample_size}")
	feature_dimension = len(features[0])
	if feature_dimension == 0:
		raise ValidationError("Feature dimension is zero!")
	for row in features:
		if len(row) != feature_dimension:
			raise ValidationError("Feature dimension mismatch!")
	for label in labels:
		if not float(label).is_integer():
			raise ValidationError(f"Labels must be integer class ids, got {label}")
		if label < 0:
			raise ValidationError(f"Labels must be non-negative class ids, got {label}")
	return feature_dimension
