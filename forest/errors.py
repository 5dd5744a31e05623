#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #


class ValidationError(ValueError):
	"""Bad train arguments or a malformed dataset, raised before any training work."""


class DimensionMismatchError(ValueError):
	"""Query vector length differs from the feature dimension seen at training."""


class InternalInvariantError(RuntimeError):
	"""A state the induction algorithm guarantees unreachable (logic defect, not bad input)."""
