#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import argparse
import logging
import sys
import numpy as np
import utils
import bench
import plot

from forest.RandomForestClassifier import RandomForestClassifier
from forest.errors import ValidationError, DimensionMismatchError

log = logging.getLogger("main")

def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Random forest classifier trained from scratch", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
	rf = parser.add_argument_group("random forest (defaults from params.yaml)")
	rf.add_argument("--rf.trees", dest="num_trees", type=int, default=None)
	rf.add_argument("--rf.max_depth", dest="max_tree_depth", type=int, default=None)
	rf.add_argument("--rf.max_records", dest="max_records_per_tree", type=int, default=None)
	rf.add_argument("--rf.max_features", dest="max_features_per_tree", type=int, default=None)
	rf.add_argument("--rf.min_samples", dest="min_samples_per_node", type=int, default=None)
	rf.add_argument("--rf.parallel", dest="parallel", type=int, default=None)
	rf.add_argument("--rf.learning_rate", dest="learning_rate", type=float, default=None, help="reserved, unused")

	data = parser.add_argument_group("data: IDX files (MNIST) or one CSV file")
	data.add_argument("--train-images", help="IDX image file used for training")
	data.add_argument("--train-labels", help="IDX label file used for training")
	data.add_argument("--test-images", help="IDX image file used for evaluation")
	data.add_argument("--test-labels", help="IDX label file used for evaluation")
	data.add_argument("--num-train", type=int, default=None, help="read at most this many training images")
	data.add_argument("--num-test", type=int, default=None, help="read at most this many test images")
	data.add_argument("-f", "--file", help="CSV input file")
	data.add_argument("-F", "--to-find", help="label column of the CSV file")
	data.add_argument("--test-size", type=float, default=0.2, help="CSV hold-out fraction")

	parser.add_argument("--params", default="params.yaml", help="YAML hyperparameter file")
	parser.add_argument("--seed", type=int, default=None, help="random seed")
	parser.add_argument("--scikit", action="store_true", help="also benchmark scikit-learn's forest")
	parser.add_argument("--plot", action="store_true", help="plot per-class test accuracy")
	parser.add_argument("-v", "--verbose", action="count", default=0)
	return parser

TRAIN_ARG_KEYS = ("num_trees", "max_tree_depth", "max_records_per_tree", "max_features_per_tree",
				  "min_samples_per_node", "parallel", "learning_rate")

def load_data(args) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, list | None]:
	if args.file:
		if not args.to_find:
			raise SystemExit("-F/--to-find is required with -f/--file")
		df = utils.read_classif(args.file)
		X, y, class_names = utils.to_features_labels(df, args.to_find)
		X_train, X_test, y_train, y_test = utils.split(X, y, test_size=args.test_size,
													   random_state=0 if args.seed is None else args.seed)
		return X_train, y_train, X_test, y_test, list(class_names)
	if not (args.train_images and args.train_labels and args.test_images and args.test_labels):
		raise SystemExit("give either -f/--file or the four --train-*/--test-* IDX files")
	X_train = utils.load_idx_images(args.train_images, args.num_train)
	y_train = utils.load_idx_labels(args.train_labels, args.num_train)
	X_test = utils.load_idx_images(args.test_images, args.num_test)
	y_test = utils.load_idx_labels(args.test_labels, args.num_test)
	return X_train, y_train, X_test, y_test, None

def main(argv: list[str] | None = None) -> int:
	args = build_parser().parse_args(argv)
	utils.setup_logging(args.verbose)
	params = utils.read_params(args.params)

	try:
		train_args = utils.train_args_from(params, {k: getattr(args, k) for k in TRAIN_ARG_KEYS})
		print(train_args)
		X_train, y_train, X_test, y_test, class_names = load_data(args)

		model = RandomForestClassifier(train_args, random_state=args.seed)
		results, names = [bench.benchmark_classification(model, X_train, y_train, X_test, y_test)], ["RandomForest"]
		if args.scikit:
			model_sci = utils.sklearn_forest(train_args, X_train.shape[0], X_train.shape[1], params, random_state=args.seed)
			results.append(bench.benchmark_classification(model_sci, X_train, y_train, X_test, y_test))
			names.append("RandomForest_scikit")
	except (ValidationError, DimensionMismatchError) as e:
		log.error(f"Train random forest failed: {e}")
		return 1

	plot.print_precision_report(results, names, class_names)
	if args.plot:
		plot.plot_class_accuracy(results, names, class_names)
	return 0

if __name__ == "__main__":
	sys.exit(main())
