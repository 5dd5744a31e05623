#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import numpy as np
import os
import pandas as pd
import logging
import yaml
from platform import system

from sklearn.ensemble import RandomForestClassifier as SkRandomForestClassifier

from forest.TrainArgs import TrainArgs

log = logging.getLogger(__name__)

IDX_IMAGES_MAGIC = 0x00000803
IDX_LABELS_MAGIC = 0x00000801

def setup_logging(verbosity: int = 0) -> None:
	level = logging.WARNING if verbosity <= 0 else logging.INFO if verbosity == 1 else logging.DEBUG
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

def getPath(script_dir, file_dir):
	plat = system()
	if plat == "Windows":
		script_dir = script_dir.replace("/", "\\")
		file_dir = file_dir.replace("/", "\\")
	else:
		script_dir = script_dir.replace("\\", "/")
		file_dir = file_dir.replace("\\", "/")
	return script_dir, file_dir

def resolve(fname: str) -> str:
	script_dir = os.path.dirname(os.path.abspath(__file__))
	script_dir, file_dir = getPath(script_dir, fname)
	return os.path.join(script_dir, file_dir)

def split(X: np.ndarray, y: np.ndarray, test_size=0.2, random_state=42) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
	rng = np.random.default_rng(random_state)
	indices = rng.permutation(len(y))
	split = int(len(y) * (1 - test_size))
	train_idx, test_idx = indices[:split], indices[split:]
	return X[train_idx], X[test_idx], y[train_idx], y[test_idx]

# ---------- IDX (MNIST) files ----------

def _read_idx(fname: str, magic: int, header_size: int) -> tuple[bytes, np.ndarray]:
	full_path = resolve(fname)
	log.debug(f"Lecture fichier: {full_path}")
	with open(full_path, "rb") as fp:
		raw = fp.read()
	if len(raw) < header_size:
		raise ValueError(f"{full_path}: truncated IDX header")
	header = np.frombuffer(raw[:header_size], dtype=">u4")
	if int(header[0]) != magic:
		raise ValueError(f"{full_path}: bad IDX magic {int(header[0]):#010x}, expected {magic:#010x}")
	return raw[header_size:], header

def load_idx_images(fname: str, num: int | None = None) -> np.ndarray:
	"""Images as a (num, rows*cols) float64 matrix, one pixel per feature."""
	body, header = _read_idx(fname, IDX_IMAGES_MAGIC, 16)
	count, rows, cols = (int(v) for v in header[1:4])
	num = count if num is None else min(int(num), count)
	n_pixels = rows * cols
	if len(body) < num * n_pixels:
		raise ValueError(f"{fname}: expected {num * n_pixels} pixel bytes, got {len(body)}")
	pixels = np.frombuffer(body, dtype=np.uint8, count=num * n_pixels)
	return pixels.reshape(num, n_pixels).astype(np.float64)

def load_idx_labels(fname: str, num: int | None = None) -> np.ndarray:
	body, header = _read_idx(fname, IDX_LABELS_MAGIC, 8)
	count = int(header[1])
	num = count if num is None else min(int(num), count)
	if len(body) < num:
		raise ValueError(f"{fname}: expected {num} label bytes, got {len(body)}")
	return np.frombuffer(body, dtype=np.uint8, count=num).astype(np.int64)

# ---------- CSV files ----------

def read_file(fname: str, sep: str) -> pd.DataFrame:
	full_path = resolve(fname)
	log.debug(f"Lecture fichier: {full_path} (sep='{sep}')")
	return pd.read_csv(full_path, sep=sep)

def read_classif(fname: str, sep: str = ",") -> pd.DataFrame:
	df = read_file(fname, sep)
	df = df.drop(columns=["Unnamed: 0"], errors="ignore")
	return df

def to_features_labels(df: pd.DataFrame, target: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
	"""
	Numeric columns other than `target` become the features, the target is
	factorized into class ids 0..k-1. Returns (X, y, class_names).
	"""
	if target not in df.columns:
		raise KeyError(f"target column '{target}' not in {list(df.columns)}")
	X = (df.drop(columns=[target])
		.select_dtypes(include=[np.number])
		.to_numpy(dtype=float, copy=True))
	codes, uniques = pd.factorize(df[target], sort=True)
	return X, codes.astype(np.int64), np.asarray(uniques)

# ---------- params.yaml ----------

def read_params(fname: str = "params.yaml") -> dict[str, dict[str, any]]:
	with open(resolve(fname), "r") as fp:
		params = yaml.safe_load(fp)
	return params or {}

def get_params(params: dict, is_sci=False) -> dict:
	return (
		params.get("RandomForest", {})
			  .get("scikit" if is_sci else "scratch", {})
			  .get("c", {})
		or {}
	)

def train_args_from(params: dict, overrides: dict | None = None) -> TrainArgs:
	"""params.yaml values, then non-None `overrides` (CLI flags) on top."""
	par = dict(get_params(params))
	par.update({k: v for k, v in (overrides or {}).items() if v is not None})
	return TrainArgs.from_dict(par)

def sklearn_forest(args: TrainArgs, n_samples: int, n_features: int,
				   params: dict | None = None, random_state=None) -> SkRandomForestClassifier:
	"""
	scikit-learn forest matching the scratch hyperparameters, for comparison.
	`params` (RandomForest.scikit.c of params.yaml) is applied last.
	"""
	model = SkRandomForestClassifier(
		n_estimators=args.num_trees,
		criterion="entropy",
		max_depth=args.max_tree_depth,
		min_samples_split=args.min_samples_per_node + 1,
		max_features=min(args.max_features_per_tree, n_features),
		max_samples=min(args.max_records_per_tree, n_samples),
		n_jobs=args.parallel,
		random_state=random_state,
	)
	par = get_params(params or {}, is_sci=True)
	if par:
		model.set_params(**par)
	return model
