#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Optuna tuner for the scratch random forest.

Usage
-----
python tune_optuna.py \
  -f Data-20251001/Carseats_prepared.csv \
  -F High \
  --n-trials 50

Notes
-----
- Uses utils.read_classif / utils.to_features_labels / utils.split and
  bench.benchmark_classification, like main.py.
- Maximizes the accuracy on the held-out split.
- parallel and learning_rate are not searched: they do not change the model.
"""

import argparse
import optuna
import utils
import bench

from forest.RandomForestClassifier import RandomForestClassifier
from forest.TrainArgs import TrainArgs

# ----------------------------- search space -----------------------------

def suggest_params(trial: optuna.Trial, n_samples: int, n_features: int, base: TrainArgs) -> TrainArgs:
    """
    Integers sampled with fixed step sizes, capped by the dataset shape.
    """
    max_features_hi = max(1, n_features)
    return TrainArgs(
        num_trees=trial.suggest_int("num_trees", 5, 50, step=5),
        max_tree_depth=trial.suggest_int("max_tree_depth", 2, 16, step=1),
        max_records_per_tree=trial.suggest_int("max_records_per_tree", max(1, n_samples // 4), max(1, n_samples)),
        max_features_per_tree=trial.suggest_int("max_features_per_tree", 1, max_features_hi),
        min_samples_per_node=trial.suggest_int("min_samples_per_node", 1, 10, step=1),
        parallel=base.parallel,
        learning_rate=base.learning_rate,
    )

# ----------------------------- objective -----------------------------

def make_objective(X_train, y_train, X_test, y_test, base: TrainArgs, seed: int):
    def objective(trial: optuna.Trial) -> float:
        train_args = suggest_params(trial, X_train.shape[0], X_train.shape[1], base)
        model = RandomForestClassifier(train_args, random_state=seed)
        res = bench.benchmark_classification(model, X_train, y_train, X_test, y_test)
        trial.set_user_attr("times", res.get("times", {}))
        return float(res["test"]["acc"])
    return objective

def yaml_snippet(best_params: dict) -> str:
    lines = ["RandomForest:", "  scratch:", "    c:"]
    for k, v in best_params.items():
        lines.append(f"      {k}: {v:.6g}" if isinstance(v, float) else f"      {k}: {v}")
    return "\n".join(lines)

# ----------------------------- run study -----------------------------

def main(argv: list[str] | None = None) -> optuna.Study:
    parser = argparse.ArgumentParser(
        description="Hyperparameter optimization of the scratch random forest with Optuna.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-f", "--file", required=True, help="Input CSV file path")
    parser.add_argument("-F", "--to-find", required=True, help="Label column")
    parser.add_argument("--params", default="params.yaml", help="YAML file giving parallel/learning_rate")
    parser.add_argument("--n-trials", type=int, default=30, help="Number of Optuna trials")
    parser.add_argument("--timeout", type=int, default=None, help="Global timeout in seconds")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for split, forest & Optuna")
    args = parser.parse_args(argv)

    base = utils.train_args_from(utils.read_params(args.params))
    df = utils.read_classif(args.file)
    X, y, _ = utils.to_features_labels(df, args.to_find)
    X_train, X_test, y_train, y_test = utils.split(X, y, test_size=0.2, random_state=args.seed)

    study = optuna.create_study(
        study_name="RandomForest-c-scratch",
        direction="maximize",
        sampler=optuna.samplers.TPESampler(seed=args.seed),
    )
    study.optimize(make_objective(X_train, y_train, X_test, y_test, base, args.seed),
                   n_trials=args.n_trials, timeout=args.timeout)

    print("\nBest trial:")
    bt = study.best_trial
    print(f"  value: {bt.value:.6f}")
    print("  params:")
    for k, v in bt.params.items():
        print(f"    {k}: {v}")

    print("\nYAML-like snippet to paste under params:")
    print(yaml_snippet(bt.params))
    return study

if __name__ == "__main__":
    main()
