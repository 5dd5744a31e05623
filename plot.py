#!/usr/bin/python3
# -*- Mode: Python; tab-width: 4; indent-tabs-mode: t; c-basic-offset: 4 -*- #
import numpy as np
import matplotlib.pyplot as plt
from typing import List, Dict, Any, Sequence


def format_precision(res: Dict[str, Any], class_names: Sequence | None = None) -> List[str]:
	"""`label: good/total (xx.xx%)` per class, then the `Total:` line."""
	lines = []
	for i, (g, t) in enumerate(zip(res["good"], res["total"])):
		name = class_names[i] if class_names is not None else i
		pct = float(g) / float(t) * 100.0 if t > 0 else 0.0
		lines.append(f"{name}: {int(g)}/{int(t)} ({pct:.2f}%)")
	lines.append(f"Total: {res['all_good']}/{res['n']} ({res['acc'] * 100.0:.2f}%)")
	return lines

def print_precision_report(models_results: List[Dict], labels: List[str], class_names: Sequence | None = None) -> None:
	"""
	Shows per-class precision on train and test sets,
	+ time of training and prediction.
	"""
	print("\n=== Classification report ===")
	for lab, res in zip(labels, models_results):
		times = res["times"]
		print(f"--- {lab} | fit={times['fit']*1000:.1f} ms | pred(test)={times['predict(test)']*1000:.1f} ms")
		for part in ("train", "test"):
			print(f"[{part}]")
			for line in format_precision(res[part], class_names):
				print(line)

def plot_class_accuracy(models_results: List[Dict[str, Any]], labels: List[str],
						class_names: Sequence | None = None, title: str = "Test accuracy per class") -> None:
	plt.figure(figsize=(8, 5))
	n_models = len(models_results)
	width = 0.8 / max(n_models, 1)
	for k, (res, lab) in enumerate(zip(models_results, labels)):
		test = res["test"]
		total = np.maximum(test["total"], 1)
		acc = test["good"] / total
		pos = np.arange(acc.size) + k * width
		plt.bar(pos, acc, width=width, label=f"{lab} (total={test['acc']:.3f})")
	n_classes = len(models_results[0]["test"]["total"]) if models_results else 0
	names = class_names if class_names is not None else list(range(n_classes))
	plt.xticks(np.arange(n_classes) + 0.4 - width / 2, names)
	plt.ylim(0.0, 1.0)
	plt.xlabel("Class")
	plt.ylabel("Accuracy")
	plt.title(title)
	plt.legend()
	plt.tight_layout()
	plt.show()
