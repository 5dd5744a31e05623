"""Tests of forest training, scheduling and classification."""

import threading
import time

import numpy as np
import pytest

import forest.RandomForestClassifier as rf_module
from forest.DecisionTreeClassifier import DecisionTreeClassifier, Leaf
from forest.RandomForestClassifier import RandomForestClassifier, train_random_forest
from forest.TrainArgs import TrainArgs
from forest.errors import DimensionMismatchError, InternalInvariantError, ValidationError


def small_args(**kw):
    base = dict(num_trees=5, max_tree_depth=6, max_records_per_tree=1000,
                max_features_per_tree=10, min_samples_per_node=1, parallel=2)
    base.update(kw)
    return TrainArgs(**base)


class TestTraining:
    @pytest.mark.parametrize("parallel", [1, 2, 3, 4, 5])
    def test_shape_whatever_the_parallelism(self, two_blobs, parallel):
        X, y = two_blobs
        model = train_random_forest(X, y, small_args(parallel=parallel), random_state=0)
        assert model.n_trees_ == 5
        assert model.n_features_ == 3
        assert all(isinstance(t, DecisionTreeClassifier) for t in model.trees_)

    def test_same_seed_same_forest_whatever_the_parallelism(self, three_classes):
        X, y = three_classes
        a = train_random_forest(X, y, small_args(num_trees=6, parallel=1), random_state=42)
        b = train_random_forest(X, y, small_args(num_trees=6, parallel=4), random_state=42)
        assert [t.root_ for t in a.trees_] == [t.root_ for t in b.trees_]

    def test_depth_one_caps_every_tree(self, three_classes):
        X, y = three_classes
        model = train_random_forest(X, y, small_args(num_trees=8, max_tree_depth=1), random_state=1)
        for tree in model.trees_:
            assert tree.depth() <= 1

    def test_feature_subset_is_fixed_per_tree(self, three_classes):
        X, y = three_classes
        model = train_random_forest(X, y, small_args(num_trees=6, max_features_per_tree=2), random_state=3)
        for tree in model.trees_:
            assert tree.features_.size == 2
            stack = [tree.root_]
            while stack:
                node = stack.pop()
                if not isinstance(node, Leaf):
                    assert node.feature in tree.features_
                    stack.extend([node.left, node.right])

    def test_bootstrap_size_is_capped(self, two_blobs, monkeypatch):
        X, y = two_blobs
        sizes = []
        original = rf_module.sample_with_replacement

        def spy(total_num, wanted_num, rng):
            sizes.append((total_num, wanted_num))
            return original(total_num, wanted_num, rng)

        monkeypatch.setattr(rf_module, "sample_with_replacement", spy)
        train_random_forest(X, y, small_args(num_trees=3, max_records_per_tree=7), random_state=0)
        assert sizes == [(60, 7)] * 3

    def test_learning_rate_has_no_effect(self, three_classes):
        X, y = three_classes
        a = train_random_forest(X, y, small_args(learning_rate=0.1), random_state=9)
        b = train_random_forest(X, y, small_args(learning_rate=5.0), random_state=9)
        assert [t.root_ for t in a.trees_] == [t.root_ for t in b.trees_]

    def test_inputs_are_not_modified(self, two_blobs):
        X, y = two_blobs
        X_before, y_before = X.copy(), y.copy()
        train_random_forest(X, y, small_args(), random_state=0)
        assert np.array_equal(X, X_before)
        assert np.array_equal(y, y_before)

    @pytest.mark.parametrize("parallel", [1, 2, 3])
    def test_at_most_parallel_trees_at_once(self, two_blobs, monkeypatch, parallel):
        X, y = two_blobs
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}
        real_fit = DecisionTreeClassifier.fit

        def counting_fit(self, *args, **kwargs):
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            try:
                time.sleep(0.05)
                return real_fit(self, *args, **kwargs)
            finally:
                with lock:
                    state["running"] -= 1

        monkeypatch.setattr(rf_module.DecisionTreeClassifier, "fit", counting_fit)
        model = train_random_forest(X, y, small_args(num_trees=6, parallel=parallel), random_state=0)
        assert model.n_trees_ == 6
        assert state["running"] == 0
        assert state["peak"] <= parallel
        if parallel > 1:
            assert state["peak"] > 1

    def test_keyword_construction(self, two_blobs):
        X, y = two_blobs
        model = RandomForestClassifier(num_trees=3, parallel=1, random_state=0).fit(X, y)
        assert model.n_trees_ == 3


class TestValidationBeforeWork:
    def test_non_integral_labels_rejected(self):
        with pytest.raises(ValidationError, match="integer class ids"):
            train_random_forest([[0.0], [1.0]], [0.5, 1.7], small_args())

    def test_zero_trees_rejected(self):
        with pytest.raises(ValidationError):
            small_args(num_trees=0)

    def test_mismatch_starts_nothing(self, monkeypatch):
        def boom(*a, **kw):
            pytest.fail("no randomness or task expected")

        monkeypatch.setattr(rf_module, "tree_generators", boom)
        monkeypatch.setattr(rf_module, "_fit_one_tree", boom)
        with pytest.raises(ValidationError):
            train_random_forest([[0.0], [1.0], [2.0]], [0, 1], small_args())

    def test_ragged_rows(self):
        with pytest.raises(ValidationError):
            train_random_forest([[0.0, 1.0], [1.0]], [0, 1], small_args())

    def test_failed_task_returns_no_model(self, two_blobs, monkeypatch):
        X, y = two_blobs

        def broken(self, depth, samples):
            raise InternalInvariantError("Selected samples cannot be empty!")

        monkeypatch.setattr(DecisionTreeClassifier, "_build", broken)
        model = RandomForestClassifier(small_args(), random_state=0)
        with pytest.raises(InternalInvariantError):
            model.fit(X, y)
        assert model.n_trees_ == 0
        assert model.n_features_ is None


class TestClassify:
    def test_end_to_end_obvious_split(self, monkeypatch):
        # every tree sees every row once
        monkeypatch.setattr(rf_module, "sample_with_replacement",
                            lambda total_num, wanted_num, rng: np.arange(wanted_num, dtype=np.intp))
        X = [[0], [0], [10], [10]]
        y = [0, 0, 1, 1]
        model = train_random_forest(X, y, small_args(num_trees=4, min_samples_per_node=2, max_tree_depth=1), random_state=0)
        assert model.classify([0]) == (0, 1.0)
        assert model.classify([10]) == (1, 1.0)

    def test_end_to_end_with_bootstrap(self):
        X = [[0], [0], [10], [10]]
        y = [0, 0, 1, 1]
        model = train_random_forest(X, y, small_args(num_trees=25, min_samples_per_node=2), random_state=5)
        label0, conf0 = model.classify([0])
        label1, conf1 = model.classify([10])
        assert label0 == 0
        assert label1 == 1
        assert conf0 > 0.5
        assert conf1 > 0.5
        # a tree disagrees only when its bootstrap missed one class entirely
        for tree in model.trees_:
            if not isinstance(tree.root_, Leaf):
                assert tree.predict_one(np.array([0.0])) == 0
                assert tree.predict_one(np.array([10.0])) == 1

    def test_label_from_training_set_and_confidence_range(self, three_classes):
        X, y = three_classes
        model = train_random_forest(X, y, small_args(num_trees=7), random_state=2)
        rng = np.random.default_rng(0)
        for x in rng.uniform(-5.0, 5.0, size=(30, 4)):
            label, conf = model.classify(x)
            assert label in set(y.tolist())
            assert 0.0 <= conf <= 1.0

    def test_confidence_is_vote_fraction(self, three_classes):
        X, y = three_classes
        model = train_random_forest(X, y, small_args(num_trees=7), random_state=4)
        x = X[0]
        label, conf = model.classify(x)
        votes = [t.predict_one(x) for t in model.trees_]
        assert conf == votes.count(label) / 7
        assert votes.count(label) == max(votes.count(v) for v in set(votes))

    def test_dimension_mismatch_traverses_nothing(self, two_blobs, monkeypatch):
        X, y = two_blobs
        model = train_random_forest(X, y, small_args(), random_state=0)

        def boom(self, x):
            pytest.fail("no tree should be traversed")

        monkeypatch.setattr(DecisionTreeClassifier, "predict_one", boom)
        with pytest.raises(DimensionMismatchError, match="model=3, input=2"):
            model.classify([1.0, 2.0])
        with pytest.raises(DimensionMismatchError):
            model.classify([[1.0, 2.0, 3.0]])

    def test_unfitted(self):
        with pytest.raises(RuntimeError, match="isn't trained"):
            RandomForestClassifier(small_args()).classify([0.0])

    def test_predict_and_proba(self, two_blobs):
        X, y = two_blobs
        model = train_random_forest(X, y, small_args(num_trees=9), random_state=0)
        pred = model.predict(X)
        assert pred.shape == (60,)
        assert (pred == y).mean() > 0.9
        proba = model.predict_proba(X)
        assert proba.shape == (60, 2)
        assert np.allclose(proba.sum(axis=1), 1.0)
        assert np.array_equal(model.classes_, np.array([0, 1]))

    def test_predict_proba_dimension_mismatch(self, two_blobs):
        X, y = two_blobs
        model = train_random_forest(X, y, small_args(), random_state=0)
        with pytest.raises(DimensionMismatchError):
            model.predict_proba(X[:, :2])
