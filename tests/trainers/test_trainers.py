"""
Tests for the trainers, models and evaluation.
"""

import pickle

import numpy as np
import pytest

from reprokit.data import CSVDataSource, Example, MutableDataset
from reprokit.evaluation import ClassificationEvaluation, RegressionEvaluation, evaluate
from reprokit.models import load_model
from reprokit.provenance import ProvenanceKind
from reprokit.trainers import (
    BaggingTrainer,
    EnsembleModel,
    KernelType,
    LibSVMClassificationTrainer,
    LibSVMModel,
    LibSVMRegressionTrainer,
    LinearSGDTrainer,
    SVMType,
)
from reprokit.version import __version__


@pytest.fixture
def regression_dataset(regression_csv):
    return MutableDataset(CSVDataSource(regression_csv, ["y1", "y2"], output_type="regressor"))


class TestTrainerBase:
    """Test suite for the shared trainer behaviour."""

    def test_invocation_count_advances(self, classification_dataset):
        trainer = LinearSGDTrainer(epochs=1, invocation_count=3)
        model = trainer.train(classification_dataset)

        assert trainer.invocation_count == 4
        assert model.provenance.trainer.instance["invocation-count"].value == 3

    def test_invocation_count_is_not_configuration(self):
        provenance = LinearSGDTrainer(seed=42).get_provenance()
        assert "invocation-count" in provenance.instance
        assert "invocation_count" not in provenance.configured
        assert provenance.configured["seed"].value == 42

    @pytest.mark.parametrize("count", [-1, 1.5, "3", True])
    def test_invalid_invocation_count(self, count):
        with pytest.raises(ValueError):
            LinearSGDTrainer(invocation_count=count)

    def test_same_count_same_model(self, classification_dataset):
        first = LinearSGDTrainer(epochs=2, invocation_count=5).train(classification_dataset)
        second = LinearSGDTrainer(epochs=2, invocation_count=5).train(classification_dataset)
        other = LinearSGDTrainer(epochs=2, invocation_count=6).train(classification_dataset)

        assert np.array_equal(first.weights, second.weights)
        assert not np.array_equal(first.weights, other.weights)

    def test_second_invocation_matches_restored_count(self, classification_dataset):
        trainer = LinearSGDTrainer(epochs=2)
        trainer.train(classification_dataset)
        second = trainer.train(classification_dataset)

        restored = LinearSGDTrainer(epochs=2, invocation_count=1).train(classification_dataset)
        assert np.array_equal(second.weights, restored.weights)

    def test_model_provenance(self, classification_dataset):
        model = LinearSGDTrainer(epochs=1).train(classification_dataset)
        provenance = model.provenance

        assert provenance.kind is ProvenanceKind.MODEL
        assert provenance.class_name == "LinearSGDModel"
        assert provenance.dataset.class_name == "MutableDataset"
        assert provenance.trainer.class_name == "LinearSGDTrainer"
        assert provenance.instance["reprokit-version"].value == __version__
        assert "trained-at" in provenance.instance

    def test_empty_dataset_rejected(self, in_memory_dataset):
        in_memory_dataset.examples = []
        with pytest.raises(ValueError):
            LinearSGDTrainer().train(in_memory_dataset)


class TestLinearSGD:
    """Test suite for LinearSGDTrainer."""

    def test_classification(self, classification_dataset):
        model = LinearSGDTrainer(epochs=5).train(classification_dataset)
        evaluation = evaluate(model, classification_dataset)

        assert isinstance(evaluation, ClassificationEvaluation)
        assert evaluation.accuracy > 0.9

    def test_prediction_scores(self, classification_dataset):
        model = LinearSGDTrainer(epochs=5).train(classification_dataset)
        prediction = model.predict(Example("?", {"x1": 2.0, "x2": -2.0}))

        assert prediction.output == "pos"
        assert set(prediction.scores) == {"neg", "pos"}
        assert sum(prediction.scores.values()) == pytest.approx(1.0)
        assert prediction.num_used_features == 2

    def test_regression(self, regression_dataset):
        model = LinearSGDTrainer(epochs=20, learning_rate=0.05).train(regression_dataset)
        evaluation = evaluate(model, regression_dataset)

        assert isinstance(evaluation, RegressionEvaluation)
        assert set(evaluation.rmse) == {"y1", "y2"}
        assert evaluation.average_r2 > 0.8

    def test_unknown_features_rejected(self, classification_dataset):
        model = LinearSGDTrainer(epochs=1).train(classification_dataset)
        with pytest.raises(ValueError, match="no features"):
            model.predict(Example("?", {"unknown": 1.0}))

    @pytest.mark.parametrize("kwargs", [
        {"epochs": 0},
        {"learning_rate": 0.0},
        {"l2": -1.0},
        {"minibatch_size": 0},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            LinearSGDTrainer(**kwargs)


class TestLibSVM:
    """Test suite for the LibSVM trainers."""

    def test_classification(self, classification_dataset):
        trainer = LibSVMClassificationTrainer(kernel=KernelType.LINEAR, cost=1.0)
        model = trainer.train(classification_dataset)

        assert isinstance(model, LibSVMModel)
        assert model.num_support_vectors() > 0
        assert model.num_support_vectors() == sum(model.support_vector_counts())
        assert evaluate(model, classification_dataset).accuracy > 0.9

    def test_nu_svc_from_strings(self, classification_dataset):
        trainer = LibSVMClassificationTrainer(svm_type="nu-svc", kernel="rbf", nu=0.3)
        assert trainer.svm_type is SVMType.NU_SVC
        model = trainer.train(classification_dataset)
        prediction = model.predict(Example("?", {"x1": -2.0, "x2": 2.0}))
        assert prediction.output == "neg"
        assert set(prediction.scores) == {"neg", "pos"}

    def test_provenance_records_enum_values(self):
        provenance = LibSVMClassificationTrainer(kernel="poly").get_provenance()
        assert provenance.configured["svm_type"].value == "c-svc"
        assert provenance.configured["kernel"].value == "poly"
        # Unset gamma is not recorded
        assert "gamma" not in provenance.configured

    def test_regression_one_model_per_dimension(self, regression_dataset):
        trainer = LibSVMRegressionTrainer(kernel="linear", standardize=True)
        model = trainer.train(regression_dataset)

        assert len(model.estimators) == 2
        assert model.means is not None and model.variances is not None
        assert len(model.support_vector_counts()) == 2
        assert evaluate(model, regression_dataset).average_r2 > 0.8

    def test_nu_svr(self, regression_dataset):
        model = LibSVMRegressionTrainer(svm_type=SVMType.NU_SVR, kernel="linear").train(regression_dataset)
        assert model.means is None
        assert set(model.predict(regression_dataset[0]).output) == {"y1", "y2"}

    def test_type_mismatch_rejected(self, classification_dataset, regression_dataset):
        with pytest.raises(ValueError):
            LibSVMClassificationTrainer(svm_type="epsilon-svr")
        with pytest.raises(ValueError):
            LibSVMRegressionTrainer(svm_type="c-svc")
        with pytest.raises(ValueError):
            LibSVMRegressionTrainer().train(classification_dataset)
        with pytest.raises(ValueError):
            LibSVMClassificationTrainer().train(regression_dataset)

    @pytest.mark.parametrize("kwargs", [{"cost": 0.0}, {"nu": 0.0}, {"gamma": -1.0}, {"kernel": "cubic"}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            LibSVMClassificationTrainer(**kwargs)


class TestBagging:
    """Test suite for BaggingTrainer."""

    def test_classification_ensemble(self, classification_dataset):
        inner = LinearSGDTrainer(epochs=2)
        trainer = BaggingTrainer(inner, num_members=3, seed=9)
        model = trainer.train(classification_dataset)

        assert isinstance(model, EnsembleModel)
        assert len(model.members) == 3
        assert inner.invocation_count == 3
        assert trainer.invocation_count == 1
        assert evaluate(model, classification_dataset).accuracy > 0.9

    def test_nested_provenance(self, classification_dataset):
        inner = LinearSGDTrainer(epochs=1, invocation_count=2)
        model = BaggingTrainer(inner, num_members=2).train(classification_dataset)

        nested = model.provenance.trainer.configured["inner_trainer"]
        assert nested.kind is ProvenanceKind.TRAINER
        assert nested.class_name == "LinearSGDTrainer"
        assert nested.instance["invocation-count"].value == 2

    def test_regression_averages(self, regression_dataset):
        model = BaggingTrainer(LinearSGDTrainer(epochs=5), num_members=2).train(regression_dataset)
        prediction = model.predict(regression_dataset[0])
        members = [member.predict(regression_dataset[0]).output["y1"] for member in model.members]
        assert prediction.output["y1"] == pytest.approx(np.mean(members))

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            BaggingTrainer("not a trainer")
        with pytest.raises(ValueError):
            BaggingTrainer(LinearSGDTrainer(), num_members=0)


class TestPersistence:
    """Test model save and load."""

    def test_save_and_load(self, classification_dataset, tmp_path):
        model = LinearSGDTrainer(epochs=1).train(classification_dataset)
        path = model.save(tmp_path / "out" / "model.pkl")

        loaded = load_model(path)

        assert loaded.provenance == model.provenance
        assert np.array_equal(loaded.weights, model.weights)

    def test_load_rejects_other_objects(self, tmp_path):
        path = tmp_path / "other.pkl"
        with open(path, "wb") as f:
            pickle.dump({"not": "a model"}, f)
        with pytest.raises(ValueError):
            load_model(path)


class TestEvaluation:
    """Test suite for evaluate."""

    def test_empty_rejected(self, classification_dataset):
        model = LinearSGDTrainer(epochs=1).train(classification_dataset)
        with pytest.raises(ValueError):
            evaluate(model, [])

    def test_string_forms(self, classification_dataset):
        model = LinearSGDTrainer(epochs=1).train(classification_dataset)
        assert str(evaluate(model, classification_dataset)).startswith("ClassificationEvaluation(examples=40")
