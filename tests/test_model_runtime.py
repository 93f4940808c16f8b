import joblib
import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression

from core.model_runtime import ModelHandle
from domain.enums import LoadFailure
from domain.errors import InferenceRuntimeError, ModelLoadError
from helpers import INPUT_SIZE, SlowModel


def _tensor(value=0.5):
    return np.full((INPUT_SIZE, INPUT_SIZE, 3), value, dtype=np.float32)


def test_predict_proba_estimator(click_model):
    handle = ModelHandle.load(click_model, output_size=2)
    output = handle.forward(_tensor())

    assert output.shape == (2,)
    assert output.dtype == np.float32
    assert output[0] == pytest.approx(0.75)
    assert "DummyClassifier" in repr(handle)


def test_decision_function_estimator(tmp_path):
    features = np.random.default_rng(0).random((12, INPUT_SIZE * INPUT_SIZE * 3))
    labels = np.arange(12) % 4
    model = LogisticRegression(max_iter=200).fit(features, labels)
    # hide predict_proba so the margin entry point is used
    path = tmp_path / "margins.joblib"
    joblib.dump(_MarginsOnly(model), path)

    output = ModelHandle.load(path, output_size=4).forward(_tensor())
    assert output.shape == (4,)


class _MarginsOnly:

    def __init__(self, model):
        self.model = model

    def decision_function(self, batch):
        return self.model.decision_function(batch)


def test_callable_model(tmp_path):
    path = tmp_path / "callable.joblib"
    joblib.dump(SlowModel(0.0, [0.1, 0.2, 0.7]), path)
    output = ModelHandle.load(path).forward(_tensor())
    assert output.tolist() == pytest.approx([0.1, 0.2, 0.7])


def test_missing_file_is_unavailable(tmp_path):
    with pytest.raises(ModelLoadError) as info:
        ModelHandle.load(tmp_path / "nope.joblib")
    assert info.value.reason == LoadFailure.UNAVAILABLE


def test_output_length_is_checked(click_model):
    handle = ModelHandle.load(click_model, output_size=512)
    with pytest.raises(InferenceRuntimeError):
        handle.forward(_tensor())


def test_forward_failure_is_runtime_error(tmp_path):
    features = np.random.default_rng(1).random((8, INPUT_SIZE * INPUT_SIZE * 3))
    path = tmp_path / "logreg.joblib"
    joblib.dump(LogisticRegression().fit(features, np.arange(8) % 2), path)

    handle = ModelHandle.load(path)
    with pytest.raises(InferenceRuntimeError):
        handle.forward(np.zeros((2, 2, 3), dtype=np.float32))


def test_closed_handle_refuses_forward(click_model):
    handle = ModelHandle.load(click_model)
    handle.close()
    assert not handle.valid
    with pytest.raises(InferenceRuntimeError):
        handle.forward(_tensor())
