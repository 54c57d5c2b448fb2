"""Reference classification engine backed by scikit-learn estimators.

The engine is a thin adapter: every algorithm wraps an off-the-shelf
scikit-learn classifier, built fresh for each unit of work from the
algorithm parameters of the configuration.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
import enum
from typing import Any, ClassVar

import numpy as np
from sklearn.base import ClassifierMixin
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeClassifier

from evalflow.core.data.points import DataPoint, points_to_arrays
from evalflow.core.data.sources import SyntheticDataSource
from evalflow.core.engine.engine import Engine
from evalflow.core.engine.params import EngineParams, StaticParamsGenerator, expand_grid
from evalflow.core.evaluation.definition import Evaluation
from evalflow.core.evaluation.metrics import Accuracy, Precision, Recall


class ModelType(enum.StrEnum):
    """Classifiers available to the reference engine."""

    NAIVE_BAYES = "naive_bayes"
    LOGISTIC_REGRESSION = "logistic_regression"
    RANDOM_FOREST = "random_forest"
    DECISION_TREE = "decision_tree"


class ServingStrategy(enum.StrEnum):
    """How the predictions of several algorithms are combined."""

    FIRST = "first"
    MAJORITY = "majority"


@dataclass(frozen=True, slots=True)
class PreparedData:
    """Training data as arrays.

    Attributes:
        X: Feature matrix.
        y: Label vector.
    """

    X: np.ndarray
    y: np.ndarray


class ArrayPreparator:
    """Stacks training points into a feature matrix and a label vector."""

    def prepare(self, training: Sequence[DataPoint]) -> PreparedData:
        X, y = points_to_arrays(training)
        return PreparedData(X=X, y=y)


class SklearnAlgorithm:
    """Base adapter for scikit-learn classifiers.

    Keyword arguments are forwarded to the estimator constructor, except
    `standardize`, which prepends a `StandardScaler` to the estimator.
    """

    estimator_cls: ClassVar[type[ClassifierMixin]]

    def __init__(self, standardize: bool = False, **params: Any) -> None:
        self._standardize = standardize
        self._params = params

    def build(self) -> ClassifierMixin | Pipeline:
        estimator = self.estimator_cls(**self._params)
        if self._standardize:
            return make_pipeline(StandardScaler(), estimator)
        return estimator

    def train(self, prepared: PreparedData) -> ClassifierMixin | Pipeline:
        model = self.build()
        model.fit(prepared.X, prepared.y)
        return model

    def predict(self, model: Any, query: Any) -> Any:
        return self.predict_batch(model, [query])[0]

    def predict_batch(self, model: Any, queries: Sequence[Any]) -> list[Any]:
        predictions = model.predict(np.asarray(queries, dtype=float))
        return [p.item() if isinstance(p, np.generic) else p for p in predictions]


class NaiveBayesAlgorithm(SklearnAlgorithm):
    estimator_cls = GaussianNB


class LogisticRegressionAlgorithm(SklearnAlgorithm):
    estimator_cls = LogisticRegression


class RandomForestAlgorithm(SklearnAlgorithm):
    estimator_cls = RandomForestClassifier


class DecisionTreeAlgorithm(SklearnAlgorithm):
    estimator_cls = DecisionTreeClassifier


ALGORITHMS: dict[str, type[SklearnAlgorithm]] = {
    ModelType.NAIVE_BAYES: NaiveBayesAlgorithm,
    ModelType.LOGISTIC_REGRESSION: LogisticRegressionAlgorithm,
    ModelType.RANDOM_FOREST: RandomForestAlgorithm,
    ModelType.DECISION_TREE: DecisionTreeAlgorithm,
}


class ClassificationServing:
    """Serves the first algorithm's label, or the majority label across algorithms.

    Majority ties go to the label predicted by the earliest algorithm.
    """

    def __init__(self, strategy: str = ServingStrategy.FIRST) -> None:
        self._strategy = ServingStrategy(strategy)

    def serve(self, query: Any, predictions: Sequence[Any]) -> Any:
        if self._strategy == ServingStrategy.FIRST:
            return predictions[0]
        return Counter(predictions).most_common(1)[0][0]


def create_classification_engine() -> Engine:
    """Create the reference classification engine."""
    return Engine(
        algorithms={str(name): factory for name, factory in ALGORITHMS.items()},
        preparator=ArrayPreparator,
        serving=ClassificationServing,
    )


def accuracy_evaluation() -> Evaluation:
    """Evaluation of the reference engine on a synthetic dataset, ranked by accuracy."""
    return Evaluation(
        engine=create_classification_engine(),
        metric=Accuracy(),
        data_source=SyntheticDataSource(),
        other_metrics=(Precision(label=1), Recall(label=1)),
    )


def default_params_generator() -> StaticParamsGenerator:
    """Candidate configurations for `accuracy_evaluation`."""
    base = EngineParams(
        data_source_params={"n_samples": 300, "seed": 7},
        algorithm_params_list=((ModelType.NAIVE_BAYES.value, {}),),
    )
    candidates = [
        base,
        *expand_grid(
            base.override(
                algorithm_params_list=(
                    (ModelType.LOGISTIC_REGRESSION.value, {"standardize": True, "max_iter": 500}),
                )
            ),
            ModelType.LOGISTIC_REGRESSION.value,
            C=[0.01, 1.0, 100.0],
        ),
        *expand_grid(
            base.override(
                algorithm_params_list=((ModelType.DECISION_TREE.value, {"random_state": 0}),)
            ),
            ModelType.DECISION_TREE.value,
            max_depth=[2, 5],
        ),
    ]
    return StaticParamsGenerator(candidates)


__all__ = [
    "ModelType",
    "ServingStrategy",
    "PreparedData",
    "ArrayPreparator",
    "SklearnAlgorithm",
    "NaiveBayesAlgorithm",
    "LogisticRegressionAlgorithm",
    "RandomForestAlgorithm",
    "DecisionTreeAlgorithm",
    "ALGORITHMS",
    "ClassificationServing",
    "create_classification_engine",
    "accuracy_evaluation",
    "default_params_generator",
]
