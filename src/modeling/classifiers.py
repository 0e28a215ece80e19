# modeling/classifiers.py
"""
Region classifiers over TF-IDF features.

Every model is described by a ClassifierSpec. ClassifierSpec.train fits a
fresh vectorizer from the TextRecipe on the training rows, builds the
estimator for the resulting feature count, fits it, and returns a
FittedModel wrapping Pipeline([("tfidf", ...), ("clf", ...)]). The
vectorizer is never shared between models.

Specs:
- LogisticRegressionSpec: multinomial logistic regression
- RandomForestSpec: random forest (trees / mtry / min_n)
- LinearSVMSpec: linear support-vector machine
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.ensemble import RandomForestClassifier
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.svm import LinearSVC

from src.nlp.text_features import TextRecipe

from .errors import ConfigurationError, DataValidationError, ModelFitError

logger = logging.getLogger(__name__)

DEFAULT_TARGET = "region"


@dataclass
class FittedModel:
    """A fitted tfidf -> clf pipeline, ready for prediction."""

    name: str
    recipe: TextRecipe
    pipeline: Pipeline
    target: str = DEFAULT_TARGET

    @property
    def vectorizer(self) -> TfidfVectorizer:
        return self.pipeline.named_steps["tfidf"]

    @property
    def estimator(self) -> ClassifierMixin:
        return self.pipeline.named_steps["clf"]

    @property
    def classes(self) -> List[str]:
        return [str(c) for c in self.pipeline.classes_]

    @property
    def n_features(self) -> int:
        return len(self.vectorizer.vocabulary_)

    def _texts(self, data: pd.DataFrame) -> List[str]:
        return _text_values(data, self.recipe.text_column)

    def predict(self, data: pd.DataFrame) -> np.ndarray:
        return self.pipeline.predict(self._texts(data))

    def scores(self, data: pd.DataFrame) -> np.ndarray:
        """
        Per-class scores, shape (n_rows, n_classes), columns ordered as self.classes.

        Probabilities when the estimator has predict_proba, raw decision
        function values otherwise.
        """
        texts = self._texts(data)
        if hasattr(self.estimator, "predict_proba"):
            return self.pipeline.predict_proba(texts)
        decision = self.pipeline.decision_function(texts)
        if decision.ndim == 1:
            # binary decision_function only scores the second class
            decision = np.column_stack([-decision, decision])
        return decision


def _text_values(data: pd.DataFrame, column: str) -> List[str]:
    if column not in data.columns:
        raise DataValidationError(f"Text column {column!r} not found in columns {list(data.columns)}")
    return data[column].fillna("").astype(str).tolist()


class ClassifierSpec(ABC):
    """A multi-class classifier that can be trained on sparse TF-IDF features."""

    name: str = "classifier"

    @abstractmethod
    def build_estimator(self, n_features: int, seed: int) -> ClassifierMixin:
        """Return an unfitted estimator for a matrix with n_features columns."""

    def train(
        self,
        recipe: TextRecipe,
        train_data: pd.DataFrame,
        seed: int = 42,
        target: str = DEFAULT_TARGET,
    ) -> FittedModel:
        if target not in train_data.columns:
            raise DataValidationError(f"Target column {target!r} not found in columns {list(train_data.columns)}")

        y = train_data[target].astype(str).to_numpy()
        n_classes = len(np.unique(y))
        if n_classes < 2:
            raise ModelFitError(
                f"{self.name}: training data has {n_classes} distinct {target!r} value(s); need at least 2."
            )

        texts = _text_values(train_data, recipe.text_column)
        # fit the vectorizer first: estimators like the random forest need the feature count
        vectorizer = recipe.fit(texts)
        X = vectorizer.transform(texts)
        logger.info("%s: fitted vocabulary of %d tokens on %d documents",
                    self.name, X.shape[1], X.shape[0])

        estimator = self.build_estimator(X.shape[1], seed)
        try:
            estimator.fit(X, y)
        except ValueError as e:
            raise ModelFitError(f"{self.name}: estimator failed to fit: {e}") from e

        pipeline = Pipeline([("tfidf", vectorizer), ("clf", estimator)])
        return FittedModel(name=self.name, recipe=recipe, pipeline=pipeline, target=target)


@dataclass
class LogisticRegressionSpec(ClassifierSpec):
    max_iter: int = 1000
    name: str = "logistic"

    def build_estimator(self, n_features: int, seed: int) -> ClassifierMixin:
        # lbfgs fits a multinomial model for more than two classes
        return LogisticRegression(max_iter=self.max_iter, random_state=seed)


@dataclass
class RandomForestSpec(ClassifierSpec):
    trees: int = 100
    mtry: int = 10
    min_n: int = 5
    name: str = "random_forest"

    def __post_init__(self):
        for field_name in ("trees", "mtry", "min_n"):
            value = getattr(self, field_name)
            if value < 1:
                raise ConfigurationError(f"{field_name} must be >= 1, got {value}")

    def build_estimator(self, n_features: int, seed: int) -> ClassifierMixin:
        mtry = self.mtry
        if mtry > n_features:
            logger.warning("%s: mtry=%d is greater than the number of feature columns; %d will be used.",
                           self.name, mtry, n_features)
            mtry = n_features
        return RandomForestClassifier(
            n_estimators=self.trees,
            max_features=mtry,
            min_samples_leaf=self.min_n,
            random_state=seed,
        )


@dataclass
class LinearSVMSpec(ClassifierSpec):
    cost: float = 1.0
    name: str = "svm"

    def build_estimator(self, n_features: int, seed: int) -> ClassifierMixin:
        return LinearSVC(C=self.cost, random_state=seed)


MODEL_SPECS = {
    "logistic": LogisticRegressionSpec,
    "random_forest": RandomForestSpec,
    "svm": LinearSVMSpec,
}


def build_spec(name: str, **params) -> ClassifierSpec:
    """Instantiate the spec registered under name with the given parameters."""
    try:
        cls = MODEL_SPECS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown model {name!r}; available: {sorted(MODEL_SPECS)}") from None
    return cls(**params)


def default_specs(trees: int = 100, mtry: int = 10, min_n: int = 5) -> Dict[str, ClassifierSpec]:
    return {
        "logistic": LogisticRegressionSpec(),
        "random_forest": RandomForestSpec(trees=trees, mtry=mtry, min_n=min_n),
        "svm": LinearSVMSpec(),
    }
