# modeling/evaluation.py
"""Predictions and held-out metrics for a FittedModel."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
)

from .classifiers import FittedModel
from .errors import DataValidationError

logger = logging.getLogger(__name__)

PRED_COL = "pred_region"
SCORE_PREFIX = "score_"


@dataclass
class MetricsReport:
    model: str
    accuracy: float
    precision: float
    recall: float
    f1: float
    n_test: int
    labels: List[str] = field(default_factory=list)
    confusion: pd.DataFrame = field(default_factory=pd.DataFrame)

    def summary(self) -> Dict[str, float]:
        """Named scalar metrics (macro averages for precision/recall/F1)."""
        return {
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
        }

    def to_frame(self) -> pd.DataFrame:
        """Tidy table with one row per metric: metric, estimator, estimate."""
        rows = [
            {"metric": "accuracy", "estimator": "multiclass", "estimate": self.accuracy},
            {"metric": "precision", "estimator": "macro", "estimate": self.precision},
            {"metric": "recall", "estimator": "macro", "estimate": self.recall},
            {"metric": "f1", "estimator": "macro", "estimate": self.f1},
        ]
        return pd.DataFrame(rows)


def predict(fitted: FittedModel, data: pd.DataFrame) -> pd.DataFrame:
    """
    Predictions for every row of data, indexed like data.

    Columns: the true target (when present), pred_region, and one
    score_<class> column per learned class.
    """
    scores = fitted.scores(data)
    out = pd.DataFrame(index=data.index)
    if fitted.target in data.columns:
        out[fitted.target] = data[fitted.target].astype(str).to_numpy()
    out[PRED_COL] = fitted.predict(data).astype(str)
    for i, cls in enumerate(fitted.classes):
        out[f"{SCORE_PREFIX}{cls}"] = scores[:, i]
    return out


def evaluate(fitted: FittedModel, test_data: pd.DataFrame) -> MetricsReport:
    """Accuracy, macro precision/recall/F1 and confusion matrix on held-out rows."""
    if fitted.target not in test_data.columns:
        raise DataValidationError(f"Target column {fitted.target!r} not found in test data.")
    if test_data.empty:
        raise DataValidationError("Cannot evaluate on an empty test set.")

    labels = fitted.classes
    y_true = test_data[fitted.target].astype(str).to_numpy()
    y_pred = fitted.predict(test_data).astype(str)

    unseen = sorted(set(y_true) - set(labels))
    if unseen:
        logger.warning("%s: test regions %s were not seen in training; they count as errors "
                       "and are left out of the confusion matrix.", fitted.name, unseen)

    if set(labels) & set(y_true):
        cm = confusion_matrix(y_true, y_pred, labels=labels)
    else:
        # confusion_matrix refuses label sets with no true samples
        cm = np.zeros((len(labels), len(labels)), dtype=int)
    confusion = pd.DataFrame(
        cm,
        index=pd.Index(labels, name="truth"),
        columns=pd.Index(labels, name="prediction"),
    )

    report = MetricsReport(
        model=fitted.name,
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision=float(precision_score(y_true, y_pred, labels=labels, average="macro", zero_division=0)),
        recall=float(recall_score(y_true, y_pred, labels=labels, average="macro", zero_division=0)),
        f1=float(f1_score(y_true, y_pred, labels=labels, average="macro", zero_division=0)),
        n_test=int(len(y_true)),
        labels=list(labels),
        confusion=confusion,
    )
    logger.info("%s: accuracy=%.4f precision=%.4f recall=%.4f f1=%.4f (n=%d)",
                report.model, report.accuracy, report.precision, report.recall, report.f1, report.n_test)
    return report


def metrics_table(reports: Iterable[MetricsReport]) -> pd.DataFrame:
    """One row per model with the summary metrics, for side-by-side comparison."""
    rows = [{"model": r.model, **r.summary(), "n_test": r.n_test} for r in reports]
    return pd.DataFrame(rows, columns=["model", "accuracy", "precision", "recall", "f1", "n_test"])
