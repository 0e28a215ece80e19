# modeling/__init__.py
"""
Sampling, training and evaluation of the region classifiers.

Modules:
- sampling: stratified subsampling and train/test splitting.
- classifiers: logistic regression, random forest and linear SVM specs.
- evaluation: predictions, metrics and confusion matrices.
- errors: exception types shared by every stage.
"""

from .classifiers import (
    ClassifierSpec,
    FittedModel,
    LinearSVMSpec,
    LogisticRegressionSpec,
    MODEL_SPECS,
    RandomForestSpec,
    build_spec,
    default_specs,
)
from .errors import ConfigurationError, DataValidationError, ModelFitError, PipelineError
from .evaluation import MetricsReport, evaluate, metrics_table, predict
from .sampling import stratified_sample, stratified_split

__all__ = [
    "ClassifierSpec",
    "FittedModel",
    "LinearSVMSpec",
    "LogisticRegressionSpec",
    "MODEL_SPECS",
    "RandomForestSpec",
    "build_spec",
    "default_specs",
    "ConfigurationError",
    "DataValidationError",
    "ModelFitError",
    "PipelineError",
    "MetricsReport",
    "evaluate",
    "metrics_table",
    "predict",
    "stratified_sample",
    "stratified_split",
]
