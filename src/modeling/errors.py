# modeling/errors.py
"""Exceptions raised by the sampling, vectorization and modeling stages."""


class PipelineError(Exception):
    """Base class for every error raised by the pipeline stages."""


class DataValidationError(PipelineError, ValueError):
    """Input records are malformed: missing fields or invalid coordinates."""


class ConfigurationError(PipelineError, ValueError):
    """A stage received a parameter it cannot work with."""


class ModelFitError(PipelineError, RuntimeError):
    """An estimator could not be fitted on the given training data."""
