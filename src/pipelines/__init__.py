# pipelines/__init__.py
"""
Pipeline stages for the tweet region classification project.

Modules:
- fetch_dataset: Downloads the UCI tweet archive and extracts the CSV.
- build_dataset: Labels regions from coordinates and draws a per-region sample.
- train_models: Trains and evaluates the TF-IDF region classifiers.
"""

__version__ = "0.1.0"
