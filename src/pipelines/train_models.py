#!/usr/bin/env python3
"""
Train and evaluate the region classifiers on a sampled tweet dataset.

- Loads the parquet written by build_dataset
- Splits it into train/test, stratified by region
- Fits logistic regression, random forest and linear SVM models, each with
  its own TF-IDF vectorizer over the text field
- Evaluates every model on the same held-out rows
- Writes metrics.csv, confusion_<model>.csv and predictions_<model>.parquet

A model that fails to fit is logged and skipped; the others still run.

Example:
    python -m src.pipelines.train_models \
        --data data/processed/tweets_sampled.parquet \
        --out-dir reports \
        --train-fraction 0.8 \
        --max-tokens 1000 \
        --models logistic random_forest svm
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from src.modeling.classifiers import FittedModel, MODEL_SPECS, build_spec
from src.modeling.errors import ConfigurationError, ModelFitError, PipelineError
from src.modeling.evaluation import MetricsReport, evaluate, metrics_table, predict
from src.modeling.sampling import stratified_split
from src.nlp.text_features import DEFAULT_MAX_TOKENS, DEFAULT_STOPWORDS, TextRecipe


# --------------------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------------------

DEFAULT_DATA = Path("data/processed/tweets_sampled.parquet")
DEFAULT_OUT_DIR = Path("reports")
DEFAULT_TRAIN_FRACTION = 0.8
DEFAULT_SEED = 42
DEFAULT_MODELS = ("logistic", "random_forest", "svm")


logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)


@dataclass(frozen=True)
class TrainConfig:
    data_path: Path = DEFAULT_DATA
    out_dir: Path = DEFAULT_OUT_DIR
    train_fraction: float = DEFAULT_TRAIN_FRACTION
    seed: int = DEFAULT_SEED
    max_tokens: int = DEFAULT_MAX_TOKENS
    stopwords: Optional[str] = DEFAULT_STOPWORDS
    models: Tuple[str, ...] = DEFAULT_MODELS
    trees: int = 100
    mtry: int = 10
    min_n: int = 5

    def recipe(self) -> TextRecipe:
        return TextRecipe(max_tokens=self.max_tokens, stopwords=self.stopwords)

    def model_params(self, name: str) -> dict:
        if name == "random_forest":
            return {"trees": self.trees, "mtry": self.mtry, "min_n": self.min_n}
        return {}


@dataclass
class ModelRun:
    name: str
    fitted: Optional[FittedModel] = None
    report: Optional[MetricsReport] = None
    predictions: Optional[pd.DataFrame] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.report is not None


@dataclass
class RunResult:
    train: pd.DataFrame
    test: pd.DataFrame
    runs: Dict[str, ModelRun] = field(default_factory=dict)

    @property
    def reports(self) -> List[MetricsReport]:
        return [r.report for r in self.runs.values() if r.ok]


# --------------------------------------------------------------------------------------
# Pipeline
# --------------------------------------------------------------------------------------

def run_models(data: pd.DataFrame, cfg: TrainConfig) -> RunResult:
    """
    Split data once, then train and evaluate every configured model.

    Configuration problems (bad split fraction, unknown model, bad recipe) are
    raised before any model is trained. ModelFitError only affects the model
    that raised it.
    """
    recipe = cfg.recipe()
    recipe.validate()
    specs = {name: build_spec(name, **cfg.model_params(name)) for name in cfg.models}
    if not specs:
        raise ConfigurationError("No models selected.")

    train, test = stratified_split(data, train_fraction=cfg.train_fraction, seed=cfg.seed)
    result = RunResult(train=train, test=test)

    for name, spec in specs.items():
        run = ModelRun(name=name)
        logger.info("Training %s on %d rows", name, len(train))
        try:
            run.fitted = spec.train(recipe, train, seed=cfg.seed)
        except ModelFitError as e:
            logger.error("%s: training failed: %s", name, e)
            run.error = str(e)
        else:
            run.report = evaluate(run.fitted, test)
            run.predictions = predict(run.fitted, test)
        result.runs[name] = run

    return result


def write_reports(result: RunResult, out_dir: Path) -> Path:
    """Write metrics.csv plus per-model confusion matrices and predictions."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    metrics_path = out_dir / "metrics.csv"
    metrics_table(result.reports).to_csv(metrics_path, index=False)
    logger.info("Wrote %d model rows → %s", len(result.reports), metrics_path)

    for name, run in result.runs.items():
        if not run.ok:
            continue
        cm_path = out_dir / f"confusion_{name}.csv"
        run.report.confusion.to_csv(cm_path)
        pred_path = out_dir / f"predictions_{name}.parquet"
        run.predictions.to_parquet(pred_path, index=True)
        logger.info("%s: confusion → %s, predictions → %s", name, cm_path, pred_path)

    return metrics_path


def train_models(cfg: TrainConfig) -> RunResult:
    path = Path(cfg.data_path)
    if not path.exists():
        raise FileNotFoundError(f"Training data not found: {path} (run the build_dataset stage first)")

    logger.info("Loading sampled tweets from %s", path)
    data = pd.read_parquet(path)
    result = run_models(data, cfg)
    write_reports(result, cfg.out_dir)
    return result


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Train and evaluate region classifiers on sampled tweets.")
    p.add_argument("--data", type=Path, default=DEFAULT_DATA, help="Sampled parquet from build_dataset.")
    p.add_argument("--out-dir", type=Path, default=DEFAULT_OUT_DIR, help="Directory for metrics outputs.")
    p.add_argument("--train-fraction", type=float, default=DEFAULT_TRAIN_FRACTION,
                   help="Share of each region used for training.")
    p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed for split and models.")
    p.add_argument("--max-tokens", type=int, default=DEFAULT_MAX_TOKENS, help="TF-IDF vocabulary cap.")
    p.add_argument("--stopwords", default=DEFAULT_STOPWORDS, help="Stopword list language.")
    p.add_argument("--models", nargs="+", default=list(DEFAULT_MODELS), choices=sorted(MODEL_SPECS),
                   help="Models to train.")
    p.add_argument("--trees", type=int, default=100, help="Random forest: number of trees.")
    p.add_argument("--mtry", type=int, default=10, help="Random forest: features tried per split.")
    p.add_argument("--min-n", type=int, default=5, help="Random forest: minimum leaf size.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))
    cfg = TrainConfig(
        data_path=args.data,
        out_dir=args.out_dir,
        train_fraction=args.train_fraction,
        seed=args.seed,
        max_tokens=args.max_tokens,
        stopwords=args.stopwords,
        models=tuple(args.models),
        trees=args.trees,
        mtry=args.mtry,
        min_n=args.min_n,
    )
    try:
        result = train_models(cfg)
    except (FileNotFoundError, PipelineError) as e:
        logger.error("train_models failed: %s", e)
        return 1

    for report in result.reports:
        logger.info("%s\n%s", report.model, report.confusion.to_string())
    logger.info("Done. %d/%d models evaluated.", len(result.reports), len(result.runs))
    return 0 if result.reports else 1


if __name__ == "__main__":
    sys.exit(main())
