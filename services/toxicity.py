"""Local toxicity classifier used by the offline scoring path.

The classifier is an explicit object: ``main`` builds and loads one at startup
and hands it to the aggregator, tests pass a deterministic stub instead.
"""

from __future__ import annotations

import logging
from typing import Protocol

from config import settings
from schemas.signals import ToxicityPrediction

logger = logging.getLogger("credence.toxicity")

# Characters fed to the model; longer inputs are truncated.
MAX_INPUT_CHARS = 512


class ToxicityClassifier(Protocol):
    def predict(self, text: str) -> ToxicityPrediction: ...


class HuggingFaceToxicityClassifier:
    """``transformers`` text-classification pipeline (TOXIC / NON_TOXIC)."""

    def __init__(self, model_name: str | None = None) -> None:
        self.model_name = model_name or settings.toxicity_model
        self._pipeline = None

    @property
    def loaded(self) -> bool:
        return self._pipeline is not None

    def load(self) -> None:
        """Download / load the model weights.  Called once at startup."""
        import torch
        from transformers import pipeline

        device = 0 if torch.cuda.is_available() else -1
        logger.info("Loading toxicity model: %s (device=%s)", self.model_name, device)
        self._pipeline = pipeline("text-classification", model=self.model_name, device=device)
        logger.info("Toxicity model loaded successfully.")

    def predict(self, text: str) -> ToxicityPrediction:
        if not self.loaded:
            raise RuntimeError("Toxicity model not loaded — call load() first")

        result = self._pipeline(text[:MAX_INPUT_CHARS])
        top = result[0]
        return ToxicityPrediction(label=str(top["label"]), score=float(top["score"]))
