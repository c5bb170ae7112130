import logging

from verifai_cli.config import DEFAULT_SENTIMENT_MODEL
from verifai_cli.models import SentimentSignal

log = logging.getLogger(__name__)

_MAX_CHARS = 2000


class SentimentDetector:
    """
    Sentiment label/score from a transformers text-classification model.
    Loaded on first use; if it cannot load or run, the signal is reported as
    unavailable (None) and scoring continues without it.
    """

    def __init__(self, model_name: str = DEFAULT_SENTIMENT_MODEL, classifier=None):
        self.model_name = model_name
        self._classifier = classifier
        self._available = None

    def _load_model(self):
        if self._classifier is None:
            import torch
            import warnings
            from transformers import pipeline
            warnings.filterwarnings("ignore")
            device = 0 if torch.cuda.is_available() else -1
            self._classifier = pipeline("text-classification", model=self.model_name, device=device)
        return self._classifier

    def is_available(self) -> bool:
        if self._available is None:
            try:
                self._load_model()
                self._available = True
            except Exception as e:
                log.warning("Sentiment model %s could not be loaded: %s", self.model_name, e)
                self._available = False
        return self._available

    def analyze(self, text: str):
        if not text or not text.strip() or not self.is_available():
            return None
        try:
            output = self._classifier(text[:_MAX_CHARS], truncation=True)
        except Exception as e:
            log.warning("Sentiment inference failed: %s", e)
            return None
        if not output:
            return None
        top = output[0]
        return SentimentSignal(label=str(top["label"]), score=float(top["score"]))
