import threading

import pytest

from verifai_cli.config import Settings
from verifai_cli.detectors.features import TextFeatures
from verifai_cli.models import Factor, HeuristicResult, LLMResult, RelatedContent
from verifai_cli.service import AnalysisService
from verifai_cli.store import AnalysisStore

HUMAN_TEXT = (
    "I walked to the bakery this morning, but they'd sold out of rye again. "
    "Honestly, I should just learn to bake it myself; my grandmother always said "
    "it's easier than people think.\n\nMaybe next weekend."
)


def make_features(**overrides) -> TextFeatures:
    values = dict(
        word_count=100,
        sentence_count=5,
        paragraph_count=1,
        average_words_per_sentence=20.0,
        average_sentences_per_paragraph=5.0,
        unique_word_count=60,
        vocabulary_diversity=0.6,
        average_word_length=5.0,
        punctuation_density=0.02,
        capitalization_ratio=0.02,
        has_repetitive_patterns=False,
        has_unusual_transitions=False,
        complexity_score=12.0,
    )
    values.update(overrides)
    return TextFeatures(**values)


def llm_result(is_ai=True, confidence=80, probability_ai=80, factors=None) -> LLMResult:
    return LLMResult(
        is_ai=is_ai,
        confidence=confidence,
        probability_ai=probability_ai,
        probability_human=100 - probability_ai,
        explanation="Estructura muy pulida.",
        methodology="Revisión de estilo",
        factors=factors or [Factor(name="Tono", weight=0.5, value=70, impact="negative")],
        model="fake-model",
    )


def heuristic_result(is_ai=False, confidence=50, probability_ai=50) -> HeuristicResult:
    return HeuristicResult(
        is_ai=is_ai,
        confidence=confidence,
        probability_ai=probability_ai,
        probability_human=100 - probability_ai,
        explanation="heurística",
    )


class FakeLLM:
    def __init__(self, result=None, error=None, gate=None):
        self.model = "fake-model"
        self.result = result or llm_result()
        self.error = error
        self.gate = gate
        self.entered = threading.Event()
        self.calls = []

    def _respond(self, kind, *args):
        self.calls.append((kind, args))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.result

    def analyze_text(self, text):
        return self._respond("text", text)

    def analyze_document(self, text):
        return self._respond("document", text)

    def analyze_image(self, data, media_type):
        return self._respond("image", data, media_type)

    def analyze_video(self, frames):
        return self._respond("video", frames)

    def is_available(self):
        return True


class FakeSentiment:
    def __init__(self, signal=None):
        self.signal = signal

    def analyze(self, text):
        return self.signal

    def is_available(self):
        return True


class FakeSearchClient:
    def __init__(self, available=True):
        self.available = available

    def is_available(self):
        return self.available


class FakeFinder:
    def __init__(self, items=None, error=None, gate=None):
        self.client = FakeSearchClient()
        self.items = items if items is not None else [
            RelatedContent(title="Snopes", url="https://www.snopes.com/x", relevance=60, source="snopes.com")
        ]
        self.error = error
        self.gate = gate
        self.calls = []

    def find(self, content_type, subject):
        self.calls.append((content_type, subject))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.items


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        anthropic_api_key="test-key",
        google_search_api_key="search-key",
        google_search_engine_id="engine",
        store_path=tmp_path / "store",
        min_text_length=20,
    )


@pytest.fixture()
def store(settings):
    return AnalysisStore(settings.store_path)


@pytest.fixture()
def make_service(settings, store):
    services = []

    def _make(**kwargs):
        kwargs.setdefault("store", store)
        service = AnalysisService(settings, **kwargs)
        services.append(service)
        return service

    yield _make
    for service in services:
        service.shutdown()
