"""
Text Feature Extractor
──────────────────────
Computes a fixed set of surface statistics from a text sample. Every ratio
is defined as 0 when its denominator is 0, so degenerate input (blank text,
a single unterminated sentence) never raises.
"""

import re
from collections import Counter
from dataclasses import dataclass

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_PUNCTUATION = re.compile(r"[.!?,:;]")
_UPPERCASE = re.compile(r"[A-Z]")
_NON_ALPHA = re.compile(r"[^a-zA-Z]")

# Formal discourse connectives that LLMs overuse
_TRANSITIONS = [
    "furthermore", "moreover", "additionally", "consequently",
    "therefore", "thus", "hence", "accordingly",
]

REPETITION_THRESHOLD = 0.10


@dataclass(frozen=True)
class TextFeatures:
    word_count: int
    sentence_count: int
    paragraph_count: int
    average_words_per_sentence: float
    average_sentences_per_paragraph: float
    unique_word_count: int
    vocabulary_diversity: float
    average_word_length: float
    punctuation_density: float
    capitalization_ratio: float
    has_repetitive_patterns: bool
    has_unusual_transitions: bool
    complexity_score: float


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def split_words(text: str) -> list:
    return text.split()


def split_sentences(text: str) -> list:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def split_paragraphs(text: str) -> list:
    return [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]


def estimate_syllables(words: list) -> float:
    """Average syllables per word: one per three letters, at least one for any word with letters."""
    total = 0
    for word in words:
        letters = _NON_ALPHA.sub("", word)
        if letters:
            total += max(1, len(letters) // 3)
    return _ratio(total, len(words))


def has_repetitive_patterns(words: list) -> bool:
    if not words:
        return False
    top_count = Counter(w.lower() for w in words).most_common(1)[0][1]
    return top_count / len(words) > REPETITION_THRESHOLD


def has_unusual_transitions(text: str) -> bool:
    lowered = text.lower()
    return any(t in lowered for t in _TRANSITIONS)


def complexity_score(words: list, sentences: list) -> float:
    """Flesch-Kincaid style grade estimate."""
    avg_words_per_sentence = _ratio(len(words), len(sentences))
    return 0.39 * avg_words_per_sentence + 11.8 * estimate_syllables(words) - 15.59


def extract_features(text: str) -> TextFeatures:
    words = split_words(text)
    sentences = split_sentences(text)
    paragraphs = split_paragraphs(text)
    length = len(text)

    unique_words = len({w.lower() for w in words})

    return TextFeatures(
        word_count=len(words),
        sentence_count=len(sentences),
        paragraph_count=len(paragraphs),
        average_words_per_sentence=_ratio(len(words), len(sentences)),
        average_sentences_per_paragraph=_ratio(len(sentences), len(paragraphs)),
        unique_word_count=unique_words,
        vocabulary_diversity=_ratio(unique_words, len(words)),
        average_word_length=_ratio(sum(len(w) for w in words), len(words)),
        punctuation_density=_ratio(len(_PUNCTUATION.findall(text)), length),
        capitalization_ratio=_ratio(len(_UPPERCASE.findall(text)), length),
        has_repetitive_patterns=has_repetitive_patterns(words),
        has_unusual_transitions=has_unusual_transitions(text),
        complexity_score=complexity_score(words, sentences),
    )
