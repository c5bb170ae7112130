from verifai_cli.detectors.features import TextFeatures
from verifai_cli.models import Factor, HeuristicResult, SentimentSignal, confidence_level, verdict_phrase

NEUTRAL_LABEL = "neutral"

# Thresholds shared by the AI score, the explanation and the factor impacts
LOW_DIVERSITY = 0.30
VERY_LOW_DIVERSITY = 0.20
LOW_COMPLEXITY = 10
VERY_LOW_COMPLEXITY = 5
LONG_SENTENCES = 25
DENSE_PUNCTUATION = 0.05
NEUTRAL_SIGNAL_SCORE = 0.80

MIN_CONFIDENCE = 30
MAX_CONFIDENCE = 95


def _is_neutral(signal) -> bool:
    return (
        signal is not None
        and signal.label.lower() == NEUTRAL_LABEL
        and signal.score > NEUTRAL_SIGNAL_SCORE
    )


def ai_score(features: TextFeatures, external_signal: SentimentSignal = None) -> int:
    """Running point total behind the verdict. Above 50 means AI."""
    score = 0

    # ─── 1. Repetition and formal connectives ────────────────────────────
    if features.has_repetitive_patterns:
        score += 20
    if features.has_unusual_transitions:
        score += 15

    # ─── 2. Vocabulary and structure ─────────────────────────────────────
    if features.vocabulary_diversity < LOW_DIVERSITY:
        score += 25
    if features.complexity_score < LOW_COMPLEXITY:
        score += 15
    if features.average_words_per_sentence > LONG_SENTENCES:
        score += 10
    if features.punctuation_density > DENSE_PUNCTUATION:
        score += 10

    # ─── 3. Flat, confidently neutral tone from the sentiment backend ────
    if _is_neutral(external_signal):
        score += 15

    return score


def confidence(features: TextFeatures) -> int:
    value = 50
    if features.has_repetitive_patterns:
        value += 15
    if features.vocabulary_diversity < VERY_LOW_DIVERSITY:
        value += 20
    if features.complexity_score < VERY_LOW_COMPLEXITY:
        value += 15
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, value))


def explain(is_ai: bool, conf: int, features: TextFeatures) -> str:
    explanation = (
        f"El análisis sugiere que este contenido fue {verdict_phrase(is_ai)} "
        f"con una confianza {confidence_level(conf)} ({conf}%). "
    )
    if not is_ai:
        return explanation + (
            "El texto muestra características típicas de escritura humana como "
            "variabilidad en el vocabulario y estructura natural."
        )

    indicators = []
    if features.has_repetitive_patterns:
        indicators.append("patrones repetitivos")
    if features.vocabulary_diversity < LOW_DIVERSITY:
        indicators.append("vocabulario limitado")
    if features.complexity_score < LOW_COMPLEXITY:
        indicators.append("estructura simplificada")
    return explanation + "Los indicadores principales incluyen: " + ", ".join(indicators) + "."


def _impact(triggered: bool) -> str:
    return "negative" if triggered else "positive"


def build_factors(features: TextFeatures) -> list:
    return [
        Factor(
            name="Diversidad de vocabulario",
            weight=0.30,
            value=features.vocabulary_diversity * 100,
            description="Variedad de palabras únicas en el texto",
            impact=_impact(features.vocabulary_diversity < LOW_DIVERSITY),
        ),
        Factor(
            name="Complejidad del texto",
            weight=0.25,
            value=max(0.0, min(100.0, features.complexity_score * 5)),
            description="Nivel de complejidad lingüística",
            impact=_impact(features.complexity_score < LOW_COMPLEXITY),
        ),
        Factor(
            name="Patrones repetitivos",
            weight=0.20,
            value=80 if features.has_repetitive_patterns else 20,
            description="Presencia de patrones repetitivos",
            impact=_impact(features.has_repetitive_patterns),
        ),
        Factor(
            name="Transiciones naturales",
            weight=0.15,
            value=30 if features.has_unusual_transitions else 70,
            description="Uso de transiciones naturales",
            impact=_impact(features.has_unusual_transitions),
        ),
        Factor(
            name="Densidad de puntuación",
            weight=0.10,
            value=min(100.0, features.punctuation_density * 2000),
            description="Uso de signos de puntuación",
            impact=_impact(features.punctuation_density > DENSE_PUNCTUATION),
        ),
    ]


def score(features: TextFeatures, external_signal: SentimentSignal = None) -> HeuristicResult:
    is_ai = ai_score(features, external_signal) > 50
    conf = confidence(features)
    # Probability follows confidence, not the point total
    probability_ai = conf if is_ai else 100 - conf

    return HeuristicResult(
        is_ai=is_ai,
        confidence=conf,
        probability_ai=probability_ai,
        probability_human=100 - probability_ai,
        explanation=explain(is_ai, conf, features),
        factors=build_factors(features),
    )
