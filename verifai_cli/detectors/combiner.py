"""
Result Combiner
───────────────
Blends two scored results from different backends into one verdict.

Weights are normalised by their sum, so (0.6, 0.4) and (3, 2) are the same
blend. A factor reported by both backends accumulates weight from each; a
factor seen by only one keeps only that backend's share.
"""

import math

import numpy as np

from verifai_cli.models import CombinedResult, Factor, confidence_level, verdict_phrase

DEFAULT_WEIGHTS = (0.6, 0.4)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _blend(value_a: float, value_b: float, weight_a: float, weight_b: float) -> float:
    return float(np.average([value_a, value_b], weights=[weight_a, weight_b]))


def merge_factors(factors_a: list, factors_b: list, share_a: float, share_b: float) -> list:
    merged = {}

    for factor in factors_a:
        merged[factor.name] = {
            "name": factor.name,
            "weight": factor.weight * share_a,
            "value": factor.value,
            "description": factor.description,
            "impact": factor.impact,
        }

    for factor in factors_b:
        entry = merged.get(factor.name)
        if entry is None:
            merged[factor.name] = {
                "name": factor.name,
                "weight": factor.weight * share_b,
                "value": factor.value,
                "description": factor.description,
                "impact": factor.impact,
            }
            continue
        entry["value"] = _blend(entry["value"], factor.value, share_a, share_b)
        entry["weight"] += factor.weight * share_b
        entry["description"] = entry["description"] or factor.description
        if entry["impact"] != factor.impact:
            entry["impact"] = "neutral"

    factors = [
        Factor(
            name=e["name"],
            weight=min(1.0, e["weight"]),
            value=max(0.0, min(100.0, e["value"])),
            description=e["description"],
            impact=e["impact"],
        )
        for e in merged.values()
    ]
    return sorted(factors, key=lambda f: f.weight, reverse=True)


def combine(a, b, weight_a: float = DEFAULT_WEIGHTS[0], weight_b: float = DEFAULT_WEIGHTS[1]):
    """
    Merge two ScoredResults. With only one result available it is returned
    unchanged; with none, or with a non-positive total weight, this raises.
    """
    if a is None and b is None:
        raise ValueError("combine() needs at least one scored result")
    if b is None:
        return a
    if a is None:
        return b

    total = weight_a + weight_b
    if total <= 0:
        raise ValueError(f"combine() weights must sum to a positive value, got {weight_a} + {weight_b}")
    share_a, share_b = weight_a / total, weight_b / total

    conf = _round_half_up(_blend(a.confidence, b.confidence, share_a, share_b))
    probability_ai = _round_half_up(_blend(a.probability_ai, b.probability_ai, share_a, share_b))
    is_ai = probability_ai > 50

    return CombinedResult(
        is_ai=is_ai,
        confidence=conf,
        probability_ai=probability_ai,
        probability_human=100 - probability_ai,
        explanation=(
            f"El análisis combinado indica que este contenido fue {verdict_phrase(is_ai)} "
            f"con una confianza {confidence_level(conf)} ({conf}%)."
        ),
        factors=merge_factors(a.factors, b.factors, share_a, share_b),
        sources=[a.backend, b.backend],
    )
