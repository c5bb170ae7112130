"""
Generative-Text Verdict Backend
───────────────────────────────
Asks an Anthropic model to judge whether content is AI-generated and to
answer with a JSON verdict embedded in its reply. The reply is parsed once,
here, into an LLMResult. Anything unparsable, and any API failure, becomes
the neutral fallback verdict instead of an exception.
"""

import base64
import json
import logging
import re
from typing import List, Optional

import anthropic
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from verifai_cli.config import DEFAULT_LLM_MODEL
from verifai_cli.models import Factor, LLMResult

log = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
_IMPACTS = {"positive", "negative", "neutral"}

_RESPONSE_FORMAT = """
Proporciona tu análisis en el siguiente formato JSON:
{
  "isAI": boolean,
  "confidence": number (0-100),
  "probability": {"ai": number (0-100), "human": number (0-100)},
  "explanation": "Explicación detallada de tu decisión",
  "methodology": "Metodología utilizada para el análisis",
  "factors": [
    {
      "name": "nombre del factor",
      "weight": number (0-1),
      "value": number (0-100),
      "description": "descripción del factor",
      "impact": "positive|negative|neutral"
    }
  ]
}
"""

_TEXT_FACTORS = [
    "Patrones de lenguaje y estructura",
    "Consistencia en el estilo y coherencia",
    "Uso de conectores y transiciones naturales",
    "Originalidad vs. contenido genérico",
    "Errores típicos de IA (repetición, frases forzadas)",
    "Fluidez natural del lenguaje",
    "Credibilidad científica y factual",
    "Tono y estilo de escritura",
    "Complejidad del vocabulario",
]

_IMAGE_FACTORS = [
    "Consistencia de iluminación y sombras",
    "Detalles anatómicos o estructurales",
    "Texturas y patrones repetitivos",
    "Perspectiva y proporciones",
    "Elementos imposibles o que violan la física",
    "Artefactos de compresión o generación",
]

_VIDEO_FACTORS = [
    "Fluidez y naturalidad del movimiento entre fotogramas",
    "Consistencia de iluminación entre fotogramas",
    "Micro-movimientos naturales (parpadeos, respiración)",
    "Estabilidad de la cámara",
    "Artefactos o distorsiones de generación",
    "Coherencia temporal entre fotogramas",
]

_DOCUMENT_FACTORS = [
    "Estructura y organización del documento",
    "Uso de conectores y transiciones",
    "Lenguaje demasiado pulido o genérico",
    "Falta de errores menores típicos humanos",
    "Coherencia temática",
    "Patrones de argumentación",
]


def _numbered(items: list) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def build_prompt(subject: str, factors: list, content: str = "") -> str:
    prompt = (
        f"Analiza {subject} y determina si fue generado por inteligencia artificial "
        "o creado por un humano.\n"
        f"{_RESPONSE_FORMAT}\n"
        f"Considera los siguientes factores:\n{_numbered(factors)}\n"
    )
    if content:
        prompt += f"\nContenido a analizar:\n{content}\n"
    return prompt + "\nResponde únicamente con el JSON, en español."


# ─── Response parsing ────────────────────────────────────────────────────────

class _RawFactor(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    weight: float = 0.0
    value: float = 0.0
    description: str = ""
    impact: str = "neutral"


class _RawProbability(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    ai: float
    human: Optional[float] = None


class _RawVerdict(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    is_ai: bool = Field(alias="isAI")
    confidence: float
    probability: Optional[_RawProbability] = None
    explanation: str = ""
    methodology: str = ""
    factors: List[_RawFactor] = Field(default_factory=list)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _percent(value: float) -> int:
    return int(_clamp(round(value), 0, 100))


def fallback_result(model: str = "") -> LLMResult:
    return LLMResult(
        is_ai=False,
        confidence=50,
        probability_ai=50,
        probability_human=50,
        explanation="No se pudo analizar el contenido con precisión",
        methodology="Análisis básico de texto",
        factors=[],
        model=model,
        fallback=True,
    )


def parse_verdict(raw: str, model: str = "") -> LLMResult:
    """Extract and validate the JSON verdict embedded in a model reply."""
    match = _JSON_BLOCK.search(raw or "")
    if not match:
        log.warning("No JSON verdict found in %s reply", model or "LLM")
        return fallback_result(model)

    try:
        verdict = _RawVerdict.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, ValidationError) as e:
        log.warning("Malformed JSON verdict from %s: %s", model or "LLM", str(e)[:200])
        return fallback_result(model)

    conf = _percent(verdict.confidence)
    if verdict.probability is not None:
        probability_ai = _percent(verdict.probability.ai)
    else:
        probability_ai = conf if verdict.is_ai else 100 - conf

    factors = [
        Factor(
            name=f.name,
            weight=_clamp(f.weight, 0.0, 1.0),
            value=_clamp(f.value, 0.0, 100.0),
            description=f.description,
            impact=f.impact if f.impact in _IMPACTS else "neutral",
        )
        for f in verdict.factors
    ]

    return LLMResult(
        is_ai=verdict.is_ai,
        confidence=conf,
        probability_ai=probability_ai,
        probability_human=100 - probability_ai,
        explanation=verdict.explanation,
        methodology=verdict.methodology,
        factors=factors,
        model=model,
    )


# ─── Client ──────────────────────────────────────────────────────────────────

def _image_block(data: bytes, media_type: str) -> dict:
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type,
            "data": base64.b64encode(data).decode("ascii"),
        },
    }


class LLMAnalyzer:
    """Anthropic-backed verdict client. Pass a client to share or mock it."""

    def __init__(self, client=None, model: str = DEFAULT_LLM_MODEL, api_key: str = None, max_tokens: int = 2048):
        self.client = client if client is not None else anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings):
        return cls(model=settings.llm_model, api_key=settings.anthropic_api_key)

    def _ask(self, content) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": content}],
        )
        return "".join(block.text for block in response.content if block.type == "text")

    def _verdict(self, content) -> LLMResult:
        try:
            raw = self._ask(content)
        except anthropic.APIError as e:
            log.error("LLM request to %s failed: %s", self.model, e)
            return fallback_result(self.model)
        return parse_verdict(raw, self.model)

    def analyze_text(self, text: str) -> LLMResult:
        return self._verdict(build_prompt("el siguiente texto", _TEXT_FACTORS, text))

    def analyze_document(self, text: str) -> LLMResult:
        return self._verdict(build_prompt("el siguiente texto de documento", _DOCUMENT_FACTORS, text))

    def analyze_image(self, data: bytes, media_type: str) -> LLMResult:
        prompt = build_prompt("esta imagen", _IMAGE_FACTORS)
        return self._verdict([_image_block(data, media_type), {"type": "text", "text": prompt}])

    def analyze_video(self, frames: list) -> LLMResult:
        """frames: JPEG bytes sampled in order from the video."""
        if not frames:
            log.warning("No frames to analyze")
            return fallback_result(self.model)
        prompt = build_prompt(
            f"estos {len(frames)} fotogramas extraídos en orden de un video", _VIDEO_FACTORS
        )
        content = [_image_block(frame, "image/jpeg") for frame in frames]
        content.append({"type": "text", "text": prompt})
        return self._verdict(content)

    def is_available(self) -> bool:
        try:
            self.client.messages.create(
                model=self.model,
                max_tokens=5,
                messages=[{"role": "user", "content": "Responde 'OK'."}],
            )
            return True
        except anthropic.APIError as e:
            log.warning("LLM backend unavailable: %s", e)
            return False
