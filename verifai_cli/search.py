"""
Related Content Search
──────────────────────
Finds fact-checking and related pages for an analyzed item through the
Google Custom Search JSON API. Search is best-effort: missing credentials,
quota errors and timeouts all yield an empty list, and the finder falls
back to a fixed set of verification resources per content type.
"""

import logging
import re
from collections import Counter
from urllib.parse import urlparse

import requests

from verifai_cli.models import RelatedContent

log = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RELATED = 8
RESULTS_PER_QUERY = 3

_STOP_WORDS = {
    # Spanish
    "el", "la", "de", "que", "y", "a", "en", "un", "es", "se", "no", "te", "lo", "le",
    "da", "su", "por", "son", "con", "para", "al", "del", "los", "las", "una", "como",
    "pero", "sus", "más", "muy", "ya", "todo", "esta", "está", "han", "hay", "fue",
    "ser", "tiene", "puede", "hacer", "decir", "ver", "saber", "querer", "ir", "venir",
    "dar", "tener", "estar", "poder", "este", "ese", "esa", "entre", "sobre", "también",
    # English
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her", "was", "one",
    "our", "out", "has", "have", "had", "his", "him", "how", "its", "may", "who", "this",
    "that", "with", "from", "they", "been", "were", "will", "would", "there", "their",
    "what", "when", "which", "about", "into", "than", "then", "them", "these", "some",
}


def extract_keywords(text: str, limit: int = 8) -> list:
    """Most frequent meaningful words, most frequent first."""
    cleaned = re.sub(r"\d+", " ", re.sub(r"[^\w\s]", " ", text.lower()))
    words = [w for w in cleaned.split() if len(w) > 2 and w not in _STOP_WORDS]
    return [word for word, _ in Counter(words).most_common(limit)]


def calculate_relevance(query: str, title: str, snippet: str) -> int:
    query_words = query.lower().split()
    title_words = title.lower().split()
    snippet_words = snippet.lower().split()

    relevance = 30 * sum(1 for w in query_words if w in title_words)
    relevance += 10 * sum(1 for w in query_words if w in snippet_words)

    q = query.lower()
    if q in title.lower() or q in snippet.lower():
        relevance += 20
    return min(100, relevance)


def extract_domain(url: str) -> str:
    host = urlparse(url).hostname
    if not host:
        return "fuente desconocida"
    return host[4:] if host.startswith("www.") else host


class WebSearchClient:
    def __init__(self, api_key: str, engine_id: str, timeout: float = 5.0, session=None):
        self.api_key = api_key
        self.engine_id = engine_id
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.google_search_api_key, settings.google_search_engine_id, settings.search_timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    def _get(self, query: str, num: int, timeout: float) -> dict:
        response = self.session.get(
            GOOGLE_SEARCH_URL,
            params={
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                "num": num,
                "safe": "active",
            },
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()

    def search(self, query: str, max_results: int = 5) -> list:
        if not self.configured:
            log.debug("Web search not configured; skipping related content")
            return []

        try:
            data = self._get(query, max_results, self.timeout)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 429:
                log.warning("Web search quota exceeded; skipping related content")
            elif status == 403:
                log.warning("Web search access denied; check the API key and engine id")
            else:
                log.warning("Web search failed with HTTP %s", status)
            return []
        except requests.RequestException as e:
            log.warning("Web search unavailable: %s", e)
            return []

        return [
            RelatedContent(
                title=item.get("title", ""),
                url=item["link"],
                snippet=item.get("snippet", ""),
                relevance=calculate_relevance(query, item.get("title", ""), item.get("snippet", "")),
                source=extract_domain(item["link"]),
            )
            for item in data.get("items", [])
            if item.get("link")
        ]

    def is_available(self) -> bool:
        if not self.configured:
            return False
        try:
            self._get("test", 1, min(self.timeout, 3.0))
            return True
        except requests.RequestException as e:
            log.warning("Web search unavailable: %s", e)
            return False


# ─── Per-content-type queries and fallbacks ─────────────────────────────────

def build_queries(content_type: str, keywords: list) -> list:
    top3 = " ".join(keywords[:3])
    top2 = " ".join(keywords[:2])
    if content_type == "image":
        return [
            f"{top3} imagen",
            f"{top3} imagen similar",
            f"verificar imagen {top2}",
            f"búsqueda inversa {top2}",
            f"imagen original {top2}",
        ]
    if content_type == "video":
        return [
            f"video similar {top2}",
            f"verificar video {top2}",
            f"deepfake detección {top2}",
            f"video original {top2}",
        ]
    if content_type == "document":
        return [
            f"{top3} artículo",
            f"{top3} estudio",
            f"verificar información {top2}",
            f"contenido relacionado {top2}",
        ]
    return [
        top3,
        f"verificar información {top2}",
        f"fact check {top2}",
        f"noticias {top2}",
    ]


_EXAMPLES = {
    "text": [
        ("Verificación de información sobre {kw}", "https://www.snopes.com",
         "Información verificada sobre {kw} y temas relacionados.", 85),
        ("Fact-checking: {kw}", "https://www.politifact.com",
         "Análisis detallado y verificación de hechos sobre {kw}.", 80),
        ("Información científica sobre {kw}", "https://www.scientificamerican.com",
         "Artículos científicos y análisis basados en evidencia sobre {kw}.", 75),
    ],
    "image": [
        ("Verificación de imagen: {kw}", "https://www.tineye.com",
         "Búsqueda inversa de imágenes para verificar la autenticidad.", 90),
        ("Análisis forense de imagen", "https://www.fotoforensics.com",
         "Análisis forense para detectar manipulaciones.", 85),
        ("Detección de deepfakes", "https://www.sensity.ai",
         "Herramientas para detectar imágenes y videos generados por IA.", 80),
    ],
    "video": [
        ("Verificación de video: {kw}", "https://www.invid-project.eu",
         "Verificación de videos para detectar manipulaciones y deepfakes.", 90),
        ("Análisis de video con IA", "https://www.sensity.ai",
         "Detección de videos generados por IA y deepfakes.", 85),
        ("Verificación de contenido multimedia", "https://www.verificationhandbook.com",
         "Guía para verificar la autenticidad de contenido multimedia.", 80),
    ],
    "document": [
        ("Verificación de documento: {kw}", "https://www.turnitin.com",
         "Detección de plagio y verificación de autenticidad de documentos.", 90),
        ("Análisis de documentos con IA", "https://www.copyleaks.com",
         "Detección de contenido generado por IA en documentos y textos.", 85),
        ("Verificación de autenticidad de documentos", "https://www.grammarly.com",
         "Herramientas para verificar la autenticidad de documentos escritos.", 80),
    ],
}

_DEFAULT_KEYWORD = {"text": "contenido", "image": "imagen", "video": "video", "document": "documento"}


def example_content(content_type: str, subject: str) -> list:
    keywords = extract_keywords(subject)
    kw = keywords[0] if keywords else _DEFAULT_KEYWORD.get(content_type, "contenido")
    return [
        RelatedContent(
            title=title.format(kw=kw),
            url=url,
            snippet=snippet.format(kw=kw),
            relevance=relevance,
            source=extract_domain(url),
        )
        for title, url, snippet, relevance in _EXAMPLES.get(content_type, _EXAMPLES["text"])
    ]


class RelatedContentFinder:
    def __init__(self, client: WebSearchClient):
        self.client = client

    def search(self, content_type: str, subject: str) -> list:
        """Run every query for the item, dedup by URL, keep the first MAX_RELATED."""
        keywords = extract_keywords(subject)
        seen = set()
        results = []
        for query in build_queries(content_type, keywords):
            if not query.strip():
                continue
            for item in self.client.search(query, RESULTS_PER_QUERY):
                if item.url in seen:
                    continue
                seen.add(item.url)
                results.append(item)
        return results[:MAX_RELATED]

    def find(self, content_type: str, subject: str) -> list:
        return self.search(content_type, subject) or example_content(content_type, subject)
