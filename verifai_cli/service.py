"""
Analysis Orchestration
──────────────────────
Wires the backends around the scoring core:

  text      heuristic (features + sentiment) and LLM verdicts, combined 0.6/0.4
  document  extracted text through the same path as text, LLM document prompt
  image     LLM vision verdict
  video     LLM verdict over sampled keyframes

Each top-level call returns (record, error). Only one top-level analysis runs
at a time; a second concurrent call is rejected, not queued. Persistence and
related-content search never block or fail the verdict: related content runs
as a cancellable background task that publishes into the record when done.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from verifai_cli import media
from verifai_cli.config import Settings, api_status
from verifai_cli.detectors import heuristic
from verifai_cli.detectors.combiner import combine
from verifai_cli.detectors.features import extract_features
from verifai_cli.models import AnalysisMetadata, AnalysisRecord
from verifai_cli.search import example_content
from verifai_cli.store import StoreError

log = logging.getLogger(__name__)

BUSY_MESSAGE = "Ya hay un análisis en proceso. Por favor, espera."
RETRY_MESSAGE = "Error interno. Por favor, intenta de nuevo."
NO_LLM_MESSAGE = "El análisis de {kind} requiere el backend generativo (configura ANTHROPIC_API_KEY)."


class AnalysisService:
    def __init__(self, settings: Settings, llm=None, sentiment=None, finder=None, store=None, executor=None):
        self.settings = settings
        self.llm = llm
        self.sentiment = sentiment
        self.finder = finder
        self.store = store
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="related")
        self._guard = threading.Lock()
        self._busy = False
        self._started = 0.0
        self._related = {}    # record id -> Future
        self._cancelled = {}  # record id -> Event

    # ─── Single-flight guard ─────────────────────────────────────────────

    def _acquire(self) -> bool:
        with self._guard:
            if self._busy:
                return False
            self._busy = True
            return True

    def _release(self):
        with self._guard:
            self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def _run(self, fn, *args):
        if not self._acquire():
            return None, BUSY_MESSAGE
        self._started = time.perf_counter()
        try:
            return fn(*args)
        except Exception:
            log.exception("Analysis failed")
            return None, RETRY_MESSAGE
        finally:
            self._release()

    # ─── Validation and scoring ──────────────────────────────────────────

    def validate_text(self, text: str):
        if not text or not text.strip():
            return "El texto no puede estar vacío."
        if len(text.strip()) < self.settings.min_text_length:
            return f"El texto es demasiado corto. Mínimo {self.settings.min_text_length} caracteres."
        if len(text) > self.settings.max_text_length:
            return f"El texto es demasiado largo. Máximo {self.settings.max_text_length:,} caracteres."
        return None

    def heuristic_verdict(self, text: str):
        features = extract_features(text)
        signal = self.sentiment.analyze(text) if self.sentiment is not None else None
        return heuristic.score(features, signal)

    def score_text(self, text: str, document: bool = False):
        local = self.heuristic_verdict(text)
        remote = None
        if self.llm is not None:
            remote = self.llm.analyze_document(text) if document else self.llm.analyze_text(text)
        return combine(remote, local, self.settings.llm_weight, self.settings.heuristic_weight)

    def _model_name(self, verdict) -> str:
        if verdict.backend == "heuristic":
            return "heuristic"
        return self.llm.model if self.llm is not None else ""

    # ─── Top-level analyses ──────────────────────────────────────────────

    def analyze_text(self, text: str, user_id: str = "anonymous"):
        return self._run(self._analyze_text, text, user_id)

    def analyze_file(self, path, user_id: str = "anonymous"):
        return self._run(self._analyze_file, path, user_id)

    def _analyze_text(self, text, user_id):
        err = self.validate_text(text)
        if err:
            return None, err
        verdict = self.score_text(text)
        return self._finish("text", text, text, verdict, user_id), None

    def _analyze_file(self, path, user_id):
        content_type = media.detect_content_type(path)
        err = media.check_size(path, content_type)
        if err:
            return None, err

        name = Path(path).name

        if content_type == "document":
            try:
                text = media.extract_document_text(path)
            except media.ExtractionError as e:
                return None, str(e)
            err = self.validate_text(text)
            if err:
                return None, err
            verdict = self.score_text(text, document=True)
            return self._finish("document", name, text, verdict, user_id), None

        if self.llm is None:
            kind = "imágenes" if content_type == "image" else "videos"
            return None, NO_LLM_MESSAGE.format(kind=kind)

        if content_type == "image":
            data, media_type = media.read_image(path)
            verdict = self.llm.analyze_image(data, media_type)
        else:
            frames = media.extract_keyframes(path)
            if not frames:
                return None, "No se pudieron extraer fotogramas del video."
            verdict = self.llm.analyze_video(frames)
        return self._finish(content_type, name, name, verdict, user_id), None

    def _finish(self, content_type, content, subject, verdict, user_id):
        record = AnalysisRecord(
            content_type=content_type,
            content=content,
            verdict=verdict,
            metadata=AnalysisMetadata(
                model=self._model_name(verdict),
                processing_time_ms=int((time.perf_counter() - self._started) * 1000),
            ),
            user_id=user_id,
        )
        self._persist(record)
        self.start_related(record, subject)
        return record

    def _persist(self, record):
        if self.store is None:
            return
        try:
            self.store.save(record, record.user_id)
        except StoreError as e:
            log.warning("Could not save analysis %s: %s", record.id, e)

    # ─── Related content background task ─────────────────────────────────

    def start_related(self, record, subject: str):
        if self.finder is None:
            return None
        cancelled = threading.Event()
        self._cancelled[record.id] = cancelled
        future = self._executor.submit(self._publish_related, record, subject, cancelled)
        self._related[record.id] = future
        return future

    def _publish_related(self, record, subject, cancelled):
        try:
            try:
                items = self.finder.find(record.content_type, subject)
            except Exception as e:
                log.warning("Related content search failed: %s", e)
                items = example_content(record.content_type, subject)

            if cancelled.is_set():
                return []
            record.related_content = items
            if self.store is not None:
                try:
                    self.store.update_related(record.id, items)
                except StoreError as e:
                    log.warning("Could not save related content for %s: %s", record.id, e)
            return items
        finally:
            self._cancelled.pop(record.id, None)

    def cancel_related(self, record_id: str) -> bool:
        """Stop a pending search, or discard the result of a running one."""
        event = self._cancelled.pop(record_id, None)
        future = self._related.get(record_id)
        if event is None or future is None or future.done():
            return False
        del self._related[record_id]
        event.set()
        future.cancel()
        return True

    def wait_related(self, record_id: str, timeout: float = None) -> list:
        """Results of a search; a finished search is forgotten once collected."""
        future = self._related.get(record_id)
        if future is None:
            return []
        done, _ = wait([future], timeout=timeout)
        if future not in done:
            return []
        self._related.pop(record_id, None)
        if future.cancelled():
            return []
        return future.result()

    def shutdown(self):
        for event in list(self._cancelled.values()):
            event.set()
        self._cancelled.clear()
        self._related.clear()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ─── Status ──────────────────────────────────────────────────────────

    def system_status(self) -> dict:
        configured = api_status(self.settings)

        def _state(client, ok_configured):
            if client is None or not ok_configured:
                return "offline"
            return "online" if client.is_available() else "offline"

        search_client = self.finder.client if self.finder is not None else None
        search = _state(search_client, configured["search"])
        if search == "offline" and configured["search"]:
            search = "limited"

        return {
            "llm": _state(self.llm, configured["llm"]),
            "sentiment": _state(self.sentiment, configured["sentiment"]),
            "search": search,
            "store": "online" if self.store is not None else "offline",
        }
