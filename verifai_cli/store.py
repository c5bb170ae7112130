"""
Analysis Store
──────────────
A small document store keyed by analysis id, one JSON file per collection
under the configured store directory. Callers treat it as best-effort: the
verdict never depends on a save succeeding.
"""

import json
import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from verifai_cli.models import AnalysisRecord

log = logging.getLogger(__name__)

ANALYSES = "analyses"
ACCURATE_CONFIDENCE = 70


class StoreError(Exception):
    pass


class AnalysisStore:
    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _file(self, collection: str) -> Path:
        return self.path / f"{collection}.json"

    def _load(self, collection: str) -> dict:
        f = self._file(collection)
        if not f.exists():
            return {}
        try:
            return json.loads(f.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read {f}: {e}") from e

    def _dump(self, collection: str, docs: dict):
        f = self._file(collection)
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            tmp = f.with_suffix(".tmp")
            tmp.write_text(json.dumps(docs, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(f)
        except OSError as e:
            raise StoreError(f"Could not write {f}: {e}") from e

    def save(self, record: AnalysisRecord, user_id: str = None) -> str:
        doc = record.model_dump(mode="json")
        doc["user_id"] = user_id or record.user_id
        doc["created_at"] = datetime.now(timezone.utc).isoformat()
        with self._lock:
            docs = self._load(ANALYSES)
            # insertion order breaks created_at ties
            doc["seq"] = max((d.get("seq", 0) for d in docs.values()), default=0) + 1
            docs[record.id] = doc
            self._dump(ANALYSES, docs)
        return record.id

    def update_related(self, analysis_id: str, related: list) -> bool:
        with self._lock:
            docs = self._load(ANALYSES)
            if analysis_id not in docs:
                return False
            docs[analysis_id]["related_content"] = [r.model_dump(mode="json") for r in related]
            self._dump(ANALYSES, docs)
        return True

    def _record(self, doc: dict):
        try:
            return AnalysisRecord.model_validate(doc)
        except ValidationError as e:
            log.warning("Skipping unreadable analysis %s: %s", doc.get("id"), str(e)[:200])
            return None

    def get(self, analysis_id: str):
        with self._lock:
            doc = self._load(ANALYSES).get(analysis_id)
        return self._record(doc) if doc else None

    def query(self, user_id: str = None, limit: int = 10) -> list:
        """Newest first. user_id=None returns every user's analyses."""
        with self._lock:
            docs = list(self._load(ANALYSES).values())
        if user_id is not None:
            docs = [d for d in docs if d.get("user_id") == user_id]
        docs.sort(key=lambda d: (d.get("created_at") or "", d.get("seq", 0)), reverse=True)
        records = (self._record(d) for d in docs)
        return [r for r in records if r is not None][:limit]

    def dashboard_stats(self, recent: int = 5) -> dict:
        records = self.query(limit=10 ** 9)
        total = len(records)
        if not total:
            return {
                "total_analyses": 0,
                "accuracy_rate": 0.0,
                "average_confidence": 0.0,
                "popular_types": [],
                "recent_analyses": [],
            }

        confidences = [r.verdict.confidence for r in records]
        accurate = sum(1 for c in confidences if c > ACCURATE_CONFIDENCE)
        type_counts = Counter(r.content_type for r in records)

        return {
            "total_analyses": total,
            "accuracy_rate": round(accurate / total * 100, 1),
            "average_confidence": round(sum(confidences) / total, 1),
            "popular_types": [
                {"type": t, "count": c, "percentage": round(c / total * 100, 1)}
                for t, c in type_counts.most_common()
            ],
            "recent_analyses": records[:recent],
        }
