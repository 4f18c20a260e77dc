"""Similarity-searchable store of previously answered questions."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from praxis_engine.core.types import utc_now
from praxis_engine.utils.file_ops import read_json_document, write_json_document

logger = logging.getLogger(__name__)

Embedder = Callable[[str], np.ndarray]

KEYWORD_TAG_LENGTH = 50

_WORD_RE = re.compile(r"\w+")


@dataclass
class QARecord:
    id: str
    question: str
    answer: str
    category: str = "application_form"
    keywords: List[str] = field(default_factory=list)
    usage_count: int = 1
    last_used: str = field(default_factory=lambda: utc_now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "QARecord":
        return cls(
            id=str(payload["id"]),
            question=str(payload.get("question") or ""),
            answer=str(payload.get("answer") or ""),
            category=str(payload.get("category") or "application_form"),
            keywords=[str(item) for item in payload.get("keywords") or []],
            usage_count=int(payload.get("usage_count") or 1),
            last_used=str(payload.get("last_used") or utc_now().isoformat()),
        )


def words(text: str) -> List[str]:
    return _WORD_RE.findall((text or "").casefold())


def question_key(question: str) -> str:
    """Primary key for a question: stable across whitespace, punctuation and case.

    Text with no word characters at all is keyed on its stripped raw form.
    """

    normalized = " ".join(words(question)) or question.strip()
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]
    return f"qa-{digest}"


def hashed_bag_of_words(text: str, dim: int = 512) -> np.ndarray:
    """Deterministic token-hashing embedding; shared vocabulary yields high cosine."""

    vector = np.zeros(dim, dtype="float32")
    for token in words(text):
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        index = int.from_bytes(digest[:4], "big") % dim
        sign = 1.0 if digest[4] % 2 == 0 else -1.0
        vector[index] += sign
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


class ReuseStore:
    """Cosine-similarity store keyed by question text, persisted as JSON plus a matrix."""

    def __init__(
        self,
        storage_dir: Path | str = "data/reuse",
        *,
        embedder: Embedder | None = None,
        similarity_threshold: float = 0.85,
        autoload: bool = True,
    ) -> None:
        self.storage_dir = Path(storage_dir)
        self.meta_path = self.storage_dir / "qa_pairs.json"
        self.index_path = self.storage_dir / "qa_index.npy"
        self.similarity_threshold = similarity_threshold
        self._embedder: Embedder = embedder or hashed_bag_of_words
        self._records: Dict[str, QARecord] = {}
        self._vectors: Dict[str, np.ndarray] = {}
        if autoload:
            self.load()

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> Optional[QARecord]:
        return self._records.get(record_id)

    def add_qa_pair(self, question: str, answer: str, *, category: str = "application_form") -> QARecord:
        """Insert or update the answer for ``question``.

        Re-saving a question already present keeps its key, replaces the
        answer and bumps the usage counter.
        """

        record_id = question_key(question)
        now = utc_now().isoformat()
        existing = self._records.get(record_id)
        if existing is not None:
            existing.answer = answer
            existing.category = category
            existing.usage_count += 1
            existing.last_used = now
            record = existing
        else:
            record = QARecord(
                id=record_id,
                question=question,
                answer=answer,
                category=category,
                keywords=[question[:KEYWORD_TAG_LENGTH]],
                usage_count=1,
                last_used=now,
            )
            self._records[record_id] = record
            self._vectors[record_id] = self._embed(question)
        self.save()
        logger.info("Saved Q&A pair", extra={"qa_id": record_id, "usage_count": record.usage_count})
        return record

    def increment_usage(self, record_id: str) -> Optional[QARecord]:
        record = self._records.get(record_id)
        if record is None:
            return None
        record.usage_count += 1
        record.last_used = utc_now().isoformat()
        self.save()
        return record

    def search_similar(
        self,
        question: str,
        limit: int = 3,
        *,
        min_score: float | None = None,
    ) -> List[Tuple[QARecord, float]]:
        """Return up to ``limit`` records scoring at least ``min_score``, best first."""

        if not self._records:
            return []
        threshold = self.similarity_threshold if min_score is None else min_score
        ids = list(self._vectors)
        matrix = np.vstack([self._vectors[item_id] for item_id in ids])
        query = self._embed(question)
        query_norm = float(np.linalg.norm(query)) or 1.0
        sims = matrix @ query / (np.linalg.norm(matrix, axis=1) * query_norm + 1e-10)
        order = np.argsort(-sims, kind="stable")[:limit]
        results: List[Tuple[QARecord, float]] = []
        for idx in order:
            score = float(sims[idx])
            if score < threshold:
                continue
            results.append((self._records[ids[idx]], score))
        return results

    def find_match(self, question: str) -> Optional[Tuple[QARecord, float]]:
        matches = self.search_similar(question, limit=1)
        return matches[0] if matches else None

    def stats(self) -> Dict[str, Any]:
        return {
            "qa_pairs": len(self._records),
            "total_usage": sum(record.usage_count for record in self._records.values()),
        }

    def save(self) -> None:
        ids = list(self._records)
        write_json_document(self.meta_path, {"ids": ids, "records": [self._records[i].to_dict() for i in ids]})
        if ids:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            np.save(self.index_path, np.vstack([self._vectors[i] for i in ids]))
        elif self.index_path.exists():
            self.index_path.unlink()

    def load(self) -> None:
        try:
            payload = read_json_document(self.meta_path)
        except (OSError, ValueError):
            logger.warning("Failed to load reuse store metadata", exc_info=True)
            return
        if not isinstance(payload, dict):
            return
        records = [QARecord.from_dict(item) for item in payload.get("records") or []]
        self._records = {record.id: record for record in records}
        matrix = None
        if self.index_path.exists():
            matrix = np.load(self.index_path)
        if matrix is not None and len(matrix) == len(records):
            self._vectors = {record.id: row.astype("float32") for record, row in zip(records, matrix)}
        else:
            self._vectors = {record.id: self._embed(record.question) for record in records}

    def _embed(self, text: str) -> np.ndarray:
        vector = self._embedder(text)
        if vector is None:
            raise RuntimeError("Embedding function returned None.")
        return np.asarray(vector, dtype="float32").reshape(-1)


__all__ = ["ReuseStore", "QARecord", "question_key", "hashed_bag_of_words", "KEYWORD_TAG_LENGTH"]
