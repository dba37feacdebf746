"""
FAISS Vector Store

In-process vector store backed by a FAISS inner-product index over
L2-normalized vectors (i.e. cosine similarity). Used for local development
and single-process deployments in place of pgvector.

Key Properties
--------------
- Explicit ID management via IndexIDMap2
- Fixed dimension validated on every write
- Optional persistence (index + segment metadata) after every mutation
- Thread-safe via an internal lock
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Sequence

import faiss
import numpy as np

from ..core.errors import DatabaseServiceError, ServiceDegradedError
from ..core.models import Match, Segment


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class FaissIndexError(DatabaseServiceError):
    """Base error for FAISS index failures."""


class FaissPersistenceError(FaissIndexError):
    """Raised when index persistence fails."""


# ---------------------------------------------------------------------
# FAISS Store
# ---------------------------------------------------------------------

class FaissVectorStore:
    """
    FAISS implementation of the VectorStore capability.
    """

    def __init__(self, dimension: int, index_path: Optional[str] = None) -> None:
        """
        Parameters
        ----------
        dimension : int
            Vector dimensionality; writes with any other size are rejected.

        index_path : Optional[str]
            If set, the index is written here (metadata alongside as
            ``<index_path>.meta.json``) after every mutation and read back by
            ``verify()``.
        """
        self.dimension = dimension
        self._index_path = Path(index_path) if index_path else None
        self._meta_path = (
            self._index_path.with_name(self._index_path.name + ".meta.json")
            if self._index_path
            else None
        )

        self._index = self._new_index()
        self._segments: Dict[int, Segment] = {}
        self._next_id: int = 0

        self._lock = RLock()

    def _new_index(self) -> faiss.IndexIDMap2:
        return faiss.IndexIDMap2(faiss.IndexFlatIP(self.dimension))

    def _as_matrix(self, vectors: Sequence[Sequence[float]]) -> np.ndarray:
        matrix = np.asarray(vectors, dtype="float32")
        if matrix.ndim != 2 or matrix.shape[1] != self.dimension:
            raise FaissIndexError(
                f"Embedding dimension mismatch: expected {self.dimension}, "
                f"got shape {matrix.shape}."
            )
        faiss.normalize_L2(matrix)
        return matrix

    def __len__(self) -> int:
        with self._lock:
            return int(self._index.ntotal)

    # ------------------------------------------------------------------
    # VectorStore API
    # ------------------------------------------------------------------

    async def verify(self) -> None:
        try:
            self.load()
        except FaissPersistenceError as exc:
            raise ServiceDegradedError(str(exc)) from exc

    async def add_all(
        self,
        embeddings: Sequence[Sequence[float]],
        segments: Sequence[Segment],
    ) -> None:
        if len(embeddings) != len(segments):
            raise FaissIndexError("Embedding count does not match segment count.")
        if not segments:
            return

        vectors = self._as_matrix(embeddings)

        with self._lock:
            ids = np.arange(self._next_id, self._next_id + len(segments), dtype="int64")
            try:
                self._index.add_with_ids(vectors, ids)
            except Exception as exc:
                raise FaissIndexError(
                    f"Failed to add vectors to FAISS: {type(exc).__name__}"
                ) from exc

            self._next_id += len(segments)
            for i, segment in zip(ids, segments):
                self._segments[int(i)] = segment

            self.save()

    async def find_relevant(
        self,
        embedding: Sequence[float],
        k: int,
        min_score: Optional[float] = None,
    ) -> List[Match]:
        query = self._as_matrix([embedding])

        with self._lock:
            if self._index.ntotal == 0:
                return []

            scores, idxs = self._index.search(query, min(k, int(self._index.ntotal)))

            matches: List[Match] = []
            for score, idx in zip(scores[0], idxs[0]):
                idx = int(idx)
                if idx == -1:
                    continue
                if min_score is not None and float(score) < min_score:
                    continue
                segment = self._segments.get(idx)
                if segment is None:
                    continue
                matches.append(Match(score=float(score), segment=segment))
            return matches

    async def clear(self) -> None:
        with self._lock:
            self._index = self._new_index()
            self._segments.clear()
            self._next_id = 0
            self.save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """
        Persist index and segment map. No-op without an index path.
        """
        if self._index_path is None:
            return

        with self._lock:
            try:
                self._index_path.parent.mkdir(parents=True, exist_ok=True)
                faiss.write_index(self._index, str(self._index_path))
            except Exception as exc:
                raise FaissPersistenceError(
                    f"Failed to write FAISS index: {type(exc).__name__}"
                ) from exc

            meta = {
                "dimension": self.dimension,
                "next_id": self._next_id,
                "segments": {str(k): v.model_dump() for k, v in self._segments.items()},
            }
            try:
                with self._meta_path.open("w", encoding="utf-8") as f:
                    json.dump(meta, f)
            except Exception as exc:
                raise FaissPersistenceError(
                    f"Failed to write FAISS metadata: {type(exc).__name__}"
                ) from exc

    def load(self) -> None:
        """
        Load index and segment map from disk if a saved index exists.
        """
        if self._index_path is None or not self._index_path.exists():
            return

        with self._lock:
            try:
                index = faiss.read_index(str(self._index_path))
            except Exception as exc:
                raise FaissPersistenceError(
                    f"Failed to read FAISS index: {type(exc).__name__}"
                ) from exc

            if index.d != self.dimension:
                raise FaissPersistenceError(
                    f"Stored index dimension {index.d} does not match {self.dimension}."
                )

            segments: Dict[int, Segment] = {}
            next_id = 0
            if self._meta_path.exists():
                try:
                    with self._meta_path.open("r", encoding="utf-8") as f:
                        data = json.load(f)
                    next_id = int(data.get("next_id", 0))
                    segments = {
                        int(k): Segment.model_validate(v)
                        for k, v in data.get("segments", {}).items()
                    }
                except Exception as exc:
                    raise FaissPersistenceError(
                        f"Failed to load FAISS metadata: {type(exc).__name__}"
                    ) from exc

            self._index = index
            self._segments = segments
            self._next_id = next_id
