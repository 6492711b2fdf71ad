import fcntl
import json
import logging
from pathlib import Path
from typing import Any, Optional

import faiss
import numpy as np

from models.chunk import IndexMatch
from .base import BaseVectorStore

logger = logging.getLogger(__name__)


class FAISSVectorStore(BaseVectorStore):
    """FAISS-based keyed vector store with persistence.

    Vectors live in an IndexIDMap2 over an inner-product index; they are
    L2-normalised on the way in so scores are cosine similarities. The JSON
    sidecar maps each string id to its int64 FAISS id and metadata.

    Nothing is read from disk until the store is first used. Every upsert
    re-reads the files under the lock, so several processes can share one
    index without dropping each other's entries.
    """

    def __init__(
        self,
        dimension: int,
        index_path: Optional[Path] = None,
        metadata_path: Optional[Path] = None,
    ):
        super().__init__(dimension)
        self._index_path = index_path
        self._metadata_path = metadata_path

        self._index: Optional[faiss.Index] = None
        self._entries: dict[str, dict[str, Any]] = {}
        self._next_id = 0

    @property
    def persistent(self) -> bool:
        return self._index_path is not None or self._metadata_path is not None

    def _new_index(self) -> faiss.Index:
        return faiss.IndexIDMap2(faiss.IndexFlatIP(self.dimension))

    def _load_index(self) -> faiss.Index:
        if self._index_path and self._index_path.exists():
            index = faiss.read_index(str(self._index_path))
            if index.d != self.dimension:
                raise ValueError(
                    f"Index at {self._index_path} has dimension {index.d}, "
                    f"expected {self.dimension}"
                )
            return index
        return self._new_index()

    def _load_metadata(self) -> tuple[dict[str, dict[str, Any]], int]:
        if self._metadata_path and self._metadata_path.exists():
            try:
                with open(self._metadata_path, "r") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(
                    f"Index metadata at {self._metadata_path} is not valid JSON: {e}"
                ) from e
            return data.get("entries", {}), data.get("next_id", 0)
        return {}, 0

    def open(self) -> None:
        """Load the index and sidecar from disk, replacing in-memory state.

        An in-memory store keeps whatever it already holds.

        Raises:
            ValueError: If the stored index has another dimension or the
                sidecar cannot be parsed.
        """
        if self._index is not None and not self.persistent:
            return
        index = self._load_index()
        self._entries, self._next_id = self._load_metadata()
        self._index = index

    def _ensure_open(self) -> faiss.Index:
        if self._index is None:
            self.open()
        return self._index

    def _acquire_lock(self) -> None:
        if self._metadata_path:
            self._metadata_path.parent.mkdir(parents=True, exist_ok=True)
            self._lock_file = open(self._metadata_path.with_suffix(".lock"), "w")
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX)

    def _release_lock(self) -> None:
        if hasattr(self, "_lock_file"):
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            self._lock_file.close()
            del self._lock_file

    def save(self) -> None:
        index = self._ensure_open()
        if self._index_path:
            self._index_path.parent.mkdir(parents=True, exist_ok=True)
            faiss.write_index(index, str(self._index_path))

        if self._metadata_path:
            self._metadata_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._metadata_path, "w") as f:
                json.dump(
                    {"next_id": self._next_id, "entries": self._entries}, f, indent=2
                )

    def upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        metadata_list: list[dict[str, Any]],
    ) -> None:
        if not (len(ids) == len(embeddings) == len(metadata_list)):
            raise ValueError("ids, embeddings and metadata_list must have equal length")
        if not ids:
            return

        vectors = np.array(embeddings, dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[1] != self.dimension:
            raise ValueError(
                f"Expected vectors of dimension {self.dimension}, got shape {vectors.shape}"
            )
        faiss.normalize_L2(vectors)

        self._acquire_lock()
        try:
            # Another writer may have saved since this store last read the files.
            self.open()

            # Last write wins for ids repeated within the same call.
            latest = {entry_id: i for i, entry_id in enumerate(ids)}
            stale = [
                self._entries[entry_id]["faiss_id"]
                for entry_id in latest
                if entry_id in self._entries
            ]
            if stale:
                self._index.remove_ids(np.array(stale, dtype=np.int64))

            rows = list(latest.values())
            faiss_ids = []
            for entry_id, row in latest.items():
                faiss_id = self._next_id
                self._next_id += 1
                faiss_ids.append(faiss_id)
                self._entries[entry_id] = {
                    "faiss_id": faiss_id,
                    "metadata": metadata_list[row],
                }

            self._index.add_with_ids(
                vectors[rows], np.array(faiss_ids, dtype=np.int64)
            )
            self.save()
        finally:
            self._release_lock()

        logger.debug(f"Upserted {len(rows)} vectors ({len(stale)} replaced)")

    def query(self, vector: list[float], top_k: int = 4) -> list[IndexMatch]:
        if top_k <= 0 or self.count == 0:
            return []

        query = np.array([vector], dtype=np.float32)
        faiss.normalize_L2(query)
        scores, faiss_ids = self._index.search(query, min(top_k, self.count))

        by_faiss_id = {entry["faiss_id"]: (key, entry) for key, entry in self._entries.items()}
        matches = []
        for score, faiss_id in zip(scores[0], faiss_ids[0]):
            if faiss_id < 0 or int(faiss_id) not in by_faiss_id:
                continue
            key, entry = by_faiss_id[int(faiss_id)]
            matches.append(
                IndexMatch(id=key, score=float(score), metadata=dict(entry["metadata"]))
            )
        return matches

    def delete_all(self) -> None:
        self._acquire_lock()
        try:
            self._index = self._new_index()
            self._entries = {}
            self._next_id = 0
            self.save()
        finally:
            self._release_lock()

    @property
    def count(self) -> int:
        return self._ensure_open().ntotal
