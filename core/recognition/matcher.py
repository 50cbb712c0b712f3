"""Nearest-neighbour face matching with a rejection threshold."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .backend import LabeledEmbedding

UNKNOWN_LABEL = "unknown"
DEFAULT_DISTANCE_THRESHOLD = 0.6


@dataclass(frozen=True)
class MatchResult:
    label: str
    distance: float

    @property
    def is_unknown(self) -> bool:
        return self.label == UNKNOWN_LABEL

    def __str__(self) -> str:
        return f"{self.label} ({self.distance:.2f})"


class FaceMatcher:
    """Matches query embeddings against enrolled identities by Euclidean distance."""

    def __init__(
        self,
        labeled_embeddings: Sequence[LabeledEmbedding],
        distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
    ):
        self.labeled_embeddings: List[LabeledEmbedding] = list(labeled_embeddings)
        self.distance_threshold = float(distance_threshold)
        if self.labeled_embeddings:
            self._matrix = np.vstack([item.embedding for item in self.labeled_embeddings])
        else:
            self._matrix = None

    @property
    def labels(self) -> List[str]:
        return [item.label for item in self.labeled_embeddings]

    def distances(self, embedding) -> np.ndarray:
        if self._matrix is None:
            return np.empty(0, dtype=np.float64)
        query = np.asarray(embedding, dtype=np.float64).ravel()
        if query.shape[0] != self._matrix.shape[1]:
            raise ValueError(
                f"Embedding size {query.shape[0]} does not match enrolled size {self._matrix.shape[1]}"
            )
        return np.linalg.norm(self._matrix - query, axis=1)

    def find_best_match(self, embedding) -> MatchResult:
        distances = self.distances(embedding)
        if distances.size == 0:
            return MatchResult(UNKNOWN_LABEL, math.inf)

        # argmin trả về vị trí đầu tiên khi bằng nhau
        best_idx = int(np.argmin(distances))
        best_distance = float(distances[best_idx])
        if best_distance > self.distance_threshold:
            return MatchResult(UNKNOWN_LABEL, best_distance)
        return MatchResult(self.labeled_embeddings[best_idx].label, best_distance)
