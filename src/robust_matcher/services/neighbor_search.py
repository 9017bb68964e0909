"""
Brute-force k-nearest-neighbour descriptor search.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from robust_matcher.models import Candidate, DirectedMatch

if TYPE_CHECKING:
    from numpy.typing import NDArray

_NORMS = {
    "HAMMING": cv2.NORM_HAMMING,
    "L2": cv2.NORM_L2,
}


class BFNeighborSearch:
    """kNN search with cv2.BFMatcher; no filtering is applied here."""

    def __init__(self, norm: str | None = None) -> None:
        """
        Initialize neighbour search.

        Args:
            norm: "HAMMING" or "L2". When None the norm follows the descriptor
                dtype: HAMMING for uint8 (binary), L2 otherwise.
        """
        if norm is not None and norm not in _NORMS:
            raise ValueError(f"Unknown norm type: {norm}")
        self.norm = norm

    @property
    def norm_name(self) -> str:
        return self.norm or "AUTO"

    def _resolve_norm(self, descriptors: NDArray) -> str:
        if self.norm is not None:
            return self.norm
        return "HAMMING" if descriptors.dtype == np.uint8 else "L2"

    def knn(
        self,
        desc_a: NDArray | None,
        desc_b: NDArray | None,
        k: int = 2,
    ) -> list[DirectedMatch]:
        """
        Find the k nearest descriptors of B for every descriptor of A.

        Args:
            desc_a: Query descriptors (N_a, D)
            desc_b: Train descriptors (N_b, D)
            k: Number of neighbours per query

        Returns:
            One DirectedMatch per row of desc_a, in row order. Entries hold
            fewer than k candidates when B has fewer than k rows.
        """
        if desc_a is None or len(desc_a) == 0:
            return []

        if desc_b is None or len(desc_b) == 0:
            return [DirectedMatch(query_idx=i) for i in range(len(desc_a))]

        norm = self._resolve_norm(desc_a)
        if norm == "L2":
            desc_a = np.asarray(desc_a, dtype=np.float32)
            desc_b = np.asarray(desc_b, dtype=np.float32)

        matcher = cv2.BFMatcher(_NORMS[norm], crossCheck=False)
        raw = matcher.knnMatch(desc_a, desc_b, k=k)

        return [
            DirectedMatch(
                query_idx=i,
                candidates=[Candidate(train_idx=m.trainIdx, distance=float(m.distance)) for m in neighbours],
            )
            for i, neighbours in enumerate(raw)
        ]
