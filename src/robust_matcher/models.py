"""
Domain types shared by the matching pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import cv2
import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

# Fewest correspondences that determine a fundamental matrix.
MIN_CORRESPONDENCES = 8


@dataclass(frozen=True)
class Keypoint:
    """Detected interest point. Only (x, y) is used by the pipeline."""

    x: float
    y: float
    size: float = 1.0
    angle: float = -1.0
    response: float = 0.0
    octave: int = 0

    @property
    def pt(self) -> tuple[float, float]:
        """Location in image coordinates."""
        return (self.x, self.y)

    @classmethod
    def from_cv(cls, kp: cv2.KeyPoint) -> Keypoint:
        """Convert an OpenCV keypoint."""
        return cls(
            x=float(kp.pt[0]),
            y=float(kp.pt[1]),
            size=float(kp.size),
            angle=float(kp.angle),
            response=float(kp.response),
            octave=int(kp.octave),
        )

    def to_cv(self) -> cv2.KeyPoint:
        """Convert back to an OpenCV keypoint."""
        return cv2.KeyPoint(
            self.x,
            self.y,
            self.size,
            self.angle,
            self.response,
            self.octave,
        )


@dataclass(frozen=True)
class Candidate:
    """One neighbour returned by a kNN search."""

    train_idx: int
    distance: float


@dataclass
class DirectedMatch:
    """
    Candidate correspondence from one query descriptor to its nearest neighbours.

    Candidates are sorted by ascending distance. An entry rejected by a filter
    stays in its sequence with ``valid`` set to False, so list position keeps
    mapping to the query index.
    """

    query_idx: int
    candidates: list[Candidate] = field(default_factory=list)
    valid: bool = True

    @property
    def best(self) -> Candidate:
        """Nearest candidate."""
        return self.candidates[0]

    def invalidate(self) -> None:
        """Reject this entry in place."""
        self.valid = False
        self.candidates = []

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass(frozen=True)
class Match:
    """Validated, undirected correspondence between image 1 and image 2."""

    query_idx: int
    train_idx: int
    distance: float

    def to_cv(self) -> cv2.DMatch:
        """Convert to an OpenCV DMatch."""
        return cv2.DMatch(self.query_idx, self.train_idx, self.distance)


def correspondences(
    matches: Sequence[Match],
    keypoints1: Sequence[Keypoint],
    keypoints2: Sequence[Keypoint],
) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
    """
    Look up the point coordinates of each match.

    Args:
        matches: Matches indexing into both keypoint sets
        keypoints1: Keypoints of image 1 (indexed by query_idx)
        keypoints2: Keypoints of image 2 (indexed by train_idx)

    Returns:
        Tuple of (points1, points2), each float32 of shape (N, 2), in match order
    """
    points1 = np.array([keypoints1[m.query_idx].pt for m in matches], dtype=np.float32)
    points2 = np.array([keypoints2[m.train_idx].pt for m in matches], dtype=np.float32)
    return points1.reshape(-1, 2), points2.reshape(-1, 2)


@dataclass
class VerificationResult:
    """Outcome of geometric verification."""

    fundamental: NDArray[np.float64]
    inliers: list[Match]
    total_matches: int
    refined: bool

    @property
    def inlier_count(self) -> int:
        """Number of surviving matches."""
        return len(self.inliers)

    @property
    def inlier_ratio(self) -> float:
        """Fraction of input matches kept."""
        if self.total_matches == 0:
            return 0.0
        return self.inlier_count / self.total_matches


@dataclass
class PipelineStats:
    """Per-stage yield counters for one run."""

    keypoints1: int = 0
    keypoints2: int = 0
    raw_matches12: int = 0
    raw_matches21: int = 0
    ratio_removed12: int = 0
    ratio_removed21: int = 0
    symmetric_matches: int = 0
    inliers: int = 0


@dataclass
class MatchResult:
    """Final output of one pipeline run."""

    matches: list[Match]
    fundamental: NDArray[np.float64]
    keypoints1: list[Keypoint]
    keypoints2: list[Keypoint]
    stats: PipelineStats
    timings_ms: dict[str, float] = field(default_factory=dict)

    def to_cv_matches(self) -> list[cv2.DMatch]:
        """Matches as OpenCV DMatch objects."""
        return [m.to_cv() for m in self.matches]
