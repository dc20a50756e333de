import logging
import numpy as np
from typing import List, Optional, Sequence, Tuple

from studyfocus.core.models import EnrolledDescriptor, MatchResult
from studyfocus.utils.config import load_section
from studyfocus.utils.constants import MATCH

log = logging.getLogger(__name__)


class DescriptorMatcher:
    """
    Matches face descriptors using Euclidean distance (L2 norm).

    How it works:
    1. Stacks the enrolled descriptors into a matrix
    2. Calculates distance between query and every enrolled descriptor
    3. Returns the closest one if it is strictly below the threshold

    Distance interpretation (face-api style 128-dim descriptors):
    - 0.0-0.4: Very likely same person
    - 0.4-0.6: Likely same person (0.5 is the default cut-off)
    - 0.6+: Different person
    """

    def __init__(self, threshold: Optional[float] = None, config_path: Optional[str] = None):
        """
        Args:
            threshold: Default match threshold (must be > 0). Read from the
                'matching' config section when not given.
        """
        if threshold is None:
            threshold = float(load_section(config_path, 'matching', {'threshold': MATCH.threshold})['threshold'])
        self.threshold = self._check_threshold(threshold)

        # Statistics
        self._stats = self._empty_stats()

        log.info(f"DescriptorMatcher initialized with threshold={self.threshold}")

    @staticmethod
    def _empty_stats() -> dict:
        return {
            'total_comparisons': 0,
            'successful_matches': 0,
            'failed_matches': 0,
            'avg_match_distance': [],
            'avg_reject_distance': []
        }

    @staticmethod
    def _check_threshold(threshold: float) -> float:
        threshold = float(threshold)
        if not threshold > 0:
            raise ValueError(f"Match threshold must be positive, got {threshold}")
        return threshold

    def distance(self, a, b) -> float:
        a = _as_vector(a)
        b = _as_vector(b)
        if a.shape != b.shape:
            raise ValueError(f"Descriptor length mismatch: {a.shape[0]} vs {b.shape[0]}")
        return float(np.linalg.norm(a - b))

    def compare(self, a, b, threshold: Optional[float] = None) -> bool:
        """True when both descriptors belong to the same face."""
        threshold = self.threshold if threshold is None else self._check_threshold(threshold)
        return self.distance(a, b) < threshold

    def nearest_match(
        self,
        query,
        enrolled: Sequence[EnrolledDescriptor],
        threshold: Optional[float] = None
    ) -> MatchResult:
        """
        Find the closest enrolled descriptor strictly below the threshold.

        Candidates at exactly the same distance keep the first one in scan
        order. An empty enrolled set is a conclusive no-match.

        Note: LOWER distance = BETTER match
        """
        threshold = self.threshold if threshold is None else self._check_threshold(threshold)
        self._stats['total_comparisons'] += 1

        if not enrolled:
            log.debug("No enrolled descriptors to match against")
            self._stats['failed_matches'] += 1
            return MatchResult.no_match()

        query = _as_vector(query)
        distances = self._euclidean_distance(query, self._build_matrix(enrolled, query.shape[0]))

        # argmin returns the first index on ties
        best_idx = int(np.argmin(distances))
        best_distance = float(distances[best_idx])

        if len(distances) > 1:
            log.debug(
                f"Distance stats - Best: {best_distance:.4f}, "
                f"Mean: {np.mean(distances):.4f}, "
                f"Std: {np.std(distances):.4f}"
            )

        if best_distance < threshold:
            self._stats['successful_matches'] += 1
            self._stats['avg_match_distance'].append(best_distance)
            label = enrolled[best_idx].label
            log.debug(f"✓ Match found: {label} (distance={best_distance:.4f}, threshold={threshold:.4f})")
            return MatchResult(True, label, best_distance)

        self._stats['failed_matches'] += 1
        self._stats['avg_reject_distance'].append(best_distance)
        log.debug(f"✗ No match: Closest distance {best_distance:.4f} >= threshold {threshold:.4f}")
        return MatchResult.no_match()

    def top_k(
        self,
        query,
        enrolled: Sequence[EnrolledDescriptor],
        k: int = 5,
        threshold: Optional[float] = None
    ) -> List[Tuple[str, float]]:
        """
        Closest k enrolled descriptors as (label, distance), ascending.
        Useful for debugging and seeing similar identities.
        """
        if not enrolled or k <= 0:
            return []

        query = _as_vector(query)
        distances = self._euclidean_distance(query, self._build_matrix(enrolled, query.shape[0]))

        # stable sort keeps scan order among equal distances
        order = np.argsort(distances, kind='stable')[:min(k, len(enrolled))]

        results = []
        for idx in order:
            distance = float(distances[idx])
            if threshold is None or distance < threshold:
                results.append((enrolled[idx].label, distance))
        return results

    def _build_matrix(self, enrolled: Sequence[EnrolledDescriptor], dim: int) -> np.ndarray:
        mat = np.stack([e.descriptor for e in enrolled], axis=0)
        if mat.shape[1] != dim:
            raise ValueError(f"Descriptor length mismatch: query {dim} vs enrolled {mat.shape[1]}")
        return mat

    def _euclidean_distance(self, query: np.ndarray, mat: np.ndarray) -> np.ndarray:
        """
        Formula: distance = ||query - stored_descriptor||

        Broadcasting: (1, D) - (N, D) = (N, D), then norm across axis=1
        """
        return np.linalg.norm(mat - query, axis=1)

    def get_statistics(self) -> dict:
        """Get matching statistics for monitoring."""
        stats = self._stats.copy()

        stats['avg_match_distance'] = float(np.mean(stats['avg_match_distance'])) if stats['avg_match_distance'] else 0.0
        stats['avg_reject_distance'] = float(np.mean(stats['avg_reject_distance'])) if stats['avg_reject_distance'] else 0.0

        if stats['total_comparisons'] > 0:
            stats['match_rate'] = stats['successful_matches'] / stats['total_comparisons']
        else:
            stats['match_rate'] = 0.0

        return stats

    def reset_statistics(self):
        """Reset statistics counters."""
        self._stats = self._empty_stats()
        log.info("Matcher statistics reset")


def _as_vector(descriptor) -> np.ndarray:
    arr = np.asarray(descriptor, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise ValueError("Descriptor is empty")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Descriptor contains NaN or Inf values")
    return arr
