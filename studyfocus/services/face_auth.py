import logging
from typing import Callable, Optional, Sequence

from studyfocus.core.models import EnrolledDescriptor, MatchResult
from studyfocus.utils.face_recognition.similarity_matcher import DescriptorMatcher

log = logging.getLogger(__name__)


class FaceAuthenticator:
    """
    One-shot face login: capture a single descriptor and look it up in the
    enrolled set. A frame without a face is a plain no-match.
    """

    def __init__(
        self,
        extractor,
        matcher: Optional[DescriptorMatcher] = None,
        on_result: Optional[Callable[[MatchResult], None]] = None,
        config_path: Optional[str] = None
    ):
        self.extractor = extractor
        self.matcher = matcher or DescriptorMatcher(config_path=config_path)
        self.on_result = on_result
        self._in_flight = False

        self._match_stats = {
            'total_attempts': 0,
            'no_face': 0,
            'successful_matches': 0,
            'failed_matches': 0,
        }

    @property
    def threshold(self) -> float:
        return self.matcher.threshold

    def confidence(self, distance: float) -> float:
        """
        Linear confidence from the threshold: 1 at distance 0, 0 at or
        beyond the threshold.
        """
        if distance >= self.threshold:
            return 0.0
        return max(1.0 - (distance / self.threshold), 0.0)

    def verify(self, frame, enrolled: Sequence[EnrolledDescriptor]) -> MatchResult:
        if self._in_flight:
            raise RuntimeError("A verification capture is already in progress")

        self._in_flight = True
        try:
            self._match_stats['total_attempts'] += 1
            descriptor = self.extractor.extract(frame)
            if descriptor is None:
                self._match_stats['no_face'] += 1
                log.debug("No face detected for verification")
                result = MatchResult.no_match()
            else:
                result = self.matcher.nearest_match(descriptor, enrolled)
        finally:
            self._in_flight = False

        if result.matched:
            self._match_stats['successful_matches'] += 1
            log.info(
                f"✓ MATCH FOUND: {result.label} "
                f"(Distance: {result.distance:.4f}, Confidence: {self.confidence(result.distance):.2%}, "
                f"Threshold: {self.threshold})"
            )
        else:
            self._match_stats['failed_matches'] += 1
            log.info(f"✗ NO MATCH (enrolled={len(enrolled)}, Threshold: {self.threshold})")

        if self.on_result is not None:
            self.on_result(result)
        return result

    def get_statistics(self) -> dict:
        return dict(self._match_stats)
