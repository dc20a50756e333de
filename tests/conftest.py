import pytest

from studyfocus.core.models import LandmarkSet


def make_landmarks(nose=(0.5, 0.4), left_iris=(0.40, 0.4), right_iris=(0.60, 0.4),
                   chin=(0.5, 0.75), forehead=(0.5, 0.2),
                   left_eye=((0.45, 0.4), (0.35, 0.4)), right_eye=((0.55, 0.4), (0.65, 0.4))):
    """
    Frontal face with eye centres at x=0.40 / 0.60 (width 0.1), irises
    centred and the nose tip level with the eyes, so every offset is 0.
    """
    return LandmarkSet.from_points([
        left_eye[0], left_eye[1],
        right_eye[0], right_eye[1],
        left_iris, right_iris,
        nose, chin, forehead,
    ])


class FakeClock:
    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, dt):
        self.t += dt


class MockExtractor:
    """Returns queued descriptors (None = no face found)."""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.calls = 0

    def extract(self, frame):
        self.calls += 1
        if not self.results:
            return None
        return self.results.pop(0)


@pytest.fixture
def centered():
    return make_landmarks()


@pytest.fixture
def clock():
    return FakeClock()
