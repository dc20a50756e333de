"""Tests for Face Mesh to LandmarkSet conversion."""

from types import SimpleNamespace

import pytest

from studyfocus.core.models import LandmarkSet
from studyfocus.utils.constants import FACE_MESH_IDX, FACE_MESH_REFINED_COUNT, LANDMARK_COUNT
from studyfocus.utils.landmarks import first_face, landmark_set_from_face_mesh


def _mesh_points(n=FACE_MESH_REFINED_COUNT):
    # Each point encodes its own mesh index so the mapping can be checked
    return [(i / 1000.0, i / 2000.0, 0.0) for i in range(n)]


class TestFromFaceMesh:
    def test_tuples(self):
        lm = landmark_set_from_face_mesh(_mesh_points())
        assert len(lm.points) == LANDMARK_COUNT
        for slot, mesh_idx in enumerate(FACE_MESH_IDX):
            assert lm[slot] == pytest.approx((mesh_idx / 1000.0, mesh_idx / 2000.0))

    def test_landmark_objects(self):
        points = [SimpleNamespace(x=x, y=y, z=z) for x, y, z in _mesh_points()]
        lm = landmark_set_from_face_mesh(SimpleNamespace(landmark=points))
        assert lm.nose_tip == pytest.approx((0.001, 0.0005))
        assert lm.left_iris == pytest.approx((0.468, 0.234))

    def test_unrefined_mesh_rejected(self):
        with pytest.raises(ValueError):
            landmark_set_from_face_mesh(_mesh_points(468))


class TestFirstFace:
    def test_no_faces(self):
        assert first_face(SimpleNamespace(multi_face_landmarks=None)) is None
        assert first_face(SimpleNamespace(multi_face_landmarks=[])) is None

    def test_first_of_many(self):
        a = _mesh_points()
        b = [(0.9, 0.9, 0.0)] * FACE_MESH_REFINED_COUNT
        lm = first_face(SimpleNamespace(multi_face_landmarks=[a, b]))
        assert lm.chin == pytest.approx((0.152, 0.076))


class TestLandmarkSet:
    def test_wrong_cardinality_rejected(self):
        with pytest.raises(ValueError):
            LandmarkSet.from_points([(0.0, 0.0)] * 8)

    def test_version(self):
        lm = LandmarkSet.from_points([(0.0, 0.0)] * LANDMARK_COUNT)
        assert lm.version == "v1"

    def test_non_finite_coordinate_rejected(self):
        points = [(0.5, 0.5)] * LANDMARK_COUNT
        points[6] = (float('nan'), 0.4)
        with pytest.raises(ValueError):
            LandmarkSet.from_points(points)
        points[6] = (0.5, float('inf'))
        with pytest.raises(ValueError):
            LandmarkSet.from_points(points)

    def test_non_finite_mesh_point_rejected(self):
        points = _mesh_points()
        points[FACE_MESH_IDX[0]] = (float('nan'), 0.1, 0.0)
        with pytest.raises(ValueError):
            landmark_set_from_face_mesh(points)
