from typing import Optional

from studyfocus.core.models import LandmarkSet
from studyfocus.utils.constants import FACE_MESH_IDX, FACE_MESH_REFINED_COUNT


def landmark_set_from_face_mesh(face_landmarks) -> LandmarkSet:
    """
    Map one Face Mesh result (refined, 478 points) onto the semantic table.

    Accepts either a MediaPipe NormalizedLandmarkList (`.landmark` items with
    .x/.y) or a plain sequence of (x, y[, z]) tuples.
    """
    points = getattr(face_landmarks, 'landmark', face_landmarks)
    if len(points) < FACE_MESH_REFINED_COUNT:
        raise ValueError(
            f"Face mesh has {len(points)} points; iris landmarks need "
            f"{FACE_MESH_REFINED_COUNT} (refine_landmarks=True)"
        )

    picked = []
    for i in FACE_MESH_IDX:
        p = points[i]
        if hasattr(p, 'x'):
            picked.append((p.x, p.y))
        else:
            picked.append((p[0], p[1]))
    return LandmarkSet.from_points(picked)


def first_face(results) -> Optional[LandmarkSet]:
    """First detected face of a Face Mesh results object, or None."""
    faces = getattr(results, 'multi_face_landmarks', None)
    if not faces:
        return None
    return landmark_set_from_face_mesh(faces[0])
