import numpy as np
import pytest

from quadric_slam.backend.factors.quadric_proj import EdgeSE3QuadricProj
from quadric_slam.backend.vertices import VertexQuadric, VertexSE3Expmap
from quadric_slam.common.errors import UnprojectableError
from quadric_slam.structures.quadric import Quadric


def _make_edge(calib, quadric, measurement, information=None):
    pose_vertex = VertexSE3Expmap(vertex_id=0)
    quadric_vertex = VertexQuadric(vertex_id=1)
    quadric_vertex.set_estimate(quadric)
    edge = EdgeSE3QuadricProj(calib, measurement, information=information)
    edge.set_vertices(pose_vertex, quadric_vertex)
    return edge


def test_error_is_zero_at_exact_measurement(calib, unit_sphere, identity_pose):
    bbox = unit_sphere.project_to_image_bbox(identity_pose, calib)
    edge = _make_edge(calib, unit_sphere, bbox)
    np.testing.assert_allclose(edge.compute_error(), np.zeros(4), atol=1e-12)
    assert edge.chi2() == pytest.approx(0.0, abs=1e-20)


def test_error_is_squared_difference(calib, unit_sphere, identity_pose):
    bbox = unit_sphere.project_to_image_bbox(identity_pose, calib)
    offset = np.array([1.0, -2.0, 3.0, -4.0])
    edge = _make_edge(calib, unit_sphere, bbox + offset)
    error = edge.compute_error()
    np.testing.assert_allclose(error, [1.0, 4.0, 9.0, 16.0], atol=1e-8)
    assert np.all(error >= 0.0)
    assert edge.chi2() == pytest.approx(1.0 + 16.0 + 81.0 + 256.0, rel=1e-8)


def test_chi2_uses_information(calib, unit_sphere, identity_pose):
    bbox = unit_sphere.project_to_image_bbox(identity_pose, calib)
    edge = _make_edge(calib, unit_sphere, bbox + 1.0, information=2.0 * np.eye(4))
    edge.compute_error()
    assert edge.chi2() == pytest.approx(8.0, rel=1e-8)


def test_error_follows_camera_pose(calib, unit_sphere):
    edge = _make_edge(calib, unit_sphere, [320.0, 240.0, 0.0, 0.0])
    before = edge.compute_error().copy()
    edge.vertices[0].oplus([0.0, 0.0, 0.0, 0.5, 0.0, 0.0])
    after = edge.compute_error()
    assert after[0] > before[0]


def test_unprojectable_propagates(calib):
    zero = Quadric.from_rotation_translation(np.eye(3), [0.0, 0.0, 5.0], [0.0, 0.0, 0.0])
    edge = _make_edge(calib, zero, [0.0, 0.0, 1.0, 1.0])
    with pytest.raises(UnprojectableError):
        edge.compute_error()


def test_requires_vertices(calib):
    edge = EdgeSE3QuadricProj(calib, [0.0, 0.0, 1.0, 1.0])
    with pytest.raises(ValueError):
        edge.compute_error()


def test_rejects_bad_shapes(calib):
    with pytest.raises(ValueError):
        EdgeSE3QuadricProj(np.eye(4), [0.0, 0.0, 1.0, 1.0])
    with pytest.raises(ValueError):
        EdgeSE3QuadricProj(calib, [0.0, 0.0, 1.0])
    with pytest.raises(ValueError):
        EdgeSE3QuadricProj(calib, [0.0, 0.0, 1.0, 1.0], information=np.eye(3))


def test_failed_projection_clears_previous_error(calib, unit_sphere, identity_pose):
    bbox = unit_sphere.project_to_image_bbox(identity_pose, calib)
    edge = _make_edge(calib, unit_sphere, bbox + 1.0)
    edge.compute_error()
    assert edge.chi2() == pytest.approx(4.0, rel=1e-8)

    edge.vertices[1].set_estimate(
        Quadric.from_rotation_translation(np.eye(3), [0.0, 0.0, 5.0], [0.0, 0.0, 0.0])
    )
    with pytest.raises(UnprojectableError):
        edge.compute_error()
    assert np.all(np.isnan(edge.error))
    assert np.isnan(edge.chi2())
