"""
Edge picking and chamfer application on a freshly committed box.

The kernel resolves entities by position only, so one representative
corner point (x, y, z) is turned into three sample points, one per
entity class. The offsets assume an axis-aligned box whose base sits
at or below z/2 and whose lower y edge sits at or below y/2.
"""

import logging

from .expressions import Expression
from .kernel import ChamferRequest, GeometryKernel, PickResult, Point


logger = logging.getLogger(__name__)


class PickResolutionFailed(RuntimeError):
    """Edge, vertex or face could not be resolved for a shape."""

    def __init__(self, shape_name: str, result: PickResult):
        self.shape_name = shape_name
        self.result = result
        super().__init__(
            f"Pick failed on {shape_name}: edge={result.edge_id} "
            f"vertex={result.vertex_id} face={result.face_id}"
        )


def edge_sample_point(point: Point) -> Point:
    """Halfway up the vertical edge through the corner."""
    x, y, z = point
    return (x, y, z / 2)


def vertex_sample_point(point: Point) -> Point:
    """The corner itself."""
    return tuple(point)


def face_sample_point(point: Point) -> Point:
    """Inside the side face that carries the vertical edge."""
    x, y, z = point
    return (x, y / 2, z / 2)


def pick_entities(kernel: GeometryKernel, shape_name: str, point: Point) -> PickResult:
    return PickResult(
        edge_id=kernel.pick_edge_id(shape_name, edge_sample_point(point)),
        vertex_id=kernel.pick_vertex_id(shape_name, vertex_sample_point(point)),
        face_id=kernel.pick_face_id(shape_name, face_sample_point(point)),
    )


def apply_chamfer_to_picked_edge(
    kernel: GeometryKernel,
    shape_name: str,
    pick_point: Point,
    chamfer_value: Expression,
    chamfer_angle: float,
) -> PickResult:
    """
    Pick the edge at ``pick_point`` and chamfer it, then commit.

    ``chamfer_value`` is handed to the kernel untouched so that it can
    stay bound to a live parameter such as ``w_meander_gap``.

    Raises:
        PickResolutionFailed: any of the three ids is not positive; no
            chamfer is issued in that case.
    """
    picked = pick_entities(kernel, shape_name, pick_point)
    if not picked.is_valid:
        raise PickResolutionFailed(shape_name, picked)

    logger.debug(
        f"{shape_name}: edge={picked.edge_id} vertex={picked.vertex_id} face={picked.face_id}"
    )
    kernel.chamfer(ChamferRequest(
        shape_name=shape_name,
        edge_id=picked.edge_id,
        vertex_id=picked.vertex_id,
        face_id=picked.face_id,
        value=chamfer_value,
        angle=chamfer_angle,
        symmetric=False,
    ))
    kernel.commit()
    return picked
