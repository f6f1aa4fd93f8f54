"""
build123d implementation of the geometry kernel.

Boxes are OCCT solids; entity ids are 1-based positions in the solid's
edges() / vertices() / faces() lists, which stay stable until the solid
is modified.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Tuple
import logging
import math

from build123d import Compound, Location, Solid, Vector, export_step

from .expressions import evaluate
from .kernel import ChamferFailed, ChamferRequest, GeometryKernel, KernelError, Point, qualified_name
from .quality_gate import ValidationResult, validate_shapes


logger = logging.getLogger(__name__)


class Build123dKernel(GeometryKernel):
    """Geometry kernel backed by build123d solids."""

    def __init__(self, params: Mapping[str, float], tolerance: float = 1e-6):
        self.params = params
        self.tolerance = tolerance
        self._pending_boxes: List[Tuple[str, Solid]] = []
        self._pending_chamfers: List[ChamferRequest] = []
        self._committed: Dict[str, Solid] = {}
        self._materials: Dict[str, str] = {}

    @property
    def solids(self) -> Dict[str, Solid]:
        return dict(self._committed)

    def material_of(self, shape_name: str) -> str:
        return self._materials[shape_name]

    def _resolve_range(self, rng) -> Tuple[float, float]:
        lo, hi = sorted(evaluate(e, self.params) for e in rng)
        return lo, hi

    def create_box(self, name, component, material, xrange, yrange, zrange) -> str:
        shape_name = qualified_name(component, name)
        if shape_name in self._committed or any(n == shape_name for n, _ in self._pending_boxes):
            raise KernelError(f"Shape already exists: {shape_name}")

        (x0, x1), (y0, y1), (z0, z1) = (
            self._resolve_range(r) for r in (xrange, yrange, zrange)
        )
        if min(x1 - x0, y1 - y0, z1 - z0) <= 0:
            raise KernelError(
                f"Degenerate box {shape_name}: x=[{x0}, {x1}] y=[{y0}, {y1}] z=[{z0}, {z1}]"
            )

        solid = Solid.make_box(x1 - x0, y1 - y0, z1 - z0).moved(Location((x0, y0, z0)))
        solid.label = name
        self._pending_boxes.append((shape_name, solid))
        self._materials[shape_name] = material
        return shape_name

    def commit(self) -> None:
        for shape_name, solid in self._pending_boxes:
            self._committed[shape_name] = solid
        self._pending_boxes = []

        try:
            for request in self._pending_chamfers:
                self._committed[request.shape_name] = self._apply_chamfer(request)
        finally:
            self._pending_chamfers = []

    def _pick(self, entities, point: Point) -> int:
        target = Vector(*point)
        for entity_id, entity in enumerate(entities, start=1):
            if entity.distance_to(target) <= self.tolerance:
                return entity_id
        return 0

    def pick_edge_id(self, shape_name, point) -> int:
        solid = self._committed.get(shape_name)
        return self._pick(solid.edges(), point) if solid is not None else 0

    def pick_vertex_id(self, shape_name, point) -> int:
        solid = self._committed.get(shape_name)
        return self._pick(solid.vertices(), point) if solid is not None else 0

    def pick_face_id(self, shape_name, point) -> int:
        solid = self._committed.get(shape_name)
        return self._pick(solid.faces(), point) if solid is not None else 0

    def chamfer(self, request: ChamferRequest) -> None:
        if request.shape_name not in self._committed:
            raise KernelError(f"Cannot chamfer uncommitted shape: {request.shape_name}")
        if not 0 < request.angle < 90:
            raise KernelError(f"Chamfer angle must be in (0, 90) degrees, got {request.angle}")
        self._pending_chamfers.append(request)

    def _apply_chamfer(self, request: ChamferRequest) -> Solid:
        solid = self._committed[request.shape_name]
        edges, vertices, faces = solid.edges(), solid.vertices(), solid.faces()
        try:
            edge = edges[request.edge_id - 1]
            vertex = vertices[request.vertex_id - 1]
            face = faces[request.face_id - 1]
        except IndexError as e:
            raise KernelError(f"Stale entity id in {request}") from e

        # build123d cuts the asymmetric side from the reference face alone;
        # the vertex only has to lie on the edge.
        if edge.distance_to(vertex) > self.tolerance:
            raise KernelError(
                f"Vertex {request.vertex_id} is not an endpoint of edge {request.edge_id}"
            )

        length = evaluate(request.value, self.params)
        length2 = None if request.symmetric else length * math.tan(math.radians(request.angle))
        logger.debug(
            f"Chamfer {request.shape_name}: edge={request.edge_id} "
            f"length={length:.4f} length2={length2}"
        )
        try:
            result = solid.chamfer(length, length2, [edge], face)
        except Exception as e:
            raise ChamferFailed(request.shape_name, str(e)) from e
        result.label = solid.label
        return result

    def validate(self) -> ValidationResult:
        return validate_shapes(self._committed.items())

    def export_step(self, path: Path) -> None:
        if not self._committed:
            raise KernelError("Nothing to export")
        compound = Compound(list(self._committed.values()))
        export_step(compound, str(path))
