"""
Kernel module defining the geometry capability interface.

The generator never talks to a modeling document directly; it receives a
GeometryKernel and goes through create / commit / pick / chamfer calls.
RecordingKernel is a pure-Python implementation for dry runs and tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import product
import math
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .expressions import Expression, evaluate


Point = Tuple[float, float, float]
Range = Tuple[Expression, Expression]


class KernelError(RuntimeError):
    """Kernel contract violated (unknown shape, duplicate name, ...)."""


class ChamferFailed(KernelError):
    """The kernel could not cut a chamfer; the shape is left as it was."""

    def __init__(self, shape_name: str, reason: str):
        self.shape_name = shape_name
        self.reason = reason
        super().__init__(f"Chamfer failed on {shape_name}: {reason}")


@dataclass(frozen=True)
class PickResult:
    """Entity ids resolved at a pick point; 0 means nothing was found."""
    edge_id: int
    vertex_id: int
    face_id: int

    @property
    def is_valid(self) -> bool:
        return self.edge_id > 0 and self.vertex_id > 0 and self.face_id > 0


@dataclass(frozen=True)
class ChamferRequest:
    """Structured chamfer call on a single picked edge."""
    shape_name: str
    edge_id: int
    vertex_id: int
    face_id: int
    value: Expression      # kept symbolic, resolved by the kernel
    angle: float           # degrees
    symmetric: bool = False


def qualified_name(component: str, name: str) -> str:
    return f"{component}:{name}"


class GeometryKernel(ABC):
    """
    Capabilities the meander generator needs from a modeling kernel.

    Creations and chamfers are pending until commit(); pick queries only
    see committed geometry.
    """

    @abstractmethod
    def create_box(
        self,
        name: str,
        component: str,
        material: str,
        xrange: Range,
        yrange: Range,
        zrange: Range,
    ) -> str:
        """Queue an axis-aligned box; returns its qualified shape name."""

    @abstractmethod
    def commit(self) -> None:
        """Flush pending operations into the committed model."""

    @abstractmethod
    def pick_edge_id(self, shape_name: str, point: Point) -> int:
        ...

    @abstractmethod
    def pick_vertex_id(self, shape_name: str, point: Point) -> int:
        ...

    @abstractmethod
    def pick_face_id(self, shape_name: str, point: Point) -> int:
        ...

    @abstractmethod
    def chamfer(self, request: ChamferRequest) -> None:
        """Queue a chamfer on a committed shape."""


# Fixed topology of an axis-aligned box, shared by every box so that ids
# are deterministic. Vertices are the (min/max)^3 corners in product order.
_BOX_CORNERS = list(product((0, 1), repeat=3))
_BOX_EDGES = [
    (a, b)
    for a, b in product(range(8), repeat=2)
    if a < b and sum(x != y for x, y in zip(_BOX_CORNERS[a], _BOX_CORNERS[b])) == 1
]
_BOX_FACES = [(axis, side) for axis in range(3) for side in (0, 1)]


@dataclass
class BoxRecord:
    """A box as seen by RecordingKernel."""
    name: str
    component: str
    material: str
    xrange: Range
    yrange: Range
    zrange: Range
    lo: Point = (0.0, 0.0, 0.0)
    hi: Point = (0.0, 0.0, 0.0)
    chamfers: List[ChamferRequest] = field(default_factory=list)

    def corner(self, k: int) -> Point:
        bits = _BOX_CORNERS[k]
        return tuple(self.hi[a] if bits[a] else self.lo[a] for a in range(3))


class RecordingKernel(GeometryKernel):
    """
    In-memory kernel that resolves boxes numerically and logs every call.

    ``calls`` holds (operation, shape name) tuples in issue order.
    Shapes listed in ``unpickable`` answer 0 to every pick query.
    """

    def __init__(
        self,
        params: Mapping[str, float],
        tolerance: float = 1e-9,
        unpickable: Iterable[str] = (),
    ):
        self.params = params
        self.tolerance = tolerance
        self.unpickable = set(unpickable)
        self.calls: List[Tuple[str, Optional[str]]] = []
        self._pending_boxes: List[BoxRecord] = []
        self._pending_chamfers: List[ChamferRequest] = []
        self._committed: Dict[str, BoxRecord] = {}

    @property
    def shapes(self) -> Dict[str, BoxRecord]:
        return dict(self._committed)

    def create_box(self, name, component, material, xrange, yrange, zrange) -> str:
        shape_name = qualified_name(component, name)
        if shape_name in self._committed or any(
            qualified_name(b.component, b.name) == shape_name for b in self._pending_boxes
        ):
            raise KernelError(f"Shape already exists: {shape_name}")
        self._pending_boxes.append(
            BoxRecord(name, component, material, tuple(xrange), tuple(yrange), tuple(zrange))
        )
        self.calls.append(('create_box', shape_name))
        return shape_name

    def commit(self) -> None:
        for box in self._pending_boxes:
            ranges = [
                sorted(evaluate(e, self.params) for e in r)
                for r in (box.xrange, box.yrange, box.zrange)
            ]
            box.lo = tuple(r[0] for r in ranges)
            box.hi = tuple(r[1] for r in ranges)
            self._committed[qualified_name(box.component, box.name)] = box
        self._pending_boxes = []
        self.calls.append(('commit', None))

        try:
            for request in self._pending_chamfers:
                box = self._committed[request.shape_name]
                self._check_chamfer_fits(box, request)
                box.chamfers.append(request)
        finally:
            self._pending_chamfers = []

    def _check_chamfer_fits(self, box: BoxRecord, request: ChamferRequest) -> None:
        a, b = _BOX_EDGES[request.edge_id - 1]
        axis = next(k for k in range(3) if _BOX_CORNERS[a][k] != _BOX_CORNERS[b][k])
        length = evaluate(request.value, self.params)
        length2 = length if request.symmetric else length * math.tan(math.radians(request.angle))
        room = min(box.hi[k] - box.lo[k] for k in range(3) if k != axis)
        if length <= 0 or max(length, length2) >= room:
            raise ChamferFailed(
                request.shape_name,
                f"distances ({length:.4g}, {length2:.4g}) do not fit in {room:.4g}",
            )

    def _pickable(self, shape_name: str) -> Optional[BoxRecord]:
        if shape_name in self.unpickable:
            return None
        return self._committed.get(shape_name)

    def _near(self, a: float, b: float) -> bool:
        return abs(a - b) <= self.tolerance

    def pick_edge_id(self, shape_name, point) -> int:
        self.calls.append(('pick_edge', shape_name))
        box = self._pickable(shape_name)
        if box is None:
            return 0
        for edge_id, (a, b) in enumerate(_BOX_EDGES, start=1):
            pa, pb = box.corner(a), box.corner(b)
            axis = next(k for k in range(3) if _BOX_CORNERS[a][k] != _BOX_CORNERS[b][k])
            on_line = all(self._near(point[k], pa[k]) for k in range(3) if k != axis)
            lo, hi = sorted((pa[axis], pb[axis]))
            if on_line and lo - self.tolerance <= point[axis] <= hi + self.tolerance:
                return edge_id
        return 0

    def pick_vertex_id(self, shape_name, point) -> int:
        self.calls.append(('pick_vertex', shape_name))
        box = self._pickable(shape_name)
        if box is None:
            return 0
        for vertex_id in range(1, 9):
            corner = box.corner(vertex_id - 1)
            if all(self._near(point[k], corner[k]) for k in range(3)):
                return vertex_id
        return 0

    def pick_face_id(self, shape_name, point) -> int:
        self.calls.append(('pick_face', shape_name))
        box = self._pickable(shape_name)
        if box is None:
            return 0
        for face_id, (axis, side) in enumerate(_BOX_FACES, start=1):
            plane = box.hi[axis] if side else box.lo[axis]
            if not self._near(point[axis], plane):
                continue
            inside = all(
                box.lo[k] - self.tolerance <= point[k] <= box.hi[k] + self.tolerance
                for k in range(3) if k != axis
            )
            if inside:
                return face_id
        return 0

    def chamfer(self, request: ChamferRequest) -> None:
        box = self._committed.get(request.shape_name)
        if box is None:
            raise KernelError(f"Cannot chamfer uncommitted shape: {request.shape_name}")
        if not (1 <= request.edge_id <= len(_BOX_EDGES)):
            raise KernelError(f"Edge id {request.edge_id} out of range on {request.shape_name}")
        a, b = _BOX_EDGES[request.edge_id - 1]
        if request.vertex_id - 1 not in (a, b):
            raise KernelError(
                f"Vertex {request.vertex_id} is not an endpoint of edge {request.edge_id}"
            )
        # Resolve now so a bad distance formula fails at the call site
        evaluate(request.value, self.params)
        self._pending_chamfers.append(request)
        self.calls.append(('chamfer', request.shape_name))

    def chamfered_shapes(self) -> List[str]:
        return [name for name, box in self._committed.items() if box.chamfers]
