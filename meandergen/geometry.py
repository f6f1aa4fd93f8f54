"""
Geometry module for meander segment placement.

This module provides the parameterized bounding-box formulas of each
meander segment. Formulas stay symbolic so the kernel can keep them
editable; numeric values are only resolved for the boundary test.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, List, Optional

from .expressions import Expression, ParameterSet


REQUIRED_PARAMETERS = (
    'x_patch1',
    'y_patch1',
    'l_patch',
    'w_meander',
    'w_meander_gap',
    'w_chamfer_patch',
    'ts',
    'tp',
)

SEGMENT_PREFIX = "meander_LU2"


class SegmentVariant(Enum):
    """How a segment is finished after creation."""
    NORMAL = "normal"   # created, then chamfered
    CAPPED = "capped"   # ymax pulled back inside the patch, never chamfered


@dataclass
class MeanderParams:
    """
    Parameters defining the patch envelope and the meander trace.

    All lengths share one unit. The patch is square (side ``l_patch``)
    and centred on (x_patch1, y_patch1); the trace sits on the
    substrate top (z = ts) with thickness tp.
    """
    x_patch1: float = 0.0          # patch centre X
    y_patch1: float = 0.0          # patch centre Y
    l_patch: float = 10.0          # patch side length
    w_meander: float = 1.0         # trace width
    w_meander_gap: float = 0.5     # gap between adjacent legs
    w_chamfer_patch: float = 0.2   # margin kept from the patch edge
    ts: float = 0.0                # substrate thickness (trace base Z)
    tp: float = 1.0                # trace thickness

    def validate(self) -> Tuple[bool, List[str]]:
        """Validate parameters are within acceptable ranges."""
        errors = []

        for name, value in [
            ('l_patch', self.l_patch),
            ('w_meander', self.w_meander),
            ('tp', self.tp),
        ]:
            if value <= 0:
                errors.append(f"{name} must be positive, got {value}")

        for name, value in [
            ('w_meander_gap', self.w_meander_gap),
            ('w_chamfer_patch', self.w_chamfer_patch),
            ('ts', self.ts),
        ]:
            if value < 0:
                errors.append(f"{name} must be >= 0, got {value}")

        if self.w_meander >= self.l_patch:
            errors.append(
                f"w_meander={self.w_meander} must be smaller than l_patch={self.l_patch}"
            )

        return len(errors) == 0, errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {name: getattr(self, name) for name in REQUIRED_PARAMETERS}

    @classmethod
    def from_dict(cls, d: dict) -> 'MeanderParams':
        """Create from dictionary."""
        return cls(**{k: float(v) for k, v in d.items() if k in cls.__dataclass_fields__})

    def parameter_set(self) -> ParameterSet:
        return ParameterSet(self.to_dict())


@dataclass(frozen=True)
class BoxBounds:
    """Axis-aligned box extents as formulas."""
    xmin: Expression
    xmax: Expression
    ymin: Expression
    ymax: Expression
    zmin: Expression
    zmax: Expression

    @property
    def xrange(self) -> Tuple[Expression, Expression]:
        return (self.xmin, self.xmax)

    @property
    def yrange(self) -> Tuple[Expression, Expression]:
        return (self.ymin, self.ymax)

    @property
    def zrange(self) -> Tuple[Expression, Expression]:
        return (self.zmin, self.zmax)


@dataclass(frozen=True)
class Segment:
    """One rectangular leg of the meander."""
    index: int
    name: str
    bounds: BoxBounds
    variant: SegmentVariant
    # Values used by the boundary test, kept for reporting
    provisional_ymax: Optional[float] = None
    upper_bound: Optional[float] = None

    @property
    def is_capped(self) -> bool:
        return self.variant is SegmentVariant.CAPPED


def segment_name(index: int, prefix: str = SEGMENT_PREFIX) -> str:
    return f"{prefix}_{index}"


# Bounding-box formulas. The index is written into the text as a
# literal so each formula only references parameter names.

def xmin_expr(i: int) -> Expression:
    return f"x_patch1 - l_patch/2 + w_meander*2*{i} + w_meander_gap*(2*{i}-1)"


def xmax_expr(i: int) -> Expression:
    return f"x_patch1 - l_patch/2 + w_meander*(2*{i}+1) + w_meander_gap*(2*{i}-1)"


def ymin_expr() -> Expression:
    return "y_patch1 - l_patch/2"


def ymax_expr(i: int) -> Expression:
    return (
        f"y_patch1 + l_patch/2 - w_chamfer_patch + w_meander*2*{i}"
        f" + w_meander_gap*(2*{i}-0.5) - w_meander/sqrt(2)"
    )


def patch_upper_expr() -> Expression:
    return "y_patch1 + l_patch/2"


def capped_ymax_expr() -> Expression:
    return "y_patch1 + l_patch/2 - w_meander"


ZMIN_EXPR: Expression = "ts"
ZMAX_EXPR: Expression = "ts + tp"


def provisional_bounds(i: int) -> BoxBounds:
    """Bounds of segment ``i`` before the boundary test."""
    return BoxBounds(
        xmin=xmin_expr(i),
        xmax=xmax_expr(i),
        ymin=ymin_expr(),
        ymax=ymax_expr(i),
        zmin=ZMIN_EXPR,
        zmax=ZMAX_EXPR,
    )


def classify(ymax: float, upper: float) -> SegmentVariant:
    """Boundary test; a segment touching the patch edge is still Normal."""
    if ymax <= upper:
        return SegmentVariant.NORMAL
    return SegmentVariant.CAPPED


# Reference run parameters
REFERENCE_PARAMS = MeanderParams(
    x_patch1=0.0,
    y_patch1=0.0,
    l_patch=10.0,
    w_meander=1.0,
    w_meander_gap=0.5,
    w_chamfer_patch=0.2,
    ts=0.0,
    tp=1.0,
)
