"""
Meander generator module - main pipeline for segment creation.

Computes segment bounds, decides Normal vs. Capped, drives the kernel
and chamfers Normal segments.
"""

from dataclasses import astuple, dataclass, field, replace
from pathlib import Path
from typing import List, Mapping, Optional
from enum import Enum
import logging
import json
import time
from datetime import datetime

from .expressions import ExpressionError, evaluate
from .geometry import (
    MeanderParams,
    Segment,
    SegmentVariant,
    SEGMENT_PREFIX,
    capped_ymax_expr,
    classify,
    patch_upper_expr,
    provisional_bounds,
    segment_name,
)
from .kernel import ChamferFailed, GeometryKernel, KernelError, Point
from .chamfer import PickResolutionFailed, apply_chamfer_to_picked_edge
from .config import GenerationSettings
from .quality_gate import ValidationResult


logger = logging.getLogger(__name__)


def generate_segments(
    turns: int,
    params: Mapping[str, float],
    prefix: str = SEGMENT_PREFIX,
) -> List[Segment]:
    """
    Build every segment for indices 1..turns, in order.

    The boundary test uses the provisional ymax formula; a Capped
    segment gets the pulled-back ymax, which is not tested again.

    Raises:
        ValueError: turns is not a positive integer, or a segment has an
            empty x or z extent.
        UnknownParameter, MalformedExpression: tagged with the index.
    """
    if isinstance(turns, bool) or not isinstance(turns, int) or turns < 1:
        raise ValueError(f"turns must be a positive integer, got {turns!r}")

    segments = []

    for i in range(1, turns + 1):
        bounds = provisional_bounds(i)
        try:
            upper = evaluate(patch_upper_expr(), params)
            xmin, xmax, _, ymax, zmin, zmax = (
                evaluate(e, params) for e in astuple(bounds)
            )
        except ExpressionError as e:
            raise e.with_index(i)

        if xmin >= xmax or zmin >= zmax:
            raise ValueError(
                f"segment {i}: empty extent x=[{xmin}, {xmax}] z=[{zmin}, {zmax}]"
            )

        variant = classify(ymax, upper)
        if variant is SegmentVariant.CAPPED:
            bounds = replace(bounds, ymax=capped_ymax_expr())

        segments.append(Segment(
            index=i,
            name=segment_name(i, prefix),
            bounds=bounds,
            variant=variant,
            provisional_ymax=ymax,
            upper_bound=upper,
        ))

    return segments


def representative_point(segment: Segment, params: Mapping[str, float]) -> Point:
    """Outer top corner (xmax, ymax, zmax) of a segment."""
    b = segment.bounds
    try:
        return (
            evaluate(b.xmax, params),
            evaluate(b.ymax, params),
            evaluate(b.zmax, params),
        )
    except ExpressionError as e:
        raise e.with_index(segment.index)


@dataclass
class MeanderBuild:
    """What build_meander did to the kernel."""
    segments: List[Segment]
    shape_names: List[str] = field(default_factory=list)
    chamfered: List[str] = field(default_factory=list)
    pick_failures: List[str] = field(default_factory=list)
    chamfer_failures: List[str] = field(default_factory=list)

    @property
    def capped(self) -> List[str]:
        return [
            name for name, seg in zip(self.shape_names, self.segments)
            if seg.is_capped
        ]


def build_meander(
    turns: int,
    params: Mapping[str, float],
    kernel: GeometryKernel,
    settings: Optional[GenerationSettings] = None,
) -> MeanderBuild:
    """
    Create and finish every segment on ``kernel``.

    Each box is committed before it is picked, and its chamfer is
    committed before the next box is created. A failed pick only skips
    that segment's chamfer, and so does a chamfer the kernel cannot cut.
    """
    settings = settings or GenerationSettings()
    segments = generate_segments(turns, params, settings.name_prefix)
    build = MeanderBuild(segments=segments)

    for segment in segments:
        b = segment.bounds
        shape_name = kernel.create_box(
            segment.name,
            settings.component,
            settings.material,
            b.xrange,
            b.yrange,
            b.zrange,
        )
        kernel.commit()
        build.shape_names.append(shape_name)

        if segment.is_capped:
            logger.info(f"{shape_name}: capped at ymax = {b.ymax}")
            continue

        point = representative_point(segment, params)
        try:
            apply_chamfer_to_picked_edge(
                kernel,
                shape_name,
                point,
                settings.chamfer_value,
                settings.chamfer_angle,
            )
        except PickResolutionFailed as e:
            logger.warning(f"Chamfer skipped for {shape_name}: {e}")
            build.pick_failures.append(shape_name)
            continue
        except ChamferFailed as e:
            logger.warning(f"Chamfer rejected for {shape_name}: {e.reason}")
            build.chamfer_failures.append(shape_name)
            continue

        build.chamfered.append(shape_name)
        logger.info(f"{shape_name}: chamfered")

    return build


class GenerationStatus(Enum):
    """Status of a meander generation run."""
    SUCCESS = "success"
    SUCCESS_WITH_WARNINGS = "success_with_warnings"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """Result of a meander generation run."""
    status: GenerationStatus
    output_path: Optional[Path]
    params_used: MeanderParams
    turns: int
    build: Optional[MeanderBuild]
    validation_result: Optional[ValidationResult]
    error_message: Optional[str]
    generation_time_ms: float

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        segments = self.build.segments if self.build else []
        return {
            'status': self.status.value,
            'output_path': str(self.output_path) if self.output_path else None,
            'params_used': self.params_used.to_dict(),
            'turns': self.turns,
            'segments': [
                {
                    'index': s.index,
                    'name': s.name,
                    'variant': s.variant.value,
                    'ymax': s.bounds.ymax,
                    'provisional_ymax': s.provisional_ymax,
                }
                for s in segments
            ],
            'chamfered': self.build.chamfered if self.build else [],
            'pick_failures': self.build.pick_failures if self.build else [],
            'chamfer_failures': self.build.chamfer_failures if self.build else [],
            'is_valid': (
                self.validation_result.is_valid
                if self.validation_result else None
            ),
            'error': self.error_message,
            'generation_time_ms': self.generation_time_ms,
        }


def generate_meander(
    params: MeanderParams,
    turns: int = 3,
    kernel: Optional[GeometryKernel] = None,
    settings: Optional[GenerationSettings] = None,
    output_path: Optional[Path] = None,
) -> GenerationResult:
    """
    Generate the meander from parameters.

    Pipeline:
    1. Validate parameters
    2. Create, commit and chamfer segments
    3. Validate solids (production kernel only)
    4. Export STEP (production kernel only)
    """
    start_time = time.perf_counter()
    settings = settings or GenerationSettings()

    def failed(message, build=None, validation=None):
        logger.error(message)
        return GenerationResult(
            status=GenerationStatus.FAILED,
            output_path=None,
            params_used=params,
            turns=turns,
            build=build,
            validation_result=validation,
            error_message=message,
            generation_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    # Stage 1: Parameter validation
    is_valid, errors = params.validate()
    if not is_valid:
        return failed(f"Invalid parameters: {errors}")

    param_set = params.parameter_set()
    if kernel is None:
        from .occ_kernel import Build123dKernel
        kernel = Build123dKernel(param_set)

    # Stage 2: Build segments
    try:
        build = build_meander(turns, param_set, kernel, settings)
    except ExpressionError as e:
        return failed(f"Formula could not be resolved: {e}")
    except (KernelError, ValueError) as e:
        return failed(f"Meander construction failed: {e}")

    # Stage 3: Validate solids
    validation_result = None
    if hasattr(kernel, 'validate'):
        validation_result = kernel.validate()
        if not validation_result.is_valid:
            logger.warning(f"Shape validation failed: {validation_result.errors}")

    # Stage 4: Export STEP
    if output_path is not None and hasattr(kernel, 'export_step'):
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            kernel.export_step(output_path)
            logger.info(f"STEP exported to: {output_path}")
        except Exception as e:
            return failed(f"STEP export failed: {e}", build, validation_result)
    else:
        output_path = None

    status = (
        GenerationStatus.SUCCESS_WITH_WARNINGS
        if build.pick_failures or build.chamfer_failures
        else GenerationStatus.SUCCESS
    )

    return GenerationResult(
        status=status,
        output_path=output_path,
        params_used=params,
        turns=turns,
        build=build,
        validation_result=validation_result,
        error_message=None,
        generation_time_ms=(time.perf_counter() - start_time) * 1000,
    )


def save_generation_log(
    results: List[GenerationResult],
    log_path: Path
) -> None:
    """Save generation results to JSON log."""
    log_data = {
        'timestamp': datetime.now().isoformat(),
        'total': len(results),
        'success': sum(1 for r in results if r.status != GenerationStatus.FAILED),
        'results': [r.to_dict() for r in results]
    }

    with open(log_path, 'w', encoding='utf-8') as f:
        json.dump(log_data, f, indent=2, ensure_ascii=False)
