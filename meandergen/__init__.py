"""
Meander Generator - parametric folded microstrip trace
"""

from .expressions import (
    ExpressionError,
    MalformedExpression,
    ParameterSet,
    UnknownParameter,
    evaluate,
)
from .geometry import MeanderParams, Segment, SegmentVariant, REFERENCE_PARAMS
from .kernel import ChamferFailed, ChamferRequest, GeometryKernel, KernelError, PickResult, RecordingKernel
from .chamfer import PickResolutionFailed, apply_chamfer_to_picked_edge
from .generator import (
    generate_segments,
    build_meander,
    generate_meander,
    GenerationStatus,
    GenerationResult,
)
from .config import Config, GenerationSettings, PARAM_RANGES

__version__ = "0.1.0"

__all__ = [
    'ExpressionError',
    'MalformedExpression',
    'ParameterSet',
    'UnknownParameter',
    'evaluate',
    'MeanderParams',
    'Segment',
    'SegmentVariant',
    'REFERENCE_PARAMS',
    'ChamferFailed',
    'ChamferRequest',
    'GeometryKernel',
    'KernelError',
    'PickResult',
    'RecordingKernel',
    'PickResolutionFailed',
    'apply_chamfer_to_picked_edge',
    'generate_segments',
    'build_meander',
    'generate_meander',
    'GenerationStatus',
    'GenerationResult',
    'Config',
    'GenerationSettings',
    'PARAM_RANGES',
]
