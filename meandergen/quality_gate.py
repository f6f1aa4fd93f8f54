"""
Quality gate module for solid validation.

Provides B-Rep validation and a volume sanity check for the
generated meander solids.
"""

from dataclasses import dataclass, field
from typing import Iterable, List
from enum import Enum


class ValidationStatus(Enum):
    """Validation result status."""
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class ValidationResult:
    """Result of shape validation."""
    status: ValidationStatus
    is_valid: bool
    errors: List[str]
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def valid(cls) -> 'ValidationResult':
        return cls(ValidationStatus.VALID, True, [], [])

    @classmethod
    def invalid(cls, errors: List[str]) -> 'ValidationResult':
        return cls(ValidationStatus.INVALID, False, errors, [])


def validate_shape(shape, name: str = "shape", min_volume: float = 1e-12) -> ValidationResult:
    """
    Validate one solid.

    Checks:
    - Shape is not null
    - B-Rep validity (BRepCheck_Analyzer)
    - Volume is positive
    """
    errors = []
    warnings = []

    if shape is None:
        return ValidationResult.invalid([f"{name}: shape is null"])

    if hasattr(shape, 'wrapped'):
        try:
            from OCP.BRepCheck import BRepCheck_Analyzer
            analyzer = BRepCheck_Analyzer(shape.wrapped)
            if not analyzer.IsValid():
                errors.append(f"{name}: B-Rep is invalid")
        except ImportError as e:
            warnings.append(f"{name}: could not perform B-Rep check: {e}")

    volume = getattr(shape, 'volume', None)
    if volume is not None and volume <= min_volume:
        errors.append(f"{name}: volume {volume} is not positive")

    result = ValidationResult.invalid(errors) if errors else ValidationResult.valid()
    result.warnings = warnings
    return result


def validate_shapes(named_shapes: Iterable) -> ValidationResult:
    """Validate (name, shape) pairs and merge the findings."""
    errors = []
    warnings = []
    for name, shape in named_shapes:
        r = validate_shape(shape, name)
        errors.extend(r.errors)
        warnings.extend(r.warnings)

    result = ValidationResult.invalid(errors) if errors else ValidationResult.valid()
    result.warnings = warnings
    return result
