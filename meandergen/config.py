"""
Configuration module for YAML-based parameter management.

Handles reading/writing of config files with parameter ranges
and generation settings (turns, naming, chamfer).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import yaml
import random

from .geometry import MeanderParams, REFERENCE_PARAMS, SEGMENT_PREFIX


# Parameter range definitions used for random mode
PARAM_RANGES: Dict[str, Dict[str, float]] = {
    'x_patch1': {'min': -5.0, 'max': 5.0, 'description': 'patch centre X'},
    'y_patch1': {'min': -5.0, 'max': 5.0, 'description': 'patch centre Y'},
    'l_patch': {'min': 8.0, 'max': 40.0, 'description': 'patch side length'},
    'w_meander': {'min': 0.2, 'max': 2.0, 'description': 'trace width'},
    'w_meander_gap': {'min': 0.1, 'max': 1.0, 'description': 'gap between legs'},
    'w_chamfer_patch': {'min': 0.0, 'max': 10.0, 'description': 'margin from patch edge'},
    'ts': {'min': 0.0, 'max': 1.6, 'description': 'substrate thickness'},
    'tp': {'min': 0.035, 'max': 1.0, 'description': 'trace thickness'},
}


@dataclass
class ParameterConfig:
    """Single parameter configuration."""
    value: float
    min: float
    max: float
    description: str

    def to_dict(self) -> dict:
        return {
            'description': self.description,
            'value': self.value,
            'min': self.min,
            'max': self.max,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'ParameterConfig':
        return cls(
            value=float(d['value']),
            min=float(d.get('min', d['value'])),
            max=float(d.get('max', d['value'])),
            description=d.get('description', ''),
        )

    def random_value(self, rng: Optional[random.Random] = None) -> float:
        """Generate random value within range."""
        return (rng or random).uniform(self.min, self.max)

    def clamp(self, value: float) -> float:
        """Clamp value to range."""
        return max(self.min, min(self.max, value))


@dataclass
class GenerationSettings:
    """How segments are named, placed and chamfered."""
    turns: int = 3
    component: str = "Antenna"
    material: str = "copper"
    name_prefix: str = SEGMENT_PREFIX
    chamfer_value: str = "w_meander_gap"  # expression, kept symbolic
    chamfer_angle: float = 45.0           # degrees

    def to_dict(self) -> dict:
        return {
            'turns': self.turns,
            'component': self.component,
            'material': self.material,
            'name_prefix': self.name_prefix,
            'chamfer_value': self.chamfer_value,
            'chamfer_angle': self.chamfer_angle,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'GenerationSettings':
        defaults = cls()
        return cls(
            turns=int(d.get('turns', defaults.turns)),
            component=str(d.get('component', defaults.component)),
            material=str(d.get('material', defaults.material)),
            name_prefix=str(d.get('name_prefix', defaults.name_prefix)),
            chamfer_value=str(d.get('chamfer_value', defaults.chamfer_value)),
            chamfer_angle=float(d.get('chamfer_angle', defaults.chamfer_angle)),
        )


@dataclass
class Config:
    """Main configuration container."""
    version: str = "1.0"
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    parameters: Dict[str, ParameterConfig] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'generation': self.generation.to_dict(),
            'parameters': {k: v.to_dict() for k, v in self.parameters.items()},
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'Config':
        d = d or {}
        params = {}
        for k, v in (d.get('parameters') or {}).items():
            params[k] = ParameterConfig.from_dict(v)
        return cls(
            version=str(d.get('version', '1.0')),
            generation=GenerationSettings.from_dict(d.get('generation') or {}),
            parameters=params,
        )

    def save(self, path: Path) -> None:
        """Save config to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True,
                      default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> 'Config':
        """Load config from YAML file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)

    def get_param_dict(self) -> dict:
        """Get parameter values as simple dict."""
        return {k: v.value for k, v in self.parameters.items()}

    def meander_params(self) -> MeanderParams:
        """Parameters as MeanderParams; missing names keep their defaults."""
        return MeanderParams.from_dict(self.get_param_dict())

    def randomize_parameters(self, seed: Optional[int] = None) -> None:
        """Randomize all parameters within their ranges."""
        rng = random.Random(seed) if seed is not None else None
        for param in self.parameters.values():
            param.value = param.random_value(rng)


def create_config(params: MeanderParams,
                  settings: Optional[GenerationSettings] = None) -> Config:
    """Create Config with current values and ranges from PARAM_RANGES."""
    current = params.to_dict()
    parameters = {}

    for name, ranges in PARAM_RANGES.items():
        value = current.get(name, (ranges['min'] + ranges['max']) / 2)
        parameters[name] = ParameterConfig(
            value=value,
            min=min(ranges['min'], value),
            max=max(ranges['max'], value),
            description=ranges['description'],
        )

    return Config(generation=settings or GenerationSettings(), parameters=parameters)


def create_default_config() -> Config:
    """Default config built from the reference parameters."""
    return create_config(REFERENCE_PARAMS)


def get_config_path() -> Path:
    """Get default config file path."""
    return Path('config.yaml')
