"""
Configuration for the EKF-SLAM estimator.

A configuration is a frozen dataclass validated on construction. It can be
built directly, from a named preset, or from a JSON file of the form:

    {
        "process_noise": {"sigma_x": 0.05, "sigma_y": 0.05, "sigma_theta": 0.02},
        "measurement_noise": {"sigma_range": 0.1, "sigma_bearing": 0.02},
        "initial_landmark_uncertainty": 1000.0
    }

Keys that are left out take their default value; unknown keys are an error.
"""

from dataclasses import asdict, dataclass, field, fields
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import numpy as np

from slamcore.models.measurement_models import MeasurementNoise
from slamcore.models.motion_models import ANGULAR_VELOCITY_EPSILON, ProcessNoise
from slamcore.slam.landmark_manager import DEFAULT_INITIAL_UNCERTAINTY
from slamcore.utils.linalg import SINGULAR_EPSILON


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS: Dict[str, Dict[str, Any]] = {
    'baseline': {
        'description': 'Nominal wheel odometry and a range-bearing sensor',
        'process_noise': {'sigma_x': 0.05, 'sigma_y': 0.05, 'sigma_theta': 0.02},
        'measurement_noise': {'sigma_range': 0.1, 'sigma_bearing': 0.02},
    },
    'precise': {
        'description': 'Low-noise odometry and sensor (e.g. motion-capture testbed)',
        'process_noise': {'sigma_x': 0.01, 'sigma_y': 0.01, 'sigma_theta': 0.005},
        'measurement_noise': {'sigma_range': 0.02, 'sigma_bearing': 0.005},
    },
    'noisy': {
        'description': 'Slipping odometry and a range-dependent sensor',
        'process_noise': {
            'sigma_x': 0.2, 'sigma_y': 0.2, 'sigma_theta': 0.05, 'motion_scale': 0.1,
        },
        'measurement_noise': {'sigma_range': 0.3, 'sigma_bearing': 0.05, 'range_scale': 0.01},
    },
}


@dataclass(frozen=True)
class EKFSlamConfig:
    """
    Estimator configuration.

    Attributes:
        process_noise: Motion model noise Q.
        measurement_noise: Sensor noise R.
        initial_landmark_uncertainty: Variance assigned to each coordinate
            of a newly committed landmark.
        singular_epsilon: Normalized determinant (|det| over the product of
            row norms) below which the innovation covariance is treated as
            singular. Independent of the sensor noise scale.
        angular_velocity_epsilon: |ω| below which the straight-line motion
            limit is used.
        use_joseph_form: Use the Joseph covariance update.

    Example:
        >>> config = EKFSlamConfig.from_preset('precise')
        >>> config.measurement_noise.sigma_range
        0.02
    """

    process_noise: ProcessNoise = field(default_factory=ProcessNoise)
    measurement_noise: MeasurementNoise = field(default_factory=MeasurementNoise)
    initial_landmark_uncertainty: float = DEFAULT_INITIAL_UNCERTAINTY
    singular_epsilon: float = SINGULAR_EPSILON
    angular_velocity_epsilon: float = ANGULAR_VELOCITY_EPSILON
    use_joseph_form: bool = True

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if not isinstance(self.process_noise, ProcessNoise):
            raise TypeError(f"process_noise must be ProcessNoise, got {type(self.process_noise)}")
        if not isinstance(self.measurement_noise, MeasurementNoise):
            raise TypeError(
                f"measurement_noise must be MeasurementNoise, got {type(self.measurement_noise)}"
            )
        if not np.isfinite(self.initial_landmark_uncertainty) or self.initial_landmark_uncertainty < 0:
            raise ValueError(
                "initial_landmark_uncertainty must be finite and non-negative, "
                f"got {self.initial_landmark_uncertainty}"
            )
        if not self.singular_epsilon > 0:
            raise ValueError(f"singular_epsilon must be positive, got {self.singular_epsilon}")
        if not self.angular_velocity_epsilon > 0:
            raise ValueError(
                f"angular_velocity_epsilon must be positive, got {self.angular_velocity_epsilon}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EKFSlamConfig":
        """
        Build a configuration from a (JSON-style) nested mapping.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        data = dict(data)
        data.pop('description', None)
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = dict(data)
        if 'process_noise' in data:
            kwargs['process_noise'] = _build(ProcessNoise, data['process_noise'], 'process_noise')
        if 'measurement_noise' in data:
            kwargs['measurement_noise'] = _build(
                MeasurementNoise, data['measurement_noise'], 'measurement_noise'
            )
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "EKFSlamConfig":
        """Load a configuration from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_preset(cls, name: str) -> "EKFSlamConfig":
        """Build one of the named PRESETS."""
        if name not in PRESETS:
            raise ValueError(f"Unknown preset '{name}', choose from {sorted(PRESETS)}")
        return cls.from_dict(PRESETS[name])

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain-dict form, inverse of from_dict()."""
        return asdict(self)

    def to_json(self, path: Union[str, Path]) -> None:
        """Write the configuration as JSON."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def _build(model_cls, values: Any, name: str):
    if isinstance(values, model_cls):
        return values
    if not isinstance(values, Mapping):
        raise ValueError(f"{name} must be a mapping, got {type(values).__name__}")
    known = {f.name for f in fields(model_cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {name} keys: {sorted(unknown)}")
    return model_cls(**values)
