"""Configuration for the MSCEqF core.

Configuration is held in frozen dataclasses validated on construction and
can be loaded from a YAML file:

    symmetry:
      gravity_magnitude: 9.81
    parser:
      delimiter: ","
      time_offset: 0.0
      imu_header_titles: ["#timestamp [ns]", "w_RS_S_x [rad s^-1]", ...]
      groundtruth_header_titles: [...]
      image_header_titles: ["#timestamp [ns]", "filename"]

Every section and key is optional; missing values take the defaults below,
which match the EuRoC MAV dataset layout.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np
import yaml

logger = logging.getLogger(__name__)

# Standard gravity magnitude in m/s²
DEFAULT_GRAVITY_MAGNITUDE = 9.81

# Admissible groundtruth title counts: pose, + velocity, + gyro bias, + accel bias
GROUNDTRUTH_TITLE_COUNTS = (8, 11, 14, 17)

EUROC_IMU_TITLES = (
    "#timestamp [ns]",
    "w_RS_S_x [rad s^-1]",
    "w_RS_S_y [rad s^-1]",
    "w_RS_S_z [rad s^-1]",
    "a_RS_S_x [m s^-2]",
    "a_RS_S_y [m s^-2]",
    "a_RS_S_z [m s^-2]",
)

EUROC_GROUNDTRUTH_TITLES = (
    "#timestamp",
    "q_RS_x []",
    "q_RS_y []",
    "q_RS_z []",
    "q_RS_w []",
    "p_RS_R_x [m]",
    "p_RS_R_y [m]",
    "p_RS_R_z [m]",
    "v_RS_R_x [m s^-1]",
    "v_RS_R_y [m s^-1]",
    "v_RS_R_z [m s^-1]",
    "b_w_RS_S_x [rad s^-1]",
    "b_w_RS_S_y [rad s^-1]",
    "b_w_RS_S_z [rad s^-1]",
    "b_a_RS_S_x [m s^-2]",
    "b_a_RS_S_y [m s^-2]",
    "b_a_RS_S_z [m s^-2]",
)

EUROC_IMAGE_TITLES = ("#timestamp [ns]", "filename")


@dataclass(frozen=True)
class SymmetryConfig:
    """
    Parameters of the symmetry and of the IMU kinematics.

    Attributes:
        gravity_magnitude: Magnitude of gravity in m/s². Gravity points
                           along -z of the global frame.
    """

    gravity_magnitude: float = DEFAULT_GRAVITY_MAGNITUDE

    def __post_init__(self) -> None:
        g = float(self.gravity_magnitude)
        if not np.isfinite(g) or g <= 0:
            raise ValueError(f"gravity_magnitude must be positive, got {g}")
        object.__setattr__(self, "gravity_magnitude", g)


@dataclass(frozen=True)
class DataParserConfig:
    """
    Layout of the CSV sensor logs.

    Attributes:
        delimiter: Single-character column delimiter.
        imu_header_titles: Column titles of (t, ωx, ωy, ωz, ax, ay, az).
        groundtruth_header_titles: Column titles of (t, qx, qy, qz, qw,
                                   px, py, pz) optionally followed by
                                   velocity, gyro bias and accel bias.
        image_header_titles: Column titles of (t, filename).
        time_offset: Seconds added to every camera timestamp.

    Notes:
        - Titles are matched case-insensitively after trimming spaces.
    """

    delimiter: str = ","
    imu_header_titles: Tuple[str, ...] = EUROC_IMU_TITLES
    groundtruth_header_titles: Tuple[str, ...] = EUROC_GROUNDTRUTH_TITLES
    image_header_titles: Tuple[str, ...] = EUROC_IMAGE_TITLES
    time_offset: float = 0.0

    def __post_init__(self) -> None:
        """Validate title counts and normalize titles."""
        if not isinstance(self.delimiter, str) or len(self.delimiter) != 1:
            raise ValueError(
                f"delimiter must be a single character, got {self.delimiter!r}"
            )

        for name, counts in (
            ("imu_header_titles", (7,)),
            ("groundtruth_header_titles", GROUNDTRUTH_TITLE_COUNTS),
            ("image_header_titles", (2,)),
        ):
            titles = tuple(str(s).strip().lower() for s in getattr(self, name))
            if len(titles) not in counts:
                raise ValueError(
                    f"{name} must have {' or '.join(map(str, counts))} entries, "
                    f"got {len(titles)}"
                )
            object.__setattr__(self, name, titles)

        time_offset = float(self.time_offset)
        if not np.isfinite(time_offset):
            raise ValueError(f"time_offset must be finite, got {time_offset}")
        object.__setattr__(self, "time_offset", time_offset)


@dataclass(frozen=True)
class MSCEqFConfig:
    """Top-level configuration."""

    symmetry: SymmetryConfig = field(default_factory=SymmetryConfig)
    parser: DataParserConfig = field(default_factory=DataParserConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MSCEqFConfig":
        """
        Build a configuration from a nested dictionary.

        Args:
            data: Mapping with optional 'symmetry' and 'parser' sections.

        Returns:
            Validated MSCEqFConfig.

        Raises:
            ValueError: On unknown sections or keys, or invalid values.
        """
        data = dict(data or {})
        sections = {"symmetry": SymmetryConfig, "parser": DataParserConfig}

        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ValueError(f"Section '{name}' must be a mapping")
            allowed = {f.name for f in fields(section_cls)}
            unknown = set(section) - allowed
            if unknown:
                raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
            kwargs[name] = section_cls(**section)

        return cls(**kwargs)


def load_config(config_path: Union[str, Path]) -> MSCEqFConfig:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Validated MSCEqFConfig. An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        yaml.YAMLError: If the file is malformed.
        ValueError: If the content is not a valid configuration.

    Example:
        >>> config = load_config("configs/euroc.yaml")
        >>> config.symmetry.gravity_magnitude
        9.81
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    config = MSCEqFConfig.from_dict(data)
    logger.info("Loaded configuration from %s", config_path)
    return config
