"""CSV parser for visual-inertial datasets.

Reads up to three files, each a header line followed by one sample per row:
    - IMU: t, ωx, ωy, ωz, ax, ay, az
    - groundtruth: t, qx, qy, qz, qw, px, py, pz [, v] [, b_g, b_a]
    - images: t, filename

Columns are located by matching the header against configured titles, so
files with shuffled or extra columns parse as well. Timestamps above 1e13
are taken as nanoseconds and converted to seconds.

Example:
    >>> parser = DataParser("imu.csv", "gt.csv", "images.csv")
    >>> parser.parse_and_check()
    >>> for t in parser.sensor_timestamps():
    ...     reading = parser.consume_sensor_reading_at(t)
"""

import logging
import os
import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np

from ..config import DataParserConfig
from ..lie import quat_normalize
from .types import CameraRecord, Groundtruth, Imu

logger = logging.getLogger(__name__)

NUMERIC_TOKEN = re.compile(
    r"^[+-]?((\d*\.\d+)|(\d+\.\d*)|(\d+))([eE][+-]?\d+)?$|^nan$"
)

# Timestamps above this value are nanoseconds
NANOSECOND_THRESHOLD = 1e13

PathLike = Union[str, Path]


def tokenize_line(line: str, delimiter: str = ",", numeric: bool = False) -> list:
    """
    Split one CSV line into lower-case tokens.

    Standalone '#' tokens are skipped and trailing carriage returns are
    stripped.

    Args:
        line: Raw line.
        delimiter: Column delimiter.
        numeric: Convert tokens to float ('nan' becomes NaN).

    Returns:
        List of floats if numeric, else list of strings.

    Raises:
        ValueError: If numeric and a token is not a number.
    """
    tokens = []
    for token in line.rstrip("\n").split(delimiter):
        if token == "#":
            continue
        token = token.rstrip("\r").lower()
        if numeric:
            token = token.strip()
            if not NUMERIC_TOKEN.match(token):
                raise ValueError(f"Malformed numeric token {token!r} in line {line!r}")
            tokens.append(float(token))
        else:
            tokens.append(token)
    return tokens


def column_indices(header: Sequence[str], titles: Sequence[str]) -> List[int]:
    """
    Locate each title in the header.

    Raises:
        ValueError: If a title is missing from the header.
    """
    header = [h.strip() for h in header]
    indices = []
    for title in titles:
        title = title.strip().lower()
        if title not in header:
            raise ValueError(f"Required column {title!r} missing from header {header}")
        indices.append(header.index(title))
    return indices


def to_seconds(t: float) -> float:
    return t / 1e9 if t > NANOSECOND_THRESHOLD else t


def iter_rows(
    path: PathLike, titles: Sequence[str], delimiter: str = ",", numeric: bool = True
) -> Iterator[list]:
    """
    Stream the rows of a CSV file, reordered to match titles.

    Blank lines are skipped.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: On a missing column, a malformed token or a short row.
    """
    with open(path, "r") as f:
        header = tokenize_line(f.readline(), delimiter)
        indices = column_indices(header, titles)
        width = max(indices) + 1
        for lineno, line in enumerate(f, start=2):
            if not line.strip():
                continue
            row = tokenize_line(line, delimiter, numeric)
            if len(row) < width:
                raise ValueError(
                    f"{path}:{lineno}: expected at least {width} columns, got {len(row)}"
                )
            yield [row[i] for i in indices]


class DataParser:
    """
    Reader of IMU, groundtruth and image logs.

    Attributes:
        imu_data: IMU samples sorted by time.
        groundtruth_data: Groundtruth samples sorted by time.
        image_data: Camera records sorted by time.

    An empty path skips the corresponding stream.
    """

    def __init__(
        self,
        imu_path: Optional[PathLike] = "",
        groundtruth_path: Optional[PathLike] = "",
        image_path: Optional[PathLike] = "",
        config: Optional[DataParserConfig] = None,
        image_folder: Optional[PathLike] = None,
    ):
        self.imu_path = imu_path or ""
        self.groundtruth_path = groundtruth_path or ""
        self.image_path = image_path or ""
        self.config = config if config is not None else DataParserConfig()
        self.image_folder = image_folder

        self.imu_data: List[Imu] = []
        self.groundtruth_data: List[Groundtruth] = []
        self.image_data: List[CameraRecord] = []

    def parse_and_check(self) -> None:
        """
        Clear the stored data, then read and validate every provided file.

        Raises:
            FileNotFoundError: If a provided file doesn't exist.
            ValueError: On a missing column or malformed content.
        """
        self.imu_data = []
        self.groundtruth_data = []
        self.image_data = []

        for label, path, parse in (
            ("Groundtruth", self.groundtruth_path, self._parse_groundtruth),
            ("Imu", self.imu_path, self._parse_imu),
            ("Image", self.image_path, self._parse_images),
        ):
            if not path:
                logger.info("%s data file not provided. Skipping", label)
                continue
            if not os.path.isfile(path):
                raise FileNotFoundError(f"Error opening {label} file: {path}")
            logger.info("Opening and reading: %s...", path)
            parse(path)

    def _parse_imu(self, path: PathLike) -> None:
        cfg = self.config
        for row in iter_rows(path, cfg.imu_header_titles, cfg.delimiter):
            self.imu_data.append(
                Imu(t=to_seconds(row[0]), gyro=row[1:4], accel=row[4:7])
            )
        self.imu_data.sort()
        logger.debug("Parsed %d IMU samples", len(self.imu_data))

    def _parse_groundtruth(self, path: PathLike) -> None:
        cfg = self.config
        titles = cfg.groundtruth_header_titles
        for row in iter_rows(path, titles, cfg.delimiter):
            qx, qy, qz, qw = row[1:5]
            q = np.array([qw, qx, qy, qz])
            if np.all(np.isfinite(q)):
                q = quat_normalize(q)
            gt = {"t": to_seconds(row[0]), "q": q, "p": row[5:8]}
            # 11: + velocity, 14: + biases, 17: + velocity and biases
            if len(titles) == 11:
                gt["v"] = row[8:11]
            elif len(titles) == 14:
                gt["b_g"], gt["b_a"] = row[8:11], row[11:14]
            elif len(titles) == 17:
                gt["v"] = row[8:11]
                gt["b_g"], gt["b_a"] = row[11:14], row[14:17]
            self.groundtruth_data.append(Groundtruth(**gt))
        self.groundtruth_data.sort()
        logger.debug("Parsed %d groundtruth samples", len(self.groundtruth_data))

    def _parse_images(self, path: PathLike) -> None:
        cfg = self.config
        for t_token, filename in iter_rows(
            path, cfg.image_header_titles, cfg.delimiter, numeric=False
        ):
            t_token = t_token.strip()
            if not NUMERIC_TOKEN.match(t_token):
                raise ValueError(f"Malformed image timestamp {t_token!r} in {path}")
            filename = filename.strip()
            if self.image_folder is not None:
                filename = os.path.join(self.image_folder, filename)
            self.image_data.append(
                CameraRecord(
                    t=to_seconds(float(t_token)) + cfg.time_offset, filename=filename
                )
            )
        self.image_data.sort()
        logger.debug("Parsed %d camera records", len(self.image_data))

    def sensor_timestamps(self) -> List[float]:
        """Sorted timestamps of all IMU and camera readings."""
        return sorted([imu.t for imu in self.imu_data] + [cam.t for cam in self.image_data])

    def consume_sensor_reading_at(self, t: float) -> Union[Imu, CameraRecord]:
        """
        Remove and return the sensor reading at time t.

        IMU readings take precedence over camera records sharing the same
        timestamp.

        Raises:
            LookupError: If no reading has timestamp t.
        """
        for data in (self.imu_data, self.image_data):
            for i, reading in enumerate(data):
                if reading.t == t:
                    return data.pop(i)
        raise LookupError(f"No sensor reading found at timestamp {t}")

    def closest_groundtruth(self, t: float) -> Groundtruth:
        """
        Groundtruth sample closest to time t.

        Picks between the first sample strictly after t and its
        predecessor.

        Raises:
            LookupError: If no groundtruth sample is after t.
        """
        for i, gt in enumerate(self.groundtruth_data):
            if gt.t > t:
                if i > 0 and abs(gt.t - t) > abs(self.groundtruth_data[i - 1].t - t):
                    return self.groundtruth_data[i - 1]
                return gt
        raise LookupError(f"No groundtruth data found at timestamp {t}")
