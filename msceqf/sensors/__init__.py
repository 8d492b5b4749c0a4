"""Sensor records and dataset parsing.

Main components:
    - Imu, Groundtruth, CameraRecord: one-sample records
    - DataParser: reader of IMU, groundtruth and image CSV logs
"""

from .data_parser import DataParser, column_indices, iter_rows, tokenize_line
from .types import CameraRecord, Groundtruth, Imu

__all__ = [
    "Imu",
    "Groundtruth",
    "CameraRecord",
    "DataParser",
    "tokenize_line",
    "column_indices",
    "iter_rows",
]
