"""Observed trajectory samples.

A Dataset holds paired (time, position) samples of one trajectory. The first
sample is the initial condition of every simulated ODE.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when trajectory samples cannot form a Dataset."""

    pass


class Dataset:
    """Read-only paired time/position samples.

    Arrays are copied on construction and marked read-only, so one Dataset
    can be shared by concurrent fitness evaluations.
    """

    MIN_SAMPLES = 2

    def __init__(self, time_data, position_data) -> None:
        """
        Validate and store trajectory samples.

        Args:
            time_data: Strictly increasing sample times
            position_data: Observed positions, one per sample time

        Raises:
            ValidationError: If lengths differ, fewer than two samples are
                given, the input is not one-dimensional, a value is not finite,
                or time is not strictly increasing
        """
        try:
            time_arr = np.array(time_data, dtype=np.float64)
            position_arr = np.array(position_data, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Samples must be real numbers: {e}") from e

        self._validate(time_arr, position_arr)

        time_arr.flags.writeable = False
        position_arr.flags.writeable = False
        self._time = time_arr
        self._position = position_arr

    @classmethod
    def _validate(cls, time_arr: np.ndarray, position_arr: np.ndarray) -> None:
        if time_arr.ndim != 1 or position_arr.ndim != 1:
            cls._fail(
                f"time_data and position_data must be one-dimensional "
                f"(got shapes {time_arr.shape} and {position_arr.shape})"
            )
        if len(time_arr) != len(position_arr):
            cls._fail(
                f"time_data and position_data must have equal lengths "
                f"(got {len(time_arr)} and {len(position_arr)})"
            )
        if len(time_arr) < cls.MIN_SAMPLES:
            cls._fail(f"At least {cls.MIN_SAMPLES} samples required, got {len(time_arr)}")
        if not (np.isfinite(time_arr).all() and np.isfinite(position_arr).all()):
            cls._fail("time_data and position_data must be finite")

        steps = np.diff(time_arr)
        if (steps <= 0).any():
            bad = int(np.argmax(steps <= 0)) + 1
            cls._fail(f"time_data must be strictly increasing (violated at index {bad})")

    @staticmethod
    def _fail(message: str) -> None:
        logger.warning("Invalid dataset: %s", message)
        raise ValidationError(message)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        time_column: str = "time",
        position_column: str = "position",
    ) -> "Dataset":
        """Build a Dataset from two DataFrame columns."""
        missing = [c for c in (time_column, position_column) if c not in df.columns]
        if missing:
            raise ValidationError(f"Missing columns: {missing}. Available: {list(df.columns)}")
        return cls(df[time_column].to_numpy(), df[position_column].to_numpy())

    @classmethod
    def from_csv(
        cls,
        path: str | Path,
        time_column: str = "time",
        position_column: str = "position",
    ) -> "Dataset":
        """Load a Dataset from a CSV file with a header row."""
        try:
            df = pd.read_csv(path)
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            raise ValidationError(f"Could not parse {path}: {e}") from e
        logger.info("Loaded %d samples from %s", len(df), path)
        return cls.from_frame(df, time_column, position_column)

    @property
    def time_data(self) -> np.ndarray:
        return self._time

    @property
    def position_data(self) -> np.ndarray:
        return self._position

    @property
    def initial_condition(self) -> tuple[float, float]:
        """(t0, x0) for every simulated trajectory."""
        return float(self._time[0]), float(self._position[0])

    @property
    def n_samples(self) -> int:
        return len(self._time)

    def __len__(self) -> int:
        return self.n_samples

    def to_frame(self) -> pd.DataFrame:
        """Get samples as a DataFrame with time and position columns."""
        return pd.DataFrame({"time": self._time, "position": self._position})

    def __repr__(self) -> str:
        return (
            f"Dataset(n_samples={self.n_samples}, "
            f"t=[{self._time[0]:g}, {self._time[-1]:g}])"
        )
