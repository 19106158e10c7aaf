"""Trajectory data for ODE discovery."""

from odeforge.data.dataset import Dataset, ValidationError

__all__ = ["Dataset", "ValidationError"]
