"""Small 3-vector helpers shared by the transform and rescale code."""
import numpy as np
from numpy.typing import NDArray

SMALL_NUMBER = 1e-8


def as_vec3(v: NDArray[np.float64] | list[float] | tuple[float, ...]) -> NDArray[np.float64]:
    """Coerce to a float64 (3,) array, raising on any other shape."""
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected shape (3,), got {arr.shape}")
    return arr


def subtract(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    return as_vec3(a) - as_vec3(b)


def vector_length(v: NDArray[np.float64]) -> float:
    return float(np.sqrt(np.dot(v, v)))


def safe_normalize(v: NDArray[np.float64], tolerance: float = SMALL_NUMBER) -> NDArray[np.float64]:
    """
    Unit vector of v, or the zero vector if v is (nearly) zero-length.

    Args:
        v: (3,) vector
        tolerance: threshold on the SQUARED length below which v counts as zero

    Returns:
        (3,) unit vector, or zeros - never NaN
    """
    v = as_vec3(v)
    length_squared = float(np.dot(v, v))
    if length_squared < tolerance:
        return np.zeros(3, dtype=np.float64)
    return v / np.sqrt(length_squared)
