"""Unit quaternion class for bone rotations."""
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from anim_rescaler.transform_core.vector_helpers import SMALL_NUMBER, as_vec3, safe_normalize

# Canonical "forward" axis that facing frames are measured against
REFERENCE_AXIS = np.array([1.0, 0.0, 0.0])

# Dot products below this count as antiparallel in shortest-arc construction
ANTIPARALLEL_THRESHOLD = -1.0 + 1e-9


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion for rotations. Convention: scalar-first [w, x, y, z]."""

    w: float
    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        norm = np.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2)
        if norm < 1e-10:
            raise ValueError("Cannot normalize zero quaternion")
        # frozen dataclass, so normalization has to go through object.__setattr__
        object.__setattr__(self, "w", float(self.w / norm))
        object.__setattr__(self, "x", float(self.x / norm))
        object.__setattr__(self, "y", float(self.y / norm))
        object.__setattr__(self, "z", float(self.z / norm))

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls(w=1.0, x=0.0, y=0.0, z=0.0)

    @classmethod
    def from_wxyz(cls, wxyz: NDArray[np.float64] | list[float]) -> "Quaternion":
        w, x, y, z = (float(c) for c in wxyz)
        return cls(w=w, x=x, y=y, z=z)

    @classmethod
    def from_axis_angle(cls, axis: NDArray[np.float64], angle: float) -> "Quaternion":
        """Rotation of `angle` radians (right-handed) about `axis`."""
        unit_axis = safe_normalize(axis)
        if not unit_axis.any():
            raise ValueError(f"Rotation axis must be non-zero, got {axis}")
        sin_half = np.sin(angle / 2.0)
        return cls(
            w=np.cos(angle / 2.0),
            x=unit_axis[0] * sin_half,
            y=unit_axis[1] * sin_half,
            z=unit_axis[2] * sin_half,
        )

    @classmethod
    def between(cls, v0: NDArray[np.float64], v1: NDArray[np.float64]) -> "Quaternion":
        """
        Shortest-arc rotation taking direction v0 onto direction v1.

        Zero-length inputs give identity. Antiparallel inputs have no unique
        shortest arc; a half turn about +Z is used, falling back to +Y when
        the vectors lie along Z.
        """
        a = safe_normalize(v0)
        b = safe_normalize(v1)
        if not a.any() or not b.any():
            return cls.identity()

        dot = float(np.dot(a, b))
        if dot < ANTIPARALLEL_THRESHOLD:
            half_turn_axis = np.array([0.0, 0.0, 1.0])
            if abs(float(np.dot(a, half_turn_axis))) > 1.0 - SMALL_NUMBER:
                half_turn_axis = np.array([0.0, 1.0, 0.0])
            return cls.from_axis_angle(half_turn_axis, np.pi)

        cross = np.cross(a, b)
        return cls(w=1.0 + dot, x=cross[0], y=cross[1], z=cross[2])

    def to_wxyz(self) -> NDArray[np.float64]:
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    def conjugate(self) -> "Quaternion":
        return Quaternion(w=self.w, x=-self.x, y=-self.y, z=-self.z)

    def inverse(self) -> "Quaternion":
        return self.conjugate()

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        """
        Hamilton product. `a * b` is the rotation that applies `b` first, then `a`.
        """
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w=w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            x=w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            y=w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            z=w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        )

    def rotate_vector(self, v: NDArray[np.float64]) -> NDArray[np.float64]:
        v = as_vec3(v)
        u = np.array([self.x, self.y, self.z])
        uv = np.cross(u, v)
        uuv = np.cross(u, uv)
        return v + 2.0 * (self.w * uv + uuv)

    def axis_x(self) -> NDArray[np.float64]:
        """Local X axis of this rotation, in the parent frame."""
        return self.rotate_vector(REFERENCE_AXIS)

    def to_rotation_matrix(self) -> NDArray[np.float64]:
        """Convert quaternion to 3x3 rotation matrix."""
        w, x, y, z = self.w, self.x, self.y, self.z
        return np.array([
            [1 - 2 * (y**2 + z**2),     2 * (x * y - z * w),     2 * (x * z + y * w)],
            [    2 * (x * y + z * w), 1 - 2 * (x**2 + z**2),     2 * (y * z - x * w)],
            [    2 * (x * z - y * w),     2 * (y * z + x * w), 1 - 2 * (x**2 + y**2)],
        ])

    def dot(self, other: "Quaternion") -> float:
        """Compute dot product of two quaternions."""
        return self.w * other.w + self.x * other.x + self.y * other.y + self.z * other.z

    def is_same_rotation(self, other: "Quaternion", atol: float = 1e-9) -> bool:
        """True if both represent the same rotation (q and -q are equivalent)."""
        return bool(np.isclose(abs(self.dot(other)), 1.0, atol=atol))


def axis_orientation(rotation: Quaternion) -> Quaternion:
    """
    Facing frame of a rotation: the shortest rotation from +X to the rotation's X axis.

    Roll about the X axis is discarded, so the result depends only on where the
    rotation points +X.
    """
    return Quaternion.between(REFERENCE_AXIS, rotation.axis_x())


def z_rotation(angle_degrees: float) -> Quaternion:
    """Rotation about the vertical (Z) axis."""
    return Quaternion.from_axis_angle(np.array([0.0, 0.0, 1.0]), np.radians(angle_degrees))
