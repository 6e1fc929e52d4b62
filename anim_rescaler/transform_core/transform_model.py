"""Bone transform value type (position, rotation, scale) and composition."""
import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, field_validator

from anim_rescaler.transform_core.quaternion_model import Quaternion


class Transform(BaseModel):
    """
    Local transform of a bone at one instant: translate, rotate, scale.

    Immutable - the vector fields are stored as read-only copies.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    position: NDArray[np.float64]  # (3,)
    rotation: Quaternion
    scale: NDArray[np.float64]  # (3,)

    @field_validator("position", "scale", mode="before")
    @classmethod
    def validate_vec3_shape(cls, v: object) -> NDArray[np.float64]:
        arr = np.array(v, dtype=np.float64)
        if arr.shape != (3,):
            raise ValueError(f"Expected shape (3,), got {arr.shape}")
        arr.setflags(write=False)
        return arr

    @classmethod
    def identity(cls) -> "Transform":
        return cls(position=np.zeros(3), rotation=Quaternion.identity(), scale=np.ones(3))

    @classmethod
    def from_values(
        cls,
        position: list[float] | NDArray[np.float64],
        rotation_wxyz: list[float] | NDArray[np.float64] | None = None,
        scale: list[float] | NDArray[np.float64] | None = None,
    ) -> "Transform":
        return cls(
            position=position,
            rotation=Quaternion.identity() if rotation_wxyz is None else Quaternion.from_wxyz(rotation_wxyz),
            scale=np.ones(3) if scale is None else scale,
        )

    def transform_point(self, point: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map a point from this transform's local space into its parent space."""
        return self.rotation.rotate_vector(self.scale * np.asarray(point, dtype=np.float64)) + self.position

    @property
    def homogeneous_matrix(self) -> NDArray[np.float64]:
        """4x4 matrix from local space to parent space."""
        T = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.rotation.to_rotation_matrix() * self.scale[np.newaxis, :]
        T[:3, 3] = self.position
        return T

    def is_close(self, other: "Transform", atol: float = 1e-9) -> bool:
        return (
            np.allclose(self.position, other.position, atol=atol)
            and self.rotation.is_same_rotation(other.rotation, atol=atol)
            and np.allclose(self.scale, other.scale, atol=atol)
        )


def compose(child: Transform, parent: Transform) -> Transform:
    """
    Express `child`'s local transform in `parent`'s space.

    `parent` is applied after `child`: a point p maps to parent(child(p)).
    Not commutative.
    """
    return Transform(
        position=parent.rotation.rotate_vector(parent.scale * child.position) + parent.position,
        rotation=parent.rotation * child.rotation,
        scale=child.scale * parent.scale,
    )
