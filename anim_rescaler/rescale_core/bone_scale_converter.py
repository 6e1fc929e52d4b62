"""Per-key bone rescaling relative to the reference pose."""
import numpy as np
from numpy.typing import NDArray

from anim_rescaler.rescale_core.rescale_config import effective_scale_factor
from anim_rescaler.transform_core.quaternion_model import Quaternion, z_rotation
from anim_rescaler.transform_core.transform_model import Transform
from anim_rescaler.transform_core.vector_helpers import safe_normalize, subtract, vector_length

ROOT_BONE_INDEX = 0

# Correction applied to the root bone's rotation when unrotating
ROOT_UNROTATION_DEGREES = -90.0


def scale_bone_key(
    ref_location: NDArray[np.float64],
    anim_location: NDArray[np.float64],
    scale: float,
) -> NDArray[np.float64]:
    """
    Scale a bone's displacement from its reference location.

    The direction of (anim - ref) is kept; only its length is multiplied by
    `scale`. A zero displacement returns ref_location unchanged.

    Args:
        ref_location: (3,) reference-pose location
        anim_location: (3,) animated location at one key
        scale: displacement multiplier (> 0)

    Returns:
        (3,) scaled location
    """
    delta = subtract(anim_location, ref_location)
    direction = safe_normalize(delta)
    length = vector_length(delta)
    return np.asarray(ref_location, dtype=np.float64) + direction * (length * scale)


class BoneScaleConverter:
    """Converts one (bone, key) transform: scaled position, root unrotation, scale passed through."""

    def __init__(self, scale: float, unrotate_root: bool = False) -> None:
        # RescaleConfig has already substituted its scale_factor, so this only
        # changes (and logs) for converters built directly with a raw scale
        self.scale = effective_scale_factor(scale)
        self.unrotate_root = unrotate_root
        self.root_correction: Quaternion = z_rotation(ROOT_UNROTATION_DEGREES)

    def convert_rotation(self, bone_index: int, rotation: Quaternion) -> Quaternion:
        if self.unrotate_root and bone_index == ROOT_BONE_INDEX:
            return self.root_correction * rotation
        return rotation

    def convert_key(
        self,
        bone_index: int,
        ref_transform: Transform,
        anim_transform: Transform,
    ) -> Transform:
        return Transform(
            position=scale_bone_key(
                ref_location=ref_transform.position,
                anim_location=anim_transform.position,
                scale=self.scale,
            ),
            rotation=self.convert_rotation(bone_index, anim_transform.rotation),
            scale=anim_transform.scale,
        )
