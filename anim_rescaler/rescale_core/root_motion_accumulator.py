"""Accumulates a bone chain's scaled transforms per key and rebuilds the root track from it."""
import logging

from anim_rescaler.animation_core.animation_track_model import AnimationTrack
from anim_rescaler.rescale_core.rescale_errors import TrackLengthMismatchError
from anim_rescaler.transform_core.quaternion_model import axis_orientation
from anim_rescaler.transform_core.transform_model import Transform, compose

logger = logging.getLogger(__name__)


class RootMotionAccumulator:
    """
    Per-key running composition of the chain bones (root -> delta -> start).

    Chain bones must be fed in ascending bone order for each key; each one is
    nested inside everything accumulated before it:

        accumulated[k] = compose(child=bone_transform, parent=accumulated[k])
    """

    def __init__(self, key_count: int, chain_indices: list[int]) -> None:
        if key_count < 0:
            raise ValueError(f"key_count must be >= 0, got {key_count}")
        if chain_indices != sorted(set(chain_indices)):
            raise ValueError(f"chain_indices must be unique and ascending, got {chain_indices}")
        self.key_count = key_count
        self.chain_indices = list(chain_indices)
        self.accumulated: list[Transform] = [Transform.identity() for _ in range(key_count)]

    def in_chain(self, bone_index: int) -> bool:
        return bone_index in self.chain_indices

    def accumulate(self, bone_index: int, key_index: int, scaled_transform: Transform) -> None:
        """Fold one chain bone's scaled transform into the key's accumulator. Non-chain bones are ignored."""
        if not self.in_chain(bone_index):
            return
        self.accumulated[key_index] = compose(child=scaled_transform, parent=self.accumulated[key_index])

    def reconstruct_root_track(self, original_root_track: AnimationTrack, root_name: str = "root") -> AnimationTrack:
        """
        Re-express the root track relative to the chain's accumulated facing frame.

        For each key:
            translation = root.position - accumulated.position
            facing      = axis_orientation(accumulated.rotation)^-1
            position    = facing.rotate(translation)
            rotation    = facing * root.rotation
            scale       = root.scale
        """
        if original_root_track.key_count != self.key_count:
            raise TrackLengthMismatchError(
                bone_name=root_name,
                expected=self.key_count,
                actual=original_root_track.key_count,
            )

        transforms: list[Transform] = []
        for key_index in range(self.key_count):
            root_transform = original_root_track[key_index]
            chain_transform = self.accumulated[key_index]

            translation = root_transform.position - chain_transform.position
            facing = axis_orientation(chain_transform.rotation).inverse()

            transforms.append(Transform(
                position=facing.rotate_vector(translation),
                rotation=facing * root_transform.rotation,
                scale=root_transform.scale,
            ))

        logger.debug(f"Rebuilt root track '{root_name}' over {self.key_count} keys from chain {self.chain_indices}")
        return AnimationTrack.from_transforms(transforms)
