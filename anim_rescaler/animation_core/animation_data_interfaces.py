"""Abstract interfaces the rescale pipeline reads animation data from and writes it to."""

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray

from anim_rescaler.animation_core.animation_track_model import AnimationClip, AnimationTrack
from anim_rescaler.animation_core.skeleton_model import Bone
from anim_rescaler.rescale_core.rescale_errors import TrackLengthMismatchError, UnknownBoneError
from anim_rescaler.transform_core.quaternion_model import Quaternion


class SkeletonReferenceProvider(ABC):
    @abstractmethod
    def get_bones(self) -> list[Bone]:
        """Bones in skeleton order with their reference-pose transforms. Bone 0 is the root."""
        pass


class AnimationDataSource(ABC):
    @abstractmethod
    def get_key_count(self) -> int:
        """Number of keyframes shared by every bone track (>= 0)."""
        pass

    @abstractmethod
    def get_bone_track(self, bone_name: str) -> AnimationTrack:
        """
        Keyframed transforms for one bone.

        Raises:
            UnknownBoneError: If the animation has no track for bone_name
        """
        pass


class AnimationDataSink(ABC):
    @abstractmethod
    def set_bone_track(
        self,
        bone_name: str,
        positions: NDArray[np.float64],
        rotations: list[Quaternion],
        scales: NDArray[np.float64],
    ) -> None:
        """
        Replace a bone's entire track.

        All three channels must have exactly get_key_count() entries.

        Raises:
            TrackLengthMismatchError: If any channel has the wrong length
            UnknownBoneError: If the animation has no such bone
        """
        pass


class AnimationAsset(SkeletonReferenceProvider, AnimationDataSource, AnimationDataSink, ABC):
    """
    Capability interface for anything that carries a skeleton and bone tracks.

    Callers use this instead of switching on concrete asset classes.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    def get_bone_tracks(self) -> dict[str, AnimationTrack]:
        return {bone.name: self.get_bone_track(bone.name) for bone in self.get_bones()}

    def set_bone_tracks(self, tracks: dict[str, AnimationTrack]) -> None:
        for bone_name, track in tracks.items():
            self.set_bone_track(bone_name, track.positions, track.rotations, track.scales)


class ClipAnimationAsset(AnimationAsset):
    """In-memory animation asset backed by an immutable AnimationClip."""

    def __init__(self, clip: AnimationClip) -> None:
        self._clip = clip
        self.write_count = 0

    @property
    def clip(self) -> AnimationClip:
        return self._clip

    @property
    def name(self) -> str:
        return self._clip.name

    def rename(self, name: str) -> None:
        self._clip = self._clip.renamed(name)

    def get_bones(self) -> list[Bone]:
        return list(self._clip.skeleton.bones)

    def get_key_count(self) -> int:
        return self._clip.key_count

    def get_bone_track(self, bone_name: str) -> AnimationTrack:
        if bone_name not in self._clip.tracks:
            raise UnknownBoneError(bone_name=bone_name, available=list(self._clip.tracks.keys()))
        return self._clip.tracks[bone_name]

    def set_bone_track(
        self,
        bone_name: str,
        positions: NDArray[np.float64],
        rotations: list[Quaternion],
        scales: NDArray[np.float64],
    ) -> None:
        if bone_name not in self._clip.tracks:
            raise UnknownBoneError(bone_name=bone_name, available=list(self._clip.tracks.keys()))

        key_count = self._clip.key_count
        for channel in (positions, rotations, scales):
            if len(channel) != key_count:
                raise TrackLengthMismatchError(bone_name=bone_name, expected=key_count, actual=len(channel))

        track = AnimationTrack(positions=positions, rotations=list(rotations), scales=scales)
        self._clip = self._clip.with_track(bone_name, track)
        self.write_count += 1
