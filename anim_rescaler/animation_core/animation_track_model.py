"""
Keyframed animation data model - Pydantic version.

Conceptual hierarchy:
- AnimationClip: every bone's track for one animation (K keys per bone)
- AnimationTrack: one bone's transforms across all keys (vertical slice)
- Transform: one bone at one key
"""
from typing import Iterator

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from anim_rescaler.animation_core.skeleton_model import Skeleton
from anim_rescaler.transform_core.quaternion_model import Quaternion
from anim_rescaler.transform_core.transform_model import Transform


def _as_key_array(v: object) -> NDArray[np.float64]:
    arr = np.array(v, dtype=np.float64)
    if arr.size == 0:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected shape (K, 3), got {arr.shape}")
    arr.setflags(write=False)
    return arr


class AnimationTrack(BaseModel):
    """
    One bone's keyframed transforms.

    Stored as three parallel channels so each can be written or compared on
    its own: positions (K, 3), rotations (K quaternions), scales (K, 3).
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    positions: NDArray[np.float64]  # (K, 3)
    rotations: list[Quaternion]  # (K,)
    scales: NDArray[np.float64]  # (K, 3)

    @field_validator("positions", "scales", mode="before")
    @classmethod
    def validate_key_array(cls, v: object) -> NDArray[np.float64]:
        return _as_key_array(v)

    @model_validator(mode="after")
    def validate_lengths(self) -> "AnimationTrack":
        n_positions = self.positions.shape[0]
        if len(self.rotations) != n_positions or self.scales.shape[0] != n_positions:
            raise ValueError(
                f"Channel lengths differ: positions {n_positions}, "
                f"rotations {len(self.rotations)}, scales {self.scales.shape[0]}"
            )
        return self

    @classmethod
    def from_transforms(cls, transforms: list[Transform]) -> "AnimationTrack":
        return cls(
            positions=[t.position for t in transforms],
            rotations=[t.rotation for t in transforms],
            scales=[t.scale for t in transforms],
        )

    @classmethod
    def constant(cls, transform: Transform, key_count: int) -> "AnimationTrack":
        """A track that holds one transform for every key."""
        return cls.from_transforms([transform] * key_count)

    def __len__(self) -> int:
        return len(self.rotations)

    def __getitem__(self, idx: int) -> Transform:
        return Transform(
            position=self.positions[idx],
            rotation=self.rotations[idx],
            scale=self.scales[idx],
        )

    def transforms(self) -> Iterator[Transform]:
        for idx in range(len(self)):
            yield self[idx]

    @property
    def key_count(self) -> int:
        return len(self.rotations)

    @property
    def rotations_wxyz(self) -> NDArray[np.float64]:
        """(K, 4) scalar-first quaternion components."""
        if not self.rotations:
            return np.zeros((0, 4), dtype=np.float64)
        return np.array([q.to_wxyz() for q in self.rotations])

    def to_dict(self) -> dict:
        return {
            "positions": self.positions.tolist(),
            "rotations": self.rotations_wxyz.tolist(),
            "scales": self.scales.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnimationTrack":
        return cls(
            positions=data["positions"],
            rotations=[Quaternion.from_wxyz(q) for q in data["rotations"]],
            scales=data["scales"],
        )


class AnimationClip(BaseModel):
    """
    A complete keyframed animation bound to a skeleton.

    Every bone in the skeleton has exactly one track and all tracks share
    `key_count`.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    name: str
    skeleton: Skeleton
    key_count: int
    tracks: dict[str, AnimationTrack]
    frame_rate: float = 30.0

    @field_validator("key_count")
    @classmethod
    def key_count_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"key_count must be >= 0, got {v}")
        return v

    @model_validator(mode="after")
    def validate_tracks(self) -> "AnimationClip":
        bone_names = set(self.skeleton.bone_names)
        track_names = set(self.tracks.keys())
        if bone_names != track_names:
            raise ValueError(
                f"Tracks must match skeleton bones. Missing tracks: {sorted(bone_names - track_names)}, "
                f"unknown tracks: {sorted(track_names - bone_names)}"
            )
        for bone_name, track in self.tracks.items():
            if track.key_count != self.key_count:
                raise ValueError(
                    f"Track for bone '{bone_name}' has {track.key_count} keys, expected {self.key_count}"
                )
        return self

    @property
    def bone_count(self) -> int:
        return self.skeleton.bone_count

    @property
    def duration(self) -> float:
        return (self.key_count - 1) / self.frame_rate if self.key_count > 1 else 0.0

    def get_track(self, bone_name: str) -> AnimationTrack:
        if bone_name not in self.tracks:
            raise KeyError(
                f"Bone '{bone_name}' not found. "
                f"Available: {sorted(self.tracks.keys())}"
            )
        return self.tracks[bone_name]

    def with_track(self, bone_name: str, track: AnimationTrack) -> "AnimationClip":
        """Copy of this clip with one bone's track replaced."""
        return self.with_tracks({bone_name: track})

    def with_tracks(self, tracks: dict[str, AnimationTrack]) -> "AnimationClip":
        updated = dict(self.tracks)
        updated.update(tracks)
        return AnimationClip(
            name=self.name,
            skeleton=self.skeleton,
            key_count=self.key_count,
            tracks=updated,
            frame_rate=self.frame_rate,
        )

    def renamed(self, name: str) -> "AnimationClip":
        return self.model_copy(update={"name": name})
