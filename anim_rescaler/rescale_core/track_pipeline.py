"""Drives the two-pass rescale of one animation: scale every bone, then optionally rebuild the root track."""

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np

from anim_rescaler.animation_core.animation_data_interfaces import (
    AnimationAsset,
    AnimationDataSink,
    AnimationDataSource,
    SkeletonReferenceProvider,
)
from anim_rescaler.animation_core.animation_track_model import AnimationTrack
from anim_rescaler.rescale_core.bone_scale_converter import ROOT_BONE_INDEX, BoneScaleConverter
from anim_rescaler.rescale_core.rescale_config import RescaleConfig
from anim_rescaler.rescale_core.rescale_errors import TrackLengthMismatchError
from anim_rescaler.rescale_core.root_motion_accumulator import RootMotionAccumulator
from anim_rescaler.transform_core.quaternion_model import Quaternion

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], bool]
"""report_progress(bones_done, bone_count) -> keep going?"""

AccumulatorFactory = Callable[[int, list[int]], RootMotionAccumulator]


def always_continue(current: int, total: int) -> bool:
    return True


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    bone_count: int
    """Bones in the skeleton"""

    key_count: int
    """Keys per track (0 if the skeleton was empty and nothing was read)"""

    bones_written: int
    """Tracks written in the scale pass"""

    effective_scale: float
    """Scale factor actually applied"""

    cancelled: bool = False
    """True if report_progress asked to stop before every bone was written"""

    root_motion_applied: bool = False
    """True if the root track was rewritten relative to the chain"""

    chain_indices: tuple[int, ...] = ()
    """Bones folded into the root-motion accumulator"""

    @property
    def completed(self) -> bool:
        return not self.cancelled and self.bones_written == self.bone_count


class TrackPipeline:
    """
    Rescales every bone track of one animation.

    Collaborators are injected so the same pipeline runs against any
    skeleton provider, data source and data sink (source and sink may be
    different assets).

    Pipeline:
    1. Scale pass - per bone, per key: convert, feed chain bones to the
       accumulator, write the bone's track, report progress
    2. Root-relative pass (optional) - overwrite the root track with
       chain-relative motion, computed from the root track read from the
       source in pass 1, never from the sink
    """

    def __init__(
        self,
        *,
        skeleton_provider: SkeletonReferenceProvider,
        source: AnimationDataSource,
        sink: AnimationDataSink,
        converter: BoneScaleConverter,
        config: RescaleConfig,
        accumulator_factory: AccumulatorFactory = RootMotionAccumulator,
        report_progress: ProgressCallback = always_continue,
    ) -> None:
        self.skeleton_provider = skeleton_provider
        self.source = source
        self.sink = sink
        self.converter = converter
        self.config = config
        self.accumulator_factory = accumulator_factory
        self.report_progress = report_progress

    @classmethod
    def from_config(
        cls,
        *,
        config: RescaleConfig,
        source_asset: AnimationAsset,
        sink_asset: AnimationAsset | None = None,
        report_progress: ProgressCallback = always_continue,
    ) -> "TrackPipeline":
        """Pipeline reading from source_asset and writing to sink_asset (default: the same asset)."""
        return cls(
            skeleton_provider=source_asset,
            source=source_asset,
            sink=sink_asset if sink_asset is not None else source_asset,
            converter=BoneScaleConverter(scale=config.scale_factor, unrotate_root=config.unrotate_root),
            config=config,
            report_progress=report_progress,
        )

    def run(self) -> PipelineResult:
        bones = self.skeleton_provider.get_bones()
        bone_count = len(bones)
        if bone_count < 1:
            logger.info("Skeleton has no bones, nothing to rescale")
            return PipelineResult(
                bone_count=0,
                key_count=0,
                bones_written=0,
                effective_scale=self.converter.scale,
            )

        key_count = self.source.get_key_count()
        bone_names = [bone.name for bone in bones]

        accumulator: RootMotionAccumulator | None = None
        chain_indices: list[int] = []
        if self.config.root_relative:
            chain_indices = self.config.resolve_chain_indices(bone_names)
            accumulator = self.accumulator_factory(key_count, chain_indices)

        logger.info(
            f"Rescaling {bone_count} bones x {key_count} keys "
            f"(scale={self.converter.scale}, unrotate_root={self.converter.unrotate_root}, "
            f"root_relative={self.config.root_relative})"
        )

        # =====================================================================
        # PASS 1: SCALE EVERY BONE
        # =====================================================================
        bones_written = 0
        cancelled = False
        original_root_track: AnimationTrack | None = None
        for bone_index, bone in enumerate(bones):
            original_track = self.source.get_bone_track(bone.name)
            if original_track.key_count != key_count:
                raise TrackLengthMismatchError(
                    bone_name=bone.name,
                    expected=key_count,
                    actual=original_track.key_count,
                )
            if bone_index == ROOT_BONE_INDEX:
                original_root_track = original_track

            positions = np.zeros((key_count, 3), dtype=np.float64)
            rotations: list[Quaternion] = []
            scales = np.zeros((key_count, 3), dtype=np.float64)

            for key_index in range(key_count):
                scaled = self.converter.convert_key(
                    bone_index=bone_index,
                    ref_transform=bone.reference_transform,
                    anim_transform=original_track[key_index],
                )
                positions[key_index] = scaled.position
                rotations.append(scaled.rotation)
                scales[key_index] = scaled.scale

                if accumulator is not None:
                    accumulator.accumulate(bone_index=bone_index, key_index=key_index, scaled_transform=scaled)

            self.sink.set_bone_track(bone.name, positions, rotations, scales)
            bones_written += 1
            logger.debug(f"  [{bone_index + 1}/{bone_count}] {bone.name}")

            if not self.report_progress(bone_index + 1, bone_count):
                cancelled = bones_written < bone_count
                if cancelled:
                    logger.warning(f"Cancelled after {bones_written}/{bone_count} bones; written tracks are kept")
                break

        # =====================================================================
        # PASS 2: ROOT-RELATIVE MOTION
        # =====================================================================
        root_motion_applied = False
        if accumulator is not None and not cancelled and original_root_track is not None:
            root_name = bones[ROOT_BONE_INDEX].name
            root_track: AnimationTrack = accumulator.reconstruct_root_track(
                original_root_track=original_root_track,
                root_name=root_name,
            )
            self.sink.set_bone_track(root_name, root_track.positions, root_track.rotations, root_track.scales)
            root_motion_applied = True
            logger.info(f"Root track '{root_name}' rewritten relative to chain {[bone_names[i] for i in chain_indices]}")

        return PipelineResult(
            bone_count=bone_count,
            key_count=key_count,
            bones_written=bones_written,
            effective_scale=self.converter.scale,
            cancelled=cancelled,
            root_motion_applied=root_motion_applied,
            chain_indices=tuple(chain_indices),
        )
