"""
Tidy-format CSV export of animation clips.

One row per (frame, bone, channel, component) observation, so rescaled and
original clips can be diffed or plotted with any dataframe tool.
"""
import logging
from pathlib import Path

import numpy as np
import polars as pl
from numpy.typing import NDArray

from anim_rescaler.animation_core.animation_track_model import AnimationClip

logger = logging.getLogger(__name__)

TIDY_COLUMNS = ["frame", "timestamp_s", "bone", "channel", "component", "value"]


def clip_to_tidy_dataframe(clip: AnimationClip) -> pl.DataFrame:
    """
    Convert an AnimationClip to a tidy-format polars DataFrame.

    Columns:
        - frame: int - key index
        - timestamp_s: float - key time (frame / frame_rate)
        - bone: str - bone name
        - channel: str - position, rotation or scale
        - component: str - x, y, z (position/scale) or w, x, y, z (rotation)
        - value: float

    Args:
        clip: The animation to convert

    Returns:
        Tidy-format polars DataFrame, sorted by frame
    """
    frame_indices = np.arange(clip.key_count, dtype=np.int64)
    timestamps = frame_indices / clip.frame_rate

    dataframe_chunks: list[pl.DataFrame] = []
    for bone_name in clip.skeleton.bone_names:
        track = clip.tracks[bone_name]
        for channel, values, component_names in (
            ("position", track.positions, ["x", "y", "z"]),
            ("rotation", track.rotations_wxyz, ["w", "x", "y", "z"]),
            ("scale", track.scales, ["x", "y", "z"]),
        ):
            dataframe_chunks.append(_build_channel_chunk(
                frame_indices=frame_indices,
                timestamps=timestamps,
                values=values,
                bone_name=bone_name,
                channel=channel,
                component_names=component_names,
            ))

    if not dataframe_chunks:
        return pl.DataFrame(schema={
            "frame": pl.Int64,
            "timestamp_s": pl.Float64,
            "bone": pl.Utf8,
            "channel": pl.Utf8,
            "component": pl.Utf8,
            "value": pl.Float64,
        })

    df = pl.concat(dataframe_chunks)

    # maintain_order keeps bone order within a frame
    df = df.sort(by=["frame"], maintain_order=True)
    return df


def _build_channel_chunk(
    frame_indices: NDArray[np.int64],
    timestamps: NDArray[np.float64],
    values: NDArray[np.float64],
    bone_name: str,
    channel: str,
    component_names: list[str],
) -> pl.DataFrame:
    """
    Build a tidy DataFrame chunk for one bone channel.

    Args:
        frame_indices: (N,) array of frame indices
        timestamps: (N,) array of timestamps
        values: (N, C) array where C is number of components
        bone_name: Bone the channel belongs to
        channel: Channel name
        component_names: List of component names (length C)

    Returns:
        Tidy polars DataFrame with N * C rows
    """
    number_of_frames = len(frame_indices)
    number_of_components = len(component_names)

    # [0,0,0, 1,1,1, 2,2,2, ...]
    repeated_frame_indices = np.repeat(frame_indices, number_of_components)
    repeated_timestamps = np.repeat(timestamps, number_of_components)

    # ["x","y","z", "x","y","z", ...]
    tiled_component_names = np.tile(np.array(component_names, dtype=str), number_of_frames)

    return pl.DataFrame({
        "frame": repeated_frame_indices,
        "timestamp_s": repeated_timestamps.astype(np.float64),
        "component": tiled_component_names.tolist(),
        "value": np.asarray(values, dtype=np.float64).ravel(),
    }).with_columns(
        pl.lit(bone_name).alias("bone"),
        pl.lit(channel).alias("channel"),
    ).select(TIDY_COLUMNS)


def save_clip_csv(clip: AnimationClip, output_path: Path) -> Path:
    """Write a clip's tidy CSV, creating the directory if needed."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dataframe = clip_to_tidy_dataframe(clip=clip)
    dataframe.write_csv(file=output_path)
    logger.info(f"Saved {dataframe.height} rows of '{clip.name}' to {output_path}")
    return output_path
