"""
Load, save and duplicate animation assets stored as JSON.

File layout:
    {
      "asset_type": "animation_sequence",
      "name": "walk",
      "frame_rate": 30.0,
      "skeleton": {"name": ..., "bones": [{"name": ..., "reference": {"position", "rotation", "scale"}}]},
      "key_count": K,
      "tracks": {"<bone>": {"positions": [[x,y,z]...], "rotations": [[w,x,y,z]...], "scales": [[x,y,z]...]}}
    }

Rotations are scalar-first (w, x, y, z).
"""
import json
import logging
from pathlib import Path

from anim_rescaler.animation_core.animation_data_interfaces import ClipAnimationAsset
from anim_rescaler.animation_core.animation_track_model import AnimationClip, AnimationTrack
from anim_rescaler.animation_core.skeleton_model import Skeleton
from anim_rescaler.rescale_core.rescale_config import DEFAULT_OUTPUT_SUFFIX
from anim_rescaler.rescale_core.rescale_errors import DuplicationFailureError, NotAnimatableError

logger = logging.getLogger(__name__)

ANIMATION_ASSET_TYPE = "animation_sequence"


def clip_to_dict(clip: AnimationClip) -> dict:
    return {
        "asset_type": ANIMATION_ASSET_TYPE,
        "name": clip.name,
        "frame_rate": clip.frame_rate,
        "skeleton": clip.skeleton.to_dict(),
        "key_count": clip.key_count,
        "tracks": {bone_name: clip.tracks[bone_name].to_dict() for bone_name in clip.skeleton.bone_names},
    }


def clip_from_dict(data: dict, source: str = "<memory>") -> AnimationClip:
    """
    Build an AnimationClip from parsed asset JSON.

    Raises:
        NotAnimatableError: If the data is not an animation sequence
    """
    asset_type = data.get("asset_type")
    if asset_type != ANIMATION_ASSET_TYPE:
        raise NotAnimatableError(f"{source} is a '{asset_type}' asset, not an animation sequence")

    return AnimationClip(
        name=data["name"],
        skeleton=Skeleton.from_dict(data["skeleton"]),
        key_count=data["key_count"],
        tracks={bone_name: AnimationTrack.from_dict(track) for bone_name, track in data["tracks"].items()},
        frame_rate=data.get("frame_rate", 30.0),
    )


def load_asset(filepath: Path) -> ClipAnimationAsset:
    """
    Load an animation asset from JSON.

    Raises:
        NotAnimatableError: If the file holds some other kind of asset
        ValueError: If the file is not valid JSON or the clip is malformed
    """
    with open(filepath, "r") as f:
        data = json.load(fp=f)
    if not isinstance(data, dict):
        raise NotAnimatableError(f"{filepath} does not contain an asset object")
    try:
        clip = clip_from_dict(data, source=str(filepath))
    except (KeyError, TypeError, AttributeError, IndexError) as e:
        raise ValueError(f"Malformed animation asset {filepath}: {type(e).__name__}: {e}") from e
    logger.info(f"Loaded '{clip.name}' from {filepath}: {clip.bone_count} bones, {clip.key_count} keys")
    return ClipAnimationAsset(clip)


def save_asset(asset: ClipAnimationAsset, filepath: Path) -> Path:
    """Write an asset to JSON, creating parent directories as needed."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as f:
        json.dump(clip_to_dict(asset.clip), fp=f, indent=2)
    logger.info(f"Saved '{asset.name}' to {filepath}")
    return filepath


def duplicate_path(filepath: Path, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> Path:
    """<folder>/<stem><suffix><ext> beside the source asset."""
    return filepath.with_name(f"{filepath.stem}{suffix}{filepath.suffix}")


def duplicate_asset(
    filepath: Path,
    suffix: str = DEFAULT_OUTPUT_SUFFIX,
    overwrite: bool = False,
) -> tuple[ClipAnimationAsset, Path]:
    """
    Duplicate an animation asset to its derived path and register it on disk.

    The copy's clip is renamed <name><suffix>; its tracks are untouched until
    the caller writes to it.

    Returns:
        (duplicated asset, path it was written to)

    Raises:
        NotAnimatableError: If the source is not an animation sequence
        DuplicationFailureError: If the source cannot be read or the target cannot be written
    """
    target_path = duplicate_path(filepath=filepath, suffix=suffix)
    if target_path.exists() and not overwrite:
        raise DuplicationFailureError(f"Target {target_path} already exists")

    try:
        duplicate = load_asset(filepath)
    except (OSError, ValueError, KeyError) as e:
        raise DuplicationFailureError(f"Could not read {filepath}: {e}") from e

    duplicate.rename(f"{duplicate.name}{suffix}")
    try:
        save_asset(duplicate, target_path)
    except OSError as e:
        raise DuplicationFailureError(f"Could not write {target_path}: {e}") from e

    return duplicate, target_path
