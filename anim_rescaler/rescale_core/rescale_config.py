"""Configuration for animation rescaling."""
import json
import logging
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from anim_rescaler.rescale_core.rescale_errors import UnknownBoneError

logger = logging.getLogger(__name__)

# Meters per inch
DEFAULT_SCALE_FACTOR = 0.0254

# Scale factors below this are treated as "unset" and replaced with the default
MIN_SCALE_FACTOR = 1e-4

# Root, delta and start bones
DEFAULT_CHAIN_LENGTH = 3

DEFAULT_OUTPUT_SUFFIX = "_Scaled"


def effective_scale_factor(scale_factor: float) -> float:
    """Scale factor actually applied: values below MIN_SCALE_FACTOR fall back to the default."""
    if scale_factor < MIN_SCALE_FACTOR:
        logger.debug(f"Scale factor {scale_factor} below {MIN_SCALE_FACTOR}, using default {DEFAULT_SCALE_FACTOR}")
        return DEFAULT_SCALE_FACTOR
    return scale_factor


class RescaleConfig(BaseModel):
    """Complete configuration for rescaling one or more animations."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    scale_factor: float = DEFAULT_SCALE_FACTOR
    """Multiplier on each bone's displacement from its reference pose"""

    unrotate_root: bool = False
    """Pre-multiply the root bone's rotation by -90 degrees about Z"""

    root_relative: bool = False
    """Rewrite the root track as motion relative to the root -> delta -> start chain"""

    chain_length: int = DEFAULT_CHAIN_LENGTH
    """Number of bones (from the root, in skeleton order) in the root-motion chain"""

    start_bone_name: str | None = None
    """Last bone of the root-motion chain; overrides chain_length when set"""

    output_suffix: str = DEFAULT_OUTPUT_SUFFIX
    """Appended to the source asset name to form the duplicate's name"""

    overwrite_existing: bool = False
    """Replace an existing duplicate instead of failing"""

    @field_validator("scale_factor")
    @classmethod
    def substitute_small_scale(cls, v: float) -> float:
        return effective_scale_factor(v)

    @field_validator("chain_length")
    @classmethod
    def chain_length_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"chain_length must be >= 1, got {v}")
        return v

    @field_validator("start_bone_name")
    @classmethod
    def strip_start_bone_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("output_suffix")
    @classmethod
    def output_suffix_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("output_suffix cannot be empty (the source asset would be overwritten)")
        return v

    @classmethod
    def load(cls, filepath: Path) -> "RescaleConfig":
        """Load configuration from a .toml or .json file."""
        if filepath.suffix == ".toml":
            with open(filepath, "rb") as f:
                data = tomllib.load(f)
        else:
            with open(filepath, "r") as f:
                data = json.load(fp=f)
        # [rescale] table in TOML, or flat keys
        data = data.get("rescale", data)
        return cls(**data)

    def resolve_chain_indices(self, bone_names: list[str]) -> list[int]:
        """
        Bone indices of the root-motion chain, ascending from the root.

        Raises:
            UnknownBoneError: If start_bone_name is set but not in bone_names
        """
        if self.start_bone_name is not None:
            if self.start_bone_name not in bone_names:
                raise UnknownBoneError(bone_name=self.start_bone_name, available=bone_names)
            return list(range(bone_names.index(self.start_bone_name) + 1))
        return list(range(min(self.chain_length, len(bone_names))))
