"""Skeleton reference pose definitions using Pydantic v2."""

import json
from pathlib import Path

import numpy as np
from pydantic import BaseModel, ConfigDict, model_validator

from anim_rescaler.transform_core.transform_model import Transform


class Bone(BaseModel):
    """A named joint and its reference-pose (rest) transform."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    reference_transform: Transform

    @classmethod
    def from_dict(cls, data: dict) -> "Bone":
        reference = data["reference"]
        return cls(
            name=data["name"],
            reference_transform=Transform.from_values(
                position=reference["position"],
                rotation_wxyz=reference.get("rotation"),
                scale=reference.get("scale"),
            ),
        )

    def to_dict(self) -> dict:
        ref = self.reference_transform
        return {
            "name": self.name,
            "reference": {
                "position": ref.position.tolist(),
                "rotation": ref.rotation.to_wxyz().tolist(),
                "scale": ref.scale.tolist(),
            },
        }


class Skeleton(BaseModel):
    """
    Ordered bones of a skeleton.

    Bone 0 is the root by convention. Bone order is the order tracks are
    processed in; no parent/child topology is stored.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    bones: list[Bone]
    """Bones in skeleton order, root first"""

    name: str = "skeleton"
    """Descriptive name for this skeleton"""

    @model_validator(mode="after")
    def validate_unique_names(self) -> "Skeleton":
        seen: set[str] = set()
        for bone in self.bones:
            if bone.name in seen:
                raise ValueError(f"Duplicate bone name '{bone.name}' in skeleton '{self.name}'")
            seen.add(bone.name)
        return self

    @property
    def bone_count(self) -> int:
        return len(self.bones)

    @property
    def bone_names(self) -> list[str]:
        return [bone.name for bone in self.bones]

    @property
    def root(self) -> Bone:
        if not self.bones:
            raise IndexError(f"Skeleton '{self.name}' has no bones")
        return self.bones[0]

    def name_to_index(self, name: str) -> int:
        """Convert bone name to index."""
        try:
            return self.bone_names.index(name)
        except ValueError:
            raise KeyError(f"Bone '{name}' not found in skeleton '{self.name}': {self.bone_names}")

    def index_to_name(self, index: int) -> str:
        """Convert bone index to name."""
        if index < 0 or index >= len(self.bones):
            raise IndexError(f"Bone index {index} out of range for skeleton '{self.name}' ({len(self.bones)} bones)")
        return self.bones[index].name

    def to_dict(self) -> dict:
        return {"name": self.name, "bones": [bone.to_dict() for bone in self.bones]}

    @classmethod
    def from_dict(cls, data: dict) -> "Skeleton":
        return cls(
            name=data.get("name", "skeleton"),
            bones=[Bone.from_dict(bone_data) for bone_data in data["bones"]],
        )

    def save_json(self, filepath: Path) -> None:
        """Save skeleton to JSON file."""
        self_dict = self.to_dict()
        for bone in self_dict["bones"]:
            bone["reference"]["position"] = [
                0.0 if np.abs(value) < 1e-10 else value  # Squish small number
                for value in bone["reference"]["position"]
            ]
        with open(filepath, "w") as f:
            json.dump(self_dict, fp=f, indent=2)

    @classmethod
    def load_json(cls, filepath: Path) -> "Skeleton":
        """Load skeleton from JSON file."""
        with open(filepath, "r") as f:
            data = json.load(fp=f)
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"Skeleton(name='{self.name}', bones={len(self.bones)})"
