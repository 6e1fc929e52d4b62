"""Error taxonomy for animation rescaling.

Numeric edge cases (zero displacement, sub-epsilon scale, empty skeleton) are
absorbed where they occur and have no exception here.
"""


class AnimationRescaleError(Exception):
    """Base class for errors that abort processing of one animation asset."""


class NotAnimatableError(AnimationRescaleError):
    """The selected asset is not an animation sequence."""


class TrackLengthMismatchError(AnimationRescaleError, ValueError):
    """A bone track's key count disagrees with the animation's key count."""

    def __init__(self, bone_name: str, expected: int, actual: int) -> None:
        self.bone_name = bone_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Track for bone '{bone_name}' has {actual} keys, expected {expected}"
        )


class UnknownBoneError(AnimationRescaleError, KeyError):
    """A bone name was requested that the animation has no track for."""

    def __init__(self, bone_name: str, available: list[str]) -> None:
        self.bone_name = bone_name
        super().__init__(f"Bone '{bone_name}' not found. Available: {sorted(available)}")

    def __str__(self) -> str:
        # KeyError.__str__ would quote the message
        return str(self.args[0])


class DuplicationFailureError(AnimationRescaleError):
    """The source asset could not be duplicated to its rescaled path."""
