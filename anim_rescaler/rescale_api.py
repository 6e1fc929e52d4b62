"""Rescale animation asset files one after another, isolating per-asset failures."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from anim_rescaler.asset_io.animation_serialization import save_clip_csv
from anim_rescaler.asset_io.json_asset_store import duplicate_asset, load_asset, save_asset
from anim_rescaler.rescale_core.rescale_config import RescaleConfig
from anim_rescaler.rescale_core.rescale_errors import (
    AnimationRescaleError,
    DuplicationFailureError,
    NotAnimatableError,
)
from anim_rescaler.rescale_core.track_pipeline import (
    PipelineResult,
    ProgressCallback,
    TrackPipeline,
    always_continue,
)

logger = logging.getLogger(__name__)


class AssetStatus(str, Enum):
    RESCALED = "rescaled"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class AssetOutcome:
    """What happened to one input asset."""

    input_path: Path
    status: AssetStatus
    output_path: Path | None = None
    message: str = ""
    result: PipelineResult | None = None


@dataclass
class BatchReport:
    outcomes: list[AssetOutcome] = field(default_factory=list)

    def with_status(self, status: AssetStatus) -> list[AssetOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == status]

    @property
    def n_rescaled(self) -> int:
        return len(self.with_status(AssetStatus.RESCALED))

    @property
    def n_failed(self) -> int:
        return len(self.with_status(AssetStatus.FAILED))

    @property
    def has_failures(self) -> bool:
        return self.n_failed > 0


def rescale_asset(
    *,
    input_path: Path,
    config: RescaleConfig,
    write_csv: bool = False,
    report_progress: ProgressCallback = always_continue,
) -> AssetOutcome:
    """
    Rescale a single asset file into its duplicate.

    Steps:
    1. Load the source (skipped if it is not an animation sequence)
    2. Duplicate it to <name><suffix> beside the source
    3. Run the track pipeline, reading the untouched source and writing the duplicate
    4. Save the duplicate (and optionally its tidy CSV)

    Args:
        input_path: Source asset JSON
        config: Rescale configuration
        write_csv: Also write <duplicate>.csv in tidy format
        report_progress: Called between bones; return False to stop

    Returns:
        AssetOutcome. Structural errors come back as FAILED rather than raising.
    """
    try:
        source = load_asset(input_path)
    except NotAnimatableError as e:
        logger.info(f"Skipping {input_path}: {e}")
        return AssetOutcome(input_path=input_path, status=AssetStatus.SKIPPED, message=str(e))
    except (OSError, ValueError) as e:
        logger.error(f"Could not load {input_path}: {e}")
        return AssetOutcome(input_path=input_path, status=AssetStatus.FAILED, message=str(e))

    try:
        duplicate, output_path = duplicate_asset(
            filepath=input_path,
            suffix=config.output_suffix,
            overwrite=config.overwrite_existing,
        )
    except DuplicationFailureError as e:
        logger.error(f"Asset duplication failed for {input_path}: {e}")
        return AssetOutcome(input_path=input_path, status=AssetStatus.FAILED, message=f"Asset duplication failed: {e}")

    pipeline = TrackPipeline.from_config(
        config=config,
        source_asset=source,
        sink_asset=duplicate,
        report_progress=report_progress,
    )
    try:
        result = pipeline.run()
    except (AnimationRescaleError, KeyError, ValueError) as e:
        # Tracks written before the failure stay on the in-memory duplicate; the file on disk is the untouched copy
        logger.error(f"Rescale failed for {input_path}: {e}")
        return AssetOutcome(input_path=input_path, status=AssetStatus.FAILED, output_path=output_path, message=str(e))

    try:
        save_asset(duplicate, output_path)
        if write_csv:
            save_clip_csv(clip=duplicate.clip, output_path=output_path.with_suffix(".csv"))
    except OSError as e:
        logger.error(f"Could not save rescaled {input_path} to {output_path}: {e}")
        return AssetOutcome(input_path=input_path, status=AssetStatus.FAILED, output_path=output_path, message=str(e), result=result)

    status = AssetStatus.CANCELLED if result.cancelled else AssetStatus.RESCALED
    logger.info(f"{status.value.upper()}: {input_path.name} -> {output_path.name} ({result.bones_written}/{result.bone_count} bones)")
    return AssetOutcome(input_path=input_path, status=status, output_path=output_path, result=result)


def rescale_assets(
    *,
    input_paths: list[Path],
    config: RescaleConfig,
    write_csv: bool = False,
    report_progress: ProgressCallback = always_continue,
) -> BatchReport:
    """
    Rescale each asset in turn. A failure on one asset never stops the rest.

    Returns:
        BatchReport with one outcome per input path, in input order
    """
    logger.info("=" * 80)
    logger.info("ANIMATION RESCALE")
    logger.info("=" * 80)
    logger.info(f"Assets:        {len(input_paths)}")
    logger.info(f"Scale:         {config.scale_factor}")
    logger.info(f"Unrotate root: {config.unrotate_root}")
    logger.info(f"Root relative: {config.root_relative}")

    report = BatchReport()
    for input_path in input_paths:
        report.outcomes.append(rescale_asset(
            input_path=input_path,
            config=config,
            write_csv=write_csv,
            report_progress=report_progress,
        ))

    logger.info(f"Done: {report.n_rescaled} rescaled, {report.n_failed} failed, {len(report.outcomes)} total")
    return report
