"""Case workflow stage definitions and ordering."""

from __future__ import annotations

from dataclasses import dataclass


FIRST_STAGE = 1
FINAL_STAGE = 14


@dataclass(frozen=True)
class StageInfo:
    stage: int
    label: str
    percent: int


# Display percentages are historical values, not recomputed from the ordinal.
STAGE_DEFINITIONS: dict[int, StageInfo] = {
    1: StageInfo(1, "Stage 1: Case Opened", 7),
    2: StageInfo(2, "Stage 2: Client Contacted", 14),
    3: StageInfo(3, "Stage 3: Consent Sent", 21),
    4: StageInfo(4, "Stage 4: Consent Received", 28),
    5: StageInfo(5, "Stage 5: INA Visit Scheduled", 35),
    6: StageInfo(6, "Stage 6: INA Visit Completed", 42),
    7: StageInfo(7, "Stage 7: R&D Phase", 50),
    8: StageInfo(8, "Stage 8: Report Writing", 57),
    9: StageInfo(9, "Stage 9: Internal Review", 64),
    10: StageInfo(10, "Stage 10: 1st Reader Assigned", 71),
    11: StageInfo(11, "Stage 11: 1st Reader Corrections", 78),
    12: StageInfo(12, "Stage 12: 2nd Reader Assigned", 85),
    13: StageInfo(13, "Stage 13: 2nd Reader Corrections", 92),
    14: StageInfo(14, "Stage 14: Case Closure", 100),
}

UNKNOWN_STAGE_LABEL = "Unknown Stage"

# Action Center stages
CONSENT_RECEIVED_STAGE = 4
INTERNAL_REVIEW_STAGE = 9


def get_stage_info(stage: int | None) -> StageInfo:
    """Look up a stage; out-of-range values get the Unknown Stage sentinel."""
    info = STAGE_DEFINITIONS.get(stage) if stage is not None else None
    if info is None:
        return StageInfo(stage or 0, UNKNOWN_STAGE_LABEL, 0)
    return info


def is_valid_stage(stage: int) -> bool:
    return FIRST_STAGE <= stage <= FINAL_STAGE


def get_stage_defs() -> list[dict[str, object]]:
    """Ordered stage definitions for the presentation layer."""
    return [
        {"stage": info.stage, "label": info.label, "percent": info.percent}
        for _, info in sorted(STAGE_DEFINITIONS.items())
    ]
