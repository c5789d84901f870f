"""
Deterministic time fitting for session blueprints.

The generator produces a blueprint (exercise_id, sets, reps, priority,
optional rest_seconds); this module enforces the session's duration window
without calling the generator again.

Policy:
- Shrink: take one set at a time from priority 3 then 2 (never priority 1),
  cardio/accessory before warmup/cooldown before main. If nothing can lose a
  set, remove a priority 3 exercise (never from the main block unless allowed).
- Expand: add one set at a time to priority 2 then 3 (never priority 1),
  accessory before main before cardio, up to each exercise's cap.

Exactly one adjustment is applied before the whole session is re-estimated,
so identical input always yields identical output.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from models.blueprint import (
    BlockType,
    ExerciseCaps,
    ExercisePrescription,
    FitAction,
    FitActionType,
    FitReport,
    FitResult,
    FitStatus,
    ProgramFitResult,
    SessionBlueprint,
    TimeModelConfig,
)
from services.time_model import estimate_session_minutes

logger = logging.getLogger(__name__)

# Hard iteration cap for each phase
MAX_FIT_ITERATIONS = 500

NEEDS_REVIEW_NOTE = "Could not fit session within allowed range using deterministic rules."

# Lower rank is adjusted first
SHRINK_BLOCK_RANK = {
    BlockType.CARDIO: 0,
    BlockType.ACCESSORY: 1,
    BlockType.WARMUP: 2,
    BlockType.COOLDOWN: 3,
    BlockType.MAIN: 4,
}

EXPAND_BLOCK_RANK = {
    BlockType.ACCESSORY: 0,
    BlockType.MAIN: 1,
    BlockType.CARDIO: 2,
}
EXPAND_BLOCK_RANK_OTHER = 3

_DEFAULT_CAPS = ExerciseCaps()


@dataclass
class _Slot:
    """Position of an exercise inside the working copy."""

    block_index: int
    exercise_index: int
    block_type: BlockType
    exercise: ExercisePrescription


def _list_slots(session: SessionBlueprint) -> List[_Slot]:
    return [
        _Slot(block_index, exercise_index, block.type, exercise)
        for block_index, block in enumerate(session.blocks)
        for exercise_index, exercise in enumerate(block.exercises)
    ]


def _caps_for(exercise_id: str, caps: Optional[Dict[str, ExerciseCaps]]) -> ExerciseCaps:
    if caps and exercise_id in caps:
        return caps[exercise_id]
    return _DEFAULT_CAPS


def _shrink_candidates(session: SessionBlueprint) -> List[_Slot]:
    slots = [s for s in _list_slots(session) if s.exercise.sets > 0 and s.exercise.priority != 1]
    # sorted() is stable, so remaining ties keep execution order
    return sorted(slots, key=lambda s: (-s.exercise.priority, SHRINK_BLOCK_RANK[s.block_type]))


def _removal_candidates(session: SessionBlueprint, allow_remove_from_main: bool) -> List[_Slot]:
    slots = [
        s for s in _list_slots(session)
        if s.exercise.priority == 3 and (allow_remove_from_main or s.block_type != BlockType.MAIN)
    ]
    return sorted(slots, key=lambda s: SHRINK_BLOCK_RANK[s.block_type])


def _expand_candidates(session: SessionBlueprint) -> List[_Slot]:
    slots = [s for s in _list_slots(session) if s.exercise.priority != 1]
    return sorted(
        slots,
        key=lambda s: (
            s.exercise.priority,
            EXPAND_BLOCK_RANK.get(s.block_type, EXPAND_BLOCK_RANK_OTHER),
        ),
    )


def _set_change(slot: _Slot, action: FitActionType, delta: int) -> FitAction:
    before = slot.exercise.sets
    slot.exercise.sets = before + delta
    return FitAction(
        action=action,
        exercise_id=slot.exercise.exercise_id,
        block_type=slot.block_type,
        from_sets=before,
        to_sets=slot.exercise.sets,
        delta_sets=delta,
    )


def _try_reduce(
    session: SessionBlueprint, caps: Optional[Dict[str, ExerciseCaps]]
) -> Optional[FitAction]:
    for slot in _shrink_candidates(session):
        if slot.exercise.sets > _caps_for(slot.exercise.exercise_id, caps).min_sets:
            return _set_change(slot, FitActionType.REDUCE_SETS, -1)
    return None


def _try_remove(session: SessionBlueprint, allow_remove_from_main: bool) -> Optional[FitAction]:
    candidates = _removal_candidates(session, allow_remove_from_main)
    if not candidates:
        return None
    slot = candidates[0]
    del session.blocks[slot.block_index].exercises[slot.exercise_index]
    return FitAction(
        action=FitActionType.REMOVE_EXERCISE,
        exercise_id=slot.exercise.exercise_id,
        block_type=slot.block_type,
    )


def _try_expand(
    session: SessionBlueprint, caps: Optional[Dict[str, ExerciseCaps]]
) -> Optional[FitAction]:
    for slot in _expand_candidates(session):
        if slot.exercise.sets < _caps_for(slot.exercise.exercise_id, caps).max_sets:
            return _set_change(slot, FitActionType.ADD_SETS, 1)
    return None


def fit_session_to_duration(
    session: SessionBlueprint,
    config: TimeModelConfig,
    target_minutes: float,
    allowed_min_minutes: float,
    allowed_max_minutes: float,
    caps: Optional[Dict[str, ExerciseCaps]] = None,
    allow_remove_from_main: bool = False,
) -> FitResult:
    """
    Fit a single session into [allowed_min_minutes, allowed_max_minutes].

    The input session is never modified; the returned FitResult owns a deep
    copy. An unreachable window is reported with status needs_review rather
    than raised.

    Args:
        session: Session skeleton to fit
        config: Time model used for every estimate
        target_minutes: Nominal duration, recorded in the report
        allowed_min_minutes: Lower bound of the accepted window
        allowed_max_minutes: Upper bound of the accepted window
        caps: Optional per-exercise set bounds (default min 1, max 6)
        allow_remove_from_main: Permit removing priority 3 main-block exercises

    Returns:
        FitResult with the fitted copy and its FitReport
    """
    fitted = session.model_copy(deep=True)
    actions: List[FitAction] = []

    before = estimate_session_minutes(fitted, config)

    iterations = 0
    while (
        estimate_session_minutes(fitted, config) > allowed_max_minutes
        and iterations < MAX_FIT_ITERATIONS
    ):
        iterations += 1
        action = _try_reduce(fitted, caps)
        if action is None:
            action = _try_remove(fitted, allow_remove_from_main)
        if action is None:
            break
        actions.append(action)

    iterations = 0
    while (
        estimate_session_minutes(fitted, config) < allowed_min_minutes
        and iterations < MAX_FIT_ITERATIONS
    ):
        iterations += 1
        action = _try_expand(fitted, caps)
        if action is None:
            break
        actions.append(action)

    after = estimate_session_minutes(fitted, config)
    ok = allowed_min_minutes <= after <= allowed_max_minutes

    report = FitReport(
        before_minutes=round(before, 1),
        after_minutes=round(after, 1),
        target_minutes=target_minutes,
        allowed_min=allowed_min_minutes,
        allowed_max=allowed_max_minutes,
        actions=actions,
        status=FitStatus.OK if ok else FitStatus.NEEDS_REVIEW,
        note=None if ok else NEEDS_REVIEW_NOTE,
    )

    logger.debug(
        f"Fitted session {session.session_index}: {report.before_minutes} -> "
        f"{report.after_minutes} min in {len(actions)} actions ({report.status.value})"
    )
    if not ok:
        logger.warning(
            f"Session {session.session_index} ({session.weekday}) needs review: "
            f"{report.after_minutes} min outside [{allowed_min_minutes}, {allowed_max_minutes}]"
        )

    return FitResult(session=fitted, report=report)


def fit_program_sessions(
    sessions: Sequence[SessionBlueprint],
    config: TimeModelConfig,
    target_minutes: float,
    allowed_min_minutes: float,
    allowed_max_minutes: float,
    caps: Optional[Dict[str, ExerciseCaps]] = None,
    allow_remove_from_main: bool = False,
) -> ProgramFitResult:
    """
    Fit every session of a program to the same window, independently.

    Sessions do not share a time budget; each one is fitted in isolation.
    """
    results = [
        fit_session_to_duration(
            session,
            config,
            target_minutes=target_minutes,
            allowed_min_minutes=allowed_min_minutes,
            allowed_max_minutes=allowed_max_minutes,
            caps=caps,
            allow_remove_from_main=allow_remove_from_main,
        )
        for session in sessions
    ]
    return ProgramFitResult(
        sessions=[r.session for r in results],
        reports=[r.report for r in results],
    )
