"""
Adherence recompute shared by medication schedules and lifestyle check-ins.

Both keep a list of entries, fold one update into it (replace a matching
entry or append a new one), then derive a progress percentage from the share
of entries that count as done.
"""

from typing import Any, Callable, List, NamedTuple, Optional, Sequence

from clearcare.features.compliance.models import CheckIn, DoseEntry


class AdherenceResult(NamedTuple):
    entries: List[Any]
    computed_progress: float
    progress: float  # explicit override if given, else computed
    status: str


def compliance_status(progress: float) -> str:
    """Map a progress percentage to a compliance status."""
    if progress >= 100:
        return "compliant"
    if progress > 0:
        return "partial"
    return "non-compliant"


def completion_ratio(entries: Sequence[Any], is_done: Callable[[Any], bool]) -> float:
    if not entries:
        return 0.0
    done = sum(1 for entry in entries if is_done(entry))
    return done / len(entries) * 100


def recompute(
    entries: Sequence[Any],
    update: Any,
    *,
    build: Callable[[Any], Any],
    is_done: Callable[[Any], bool],
    key: Optional[Callable[[Any], Any]] = None,
    merge: Optional[Callable[[Any, Any], Any]] = None,
    override: Optional[float] = None,
) -> AdherenceResult:
    """
    Fold ``update`` into ``entries`` and recompute progress.

    Args:
        entries: Existing entries (not modified)
        update: Incoming update
        build: Creates a new entry from the update
        is_done: Whether an entry counts towards progress
        key: Match key applied to entries and the update; None always appends
        merge: Combines a matching entry with the update
        override: Caller-supplied progress to persist instead of the computed one

    The status is always derived from the computed progress.
    """
    result = list(entries)

    index = None
    if key is not None:
        wanted = key(update)
        index = next((i for i, entry in enumerate(result) if key(entry) == wanted), None)

    if index is None:
        result.append(build(update))
    else:
        result[index] = merge(result[index], update) if merge else build(update)

    computed = completion_ratio(result, is_done)
    progress = override if override is not None else computed
    return AdherenceResult(result, computed, progress, compliance_status(computed))


# ============== Medication ==============

def _dose_key(item) -> tuple:
    return (item.date, item.time or "")


def _build_dose(update) -> DoseEntry:
    return DoseEntry(
        date=update.date,
        time=update.time or "",
        status=update.status or "pending",
        reason=update.reason or "",
    )


def _merge_dose(existing: DoseEntry, update) -> DoseEntry:
    return existing.model_copy(update={
        "status": update.status or existing.status,
        "reason": update.reason or existing.reason,
    })


def apply_dose(schedule: Sequence[DoseEntry], update, override: Optional[float] = None) -> AdherenceResult:
    """Record a dose by (date, time); progress is the share of taken doses."""
    return recompute(
        schedule,
        update,
        build=_build_dose,
        is_done=lambda entry: entry.status == "taken",
        key=_dose_key,
        merge=_merge_dose,
        override=override,
    )


# ============== Lifestyle ==============

def _build_check_in(update) -> CheckIn:
    return CheckIn(
        date=update.date,
        completed=bool(update.completed),
        notes=update.notes or "",
        metrics=update.metrics or {},
        progress=update.progress or 0,
    )


def apply_check_in(check_ins: Sequence[CheckIn], update, override: Optional[float] = None) -> AdherenceResult:
    """Append a check-in; progress is the share of completed check-ins."""
    return recompute(
        check_ins,
        update,
        build=_build_check_in,
        is_done=lambda entry: entry.completed is True,
        override=override,
    )
