"""Schema migrations for stored plan collections.

Stored plans come in two shapes:

- a bare JSON array (version 1, written by the legacy writer and by Drive)
- an envelope ``{"version": N, "plans": [...]}``

`normalize` accepts either and returns plans upgraded to `CURRENT_VERSION`.
Unrecognized input yields an empty list; corrupt data is discarded, never raised.
"""
import logging
from typing import Any, Callable

from pydantic import ValidationError

from skillsage.models.plan import LearningPlan

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2


def upgrade_v1_to_v2(record: dict) -> dict:
    """Backfill `creationDate` from `id` and default `dailyLogs` to [].

    Falsy-coalescing, so running it on an upgraded record changes nothing.
    """
    return {
        **record,
        "creationDate": record.get("creationDate") or record.get("id"),
        "dailyLogs": record.get("dailyLogs") or [],
    }


# from_version -> step producing from_version + 1
MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    1: upgrade_v1_to_v2,
}


def migrate_records(records: list, version: int) -> list[dict]:
    """Apply every step from `version` up to `CURRENT_VERSION`, in order."""
    upgraded = [r for r in records if isinstance(r, dict)]
    if len(upgraded) != len(records):
        logger.warning(f"Dropped {len(records) - len(upgraded)} non-object plan record(s)")

    for step_version in range(version, CURRENT_VERSION):
        step = MIGRATIONS.get(step_version)
        if step is None:
            continue
        logger.debug(f"Migrating {len(upgraded)} plan(s) from v{step_version} to v{step_version + 1}")
        upgraded = [step(record) for record in upgraded]

    return upgraded


def _unpack(raw: Any) -> tuple[int, list] | None:
    """Return (version, records) for a recognized shape, else None."""
    if isinstance(raw, list):
        return 1, raw

    if isinstance(raw, dict) and "version" in raw:
        version = raw.get("version")
        plans = raw.get("plans")
        # bool is an int subclass; reject it explicitly
        if not isinstance(version, int) or isinstance(version, bool):
            return None
        if not isinstance(plans, list):
            return None
        return version, plans

    return None


def normalize(raw: Any) -> list[LearningPlan]:
    """Normalize any stored representation to a list of current-version plans."""
    unpacked = _unpack(raw)
    if unpacked is None:
        if raw is not None:
            logger.warning(f"Unrecognized stored plans shape ({type(raw).__name__}); discarding")
        return []

    version, records = unpacked
    plans = []
    for record in migrate_records(records, version):
        try:
            plans.append(LearningPlan.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping invalid plan record {record.get('id')!r}: {e}")
    return plans
