"""Plan synchronization between local storage and Drive.

`PlanSync` is the single write gateway for the plan collection. It listens to
identity session changes and picks one of two paths from `TRANSITIONS`:

- logged in: `sync_with_remote` migrates local-only plans into Drive, then
  Drive becomes the write target
- logged out: `load_from_local`, and local storage stays the write target

Nothing runs until the identity provider reports it is initialized, so a
restoring session is never mistaken for a logout.
"""
import asyncio
import inspect
import logging
from typing import Optional

from skillsage.models.plan import LearningPlan
from skillsage.models.session import SessionState, UserSchedule
from skillsage.tools.drive_store import DriveStore
from skillsage.tools.local_store import LocalPlanStore, ScheduleStore
from skillsage.tools.plan_state import PlanState

logger = logging.getLogger(__name__)

# (initialized, logged_in) -> method name; missing keys do nothing
TRANSITIONS: dict[tuple[bool, bool], str] = {
    (True, True): "sync_with_remote",
    (True, False): "load_from_local",
}


def upsert_plan(plans: list[LearningPlan], plan: LearningPlan) -> list[LearningPlan]:
    """Replace the plan with the same id in place, or append it."""
    for i, existing in enumerate(plans):
        if existing.id == plan.id:
            return plans[:i] + [plan] + plans[i + 1:]
    return plans + [plan]


def remove_plan(plans: list[LearningPlan], plan_id: str) -> list[LearningPlan]:
    return [p for p in plans if p.id != plan_id]


def merge_local_into_remote(
    remote_plans: list[LearningPlan], local_plans: list[LearningPlan]
) -> list[LearningPlan]:
    """Remote wins on id collisions; local only contributes ids remote lacks."""
    remote_ids = {p.id for p in remote_plans}
    new_from_local = [p for p in local_plans if p.id not in remote_ids]
    return remote_plans + new_from_local


class PlanSync:
    """Owns the authoritative plan collection and decides where writes go."""

    def __init__(
        self,
        state: PlanState,
        local: LocalPlanStore,
        remote: DriveStore,
        schedule_store: Optional[ScheduleStore] = None,
    ):
        self.state = state
        self.local = local
        self.remote = remote
        self.schedule_store = schedule_store

        self._session = SessionState()
        self._last_transition: Optional[tuple[bool, bool]] = None
        self._syncing = False
        # Mutations made while a sync is in flight, replayed once it settles
        self._pending: list[tuple[str, object]] = []
        self._background: set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()

        if schedule_store is not None:
            self.state.set_schedule(schedule_store.load())

    @property
    def is_logged_in(self) -> bool:
        return self._session.logged_in

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    # ------------------------------------------------------------------
    # Session transitions
    # ------------------------------------------------------------------

    async def on_session_change(self, session: SessionState) -> None:
        """Identity subscriber. Runs the path for a changed (initialized, logged_in)."""
        self._session = session
        key = (session.initialized, session.logged_in)
        if key == self._last_transition:
            return
        self._last_transition = key

        action = TRANSITIONS.get(key)
        if action is None:
            logger.debug("Identity provider not initialized; waiting")
            return

        logger.debug(f"Session {key} -> {action}")
        result = getattr(self, action)()
        if inspect.isawaitable(result):
            await result

    def load_from_local(self) -> None:
        self.state.replace(self.local.load())

    async def sync_with_remote(self) -> None:
        """Migrate local plans into Drive and adopt Drive as the source of truth.

        Re-entrant calls while one is running are dropped. Any failure falls
        back to local data for this cycle; the next session change retries.
        A result that arrives after the session ended is discarded.
        """
        if self._syncing:
            logger.debug("Drive sync already in flight; dropping trigger")
            return
        self._syncing = True

        try:
            await self._migrate_to_remote()
        except Exception as e:
            logger.error(f"Error during Drive sync and migration: {e}", exc_info=True)
            self.load_from_local()
        finally:
            self._syncing = False

        self._replay_pending()

    async def _migrate_to_remote(self) -> None:
        local_plans = self.local.load()
        remote_plans = await self.remote.list_plans()
        if self._session_ended():
            return

        if not local_plans:
            self.state.replace(remote_plans)
            return

        merged = merge_local_into_remote(remote_plans, local_plans)
        await self.remote.save_plans(merged)
        if self._session_ended():
            # Drive already has the merge; the local copy stays for the logged-out session
            return

        self.local.clear()
        logger.info(
            f"Migrated {len(merged) - len(remote_plans)} local plan(s) to Drive "
            f"({len(merged)} total)"
        )
        self.state.replace(merged)

    def _session_ended(self) -> bool:
        if self.is_logged_in:
            return False
        logger.info("Session ended during Drive sync; discarding the remote result")
        return True

    def _replay_pending(self) -> None:
        if not self._pending:
            return
        pending, self._pending = self._pending, []

        plans = list(self.state.plans)
        for op, arg in pending:
            if op == "save":
                plans = upsert_plan(plans, arg)
            else:
                plans = remove_plan(plans, arg)
        logger.debug(f"Replayed {len(pending)} mutation(s) made during sync")
        self.state.replace(plans)
        self._persist(plans)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def get_plan(self, plan_id: str) -> Optional[LearningPlan]:
        return self.state.get(plan_id)

    def save_plan(self, plan: LearningPlan) -> None:
        """Insert or replace a plan by id."""
        plans = upsert_plan(list(self.state.plans), plan)
        self.state.replace(plans)
        if self._syncing:
            self._pending.append(("save", plan))
            return
        self._persist(plans)

    def delete_plan(self, plan_id: str) -> None:
        plans = remove_plan(list(self.state.plans), plan_id)
        self.state.replace(plans)
        if self._syncing:
            self._pending.append(("delete", plan_id))
            return
        self._persist(plans)

    def _persist(self, plans: list[LearningPlan]) -> None:
        if self.is_logged_in:
            task = asyncio.get_running_loop().create_task(self._write_remote(list(plans)))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return

        try:
            self.local.save(plans)
        except OSError as e:
            logger.error(f"Error saving plans to local storage: {e}")

    async def _write_remote(self, plans: list[LearningPlan]) -> None:
        # Fire-and-forget: memory is the source of truth for this process
        async with self._write_lock:
            try:
                await self.remote.save_plans(plans)
            except Exception as e:
                logger.error(f"Failed to save plans to Drive: {e}")

    async def drain(self) -> None:
        """Wait for outstanding background Drive writes."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Schedule (local only, unversioned)
    # ------------------------------------------------------------------

    def save_schedule(self, schedule: UserSchedule) -> None:
        self.state.set_schedule(schedule)
        if self.schedule_store is None:
            return
        try:
            self.schedule_store.save(schedule)
        except OSError as e:
            logger.error(f"Error saving schedule to local storage: {e}")

    def clear_schedule(self) -> None:
        self.state.set_schedule(None)
        if self.schedule_store is None:
            return
        try:
            self.schedule_store.clear()
        except OSError as e:
            logger.error(f"Error clearing schedule from local storage: {e}")
