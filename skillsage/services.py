"""Wire adapters, state and orchestrator together."""
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from skillsage.agents.tools import bind_state
from skillsage.config import Settings
from skillsage.tools.drive_store import DriveStore
from skillsage.tools.genai_client import GenAIClient
from skillsage.tools.identity import GoogleIdentity, TokenRequester
from skillsage.tools.local_store import LocalPlanStore, LocalSlots, ScheduleStore
from skillsage.tools.plan_actions import PlanActions
from skillsage.tools.plan_generation import PlanGenerator
from skillsage.tools.plan_state import PlanState
from skillsage.tools.plan_sync import PlanSync
from skillsage.tools.sage_chat import SageChat


def static_token_requester(access_token: str) -> TokenRequester:
    """Token requester for an access token obtained out of band."""
    async def request(client_id: str, scopes: str) -> dict:
        return {"access_token": access_token, "scope": scopes}
    return request


@dataclass
class Services:
    settings: Settings
    identity: GoogleIdentity
    drive: DriveStore
    state: PlanState
    sync: PlanSync
    genai: GenAIClient
    generator: PlanGenerator
    chat: SageChat
    actions: PlanActions

    async def aclose(self) -> None:
        await self.sync.drain()
        await self.drive.aclose()
        await self.identity.aclose()


def build_services(
    settings: Settings,
    token_requester: Optional[TokenRequester] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    genai_backend: Any = None,
) -> Services:
    """Build the object graph and bind its state for the advisor agent tools.

    Subscription order matters: Drive gets the token before the orchestrator
    starts a sync.
    """
    if token_requester is None and settings.google_access_token:
        token_requester = static_token_requester(settings.google_access_token)

    slots = LocalSlots(settings.state_dir)
    identity = GoogleIdentity(settings.google_client_id, token_requester, client=http_client)
    drive = DriveStore(client=http_client)
    state = PlanState()
    sync = PlanSync(state, LocalPlanStore(slots), drive, ScheduleStore(slots))

    identity.subscribe(drive.on_session_change)
    identity.subscribe(sync.on_session_change)
    bind_state(state)

    genai = GenAIClient(api_key=settings.google_api_key, model=settings.chat_model, client=genai_backend)
    generator = PlanGenerator(genai)
    chat = SageChat(genai)
    actions = PlanActions(sync, generator, chat)

    return Services(
        settings=settings,
        identity=identity,
        drive=drive,
        state=state,
        sync=sync,
        genai=genai,
        generator=generator,
        chat=chat,
        actions=actions,
    )
