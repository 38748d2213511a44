# /realty_intake/workflows/engine.py

"""
Conversation state machine for the property questionnaires.

Given an actor's session and one normalized inbound message, the engine:
- honours the global RESET command from any state
- routes idle actors to a flow or back to the main menu
- captures the reply for the current stage and advances to its successor
- at the consent checkpoint submits the lead (once) and ends the session

Sessions, outbound messaging and lead submission are injected, so the flow
logic never depends on a concrete transport or store. Stage behaviour comes
entirely from the flow tables in `definitions.py`.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from realty_intake.config import strings
from realty_intake.models.conversation import Session
from realty_intake.models.domain import NormalizedInput, SubmissionResult
from realty_intake.models.flow import (
    BinaryChoice,
    CaptureRule,
    Choice,
    FlowDefinition,
    FlowName,
    StageDefinition,
)
from realty_intake.services.session_store import SessionStore
from realty_intake.utils.metrics import lead_submission_counter
from realty_intake.workflows.definitions import (
    FLOWS,
    MAIN_MENU_CHOICES,
    MENU_KEYWORDS,
    RESET_KEYWORD,
    SOURCE_TAG,
)
from realty_intake.workflows.validator import validate_registry

logger = logging.getLogger(__name__)

DIAGNOSTIC_LIMIT = 200
COMPLETED_AT_FIELD = "Fecha"


class MessagingClient(Protocol):
    async def send_message(self, to_phone: str, message: str) -> Optional[str]: ...

    async def send_buttons(self, to_phone: str, message: str, choices: List[Choice]) -> Optional[str]: ...


class LeadSubmitter(Protocol):
    async def submit(self, record: Dict[str, Any]) -> SubmissionResult: ...


class LeadAlerts(Protocol):
    async def send_lead_failure_alert(self, actor_id: str, flow: str, error: Any, answers: Dict[str, str]): ...


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_positive(rule: BinaryChoice, inbound: NormalizedInput) -> bool:
    if inbound.chosen in rule.positive_tokens:
        return True
    if rule.text_prefix and inbound.text.lower().startswith(rule.text_prefix.lower()):
        return True
    if rule.text_contains and rule.text_contains.upper() in inbound.text.upper():
        return True
    return False


def capture_value(stage: StageDefinition, inbound: NormalizedInput) -> Optional[str]:
    """The answer value a reply produces for a stage, or None when nothing is stored."""
    if stage.capture == CaptureRule.OPTIONAL:
        return None if inbound.text.lower() == (stage.opt_out or "").lower() else inbound.text
    if stage.capture in (CaptureRule.BINARY, CaptureRule.CONSENT):
        rule = stage.binary
        return rule.positive_value if is_positive(rule, inbound) else rule.negative_value
    return inbound.text


def format_diagnostic(error: Any) -> str:
    return json.dumps(error, ensure_ascii=False, default=str)[:DIAGNOSTIC_LIMIT]


class ConversationEngine:
    def __init__(
        self,
        store: SessionStore,
        messenger: MessagingClient,
        submitter: LeadSubmitter,
        flows: Optional[Dict[FlowName, FlowDefinition]] = None,
        alerts: Optional[LeadAlerts] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.flows = flows if flows is not None else FLOWS
        result = validate_registry(self.flows, reserved=[RESET_KEYWORD, *MENU_KEYWORDS])
        if not result["is_valid"]:
            raise ValueError(f"Invalid flow registry ({result['error_code']}): {result['message']}")

        self.store = store
        self.messenger = messenger
        self.submitter = submitter
        self.alerts = alerts
        self.clock = clock
        self._keyword_index: Dict[str, FlowDefinition] = {
            keyword.upper(): flow for flow in self.flows.values() for keyword in flow.keywords
        }

    async def handle(self, inbound: NormalizedInput) -> None:
        """Runs one transition for the actor behind `inbound`."""
        session = self.store.get_or_create(inbound.actor_id)
        session.touch()

        if inbound.text.upper() == RESET_KEYWORD:
            await self.reset(inbound.actor_id)
            return

        if session.is_idle:
            await self._route_idle(session, inbound)
            return

        await self._advance(session, inbound)

    async def reset(self, actor_id: str) -> None:
        self.store.remove(actor_id)
        logger.info(f"Conversation reset by {actor_id}")
        await self.messenger.send_message(actor_id, strings.RESET_ACK)
        await self.show_main_menu(actor_id)

    async def show_main_menu(self, actor_id: str) -> None:
        await self.messenger.send_buttons(actor_id, strings.MAIN_MENU_PROMPT, MAIN_MENU_CHOICES)

    # --- Idle routing ---

    async def _route_idle(self, session: Session, inbound: NormalizedInput) -> None:
        chosen = inbound.chosen
        flow = self._keyword_index.get(chosen.upper()) if chosen else None
        if flow is not None:
            await self._start_flow(session, flow)
            return

        if chosen in MENU_KEYWORDS:
            logger.info(f"Menu requested by {session.actor_id}")
        else:
            logger.info(f"Unrecognized idle input from {session.actor_id}, presenting menu")
        await self.show_main_menu(session.actor_id)

    async def _start_flow(self, session: Session, flow: FlowDefinition) -> None:
        session.start(
            flow.name,
            flow.initial_stage,
            {"Fuente": SOURCE_TAG, "Flujo": flow.label, "Telefono": session.actor_id},
        )
        logger.info(f"Flow {flow.name.value} started for {session.actor_id}")
        await self._send_prompt(session.actor_id, flow.stage(flow.initial_stage))

    # --- In-flow advance ---

    async def _advance(self, session: Session, inbound: NormalizedInput) -> None:
        flow = self.flows[session.flow]
        stage = flow.stages.get(session.stage)
        if stage is None:
            logger.error(f"Session for {session.actor_id} is at unknown stage {session.stage!r} of {flow.name.value}")
            self.store.remove(session.actor_id)
            await self.show_main_menu(session.actor_id)
            return

        if stage.capture == CaptureRule.CONSENT:
            await self._conclude(session, flow, stage, inbound)
            return

        value = capture_value(stage, inbound)
        if value is not None:
            session.answers[stage.field] = value

        next_stage = flow.stage(stage.next_stage)
        session.stage = next_stage.name
        logger.info(f"{session.actor_id} advanced {flow.name.value}: {stage.name} -> {next_stage.name}")
        await self._send_prompt(session.actor_id, next_stage)

    async def _send_prompt(self, actor_id: str, stage: StageDefinition) -> None:
        if stage.choices:
            await self.messenger.send_buttons(actor_id, stage.prompt, stage.choices)
        else:
            await self.messenger.send_message(actor_id, stage.prompt)

    # --- Consent checkpoint ---

    async def _conclude(self, session: Session, flow: FlowDefinition, stage: StageDefinition,
                        inbound: NormalizedInput) -> None:
        actor_id = session.actor_id
        try:
            if not is_positive(stage.binary, inbound):
                logger.info(f"Consent declined by {actor_id} in {flow.name.value}")
                await self.messenger.send_message(actor_id, flow.consent_declined)
                return

            session.answers[stage.field] = stage.binary.positive_value
            session.answers[COMPLETED_AT_FIELD] = self.clock()
            answers = dict(session.answers)
            result = await self.submitter.submit(answers)

            if result.ok:
                lead_submission_counter.labels(flow=flow.name.value, status="success").inc()
                logger.info(f"Lead {result.id} submitted for {actor_id} ({flow.name.value})")
                await self.messenger.send_message(actor_id, flow.lead_saved.format(lead_id=result.id))
            else:
                lead_submission_counter.labels(flow=flow.name.value, status="failure").inc()
                logger.error(f"Lead submission failed for {actor_id} ({flow.name.value}): {result.error}")
                if self.alerts is not None:
                    await self.alerts.send_lead_failure_alert(actor_id, flow.name.value, result.error, answers)
                await self.messenger.send_message(
                    actor_id, flow.lead_failed.format(detail=format_diagnostic(result.error))
                )
        finally:
            self.store.remove(actor_id)
