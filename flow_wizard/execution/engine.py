"""
Engine - Flow Orchestration Layer

The FlowController is the deterministic state machine that drives one user
through one guided flow. It owns the Session, the Message Log, the Step
Completion Ledger and the Session Clock; the rendering layer only reads
snapshots and submits commands.
-----------------------------------------------

Every command follows the same one-way data flow:

1. Resolve the input (structured choice, form data or free text) against
   the current step's transition rule.
2. Update the ledger (mark the step completed, move the pointer).
3. Append the user's echo turn immediately.
4. Schedule the next assistant turn on the Session Clock ("typing").
5. When the timer fires, project the step's module and append the turn.

Stale continuations are never an issue for the commands themselves:
select_flow(), jump_back_to() and reset() start a new clock epoch, which
silently drops whatever the previous epoch had scheduled.
"""

import logging
import re
from functools import partial
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from ..config import settings
from ..domain.models import (
    EXEMPT_KINDS,
    BranchTransition,
    ChoiceOption,
    ConditionalTransition,
    DerivationRule,
    FlowDefinition,
    StaticTransition,
    StepDefinition,
)
from ..exceptions import InvalidFieldValue, ProvisioningError, StepNotCurrent, UnknownBranch
from ..repositories.flow import FlowRepository
from ..schemas.commands import CommandResult
from ..schemas.intents import Intent
from ..services.intent_resolver import IntentResolver, KeywordIntentResolver, normalize
from ..services.provisioning import ClientProvisioner, SimulatedClientProvisioner
from ..state.models import ModuleDescriptor, Session, SuggestedAction, Turn
from .clock import SessionClock
from .derivation import DerivationEngine
from .ledger import StepCompletionLedger
from .message_log import MessageLog
from .projection import project
from .prompts import Template, render, render_string
from .schemas.state_machine import ControllerState, StateMachineTransition
from .validation import validate

logger = logging.getLogger(__name__)

# (session values, derived values, errors) a turn's module was projected from
ProjectionInputs = Tuple[Dict[str, Any], Dict[str, Any], Dict[str, str]]


class FlowController:
    def __init__(
        self,
        flow_repository: FlowRepository,
        intent_resolver: Optional[IntentResolver] = None,
        provisioner: Optional[ClientProvisioner] = None,
        derivation_engine: Optional[DerivationEngine] = None,
        clock: Optional[SessionClock] = None,
        session_id: Optional[str] = None,
        typing_delay_ms: int = settings.TYPING_DELAY_MS,
        free_text_delay_ms: int = settings.FREE_TEXT_DELAY_MS,
        processing_delay_ms: int = settings.PROCESSING_DELAY_MS,
        follow_up_delay_ms: int = settings.FOLLOW_UP_DELAY_MS,
    ):
        self.flows = flow_repository
        self.intent_resolver = intent_resolver or KeywordIntentResolver()
        self.provisioner = provisioner or SimulatedClientProvisioner()
        self.derivation = derivation_engine or DerivationEngine()
        self.clock = clock or SessionClock()

        self.typing_delay_ms = typing_delay_ms
        self.free_text_delay_ms = free_text_delay_ms
        self.processing_delay_ms = processing_delay_ms
        self.follow_up_delay_ms = follow_up_delay_ms

        self.session = Session(session_id=session_id or str(uuid4()))
        self.ledger = StepCompletionLedger(self.session.completed_steps)
        self.log = MessageLog()
        self._turn_inputs: Dict[str, ProjectionInputs] = {}

        self._append_welcome()

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_messages(self) -> Tuple[Turn, ...]:
        return self.log.snapshot()

    def get_session_values(self) -> Dict[str, Any]:
        return dict(self.session.session_values)

    def get_derived_values(self) -> Dict[str, Any]:
        return dict(self.session.derived_values)

    def get_state(self) -> ControllerState:
        if self.session.active_flow_id is None:
            return ControllerState.IDLE
        if self.session.terminal:
            return ControllerState.TERMINAL
        return ControllerState.RUNNING

    def is_locked(self, step_id: str) -> bool:
        flow = self._active_flow()
        if flow is None or step_id not in flow.steps:
            return False
        return self.ledger.is_locked(
            flow.id, step_id, self.session.current_step_id, flow.step(step_id).kind
        )

    def current_step(self) -> Optional[StepDefinition]:
        flow = self._active_flow()
        if flow is None or self.session.current_step_id is None:
            return None
        return flow.step(self.session.current_step_id)

    # ==========================================================================
    # Commands
    # ==========================================================================

    def select_flow(self, flow_id: str, echo: bool = True) -> CommandResult:
        """
        Starts 'flow_id' from its entry step, abandoning any active flow.
        Raises UnknownFlow for ids that were never registered.
        """
        self.clock.require_loop()
        flow = self.flows.get_flow(flow_id)

        previous = self.session.active_flow_id
        self.session.session_epoch = self.clock.reset()
        self.ledger.clear(flow.id)
        self.session.clear_flow_data()
        self._drop_transient_turns()

        # Turns of an earlier run of the same flow stay read-only
        def supersede(turn: Turn):
            if turn.flow_id == flow.id and turn.step_id is not None:
                turn.superseded = True

        self.log.transform(supersede)

        self.session.active_flow_id = flow.id
        self.session.current_step_id = flow.entry_step
        self.session.terminal = False

        if echo:
            self.log.append("user", flow.name)
        self._refresh_locks()

        logger.info(
            f"Session {self.session.session_id}: flow '{flow.id}' selected"
            + (f" (abandoning '{previous}')" if previous else "")
        )
        self._schedule_emit(flow.entry_step, self.typing_delay_ms)
        return CommandResult(
            accepted=True,
            transition=StateMachineTransition.ADVANCE.name,
            next_step_id=flow.entry_step,
        )

    def advance(
        self,
        from_step_id: str,
        branch_key: Optional[str] = None,
        echo: Optional[str] = None,
    ) -> CommandResult:
        """
        Resolves the current step's transition and moves the pointer.
        Only for steps that take no data: forms, uploads and capture steps
        finish through submit_step_data(), processing steps through their
        own timer. On an unknown branch the step stays current and a
        re-prompt is appended.
        """
        self.clock.require_loop()
        rejection = self._guard_current(from_step_id)
        if rejection:
            return rejection

        step = self._active_flow().step(from_step_id)
        rejection = self._guard_processing(step)
        if rejection:
            return rejection
        if self._takes_data(step):
            return self._reject(
                "StepNeedsData", f"Step '{step.id}' is completed by submitting its data."
            )
        return self._advance(step, branch_key, echo)

    def choose(self, step_id: str, option_id: str, echo: bool = True) -> CommandResult:
        """
        Structured selection of one option of a choice step. Anything that
        is not one of the step's options re-prompts, unless the step's
        branches declare a default.
        """
        self.clock.require_loop()
        rejection = self._guard_current(step_id)
        if rejection:
            return rejection

        step = self._active_flow().step(step_id)
        rejection = self._guard_processing(step)
        if rejection:
            return rejection

        option = next((opt for opt in step.options() if opt.id == option_id), None)
        if step.kind != "choice" or (option is None and not self._has_default_branch(step)):
            return self._unknown_branch(step, option_id, UnknownBranch(step.id, option_id))

        previous = self.session.session_values.get(step.value_field) if step.value_field else None
        if option is not None and step.value_field:
            # Stored before resolution so conditional transitions can read it
            self.session.session_values[step.value_field] = option.id

        label = option.label if option is not None else option_id
        result = self._advance(step, option_id, echo=f"Selected: {label}" if echo else None)

        if not result.accepted and option is not None and step.value_field:
            if previous is None:
                self.session.session_values.pop(step.value_field, None)
            else:
                self.session.session_values[step.value_field] = previous
        return result

    def submit_step_data(
        self, step_id: str, field_values: Mapping[str, Any], echo: bool = True
    ) -> CommandResult:
        """
        Validates and merges 'field_values', re-runs the derivations whose
        sources were touched, then advances like advance().
        """
        self.clock.require_loop()
        rejection = self._guard_current(step_id)
        if rejection:
            return rejection

        flow = self._active_flow()
        step = flow.step(step_id)
        rejection = self._guard_processing(step)
        if rejection:
            return rejection

        submitted = dict(field_values)
        candidate = {**self.session.session_values, **submitted}

        try:
            self._validate(step, candidate)
        except InvalidFieldValue as e:
            logger.warning(f"Session {self.session.session_id}: {e}")
            self._rerender_with_errors(step, candidate, e.errors)
            return CommandResult(
                accepted=False,
                transition=StateMachineTransition.HOLD.name,
                error="InvalidFieldValue",
                field_errors=e.errors,
                message=str(e),
            )

        self.session.session_values.update(submitted)
        self.session.field_errors = {}
        self.derivation.apply(self._flow_derivations(flow), self.session, submitted.keys())

        echo_text = None
        if echo:
            echo_text = render_string(step.echo, self.session.effective_values()) if step.echo else f"{step.title} saved"

        branch_key = submitted.get(step.value_field) if step.value_field else None
        return self._advance(step, branch_key, echo=echo_text)

    def request_derivation(self, step_id: str, field_values: Mapping[str, Any]) -> CommandResult:
        """
        Field-blur preview: merges draft values, re-derives, and replaces the
        step turn's module in place without advancing.
        """
        rejection = self._guard_current(step_id)
        if rejection:
            return rejection

        flow = self._active_flow()
        step = flow.step(step_id)
        drafts = dict(field_values)
        self.session.session_values.update(drafts)
        updates = self.derivation.apply(self._flow_derivations(flow), self.session, drafts.keys())

        if updates:
            turn = self.log.active_step_turn(flow.id, step.id)
            if turn is not None:
                self._reproject(turn, step, locked=turn.locked, live=True)

        return CommandResult(
            accepted=True,
            transition=StateMachineTransition.HOLD.name,
            next_step_id=step.id,
        )

    def send_free_text(self, text: str) -> CommandResult:
        """Echoes typed text now and interprets it after the typing delay."""
        text = (text or "").strip()
        if not text:
            return self._reject("EmptyInput", "Nothing to send.")

        self.clock.require_loop()
        self.log.append("user", text)
        self.clock.schedule(
            partial(self._interpret_free_text, text),
            self.free_text_delay_ms,
            label="free-text",
        )
        return CommandResult(accepted=True, transition=StateMachineTransition.HOLD.name)

    def jump_back_to(self, step_id: str) -> CommandResult:
        """
        Edit recovery: reopens a completed (or the current) step. The step and
        everything after it leave the completion trail, and their old turns
        are superseded.
        """
        self.clock.require_loop()
        flow = self._active_flow()
        if flow is None:
            return self._reject("NoActiveFlow", "No flow is active.")
        if step_id not in flow.steps:
            return self._reject("UnknownStep", f"Step '{step_id}' is not part of '{flow.id}'.")
        if not (
            self.ledger.is_completed(flow.id, step_id)
            or step_id == self.session.current_step_id
        ):
            return self._reject(
                "StepNotCurrent", f"Step '{step_id}' was never reached."
            )

        self.session.session_epoch = self.clock.reset()
        reopened = {step_id, *flow.descendants(step_id)}
        self.ledger.uncomplete(flow.id, reopened)
        self._drop_transient_turns()

        def supersede(turn: Turn):
            if turn.flow_id == flow.id and turn.step_id in reopened:
                turn.superseded = True

        self.log.transform(supersede)

        self.session.current_step_id = step_id
        self.session.terminal = False
        self.session.field_errors = {}

        logger.info(f"Session {self.session.session_id}: jumped back to '{step_id}'")
        self._emit_step(
            step_id, intro=render(Template.JUMP_BACK, step_title=flow.step(step_id).title)
        )
        return CommandResult(
            accepted=True,
            transition=StateMachineTransition.JUMP_BACK.name,
            next_step_id=step_id,
        )

    def complete(self) -> CommandResult:
        """
        Running -> Terminal: appends the terminal summary turn. The active
        flow id stays set so 'create another' can re-enter it.
        """
        step = self.current_step()
        if self.get_state() != ControllerState.RUNNING or step is None:
            return self._reject("NotRunning", "No running flow to complete.")
        if not step.is_terminal:
            return self._reject("StepNotTerminal", f"Step '{step.id}' is not terminal.")

        self._append_step_turn(step)
        self.ledger.mark_completed(self.session.active_flow_id, step.id)
        self.session.terminal = True
        self._refresh_locks()

        logger.info(
            f"Session {self.session.session_id}: flow '{self.session.active_flow_id}' reached '{step.id}'"
        )
        return CommandResult(
            accepted=True,
            transition=StateMachineTransition.EXIT.name,
            next_step_id=step.id,
        )

    def reset(self) -> CommandResult:
        """Start over: back to Idle with only the welcome turn(s)."""
        self.session.session_epoch = self.clock.reset()
        self.ledger.clear()
        self.session.clear_flow_data()
        self.session.active_flow_id = None
        self.session.current_step_id = None
        self.session.terminal = False
        self.session.selected_quick_action_ids = set()

        self.log.retain(lambda turn: turn.is_welcome)
        self._turn_inputs = {
            turn_id: inputs
            for turn_id, inputs in self._turn_inputs.items()
            if self.log.get(turn_id) is not None
        }

        def unlock(turn: Turn):
            turn.locked = False
            for action in turn.suggested_actions:
                action.is_selected = False
                action.is_locked = False

        self.log.transform(unlock)

        logger.info(f"Session {self.session.session_id}: reset to epoch {self.session.session_epoch}")
        return CommandResult(accepted=True, transition=StateMachineTransition.RESET.name)

    def trigger_action(self, action_id: str) -> CommandResult:
        """Runs a suggested (quick) action once; one-shot actions lock afterwards."""
        self.clock.require_loop()
        turn = self.log.last_offering(action_id)
        if turn is None:
            return self._reject("UnknownAction", f"No turn offers action '{action_id}'.")

        action = next(a for a in turn.suggested_actions if a.id == action_id)
        if action.is_locked or action.is_selected:
            return self._reject("ActionLocked", f"Action '{action_id}' was already used.")

        if action.kind == "start-flow":
            result = self.select_flow(action.target)
        elif action.kind == "branch":
            result = self.advance(turn.step_id, action.id, echo=action.label)
        elif action.kind == "jump-back":
            self.log.append("user", action.label)
            result = self.jump_back_to(action.target)
        elif action.kind == "help":
            self.log.append("user", action.label)
            self._append_help(action.target)
            result = CommandResult(accepted=True, transition=StateMachineTransition.HOLD.name)
        elif action.kind == "retry":
            result = self._retry_processing(action.target)
        else:
            result = self._reject("UnknownAction", f"Unsupported action kind '{action.kind}'.")

        if result.accepted and self._is_one_shot(turn, action):
            self.session.selected_quick_action_ids.add(action.id)
            action.is_selected = True
            action.is_locked = True
        return result

    def close(self):
        """Teardown: nothing scheduled so far (or later) will fire."""
        self.clock.cancel_all()

    # ==========================================================================
    # Transition Resolution (Pure Domain)
    # ==========================================================================

    def _resolve_next_step(self, step: StepDefinition, branch_key: Optional[str]) -> str:
        transition = step.transition

        if isinstance(transition, StaticTransition):
            return transition.target

        if isinstance(transition, BranchTransition):
            if branch_key is not None and branch_key in transition.branches:
                return transition.branches[branch_key]
            if transition.default:
                return transition.default
            raise UnknownBranch(step.id, branch_key)

        if isinstance(transition, ConditionalTransition):
            values = self.session.effective_values()
            for condition, target in transition.rules:
                if condition.evaluate(values):
                    return target
            if transition.default:
                return transition.default
            raise UnknownBranch(step.id, branch_key)

        raise UnknownBranch(step.id, branch_key)

    def _has_default_branch(self, step: StepDefinition) -> bool:
        return isinstance(step.transition, BranchTransition) and bool(step.transition.default)

    def _takes_data(self, step: StepDefinition) -> bool:
        """Steps whose answers must go through validation in submit_step_data()."""
        if step.kind in ("form", "file-upload") or step.capture_field or step.validation:
            return True
        specs = [spec for spec in [step.module, *step.variants.values()] if spec is not None]
        return any(spec.validation for spec in specs)

    def _match_synonym(self, step: StepDefinition, text: str) -> Optional[ChoiceOption]:
        """First option whose id, label or synonym appears as whole words in 'text'."""
        for option in step.options():
            for term in [option.id, option.label, *option.synonyms]:
                term = normalize(term)
                if not term:
                    continue
                if text == term or re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text):
                    return option
        return None

    # ==========================================================================
    # State Mutation
    # ==========================================================================

    def _advance(
        self, step: StepDefinition, branch_key: Optional[str], echo: Optional[str]
    ) -> CommandResult:
        """Moves the pointer off 'step'; callers have already checked its input."""
        flow = self._active_flow()
        if step.is_terminal:
            return self._reject("TerminalStep", f"Step '{step.id}' ends the flow.")

        try:
            next_step_id = self._resolve_next_step(step, branch_key)
        except UnknownBranch as e:
            return self._unknown_branch(step, branch_key, e)

        if echo:
            self.log.append("user", echo)

        self._complete_step(flow, step)
        self.session.current_step_id = next_step_id
        self._refresh_locks()
        self._schedule_emit(next_step_id, self.typing_delay_ms)

        transition = (
            StateMachineTransition.EXIT
            if flow.step(next_step_id).is_terminal
            else StateMachineTransition.ADVANCE
        )
        return CommandResult(
            accepted=True, transition=transition.name, next_step_id=next_step_id
        )

    def _unknown_branch(
        self, step: StepDefinition, answer: Optional[str], error: UnknownBranch
    ) -> CommandResult:
        logger.warning(f"Session {self.session.session_id}: {error}")
        self._reprompt(step, answer)
        return CommandResult(
            accepted=False,
            transition=StateMachineTransition.HOLD.name,
            error="UnknownBranch",
            message=str(error),
        )

    def _complete_step(self, flow: FlowDefinition, step: StepDefinition):
        self.ledger.mark_completed(flow.id, step.id)
        self.session.field_errors = {}

        # The read-only turn shows what was submitted
        turn = self.log.active_step_turn(flow.id, step.id)
        if turn is not None:
            self._turn_inputs[turn.id] = (
                dict(self.session.session_values),
                dict(self.session.derived_values),
                {},
            )

        if step.transient:
            self.log.retain(
                lambda turn: not (turn.transient and turn.flow_id == flow.id and turn.step_id == step.id)
            )
        logger.info(f"Session {self.session.session_id}: step '{step.id}' completed")

    def _validate(self, step: StepDefinition, candidate: Mapping[str, Any]):
        spec = step.module_for(candidate)
        rules = list(step.validation) + (list(spec.validation) if spec else [])
        errors = validate(rules, candidate)
        if errors:
            raise InvalidFieldValue(step.id, errors)

    def _flow_derivations(self, flow: FlowDefinition) -> List[DerivationRule]:
        return [rule for step in flow.steps.values() for rule in step.derivations]

    # ==========================================================================
    # Scheduled Continuations
    # ==========================================================================

    def _schedule_emit(self, step_id: str, delay_ms: int):
        self.clock.schedule(partial(self._emit_step, step_id), delay_ms, label=f"emit:{step_id}")

    def _emit_step(self, step_id: str, intro: Optional[str] = None):
        if self.session.current_step_id != step_id or self._active_flow() is None:
            logger.debug(f"Skipping emission of '{step_id}', pointer moved on")
            return

        step = self._active_flow().step(step_id)
        if step.is_terminal:
            self.complete()
            return

        self._append_step_turn(step, intro=intro)
        if step.kind == "processing":
            self.clock.schedule(
                partial(self._finish_processing, step_id),
                self.processing_delay_ms,
                label=f"process:{step_id}",
            )

    def _finish_processing(self, step_id: str):
        if self.session.current_step_id != step_id:
            return

        flow = self._active_flow()
        step = flow.step(step_id)

        if step.provision:
            try:
                produced = self.provisioner.provision(step.provision, self.session.effective_values())
            except ProvisioningError as e:
                logger.warning(f"Session {self.session.session_id}: provisioning '{step.provision}' failed: {e}")
                self._append_provisioning_failure(step, str(e))
                return
            self.session.session_values.update(produced)

        next_step_id = self._resolve_next_step(step, None)
        self._complete_step(flow, step)
        self.session.current_step_id = next_step_id
        self._refresh_locks()
        self._schedule_emit(next_step_id, self.follow_up_delay_ms)

    def _retry_processing(self, step_id: Optional[str]) -> CommandResult:
        step = self.current_step()
        if step is None or step.id != step_id or step.kind != "processing":
            return self._reject("StepNotCurrent", f"Nothing to retry for '{step_id}'.")
        self._emit_step(step.id)
        return CommandResult(
            accepted=True, transition=StateMachineTransition.HOLD.name, next_step_id=step.id
        )

    def _interpret_free_text(self, text: str):
        normalized = normalize(text)
        step = self.current_step() if self.get_state() == ControllerState.RUNNING else None

        # 1. Typed answers for capture steps
        if step is not None and step.capture_field:
            self.submit_step_data(step.id, {step.capture_field: text}, echo=False)
            return

        # 2. Per-step synonym table
        if step is not None and step.kind == "choice":
            option = self._match_synonym(step, normalized)
            if option is not None:
                self.choose(step.id, option.id, echo=False)
                return

        # 3. Coarse intent
        result = self.intent_resolver.resolve(text, step)
        logger.debug(f"Free text resolved to {result.intent.value}")

        if result.intent == Intent.START_FLOW and result.flow_id:
            self.select_flow(result.flow_id, echo=False)
        elif result.intent == Intent.CONTINUE_BRANCH and step is not None and result.branch_key:
            self.choose(step.id, result.branch_key, echo=False)
        elif result.intent == Intent.GENERAL_HELP:
            self._append_help(result.topic)
        elif step is not None:
            self._reprompt(step, text)
        else:
            self.log.append(
                "assistant",
                render(Template.UNRECOGNIZED),
                suggested_actions=[
                    SuggestedAction(id="show-help", label="Show Help", kind="help", target="general")
                ],
                step_kind="help-reference",
            )

    # ==========================================================================
    # Turn Construction
    # ==========================================================================

    def _append_welcome(self):
        actions = [
            SuggestedAction(id=flow.id, label=flow.name, kind="start-flow", target=flow.id)
            for flow in self.flows.list_flows()
        ]
        self.log.append(
            "assistant",
            render(Template.WELCOME),
            suggested_actions=actions,
            is_welcome=True,
        )

    def _actions_for(self, step: StepDefinition) -> List[SuggestedAction]:
        return [
            SuggestedAction(id=spec.id, label=spec.label, kind=spec.kind, target=spec.target)
            for spec in step.suggested_actions
        ]

    def _append_step_turn(
        self,
        step: StepDefinition,
        text: Optional[str] = None,
        values: Optional[Mapping[str, Any]] = None,
        errors: Optional[Mapping[str, str]] = None,
        intro: Optional[str] = None,
    ) -> Turn:
        """Appends the (single) active turn of 'step', superseding older ones."""
        flow_id = self.session.active_flow_id

        def supersede(turn: Turn):
            if turn.flow_id == flow_id and turn.step_id == step.id:
                turn.superseded = True

        self.log.transform(supersede)
        if step.transient:
            self.log.retain(
                lambda turn: not (turn.transient and turn.flow_id == flow_id and turn.step_id == step.id)
            )

        if text is None:
            text = render_string(step.message, self.session.effective_values())
        if intro:
            text = f"{intro}\n\n{text}".strip()

        inputs: ProjectionInputs = (
            dict(values if values is not None else self.session.session_values),
            dict(self.session.derived_values),
            dict(errors or {}),
        )
        turn = self.log.append(
            "assistant",
            text,
            module=project(step, inputs[0], inputs[1], locked=False, errors=inputs[2]),
            suggested_actions=self._actions_for(step),
            step_id=step.id,
            flow_id=flow_id,
            step_kind=step.kind,
            transient=step.transient,
        )
        self._turn_inputs[turn.id] = inputs
        self._refresh_locks()
        return turn

    def _rerender_with_errors(
        self, step: StepDefinition, candidate: Mapping[str, Any], errors: Dict[str, str]
    ):
        self.session.field_errors = dict(errors)
        if step.module_for(candidate) is not None:
            text = render(Template.INVALID_FIELDS, count=len(errors), step_title=step.title)
        else:
            text = render(
                Template.REPROMPT_CAPTURE,
                error=next(iter(errors.values())),
                question=render_string(step.message, self.session.effective_values()),
            )
        self._append_step_turn(step, text=text, values=candidate, errors=errors)

    def _reprompt(self, step: StepDefinition, answer: Optional[str]):
        """Re-asks the same step without guessing; the step's module stays active."""
        if step.kind == "choice":
            text = render(
                Template.REPROMPT_CHOICE,
                answer=answer,
                step_title=step.title,
                options=[option.label for option in step.options()],
            )
        else:
            text = render(
                Template.REPROMPT_CAPTURE,
                error="",
                question=render_string(step.message, self.session.effective_values()),
            )
        self.log.append("assistant", text, flow_id=self.session.active_flow_id)

    def _append_help(self, topic: Optional[str]):
        if topic == "clients":
            actions = [
                SuggestedAction(id=flow.id, label=flow.name, kind="start-flow", target=flow.id)
                for flow in self.flows.list_flows(category="clients")[:2]
            ]
        else:
            default = self.flows.list_flows()[0]
            actions = [
                SuggestedAction(id=default.id, label=f"Start {default.name}", kind="start-flow", target=default.id)
            ]
        self.log.append(
            "assistant",
            render(Template.GENERAL_HELP, topic=topic),
            suggested_actions=actions,
            sources=self.flows.get_help_sources(topic),
            flow_id=self.session.active_flow_id,
            step_kind="help-reference",
        )

    def _append_provisioning_failure(self, step: StepDefinition, reason: str):
        self.log.append(
            "assistant",
            render(Template.PROVISIONING_FAILED, step_title=step.title, reason=reason),
            module=ModuleDescriptor(
                kind="alert",
                props={"type": "error", "title": f"{step.title} failed", "message": reason},
            ),
            suggested_actions=[
                SuggestedAction(id="retry", label="Try Again", kind="retry", target=step.id)
            ],
            flow_id=self.session.active_flow_id,
        )

    # ==========================================================================
    # Locking
    # ==========================================================================

    def _turn_locked(self, turn: Turn) -> bool:
        if turn.step_id is None or turn.flow_id is None:
            return False
        if turn.step_kind in EXEMPT_KINDS:
            return False
        if turn.superseded or turn.flow_id != self.session.active_flow_id:
            return True
        return self.ledger.is_locked(
            turn.flow_id, turn.step_id, self.session.current_step_id, turn.step_kind
        )

    def _refresh_locks(self):
        def apply(turn: Turn):
            locked = self._turn_locked(turn)
            if locked != turn.locked and turn.id in self._turn_inputs:
                step = self.flows.get_flow(turn.flow_id).step(turn.step_id)
                self._reproject(turn, step, locked)
            turn.locked = locked
            for action in turn.suggested_actions:
                action.is_locked = action.is_selected or locked

        self.log.transform(apply)

    def _reproject(self, turn: Turn, step: StepDefinition, locked: bool, live: bool = False):
        """
        Fresh descriptor from the inputs the turn was projected from and the
        current lock state. 'live' folds in the current session values first
        (derivation previews on the active turn).
        """
        values, derived, errors = self._turn_inputs.get(turn.id, ({}, {}, {}))
        if live:
            values = {**values, **self.session.session_values}
            derived = dict(self.session.derived_values)
            self._turn_inputs[turn.id] = (values, derived, errors)
        self.log.replace_module(turn.id, project(step, values, derived, locked, errors))

    # ==========================================================================
    # Standard Helpers
    # ==========================================================================

    def _active_flow(self) -> Optional[FlowDefinition]:
        if self.session.active_flow_id is None:
            return None
        return self.flows.get_flow(self.session.active_flow_id)

    def _guard_current(self, step_id: str) -> Optional[CommandResult]:
        if self.get_state() != ControllerState.RUNNING:
            return self._reject("NotRunning", f"No running flow accepts '{step_id}'.")
        if step_id != self.session.current_step_id:
            error = StepNotCurrent(step_id, self.session.current_step_id)
            return self._reject(type(error).__name__, str(error))
        return None

    def _guard_processing(self, step: StepDefinition) -> Optional[CommandResult]:
        # Processing steps finish only through their own timer
        if step.kind == "processing":
            return self._reject("StepInProgress", f"Step '{step.id}' completes on its own.")
        return None

    def _is_one_shot(self, turn: Turn, action: SuggestedAction) -> bool:
        if turn.is_welcome or action.kind in ("start-flow", "retry"):
            return True
        flow = self.flows.get_flow(turn.flow_id) if turn.flow_id else None
        if flow is None or turn.step_id not in flow.steps:
            return True
        spec = next(
            (s for s in flow.step(turn.step_id).suggested_actions if s.id == action.id), None
        )
        return spec.one_shot if spec else True

    def _drop_transient_turns(self):
        self.log.retain(lambda turn: not turn.transient)

    def _reject(self, error: str, message: str) -> CommandResult:
        logger.warning(f"Session {self.session.session_id}: rejected ({error}) {message}")
        return CommandResult(
            accepted=False,
            transition=StateMachineTransition.HOLD.name,
            error=error,
            message=message,
        )
