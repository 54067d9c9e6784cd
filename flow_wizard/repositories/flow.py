import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..config import settings
from ..data.hardcoded_flows import HARDCODED_FLOWS, HELP_SOURCES
from ..domain.models import (
    BUILTIN_STRATEGIES,
    TERMINAL_KINDS,
    BranchTransition,
    FlowDefinition,
)
from ..exceptions import FlowDefinitionError, UnknownFlow
from ..state.models import SourceReference

logger = logging.getLogger(__name__)


def validate_flow(flow: FlowDefinition, known_strategies: Iterable[str] = BUILTIN_STRATEGIES):
    """
    Checks a flow graph before it can be used.
    Raises FlowDefinitionError describing the first problem found.
    """
    strategies = set(known_strategies)

    if flow.entry_step not in flow.steps:
        raise FlowDefinitionError(f"Flow '{flow.id}': entry step '{flow.entry_step}' is not defined.")

    for key, step in flow.steps.items():
        where = f"Flow '{flow.id}', step '{key}'"

        if key != step.id:
            raise FlowDefinitionError(f"{where}: registered under a different id ('{step.id}').")

        for target in flow.successors(key):
            if target not in flow.steps:
                raise FlowDefinitionError(f"{where}: transition targets unknown step '{target}'.")

        if step.transition is None and step.kind not in TERMINAL_KINDS:
            raise FlowDefinitionError(f"{where}: a '{step.kind}' step needs a transition.")

        if step.kind == "choice" and isinstance(step.transition, BranchTransition):
            for option in step.options():
                if option.id not in step.transition.branches and not step.transition.default:
                    raise FlowDefinitionError(f"{where}: option '{option.id}' leads nowhere.")

        for rule in step.derivations:
            if rule.strategy not in strategies:
                raise FlowDefinitionError(f"{where}: unknown derivation strategy '{rule.strategy}'.")

        for action in step.suggested_actions:
            if action.kind == "branch":
                transition = step.transition
                if not isinstance(transition, BranchTransition) or (
                    action.id not in transition.branches and not transition.default
                ):
                    raise FlowDefinitionError(f"{where}: action '{action.id}' has no branch.")
            elif action.kind == "jump-back" and action.target not in flow.steps:
                raise FlowDefinitionError(
                    f"{where}: action '{action.id}' jumps back to unknown step '{action.target}'."
                )
            elif action.kind == "start-flow" and not action.target:
                raise FlowDefinitionError(f"{where}: action '{action.id}' names no flow.")

        specs = [spec for spec in [step.module, *step.variants.values()] if spec is not None]
        rules = list(step.validation) + [rule for spec in specs for rule in spec.validation]
        for rule in rules:
            if rule.rule in ("min", "max") and rule.limit is None:
                raise FlowDefinitionError(f"{where}: '{rule.rule}' rule on '{rule.field_id}' needs a limit.")

    _check_acyclic(flow)

    reachable = [flow.entry_step, *flow.descendants(flow.entry_step)]
    if not any(flow.step(step_id).is_terminal for step_id in reachable):
        raise FlowDefinitionError(f"Flow '{flow.id}': no terminal step is reachable.")


def _check_acyclic(flow: FlowDefinition):
    # Iterative DFS with colouring; grey nodes are on the current path
    WHITE, GREY, BLACK = 0, 1, 2
    colour = {step_id: WHITE for step_id in flow.steps}

    for root in flow.steps:
        if colour[root] != WHITE:
            continue
        stack = [(root, iter(flow.successors(root)))]
        colour[root] = GREY
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                colour[node] = BLACK
                stack.pop()
            elif colour[child] == GREY:
                raise FlowDefinitionError(
                    f"Flow '{flow.id}': cycle through '{node}' -> '{child}'."
                )
            elif colour[child] == WHITE:
                colour[child] = GREY
                stack.append((child, iter(flow.successors(child))))


# The Interface
class FlowRepository(ABC):
    """
    Defines how the application accesses Flow definitions.
    This allows us change how data is accessed (Memory -> API) later
    without changing the FlowController code.
    """

    @abstractmethod
    def get_flow(self, flow_id: str) -> FlowDefinition:
        """
        Retrieves a flow by ID.
        Raises UnknownFlow if not found.
        """
        pass

    @abstractmethod
    def list_flows(self, category: Optional[str] = None) -> List[FlowDefinition]:
        """Flows in display order (the default flow first)."""
        pass

    def get_help_sources(self, topic: Optional[str]) -> List[SourceReference]:
        """Reference articles attached to help turns. None by default."""
        return []


class StaticFlowRepository(FlowRepository):
    """
    Get flows from a hardcoded list in memory. Every flow is validated when
    it is registered.
    """

    def __init__(
        self,
        flows: Optional[Iterable[FlowDefinition]] = None,
        help_sources: Optional[Dict[str, List[SourceReference]]] = None,
        default_flow_id: str = settings.DEFAULT_FLOW_ID,
        known_strategies: Iterable[str] = BUILTIN_STRATEGIES,
    ):
        self.default_flow_id = default_flow_id
        self.known_strategies = set(known_strategies)
        self._help_sources = HELP_SOURCES if help_sources is None else help_sources
        # Index for O(1) lookup
        self._index: Dict[str, FlowDefinition] = {}

        for flow in (HARDCODED_FLOWS.values() if flows is None else flows):
            self.register(flow)

    def register(self, flow: FlowDefinition):
        validate_flow(flow, self.known_strategies)
        self._index[flow.id] = flow
        logger.debug(f"Flow '{flow.id}' registered with {len(flow.steps)} steps")

    def get_flow(self, flow_id: str) -> FlowDefinition:
        if flow_id not in self._index:
            raise UnknownFlow(flow_id)
        return self._index[flow_id]

    def list_flows(self, category: Optional[str] = None) -> List[FlowDefinition]:
        flows = sorted(self._index.values(), key=lambda flow: flow.id != self.default_flow_id)
        if category is not None:
            flows = [flow for flow in flows if flow.category == category]
        return flows

    def get_help_sources(self, topic: Optional[str]) -> List[SourceReference]:
        sources = self._help_sources.get(topic or "general")
        if sources is None:
            sources = self._help_sources.get("general", [])
        return [source.model_copy() for source in sources]
