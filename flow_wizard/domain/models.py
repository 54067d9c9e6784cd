"""
Domain Layer - Static Flow Definitions

This module defines the declarative structure of guided flows: Flows, Steps,
their module templates and the transitions between them. These dataclasses
are pure data; the FlowController interprets them and never mutates them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Tuple, Union

"""
StepKind classifies step behavior:
- form: Collects several fields at once
- choice: Decision point with predefined options (branching)
- file-upload: Collects uploaded file descriptors
- processing: Simulated backend work, advances on its own
- summary: Terminal result card, never locked
- plain-text: Assistant text only (optionally capturing a typed answer)
- help-reference: Informational turn, never locked
"""
StepKind = Literal[
    "form",
    "choice",
    "file-upload",
    "processing",
    "summary",
    "plain-text",
    "help-reference",
]

# Kinds whose turns stay interactive after the flow has moved on.
EXEMPT_KINDS = frozenset({"summary", "help-reference"})

# Kinds allowed to end a flow (no outgoing transition).
TERMINAL_KINDS = frozenset({"summary", "plain-text"})

FieldType = Literal[
    "text", "email", "password", "number", "select", "checkbox", "url"
]

ValidationKind = Literal["required", "email", "regex", "min", "max", "accept"]

ConditionOperator = Literal["equals", "not-equals", "contains", "exists"]

ActionKind = Literal["start-flow", "branch", "jump-back", "help", "retry"]

# Derivation strategies every DerivationEngine registers.
USERNAME_FROM_EMAIL = "username-from-email"
STRONG_SECRET = "strong-secret"
BUILTIN_STRATEGIES = frozenset({USERNAME_FROM_EMAIL, STRONG_SECRET})


@dataclass
class FieldSpec:
    """
    A single input of a form module.

    Attributes:
        id: Session value key the field writes to.
        label: Human-readable label.
        type: FieldType
        required: Rendered as required; enforcement lives in ValidationRule.
        placeholder: Hint text shown while empty.
        default: Initial value when neither session nor derived value exists.
        options: Choices for select fields ({"value", "label"} dicts).
        min: Lower bound for number fields.
        max: Upper bound for number fields.
        editable: False renders the field read-only even when unlocked.
    """
    id: str
    label: str
    type: FieldType = "text"
    required: bool = False
    placeholder: Optional[str] = None
    default: Any = None
    options: List[Dict[str, str]] = field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    editable: bool = True


@dataclass
class FormSection:
    id: str
    fields: List[FieldSpec]
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ChoiceOption:
    """
    One selectable outcome of a choice step.

    Attributes:
        id: Branch key stored in the step's value_field when selected.
        label: Human-readable label, echoed back as the user's answer.
        synonyms: Extra words accepted when the user types instead of clicking.
    """
    id: str
    label: str
    description: Optional[str] = None
    icon: Optional[str] = None
    badge: Optional[str] = None
    synonyms: List[str] = field(default_factory=list)


@dataclass
class ValidationRule:
    """
    Declarative check applied by submit_step_data before values are merged.

    Attributes:
        field_id: Field being checked.
        rule: ValidationKind
        message: Inline error shown next to the field.
        pattern: Regex for rule='regex'; comma-separated extensions for rule='accept'.
        limit: Bound for rule='min' / rule='max'.
    """
    field_id: str
    rule: ValidationKind
    message: str
    pattern: Optional[str] = None
    limit: Optional[float] = None


@dataclass
class DerivationRule:
    """
    A field computed from other fields.

    Attributes:
        target_field_id: Field receiving the derived value.
        source_field_ids: Fields whose change triggers re-derivation.
        strategy: Registered DerivationEngine strategy name.
        editable: Whether the user may overwrite the derived value.
    """
    target_field_id: str
    source_field_ids: List[str]
    strategy: str
    editable: bool = True


@dataclass
class ModuleSpec:
    """
    Static template of the structured payload a step renders.

    Module Projection combines this with live session data into a
    ModuleDescriptor. 'props' holds presentational settings passed through
    untouched (titles, layout, accept filters...).
    """
    kind: str
    props: Dict[str, Any] = field(default_factory=dict)
    sections: List[FormSection] = field(default_factory=list)
    options: List[ChoiceOption] = field(default_factory=list)
    validation: List[ValidationRule] = field(default_factory=list)


@dataclass
class Condition:
    """
    Predicate over session values used by ConditionalTransition.

    When 'evaluator' is set it takes precedence over field/operator/value.
    """
    field: Optional[str] = None
    operator: ConditionOperator = "equals"
    value: Any = None
    evaluator: Optional[Callable[[Mapping[str, Any]], bool]] = None

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        if self.evaluator is not None:
            return bool(self.evaluator(values))

        current = values.get(self.field) if self.field else None
        if self.operator == "exists":
            return current not in (None, "", [])
        if self.operator == "equals":
            return current == self.value
        if self.operator == "not-equals":
            return current != self.value
        if self.operator == "contains":
            if current is None:
                return False
            return self.value in current
        return False


@dataclass
class StaticTransition:
    target: str


@dataclass
class BranchTransition:
    """Maps a branch key (option id or action id) to the next step."""
    branches: Dict[str, str]
    default: Optional[str] = None


@dataclass
class ConditionalTransition:
    """First condition that holds wins; 'default' otherwise."""
    rules: List[Tuple[Condition, str]]
    default: Optional[str] = None


Transition = Union[StaticTransition, BranchTransition, ConditionalTransition]


@dataclass
class SuggestedActionSpec:
    """
    Quick-action button attached to a step's turn.

    Attributes:
        id: Action id (also the branch key for kind='branch').
        label: Button label.
        kind: ActionKind
        target: Flow id (start-flow), step id (jump-back) or help topic (help).
        one_shot: Locks the button after its first use.
    """
    id: str
    label: str
    kind: ActionKind = "branch"
    target: Optional[str] = None
    one_shot: bool = True


@dataclass
class StepDefinition:
    """
    One node in a flow graph; renders as exactly one assistant turn.

    Attributes:
        id: Unique identifier within the flow.
        kind: StepKind
        title: Short human-readable name (progress lists, echoes).
        message: Jinja2 template for the assistant text, rendered with session values.
        module: Static module template (None for text-only steps).
        transition: Next-step rule; None marks a terminal step.
        value_field: Session key storing the selected option of a choice step.
        capture_field: Session key storing typed text on plain-text steps.
        validation: Step-level rules, checked together with the module's rules.
        derivations: Derived fields recomputed when their sources are submitted.
        suggested_actions: Quick actions offered with the turn.
        echo: Jinja2 template for the user turn that echoes a submission.
        transient: Turn is removed from the log once the step is left.
        provision: ClientProvisioner operation run when a processing step ends.
        variant_field: Session key selecting one of 'variants' as module template.
        variants: Alternative module templates keyed by the variant_field value.
    """
    id: str
    kind: StepKind
    title: str
    message: str = ""
    module: Optional[ModuleSpec] = None
    transition: Optional[Transition] = None
    value_field: Optional[str] = None
    capture_field: Optional[str] = None
    validation: List[ValidationRule] = field(default_factory=list)
    derivations: List[DerivationRule] = field(default_factory=list)
    suggested_actions: List[SuggestedActionSpec] = field(default_factory=list)
    echo: Optional[str] = None
    transient: bool = False
    provision: Optional[str] = None
    variant_field: Optional[str] = None
    variants: Dict[str, ModuleSpec] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.transition is None

    @property
    def is_exempt(self) -> bool:
        return self.kind in EXEMPT_KINDS

    def module_for(self, values: Mapping[str, Any]) -> Optional[ModuleSpec]:
        """Returns the variant matching the session values, else the base module."""
        if self.variant_field:
            variant = self.variants.get(values.get(self.variant_field))
            if variant is not None:
                return variant
        return self.module

    def options(self) -> List[ChoiceOption]:
        # Options may live on any variant; the base module wins.
        if self.module and self.module.options:
            return self.module.options
        for variant in self.variants.values():
            if variant.options:
                return variant.options
        return []


@dataclass
class FlowDefinition:
    """
    A directed acyclic graph of steps forming one guided wizard.

    Attributes:
        id: Unique identifier (also the start-flow action target).
        name: Display name, echoed when the flow is selected.
        entry_step: Entry point step ID.
        steps: Dict mapping Step IDs to StepDefinition objects (O(1) lookup).
    """
    id: str
    name: str
    entry_step: str
    steps: Dict[str, StepDefinition] = field(default_factory=dict)
    description: str = ""
    category: str = "general"
    tags: List[str] = field(default_factory=list)

    def step(self, step_id: str) -> StepDefinition:
        return self.steps[step_id]

    def successors(self, step_id: str) -> List[str]:
        """Every step id a transition of 'step_id' may lead to."""
        transition = self.steps[step_id].transition
        if transition is None:
            return []
        if isinstance(transition, StaticTransition):
            targets = [transition.target]
        elif isinstance(transition, BranchTransition):
            targets = list(transition.branches.values())
            if transition.default:
                targets.append(transition.default)
        else:
            targets = [target for _, target in transition.rules]
            if transition.default:
                targets.append(transition.default)
        # Preserve declaration order, drop duplicates
        return list(dict.fromkeys(targets))

    def descendants(self, step_id: str) -> List[str]:
        """All steps reachable from 'step_id' (excluding itself)."""
        seen: List[str] = []
        pending = list(self.successors(step_id))
        while pending:
            current = pending.pop(0)
            if current in seen or current == step_id:
                continue
            seen.append(current)
            pending.extend(self.successors(current))
        return seen
