"""
Module Projection

Pure mapping (step definition, session values, derived values, lock state)
-> ModuleDescriptor. No side effects and no randomness: anything random was
already resolved by the DerivationEngine and cached in derived values. The
FlowController calls this every time a turn's module must reflect new lock
state or new derived values, instead of mutating an old descriptor.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

from ..domain.models import ChoiceOption, FieldSpec, ModuleSpec, StepDefinition
from ..state.models import ModuleDescriptor
from .prompts import render_string


def _blank(value: Any) -> bool:
    return value is None or value == ""


def _field_value(
    spec: FieldSpec, session_values: Mapping[str, Any], derived_values: Mapping[str, Any]
) -> Any:
    # What the user typed wins, then the derived value, then the default
    value = session_values.get(spec.id)
    if not _blank(value):
        return value
    if spec.id in derived_values:
        return derived_values[spec.id]
    return spec.default


def _project_field(
    spec: FieldSpec,
    session_values: Mapping[str, Any],
    derived_values: Mapping[str, Any],
    derived_ids: List[str],
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": spec.id,
        "label": spec.label,
        "type": spec.type,
        "required": spec.required,
        "value": _field_value(spec, session_values, derived_values),
        "editable": spec.editable,
        "derived": spec.id in derived_ids,
    }
    if spec.placeholder is not None:
        data["placeholder"] = spec.placeholder
    if spec.options:
        data["options"] = [dict(option) for option in spec.options]
    if spec.min is not None:
        data["min"] = spec.min
    if spec.max is not None:
        data["max"] = spec.max
    return data


def _project_option(option: ChoiceOption, selected_id: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": option.id,
        "label": option.label,
        "selected": option.id == selected_id,
    }
    for key in ("description", "icon", "badge"):
        value = getattr(option, key)
        if value is not None:
            data[key] = value
    return data


def _render_items(items: List[Dict[str, Any]], values: Mapping[str, Any]) -> List[Dict[str, Any]]:
    rendered = []
    for item in items:
        rendered.append({
            key: render_string(value, values) if isinstance(value, str) else value
            for key, value in item.items()
        })
    return rendered


def project(
    step: StepDefinition,
    session_values: Mapping[str, Any],
    derived_values: Mapping[str, Any],
    locked: bool,
    errors: Optional[Mapping[str, str]] = None,
) -> Optional[ModuleDescriptor]:
    """
    Builds the renderable module for 'step'. Returns None for text-only steps.

    Idempotent: identical arguments always yield equal descriptors.
    """
    spec: Optional[ModuleSpec] = step.module_for(session_values)
    if spec is None:
        return None

    # Exempt kinds never render read-only
    locked = bool(locked) and not step.is_exempt

    props: Dict[str, Any] = copy.deepcopy(spec.props)
    props["stepId"] = step.id
    props["locked"] = locked
    props["disabled"] = locked

    if step.kind == "form" or spec.sections:
        derived_ids = [rule.target_field_id for rule in step.derivations]
        props["sections"] = [
            {
                "id": section.id,
                "title": section.title,
                "description": section.description,
                "fields": [
                    _project_field(field_spec, session_values, derived_values, derived_ids)
                    for field_spec in section.fields
                ],
            }
            for section in spec.sections
        ]
        props["errors"] = dict(errors or {})

    elif step.kind == "choice" or spec.options:
        selected = session_values.get(step.value_field) if step.value_field else None
        props["options"] = [_project_option(option, selected) for option in spec.options]
        props["value"] = selected

    elif step.kind == "file-upload":
        props["files"] = list(session_values.get(step.value_field or "files") or [])
        props["errors"] = dict(errors or {})

    if "items" in props:
        values = dict(derived_values)
        values.update({k: v for k, v in session_values.items() if not _blank(v)})
        props["items"] = _render_items(props["items"], values)

    return ModuleDescriptor(kind=spec.kind, props=props)
