# /realty_intake/workflows/validator.py

"""
Pure validation functions for flow definitions.

This module checks that a FlowDefinition forms a well-shaped stage graph
before the engine ever walks it:
- the initial stage and every successor exist
- every path ends at exactly one consent checkpoint
- every stage is reachable from the initial stage
- field bindings and choice ids are unique within a flow
- choice sets fit the WhatsApp interactive limits

All functions are pure and deterministic; they never raise.
"""

from typing import Dict, Iterable, List, Optional, TypedDict

from realty_intake.models.flow import CaptureRule, FlowDefinition, FlowName

# WhatsApp allows at most 10 rows in an interactive list message.
MAX_CHOICES = 10


class ValidationResult(TypedDict):
    """Result of a validation check."""
    is_valid: bool
    error_code: Optional[str]
    message: Optional[str]


def _ok() -> ValidationResult:
    return {"is_valid": True, "error_code": None, "message": None}


def _fail(error_code: str, message: str) -> ValidationResult:
    return {"is_valid": False, "error_code": error_code, "message": message}


def validate_stage_links(flow: FlowDefinition) -> ValidationResult:
    """
    Validate that the initial stage and every declared successor exist.

    Args:
        flow: The flow definition to check

    Returns:
        ValidationResult with is_valid=False on the first dangling reference
    """
    if flow.initial_stage not in flow.stages:
        return _fail("UNKNOWN_INITIAL_STAGE",
                     f"Flow '{flow.name.value}' starts at undefined stage '{flow.initial_stage}'")

    for name, stage in flow.stages.items():
        if name != stage.name:
            return _fail("STAGE_NAME_MISMATCH", f"Stage registered as '{name}' is named '{stage.name}'")
        if stage.next_stage is not None and stage.next_stage not in flow.stages:
            return _fail("UNKNOWN_NEXT_STAGE",
                         f"Stage '{name}' of flow '{flow.name.value}' points to undefined '{stage.next_stage}'")

    return _ok()


def validate_terminal_stage(flow: FlowDefinition) -> ValidationResult:
    """
    Validate that the consent checkpoint is the only terminal stage, and
    that it is reached by walking successors from the initial stage.
    """
    for name, stage in flow.stages.items():
        is_consent = stage.capture == CaptureRule.CONSENT
        if is_consent and stage.next_stage is not None:
            return _fail("CONSENT_NOT_TERMINAL", f"Consent stage '{name}' must not have a successor")
        if not is_consent and stage.next_stage is None:
            return _fail("DEAD_END_STAGE", f"Stage '{name}' has no successor and is not a consent stage")
        if is_consent and stage.binary is None:
            return _fail("CONSENT_WITHOUT_RULE", f"Consent stage '{name}' needs an affirmative rule")

    visited: List[str] = []
    current: Optional[str] = flow.initial_stage
    while current is not None:
        if current in visited:
            return _fail("STAGE_CYCLE", f"Flow '{flow.name.value}' loops back to '{current}'")
        visited.append(current)
        current = flow.stages[current].next_stage

    unreachable = set(flow.stages) - set(visited)
    if unreachable:
        return _fail("UNREACHABLE_STAGE", f"Unreachable stages in '{flow.name.value}': {sorted(unreachable)}")

    return _ok()


def validate_bindings(flow: FlowDefinition) -> ValidationResult:
    """Validate capture rules, unique field bindings and choice sets."""
    fields = flow.bound_fields()
    duplicates = sorted({field for field in fields if fields.count(field) > 1})
    if duplicates:
        return _fail("DUPLICATE_FIELD", f"Fields bound by more than one stage: {', '.join(duplicates)}")

    for name, stage in flow.stages.items():
        if stage.capture == CaptureRule.BINARY and stage.binary is None:
            return _fail("BINARY_WITHOUT_RULE", f"Stage '{name}' captures a binary value without a rule")
        if stage.capture == CaptureRule.OPTIONAL and not stage.opt_out:
            return _fail("OPTIONAL_WITHOUT_OPT_OUT", f"Stage '{name}' is optional but has no opt-out literal")
        if stage.capture != CaptureRule.CONSENT and not stage.field:
            return _fail("MISSING_FIELD", f"Stage '{name}' does not bind an answer field")

        if len(stage.choices) > MAX_CHOICES:
            return _fail("TOO_MANY_CHOICES", f"Stage '{name}' offers more than {MAX_CHOICES} choices")
        ids = [choice.id for choice in stage.choices]
        if len(ids) != len(set(ids)):
            return _fail("DUPLICATE_CHOICE", f"Stage '{name}' repeats a choice id")

    return _ok()


def validate_flow(flow: FlowDefinition) -> ValidationResult:
    """Run every structural check on a single flow."""
    for check in (validate_stage_links, validate_terminal_stage, validate_bindings):
        result = check(flow)
        if not result["is_valid"]:
            return result
    return _ok()


def validate_registry(flows: Dict[FlowName, FlowDefinition], reserved: Iterable[str] = ()) -> ValidationResult:
    """
    Validate every flow plus the keywords used to select them.

    Args:
        flows: Registry keyed by flow name
        reserved: Keywords already taken by other commands (menu, reset)
    """
    taken = {keyword.upper() for keyword in reserved}
    for key, flow in flows.items():
        if key != flow.name:
            return _fail("FLOW_KEY_MISMATCH", f"Flow registered as '{key.value}' is named '{flow.name.value}'")
        result = validate_flow(flow)
        if not result["is_valid"]:
            return result
        for keyword in flow.keywords:
            if keyword.upper() in taken:
                return _fail("DUPLICATE_KEYWORD", f"Keyword '{keyword}' selects more than one command")
            taken.add(keyword.upper())
    return _ok()
