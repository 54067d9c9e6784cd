from flow_wizard.execution.ledger import StepCompletionLedger
from flow_wizard.state.models import Session


def test_completed_step_locks_once_pointer_moves_on():
    ledger = StepCompletionLedger()
    ledger.mark_completed("create-client", "basic-info")

    assert ledger.is_locked("create-client", "basic-info", current_step_id="delivery-method")
    assert not ledger.is_locked("create-client", "basic-info", current_step_id="basic-info")


def test_uncompleted_step_is_never_locked():
    ledger = StepCompletionLedger()
    assert not ledger.is_locked("create-client", "configuration", current_step_id="basic-info")


def test_exempt_kinds_never_lock():
    ledger = StepCompletionLedger()
    ledger.mark_completed("create-client", "review")

    assert not ledger.is_locked("create-client", "review", "basic-info", step_kind="summary")
    assert not ledger.is_locked("create-client", "review", "basic-info", step_kind="help-reference")
    assert ledger.is_locked("create-client", "review", "basic-info", step_kind="form")


def test_trails_are_independent_per_flow():
    ledger = StepCompletionLedger()
    ledger.mark_completed("create-client", "basic-info")
    ledger.mark_completed("create-client-advanced", "basic-info")

    ledger.clear("create-client")

    assert ledger.completed("create-client") == set()
    assert ledger.completed("create-client-advanced") == {"basic-info"}


def test_uncomplete_removes_only_given_steps():
    ledger = StepCompletionLedger()
    for step_id in ("basic-info", "delivery-method", "delivery-config"):
        ledger.mark_completed("create-client", step_id)

    ledger.uncomplete("create-client", ["delivery-method", "delivery-config", "review"])
    ledger.uncomplete("unknown-flow", ["basic-info"])

    assert ledger.completed("create-client") == {"basic-info"}


def test_ledger_writes_through_to_the_session():
    session = Session(session_id="s")
    ledger = StepCompletionLedger(session.completed_steps)

    ledger.mark_completed("bulk-client-upload", "overview")
    assert session.completed_steps == {"bulk-client-upload": {"overview"}}

    ledger.clear()
    assert session.completed_steps == {}


def test_completed_returns_a_copy():
    ledger = StepCompletionLedger()
    ledger.mark_completed("create-client", "basic-info")

    ledger.completed("create-client").add("review")

    assert not ledger.is_completed("create-client", "review")
