import pytest

from flow_wizard.execution.clock import SessionClock
from flow_wizard.repositories.session import InMemorySessionRepository
from flow_wizard.services.chat import ChatService
from flow_wizard.services.exceptions import SessionNotFoundError
from flow_wizard.services.intent_resolver import KeywordIntentResolver
from flow_wizard.services.renderer import PassthroughRenderer


@pytest.fixture
def service(flow_repository, provisioner, manual_loop):
    return ChatService(
        session_repository=InMemorySessionRepository(),
        flow_repository=flow_repository,
        intent_resolver=KeywordIntentResolver(),
        provisioner=provisioner,
        renderer=PassthroughRenderer(known_kinds=["form", "choices", "summary", "process"]),
        clock_factory=lambda: SessionClock(loop=manual_loop),
    )


def test_sessions_are_independent(service, manual_loop):
    first = service.create_session().session.session_id
    second = service.create_session().session.session_id

    service.select_flow(first, "create-client")
    manual_loop.run_all()

    assert service.describe(first)["state"] == "Running"
    assert service.describe(second)["state"] == "Idle"
    assert service.describe(second)["active_flow"] is None


def test_describe_reports_progress(service, manual_loop):
    session_id = service.create_session().session.session_id
    service.select_flow(session_id, "bulk-client-upload")
    manual_loop.run_all()
    service.trigger_action(session_id, "start-bulk-upload")

    active = service.describe(session_id)["active_flow"]

    assert active["title"] == "Bulk Client Upload"
    assert active["step_id"] == "prepare"
    assert active["completed_steps"] == ["overview"]
    assert active["total_steps"] == 7


def test_messages_go_through_the_renderer(service, manual_loop):
    session_id = service.create_session().session.session_id
    service.select_flow(session_id, "bulk-client-upload")
    manual_loop.run_all()

    overview = service.get_messages(session_id)[-1]

    # 'steps' is not in the renderer's allow-list
    assert overview["module"]["kind"] == "unsupported"
    assert overview["step_id"] == "overview"


def test_deleting_a_session_cancels_its_timers(service, manual_loop):
    controller = service.create_session()
    session_id = controller.session.session_id
    service.select_flow(session_id, "create-client")

    assert service.delete_session(session_id)
    manual_loop.run_all()

    assert controller.clock.closed
    assert service.get_session(session_id) is None
    assert not service.delete_session(session_id)


def test_unknown_session_raises(service):
    with pytest.raises(SessionNotFoundError, match="missing"):
        service.send_free_text("missing", "hello")
