from flow_wizard.data.hardcoded_flows import HARDCODED_FLOWS
from flow_wizard.execution.projection import project

CREATE_CLIENT = HARDCODED_FLOWS["create-client"]


def _fields(descriptor):
    return {
        field["id"]: field
        for section in descriptor.props["sections"]
        for field in section["fields"]
    }


def test_projection_is_pure():
    step = CREATE_CLIENT.step("basic-info")
    values = {"companyName": "Acme", "email": "a@acme.com"}
    derived = {"username": "a"}

    assert project(step, values, derived, locked=False) == project(step, values, derived, locked=False)


def test_typed_value_beats_derived_value_beats_default():
    step = CREATE_CLIENT.step("basic-info")

    fields = _fields(project(step, {"email": "a@acme.com", "username": ""}, {"username": "a"}, locked=False))
    assert fields["username"]["value"] == "a"
    assert fields["username"]["derived"] is True
    assert fields["email"]["derived"] is False

    fields = _fields(project(step, {"username": "custom"}, {"username": "a"}, locked=False))
    assert fields["username"]["value"] == "custom"

    config = _fields(project(CREATE_CLIENT.step("configuration"), {}, {}, locked=False))
    assert config["dailyLeadLimit"]["value"] == 50
    assert config["dailyLeadLimit"]["max"] == 1000


def test_locked_projection_is_read_only():
    descriptor = project(CREATE_CLIENT.step("basic-info"), {}, {}, locked=True)

    assert descriptor.props["locked"] is True
    assert descriptor.props["disabled"] is True
    assert descriptor.props["stepId"] == "basic-info"


def test_summary_is_never_rendered_locked():
    descriptor = project(CREATE_CLIENT.step("review"), {}, {}, locked=True)
    assert descriptor.props["locked"] is False


def test_choice_marks_selected_option():
    descriptor = project(CREATE_CLIENT.step("delivery-method"), {"deliveryMethod": "webhook"}, {}, locked=False)

    selected = [option["id"] for option in descriptor.props["options"] if option["selected"]]
    assert selected == ["webhook"]
    assert descriptor.props["value"] == "webhook"


def test_variant_follows_stored_choice():
    step = CREATE_CLIENT.step("delivery-config")

    ftp = _fields(project(step, {"deliveryMethod": "ftp"}, {}, locked=False))
    email = _fields(project(step, {"deliveryMethod": "email"}, {}, locked=False))

    assert ftp["ftpPort"]["value"] == 21
    assert "emailAddress" in email
    assert project(step, {"deliveryMethod": "skip"}, {}, locked=False) is None


def test_errors_are_attached_to_forms():
    descriptor = project(
        CREATE_CLIENT.step("basic-info"), {}, {}, locked=False,
        errors={"email": "Please enter a valid email address"},
    )
    assert descriptor.props["errors"] == {"email": "Please enter a valid email address"}


def test_summary_items_are_rendered_with_values():
    descriptor = project(
        CREATE_CLIENT.step("review"),
        {"companyName": "Acme", "clientId": "CL-2025-001"},
        {"username": "a"},
        locked=False,
    )
    subtitles = {item["id"]: item["subtitle"] for item in descriptor.props["items"]}

    assert subtitles["client"] == "Acme (CL-2025-001)"
    assert subtitles["credentials"] == "Username: a"
    assert subtitles["delivery"] == "Not configured"


def test_projection_does_not_leak_into_the_definition():
    step = CREATE_CLIENT.step("review")
    project(step, {"companyName": "Acme"}, {}, locked=True)

    assert step.module.props["items"][0]["subtitle"] == "{{ companyName }} ({{ clientId }})"
    assert "locked" not in step.module.props


def test_text_only_step_has_no_module():
    simplified = HARDCODED_FLOWS["create-client-simplified"]
    assert project(simplified.step("ask-company"), {}, {}, locked=False) is None
