import pytest

from flow_wizard.data.hardcoded_flows import HARDCODED_FLOWS
from flow_wizard.exceptions import ProvisioningError
from flow_wizard.schemas.intents import Intent
from flow_wizard.services.intent_resolver import KeywordIntentResolver, normalize
from flow_wizard.services.provisioning import SimulatedClientProvisioner
from flow_wizard.services.renderer import PassthroughRenderer
from flow_wizard.state.models import ModuleDescriptor, Turn


@pytest.fixture
def resolver():
    return KeywordIntentResolver()


def test_normalize_collapses_case_whitespace_and_punctuation():
    assert normalize("  Let's   use EMAIL! ") == "let s use email"


@pytest.mark.parametrize("text, flow_id", [
    ("I want to create a new client", "create-client"),
    ("New client please", "create-client"),
    ("bulk upload clients", "bulk-client-upload"),
    ("I need to upload a client list", "bulk-client-upload"),
    ("quick new client", "create-client-simplified"),
])
def test_client_requests_start_flows(resolver, text, flow_id):
    result = resolver.resolve(text)
    assert result.intent == Intent.START_FLOW
    assert result.flow_id == flow_id


@pytest.mark.parametrize("text, topic", [
    ("help", "general"),
    ("What are the best practices?", "best-practices"),
    ("Tell me about delivery methods", "delivery-methods"),
    ("how does lead routing work", "lead-routing"),
    ("something about a client", "clients"),
])
def test_help_requests(resolver, text, topic):
    result = resolver.resolve(text)
    assert result.intent == Intent.GENERAL_HELP
    assert result.topic == topic


def test_gibberish_is_unrecognized(resolver):
    assert resolver.resolve("carrier pigeon").intent == Intent.UNRECOGNIZED


def test_option_label_continues_the_current_step(resolver):
    step = HARDCODED_FLOWS["create-client"].step("delivery-method")

    result = resolver.resolve("ftp delivery sounds right", step)

    assert result.intent == Intent.CONTINUE_BRANCH
    assert result.branch_key == "ftp"


class TestSimulatedClientProvisioner:

    def test_client_ids_count_up(self):
        provisioner = SimulatedClientProvisioner(year=2025)

        first = provisioner.provision("create-client", {"companyName": "Acme"})
        second = provisioner.provision("create-client", {"companyName": "Globex"})

        assert first == {"clientId": "CL-2025-001"}
        assert second == {"clientId": "CL-2025-002"}

    def test_create_client_requires_a_company(self):
        with pytest.raises(ProvisioningError):
            SimulatedClientProvisioner().provision("create-client", {})

    def test_upload_validation_and_import(self):
        provisioner = SimulatedClientProvisioner(records_per_file=10)

        counts = provisioner.provision("validate-upload", {"files": [{"name": "a.csv"}, {"name": "b.csv", "records": 3}]})
        imported = provisioner.provision("bulk-import", counts)

        assert counts["totalRecords"] == 13
        assert counts["invalidRecords"] == 0
        assert imported["processedCount"] == 13
        assert imported["batchId"].startswith("BATCH-")

    @pytest.mark.parametrize("records", ["lots", [12], -4])
    def test_unreadable_record_count_is_a_provisioning_error(self, records):
        with pytest.raises(ProvisioningError, match="a.csv"):
            SimulatedClientProvisioner().provision("validate-upload", {"files": [{"name": "a.csv", "records": records}]})

    def test_unknown_operation(self):
        with pytest.raises(ProvisioningError, match="Unknown operation"):
            SimulatedClientProvisioner().provision("launch-rocket", {})


def test_passthrough_renderer_serialises_turns():
    renderer = PassthroughRenderer(known_kinds=["form"])
    turn = Turn(id="msg_1", author="assistant", text="Hi", module=ModuleDescriptor(kind="chart"))

    rendered = renderer.render_turn(turn)

    assert rendered["id"] == "msg_1"
    assert rendered["module"] == {"kind": "unsupported", "props": {"original_kind": "chart"}}
    assert renderer.render(ModuleDescriptor(kind="form", props={"a": 1})) == {"kind": "form", "props": {"a": 1}}
