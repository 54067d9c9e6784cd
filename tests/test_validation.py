import pytest

from flow_wizard.domain.models import ValidationRule
from flow_wizard.execution.validation import check_rule, validate


@pytest.mark.parametrize("value, expected", [
    ("a@acme.com", True),
    ("  jane.doe@acme.co.uk ", True),
    ("not-an-email", False),
    ("a@acme", False),
    ("a b@acme.com", False),
    ("", True),  # blanks are the 'required' rule's business
])
def test_email_rule(value, expected):
    rule = ValidationRule(field_id="email", rule="email", message="bad")
    assert check_rule(rule, value) is expected


@pytest.mark.parametrize("value, expected", [
    (None, False),
    ("", False),
    ("   ", False),
    ([], False),
    ("Acme", True),
    (0, True),
    (False, True),
])
def test_required_rule(value, expected):
    rule = ValidationRule(field_id="companyName", rule="required", message="required")
    assert check_rule(rule, value) is expected


def test_min_max_rules_accept_numeric_strings():
    minimum = ValidationRule(field_id="dailyLeadLimit", rule="min", limit=1, message="too small")
    maximum = ValidationRule(field_id="dailyLeadLimit", rule="max", limit=1000, message="too big")

    assert check_rule(minimum, "50") and check_rule(maximum, 50)
    assert not check_rule(minimum, 0)
    assert not check_rule(maximum, "1001")
    assert not check_rule(minimum, "lots")


def test_accept_rule_checks_every_file_name():
    rule = ValidationRule(field_id="files", rule="accept", pattern=".xlsx,.xls,.csv", message="type")

    assert check_rule(rule, [{"name": "clients.CSV", "size": 10}])
    assert check_rule(rule, ["a.xlsx", "b.xls"])
    assert not check_rule(rule, [{"name": "clients.pdf"}])


def test_regex_rule():
    rule = ValidationRule(field_id="webhookUrl", rule="regex", pattern=r"^https?://\S+$", message="url")

    assert check_rule(rule, "https://hooks.acme.com/leads")
    assert not check_rule(rule, "ftp://acme.com")


def test_validate_keeps_first_error_per_field():
    rules = [
        ValidationRule(field_id="email", rule="required", message="Email address is required"),
        ValidationRule(field_id="email", rule="email", message="Please enter a valid email address"),
        ValidationRule(field_id="companyName", rule="required", message="Company name is required"),
    ]

    assert validate(rules, {"email": ""}) == {
        "email": "Email address is required",
        "companyName": "Company name is required",
    }
    assert validate(rules, {"email": "nope", "companyName": "Acme"}) == {
        "email": "Please enter a valid email address",
    }
    assert validate(rules, {"email": "a@acme.com", "companyName": "Acme"}) == {}
