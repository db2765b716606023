"""
Tests for the Jira webhook event validator.
"""

import json

import pytest

from chronicle.exceptions import FilteredEvent, ValidationError
from chronicle.ingestion.validator import EventValidator
from conftest import webhook_body, webhook_payload


@pytest.fixture
def validator(settings):
    return EventValidator(settings)


class TestEventValidator:
    """Test suite for webhook parsing and filtering."""

    def test_accepts_done_customer_impact_issue(self, validator):
        event = validator.validate(webhook_body())

        assert event.issue_key == "PRESS-100"
        assert event.summary == "FEAT-12 Add PDF export to reports"
        assert event.status_category == "done"
        assert event.priority == "High"
        assert event.assignee == "Sam Assignee"
        assert event.components == ["Reports"]
        assert event.changelog_items[0]["toString"] == "Done"

    def test_label_match_is_case_insensitive(self, validator):
        event = validator.validate(webhook_body(labels=["Customer-Impact", "ui"]))
        assert event.issue_key == "PRESS-100"

    def test_missing_label_is_filtered(self, validator):
        with pytest.raises(FilteredEvent) as exc_info:
            validator.validate(webhook_body(labels=["internal"]))
        assert "customer-impact" in exc_info.value.reason

    def test_not_done_is_filtered(self, validator):
        with pytest.raises(FilteredEvent):
            validator.validate(webhook_body(status_category="indeterminate", status_name="In Review"))

    def test_other_event_type_is_filtered(self, validator):
        with pytest.raises(FilteredEvent):
            validator.validate(webhook_body(event="jira:issue_created"))

    @pytest.mark.parametrize("event", [None, "", 7])
    def test_missing_event_type_is_filtered(self, validator, event):
        payload = webhook_payload()
        if event is None:
            del payload["webhookEvent"]
        else:
            payload["webhookEvent"] = event

        with pytest.raises(FilteredEvent) as exc_info:
            validator.validate(json.dumps(payload).encode())
        assert "missing" in exc_info.value.reason

    @pytest.mark.parametrize("status", ["Done", 3, ["done"], {"statusCategory": "done"}])
    def test_non_object_status_is_not_done(self, validator, status):
        payload = webhook_payload()
        payload["issue"]["fields"]["status"] = status

        with pytest.raises(FilteredEvent, match="not done"):
            validator.validate(json.dumps(payload).encode())

    @pytest.mark.parametrize("changelog", [["x"], "updated", {"items": "status"}, {"items": None}])
    def test_odd_changelog_shapes_are_tolerated(self, validator, changelog):
        payload = webhook_payload()
        payload["changelog"] = changelog

        event = validator.validate(json.dumps(payload).encode())

        assert event.changelog_items == []

    def test_odd_nested_fields_are_dropped(self, validator):
        payload = webhook_payload()
        fields = payload["issue"]["fields"]
        fields["components"] = [{"name": "Reports"}, "Billing", {"name": 5}]
        fields["priority"] = {"name": 2}
        fields["assignee"] = "sam"

        event = validator.validate(json.dumps(payload).encode())

        assert event.components == ["Reports"]
        assert event.priority == "Medium"
        assert event.assignee is None

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2, 3]", b'"string"'])
    def test_malformed_body_is_rejected(self, validator, body):
        with pytest.raises(ValidationError):
            validator.validate(body)

    def test_missing_issue_key_is_rejected(self, validator):
        payload = webhook_payload()
        del payload["issue"]["key"]
        with pytest.raises(ValidationError, match="issue.key"):
            validator.validate(json.dumps(payload).encode())

    def test_missing_summary_is_rejected(self, validator):
        payload = webhook_payload()
        payload["issue"]["fields"]["summary"] = "   "
        with pytest.raises(ValidationError, match="summary"):
            validator.validate(json.dumps(payload).encode())

    def test_validation_runs_before_filtering(self, validator):
        """A malformed payload is an error even when it would also be filtered."""
        payload = webhook_payload(labels=[])
        del payload["issue"]["fields"]["summary"]
        with pytest.raises(ValidationError):
            validator.validate(json.dumps(payload).encode())

    def test_normalizes_optional_fields(self, validator):
        payload = webhook_payload()
        fields = payload["issue"]["fields"]
        fields["priority"] = None
        fields["assignee"] = None
        fields["labels"] = ["customer-impact", 42, ""]
        fields["description"] = {
            "type": "doc",
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": "ADF body"}]}],
        }

        event = validator.validate(json.dumps(payload).encode())

        assert event.priority == "Medium"
        assert event.assignee is None
        assert event.labels == ["customer-impact"]
        assert event.description == "ADF body"

    def test_custom_label_from_settings(self, settings):
        settings.customer_impact_label = "release-note"
        validator = EventValidator(settings)

        event = validator.validate(webhook_body(labels=["release-note"]))
        assert event.issue_key == "PRESS-100"
        with pytest.raises(FilteredEvent):
            validator.validate(webhook_body())
