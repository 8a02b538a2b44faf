"""Unit tests for notification email routing.

Tests cover:
- Acceptance-list matching, quoted segments and list answers
- Rule conjunction and unconditional rules
- Recipient de-duplication
- Testing mode, flattening and delivery error handling
"""

import logging

from formrelay.config import FormModuleOptions
from formrelay.errors import DeliveryError
from formrelay.routing import (
    SUBMISSION_TEMPLATE,
    EmailRouter,
    condition_passes,
    flatten_answers,
    route,
    rule_passes,
)
from formrelay.types import FormDefinition, MailCondition, MailRule


class RecordingMailer:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, ctx, template, data, routing):
        if self.error is not None:
            raise self.error
        self.sent.append((ctx, template, data, routing))


COLOR_RULE = MailRule("a@x.com", (MailCondition("color", '"red, bright", blue'),))


class TestConditionPasses:
    """Test single-condition evaluation."""

    def test_unquoted_segment_matches(self):
        assert rule_passes(COLOR_RULE, {"color": "blue"}) is True

    def test_quoted_segment_with_comma_matches(self):
        assert rule_passes(COLOR_RULE, {"color": "red, bright"}) is True

    def test_other_value_does_not_match(self):
        assert rule_passes(COLOR_RULE, {"color": "green"}) is False

    def test_partial_quoted_value_does_not_match(self):
        assert rule_passes(COLOR_RULE, {"color": "red"}) is False

    def test_empty_condition_value_always_passes(self):
        assert condition_passes(MailCondition("color", ""), {}) is True
        assert condition_passes(MailCondition("color", None), {}) is True

    def test_missing_answer_fails(self):
        assert condition_passes(MailCondition("color", "blue"), {}) is False

    def test_falsy_answer_fails(self):
        assert condition_passes(MailCondition("color", "blue"), {"color": ""}) is False

    def test_list_answer_intersects(self):
        condition = MailCondition("toppings", "olives, ham")

        assert condition_passes(condition, {"toppings": ["cheese", "ham"]}) is True
        assert condition_passes(condition, {"toppings": ["cheese"]}) is False

    def test_match_is_exact(self):
        condition = MailCondition("size", "5")

        assert condition_passes(condition, {"size": 5}) is False
        assert condition_passes(condition, {"size": "5"}) is True


class TestRulePasses:
    """Test rule conjunction."""

    def test_no_conditions_always_passes(self):
        assert rule_passes(MailRule("a@x.com"), {}) is True

    def test_all_conditions_must_pass(self):
        rule = MailRule(
            "a@x.com",
            (MailCondition("color", "blue"), MailCondition("size", "large")),
        )

        assert rule_passes(rule, {"color": "blue", "size": "large"}) is True
        assert rule_passes(rule, {"color": "blue", "size": "small"}) is False


class TestRoute:
    """Test recipient list construction."""

    def test_duplicates_removed(self):
        """Should list an address once even when several rules match."""
        rules = [
            MailRule("a@x.com"),
            MailRule("b@x.com", (MailCondition("color", "blue"),)),
            MailRule("a@x.com", (MailCondition("color", "blue"),)),
        ]

        assert route(rules, {"color": "blue"}) == ["a@x.com", "b@x.com"]

    def test_order_follows_rules(self):
        rules = [MailRule("z@x.com"), MailRule("a@x.com")]

        assert route(rules, {}) == ["z@x.com", "a@x.com"]

    def test_no_match(self):
        assert route([COLOR_RULE], {"color": "green"}) == []


class TestFlattenAnswers:
    """Test list flattening for email templates."""

    def test_lists_joined(self):
        data = {"toppings": ["ham", "olives"], "name": "Ada"}
        flat = flatten_answers(data)

        assert flat == {"toppings": "ham, olives", "name": "Ada"}
        assert data["toppings"] == ["ham", "olives"]


class TestEmailRouter:
    """Test EmailRouter delivery."""

    def make_form(self, *rules):
        return FormDefinition(id="form", title="Contact", email="forms@x.com", emails=tuple(rules))

    def test_testing_mode_returns_list_without_delivery(self):
        mailer = RecordingMailer()
        router = EmailRouter(mailer, FormModuleOptions(testing=True))
        form = self.make_form(MailRule("a@x.com"), MailRule("a@x.com"))

        assert router.send_submission_email(None, form, {}) == ["a@x.com"]
        assert mailer.sent == []

    def test_delivery_routing(self):
        mailer = RecordingMailer()
        router = EmailRouter(mailer)
        form = self.make_form(MailRule("a@x.com"), MailRule("b@x.com"))

        result = router.send_submission_email("req", form, {"toppings": ["ham", "olives"]})

        assert result is None
        ctx, template, data, routing = mailer.sent[0]
        assert ctx == "req"
        assert template == SUBMISSION_TEMPLATE
        assert data["form"] is form
        assert data["input"] == {"toppings": "ham, olives"}
        assert routing == {"from": "forms@x.com", "to": "a@x.com,b@x.com", "subject": "Contact"}

    def test_no_recipients_sends_nothing(self):
        mailer = RecordingMailer()
        router = EmailRouter(mailer)

        assert router.send_submission_email(None, self.make_form(COLOR_RULE), {"color": "green"}) is None
        assert mailer.sent == []

    def test_no_rules_sends_nothing(self):
        mailer = RecordingMailer()
        router = EmailRouter(mailer, FormModuleOptions(testing=True))

        assert router.send_submission_email(None, self.make_form(), {}) is None

    def test_email_submissions_disabled(self):
        mailer = RecordingMailer()
        router = EmailRouter(mailer, FormModuleOptions(email_submissions=False, testing=True))

        assert router.send_submission_email(None, self.make_form(MailRule("a@x.com")), {}) is None

    def test_delivery_error_logged_and_swallowed(self, caplog):
        """Should never let a delivery failure reach the submitter."""
        router = EmailRouter(RecordingMailer(error=DeliveryError("smtp down")))

        with caplog.at_level(logging.ERROR, logger="formrelay.routing"):
            result = router.send_submission_email(None, self.make_form(MailRule("a@x.com")), {})

        assert result is None
        assert "submission email notification error" in caplog.text

    def test_missing_mailer_logged_and_swallowed(self, caplog):
        router = EmailRouter()

        with caplog.at_level(logging.ERROR, logger="formrelay.routing"):
            assert router.send_submission_email(None, self.make_form(MailRule("a@x.com")), {}) is None
        assert "No mailer configured" in caplog.text
