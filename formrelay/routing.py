"""Notification email routing.

Each form carries a list of MailRules. A rule with no conditions always
matches; otherwise every condition must accept the submitted answer for its
field. The recipients of all matching rules, without duplicates, receive
one notification email.

Usage:
    >>> from formrelay.types import MailCondition, MailRule
    >>> rules = [
    ...     MailRule("sales@example.com", (MailCondition("color", '"red, bright", blue'),)),
    ...     MailRule("all@example.com"),
    ... ]
    >>> route(rules, {"color": "blue"})
    ['sales@example.com', 'all@example.com']
    >>> route(rules, {"color": "green"})
    ['all@example.com']
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from typing_extensions import Protocol

from formrelay.coercion import parse_acceptance_list
from formrelay.config import FormModuleOptions
from formrelay.types import FormDefinition, MailCondition, MailRule

logger = logging.getLogger(__name__)

SUBMISSION_TEMPLATE = "emailSubmission"
CONFIRMATION_TEMPLATE = "emailConfirmation"


class Mailer(Protocol):
    """Email delivery collaborator.

    ``data`` holds the template variables (``form`` and ``input``);
    ``routing`` holds ``from``, ``to`` and ``subject``. Implementations
    raise DeliveryError on delivery failure.
    """

    def send(self, ctx: Any, template: str, data: Dict[str, Any], routing: Dict[str, Any]) -> None:
        ...


def condition_passes(condition: MailCondition, data: Mapping[str, Any]) -> bool:
    """Check one condition against the submitted answers.

    A condition without a value accepts anything. A missing answer fails.
    List answers pass when any item is acceptable.
    """
    if not condition.value:
        return True

    answer = data.get(condition.field)
    if not answer:
        return False

    acceptable = parse_acceptance_list(condition.value)
    answers = answer if isinstance(answer, (list, tuple)) else [answer]
    return any(value in acceptable for value in answers)


def rule_passes(rule: MailRule, data: Mapping[str, Any]) -> bool:
    """Check that every condition of a rule passes; a rule without conditions always does."""
    return all(condition_passes(condition, data) for condition in rule.conditions)


def route(mail_rules: Iterable[MailRule], data: Mapping[str, Any]) -> List[str]:
    """Recipients of every matching rule, first-seen order, no duplicates."""
    emails: List[str] = []
    for rule in mail_rules:
        if rule_passes(rule, data) and rule.email not in emails:
            emails.append(rule.email)
    return emails


def flatten_answers(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` with list answers joined for display."""
    return {
        key: ", ".join(str(v) for v in value) if isinstance(value, (list, tuple)) else value
        for key, value in data.items()
    }


class EmailRouter:
    """Sends notification emails for accepted submissions.

    Attributes:
        mailer: Delivery collaborator, may be None when email is not set up
        options: Module options (``email_submissions``, ``testing``)
    """

    def __init__(self, mailer: Optional[Mailer] = None, options: Optional[FormModuleOptions] = None):
        self.mailer = mailer
        self.options = options or FormModuleOptions()

    def send_email(
        self,
        ctx: Any,
        template: str,
        form: FormDefinition,
        data: Mapping[str, Any],
        to: str,
        from_: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> None:
        """Hand one message to the mailer.

        Sender and subject default to the form's email and title.

        Raises:
            RuntimeError: If no mailer is configured
            Exception: Whatever the mailer raises
        """
        if self.mailer is None:
            raise RuntimeError("No mailer configured")
        self.mailer.send(
            ctx,
            template,
            {"form": form, "input": dict(data)},
            {
                "from": from_ or form.email,
                "to": to,
                "subject": subject or form.title,
            },
        )

    def send_submission_email(
        self, ctx: Any, form: FormDefinition, data: Mapping[str, Any]
    ) -> Optional[List[str]]:
        """Notify the recipients selected by the form's mail rules.

        Returns:
            The recipient list in testing mode, None otherwise. Delivery
            failures are logged and never raised.
        """
        if not self.options.email_submissions or not form.emails:
            return None

        emails = route(form.emails, data)

        if self.options.testing:
            return emails

        if not emails:
            return None

        try:
            self.send_email(
                ctx,
                SUBMISSION_TEMPLATE,
                form,
                flatten_answers(data),
                to=",".join(emails),
            )
        except Exception:
            logger.exception("Form %s submission email notification error", form.id)
        return None


__all__ = [
    "SUBMISSION_TEMPLATE",
    "CONFIRMATION_TEMPLATE",
    "Mailer",
    "condition_passes",
    "rule_passes",
    "route",
    "flatten_answers",
    "EmailRouter",
]
