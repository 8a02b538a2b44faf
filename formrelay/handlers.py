"""Handlers for accepted submissions.

Three handlers subscribe to the ``submission`` event, in this order:

- save_submission: insert a SubmissionRecord into the store
- email_submission: notify the recipients selected by the form's mail rules
- email_confirmation: send the submitter a confirmation email

Each handler owns its failures; the emitter logs anything that escapes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from typing_extensions import Protocol

from formrelay.coercion import is_email_address
from formrelay.config import FormModuleOptions
from formrelay.events import EventEmitter, SubmissionEvent
from formrelay.routing import CONFIRMATION_TEMPLATE, EmailRouter
from formrelay.types import EventType, SubmissionRecord

logger = logging.getLogger(__name__)

ASCENDING = 1
DESCENDING = -1

IndexKeys = Sequence[Tuple[str, int]]

SUBMISSION_INDEXES: Tuple[IndexKeys, ...] = (
    (("formId", ASCENDING), ("createdAt", ASCENDING)),
    (("formId", ASCENDING), ("createdAt", DESCENDING)),
)

CONFIRMATION_WARNING = "errorEmailConfirm"


class SubmissionStore(Protocol):
    """Document store for submission records."""

    def ensure_index(self, keys: IndexKeys) -> None:
        ...

    def insert(self, record: SubmissionRecord) -> Any:
        ...


class Notifier(Protocol):
    """User-facing notification collaborator."""

    def notify(self, ctx: Any, message: str, type: str = "info", interpolate: Optional[Dict[str, Any]] = None) -> None:
        ...


class InMemorySubmissionStore:
    """List-backed SubmissionStore.

    Examples:
        >>> store = InMemorySubmissionStore()
        >>> ensure_collection(store)
        >>> len(store.indexes)
        2
    """

    def __init__(self) -> None:
        self.indexes: List[Tuple[Tuple[str, int], ...]] = []
        self._records: List[SubmissionRecord] = []

    def ensure_index(self, keys: IndexKeys) -> None:
        keys = tuple(keys)
        if keys not in self.indexes:
            self.indexes.append(keys)

    def insert(self, record: SubmissionRecord) -> int:
        """Store a copy of the record's document and return its position."""
        self._records.append(SubmissionRecord.from_dict(record.to_dict()))
        return len(self._records) - 1

    def find(self, form_id: str, newest_first: bool = False) -> List[SubmissionRecord]:
        """Records for one form, ordered by creation time."""
        records = [r for r in self._records if r.form_id == form_id]
        return sorted(records, key=lambda r: r.created_at, reverse=newest_first)

    def __len__(self) -> int:
        return len(self._records)


def ensure_collection(store: SubmissionStore) -> None:
    """Create the (formId, createdAt) indexes in both directions."""
    for keys in SUBMISSION_INDEXES:
        store.ensure_index(keys)


class SubmissionHandlers:
    """The default ``submission`` event handlers.

    Attributes:
        store: Where accepted submissions are saved
        router: Email routing and delivery
        notifier: Receives the warning when the confirmation address is
            malformed
        options: Module options
    """

    def __init__(
        self,
        store: Optional[SubmissionStore] = None,
        router: Optional[EmailRouter] = None,
        notifier: Optional[Notifier] = None,
        options: Optional[FormModuleOptions] = None,
    ):
        self.options = options or FormModuleOptions()
        self.store = store
        self.router = router or EmailRouter(options=self.options)
        self.notifier = notifier

    def subscribe(self, emitter: EventEmitter) -> None:
        emitter.on(EventType.SUBMISSION, self.save_submission)
        emitter.on(EventType.SUBMISSION, self.email_submission)
        emitter.on(EventType.SUBMISSION, self.email_confirmation)

    def save_submission(self, event: SubmissionEvent) -> Any:
        if not self.options.save_submissions or self.store is None:
            return None
        record = SubmissionRecord(
            form_id=event.form_id,
            created_at=datetime.now(timezone.utc),
            data=dict(event.data),
        )
        return self.store.insert(record)

    def email_submission(self, event: SubmissionEvent) -> Optional[List[str]]:
        return self.router.send_submission_email(event.request, event.form, event.data)

    def email_confirmation(self, event: SubmissionEvent) -> None:
        """Send the submitter a confirmation email.

        Only runs when the form enables it and names the field holding the
        submitter's address. A malformed address raises a warning
        notification instead of sending; delivery errors are logged.
        """
        form = event.form
        if form.send_confirmation_email is not True or not form.email_confirmation_field:
            return None

        address = event.data.get(form.email_confirmation_field)
        if not address:
            logger.debug("Form %s submission has no confirmation address", form.id)
            return None

        if not is_email_address(address):
            if self.notifier is not None:
                self.notifier.notify(
                    event.request,
                    CONFIRMATION_WARNING,
                    type="warning",
                    interpolate={"field": form.email_confirmation_field},
                )
            else:
                logger.warning(
                    "Form %s confirmation field %s is not an email address",
                    form.id,
                    form.email_confirmation_field,
                )
            return None

        try:
            self.router.send_email(
                event.request, CONFIRMATION_TEMPLATE, form, event.data, to=address
            )
        except Exception:
            logger.exception("Form %s submission email confirmation error", form.id)
        return None


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "SUBMISSION_INDEXES",
    "CONFIRMATION_WARNING",
    "SubmissionStore",
    "Notifier",
    "InMemorySubmissionStore",
    "ensure_collection",
    "SubmissionHandlers",
]
