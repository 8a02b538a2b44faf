"""FormRuntime orchestrator for form submissions.

This module provides the FormRuntime class that ties the pipeline together:
form lookup, bot challenge, conditional visibility, sanitization, query
parameter capture, and the ``submission`` event fan-out.

Usage:
    >>> from formrelay.registry import FieldType
    >>> def sanitize_text(widget, raw_input, output):
    ...     output[widget.field_name] = str(raw_input.get(widget.field_name, ""))
    >>> runtime = FormRuntime()
    >>> runtime.registry.register("text", FieldType(sanitize=sanitize_text))
    >>> runtime.add_form({
    ...     "_id": "contact",
    ...     "contents": {"items": [{"type": "text", "fieldName": "name"}]},
    ... })
    >>> runtime.submit(None, {"_id": "contact", "name": "Ada"})
    {}
    >>> runtime.store.find("contact")[0].data
    {'name': 'Ada'}
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from typing_extensions import Protocol

from formrelay.conditionals import build_conditionals, collect_field_names, resolve_skip_set
from formrelay.config import FormModuleOptions
from formrelay.errors import FormError, InvalidSubmissionError, NotFoundError
from formrelay.events import EventEmitter, SubmissionEvent
from formrelay.handlers import (
    InMemorySubmissionStore,
    Notifier,
    SubmissionHandlers,
    SubmissionStore,
    ensure_collection,
)
from formrelay.query_params import merge_query_params
from formrelay.registry import FieldTypeRegistry
from formrelay.routing import EmailRouter, Mailer
from formrelay.sanitizer import sanitize
from formrelay.types import EventType, FormDefinition

logger = logging.getLogger(__name__)

FormLoader = Callable[[Any, Any], Optional[FormDefinition]]


class RecaptchaChecker(Protocol):
    """Bot-challenge collaborator.

    May append FormErrors to ``form_errors`` to reject the submission, or
    raise when the challenge could not be verified at all.
    """

    def check(self, ctx: Any, raw_input: Mapping[str, Any], form_errors: List[FormError]) -> None:
        ...


class FormRuntime:
    """Processes form submissions.

    Attributes:
        registry: Field types used to sanitize answers
        options: Module options
        store: Submission store (in-memory unless one is supplied)
        emitter: Dispatches ``submission`` events to handlers
        handlers: The default save / notify / confirm handlers
    """

    def __init__(
        self,
        registry: Optional[FieldTypeRegistry] = None,
        options: Optional[FormModuleOptions] = None,
        store: Optional[SubmissionStore] = None,
        mailer: Optional[Mailer] = None,
        notifier: Optional[Notifier] = None,
        recaptcha: Optional[RecaptchaChecker] = None,
        form_loader: Optional[FormLoader] = None,
    ):
        self.registry = registry or FieldTypeRegistry()
        self.options = options or FormModuleOptions()
        self.store = store if store is not None else InMemorySubmissionStore()
        self.recaptcha = recaptcha
        self._forms: Dict[str, FormDefinition] = {}
        self._form_loader = form_loader

        ensure_collection(self.store)

        self.emitter = EventEmitter()
        self.handlers = SubmissionHandlers(
            store=self.store,
            router=EmailRouter(mailer=mailer, options=self.options),
            notifier=notifier,
            options=self.options,
        )
        self.handlers.subscribe(self.emitter)

    def add_form(self, form: Union[FormDefinition, Mapping[str, Any]]) -> FormDefinition:
        """Make a form available to the default loader.

        Raises:
            FormDefinitionError: If a form document fails validation
        """
        if not isinstance(form, FormDefinition):
            form = FormDefinition.from_dict(form)
        self._forms[form.id] = form
        return form

    def find_form(self, ctx: Any, form_id: Any) -> Optional[FormDefinition]:
        if self._form_loader is not None:
            return self._form_loader(ctx, form_id)
        if not isinstance(form_id, str):
            return None
        return self._forms.get(form_id)

    def submit(self, ctx: Any, body: Mapping[str, Any]) -> Dict[str, Any]:
        """Accept a form submission.

        Args:
            ctx: Request context, handed to collaborators untouched
            body: ``{"_id": form id, "queryParams": {...}, **answers}``

        Returns:
            An empty dict on success

        Raises:
            NotFoundError: If the form id does not resolve
            InvalidSubmissionError: If the bot challenge failed or any field
                was rejected
            Exception: Whatever a field type raises other than a field error
        """
        form_id = body.get("_id")
        form = self.find_form(ctx, form_id)
        if form is None:
            raise NotFoundError(form_id)

        form_errors: List[FormError] = []

        if form.enable_recaptcha:
            self._check_recaptcha(ctx, body, form_errors)

        conditionals = build_conditionals(form.contents)
        skip_set = resolve_skip_set(conditionals, body)

        result = sanitize(form, body, skip_set, self.registry, ctx=ctx, errors=form_errors)
        result.raise_for_errors()
        output = result.output

        if form.enable_query_params and form.query_param_list:
            merge_query_params(
                form, body.get("queryParams"), output, collect_field_names(form.contents)
            )

        event = SubmissionEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=EventType.SUBMISSION,
            ts=datetime.now(timezone.utc),
            form=form,
            data=output,
            request=ctx,
        )
        self.emitter.emit(event)

        return {}

    def _check_recaptcha(self, ctx: Any, body: Mapping[str, Any], form_errors: List[FormError]) -> None:
        if self.recaptcha is None:
            logger.error("Form requires reCAPTCHA but no checker is configured")
            raise InvalidSubmissionError(message="reCAPTCHA is not configured")
        try:
            self.recaptcha.check(ctx, body, form_errors)
        except Exception as e:
            logger.exception("reCAPTCHA submission error")
            raise InvalidSubmissionError() from e


__all__ = [
    "FormLoader",
    "RecaptchaChecker",
    "FormRuntime",
]
