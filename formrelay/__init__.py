"""formrelay: form submission processing pipeline.

formrelay takes a form definition (a tree of nested, possibly conditional
widgets) and a raw submission, and:
- discards answers hidden by inactive conditional branches
- sanitizes every remaining answer through a field-type registry,
  rejecting the submission with every field error at once
- captures whitelisted query-string parameters
- routes the result to persistence, rule-based notification emails and a
  submitter confirmation email

Basic usage:
    >>> from formrelay.runtime import FormRuntime
    >>> runtime = FormRuntime()
    >>> runtime.add_form({"_id": "contact", "contents": {"items": []}}).id
    'contact'
    >>> runtime.submit(None, {"_id": "contact"})
    {}
"""

__version__ = "0.1.0"
__author__ = "formrelay developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formrelay.runtime import FormRuntime

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormRuntime",
]
