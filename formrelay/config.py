"""Runtime options for formrelay.

Options are fixed when the runtime is built and shared by every submission
it processes.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class FormModuleOptions:
    """Module-wide switches.

    Attributes:
        email_submissions: Send owner notification emails per form rules
        save_submissions: Persist accepted submissions to the store
        testing: Dry-run mode, email routing returns the recipient list
            instead of delivering

    Examples:
        >>> FormModuleOptions.from_dict({"saveSubmissions": False}).save_submissions
        False
    """
    email_submissions: bool = True
    save_submissions: bool = True
    testing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "emailSubmissions": self.email_submissions,
            "saveSubmissions": self.save_submissions,
            "testing": self.testing,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormModuleOptions":
        """Create options from camelCase or snake_case keys.

        Unknown keys are ignored.
        """
        names = {f.name for f in fields(cls)}
        camel = {
            "emailSubmissions": "email_submissions",
            "saveSubmissions": "save_submissions",
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = camel.get(key, key)
            if name in names:
                values[name] = bool(value)
        return cls(**values)


__all__ = [
    "FormModuleOptions",
]
