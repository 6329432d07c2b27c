# dialogs/errors.py
from __future__ import annotations


class DialogError(Exception):
    pass


class ConfigurationError(DialogError, ValueError):
    """A required collaborator was missing at construction time."""


class UnknownDialogError(DialogError, KeyError):
    def __init__(self, dialog_id: str):
        super().__init__(dialog_id)
        self.dialog_id = dialog_id

    def __str__(self) -> str:
        return f"no dialog registered under id '{self.dialog_id}'"


class DuplicateDialogError(DialogError):
    pass


class InvalidStepOutcome(DialogError, TypeError):
    pass


def require(value, name: str):
    """Return `value`, or raise ConfigurationError when it is None."""
    if value is None:
        raise ConfigurationError(f"{name} is required")
    return value
