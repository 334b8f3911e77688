"""
HealthRisk error types

Only the fact-table locator, date parsing and identifier validation raise.
Resolvers return None for "not found" and leave the decision to the caller.
"""
from typing import Optional


class HealthRiskError(Exception):
    """Base class for errors surfaced to callers"""


class NotFoundError(HealthRiskError):
    """A required mapping could not be located"""

    MESSAGES = {
        "fact table mapping": "No active fact table mapping found for disease '{identifier}'",
        "disease": "No disease found with id '{identifier}'",
    }

    def __init__(self, identifier: str, what: str = "fact table mapping"):
        self.identifier = identifier
        self.what = what
        template = self.MESSAGES.get(what, "No {what} found for '{identifier}'")
        super().__init__(template.format(what=what, identifier=identifier))


class InvalidArgumentError(HealthRiskError, ValueError):
    """A supplied argument could not be parsed"""

    def __init__(self, field: str, value: Optional[str], reason: str = "is not a valid date"):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r} {reason}")


class UnsafeIdentifierError(HealthRiskError):
    """A schema, table or column name failed identifier validation"""

    def __init__(self, label: str, value: str):
        self.label = label
        self.value = value
        super().__init__(f"Unsafe {label}: {value!r}")
