#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Record model shared by the store gateways, the coordinator and the cli.

A record lives in one of two stores (Secrets Manager or Parameter Store),
is addressed by name, and carries a value and a tag mapping.

Outcomes are plain values returned to the caller. Failures that stop an
operation are raised as StoreError subclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union

RecordValue = Union[str, bytes]


class RecordKind(Enum):
    SECRET = "secret"
    PARAMETER = "parameter"

    @classmethod
    def from_string(cls, kind: str) -> "RecordKind":
        """Resolve a kind from cli input such as 'secret' or 'Parameter'

        Raises:
            ValueError: If the kind is not recognized
        """
        try:
            return cls(kind.strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Invalid kind '{kind}'. Must be one of: {valid}")

    @property
    def label(self) -> str:
        return "Secret" if self is RecordKind.SECRET else "Parameter"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class RecordRef:
    """Identifies a record. Two refs are equal when name and kind match."""

    name: str
    kind: RecordKind
    arn: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.kind.label} {self.name}"


@dataclass
class RecordMeta:
    ref: RecordRef
    tags: Dict[str, str] = field(default_factory=dict)
    last_modified: Optional[datetime] = None
    description: Optional[str] = None


# -----------------------------------------------------------------------------
# Create step results
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Created:
    """The record did not exist and was created with its tags attached"""

    ref: RecordRef
    severity = Severity.INFO

    def summary(self) -> str:
        return f"Created {self.ref}"


@dataclass(frozen=True)
class Conflict:
    """The store refused the create because the name is already taken"""

    name: str
    kind: RecordKind


CreateOutcome = Union[Created, Conflict]


# -----------------------------------------------------------------------------
# Terminal outcomes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Updated:
    ref: RecordRef
    severity = Severity.INFO

    def summary(self) -> str:
        return f"Updated value and tags of {self.ref}"


@dataclass(frozen=True)
class PartialTagUpdate:
    """Value was written but the tag merge that follows it failed.

    Returned rather than raised: the record holds the new value. Repeating
    the upsert with the same tags repairs the tag state.
    """

    ref: RecordRef
    cause: Exception
    severity = Severity.WARNING

    def summary(self) -> str:
        cause = self.cause.summary() if isinstance(self.cause, StoreError) else str(self.cause)
        return f"Updated value of {self.ref} but tags were not updated: {cause}"


UpsertOutcome = Union[Created, Updated, PartialTagUpdate]


@dataclass(frozen=True)
class Deleted:
    ref: RecordRef
    audit_tagged: bool = True
    warning: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return Severity.INFO if self.audit_tagged else Severity.WARNING

    def summary(self) -> str:
        if self.audit_tagged:
            return f"Deleted {self.ref}"
        return f"Deleted {self.ref} without audit tags: {self.warning}"


@dataclass(frozen=True)
class NotFound:
    name: str
    kind: RecordKind
    severity = Severity.WARNING

    def summary(self) -> str:
        return f"{self.kind.label} not found: {self.name}"


DeleteOutcome = Union[Deleted, NotFound]


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------

class StoreError(Exception):
    """Base class for failures reported by a store.

    Carries the provider's own error code and message so the original
    diagnostic is never lost.
    """

    severity = Severity.ERROR
    retryable = False

    def __init__(self, message: str, *, provider_code: Optional[str] = None,
                 provider_message: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.provider_code = provider_code
        self.provider_message = provider_message
        self.operation = operation

    def summary(self) -> str:
        text = str(self)
        if self.provider_code:
            text += f" [{self.provider_code}"
            if self.provider_message:
                text += f": {self.provider_message}"
            text += "]"
        return text


class ValidationFailed(StoreError):
    """Name, value or tags violate store constraints. Not retried."""


class NotAuthorized(StoreError):
    """Credentials are missing, expired, or lack permission. Not retried."""


class TransientUnavailable(StoreError):
    """Network, throttling or provider-side failure. Safe to retry the whole operation."""

    retryable = True
