"""
Input validation utilities for the topology layout engine.

Provides centralized validation functions for snapshot records and layout
configuration. Raises descriptive exceptions on malformed input; geometry
cannot be computed without stable identity, so a malformed record fails the
whole layout call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

if TYPE_CHECKING:
    from .types import HostRecord, NetworkRecord


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when layout configuration values are invalid."""

    pass


class InvalidHostError(ValidationError):
    """Raised when a host record is malformed."""

    pass


class InvalidContainerError(ValidationError):
    """Raised when a container record is malformed."""

    pass


class InvalidNetworkError(ValidationError):
    """Raised when a network record is malformed."""

    pass


class DuplicateIdError(ValidationError):
    """Raised when two entities share an identifier."""

    pass


def get_field(record: Any, keys: Sequence[str], default: Any = None) -> Any:
    """Get the first present field among ``keys`` from a mapping or object."""
    for key in keys:
        if isinstance(record, Mapping):
            value = record.get(key)
        else:
            value = getattr(record, key, None)
        if value is not None:
            return value
    return default


def require_field(
    record: Any,
    keys: Sequence[str],
    error: type[ValidationError],
    what: str,
) -> str:
    """
    Get a required non-empty string field from a record.

    Args:
        record: Mapping or object holding the field
        keys: Accepted spellings of the field, e.g. ("service_name", "serviceName")
        error: Exception class raised when the field is missing
        what: Human readable description of the record for messages

    Returns:
        The field value as a string

    Raises:
        ValidationError: If the field is absent, None or empty
    """
    value = get_field(record, keys)
    if value is None or str(value) == "":
        raise error(f"{what} is missing required field '{keys[0]}'")
    return str(value)


def validate_positive(value: float, name: str) -> float:
    """
    Validate a layout dimension is a positive number.

    Raises:
        InvalidConfigError: If value is not > 0
    """
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")
    return float(value)


def validate_non_negative(value: float, name: str) -> float:
    """
    Validate a layout gap is zero or positive.

    Raises:
        InvalidConfigError: If value is < 0
    """
    if value < 0:
        raise InvalidConfigError(f"{name} must be >= 0, got {value}")
    return float(value)


def validate_unique_ids(
    hosts: Sequence[HostRecord],
    networks: Sequence[NetworkRecord],
    strict: bool = True,
) -> list[tuple[str, str]]:
    """
    Validate that hosts, containers and networks have distinct ids.

    Placed entities and edges are keyed by id, so a shared id would make
    the output ambiguous.

    Args:
        hosts: Hosts with their grouped containers
        networks: Network records
        strict: If True, raises on duplicates. If False, returns list of issues.

    Returns:
        List of (entity_id, issue_description) tuples

    Raises:
        DuplicateIdError: If strict=True and duplicates found
    """
    issues: list[tuple[str, str]] = []
    seen: dict[str, str] = {}

    def check(ids: Iterable[str], kind: str) -> None:
        for entity_id in ids:
            if entity_id in seen:
                issues.append(
                    (entity_id, f"{kind} id '{entity_id}' already used by a {seen[entity_id]}")
                )
            else:
                seen[entity_id] = kind

    check((h.id for h in hosts), "host")
    check((c.id for h in hosts for c in h.containers), "container")
    check((n.id for n in networks), "network")

    if strict and issues:
        msg = "Duplicate entity ids:\n" + "\n".join(issue[1] for issue in issues)
        raise DuplicateIdError(msg)

    return issues


__all__ = [
    "ValidationError",
    "InvalidConfigError",
    "InvalidHostError",
    "InvalidContainerError",
    "InvalidNetworkError",
    "DuplicateIdError",
    "get_field",
    "require_field",
    "validate_positive",
    "validate_non_negative",
    "validate_unique_ids",
]
