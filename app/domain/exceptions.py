"""Centralized exception hierarchy for the home environments ledger.

All domain and service exceptions inherit from :class:`HomeEnvError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

API collaborators map these to HTTP status codes through ``http_status``.

Hierarchy
---------
::

    HomeEnvError (base, maps to 500)
    ├── ValidationError          (400: bad input from caller)
    │   ├── OutOfRange
    │   ├── InvalidInterval
    │   ├── InvalidDeviceId
    │   └── UnsupportedField
    ├── NotFoundError            (404: entity does not exist)
    │   ├── UnknownDevice
    │   ├── UnknownRoom
    │   └── UnknownHome (alias UnknownParent)
    ├── ConflictError            (409: duplicate / state conflict)
    │   ├── DuplicateSortOrder, DuplicateHome, DuplicateDevice
    │   ├── DuplicateMeasurement
    │   ├── AlreadyPlaced, NotPlaced, NonMonotonicTime
    │   └── PlacementConflict, StorageBusy   (retryable)
    ├── ServiceError             (500: business-logic failure)
    │   └── RepositoryError      (500: database / persistence)
    ├── DeviceError              (503: hardware / wire protocol)
    │   └── AdvertisementDecodeError
    └── ConfigurationError       (500: missing / invalid config)
"""

from __future__ import annotations


class HomeEnvError(Exception):
    """Base exception for all ledger errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500
    retryable: bool = False

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(HomeEnvError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class OutOfRange(ValidationError):
    """A measurement field lies outside its permitted range."""


class InvalidInterval(ValidationError):
    """A time interval is malformed (start after end)."""


class InvalidDeviceId(ValidationError):
    """A device identifier is not a 6-byte hardware address."""


class UnsupportedField(ValidationError):
    """A device type reported a field it is not capable of measuring."""


class NotFoundError(HomeEnvError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class UnknownDevice(NotFoundError):
    """Device is not registered."""


class UnknownRoom(NotFoundError):
    """Room does not exist."""


class UnknownHome(NotFoundError):
    """Home does not exist."""


UnknownParent = UnknownHome


class ConflictError(HomeEnvError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


class DuplicateSortOrder(ConflictError):
    """Sort order already taken within its scope."""


class DuplicateHome(ConflictError):
    """Home identifier already exists."""


class DuplicateDevice(ConflictError):
    """Device identifier already registered."""


class DuplicateMeasurement(ConflictError):
    """A reading for this device and instant already exists."""


class AlreadyPlaced(ConflictError):
    """Device already has an open placement; use move instead."""


class NotPlaced(ConflictError):
    """Device has no open placement."""


class NonMonotonicTime(ConflictError):
    """Requested event time does not advance the device's placement history."""


class PlacementConflict(ConflictError):
    """A concurrent writer changed the device's placements first."""

    retryable: bool = True


class StorageBusy(ConflictError):
    """Storage stayed locked for longer than the busy timeout."""

    retryable: bool = True


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(HomeEnvError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class DeviceError(HomeEnvError):
    """Hardware communication or device-protocol failure (HTTP 503)."""

    http_status: int = 503


class AdvertisementDecodeError(DeviceError):
    """A BLE advertisement could not be decoded into a measurement."""


class ConfigurationError(HomeEnvError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
