"""Exception types raised by the contract graph engine."""

from __future__ import annotations


class ContractGraphError(Exception):
    """Base class for all engine errors."""


class DuplicateNodeError(ContractGraphError):
    """Two specs claim the same logical key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Duplicate contract key '{key}'")
        self.key = key


class InvalidVersionError(ContractGraphError):
    """A version string does not follow the semver grammar."""

    def __init__(self, version: str) -> None:
        super().__init__(f"Invalid semantic version '{version}'")
        self.version = version


class DuplicateCapabilityError(ContractGraphError):
    def __init__(self, ref_key: str) -> None:
        super().__init__(f"Duplicate capability {ref_key}")
        self.ref_key = ref_key
