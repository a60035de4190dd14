"""Typed health contracts shared across runtime layers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStatus:
    """Health result for one runtime dependency.

    Attributes:
        status: `ok` when the dependency answered, `down` otherwise.
        detail: Message suitable for operational diagnostics.
    """

    status: str
    detail: str

    def health_is_ok(self) -> bool:
        """Return whether the dependency reported healthy.

        Returns:
            bool: True when status is `ok`.
        """

        return self.status == "ok"
