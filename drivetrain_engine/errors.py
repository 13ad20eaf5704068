"""Exception types raised by the drivetrain engine.

Compatibility findings are never raised; they are returned as warnings
inside a :class:`~drivetrain_engine.core.compatibility.CompatibilityCheck`.
"""


class DrivetrainError(Exception):
    """Base class for all drivetrain engine errors."""


class InvalidComponentData(DrivetrainError, ValueError):
    """A component or setup carries a missing, zero or negative required value."""


class UnresolvedReference(DrivetrainError, KeyError):
    """A setup references a component ID the registry does not know."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""
