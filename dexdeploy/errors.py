from typing import Sequence


class DeploymentError(Exception):
    """Base class for all orchestration errors."""


#
# Build time
#


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when deployment declarations or parameters are invalid."""


class ConfigurationError(DeploymentConfigError):
    """Raised when required network or credential configuration is missing."""


class UnknownUnitError(DeploymentConfigError):
    def __init__(self, unit_name: str, reference: str):
        self.unit_name = unit_name
        self.reference = reference
        super().__init__(f"{unit_name} references undeclared unit '{reference}'")


class DuplicateDeclarationError(DeploymentConfigError):
    def __init__(self, unit_name: str):
        self.unit_name = unit_name
        super().__init__(f"Unit '{unit_name}' is declared more than once")


class CycleError(DeploymentConfigError):
    def __init__(self, members: Sequence[str]):
        self.members = list(members)
        path = " -> ".join([*self.members, self.members[0]])
        super().__init__(f"Dependency cycle detected: {path}")


#
# Run time
#


class DeployError(DeploymentError):
    """Raised when the deploy action fails for a unit."""

    def __init__(self, unit_name: str, cause: BaseException = None, ledger=None):
        self.unit_name = unit_name
        self.cause = cause
        self.ledger = ledger
        super().__init__(self._message())

    def _message(self) -> str:
        return f"Deployment of {unit_name_repr(self.unit_name)} failed: {self.cause!r}"


class DeployTimeoutError(DeployError):
    def __init__(self, unit_name: str, timeout: float, ledger=None):
        self.timeout = timeout
        super().__init__(unit_name, cause=None, ledger=ledger)

    def _message(self) -> str:
        return (
            f"Deployment of {unit_name_repr(self.unit_name)} "
            f"did not complete within {self.timeout}s"
        )


class DeploymentCancelled(DeploymentError):
    def __init__(self, next_unit: str = None, ledger=None):
        self.next_unit = next_unit
        self.ledger = ledger
        super().__init__(f"Deployment cancelled before {unit_name_repr(next_unit)}")


#
# Ledger consistency
#


class LedgerError(DeploymentError):
    """Raised on internal ledger consistency violations."""


class DuplicateUnitError(LedgerError):
    def __init__(self, unit_name: str):
        self.unit_name = unit_name
        super().__init__(f"{unit_name_repr(unit_name)} already has a recorded result")


class NotFoundError(LedgerError):
    def __init__(self, unit_name: str):
        self.unit_name = unit_name
        super().__init__(f"No recorded result for {unit_name_repr(unit_name)}")


def unit_name_repr(unit_name: str) -> str:
    return f"'{unit_name}'" if unit_name else "next unit"
