import threading
import typing
from collections import OrderedDict
from typing import Any, Iterator, NamedTuple, Tuple

from dexdeploy.errors import DuplicateUnitError, NotFoundError


class DeploymentResult(NamedTuple):
    """Represents the outcome of a single successful unit deployment."""

    name: str
    address: Any


class Ledger:
    """
    Run-scoped, append-only record of deployment results keyed by unit name.
    Iteration follows recording order, which is the deployment order.
    """

    def __init__(self):
        self._results: typing.OrderedDict[str, DeploymentResult] = OrderedDict()
        self._lock = threading.Lock()

    def record(self, name: str, result: DeploymentResult) -> None:
        with self._lock:
            if name in self._results:
                raise DuplicateUnitError(name)
            self._results[name] = result

    def lookup(self, name: str) -> DeploymentResult:
        try:
            return self._results[name]
        except KeyError:
            raise NotFoundError(name)

    def all(self) -> Iterator[Tuple[str, DeploymentResult]]:
        """Returns a fresh iterator over (name, result) pairs."""
        with self._lock:
            snapshot = list(self._results.items())
        return iter(snapshot)

    def __contains__(self, name: str) -> bool:
        return name in self._results

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[Tuple[str, DeploymentResult]]:
        return self.all()
