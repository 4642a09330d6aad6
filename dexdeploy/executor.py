import threading
import typing
from collections import OrderedDict
from typing import Any, Callable, List, Optional

from dexdeploy.constants import UnitStatus
from dexdeploy.errors import DeployError, DeploymentCancelled, DeployTimeoutError
from dexdeploy.graph import Graph
from dexdeploy.ledger import DeploymentResult, Ledger
from dexdeploy.params import Unit

DeployFunction = Callable[[str, List[Any]], Any]
ConfirmFunction = Callable[[str, OrderedDict], None]


class TopologicalExecutor:
    """
    Deploys every unit of a graph exactly once, in dependency order,
    recording each resulting address in a run-scoped ledger.
    """

    def __init__(
        self,
        graph: Graph,
        deploy_fn: DeployFunction,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        confirm_fn: Optional[ConfirmFunction] = None,
        silent: bool = False,
    ):
        self.graph = graph
        self.deploy_fn = deploy_fn
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()
        self.confirm_fn = confirm_fn
        self.silent = silent
        self.ledger = Ledger()
        self.statuses: typing.OrderedDict[str, UnitStatus] = OrderedDict(
            (name, UnitStatus.PENDING) for name in graph.names
        )

    def cancel(self) -> None:
        """Stops the run at the next unit boundary."""
        self.cancel_event.set()

    def status(self, name: str) -> UnitStatus:
        return self.statuses[name]

    def run(self) -> Ledger:
        order = self.graph.order()
        total = len(order)
        for position, name in enumerate(order, start=1):
            if self.cancel_event.is_set():
                if not self.silent:
                    print(f"\nDeployment cancelled before {name}.")
                raise DeploymentCancelled(next_unit=name, ledger=self.ledger)

            unit = self.graph[name]
            resolved_params = unit.resolve(self.ledger)
            if not self.silent:
                print(f"\n({position}/{total}) Deploying {name}...")

            self._set_status(name, UnitStatus.IN_PROGRESS)
            try:
                if self.confirm_fn is not None:
                    # answered on the calling thread, before the clock starts
                    self.confirm_fn(name, resolved_params)
                address = self._invoke(unit, list(resolved_params.values()))
            except (DeployError, DeploymentCancelled) as e:
                self._set_status(name, UnitStatus.FAILED)
                if e.ledger is None:
                    e.ledger = self.ledger
                raise
            except Exception as e:
                self._set_status(name, UnitStatus.FAILED)
                raise DeployError(unit_name=name, cause=e, ledger=self.ledger) from e

            self.ledger.record(name, DeploymentResult(name=name, address=address))
            self._set_status(name, UnitStatus.DEPLOYED)
            if not self.silent:
                print(f"'{name}' deployed to: {address}")

        return self.ledger

    def _set_status(self, name: str, status: UnitStatus) -> None:
        self.statuses[name] = status

    def _invoke(self, unit: Unit, resolved_args: List[Any]) -> Any:
        if self.timeout is None:
            return self.deploy_fn(unit.name, resolved_args)

        outcome = dict()

        def deploy():
            try:
                outcome["address"] = self.deploy_fn(unit.name, resolved_args)
            except Exception as e:
                outcome["error"] = e

        # daemon: an abandoned call must not block interpreter exit
        worker = threading.Thread(target=deploy, name=f"deploy-{unit.name}", daemon=True)
        worker.start()
        worker.join(self.timeout)
        if worker.is_alive():
            raise DeployTimeoutError(unit_name=unit.name, timeout=self.timeout, ledger=self.ledger)
        if "error" in outcome:
            raise outcome["error"]
        return outcome["address"]


def run(
    graph: Graph,
    deploy_fn: DeployFunction,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    confirm_fn: Optional[ConfirmFunction] = None,
    silent: bool = False,
) -> Ledger:
    """Deploys all units of the graph; see TopologicalExecutor."""
    executor = TopologicalExecutor(
        graph=graph,
        deploy_fn=deploy_fn,
        timeout=timeout,
        cancel_event=cancel_event,
        confirm_fn=confirm_fn,
        silent=silent,
    )
    return executor.run()
