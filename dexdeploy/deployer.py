import threading
import typing
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Optional

from ape import accounts, networks
from ape.api import AccountAPI
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance
from ape_accounts import import_account_from_private_key
from web3 import Web3

from dexdeploy.config import NetworkConfig
from dexdeploy.constants import DEPLOYER_ACCOUNT_ALIAS, ZERO_ADDRESS
from dexdeploy.errors import DeploymentCancelled
from dexdeploy.executor import TopologicalExecutor
from dexdeploy.graph import Graph, build
from dexdeploy.ledger import Ledger
from dexdeploy.params import ConstructorParameters
from dexdeploy.registry import registry_from_ape_deployments
from dexdeploy.utils import (
    _load_yaml,
    check_plugins,
    get_contract_container,
    is_local_network,
    validate_config,
    verify_contracts,
)

_w3 = Web3()


def _ask(prompt: str, unit_name: Optional[str] = None) -> None:
    """Stops the deployment when the operator answers no."""
    if input(prompt).lower().strip() == "n":
        print("Aborting deployment!")
        raise DeploymentCancelled(next_unit=unit_name)


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """Validates the constructor parameters against the constructor ABI."""
    if len(resolved_parameters) != len(abi_inputs):
        raise ConstructorParameters.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )
    if not abi_inputs:
        return  # no constructor parameters

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, resolved_input) in codex:
        name, value = resolved_input
        if abi_input.name != name:
            raise ConstructorParameters.Invalid(
                f"{contract_name} constructor parameter '{name}' at position {position} does not "
                f"match the expected ABI name '{abi_input.name}'."
            )

        if not _w3.is_encodable(abi_input.type, value):
            raise ConstructorParameters.Invalid(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


def validate_constructor_parameters(graph: Graph) -> None:
    """Validates the constructor parameters of every unit, references resolved eagerly."""
    for unit in graph.units.values():
        contract_container = get_contract_container(unit.contract_type)
        _validate_constructor_abi_inputs(
            contract_name=unit.name,
            abi_inputs=contract_container.constructor.abi.inputs,
            resolved_parameters=unit.resolve(),
        )


def load_deployer_account(network_config: NetworkConfig, alias: str = DEPLOYER_ACCOUNT_ALIAS):
    """
    Loads the deployer account, importing the configured private key
    into the ape keystore the first time.
    """
    passphrase = network_config.passphrase or ""
    if alias in accounts.aliases:
        account = accounts.load(alias)
    else:
        account = import_account_from_private_key(alias, passphrase, network_config.private_key)
        print(f"Account imported: {account.address}")
    account.unlock(passphrase=passphrase)
    return account


class Deployer:
    """
    Represents an ape account plus deployment parameters for a set
    of interdependent contracts, plus validated/annotated execution.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Optional[Path],
        verify: bool,
        account: Optional[AccountAPI] = None,
        autosign: bool = False,
        timeout: Optional[float] = None,
        registry_names: Optional[typing.Dict[str, str]] = None,
        validate_abi: bool = True,
    ):
        if account is None:
            account = select_account()
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        account.set_autosign(autosign)
        self._account = account
        self._autosign = autosign

        check_plugins(verify)
        self.path = path
        self.config = config
        self.verify = verify
        self.timeout = timeout
        self.registry_names = registry_names or dict()
        self.registry_filepath = validate_config(
            config=self.config,
            chain_id=networks.provider.network.chain_id,
            live_deployment=not is_local_network(),
        )

        self.constructor_parameters = ConstructorParameters.from_config(
            self.config, deployer_address=self._account.address
        )
        self.graph = build(self.constructor_parameters.units)
        if validate_abi:
            validate_constructor_parameters(self.graph)

        self.deployments: typing.OrderedDict[str, ContractInstance] = OrderedDict()
        self.cancel_event = threading.Event()
        self._print_deployment_info()

        if not self._autosign:
            _ask("Continue Y/N? ")

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    def get_account(self) -> AccountAPI:
        """Returns the deployer account."""
        return self._account

    def _get_kwargs(self) -> typing.Dict[str, Any]:
        """Returns the deployment kwargs."""
        return {"publish": self.verify}

    def deploy_unit(self, unit_name: str, resolved_args: List[Any]) -> str:
        """Deploys a single unit and returns its address; the executor's deploy action."""
        unit = self.graph[unit_name]
        container = get_contract_container(unit.contract_type)
        instance = self._deploy_contract(
            container,
            resolved_params=OrderedDict(zip(unit.parameters, resolved_args)),
        )
        self.deployments[unit_name] = instance
        return instance.address

    def _deploy_contract(
        self, container: ContractContainer, resolved_params: OrderedDict
    ) -> ContractInstance:
        deployment_params = [container, *resolved_params.values()]
        kwargs = self._get_kwargs()
        return self._account.deploy(*deployment_params, **kwargs)

    def confirm_unit(self, unit_name: str, resolved_params: OrderedDict) -> None:
        """Shows the resolved constructor parameters and asks to deploy the unit."""
        if resolved_params:
            print(f"\nConstructor parameters for {unit_name}")
            for name, value in resolved_params.items():
                print(f"\t{name}={value}")
        else:
            print(f"\n(i) No constructor parameters for {unit_name}")
        _ask(f"Deploy {unit_name} Y/N? ", unit_name)
        if ZERO_ADDRESS in resolved_params.values():
            _ask("Zero Address detected for deployment parameter; Continue? Y/N? ", unit_name)

    def deploy_all(self) -> Ledger:
        """Deploys every declared unit in dependency order."""
        executor = TopologicalExecutor(
            graph=self.graph,
            deploy_fn=self.deploy_unit,
            timeout=self.timeout,
            cancel_event=self.cancel_event,
            confirm_fn=None if self._autosign else self.confirm_unit,
        )
        return executor.run()

    def cancel(self) -> None:
        self.cancel_event.set()

    def _ledger_deployments(self, ledger: Ledger) -> typing.OrderedDict[str, ContractInstance]:
        return OrderedDict((name, self.deployments[name]) for name, _ in ledger.all())

    def publish(self, ledger: Ledger) -> Path:
        """Writes the recorded deployments to the registry, in deployment order."""
        return registry_from_ape_deployments(
            deployments=self._ledger_deployments(ledger),
            output_filepath=self.registry_filepath,
            registry_names=self.registry_names,
        )

    def finalize(self, ledger: Ledger) -> Path:
        """
        Publishes the deployments to the registry and optionally to block explorers.
        """
        output_filepath = self.publish(ledger)
        if self.verify:
            verify_contracts(contracts=list(self._ledger_deployments(ledger).values()))
        return output_filepath

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Registry: {self.registry_filepath}",
            f"Verify: {self.verify}",
            f"Timeout: {self.timeout}",
            f"Deployment order: {', '.join(self.graph.order())}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            sep="\n",
        )
