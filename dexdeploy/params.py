import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, List, Optional

from dexdeploy.constants import ZERO_ADDRESS
from dexdeploy.errors import DeploymentConfigError, UnknownUnitError
from dexdeploy.ledger import Ledger

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_TYPE_KEY = "contract_type"


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
        deployer_address: Optional[str] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.constants = constants or dict()
        self.deployer_address = deployer_address


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, ledger: Optional[Ledger] = None) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, address: Optional[str] = None):
        self.address = address

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, ledger: Optional[Ledger] = None) -> Any:
        if self.address is None:
            return ZERO_ADDRESS
        return self.address

    def __repr__(self):
        return f"${self.DEPLOYER_INDICATOR}"


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(
                f"Constant '{constant_name}' not found in deployment file."
            )
        self.constant_name = constant_name

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, ledger: Optional[Ledger] = None) -> Any:
        return self.constant_value

    def __repr__(self):
        return f"${self.constant_name}"


class UnitReference(Variable):
    """A reference to the deployed address of another unit."""

    def __init__(self, unit_name: str, context: Optional[VariableContext] = None):
        if context is not None and unit_name not in context.contract_names:
            raise UnknownUnitError(unit_name=context.contract_name, reference=unit_name)
        self.unit_name = unit_name

    def resolve(self, ledger: Optional[Ledger] = None) -> Any:
        """Resolves the referenced unit's address."""
        if ledger is None:
            # eager validation
            return ZERO_ADDRESS
        return ledger.lookup(self.unit_name).address

    def __repr__(self):
        return f"${self.unit_name}"


def _resolve_param(value: Any, ledger: Optional[Ledger] = None) -> Any:
    """Resolves a single parameter value, walking lists, tuples and dict values."""
    if isinstance(value, list):
        return [_resolve_param(v, ledger) for v in value]
    if isinstance(value, tuple):
        resolved = [_resolve_param(v, ledger) for v in value]
        # named tuples take their fields positionally
        return type(value)(*resolved) if hasattr(value, "_fields") else tuple(resolved)
    if isinstance(value, dict):
        return {k: _resolve_param(v, ledger) for k, v in value.items()}

    if isinstance(value, Variable):
        return value.resolve(ledger)

    return value  # literally a value


def resolve_parameters(
    parameters: typing.Mapping[str, Any], ledger: Optional[Ledger] = None
) -> OrderedDict:
    """
    Resolves constructor parameters against the ledger.
    Without a ledger, references resolve to the zero address.
    """
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, ledger)

    return resolved_parameters


def collect_references(value: Any) -> List[str]:
    """Returns the names of units referenced by a parameter value, in order."""
    if isinstance(value, UnitReference):
        return [value.unit_name]
    if isinstance(value, (list, tuple)):
        names = list()
        for item in value:
            names.extend(collect_references(item))
        return names
    if isinstance(value, dict):
        return collect_references(list(value.values()))
    return []


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if variable in context.contract_names:
        # declared contracts win over constants (e.g. $USDC, $WETH)
        return UnitReference(variable, context)
    elif DeployerAccount.is_deployer(variable):
        return DeployerAccount(context.deployer_address)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return UnitReference(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]
    if isinstance(value, dict):
        # struct-like parameters
        return _process_raw_values(value, variable_context)

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: typing.Mapping, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _get_contract_names(config: typing.Dict) -> List[str]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict):
            contract_names.extend(list(contract_info.keys()))
        else:
            raise DeploymentConfigError("Malformed constructor parameters YAML.")

    return contract_names


class Unit:
    """A named deployable contract and its constructor parameter specs."""

    def __init__(
        self,
        name: str,
        parameters: typing.Mapping[str, Any] = None,
        contract_type: Optional[str] = None,
    ):
        self.name = name
        self.parameters = OrderedDict(parameters or {})
        self.contract_type = contract_type or name

    @property
    def dependencies(self) -> List[str]:
        """Names of the units this unit references, deduplicated, in parameter order."""
        names = collect_references(list(self.parameters.values()))
        return list(OrderedDict.fromkeys(names))

    def resolve(self, ledger: Optional[Ledger] = None) -> OrderedDict:
        return resolve_parameters(self.parameters, ledger)

    def __repr__(self):
        return f"Unit({self.name!r}, parameters={dict(self.parameters)!r})"


class ConstructorParameters:
    """Represents the constructor parameters for a set of contracts."""

    class Invalid(DeploymentConfigError):
        """Raised when the constructor parameters are invalid"""

    def __init__(self, units: List[Unit]):
        self.units = units

    @classmethod
    def from_config(
        cls, config: typing.Dict, deployer_address: Optional[str] = None, silent: bool = False
    ) -> "ConstructorParameters":
        """Loads the constructor parameters from a parsed params file."""
        if not silent:
            print("Processing contract constructor parameters...")
        contract_names = _get_contract_names(config)
        constants = config.get("constants")
        units = list()
        for contract_info in config["contracts"]:
            if isinstance(contract_info, str):
                units.append(Unit(name=contract_info))
                continue

            if len(contract_info) != 1:
                raise DeploymentConfigError("Malformed constructor parameters YAML.")

            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            if not isinstance(contract_data, dict):
                raise DeploymentConfigError(
                    f"Malformed constructor parameter config for {contract_name}."
                )
            context = VariableContext(
                contract_names=contract_names,
                contract_name=contract_name,
                constants=constants,
                deployer_address=deployer_address,
            )
            parameter_values = cls._process_parameters(contract_data, context)
            units.append(
                Unit(
                    name=contract_name,
                    parameters=parameter_values,
                    contract_type=contract_data.get(CONTRACT_TYPE_KEY),
                )
            )

        return cls(units=units)

    @classmethod
    def _process_parameters(cls, contract_data, context: VariableContext) -> OrderedDict:
        parameter_values = OrderedDict()
        if CONTRACT_CONSTRUCTOR_PARAMETER_KEY in contract_data:
            raw_values = contract_data[CONTRACT_CONSTRUCTOR_PARAMETER_KEY] or dict()
            if not isinstance(raw_values, dict):
                raise DeploymentConfigError(
                    f"Malformed constructor parameter config for {context.contract_name}."
                )
            parameter_values = _process_raw_values(raw_values, context)
        return parameter_values
