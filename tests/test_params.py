from collections import OrderedDict

import pytest
import yaml

from dexdeploy.constants import CONSTRUCTOR_PARAMS_DIR, ZERO_ADDRESS
from dexdeploy.errors import DeploymentConfigError, UnknownUnitError
from dexdeploy.ledger import DeploymentResult, Ledger
from dexdeploy.params import (
    Constant,
    ConstructorParameters,
    DeployerAccount,
    Unit,
    UnitReference,
    Variable,
    resolve_parameters,
)
from tests.conftest import DEPLOYER_ADDRESS


@pytest.fixture
def ledger():
    ledger = Ledger()
    ledger.record("USDC", DeploymentResult(name="USDC", address="0xUSDC"))
    ledger.record("WETH", DeploymentResult(name="WETH", address="0xWETH"))
    return ledger


def test_is_variable():
    assert Variable.is_variable("$WETH")
    assert not Variable.is_variable("WETH")
    assert not Variable.is_variable(42)


def test_from_config(dexbook_config):
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)

    names = [unit.name for unit in parameters.units]
    assert names == ["USDC", "WETH", "DexBook"]

    dexbook = parameters.units[-1]
    assert dexbook.parameters == OrderedDict(
        [("_weth", UnitReference("WETH")), ("_usdc", UnitReference("USDC"))]
    )
    assert dexbook.dependencies == ["WETH", "USDC"]
    assert dexbook.contract_type == "DexBook"


def test_shipped_apothem_params_file():
    with open(CONSTRUCTOR_PARAMS_DIR / "apothem.yml") as file:
        config = yaml.safe_load(file)

    assert config["deployment"]["chain_id"] == 51
    parameters = ConstructorParameters.from_config(config, silent=True)
    assert [unit.name for unit in parameters.units] == ["USDC", "WETH", "DexBook"]
    assert parameters.units[-1].dependencies == ["WETH", "USDC"]


def test_resolve_against_ledger(dexbook_config, ledger):
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    resolved = parameters.units[-1].resolve(ledger)
    assert resolved == OrderedDict([("_weth", "0xWETH"), ("_usdc", "0xUSDC")])


def test_resolution_is_idempotent(dexbook_config, ledger):
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    dexbook = parameters.units[-1]
    before = OrderedDict(dexbook.parameters)

    first = dexbook.resolve(ledger)
    second = dexbook.resolve(ledger)

    assert first == second
    assert dexbook.parameters == before
    assert len(ledger) == 2


def test_eager_resolution_uses_zero_address(dexbook_config):
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    resolved = parameters.units[-1].resolve()
    assert list(resolved.values()) == [ZERO_ADDRESS, ZERO_ADDRESS]


def test_constants_deployer_and_lists(dexbook_config, ledger):
    dexbook_config["contracts"].append(
        {
            "Treasury": {
                "contract_type": "MultiSigTreasury",
                "constructor": {
                    "_owner": "$deployer",
                    "_feeBps": "$FEE_BPS",
                    "_admins": "$ADMINS",
                    "_tokens": ["$USDC", "$WETH"],
                    "_label": "treasury",
                },
            }
        }
    )
    parameters = ConstructorParameters.from_config(
        dexbook_config, deployer_address=DEPLOYER_ADDRESS, silent=True
    )
    treasury = parameters.units[-1]

    assert treasury.contract_type == "MultiSigTreasury"
    assert isinstance(treasury.parameters["_owner"], DeployerAccount)
    assert isinstance(treasury.parameters["_feeBps"], Constant)
    assert treasury.dependencies == ["USDC", "WETH"]

    resolved = treasury.resolve(ledger)
    assert resolved == OrderedDict(
        [
            ("_owner", DEPLOYER_ADDRESS),
            ("_feeBps", 30),
            ("_admins", ["0x" + "aa" * 20]),
            ("_tokens", ["0xUSDC", "0xWETH"]),
            ("_label", "treasury"),
        ]
    )


def test_deployer_without_account_resolves_to_zero_address():
    assert DeployerAccount().resolve() == ZERO_ADDRESS


def test_unknown_reference_in_config(dexbook_config):
    dexbook_config["contracts"][2]["DexBook"]["constructor"]["_oracle"] = "$Oracle"
    with pytest.raises(UnknownUnitError) as error:
        ConstructorParameters.from_config(dexbook_config, silent=True)
    assert error.value.unit_name == "DexBook"
    assert error.value.reference == "Oracle"


def test_missing_constant(dexbook_config):
    dexbook_config["contracts"][2]["DexBook"]["constructor"]["_fee"] = "$MISSING_FEE"
    with pytest.raises(DeploymentConfigError, match="MISSING_FEE"):
        ConstructorParameters.from_config(dexbook_config, silent=True)


@pytest.mark.parametrize(
    "contracts",
    [
        [42],
        [{"USDC": {}, "WETH": {}}],
        [{"DexBook": "not-a-mapping"}],
        [{"DexBook": {"constructor": ["$USDC"]}}],
    ],
)
def test_malformed_contracts(dexbook_config, contracts):
    dexbook_config["contracts"] = contracts
    with pytest.raises(DeploymentConfigError):
        ConstructorParameters.from_config(dexbook_config, silent=True)


def test_unit_without_constructor_section(dexbook_config):
    dexbook_config["contracts"] = [{"USDC": None}, {"WETH": {"contract_type": "WETH9"}}]
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    assert [unit.parameters for unit in parameters.units] == [OrderedDict(), OrderedDict()]
    assert parameters.units[1].contract_type == "WETH9"


def test_resolve_parameters_passes_literals_through():
    resolved = resolve_parameters({"amount": 10**18, "name": "USD Coin", "flags": [True, False]})
    assert resolved == OrderedDict(
        [("amount", 10**18), ("name", "USD Coin"), ("flags", [True, False])]
    )


def test_unit_dependencies_are_deduplicated():
    unit = Unit(
        "Router",
        parameters={"a": UnitReference("Pair"), "b": [UnitReference("Pair"), UnitReference("WETH")]},
    )
    assert unit.dependencies == ["Pair", "WETH"]


def test_upper_case_contract_names_are_references(dexbook_config):
    dexbook_config["constants"]["USDC"] = "0x" + "bb" * 20
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    assert parameters.units[-1].parameters["_usdc"] == UnitReference("USDC")


def test_references_inside_tuples_and_dicts_are_resolved(ledger):
    unit = Unit(
        "Router",
        parameters=OrderedDict(
            [
                ("pair", (UnitReference("USDC"), UnitReference("WETH"))),
                ("cfg", {"token": UnitReference("USDC"), "fee": 30}),
            ]
        ),
    )
    assert unit.dependencies == ["USDC", "WETH"]

    resolved = unit.resolve(ledger)
    assert resolved["pair"] == ("0xUSDC", "0xWETH")
    assert resolved["cfg"] == {"token": "0xUSDC", "fee": 30}

    eager = unit.resolve()
    assert eager["pair"] == (ZERO_ADDRESS, ZERO_ADDRESS)
    assert eager["cfg"]["token"] == ZERO_ADDRESS


def test_struct_parameters_in_config(dexbook_config, ledger):
    dexbook_config["contracts"].append(
        {"Router": {"constructor": {"_market": {"base": "$WETH", "quote": "$USDC"}}}}
    )
    parameters = ConstructorParameters.from_config(dexbook_config, silent=True)
    router = parameters.units[-1]

    assert router.dependencies == ["WETH", "USDC"]
    assert router.resolve(ledger)["_market"] == {"base": "0xWETH", "quote": "0xUSDC"}
