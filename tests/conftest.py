from collections import OrderedDict

import pytest

from dexdeploy.params import Unit, UnitReference

DEPLOYER_ADDRESS = "0x" + "de" * 20


def address_for(index: int) -> str:
    return f"0x{index:040x}"


class RecordingDeployAction:
    """Deploy action double; records every call and hands out sequential addresses."""

    def __init__(self, fail_on=None, error=None):
        self.calls = list()
        self.fail_on = fail_on or set()
        self.error = error or RuntimeError("transaction reverted")

    def __call__(self, unit_name, resolved_args):
        self.calls.append((unit_name, list(resolved_args)))
        if unit_name in self.fail_on:
            raise self.error
        return address_for(len(self.calls))

    @property
    def deployed_names(self):
        return [name for name, _ in self.calls]

    def args_for(self, unit_name):
        return dict(self.calls)[unit_name]


@pytest.fixture
def deploy_action():
    return RecordingDeployAction()


@pytest.fixture
def dexbook_units():
    return [
        Unit("USDC"),
        Unit("WETH"),
        Unit(
            "DexBook",
            parameters=OrderedDict(
                [("_weth", UnitReference("WETH")), ("_usdc", UnitReference("USDC"))]
            ),
        ),
    ]


@pytest.fixture
def dexbook_config(tmp_path):
    return {
        "deployment": {"name": "dexbook-test", "chain_id": 51},
        "artifacts": {"dir": str(tmp_path / "artifacts"), "filename": "apothem.json"},
        "constants": {"FEE_BPS": 30, "ADMINS": ["0x" + "aa" * 20]},
        "contracts": [
            "USDC",
            "WETH",
            {
                "DexBook": {
                    "constructor": OrderedDict(
                        [("_weth", "$WETH"), ("_usdc", "$USDC")]
                    )
                }
            },
        ],
    }
