from pathlib import Path

import click

from dexdeploy.constants import CONSTRUCTOR_PARAMS_DIR, APOTHEM
from dexdeploy.types import MinFloat, RegistryName

params_file_option = click.option(
    "--params-file",
    "-p",
    help="Deployment parameters YAML file",
    type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path),
    default=CONSTRUCTOR_PARAMS_DIR / f"{APOTHEM}.yml",
    show_default=True,
)

network_choice_option = click.option(
    "--network",
    "-n",
    "network_choice",
    help="ape network choice; defaults to the RPC URL from the environment",
    type=str,
    required=False,
)

account_alias_option = click.option(
    "--account",
    "-a",
    "account_alias",
    help="ape account alias; defaults to the private key from the environment",
    type=str,
    required=False,
)

verify_option = click.option(
    "--verify",
    help="Verify deployed contracts on the block explorer.",
    is_flag=True,
)

autosign_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

timeout_option = click.option(
    "--timeout",
    "-t",
    help="Seconds to wait for each contract deployment.",
    type=MinFloat(0),
    required=False,
)

registry_name_option = click.option(
    "--registry-name",
    "-r",
    "registry_names",
    help="Publish a unit under another registry name, as UNIT=NAME. Repeatable.",
    type=RegistryName(),
    multiple=True,
)
