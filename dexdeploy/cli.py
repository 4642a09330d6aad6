import click
from ape import accounts, networks

from dexdeploy.config import NetworkConfig
from dexdeploy.deployer import Deployer, load_deployer_account
from dexdeploy.errors import DeploymentError
from dexdeploy.ledger import Ledger
from dexdeploy.options import (
    account_alias_option,
    autosign_option,
    network_choice_option,
    params_file_option,
    registry_name_option,
    timeout_option,
    verify_option,
)


def _display_ledger(ledger: Ledger) -> None:
    """Prints one line per deployed unit, in deployment order."""
    for name, result in ledger.all():
        click.secho(f"{name} contract address: {result.address}", fg="cyan")


@click.command(name="deploy-dexbook")
@params_file_option
@network_choice_option
@account_alias_option
@verify_option
@autosign_option
@timeout_option
@registry_name_option
def cli(params_file, network_choice, account_alias, verify, auto, timeout, registry_names):
    """
    Deploys the contracts declared in a parameters file in dependency order.

    ape run deploy_dexbook --params-file dexdeploy/constructor_params/apothem.yml
    """
    network_config = None
    if not (network_choice and account_alias):
        try:
            network_config = NetworkConfig.from_env(
                require_rpc_url=not network_choice, require_private_key=not account_alias
            )
        except DeploymentError as e:
            raise click.ClickException(str(e))

    with networks.parse_network_choice(network_choice or network_config.rpc_url):
        if account_alias:
            account = accounts.load(account_alias)
        else:
            account = load_deployer_account(network_config)

        deployer = None
        try:
            deployer = Deployer.from_yaml(
                filepath=params_file,
                verify=verify,
                account=account,
                autosign=auto,
                timeout=timeout,
                registry_names=dict(registry_names),
            )
            ledger = deployer.deploy_all()
        except DeploymentError as e:
            partial_ledger = getattr(e, "ledger", None)
            if partial_ledger:
                click.secho("\nDeployed before failure:", fg="yellow")
                _display_ledger(partial_ledger)
                if deployer is not None:
                    # already on chain, so keep a record of them
                    deployer.publish(partial_ledger)
            click.secho(f"\n{e}", fg="red", err=True)
            raise SystemExit(1)

        print()
        _display_ledger(ledger)
        deployer.finalize(ledger)


if __name__ == "__main__":
    cli()
