import os
import typing
from pathlib import Path
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from dexdeploy.constants import PASSPHRASE_ENVVAR, PRIVATE_KEY_ENVVAR, RPC_URL_ENVVAR
from dexdeploy.errors import ConfigurationError


class NetworkConfig(NamedTuple):
    """Network endpoint and signing credential handed to the deploy action."""

    rpc_url: Optional[str]
    private_key: Optional[str]
    passphrase: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        dotenv_path: Optional[Path] = None,
        environ: Optional[typing.Mapping[str, str]] = None,
        require_rpc_url: bool = True,
        require_private_key: bool = True,
    ) -> "NetworkConfig":
        """
        Reads the configuration from the environment, after loading a .env file
        (if any). Values already present in the environment take precedence.
        Either value may be left optional when the caller supplies it another way.
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path)
            environ = os.environ

        required = list()
        if require_rpc_url:
            required.append(RPC_URL_ENVVAR)
        if require_private_key:
            required.append(PRIVATE_KEY_ENVVAR)
        missing = [envvar for envvar in required if not environ.get(envvar)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

        return cls(
            rpc_url=environ.get(RPC_URL_ENVVAR) or None,
            private_key=environ.get(PRIVATE_KEY_ENVVAR) or None,
            passphrase=environ.get(PASSPHRASE_ENVVAR),
        )

    def __repr__(self):
        # never print the key
        return f"NetworkConfig(rpc_url={self.rpc_url!r}, private_key=***)"
