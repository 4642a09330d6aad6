from enum import Enum
from pathlib import Path

import dexdeploy

#
# Filesystem
#

DEPLOYMENT_DIR = Path(dexdeploy.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

APOTHEM = "apothem"

LOCAL_NETWORKS = ["local", "development"]

#
# Environment
#

RPC_URL_ENVVAR = "RPC_URL_APOTHEM"
PRIVATE_KEY_ENVVAR = "PRIVATE_KEY"
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"

DEPLOYER_ACCOUNT_ALIAS = "dexbook-deployer"

#
# Contracts
#

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

#
# Orchestration
#


class UnitStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DEPLOYED = "deployed"
    FAILED = "failed"
