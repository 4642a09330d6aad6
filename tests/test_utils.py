import json

import pytest

from dexdeploy.errors import DeploymentConfigError
from dexdeploy.utils import get_artifact_filepath, validate_config


def test_artifact_filepath(dexbook_config, tmp_path):
    assert get_artifact_filepath(dexbook_config) == tmp_path / "artifacts" / "apothem.json"


def test_artifact_filename_required(dexbook_config):
    del dexbook_config["artifacts"]["filename"]
    with pytest.raises(DeploymentConfigError, match="artifact filename"):
        get_artifact_filepath(dexbook_config)


def test_validate_config(dexbook_config, tmp_path):
    registry_filepath = validate_config(dexbook_config, chain_id=51)
    assert registry_filepath == tmp_path / "artifacts" / "apothem.json"


@pytest.mark.parametrize("missing", ["deployment", "contracts"])
def test_validate_config_missing_section(dexbook_config, missing):
    del dexbook_config[missing]
    with pytest.raises(DeploymentConfigError):
        validate_config(dexbook_config, chain_id=51)


def test_validate_config_missing_chain_id(dexbook_config):
    del dexbook_config["deployment"]["chain_id"]
    with pytest.raises(DeploymentConfigError, match="chain_id is not set"):
        validate_config(dexbook_config, chain_id=51)


def test_chain_mismatch(dexbook_config):
    with pytest.raises(DeploymentConfigError, match="does not match"):
        validate_config(dexbook_config, chain_id=1)

    # local deployments ignore the configured chain
    validate_config(dexbook_config, chain_id=1337, live_deployment=False)


def test_already_published(dexbook_config, tmp_path):
    registry_filepath = tmp_path / "artifacts" / "apothem.json"
    registry_filepath.parent.mkdir()
    registry_filepath.write_text(json.dumps({"51": {}}))

    with pytest.raises(DeploymentConfigError, match="already published"):
        validate_config(dexbook_config, chain_id=51)


def test_registry_for_other_chain(dexbook_config, tmp_path):
    registry_filepath = tmp_path / "artifacts" / "apothem.json"
    registry_filepath.parent.mkdir()
    registry_filepath.write_text(json.dumps({"50": {}}))

    assert validate_config(dexbook_config, chain_id=51) == registry_filepath
