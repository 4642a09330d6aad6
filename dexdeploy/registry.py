import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple

from ape.contracts import ContractInstance
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from eth_typing import ABI

from dexdeploy.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """Represents a single entry in a contract registry."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str


def _get_abi(contract_instance: ContractInstance) -> ABI:
    """Returns the ABI of a contract instance."""
    contract_abi = list()
    for entry in contract_instance.contract_type.abi:
        contract_abi.append(entry.model_dump(mode="json", by_alias=True))
    return contract_abi


def _get_entry(contract_instance: ContractInstance, name: ContractName) -> RegistryEntry:
    receipt = contract_instance.receipt
    entry = RegistryEntry(
        name=name,
        address=to_checksum_address(contract_instance.address),
        abi=_get_abi(contract_instance),
        chain_id=receipt.chain_id,
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )
    return entry


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entry = RegistryEntry(
                chain_id=int(chain_id),
                name=contract_name,
                address=artifacts["address"],
                abi=artifacts["abi"],
                tx_hash=artifacts["tx_hash"],
                block_number=artifacts["block_number"],
                deployer=artifacts["deployer"],
            )
            registry_entries.append(registry_entry)
    return registry_entries


def _registry_data(entries: List[RegistryEntry]) -> Dict[str, Dict[ContractName, Dict]]:
    """Lays out entries by chain id then name; ABIs sorted so diffs stay small."""
    data = defaultdict(dict)
    for entry in sorted(entries, key=lambda e: (str(e.chain_id), e.name)):
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "abi": sorted(entry.abi, key=lambda d: (d["type"], d.get("name", ""))),
            "tx_hash": entry.tx_hash,
            "block_number": int(entry.block_number),
            "deployer": entry.deployer,
        }
    return data


def _merge_target(filepath: Path, data: Dict, silent: bool) -> Tuple[Path, Dict]:
    """Picks the file to write; chains already present in a registry are never overwritten."""
    if not filepath.exists():
        if not silent:
            print(f"Creating new registry at {filepath}.")
        return filepath, data

    existing_data = _load_json(filepath)
    overlapping = sorted(set(existing_data) & set(data))
    if overlapping:
        unmerged = filepath.with_suffix(".unmerged.json")
        if not silent:
            print(
                f"Registry {filepath} already holds chain(s) {', '.join(overlapping)}.\n"
                f"Writing to {unmerged} instead."
            )
        return unmerged, data

    if not silent:
        print(f"Updating existing registry at {filepath}.")
    existing_data.update(data)
    return filepath, existing_data


def write_registry(entries: List[RegistryEntry], filepath: Path, silent: bool = False) -> Path:
    """Writes a contract registry to a file, returning the path actually written."""
    if not entries:
        if not silent:
            print("No entries provided.")
        return filepath

    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath, data = _merge_target(filepath, _registry_data(entries), silent)
    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)

    return filepath


def registry_from_ape_deployments(
    deployments: Dict[ContractName, ContractInstance],
    output_filepath: Path,
    registry_names: Optional[Dict[ContractName, ContractName]] = None,
) -> Path:
    """
    Creates a contract registry from deployed instances keyed by unit name.
    Unit names can be remapped to registry names.
    """
    registry_names = registry_names or dict()
    entries = list()
    for unit_name, contract_instance in deployments.items():
        name = registry_names.get(unit_name, unit_name)
        entries.append(_get_entry(contract_instance=contract_instance, name=name))
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath
