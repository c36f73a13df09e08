"""
Loading of compiled contract artifacts.

Foundry writes ``out/<Name>.sol/<Name>.json`` with the init code under
``bytecode.object``; Hardhat writes ``bytecode`` as a plain hex string.
Both layouts are accepted.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from .exceptions import ArtifactError
from .models import ContractArtifact

logger = logging.getLogger(__name__)


def foundry_artifact_path(out_dir: Union[str, Path], contract_name: str) -> Path:
    """Path of a Foundry artifact, e.g. ``out/HelloWorld.sol/HelloWorld.json``."""
    return Path(out_dir) / f"{contract_name}.sol" / f"{contract_name}.json"


def _bytecode_hex(raw: Dict[str, Any]) -> str:
    bytecode = raw.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(bytecode, str):
        raise ArtifactError("Artifact has no bytecode")
    return bytecode


def parse_artifact(raw: Dict[str, Any], name: str) -> ContractArtifact:
    """
    Build a ContractArtifact from decoded artifact JSON.

    Raises:
        ArtifactError: If the ABI or bytecode is missing or malformed
    """
    if not isinstance(raw, dict):
        raise ArtifactError(f"Artifact must be a JSON object, got {type(raw).__name__}")

    abi = raw.get("abi")
    if not isinstance(abi, list):
        raise ArtifactError("Artifact has no ABI list")

    bytecode_hex = _bytecode_hex(raw).strip()
    if bytecode_hex.startswith("0x"):
        bytecode_hex = bytecode_hex[2:]
    if not bytecode_hex:
        # interfaces and abstract contracts compile to empty bytecode
        raise ArtifactError(f"Artifact {name} has empty bytecode; is it deployable?")
    try:
        bytecode = bytes.fromhex(bytecode_hex)
    except ValueError as e:
        # unlinked libraries leave __$...$__ placeholders in the hex
        raise ArtifactError(f"Invalid bytecode in artifact {name}: {e}") from e

    return ContractArtifact(name=raw.get("contractName") or name, abi=abi, bytecode=bytecode)


def load_artifact(path: Union[str, Path]) -> ContractArtifact:
    """
    Read a Foundry or Hardhat artifact from disk.

    Args:
        path: Path to the artifact JSON file

    Returns:
        The contract's ABI and init code

    Raises:
        ArtifactError: If the file is missing, not JSON, or malformed
    """
    artifact_path = Path(path)
    logger.debug(f"Loading artifact from {artifact_path}")
    try:
        with artifact_path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ArtifactError(f"Artifact file not found: {artifact_path}") from e
    except json.JSONDecodeError as e:
        raise ArtifactError(f"Artifact {artifact_path} is not valid JSON: {e}") from e

    artifact = parse_artifact(raw, artifact_path.stem)
    logger.info(f"Loaded artifact {artifact.name} ({len(artifact.bytecode)} bytes of init code)")
    return artifact
