"""
Compiled contract artifacts and deployment payloads.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Sequence, Union

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from pydantic import BaseModel, Field

from .exceptions import ConfigurationError
from .utils import strip_0x

logger = logging.getLogger(__name__)


class ContractArtifact(BaseModel):
    """The parts of a Hardhat artifact needed to deploy a contract"""
    contract_name: str = Field("", alias="contractName")
    abi: List[Dict[str, Any]] = Field(default_factory=list)
    bytecode: bytes

    @property
    def constructor_inputs(self) -> List[Dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return entry.get("inputs", [])
        return []


def load_artifact(path: Union[str, Path]) -> ContractArtifact:
    """
    Read a compiled contract artifact.

    Args:
        path: Path of the artifact JSON file

    Returns:
        Parsed artifact with decoded bytecode

    Raises:
        ConfigurationError: If the file is missing, is not valid JSON, or has
            no usable bytecode
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Contract artifact not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read contract artifact {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Contract artifact {path} must be a JSON object")

    raw_bytecode = data.get("bytecode")
    if isinstance(raw_bytecode, dict):
        # solc standard-json output nests the hex under "object"
        raw_bytecode = raw_bytecode.get("object")
    if not isinstance(raw_bytecode, str):
        raise ConfigurationError(f"Contract artifact {path} has no bytecode")

    hex_body = strip_0x(raw_bytecode.strip())
    if not hex_body:
        raise ConfigurationError(f"Contract artifact {path} has empty bytecode")
    try:
        bytecode = bytes.fromhex(hex_body)
    except ValueError:
        raise ConfigurationError(
            f"Contract artifact {path} bytecode is not valid hex (unlinked libraries?)"
        )

    abi = data.get("abi", [])
    if not isinstance(abi, list):
        raise ConfigurationError(f"Contract artifact {path} has a malformed ABI")

    artifact = ContractArtifact(
        contractName=data.get("contractName", path.stem),
        abi=abi,
        bytecode=bytecode,
    )
    logger.debug(f"Loaded artifact {artifact.contract_name} ({len(bytecode)} bytes of bytecode)")
    return artifact


def encode_constructor_args(artifact: ContractArtifact, args: Sequence[Any]) -> bytes:
    """
    ABI-encode constructor arguments using the types declared in the artifact.

    Raises:
        ConfigurationError: If the argument count or values do not match the constructor
    """
    inputs = artifact.constructor_inputs
    if len(inputs) != len(args):
        raise ConfigurationError(
            f"{artifact.contract_name} constructor takes {len(inputs)} argument(s), got {len(args)}"
        )
    if not inputs:
        return b""

    types = [item["type"] for item in inputs]
    try:
        return encode(types, list(args))
    except (EncodingError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid constructor arguments for {artifact.contract_name}: {e}")


def build_deployment_payload(artifact: ContractArtifact, args: Sequence[Any] = ()) -> bytes:
    """Contract creation payload: bytecode followed by the encoded constructor arguments."""
    return artifact.bytecode + encode_constructor_args(artifact, args)
