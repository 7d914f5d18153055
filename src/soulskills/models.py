"""SoulSkills data models — ledger state, configuration and events as Pydantic models.

The persisted state mirrors the ledger layout:
  - owners / balances: token holder bookkeeping
  - token_approvals / operator_approvals: approvals (only useful for burns)
  - skills / skill_values: skill catalog and the sparse attribute store
  - base_locator, total_issued, administrator, authority
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from eth_utils import is_address, to_checksum_address
from pydantic import AfterValidator, BaseModel, Field, field_validator

VOID_ADDRESS = "0x0000000000000000000000000000000000000000"

UINT256_MAX = 2**256 - 1


def to_address(value: str) -> str:
    """Normalize a hex address to its EIP-55 checksum form.

    Raises:
        ValueError: If the value is not a 20-byte hex address.
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"Not a valid address: {value!r}")
    return to_checksum_address(value)


def to_uint256(value: int) -> int:
    """Validate an unsigned 256-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"Value out of uint256 range: {value}")
    return value


Address = Annotated[str, AfterValidator(to_address)]
Uint256 = Annotated[int, AfterValidator(to_uint256)]


class SkillDefinition(BaseModel):
    """A named skill slot. Its position in the catalog is its id."""

    name: str = Field(description="Display name of the skill")


class TokenState(BaseModel):
    """The complete mutable state of a soulbound token ledger.

    This is what gets persisted to state.json. Map entries that were
    never written are simply absent; readers apply the zero default.
    An unset authority means mints must be signed by the administrator.
    """

    owners: dict[int, Address] = Field(default_factory=dict)
    balances: dict[Address, int] = Field(default_factory=dict)
    token_approvals: dict[int, Address] = Field(default_factory=dict)
    operator_approvals: dict[Address, dict[Address, bool]] = Field(default_factory=dict)

    skills: list[SkillDefinition] = Field(default_factory=list)
    skill_values: dict[int, dict[int, Uint256]] = Field(default_factory=dict)

    base_locator: str = ""
    total_issued: int = Field(default=0, ge=0)
    administrator: Address = VOID_ADDRESS
    authority: Optional[Address] = None


class TokenConfig(BaseModel):
    """Deployment configuration — parsed from config.yaml."""

    name: str = Field(default="SoulSkills", description="Collection name")
    symbol: str = Field(default="SOUL", description="Collection ticker symbol")
    authority: Optional[Address] = Field(
        default=None,
        description="Address whose signature approves mints (unset: the administrator)",
    )

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Symbols are short upper-case tickers."""
        if not v or not v.isalnum():
            raise ValueError(f"Symbol must be alphanumeric: got '{v}'")
        return v.upper()


class TransferEvent(BaseModel):
    """Creation, burn or (never permitted) transfer of a token."""

    event: Literal["Transfer"] = "Transfer"
    from_: Address = Field(alias="from")
    to: Address
    token_id: int

    model_config = {"populate_by_name": True}


class ApprovalEvent(BaseModel):
    """Single-token spender approval changed."""

    event: Literal["Approval"] = "Approval"
    owner: Address
    approved: Address
    token_id: int


class ApprovalForAllEvent(BaseModel):
    """Operator approval changed."""

    event: Literal["ApprovalForAll"] = "ApprovalForAll"
    owner: Address
    operator: Address
    approved: bool


class AdministratorTransferred(BaseModel):
    """Administrator changed (void ``new`` means renounced)."""

    event: Literal["AdministratorTransferred"] = "AdministratorTransferred"
    previous: Address
    new: Address


LedgerEvent = Annotated[
    Union[TransferEvent, ApprovalEvent, ApprovalForAllEvent, AdministratorTransferred],
    Field(discriminator="event"),
]


class EventRecord(BaseModel):
    """Wrapper used to parse a single event from the event log."""

    entry: LedgerEvent


class MintRequest(BaseModel):
    """A signed mint payload as handed from the authority to a submitter."""

    recipient: Address
    skill_ids: list[Uint256] = Field(default_factory=list)
    skill_values: list[Uint256] = Field(default_factory=list)
    signature: str = Field(default="", description="0x-prefixed 65-byte hex signature")

    @property
    def signature_bytes(self) -> bytes:
        """Decode the hex signature."""
        raw = self.signature[2:] if self.signature.startswith("0x") else self.signature
        return bytes.fromhex(raw)


def parse_config_yaml(path: Path) -> TokenConfig:
    """Parse a config.yaml file into a TokenConfig.

    Args:
        path: Path to the config.yaml file.

    Returns:
        TokenConfig: The parsed configuration.

    Raises:
        FileNotFoundError: If config.yaml doesn't exist.
        ValueError: If the YAML is invalid or missing required fields.
    """
    if not path.exists():
        raise FileNotFoundError(f"config.yaml not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"config.yaml is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"config.yaml must be a YAML mapping, got {type(raw).__name__}")

    return TokenConfig.model_validate(raw)


def generate_config_yaml(config: TokenConfig) -> str:
    """Serialize a TokenConfig back to YAML.

    Args:
        config: The configuration to serialize.

    Returns:
        str: YAML string representation.
    """
    data = config.model_dump()
    return yaml.dump(data, default_flow_style=False, sort_keys=False)
