"""
Data models for the Ethereum batch engine.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    status: int
    gas_used: Optional[int] = Field(None, alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")


class FeeData(BaseModel):
    """Current fee data; EIP-1559 fields are None on legacy chains"""
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


class BlockInfo(BaseModel):
    """Minimal metadata of a block"""
    number: int
    timestamp: int
    base_fee_per_gas: Optional[int] = None


@dataclass
class OutputItem:
    """
    One output record, tagged with the index of the input item it came from.

    Attributes:
        data: JSON-serializable output fields
        paired_item: 0-based index of the originating input item
    """
    data: Dict[str, Any]
    paired_item: int

    def to_dict(self) -> Dict[str, Any]:
        return {"json": self.data, "pairedItem": {"item": self.paired_item}}
