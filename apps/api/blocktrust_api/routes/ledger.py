"""Simulated ledger endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from blocktrust_api.db.session import get_db
from blocktrust_api.ledger.service import LedgerService

router = APIRouter(prefix="/v1", tags=["ledger"])


class LedgerEntryResponse(BaseModel):
    """Ledger entry response."""

    id: int
    transaction_hash: str
    transaction_type: str
    block_number: int
    related_id: Optional[str] = None
    user_id: Optional[str] = None
    data: dict
    hash_mode: str
    chain_sequence: Optional[int] = None
    previous_hash: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/blockchain-status")
async def blockchain_status(db: Session = Depends(get_db)):
    """Latest transaction, block height and recent activity (public)."""
    return LedgerService(db).status()
