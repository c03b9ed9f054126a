"""Simulated ledger recorder.

Entries mimic blockchain transactions but carry no external verifiability.
Two hash modes are supported:

* ``simulated`` - a random 32-byte hex token and a random block number offset
  from a fixed baseline, matching what the web client has always displayed.
* ``content`` - a SHA-256 over the canonical entry chained to the previous
  content entry. The chain head lives in ``ledger_sequences`` and is locked
  while appending, so concurrent writers cannot fork the chain.

Each entry records the mode it was written in; ``verify_chain`` only re-hashes
the content entries, so a ledger may switch modes without failing verification.
"""

import hashlib
import json
import logging
import random
import secrets
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blocktrust_api.errors import StorageUnavailable
from blocktrust_api.models import HashMode, LedgerEntry, LedgerEntryType, LedgerSequence
from blocktrust_api.settings import get_settings
from blocktrust_api.utils.clock import utcnow
from blocktrust_api.utils.metrics import ledger_entries

logger = logging.getLogger(__name__)

SIMULATED_GAS_FEE = "0.00234"
CONTENT_CHAIN = "content"


def simulate_ledger_entry(baseline: int = None, spread: int = None) -> tuple[str, int]:
    """Generate a simulated transaction hash and block number."""
    settings = get_settings()
    baseline = settings.ledger_block_baseline if baseline is None else baseline
    spread = settings.ledger_block_spread if spread is None else spread
    transaction_hash = "0x" + secrets.token_hex(32)
    block_number = baseline + random.randrange(spread)
    return transaction_hash, block_number


class LedgerService:
    """Append-only audit trail of state-changing actions."""

    def __init__(self, db: Session, mode: Optional[str] = None):
        """Initialize ledger service."""
        self.db = db
        self.settings = get_settings()
        self.mode = mode or self.settings.ledger_hash_mode

    def _hash_entry(self, entry_data: dict) -> str:
        """Compute hash of canonical entry data."""
        entry_str = json.dumps(entry_data, sort_keys=True, separators=(",", ":"), default=str)
        return "0x" + hashlib.sha256(entry_str.encode()).hexdigest()

    def _canonical(self, entry: LedgerEntry) -> dict:
        return {
            "transaction_type": entry.transaction_type,
            "related_id": entry.related_id,
            "user_id": entry.user_id,
            "data": entry.data,
            "block_number": entry.block_number,
            "chain_sequence": entry.chain_sequence,
            "previous_hash": entry.previous_hash,
            "timestamp": entry.created_at.isoformat(),
        }

    def _chain_head(self) -> LedgerSequence:
        """Lock the content chain head, creating it on first use."""
        head = (
            self.db.query(LedgerSequence)
            .filter(LedgerSequence.chain == CONTENT_CHAIN)
            .with_for_update()
            .first()
        )
        if head is None:
            head = LedgerSequence(chain=CONTENT_CHAIN, last_sequence=0, last_hash=None)
            self.db.add(head)
            self.db.flush()
        return head

    def _link(self, entry: LedgerEntry) -> None:
        """Place a content entry after the current chain head."""
        head = self._chain_head()
        entry.hash_mode = HashMode.CONTENT.value
        entry.chain_sequence = head.last_sequence + 1
        entry.previous_hash = head.last_hash
        entry.block_number = self.settings.ledger_block_baseline + entry.chain_sequence - 1
        entry.transaction_hash = self._hash_entry(self._canonical(entry))
        head.last_sequence = entry.chain_sequence
        head.last_hash = entry.transaction_hash

    def append(
        self,
        entry_type: LedgerEntryType,
        related_id: Optional[str],
        actor_id: Optional[str],
        payload: Optional[dict] = None,
    ) -> LedgerEntry:
        """Append an entry; the caller owns the surrounding transaction."""
        entry_type = LedgerEntryType(entry_type)
        entry = LedgerEntry(
            transaction_type=entry_type.value,
            related_id=related_id,
            user_id=actor_id,
            data=payload or {},
            created_at=utcnow(),
        )

        try:
            if self.mode == HashMode.CONTENT.value:
                self._link(entry)
            else:
                entry.hash_mode = HashMode.SIMULATED.value
                entry.transaction_hash, entry.block_number = simulate_ledger_entry()

            self.db.add(entry)
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Ledger append failed for {entry_type.value}: {e}", exc_info=True)
            raise StorageUnavailable("Ledger is unavailable, please retry later") from e

        ledger_entries.labels(entry_type=entry_type.value).inc()
        logger.info(
            f"Ledger entry appended: {entry_type.value}",
            extra={
                "transaction_hash": entry.transaction_hash,
                "block_number": entry.block_number,
                "related_id": related_id,
            },
        )
        return entry

    def recent(self, limit: Optional[int] = None) -> list[LedgerEntry]:
        """Most recent entries first."""
        limit = limit or self.settings.ledger_recent_limit
        return (
            self.db.query(LedgerEntry)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
            .limit(limit)
            .all()
        )

    def for_entity(self, related_id: str) -> list[LedgerEntry]:
        """Every entry recorded against one entity, oldest first."""
        return (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.related_id == related_id)
            .order_by(LedgerEntry.created_at.asc(), LedgerEntry.id.asc())
            .all()
        )

    def status(self, limit: int = 10) -> dict:
        """Summary shown by the public blockchain status widget."""
        recent = self.recent(limit)
        latest = recent[0] if recent else None
        total = self.db.query(func.count(LedgerEntry.id)).scalar() or 0
        return {
            "latestTransaction": _entry_summary(latest) if latest else None,
            "stats": {
                "currentBlockHeight": latest.block_number if latest else self.settings.ledger_block_baseline,
                "avgGasFee": SIMULATED_GAS_FEE,
                "totalTransactions": total,
            },
            "recentTransactions": [_entry_summary(entry) for entry in recent],
        }

    def verify_chain(self) -> tuple[bool, Optional[str]]:
        """Re-check the content-hash chain in sequence order.

        Returns (is_valid, error). Simulated entries are random and skipped;
        a ledger with no content entries is only valid in ``content`` mode.
        """
        entries = (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.hash_mode == HashMode.CONTENT.value)
            .order_by(LedgerEntry.chain_sequence.asc())
            .all()
        )
        if not entries and self.mode != HashMode.CONTENT.value:
            return False, "Simulated ledger hashes are not verifiable"

        previous_hash = None
        for expected_sequence, entry in enumerate(entries, start=1):
            if entry.chain_sequence != expected_sequence:
                return False, f"Missing chain entry at sequence {expected_sequence}"
            if entry.previous_hash != previous_hash:
                return False, f"Broken link at block {entry.block_number}"
            if self._hash_entry(self._canonical(entry)) != entry.transaction_hash:
                return False, f"Hash mismatch at block {entry.block_number}"
            previous_hash = entry.transaction_hash
        return True, None


def _entry_summary(entry: LedgerEntry) -> dict:
    return {
        "hash": entry.transaction_hash,
        "type": entry.transaction_type,
        "blockNumber": entry.block_number,
        "timestamp": entry.created_at.isoformat(),
    }
