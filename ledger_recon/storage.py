"""
Transaction store interface and an in-memory implementation.

The reconciliation core only talks to a store through this interface; real
persistence lives with the caller.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Protocol

from .models import Transaction

logger = logging.getLogger(__name__)


class TransactionStore(Protocol):
    def list(self) -> List[Transaction]: ...

    def get(self, transaction_id: str) -> Optional[Transaction]: ...

    def create(self, transaction: Transaction) -> Transaction: ...

    def create_many(self, transactions: List[Transaction]) -> List[Transaction]: ...

    def update(self, transaction_id: str, **changes) -> Optional[Transaction]: ...

    def delete(self, transaction_id: str) -> bool: ...


class MemStorage:
    """Insertion-ordered, process-local transaction store."""

    def __init__(self, transactions=None):
        self._transactions: Dict[str, Transaction] = {}
        for transaction in transactions or []:
            self.create(transaction)

    def list(self):
        return list(self._transactions.values())

    def get(self, transaction_id):
        return self._transactions.get(transaction_id)

    def create(self, transaction):
        if transaction.id in self._transactions:
            raise ValueError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return transaction

    def create_many(self, transactions):
        return [self.create(transaction) for transaction in transactions]

    def update(self, transaction_id, **changes):
        existing = self._transactions.get(transaction_id)
        if existing is None:
            logger.warning(f"Update for unknown transaction: {transaction_id}")
            return None
        # replace() re-runs validation on the merged record
        updated = replace(existing, **changes)
        self._transactions[transaction_id] = updated
        return updated

    def delete(self, transaction_id):
        return self._transactions.pop(transaction_id, None) is not None

    def __len__(self):
        return len(self._transactions)
