from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .enums import FileKind

"""Persistence-ready payloads handed to an import executor.

Field names are snake_case in Python; ``to_api_dict`` renders the camelCase
shape the transaction import endpoint expects.
"""

__all__ = [
    "TransactionPayload",
    "ImportRequest",
]


@dataclass(frozen=True)
class TransactionPayload:
    row_number: int  # original file row, used to map server outcomes back
    date: str  # YYYY-MM-DD (raw text when the row never normalised)
    type: str  # upper-cased
    amount: Decimal | None  # None only for invalid rows sent with "import anyway"
    description: str
    category_id: str | None = None
    tags: list[str] | None = None
    notes: str | None = None
    payee: str | None = None
    # Shared-expense block, passed through verbatim for the backend
    shared_group: str | None = None
    paid_by: str | None = None
    split_type: str | None = None
    participants: str | None = None

    def to_api_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "row": self.row_number,
            "date": self.date,
            "type": self.type,
            "amount": float(self.amount) if self.amount is not None else None,
            "description": self.description,
        }
        optional = {
            "categoryId": self.category_id,
            "tags": self.tags,
            "notes": self.notes,
            "payee": self.payee,
            "sharedGroup": self.shared_group,
            "paidBy": self.paid_by,
            "splitType": self.split_type,
            "participants": self.participants,
        }
        # 未設定の任意項目は送らない
        body.update({k: v for k, v in optional.items() if v is not None})
        return body


@dataclass(frozen=True)
class ImportRequest:
    """One batch submission: transactions plus batch metadata."""
    account_id: str
    file_name: str
    file_kind: FileKind
    transactions: list[TransactionPayload] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.transactions)

    def row_numbers(self) -> list[int]:
        return [t.row_number for t in self.transactions]

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "accountId": self.account_id,
            "fileName": self.file_name,
            "fileType": self.file_kind.value,
            "transactions": [t.to_api_dict() for t in self.transactions],
        }
