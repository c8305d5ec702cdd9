"""
Payment Schedules

Period-by-period records shared by the installment-loan and revolving-credit
engines, plus the yearly roll-up used for tabular display.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterator, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class PaymentRecord:
    """One period of a schedule. ``payment == principal + interest``."""

    index: int  # 1-based period number
    payment: float
    principal: float
    interest: float
    balance: float  # ending balance, never negative
    due_date: Optional[date] = None


@dataclass(frozen=True)
class YearSummary:
    """Totals for one block of periods (normally twelve months)."""

    year: int
    total_payment: float
    total_principal: float
    total_interest: float
    end_balance: float


@dataclass(frozen=True)
class Schedule:
    """Ordered, immutable sequence of payment records."""

    records: Tuple[PaymentRecord, ...] = ()

    @classmethod
    def from_records(cls, records: Sequence[PaymentRecord]) -> "Schedule":
        return cls(records=tuple(records))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PaymentRecord]:
        return iter(self.records)

    def __getitem__(self, item):
        return self.records[item]

    @property
    def total_payment(self) -> float:
        return sum(r.payment for r in self.records)

    @property
    def total_principal(self) -> float:
        return sum(r.principal for r in self.records)

    @property
    def total_interest(self) -> float:
        return sum(r.interest for r in self.records)

    @property
    def final_balance(self) -> float:
        """Ending balance of the last record (0.0 for an empty schedule)."""
        return self.records[-1].balance if self.records else 0.0

    def yearly(self, periods_per_year: int = 12) -> List[YearSummary]:
        """
        Aggregate records into consecutive blocks of ``periods_per_year``.

        Args:
            periods_per_year: Block size (12 for a monthly schedule)

        Returns:
            One summary per block; the last block may be partial
        """
        if periods_per_year <= 0:
            raise ValueError("periods_per_year must be positive")

        summaries = []
        for start in range(0, len(self.records), periods_per_year):
            block = self.records[start : start + periods_per_year]
            summaries.append(
                YearSummary(
                    year=start // periods_per_year + 1,
                    total_payment=sum(r.payment for r in block),
                    total_principal=sum(r.principal for r in block),
                    total_interest=sum(r.interest for r in block),
                    end_balance=block[-1].balance,
                )
            )
        return summaries
