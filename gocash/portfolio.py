"""
Portfolio Aggregation Module

Read-only metrics folded over the loans, installments and payments
collections. Nothing here is cached or persisted; every call recomputes
from its arguments.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from .currency import percentage
from .dates import iso_day, weekday_label
from .models import Installment, InstallmentStatus, Loan, Payment


@dataclass(frozen=True)
class CollectorStats:
    """Collection performance of one collector's loans"""
    total_to_collect: int
    collected: int
    overdue: int
    efficiency: float


@dataclass(frozen=True)
class DailyTotal:
    """Payments collected on one calendar day"""
    day: date
    label: str
    total: int


@dataclass(frozen=True)
class PortfolioOverview:
    """Headline figures shown on the dashboard and sent to the advisor"""
    total_portfolio: Decimal
    collected_today: int
    overdue: int
    efficiency: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalPortfolio": str(self.total_portfolio),
            "collectedToday": self.collected_today,
            "overdue": self.overdue,
            "efficiency": round(self.efficiency, 1),
        }


@dataclass(frozen=True)
class WalletSummary:
    """What a client sees about their own debt"""
    balance: Decimal
    next_payment: Optional[Installment]
    paid_count: int
    installments_count: int
    progress: int
    installments: List[Installment] = field(default_factory=list)


def total_portfolio_value(loans: Iterable[Loan]) -> Decimal:
    """Sum of the total amount owed across all loans"""
    return sum((loan.total_amount for loan in loans), Decimal('0'))


def collected_today(payments: Iterable[Payment], today: date) -> int:
    """Sum of payments whose timestamp falls on ``today`` (calendar day match)"""
    prefix = iso_day(today)
    return sum(p.amount for p in payments if p.timestamp.isoformat().startswith(prefix))


def overdue_balance(installments: Iterable[Installment], now: datetime) -> int:
    """Outstanding amount of unpaid installments already past due"""
    return sum(i.outstanding for i in installments if i.is_overdue(now))


def collection_efficiency(installments: Sequence[Installment]) -> float:
    """Share of installments paid, as a percentage (0 when there are none)"""
    installments = list(installments)
    paid = sum(1 for i in installments if i.status == InstallmentStatus.PAID)
    return percentage(paid, len(installments))


def loans_for_collector(collector_id: str, loans: Iterable[Loan], match_route: bool = False) -> List[Loan]:
    """Loans assigned to a collector, or to a route when ``match_route``"""
    if match_route:
        return [loan for loan in loans if loan.route_id == collector_id]
    return [loan for loan in loans if loan.collector_id == collector_id]


def installments_for_loans(loans: Iterable[Loan], installments: Iterable[Installment]) -> List[Installment]:
    loan_ids = {loan.id for loan in loans}
    return [i for i in installments if i.loan_id in loan_ids]


def loan_stats(loans: Iterable[Loan], installments: Iterable[Installment], now: datetime) -> CollectorStats:
    """
    Totals for the installments of the given loans.

    ``efficiency`` is collected over total-to-collect by amount, unlike
    collection_efficiency which counts installments.
    """
    scoped = installments_for_loans(loans, installments)

    total_to_collect = sum(i.amount for i in scoped)
    collected = sum(i.amount for i in scoped if i.is_paid)
    overdue = overdue_balance(scoped, now)

    return CollectorStats(
        total_to_collect=total_to_collect,
        collected=collected,
        overdue=overdue,
        efficiency=percentage(collected, total_to_collect),
    )


def collector_stats(
    collector_id: str,
    loans: Iterable[Loan],
    installments: Iterable[Installment],
    now: datetime,
    match_route: bool = False,
) -> CollectorStats:
    """Totals for the installments of one collector's loans"""
    return loan_stats(loans_for_collector(collector_id, loans, match_route), installments, now)


def recent_daily_totals(payments: Iterable[Payment], today: date, window_days: int = 7) -> List[DailyTotal]:
    """One total per day of the trailing window ending today, oldest first"""
    totals: Dict[str, int] = {}
    for payment in payments:
        key = iso_day(payment.timestamp)
        totals[key] = totals.get(key, 0) + payment.amount

    days = [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]
    return [DailyTotal(day=day, label=weekday_label(day), total=totals.get(iso_day(day), 0)) for day in days]


def portfolio_overview(
    loans: Iterable[Loan],
    installments: Sequence[Installment],
    payments: Iterable[Payment],
    now: datetime,
) -> PortfolioOverview:
    return PortfolioOverview(
        total_portfolio=total_portfolio_value(loans),
        collected_today=collected_today(payments, now.date()),
        overdue=overdue_balance(installments, now),
        efficiency=collection_efficiency(installments),
    )


def pending_installments(loans: Iterable[Loan], installments: Iterable[Installment]) -> List[Installment]:
    """Unpaid installments of the given loans, earliest due first"""
    scoped = installments_for_loans(loans, installments)
    pending = [i for i in scoped if not i.is_paid]
    pending.sort(key=lambda i: (i.due_date, i.loan_id, i.number))
    return pending


def client_wallet(client_id: str, loans: Iterable[Loan], installments: Iterable[Installment]) -> WalletSummary:
    """
    Balance, next payment and repayment progress of a client's loans.

    The balance deducts an even share of each loan's total per paid
    installment, so it reaches zero exactly when every installment is paid
    regardless of the rounding excess charged on top. The balance is
    reported in whole units.
    """
    client_loans = [loan for loan in loans if loan.client_id == client_id]
    schedule = sorted(installments_for_loans(client_loans, installments), key=lambda i: (i.due_date, i.number))

    balance = Decimal('0')
    paid_count = 0
    total_count = 0
    for loan in client_loans:
        paid = sum(1 for i in schedule if i.loan_id == loan.id and i.is_paid)
        balance += loan.total_amount - paid * (loan.total_amount / Decimal(loan.installments_count))
        paid_count += paid
        total_count += loan.installments_count

    next_payment = next((i for i in schedule if not i.is_paid), None)
    progress = round(paid_count / total_count * 100) if total_count else 0

    return WalletSummary(
        balance=balance.quantize(Decimal('1'), rounding=ROUND_HALF_UP),
        next_payment=next_payment,
        paid_count=paid_count,
        installments_count=total_count,
        progress=progress,
        installments=schedule,
    )
