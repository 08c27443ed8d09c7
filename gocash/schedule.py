"""
Installment Schedule Module

Generates the installment schedule of a flat-rate loan. The whole debt
(principal plus flat interest) is split evenly across the installments and
each share is rounded up to a whole currency unit, so the schedule may
collect up to ``count - 1`` units more than the debt.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, NamedTuple

from .currency import Number, ceil_units, to_decimal
from .dates import DateLike, add_months, ensure_utc
from .errors import InvalidLoanTerms
from .models import Installment, InstallmentStatus, Periodicity


class LoanConfig(NamedTuple):
    rate: Decimal
    installments: int


# Default flat rate and installment count offered for each cadence
DEFAULT_LOAN_CONFIGS: Dict[Periodicity, LoanConfig] = {
    Periodicity.DAILY: LoanConfig(Decimal('0.12'), 20),
    Periodicity.WEEKLY: LoanConfig(Decimal('0.16'), 10),
    Periodicity.BIWEEKLY: LoanConfig(Decimal('0.20'), 6),
    Periodicity.MONTHLY: LoanConfig(Decimal('0.25'), 4),
}

_DAYS_PER_PERIOD = {
    Periodicity.DAILY: 1,
    Periodicity.WEEKLY: 7,
    Periodicity.BIWEEKLY: 14,
}


def calculate_total_debt(principal: Number, total_rate: Number) -> Decimal:
    """Principal plus flat interest over the whole term"""
    principal = to_decimal(principal)
    return principal + principal * to_decimal(total_rate)


def installment_amount(principal: Number, total_rate: Number, count: int) -> int:
    """Uniform per-installment charge, rounded up"""
    return ceil_units(calculate_total_debt(principal, total_rate) / Decimal(count))


def due_date_for(start_date: datetime, periodicity: Periodicity, number: int) -> datetime:
    """Due date of installment ``number`` counted from the loan start"""
    if periodicity == Periodicity.MONTHLY:
        return add_months(start_date, number)
    try:
        days = _DAYS_PER_PERIOD[periodicity]
    except KeyError:
        raise InvalidLoanTerms(f"Unsupported periodicity: {periodicity}")
    return start_date + timedelta(days=days * number)


def installment_id(loan_id: str, number: int) -> str:
    return f"inst-{loan_id}-{number}"


def validate_terms(principal: Number, total_rate: Number, periodicity: Periodicity, count: int) -> None:
    """
    Reject terms that cannot produce a meaningful schedule.

    Raises:
        InvalidLoanTerms: principal not positive, negative rate, count below
            one or a periodicity outside the supported cadences.
    """
    if not isinstance(periodicity, Periodicity):
        raise InvalidLoanTerms(f"Unsupported periodicity: {periodicity}")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidLoanTerms(f"Installment count must be a positive integer, got {count!r}")
    try:
        principal = to_decimal(principal)
        total_rate = to_decimal(total_rate)
    except (ArithmeticError, ValueError):
        raise InvalidLoanTerms("Principal and rate must be numeric")
    if not principal.is_finite() or principal <= 0:
        raise InvalidLoanTerms(f"Principal must be positive, got {principal}")
    if not total_rate.is_finite() or total_rate < 0:
        raise InvalidLoanTerms(f"Rate must be zero or positive, got {total_rate}")


def generate_schedule(
    loan_id: str,
    principal: Number,
    total_rate: Number,
    periodicity: Periodicity,
    count: int,
    start_date: DateLike,
) -> List[Installment]:
    """
    Generate the full installment schedule for a loan.

    Args:
        loan_id: Loan the installments belong to
        principal: Amount lent, in whole currency units
        total_rate: Flat rate for the whole term (0.20 = 20%)
        periodicity: Cadence of the installments
        count: Number of installments
        start_date: Loan start; the first installment falls one period later

    Returns:
        ``count`` installments numbered 1..count with strictly increasing
        due dates, all PENDING with nothing paid
    """
    validate_terms(principal, total_rate, periodicity, count)

    start = ensure_utc(start_date)
    amount = installment_amount(principal, total_rate, count)

    return [
        Installment(
            id=installment_id(loan_id, number),
            loan_id=loan_id,
            number=number,
            due_date=due_date_for(start, periodicity, number),
            amount=amount,
            paid_amount=0,
            status=InstallmentStatus.PENDING,
        )
        for number in range(1, count + 1)
    ]
