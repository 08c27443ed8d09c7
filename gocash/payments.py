"""
Payment Confirmation Module

Settles installments in full and builds the reminders collectors send to
clients before a due date.
"""

import uuid
from datetime import datetime
from typing import Optional, Tuple

from .currency import Currency, format_currency
from .dates import utc_now
from .errors import InstallmentAlreadyPaid
from .models import Installment, InstallmentStatus, Payment, PaymentMethod


def confirm_payment(
    installment: Installment,
    collector_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[Payment, Installment]:
    """
    Record full payment of an installment.

    Args:
        installment: Installment being collected
        collector_id: Collector confirming the cash collection
        now: Payment timestamp (defaults to the current UTC time)

    Returns:
        The new MANUAL payment for the full installment amount and the
        installment replaced with status PAID

    Raises:
        InstallmentAlreadyPaid: the installment is already settled
    """
    if installment.is_paid:
        raise InstallmentAlreadyPaid(f"Installment {installment.id} is already paid")

    payment = Payment(
        id=str(uuid.uuid4()),
        installment_id=installment.id,
        amount=installment.amount,
        method=PaymentMethod.MANUAL,
        timestamp=now or utc_now(),
        collector_id=collector_id,
    )
    updated = installment.evolve(status=InstallmentStatus.PAID, paid_amount=installment.amount)
    return payment, updated


def build_payment_reminder(
    installment: Installment,
    client_name: str,
    currency: Currency = Currency.COP,
) -> str:
    """Reminder text for an upcoming or overdue installment"""
    due = installment.due_date.strftime("%d/%m/%Y")
    return (
        f"Hola {client_name}: recuerda pagar tu cuota #{installment.number} de "
        f"{format_currency(installment.outstanding, currency)} antes del {due}."
    )
