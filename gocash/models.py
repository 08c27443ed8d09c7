"""
Domain Models Module

Users, routes, loans, installments and payments. Records are replaced in
their collection on update rather than mutated in place, and every record
round-trips through a JSON-safe dict for the snapshot store.
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional

from .dates import ensure_utc


class Role(Enum):
    """Organizational roles, top of the hierarchy first"""
    CEO = "CEO"
    OWNER = "DUEÑO"
    SUPERVISOR = "SUPERVISOR"
    COLLECTOR = "RECAUDADOR"
    CLIENT = "CLIENTE"
    SUPPORT = "SOPORTE"


class Periodicity(Enum):
    """Installment cadence"""
    DAILY = "DIARIO"
    WEEKLY = "SEMANAL"
    BIWEEKLY = "CATORCENAL"
    MONTHLY = "MENSUAL"


class LoanStatus(Enum):
    """Stored loan status; nothing transitions it automatically"""
    ACTIVE = "ACTIVO"
    OVERDUE = "VENCIDO"
    PAID = "PAGADO"
    PENDING = "PENDIENTE"


class InstallmentStatus(Enum):
    """Installment status; only PENDING and PAID are ever assigned"""
    PENDING = "PENDIENTE"
    PAID = "PAGADO"
    PARTIAL = "PARCIAL"
    OVERDUE = "VENCIDO"


class PaymentMethod(Enum):
    MANUAL = "MANUAL"
    GATEWAY = "PASARELA"


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class Record:
    """Mixin giving dataclasses a JSON-safe dict form"""

    # field name -> callable turning the stored value back into its type
    converters: ClassVar[Dict[str, Callable[[Any], Any]]] = {}

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                continue
            converter = cls.converters.get(key)
            if converter is not None and value is not None:
                value = converter(value)
            values[key] = value
        return cls(**values)

    def evolve(self, **changes):
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)


@dataclass
class User(Record):
    """Person in the owner -> supervisor -> collector -> client hierarchy"""
    id: str
    name: str
    email: str
    role: Role
    password_hash: Optional[str] = None
    password_salt: Optional[str] = None
    avatar: Optional[str] = None
    parent_id: Optional[str] = None       # Manager who created this user
    assigned_capital: Optional[int] = None  # Collectors only
    profit_margin: Optional[int] = None     # Percent, collectors only
    route_id: Optional[str] = None

    converters: ClassVar[Dict[str, Callable[[Any], Any]]] = {"role": Role}

    @property
    def has_credentials(self) -> bool:
        return bool(self.password_hash and self.password_salt)

    def public_dict(self) -> Dict[str, Any]:
        """Dict form without credential material"""
        data = self.to_dict()
        data.pop("password_hash")
        data.pop("password_salt")
        return data


@dataclass
class Route(Record):
    """Collection route (zone) owned by an owner"""
    id: str
    name: str
    owner_id: str
    supervisor_id: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Loan(Record):
    """
    Flat-rate microloan.

    ``total_interest`` is the rate for the whole term (0.20 = 20%), and
    ``total_amount`` is fixed at origination as principal + principal * rate.
    """
    id: str
    client_id: str
    collector_id: str
    route_id: str
    principal: int
    total_interest: Decimal
    total_amount: Decimal
    periodicity: Periodicity
    installments_count: int
    start_date: datetime
    status: LoanStatus = LoanStatus.ACTIVE

    converters: ClassVar[Dict[str, Callable[[Any], Any]]] = {
        "total_interest": Decimal,
        "total_amount": Decimal,
        "periodicity": Periodicity,
        "start_date": ensure_utc,
        "status": LoanStatus,
    }


@dataclass
class Installment(Record):
    """One scheduled charge of a loan"""
    id: str
    loan_id: str
    number: int
    due_date: datetime
    amount: int
    paid_amount: int = 0
    status: InstallmentStatus = InstallmentStatus.PENDING

    converters: ClassVar[Dict[str, Callable[[Any], Any]]] = {
        "due_date": ensure_utc,
        "status": InstallmentStatus,
    }

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID

    @property
    def outstanding(self) -> int:
        return self.amount - self.paid_amount

    def is_overdue(self, now: datetime) -> bool:
        """Derived classification: unpaid and past its due date"""
        return not self.is_paid and self.due_date < ensure_utc(now)


@dataclass
class Payment(Record):
    """Collected money applied to one installment"""
    id: str
    installment_id: str
    amount: int
    method: PaymentMethod
    timestamp: datetime
    evidence_url: Optional[str] = None
    collector_id: Optional[str] = None

    converters: ClassVar[Dict[str, Callable[[Any], Any]]] = {
        "method": PaymentMethod,
        "timestamp": ensure_utc,
    }
