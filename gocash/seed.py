"""
Built-in seed dataset

Used for any collection missing from storage on first start: one user per
level of the hierarchy, a route and an active daily loan for the client.

Demo credentials (email / password / role):
    d123 / 1234 / DUEÑO
    sup@paysd.com / sup123 / SUPERVISOR
    juan@paysd.com / rec123 / RECAUDADOR
    maria@gmail.com / cli123 / CLIENTE
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from .dates import utc_now
from .models import Loan, LoanStatus, Periodicity, Role, Route, User
from .rbac import make_credentials
from .schedule import calculate_total_debt, generate_schedule

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"

SEED_LOAN_ID = "l-init"


def avatar_for(seed: str) -> str:
    return AVATAR_URL.format(seed=seed)


def _user(id: str, name: str, email: str, password: str, role: Role, avatar_seed: str, **extra) -> User:
    password_hash, password_salt = make_credentials(password)
    return User(
        id=id,
        name=name,
        email=email,
        role=role,
        password_hash=password_hash,
        password_salt=password_salt,
        avatar=avatar_for(avatar_seed),
        **extra
    )


def seed_users() -> List[User]:
    return [
        _user("admin-1", "Admin Principal", "d123", "1234", Role.OWNER, "Admin"),
        _user("sup-1", "Roberto Supervisor", "sup@paysd.com", "sup123", Role.SUPERVISOR, "Sup",
              parent_id="admin-1"),
        _user("rec-1", "Juan Recaudador", "juan@paysd.com", "rec123", Role.COLLECTOR, "Juan",
              parent_id="sup-1", assigned_capital=5000000, profit_margin=10, route_id="r1"),
        _user("cli-1", "Maria Cliente", "maria@gmail.com", "cli123", Role.CLIENT, "Maria",
              parent_id="rec-1"),
    ]


def seed_routes() -> List[Route]:
    return [Route(id="r1", name="Ruta Centro", owner_id="admin-1", supervisor_id="sup-1")]


def seed_loans(now: datetime) -> List[Loan]:
    principal, rate = 500000, Decimal('0.20')
    return [
        Loan(
            id=SEED_LOAN_ID,
            client_id="cli-1",
            collector_id="rec-1",
            route_id="r1",
            principal=principal,
            total_interest=rate,
            total_amount=calculate_total_debt(principal, rate),
            periodicity=Periodicity.DAILY,
            installments_count=24,
            start_date=now,
            status=LoanStatus.ACTIVE,
        )
    ]


def build_seed(now: Optional[datetime] = None) -> Dict[str, list]:
    """Seed collections keyed like the snapshot store"""
    now = now or utc_now()
    loans = seed_loans(now)
    installments = []
    for loan in loans:
        installments.extend(generate_schedule(
            loan.id, loan.principal, loan.total_interest,
            loan.periodicity, loan.installments_count, loan.start_date
        ))

    return {
        "users": seed_users(),
        "routes": seed_routes(),
        "loans": loans,
        "installments": installments,
        "payments": [],
    }
