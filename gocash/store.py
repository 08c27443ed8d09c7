"""
Collection Store Module

Repository owning the five collections (users, routes, loans, installments,
payments). Collections are loaded from snapshot storage at startup, with the
seed dataset standing in for any missing key, and every mutation rewrites the
full snapshot of the collections it touched.
"""

import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Type

from .currency import Number, to_decimal
from .dates import DateLike, ensure_utc, utc_now
from .errors import UnknownInstallment, UnknownLoan, UnknownUser
from .logging_config import get_logger, log_action
from .models import Installment, Loan, LoanStatus, Payment, Periodicity, Record, Role, Route, User
from .payments import confirm_payment
from .schedule import calculate_total_debt, generate_schedule
from .seed import build_seed
from .storage import StorageInterface

logger = get_logger("gocash.store")

COLLECTIONS: Dict[str, Type[Record]] = {
    "users": User,
    "routes": Route,
    "loans": Loan,
    "installments": Installment,
    "payments": Payment,
}

MANUAL_ROUTE_ID = "r-manual"


class CollectionStore:
    """
    In-memory collections mirrored to a snapshot storage backend.

    There is exactly one writer; the store makes no attempt to merge
    concurrent snapshots written by other processes.
    """

    def __init__(
        self,
        storage: StorageInterface,
        seed_on_empty: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.seed_on_empty = seed_on_empty
        self.clock = clock
        self._collections: Dict[str, list] = {}
        self.reload()

    # Snapshot handling

    def reload(self) -> None:
        """Load every collection from storage, seeding missing keys"""
        missing = []
        for key, record_type in COLLECTIONS.items():
            documents = self.storage.read(key)
            if documents is None:
                missing.append(key)
            else:
                self._collections[key] = [record_type.from_dict(doc) for doc in documents]

        if missing:
            seed = build_seed(self.clock()) if self.seed_on_empty else {}
            self._commit({key: list(seed.get(key, [])) for key in missing})
            logger.info(f"Initialised collections from seed: {', '.join(missing)}")

    def snapshot(self) -> Dict[str, List[dict]]:
        """Serialized form of all five collections"""
        return {key: [record.to_dict() for record in records]
                for key, records in self._collections.items()}

    def _commit(self, updates: Dict[str, list]) -> None:
        """Write the given collections to storage, then adopt them in memory"""
        self.storage.write_many({
            key: [record.to_dict() for record in records]
            for key, records in updates.items()
        })
        self._collections.update(updates)

    # Whole-collection access

    def all(self, key: str) -> list:
        if key not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {key}")
        return list(self._collections[key])

    def replace_all(self, key: str, records: list) -> None:
        """Replace a collection wholesale and persist it"""
        record_type = COLLECTIONS.get(key)
        if record_type is None:
            raise KeyError(f"Unknown collection: {key}")
        for record in records:
            if not isinstance(record, record_type):
                raise TypeError(f"{key} only holds {record_type.__name__} records")
        self._commit({key: list(records)})

    @property
    def users(self) -> List[User]:
        return self.all("users")

    @property
    def routes(self) -> List[Route]:
        return self.all("routes")

    @property
    def loans(self) -> List[Loan]:
        return self.all("loans")

    @property
    def installments(self) -> List[Installment]:
        return self.all("installments")

    @property
    def payments(self) -> List[Payment]:
        return self.all("payments")

    # Lookups

    def get_user(self, user_id: str) -> User:
        for user in self._collections["users"]:
            if user.id == user_id:
                return user
        raise UnknownUser(user_id)

    def find_user(self, user_id: Optional[str]) -> Optional[User]:
        try:
            return self.get_user(user_id) if user_id else None
        except UnknownUser:
            return None

    def get_loan(self, loan_id: str) -> Loan:
        for loan in self._collections["loans"]:
            if loan.id == loan_id:
                return loan
        raise UnknownLoan(loan_id)

    def get_installment(self, installment_id: str) -> Installment:
        for installment in self._collections["installments"]:
            if installment.id == installment_id:
                return installment
        raise UnknownInstallment(installment_id)

    def installments_for_loan(self, loan_id: str) -> List[Installment]:
        schedule = [i for i in self._collections["installments"] if i.loan_id == loan_id]
        return sorted(schedule, key=lambda i: i.number)

    def children_of(self, manager_id: str, role: Optional[Role] = None) -> List[User]:
        """Users created by a manager, optionally restricted to one role"""
        return [u for u in self._collections["users"]
                if u.parent_id == manager_id and (role is None or u.role == role)]

    # Mutations

    def add_user(self, user: User, acting_user_id: Optional[str] = None) -> User:
        if any(u.id == user.id for u in self._collections["users"]):
            raise ValueError(f"User {user.id} already exists")
        self._commit({"users": self._collections["users"] + [user]})
        log_action(logger, "info", "User created", user_id=acting_user_id,
                   action="user_created", resource=f"user:{user.id}",
                   extra={"role": user.role.value})
        return user

    def update_user(self, user: User, acting_user_id: Optional[str] = None) -> User:
        users = list(self._collections["users"])
        for index, existing in enumerate(users):
            if existing.id == user.id:
                users[index] = user
                self._commit({"users": users})
                log_action(logger, "info", "User updated", user_id=acting_user_id,
                           action="user_updated", resource=f"user:{user.id}")
                return user
        raise UnknownUser(user.id)

    def add_route(self, route: Route) -> Route:
        self._commit({"routes": self._collections["routes"] + [route]})
        return route

    def originate_loan(
        self,
        client_id: str,
        collector_id: str,
        principal: int,
        total_rate: Number,
        periodicity: Periodicity,
        installments_count: int,
        route_id: Optional[str] = None,
        start_date: Optional[DateLike] = None,
    ) -> Tuple[Loan, List[Installment]]:
        """
        Create a loan together with its full installment schedule.

        The loan and schedule are appended in one step; the schedule is
        never regenerated afterwards.

        Raises:
            UnknownUser: client or collector not found
            InvalidLoanTerms: terms rejected by the schedule generator
        """
        self.get_user(client_id)
        collector = self.get_user(collector_id)

        loan_id = str(uuid.uuid4())
        start = ensure_utc(start_date) if start_date is not None else self.clock()
        rate = to_decimal(total_rate)

        schedule = generate_schedule(loan_id, principal, rate, periodicity, installments_count, start)

        loan = Loan(
            id=loan_id,
            client_id=client_id,
            collector_id=collector_id,
            route_id=route_id or collector.route_id or MANUAL_ROUTE_ID,
            principal=principal,
            total_interest=rate,
            total_amount=calculate_total_debt(principal, rate),
            periodicity=periodicity,
            installments_count=installments_count,
            start_date=start,
            status=LoanStatus.ACTIVE,
        )

        self._commit({
            "loans": self._collections["loans"] + [loan],
            "installments": self._collections["installments"] + schedule,
        })

        log_action(logger, "info", "Loan originated", user_id=collector_id,
                   action="loan_originated", resource=f"loan:{loan.id}",
                   extra={"client_id": client_id, "principal": principal,
                          "rate": str(rate), "periodicity": periodicity.value,
                          "installments": installments_count})
        return loan, schedule

    def record_payment(self, installment_id: str, collector_id: Optional[str] = None) -> Tuple[Payment, Installment]:
        """
        Settle an installment in full and append the payment.

        Raises:
            UnknownInstallment: installment not found
            InstallmentAlreadyPaid: installment already settled
        """
        installment = self.get_installment(installment_id)
        payment, updated = confirm_payment(installment, collector_id=collector_id, now=self.clock())

        installments = list(self._collections["installments"])
        installments[installments.index(installment)] = updated
        self._commit({
            "installments": installments,
            "payments": self._collections["payments"] + [payment],
        })

        log_action(logger, "info", "Payment confirmed", user_id=collector_id,
                   action="payment_confirmed", resource=f"installment:{installment_id}",
                   extra={"payment_id": payment.id, "amount": payment.amount})
        return payment, updated

    def delete_loan(self, loan_id: str) -> Loan:
        """Remove a loan and its installments; payments are kept as history"""
        loan = self.get_loan(loan_id)
        self._commit({
            "loans": [l for l in self._collections["loans"] if l.id != loan_id],
            "installments": [i for i in self._collections["installments"] if i.loan_id != loan_id],
        })
        log_action(logger, "info", "Loan deleted", action="loan_deleted", resource=f"loan:{loan_id}")
        return loan
