"""
Tests for the collection store

Tests seeding, snapshot persistence, loan origination, payment recording
and lookups against in-memory and SQLite storage.
"""

import pytest
from decimal import Decimal
from datetime import datetime, timezone, timedelta

from gocash.errors import InstallmentAlreadyPaid, InvalidLoanTerms, UnknownInstallment, UnknownLoan, UnknownUser
from gocash.models import InstallmentStatus, LoanStatus, Periodicity, Role, Route, User
from gocash.seed import SEED_LOAN_ID
from gocash.storage import InMemoryStorage, SQLiteStorage
from gocash.store import COLLECTIONS, MANUAL_ROUTE_ID, CollectionStore


NOW = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return CollectionStore(storage, clock=fixed_clock)


class TestSeeding:
    """Test startup from empty and partial storage"""

    def test_empty_storage_gets_seed(self, store):
        assert {u.id for u in store.users} == {"admin-1", "sup-1", "rec-1", "cli-1"}
        assert [r.id for r in store.routes] == ["r1"]
        assert [l.id for l in store.loans] == [SEED_LOAN_ID]
        assert len(store.installments) == 24
        assert store.payments == []

    def test_seed_is_persisted(self, storage, store):
        for key in COLLECTIONS:
            assert storage.read(key) is not None

    def test_seed_loan_terms(self, store):
        loan = store.get_loan(SEED_LOAN_ID)
        assert loan.total_amount == Decimal('600000')
        assert all(i.amount == 25000 for i in store.installments_for_loan(loan.id))

    def test_only_missing_keys_are_seeded(self, storage):
        storage.write("payments", [])
        storage.write("loans", [])
        store = CollectionStore(storage, clock=fixed_clock)
        assert store.loans == []
        assert len(store.users) == 4

    def test_seed_disabled(self, storage):
        store = CollectionStore(storage, seed_on_empty=False, clock=fixed_clock)
        assert store.users == []
        assert storage.read("users") == []

    def test_seed_users_have_hashed_passwords(self, store):
        owner = store.get_user("admin-1")
        assert owner.role == Role.OWNER
        assert owner.has_credentials
        assert owner.password_hash != "1234"


class TestSnapshotRoundTrip:
    """Test that a reloaded store sees the same collections"""

    def test_reload_from_sqlite(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "gocash.db")
        store = CollectionStore(storage, clock=fixed_clock)
        loan, schedule = store.originate_loan("cli-1", "rec-1", 100000, Decimal('0.20'), Periodicity.DAILY, 10)
        store.record_payment(schedule[0].id, collector_id="rec-1")
        before = store.snapshot()
        storage.close()

        reopened = CollectionStore(SQLiteStorage(tmp_path / "gocash.db"), clock=fixed_clock)
        assert reopened.snapshot() == before
        assert reopened.get_loan(loan.id) == loan
        assert reopened.get_installment(schedule[0].id).status == InstallmentStatus.PAID

    def test_reload_rereads_storage(self, storage, store):
        storage.write("payments", [])
        store.record_payment(store.installments[0].id)
        storage.write("payments", [])
        store.reload()
        assert store.payments == []


class TestOriginateLoan:
    """Test loan origination"""

    def test_loan_and_schedule_created(self, store):
        loan, schedule = store.originate_loan(
            "cli-1", "rec-1", 100000, Decimal('0.20'), Periodicity.DAILY, 10,
            start_date="2024-01-01T00:00:00Z"
        )

        assert loan.total_amount == Decimal('120000')
        assert loan.status == LoanStatus.ACTIVE
        assert loan.installments_count == 10
        assert len(schedule) == 10
        assert schedule[0].due_date == datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert store.installments_for_loan(loan.id) == schedule

    def test_start_defaults_to_clock(self, store):
        loan, schedule = store.originate_loan("cli-1", "rec-1", 1000, 0, Periodicity.WEEKLY, 2)
        assert loan.start_date == NOW
        assert schedule[0].due_date == NOW + timedelta(days=7)

    def test_route_defaults_to_collector_route(self, store):
        loan, _ = store.originate_loan("cli-1", "rec-1", 1000, 0, Periodicity.DAILY, 1)
        assert loan.route_id == "r1"

    def test_route_falls_back_to_manual(self, store):
        loan, _ = store.originate_loan("cli-1", "sup-1", 1000, 0, Periodicity.DAILY, 1)
        assert loan.route_id == MANUAL_ROUTE_ID

    def test_unknown_client(self, store):
        with pytest.raises(UnknownUser):
            store.originate_loan("ghost", "rec-1", 1000, 0, Periodicity.DAILY, 1)

    def test_invalid_terms_leave_store_untouched(self, store):
        loans_before = len(store.loans)
        with pytest.raises(InvalidLoanTerms):
            store.originate_loan("cli-1", "rec-1", 1000, 0, Periodicity.DAILY, 0)
        assert len(store.loans) == loans_before

    def test_persisted(self, storage, store):
        loan, _ = store.originate_loan("cli-1", "rec-1", 1000, 0, Periodicity.DAILY, 3)
        assert loan.id in {doc["id"] for doc in storage.read("loans")}
        assert len(storage.read("installments")) == 24 + 3


class TestRecordPayment:
    """Test payment recording"""

    def test_payment_appended_and_installment_replaced(self, store):
        _, schedule = store.originate_loan("cli-1", "rec-1", 100000, Decimal('0.20'), Periodicity.DAILY, 10)

        payment, updated = store.record_payment(schedule[0].id, collector_id="rec-1")

        assert payment.amount == 12000
        assert payment.timestamp == NOW
        assert updated.status == InstallmentStatus.PAID
        assert store.get_installment(schedule[0].id) == updated
        assert store.payments == [payment]

    def test_order_of_installments_preserved(self, store):
        ids_before = [i.id for i in store.installments]
        store.record_payment(ids_before[5])
        assert [i.id for i in store.installments] == ids_before

    def test_second_payment_rejected(self, store):
        installment_id = store.installments[0].id
        store.record_payment(installment_id)
        with pytest.raises(InstallmentAlreadyPaid):
            store.record_payment(installment_id)
        assert len(store.payments) == 1

    def test_unknown_installment(self, store):
        with pytest.raises(UnknownInstallment):
            store.record_payment("inst-missing-1")


class TestUsersAndRoutes:
    """Test user and route mutations"""

    def test_add_user(self, store):
        user = User(id="cli-2", name="Pedro", email="pedro@gmail.com", role=Role.CLIENT, parent_id="rec-1")
        store.add_user(user, acting_user_id="rec-1")
        assert store.get_user("cli-2") == user
        assert [u.id for u in store.children_of("rec-1", Role.CLIENT)] == ["cli-1", "cli-2"]

    def test_duplicate_user_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_user(User(id="cli-1", name="X", email="x@y.z", role=Role.CLIENT))

    def test_update_user(self, store):
        collector = store.get_user("rec-1")
        store.update_user(collector.evolve(profit_margin=15))
        assert store.get_user("rec-1").profit_margin == 15

    def test_update_unknown_user(self, store):
        with pytest.raises(UnknownUser):
            store.update_user(User(id="ghost", name="X", email="x@y.z", role=Role.CLIENT))

    def test_find_user(self, store):
        assert store.find_user("rec-1").name == "Juan Recaudador"
        assert store.find_user("ghost") is None
        assert store.find_user(None) is None

    def test_add_route(self, store):
        store.add_route(Route(id="r2", name="Ruta Norte", owner_id="admin-1"))
        assert [r.id for r in store.routes] == ["r1", "r2"]


class TestCollections:
    """Test whole-collection access"""

    def test_all_returns_copy(self, store):
        loans = store.all("loans")
        loans.clear()
        assert len(store.loans) == 1

    def test_unknown_collection(self, store):
        with pytest.raises(KeyError):
            store.all("tickets")

    def test_replace_all_type_checked(self, store):
        with pytest.raises(TypeError):
            store.replace_all("loans", store.users)

    def test_replace_all(self, storage, store):
        store.replace_all("payments", [])
        assert storage.read("payments") == []

    def test_delete_loan_cascades_to_installments(self, store):
        store.record_payment(store.installments[0].id)
        store.delete_loan(SEED_LOAN_ID)
        assert store.loans == []
        assert store.installments == []
        assert len(store.payments) == 1

    def test_delete_unknown_loan(self, store):
        with pytest.raises(UnknownLoan):
            store.delete_loan("ghost")


class FailingStorage(InMemoryStorage):
    """Storage that starts rejecting writes once ``failing`` is set"""

    def __init__(self):
        super().__init__()
        self.failing = False

    def write_many(self, documents):
        if self.failing:
            raise OSError("disk full")
        super().write_many(documents)


class TestFailedWrites:
    """A failed storage write leaves the in-memory collections untouched"""

    def setup_method(self):
        self.storage = FailingStorage()
        self.store = CollectionStore(self.storage, clock=fixed_clock)
        self.storage.failing = True

    def test_payment_not_applied(self):
        installment_id = self.store.installments[0].id
        with pytest.raises(OSError):
            self.store.record_payment(installment_id)
        assert not self.store.get_installment(installment_id).is_paid
        assert self.store.payments == []

    def test_loan_not_added(self):
        loans_before = self.store.loans
        installments_before = self.store.installments
        with pytest.raises(OSError):
            self.store.originate_loan("cli-1", "rec-1", 1000, 0, Periodicity.DAILY, 3)
        assert self.store.loans == loans_before
        assert self.store.installments == installments_before

    def test_users_and_routes_not_changed(self):
        users_before = self.store.users
        with pytest.raises(OSError):
            self.store.add_route(Route(id="r2", name="Ruta Norte", owner_id="admin-1"))
        with pytest.raises(OSError):
            self.store.update_user(users_before[0].evolve(name="Otro"))
        assert self.store.users == users_before
        assert len(self.store.routes) == 1
