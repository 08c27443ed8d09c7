"""
Authentication and authorization dependencies
"""

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..advisor import Advice, AdvisorClient
from ..config import GoCashConfig, get_config
from ..currency import Currency
from ..errors import AuthenticationError, PermissionDenied, UnknownUser
from ..logging_config import get_logger
from ..models import Loan, Role, User
from ..portfolio import PortfolioOverview, portfolio_overview
from ..rbac import View, decode_token, require_view as check_view
from ..storage import StorageInterface, storage_from_url
from ..store import CollectionStore

logger = get_logger("gocash.api")

# JWT Security
security = HTTPBearer(auto_error=False)


class GoCashSystem:
    """Collections service with all components initialized"""

    def __init__(
        self,
        config: Optional[GoCashConfig] = None,
        storage: Optional[StorageInterface] = None,
        advisor: Optional[AdvisorClient] = None,
        store: Optional[CollectionStore] = None,
    ):
        self.config = config or get_config()

        # Initialize storage
        self.storage = storage or storage_from_url(self.config.storage_url)
        self.store = store or CollectionStore(self.storage, seed_on_empty=self.config.seed_on_empty)

        self.currency = Currency.from_code(self.config.currency)
        self.advisor = advisor or self._create_advisor()
        self.latest_advice: Optional[Advice] = None

    def _create_advisor(self) -> AdvisorClient:
        """Create advisor client based on configuration"""
        return AdvisorClient(
            api_key=self.config.advisor_api_key or None,
            base_url=self.config.advisor_base_url,
            model=self.config.advisor_model,
            timeout=self.config.advisor_timeout,
            temperature=self.config.advisor_temperature,
            max_output_tokens=self.config.advisor_max_output_tokens,
        )

    def now(self):
        return self.store.clock()

    def overview(self) -> PortfolioOverview:
        """Headline metrics over the whole portfolio"""
        return portfolio_overview(
            self.store.loans, self.store.installments, self.store.payments, self.now()
        )

    def refresh_advice(self) -> Advice:
        """Ask the advisor about the current overview and cache the answer"""
        self.latest_advice = self.advisor.get_advice(self.overview().to_dict())
        return self.latest_advice

    def close(self):
        self.advisor.close()
        self.storage.close()


# Global system instance, created on first use
_system: Optional[GoCashSystem] = None


# Dependency to get the system
def get_system() -> GoCashSystem:
    global _system
    if _system is None:
        _system = GoCashSystem()
    return _system


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: GoCashSystem = Depends(get_system),
) -> User:
    """Dependency that validates the bearer token and returns the current user"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user_id = decode_token(credentials.credentials, system.config.jwt_secret,
                               system.config.jwt_algorithm)
        return system.store.get_user(user_id)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except UnknownUser:
        raise HTTPException(status_code=401, detail="Invalid token")


def require_view(view: View):
    """Dependency factory for view access checking"""
    def check(user: User = Depends(get_current_user),
              system: GoCashSystem = Depends(get_system)) -> User:
        if not system.config.auth_enabled:
            return user  # Skip role checks when auth is disabled

        try:
            check_view(user, view)
        except PermissionDenied as e:
            raise HTTPException(status_code=403, detail=str(e))
        return user
    return check


def check_loan_access(user: User, loan: Loan):
    """Collectors only act on their own loans"""
    if user.role == Role.COLLECTOR and loan.collector_id != user.id:
        raise HTTPException(status_code=403, detail=f"Loan {loan.id} belongs to another collector")


def check_client_access(user: User, client: User):
    """Collectors only lend to clients they registered"""
    if user.role == Role.COLLECTOR and client.parent_id != user.id:
        raise HTTPException(status_code=403, detail=f"Client {client.id} belongs to another collector")
