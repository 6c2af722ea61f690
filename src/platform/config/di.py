"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers
import httpx

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.recreation.app.service.fraud_revalidator import FraudRevalidator
from src.service.recreation.app.service.pricing_resolver import PricingResolver
from src.service.recreation.driven_adapter.client.billing_service_client import (
    BillingServiceClient,
)
from src.service.recreation.driven_adapter.client.membership_service_client import (
    MembershipServiceClient,
)
from src.service.recreation.driven_adapter.lock.in_process_reservation_lock_manager import (
    InProcessReservationLockManager,
)
from src.service.recreation.driven_adapter.lock.kvrocks_reservation_lock_manager import (
    KvrocksReservationLockManager,
)
from src.service.recreation.driven_adapter.message_queue.reservation_event_publisher_impl import (
    ReservationEventPublisherImpl,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager with settings from config_service)
    database = providers.Singleton(Database)

    # Unit of Work - one per finalize attempt; inject `.provider` to get the factory
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session_maker
    )

    # Reservation lock: in-process for a single instance, Kvrocks across instances
    reservation_lock_manager = providers.Selector(
        config_service.provided.RESERVATION_LOCK_BACKEND,
        memory=providers.Singleton(InProcessReservationLockManager),
        kvrocks=providers.Singleton(
            KvrocksReservationLockManager,
            ttl_seconds=config_service.provided.RESERVATION_LOCK_TTL_SECONDS,
            retry_interval=config_service.provided.RESERVATION_LOCK_RETRY_INTERVAL,
            key_prefix=config_service.provided.KVROCKS_KEY_PREFIX,
            client_factory=providers.Object(kvrocks_client.get_client),
        ),
    )

    # HTTP clients (closed by main.py lifespan)
    membership_http_client = providers.Singleton(
        httpx.AsyncClient,
        base_url=config_service.provided.MEMBERSHIP_SERVICE_URL,
        timeout=config_service.provided.HTTP_CLIENT_TIMEOUT,
    )
    billing_http_client = providers.Singleton(
        httpx.AsyncClient,
        base_url=config_service.provided.BILLING_SERVICE_URL,
        timeout=config_service.provided.HTTP_CLIENT_TIMEOUT,
    )

    # Collaborators
    member_service = providers.Singleton(
        MembershipServiceClient, http_client=membership_http_client
    )
    bill_service = providers.Singleton(BillingServiceClient, http_client=billing_http_client)

    # Message Queue Publishers
    reservation_event_publisher = providers.Singleton(ReservationEventPublisherImpl)

    # Domain services (stateless)
    pricing_resolver = providers.Singleton(PricingResolver, member_service=member_service)
    fraud_revalidator = providers.Singleton(FraudRevalidator, member_service=member_service)


container = Container()


async def cleanup() -> None:
    await container.membership_http_client().aclose()
    await container.billing_http_client().aclose()
    container.reset_singletons()
