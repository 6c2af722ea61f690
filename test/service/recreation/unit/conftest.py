"""
Conftest for recreation unit tests - no external dependencies.

In-memory fakes stand in for PostgreSQL (unit of work + repositories), the
membership and billing services and Kafka. The reservation store applies
staged updates only on commit, like a real transaction.
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

import anyio
import attrs
import pytest
import uuid_utils
from uuid_utils import UUID

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.service.recreation.app.command.finalize_reservation_use_case import (
    FinalizeReservationUseCase,
)
from src.service.recreation.app.dto.bill_dto import BillCreationRequest, BillCreationResult
from src.service.recreation.app.dto.member_dto import (
    EligibilityResult,
    MemberDetail,
    MemberSummary,
)
from src.service.recreation.app.interface.i_bill_service import IBillService
from src.service.recreation.app.interface.i_member_service import IMemberService
from src.service.recreation.app.interface.i_reservation_event_publisher import (
    IReservationEventPublisher,
)
from src.service.recreation.app.interface.i_tour_query_repo import ITourQueryRepo
from src.service.recreation.app.interface.i_tour_reservation_repo import ITourReservationRepo
from src.service.recreation.app.service.fraud_revalidator import FraudRevalidator
from src.service.recreation.app.service.pricing_resolver import PricingResolver
from src.service.recreation.domain.domain_event.reservation_held_event import ReservationHeldEvent
from src.service.recreation.domain.entity.tour_entity import Tour, TourCapacity, TourPricing
from src.service.recreation.domain.entity.tour_reservation_entity import (
    Participant,
    TourReservation,
)
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.reservation_status import ReservationStatus
from src.service.recreation.domain.enum.tour_status import TourStatus
from src.service.recreation.driven_adapter.lock.in_process_reservation_lock_manager import (
    InProcessReservationLockManager,
)


MAIN_EXTERNAL_USER_ID = 'ext-user-1'
MAIN_NATIONAL_CODE = '0012345678'
MEMBER_PRICE = 500_000
GUEST_PRICE = 700_000


# =============================================================================
# Fakes
# =============================================================================


class InMemoryReservationStore:
    def __init__(self) -> None:
        self.reservations: dict[UUID, TourReservation] = {}
        self.tours: dict[UUID, Tour] = {}
        self.capacity_lock_calls: list[UUID] = []
        self.commits = 0
        self.rollbacks = 0

    def add(self, *items: TourReservation | Tour) -> None:
        for item in items:
            if isinstance(item, Tour):
                self.tours[item.id] = item
            else:
                self.reservations[item.id] = item


class FakeTourReservationRepo(ITourReservationRepo):
    def __init__(self, store: InMemoryReservationStore, staged: dict[UUID, TourReservation]):
        self.store = store
        self.staged = staged

    def _current(self) -> List[TourReservation]:
        return [self.staged.get(r.id, r) for r in self.store.reservations.values()]

    async def get_by_id(self, *, reservation_id: UUID) -> Optional[TourReservation]:
        if reservation_id in self.staged:
            return self.staged[reservation_id]
        return self.store.reservations.get(reservation_id)

    async def get_by_tour_and_national_number(
        self, *, tour_id: UUID, national_number: str
    ) -> List[TourReservation]:
        return [
            r
            for r in self._current()
            if r.tour_id == tour_id
            and any(p.national_number == national_number for p in r.participants)
        ]

    async def get_capacity_utilization(self, *, capacity_id: UUID, as_of: datetime) -> int:
        return sum(
            len(r.participants)
            for r in self._current()
            if r.capacity_id == capacity_id and r.is_live(as_of)
        )

    async def get_tour_utilization(self, *, tour_id: UUID, as_of: datetime) -> int:
        return sum(
            len(r.participants)
            for r in self._current()
            if r.tour_id == tour_id and r.is_live(as_of)
        )

    async def lock_tour_capacity(self, *, tour_id: UUID) -> None:
        self.store.capacity_lock_calls.append(tour_id)

    async def update(self, *, reservation: TourReservation) -> None:
        if reservation.id not in self.store.reservations:
            raise ValueError(f'Reservation with id {reservation.id} not found')
        self.staged[reservation.id] = reservation


class FakeTourQueryRepo(ITourQueryRepo):
    def __init__(self, store: InMemoryReservationStore):
        self.store = store

    async def get_by_id(self, *, tour_id: UUID) -> Optional[Tour]:
        return self.store.tours.get(tour_id)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self,
        store: InMemoryReservationStore,
        *,
        fail_on_commit: bool = False,
        commit_delay: float = 0,
    ):
        self.store = store
        self.fail_on_commit = fail_on_commit
        self.commit_delay = commit_delay
        self.staged: dict[UUID, TourReservation] = {}
        self.reservation_repo = FakeTourReservationRepo(store, self.staged)
        self.tour_repo = FakeTourQueryRepo(store)

    async def _commit(self) -> None:
        if self.commit_delay:
            await anyio.sleep(self.commit_delay)
        if self.fail_on_commit:
            raise RuntimeError('database connection lost')
        self.store.reservations.update(self.staged)
        self.staged.clear()
        self.store.commits += 1

    async def rollback(self) -> None:
        self.staged.clear()
        self.store.rollbacks += 1


@attrs.define
class _MemberRecord:
    detail: MemberDetail
    active: bool = True
    external_user_id: Optional[str] = None
    eligibility_errors: List[str] = attrs.field(factory=list)


class FakeMemberService(IMemberService):
    def __init__(self) -> None:
        self.records: dict[str, _MemberRecord] = {}
        self.detail_lookups: list[str] = []

    def register(
        self,
        *,
        national_code: str,
        full_name: str = 'Sara Ahmadi',
        active: bool = True,
        external_user_id: Optional[str] = None,
        capabilities: Sequence[str] = (),
        features: Sequence[str] = (),
    ) -> MemberDetail:
        detail = MemberDetail(
            id=uuid_utils.uuid7(),
            national_code=national_code,
            full_name=full_name,
            capabilities=list(capabilities),
            features=list(features),
        )
        self.records[national_code] = _MemberRecord(
            detail=detail, active=active, external_user_id=external_user_id
        )
        return detail

    async def get_member_by_external_id(self, *, external_user_id: str) -> Optional[MemberSummary]:
        for record in self.records.values():
            if record.external_user_id == external_user_id:
                first_name, _, last_name = record.detail.full_name.partition(' ')
                return MemberSummary(
                    id=record.detail.id,
                    external_user_id=external_user_id,
                    national_code=record.detail.national_code,
                    first_name=first_name,
                    last_name=last_name,
                )
        return None

    async def get_member_detail_by_national_code(
        self, *, national_code: str
    ) -> Optional[MemberDetail]:
        self.detail_lookups.append(national_code)
        record = self.records.get(national_code)
        return record.detail if record else None

    async def has_active_membership(self, *, national_code: str) -> bool:
        record = self.records.get(national_code)
        return bool(record and record.active)

    async def validate_member_eligibility(
        self,
        *,
        national_code: str,
        required_capabilities: Sequence[str],
        required_features: Sequence[str],
        allowed_agencies: Sequence[str],
    ) -> EligibilityResult:
        record = self.records[national_code]
        errors = list(record.eligibility_errors)
        errors += [
            f'Missing capability {c}'
            for c in required_capabilities
            if c not in record.detail.capabilities
        ]
        return EligibilityResult(is_eligible=not errors, errors=errors)


class FakeBillService(IBillService):
    def __init__(self) -> None:
        self.requests: list[BillCreationRequest] = []
        self.cancelled: list[tuple[UUID, str]] = []
        self.refusal: Optional[str] = None

    async def create_and_issue_bill(self, *, request: BillCreationRequest) -> BillCreationResult:
        self.requests.append(request)
        if self.refusal is not None:
            return BillCreationResult.failed(self.refusal)
        return BillCreationResult.issued(
            bill_id=uuid_utils.uuid7(), bill_number=f'B-{len(self.requests):05d}'
        )

    async def cancel_bill(self, *, bill_id: UUID, reason: str) -> None:
        self.cancelled.append((bill_id, reason))


class FakeReservationEventPublisher(IReservationEventPublisher):
    def __init__(self) -> None:
        self.events: list[ReservationHeldEvent] = []
        self.error: Optional[Exception] = None

    async def publish_reservation_held(self, *, event: ReservationHeldEvent) -> None:
        if self.error is not None:
            raise self.error
        self.events.append(event)


# =============================================================================
# Builders
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def tour_id() -> UUID:
    return uuid_utils.uuid7()


@pytest.fixture
def capacity(tour_id: UUID, now: datetime) -> TourCapacity:
    return TourCapacity(
        id=uuid_utils.uuid7(),
        tour_id=tour_id,
        max_participants=10,
        registration_start=now - timedelta(days=1),
        registration_end=now + timedelta(days=5),
        description='Morning group',
    )


@pytest.fixture
def member_pricing(tour_id: UUID) -> TourPricing:
    return TourPricing(
        id=uuid_utils.uuid7(),
        tour_id=tour_id,
        participant_type=ParticipantType.MEMBER,
        price=MEMBER_PRICE,
        is_default=True,
        description='Member price',
    )


@pytest.fixture
def guest_pricing(tour_id: UUID) -> TourPricing:
    return TourPricing(
        id=uuid_utils.uuid7(),
        tour_id=tour_id,
        participant_type=ParticipantType.GUEST,
        price=GUEST_PRICE,
        is_default=True,
        description='Guest price',
    )


@pytest.fixture
def tour(
    tour_id: UUID,
    now: datetime,
    capacity: TourCapacity,
    member_pricing: TourPricing,
    guest_pricing: TourPricing,
) -> Tour:
    return Tour(
        id=tour_id,
        title='Alborz Hiking Weekend',
        tour_start=now + timedelta(days=10),
        tour_end=now + timedelta(days=12),
        status=TourStatus.PUBLISHED,
        capacities=[capacity],
        pricing=[member_pricing, guest_pricing],
        max_guests_per_reservation=3,
    )


@pytest.fixture
def make_participant() -> Callable[..., Participant]:
    counter = iter(range(1, 1000))

    def _make(
        *,
        participant_type: ParticipantType = ParticipantType.MEMBER,
        national_number: Optional[str] = None,
        first_name: str = 'Ali',
        last_name: Optional[str] = None,
        is_main_participant: bool = False,
        birth_date: Optional[date] = None,
    ) -> Participant:
        n = next(counter)
        return Participant(
            id=uuid_utils.uuid7(),
            first_name=first_name,
            last_name=last_name or f'Karimi{n}',
            national_number=national_number or f'{9000000000 + n}',
            phone_number=f'0912000{n:04d}',
            participant_type=participant_type,
            is_main_participant=is_main_participant,
            birth_date=birth_date,
        )

    return _make


@pytest.fixture
def make_reservation(
    tour: Tour, capacity: TourCapacity, now: datetime
) -> Callable[..., TourReservation]:
    counter = iter(range(1, 1000))

    def _make(
        *,
        participants: List[Participant],
        status: ReservationStatus = ReservationStatus.DRAFT,
        external_user_id: str = MAIN_EXTERNAL_USER_ID,
        capacity_id: Optional[UUID] = capacity.id,
        expiry_date: Optional[datetime] = None,
    ) -> TourReservation:
        return TourReservation(
            id=uuid_utils.uuid7(),
            tour_id=tour.id,
            tracking_code=f'TR-{next(counter):04d}',
            external_user_id=external_user_id,
            reservation_date=now - timedelta(minutes=5),
            status=status,
            capacity_id=capacity_id,
            expiry_date=expiry_date,
            participants=participants,
        )

    return _make


# =============================================================================
# Collaborators and use case
# =============================================================================


@pytest.fixture
def store(tour: Tour) -> InMemoryReservationStore:
    store = InMemoryReservationStore()
    store.add(tour)
    return store


@pytest.fixture
def member_service() -> FakeMemberService:
    service = FakeMemberService()
    service.register(
        national_code=MAIN_NATIONAL_CODE,
        full_name='Sara Ahmadi',
        external_user_id=MAIN_EXTERNAL_USER_ID,
    )
    return service


@pytest.fixture
def bill_service() -> FakeBillService:
    return FakeBillService()


@pytest.fixture
def event_publisher() -> FakeReservationEventPublisher:
    return FakeReservationEventPublisher()


@pytest.fixture
def lock_manager() -> InProcessReservationLockManager:
    return InProcessReservationLockManager()


@pytest.fixture
def uow_factory(store: InMemoryReservationStore) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def use_case(
    uow_factory: Callable[[], InMemoryUnitOfWork],
    lock_manager: InProcessReservationLockManager,
    member_service: FakeMemberService,
    bill_service: FakeBillService,
    event_publisher: FakeReservationEventPublisher,
) -> FinalizeReservationUseCase:
    return FinalizeReservationUseCase(
        uow_factory=uow_factory,
        lock_manager=lock_manager,
        member_service=member_service,
        bill_service=bill_service,
        event_publisher=event_publisher,
        pricing_resolver=PricingResolver(member_service=member_service),
        fraud_revalidator=FraudRevalidator(member_service=member_service),
        hold_minutes=30,
        minimum_hours_before_tour=24,
        timeout_seconds=5.0,
        currency='IRR',
        bill_type='TourReservation',
    )


@pytest.fixture
def main_member_participant(make_participant: Callable[..., Participant]) -> Participant:
    return make_participant(
        national_number=MAIN_NATIONAL_CODE,
        first_name='Sara',
        last_name='Ahmadi',
        is_main_participant=True,
    )


@pytest.fixture
def failing_uow_factory(store: InMemoryReservationStore) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(store, fail_on_commit=True)


@pytest.fixture
def acting_user_id() -> str:
    return MAIN_EXTERNAL_USER_ID


@pytest.fixture
def slow_commit_uow_factory(store: InMemoryReservationStore) -> Callable[[], InMemoryUnitOfWork]:
    """Commit stalls long enough for a deadline or a cancellation to hit after billing"""
    return lambda: InMemoryUnitOfWork(store, commit_delay=5)
