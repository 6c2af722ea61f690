from datetime import datetime, timedelta, timezone
import time
from typing import Callable, List, Optional, Self

import anyio
import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.recreation.app.dto.bill_dto import BillCreationRequest, BillItemRequest
from src.service.recreation.app.dto.capacity_check import CapacityCheck
from src.service.recreation.app.dto.finalize_reservation_result import (
    FinalizeReservationResponse,
    FinalizeReservationResult,
)
from src.service.recreation.app.dto.member_dto import MemberDetail
from src.service.recreation.app.interface.i_bill_service import IBillService
from src.service.recreation.app.interface.i_member_service import IMemberService
from src.service.recreation.app.interface.i_reservation_event_publisher import (
    IReservationEventPublisher,
)
from src.service.recreation.app.interface.i_reservation_lock_manager import (
    IReservationLockManager,
)
from src.service.recreation.app.service.capacity_accountant import CapacityAccountant
from src.service.recreation.app.service.fraud_revalidator import FraudRevalidator
from src.service.recreation.app.service.pricing_resolver import PricingResolver
from src.service.recreation.domain.domain_event.reservation_held_event import ReservationHeldEvent
from src.service.recreation.domain.entity.price_snapshot_entity import PriceSnapshot
from src.service.recreation.domain.entity.tour_entity import Tour
from src.service.recreation.domain.entity.tour_reservation_entity import (
    Participant,
    TourReservation,
)
from src.service.recreation.domain.enum.finalize_failure_kind import FinalizeFailureKind
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.exception.finalization_rejected import FinalizationRejected


MAX_NAMES_IN_BILL_LINE = 3


@attrs.define(frozen=True)
class _ValidatedContext:
    reservation: TourReservation
    tour: Tour
    member_detail: MemberDetail
    capacity_check: CapacityCheck


def _participant_type_label(participant_type: ParticipantType) -> str:
    return 'member' if participant_type == ParticipantType.MEMBER else 'guest'


def _names_summary(participants: List[Participant]) -> str:
    names = ', '.join(p.full_name for p in participants[:MAX_NAMES_IN_BILL_LINE])
    if len(participants) > MAX_NAMES_IN_BILL_LINE:
        names += f' and {len(participants) - MAX_NAMES_IN_BILL_LINE} more'
    return names


class FinalizeReservationUseCase:
    """
    Finalize reservation use case - Draft → Held with an issued bill

    Flow (under the per-reservation lock, bounded by FINALIZE_TIMEOUT_SECONDS):
    1. Load reservation and tour, check the tour still takes reservations
    2. Re-read the acting member and their eligibility from the membership service
    3. Validate participants and re-verify every member/guest claim
    4. Take the tour capacity lock, check capacity and conflicting reservations
    5. Price each participant-type group and snapshot the rules
    6. Issue the bill, move the reservation to Held, commit
    7. Publish ReservationHeldEvent (best effort, after commit)

    A bill issued in step 6 is cancelled again when the commit does not happen.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        lock_manager: IReservationLockManager,
        member_service: IMemberService,
        bill_service: IBillService,
        event_publisher: IReservationEventPublisher,
        pricing_resolver: PricingResolver,
        fraud_revalidator: FraudRevalidator,
        hold_minutes: int = settings.RESERVATION_HOLD_MINUTES,
        minimum_hours_before_tour: int = settings.MINIMUM_HOURS_BEFORE_TOUR,
        timeout_seconds: float = settings.FINALIZE_TIMEOUT_SECONDS,
        currency: str = settings.CURRENCY,
        bill_type: str = settings.BILL_TYPE,
    ) -> None:
        self.uow_factory = uow_factory
        self.lock_manager = lock_manager
        self.member_service = member_service
        self.bill_service = bill_service
        self.event_publisher = event_publisher
        self.pricing_resolver = pricing_resolver
        self.fraud_revalidator = fraud_revalidator
        self.hold_minutes = hold_minutes
        self.minimum_hours_before_tour = minimum_hours_before_tour
        self.timeout_seconds = timeout_seconds
        self.currency = currency
        self.bill_type = bill_type
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        lock_manager: IReservationLockManager = Depends(
            Provide[Container.reservation_lock_manager]
        ),
        member_service: IMemberService = Depends(Provide[Container.member_service]),
        bill_service: IBillService = Depends(Provide[Container.bill_service]),
        event_publisher: IReservationEventPublisher = Depends(
            Provide[Container.reservation_event_publisher]
        ),
        pricing_resolver: PricingResolver = Depends(Provide[Container.pricing_resolver]),
        fraud_revalidator: FraudRevalidator = Depends(Provide[Container.fraud_revalidator]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            lock_manager=lock_manager,
            member_service=member_service,
            bill_service=bill_service,
            event_publisher=event_publisher,
            pricing_resolver=pricing_resolver,
            fraud_revalidator=fraud_revalidator,
        )

    @Logger.io
    async def finalize(
        self, *, reservation_id: UUID, external_user_id: str
    ) -> FinalizeReservationResult:
        """
        Returns:
            FinalizeReservationResult: the held reservation's summary, or the
            failure kind with a message. Failures leave the reservation in Draft.
        """
        start = time.perf_counter()
        metrics.finalize_in_progress.inc()

        with (
            Logger.reservation_scope(reservation_id),
            self.tracer.start_as_current_span(
                'use_case.finalize_reservation',
                attributes={'reservation.id': str(reservation_id)},
            ) as span,
        ):
            held_event: Optional[ReservationHeldEvent] = None
            try:
                with anyio.fail_after(self.timeout_seconds):
                    async with self.lock_manager.hold(key=str(reservation_id)):
                        response, held_event = await self._finalize_locked(
                            reservation_id=reservation_id, external_user_id=external_user_id
                        )
                result = FinalizeReservationResult.succeeded(response)
            except FinalizationRejected as e:
                Logger.base.warning(
                    f'⛔ [FINALIZE] {reservation_id} rejected ({e.kind}): {e.message}'
                )
                result = FinalizeReservationResult.failed(e.kind, e.message)
            except TimeoutError:
                Logger.base.error(
                    f'⏰ [FINALIZE] {reservation_id} did not finish within {self.timeout_seconds}s'
                )
                result = FinalizeReservationResult.failed(
                    FinalizeFailureKind.UNEXPECTED,
                    'Finalizing the reservation took too long, please try again',
                )
            except Exception as e:
                Logger.base.opt(exception=e).error(
                    f'💥 [FINALIZE] Unexpected error finalizing {reservation_id}'
                )
                result = FinalizeReservationResult.failed(
                    FinalizeFailureKind.UNEXPECTED,
                    'An unexpected error occurred while finalizing the reservation',
                )
            finally:
                metrics.finalize_in_progress.dec()

            # the reservation is committed; delivery problems must not turn it into a failure
            if held_event is not None:
                await self._publish_held_event(event=held_event)

            outcome = 'success' if result.is_success else str(result.failure_kind)
            span.set_attribute('finalize.result', outcome)
            metrics.record_finalize(result=outcome, duration=time.perf_counter() - start)
            return result

    async def _finalize_locked(
        self, *, reservation_id: UUID, external_user_id: str
    ) -> tuple[FinalizeReservationResponse, ReservationHeldEvent]:
        now = datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            context = await self._validate(
                uow=uow,
                reservation_id=reservation_id,
                external_user_id=external_user_id,
                now=now,
            )
            reservation, tour, member_detail = (
                context.reservation,
                context.tour,
                context.member_detail,
            )

            priced, bill_items = await self._price(reservation=reservation, tour=tour, now=now)
            bill_request = self._build_bill_request(
                reservation=priced,
                tour=tour,
                member_detail=member_detail,
                items=bill_items,
                now=now,
            )
            if bill_request.total_amount != priced.total_amount:
                raise RuntimeError(
                    f'Bill total {bill_request.total_amount} does not match '
                    f'reservation total {priced.total_amount}'
                )

            bill = await self.bill_service.create_and_issue_bill(request=bill_request)
            if not bill.is_success or bill.bill_id is None:
                raise FinalizationRejected.billing_failed(
                    bill.message or 'The bill could not be issued'
                )
            Logger.base.info(
                f'🧾 [FINALIZE] Bill {bill.bill_number} issued for {priced.tracking_code} '
                f'({priced.total_amount} {self.currency})'
            )

            try:
                held = priced.hold(bill_id=bill.bill_id, now=now, hold_minutes=self.hold_minutes)
                await uow.reservation_repo.update(reservation=held)
                await uow.commit()
            except BaseException:
                with anyio.CancelScope(shield=True):
                    await self._compensate_bill(
                        bill_id=bill.bill_id,
                        reason=f'Reservation {reservation.tracking_code} was not finalized',
                    )
                raise

        Logger.base.info(
            f'✅ [FINALIZE] {held.tracking_code} held until {held.expiry_date} '
            f'(participants={len(held.participants)}, '
            f'remaining={context.capacity_check.available - len(held.participants)})'
        )

        capacity = tour.find_capacity(held.capacity_id) if held.capacity_id else None
        event = ReservationHeldEvent.from_held_reservation(
            reservation=held,
            tour=tour,
            capacity=capacity,
            user_full_name=member_detail.full_name,
            user_national_code=member_detail.national_code,
            bill_number=bill.bill_number or '',
            currency=self.currency,
        )
        response = FinalizeReservationResponse(
            reservation_id=held.id,
            tracking_code=held.tracking_code,
            status=held.status,
            bill_id=bill.bill_id,
            bill_number=bill.bill_number or '',
            total_amount=held.total_amount or 0,
            expiry_date=held.expiry_date,  # type: ignore[arg-type]
            participant_count=len(held.participants),
            tour_title=tour.title,
        )
        return response, event

    async def _validate(
        self,
        *,
        uow: AbstractUnitOfWork,
        reservation_id: UUID,
        external_user_id: str,
        now: datetime,
    ) -> _ValidatedContext:
        # Reservation
        reservation = await uow.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None or reservation.external_user_id != external_user_id:
            raise FinalizationRejected.not_found('Reservation not found')

        finalizable, reason = reservation.can_finalize(now)
        if not finalizable:
            raise FinalizationRejected.precondition_failed(
                reason or 'Reservation is not finalizable'
            )

        # Tour
        tour = await uow.tour_repo.get_by_id(tour_id=reservation.tour_id)
        if tour is None:
            raise FinalizationRejected.not_found('Tour not found')
        if not tour.is_active:
            raise FinalizationRejected.precondition_failed('Tour is not active')
        if not tour.is_registration_open(now):
            raise FinalizationRejected.precondition_failed('Registration for this tour is closed')
        if tour.hours_until_start(now) < self.minimum_hours_before_tour:
            raise FinalizationRejected.precondition_failed(
                f'Reservations close {self.minimum_hours_before_tour} hours before the tour starts'
            )

        # Acting member
        member = await self.member_service.get_member_by_external_id(
            external_user_id=external_user_id
        )
        if member is None:
            raise FinalizationRejected.not_found('Member information not found')
        member_detail = await self.member_service.get_member_detail_by_national_code(
            national_code=member.national_code
        )
        if member_detail is None:
            raise FinalizationRejected.not_found('Member details not found')
        if not await self.member_service.has_active_membership(
            national_code=member_detail.national_code
        ):
            raise FinalizationRejected.precondition_failed('An active membership is required')

        eligibility = await self.member_service.validate_member_eligibility(
            national_code=member_detail.national_code,
            required_capabilities=tour.required_capabilities,
            required_features=tour.required_features,
            allowed_agencies=tour.allowed_agencies,
        )
        if not eligibility.is_eligible:
            raise FinalizationRejected.precondition_failed(
                '; '.join(eligibility.errors) or 'Member is not eligible for this tour'
            )

        # Participants
        if not reservation.participants:
            raise FinalizationRejected.precondition_failed('Reservation has no participants')
        for participant in reservation.participants:
            errors = participant.identity_errors()
            if errors:
                raise FinalizationRejected.precondition_failed(
                    f'Participant {participant.full_name or participant.national_number}: '
                    + ', '.join(errors)
                )
            age_error = tour.age_restriction_error(participant.age_at(tour.tour_start.date()))
            if age_error:
                raise FinalizationRejected.precondition_failed(
                    f'Participant {participant.full_name}: {age_error}'
                )

        await self.fraud_revalidator.verify_all(participants=reservation.participants)

        if not tour.can_create_reservation_with_guests(reservation.guest_participant_count):
            raise FinalizationRejected.precondition_failed(
                f'At most {tour.max_guests_per_reservation} guests are allowed per reservation'
            )

        # Capacity and conflicts, serialized per tour until commit
        await uow.reservation_repo.lock_tour_capacity(tour_id=tour.id)
        member_reservations = await uow.reservation_repo.get_by_tour_and_national_number(
            tour_id=tour.id, national_number=member_detail.national_code
        )
        capacity_check = await CapacityAccountant(
            reservation_repo=uow.reservation_repo
        ).ensure_capacity(
            tour=tour,
            reservation=reservation,
            member_reservations=member_reservations,
            as_of=now,
        )

        if any(
            r.id != reservation.id and r.conflicts_with_new_reservation(now)
            for r in member_reservations
        ):
            raise FinalizationRejected.conflicting_reservation(
                'You already have an active reservation for this tour'
            )

        return _ValidatedContext(
            reservation=reservation,
            tour=tour,
            member_detail=member_detail,
            capacity_check=capacity_check,
        )

    async def _price(
        self, *, reservation: TourReservation, tour: Tour, now: datetime
    ) -> tuple[TourReservation, List[BillItemRequest]]:
        snapshots: List[PriceSnapshot] = []
        amounts: dict[UUID, int] = {}
        items: List[BillItemRequest] = []

        for participant_type, group in reservation.participants_by_type().items():
            resolution = await self.pricing_resolver.resolve(
                tour=tour,
                national_number=group[0].national_number,
                as_of=now,
                participant_count=len(group),
            )
            if resolution.resolved_participant_type != participant_type:
                Logger.base.warning(
                    f'⚠️ [PRICING] {participant_type} group of {reservation.tracking_code} '
                    f'priced as {resolution.resolved_participant_type}'
                )

            snapshot = PriceSnapshot.from_pricing(
                reservation_id=reservation.id,
                participant_type=participant_type,
                participant_count=len(group),
                pricing=resolution.pricing_rule,
                snapshot_date=now,
                applied_capabilities=resolution.applied_capabilities,
                applied_features=resolution.applied_features,
            )
            snapshots.append(snapshot)
            for participant in group:
                amounts[participant.id] = snapshot.final_price

            label = _participant_type_label(participant_type)
            if len(group) == 1:
                description = f'Tour ticket {tour.title} for {label} ({group[0].full_name})'
            else:
                description = (
                    f'Tour ticket {tour.title} for {len(group)} {label}s ({_names_summary(group)})'
                )
            items.append(
                BillItemRequest(
                    title=f'Tour ticket {tour.title} - {label}',
                    description=description,
                    unit_price=snapshot.final_price,
                    quantity=len(group),
                    discount_percentage=resolution.pricing_rule.discount_percentage,
                )
            )

        return reservation.apply_pricing(snapshots=snapshots, amounts=amounts), items

    def _build_bill_request(
        self,
        *,
        reservation: TourReservation,
        tour: Tour,
        member_detail: MemberDetail,
        items: List[BillItemRequest],
        now: datetime,
    ) -> BillCreationRequest:
        return BillCreationRequest(
            title=f'Tour reservation bill {tour.title}',
            reference_id=str(reservation.id),
            reference_tracking_code=reservation.tracking_code,
            bill_type=self.bill_type,
            external_user_id=reservation.external_user_id,
            user_national_number=member_detail.national_code,
            user_full_name=member_detail.full_name,
            description=(
                f'Reservation of tour {tour.title} with tracking code {reservation.tracking_code}'
            ),
            # the bill is due when the hold expires
            due_date=now + timedelta(minutes=self.hold_minutes),
            items=items,
            idempotency_key=f'reservation-finalize-{reservation.id}',
            metadata={
                'reservation_id': str(reservation.id),
                'reservation_tracking_code': reservation.tracking_code,
                'tour_id': str(tour.id),
                'tour_title': tour.title,
                'participant_count': str(len(reservation.participants)),
                'member_count': str(reservation.member_participant_count),
                'guest_count': str(reservation.guest_participant_count),
            },
        )

    async def _compensate_bill(self, *, bill_id: UUID, reason: str) -> None:
        try:
            await self.bill_service.cancel_bill(bill_id=bill_id, reason=reason)
        except Exception as e:
            metrics.record_bill_compensation(result='failed')
            Logger.base.opt(exception=e).error(
                f'🧾 [FINALIZE] Bill {bill_id} could not be cancelled and needs manual follow-up'
            )
            return
        metrics.record_bill_compensation(result='cancelled')
        Logger.base.warning(f'🧾 [FINALIZE] Bill {bill_id} cancelled: {reason}')

    async def _publish_held_event(self, *, event: ReservationHeldEvent) -> None:
        try:
            await self.event_publisher.publish_reservation_held(event=event)
        except Exception as e:
            metrics.record_publish_failure(event_type=ReservationHeldEvent.__name__)
            Logger.base.opt(exception=e).error(
                f'📤 [FINALIZE] ReservationHeldEvent for {event.tracking_code} was not published'
            )
