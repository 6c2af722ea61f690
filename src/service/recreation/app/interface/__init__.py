"""Application layer interfaces (Ports)"""

from src.service.recreation.app.interface.i_bill_service import IBillService
from src.service.recreation.app.interface.i_member_service import IMemberService
from src.service.recreation.app.interface.i_reservation_event_publisher import (
    IReservationEventPublisher,
)
from src.service.recreation.app.interface.i_reservation_lock_manager import (
    IReservationLockManager,
    LockHandle,
)
from src.service.recreation.app.interface.i_tour_query_repo import ITourQueryRepo
from src.service.recreation.app.interface.i_tour_reservation_repo import ITourReservationRepo

__all__ = [
    'IBillService',
    'IMemberService',
    'IReservationEventPublisher',
    'IReservationLockManager',
    'ITourQueryRepo',
    'ITourReservationRepo',
    'LockHandle',
]
