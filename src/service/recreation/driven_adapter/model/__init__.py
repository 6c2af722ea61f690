"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.recreation.driven_adapter.model.tour_model import (
    TourCapacityModel,
    TourModel,
    TourPricingModel,
)
from src.service.recreation.driven_adapter.model.tour_reservation_model import (
    ReservationParticipantModel,
    ReservationPriceSnapshotModel,
    TourReservationModel,
)

__all__ = [
    'ReservationParticipantModel',
    'ReservationPriceSnapshotModel',
    'TourCapacityModel',
    'TourModel',
    'TourPricingModel',
    'TourReservationModel',
]
