"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.recreation.app.command import finalize_reservation_use_case
from src.service.recreation.driving_adapter.http_controller import reservation_controller


WIRE_MODULES: list[ModuleType] = [
    finalize_reservation_use_case,
    reservation_controller,
]
