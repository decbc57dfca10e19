"""Agent pipeline: orchestrator -> specialist -> tool -> formatter."""

from .formatter import ResponseFormatter
from .led_control import LedControlProvider
from .orchestrator import Orchestrator, select_route
from .sensor_attributes import SensorAttributesProvider
from .temperature import TemperatureProvider

__all__ = [
    "LedControlProvider",
    "Orchestrator",
    "ResponseFormatter",
    "SensorAttributesProvider",
    "TemperatureProvider",
    "select_route",
]
