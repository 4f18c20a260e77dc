from .actuator import Actuator, PlaywrightActuator, to_pixels
from .observation import ObservationLayer

__all__ = ["Actuator", "PlaywrightActuator", "ObservationLayer", "to_pixels"]
