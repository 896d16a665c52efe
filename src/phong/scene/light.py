"""Point lights.

Lights have no color, intensity or attenuation: every light is an
unattenuated white point light, so only its position matters.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PointLight:
    """A white point light.

    Attributes:
        origin: World-space position of the light.
    """

    origin: tuple[float, float, float]
