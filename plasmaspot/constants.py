"""Physical constants and default run parameters.

Values follow the conventions of the density model being driven: the Earth
radius used for spot geometry is the rounded 6400 km of the model, and the
filling and saturation defaults are the model's published defaults.
"""
from __future__ import annotations

# Earth radius used for surface distances (km)
EARTH_RADIUS_KM: float = 6400.0

SECONDS_PER_DAY: float = 86400.0

# Baseline filling: maximum flux (m^-2 s^-1) and relaxation timescales (s)
F_MAX_DEFAULT: float = 2.0e12
TAU_CLOSED_DEFAULT: float = 10.0 * SECONDS_PER_DAY
TAU_OPEN_DEFAULT: float = 1.0 * SECONDS_PER_DAY

# Saturation density neq = 10**(A + B*L)
SATURATION_A_DEFAULT: float = 3.9043
SATURATION_B_DEFAULT: float = -0.3145

# Spot defaults
SPOT_COLATITUDE_DEFAULT: float = 30.0   # deg
SPOT_LONGITUDE_DEFAULT: float = 315.0   # deg east of midnight
SPOT_RADIUS_KM_DEFAULT: float = 1000.0
SPOT_FACTOR_DEFAULT: float = 10.0

# Run scheduling
OUTPUT_DT_DEFAULT: float = 900.0        # s between state frames
CLOCK_REFRESH_DEFAULT: float = 300.0    # s between injector clock refreshes
OUTPUT_FILE_DEFAULT: str = "output.dat"

