from typing import Final

# Rectangle detection defaults (long side / short side)
MIN_ASPECT_RATIO: Final[float] = 1.3
MAX_ASPECT_RATIO: Final[float] = 1.8
# Longer quad side relative to the frame's shorter dimension
MIN_RELATIVE_SIZE: Final[float] = 0.4
MAXIMUM_OBSERVATIONS: Final[int] = 1

# Edge detection
CANNY_LOW: Final[int] = 50
CANNY_HIGH: Final[int] = 150
APPROX_EPSILON: Final[float] = 0.02
HULL_APPROX_EPSILON: Final[float] = 0.05

# Rectification
MIN_QUAD_AREA_PX: Final[float] = 16.0
# Sine of the smallest corner angle still treated as a corner
COLLINEARITY_TOLERANCE: Final[float] = 1e-3

# Lines below this confidence are never classified
TEXT_CONFIDENCE_THRESHOLD: Final[float] = 1.0

# Overlay style
OVERLAY_CORNER_RADIUS: Final[int] = 10
OVERLAY_BORDER_WIDTH: Final[int] = 5
OVERLAY_OPACITY: Final[float] = 0.75
OVERLAY_COLOR = (0, 0, 255)  # Red (BGR)
