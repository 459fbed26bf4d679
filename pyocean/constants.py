# pyocean/constants.py

"""
Central repository for numerical constants and status codes shared by the
tracer advection engines.
"""

# --- Initialization status bits (combined with bitwise OR) ---
ADV_OK = 0
ERR_HORIZ_ORDER = 1  # unsupported horizontal reconstruction order
ERR_VERT_ORDER = 2  # unsupported vertical reconstruction order
ERR_COEF_3RD = 4  # third-order blending coefficient outside [0, 1]
ERR_NUM_HALOS = 8  # non-positive halo count
ERR_MONO_HALOS = 16  # monotonic scheme needs at least MONO_MIN_HALOS halo layers

STATUS_MESSAGES = {
    ERR_HORIZ_ORDER: "Invalid value for horizontal advection order",
    ERR_VERT_ORDER: "Invalid value for vertical advection order",
    ERR_COEF_3RD: "Third-order blending coefficient must lie in [0, 1]",
    ERR_NUM_HALOS: "Number of halo layers must be positive",
    ERR_MONO_HALOS: "Monotonic advection cannot be used with less than 3 halos",
}

# --- Scheme parameters ---
SUPPORTED_ORDERS = (2, 3, 4)
MONO_MIN_HALOS = 3

# Sentinel for "no cell" in connectivity tables (domain boundary / beyond halo)
NO_CELL = -1

# Tolerance used when reporting monotonicity violations
MONOTONICITY_EPS = 1.0e-10


def describe_status(err: int) -> list[str]:
    """Return the messages for every bit set in an initialization status."""
    return [msg for bit, msg in STATUS_MESSAGES.items() if err & bit]
