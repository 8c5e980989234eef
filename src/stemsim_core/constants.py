# --- src/stemsim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

# --- Timing ---

#: Display refresh interval requested by the frame scheduler (60 Hz).
DEFAULT_FRAME_INTERVAL_S: float = 1.0 / 60.0

#: Upper bound on the measured frame delta handed to an integrator. A stalled tab or a
#: debugger pause must not turn into one giant, unstable integration step.
DEFAULT_MAX_DT_S: float = 0.02

#: Wall-clock period of discrete-generation models (population selection).
DEFAULT_GENERATION_INTERVAL_S: float = 0.5

#: Delay between two animated algorithm steps (graph traversal, searches).
DEFAULT_STEP_DELAY_S: float = 0.2

# --- History ---

DEFAULT_HISTORY_CAPACITY: int = 300

# --- Unit conversions ---

#: Conversion factor from atm*L to joules.
ATM_LITER_TO_JOULE: float = 101.325

# --- Domain floors for closed-form models ---

#: Element values below these floors make the closed-form RL/LC solutions degenerate
#: (tau -> 0 or omega -> inf). They are reported as DEGENERATE, never evaluated.
MIN_RESISTANCE_OHM: float = 1.0e-9
MIN_INDUCTANCE_HENRY: float = 1.0e-12
MIN_CAPACITANCE_FARAD: float = 1.0e-15

logger.debug("Defined core constants: frame timing, history capacity, unit conversions, domain floors.")
