# stdlib
from datetime import time

# Lag grid, in hours before the end of the working day
LAG_MIN_HOURS = 0.0
LAG_MAX_HOURS = 8.0
LAG_STEP_HOURS = 0.25
# Averaging window grid, in whole hours
WINDOW_MIN_HOURS = 8
WINDOW_MAX_HOURS = 16
WINDOW_STEP_HOURS = 1

# Anchor from which lag and window are measured backward
DEFAULT_WORKDAY_END = time(18, 0)
# Energy at or below this level means the plant is off
DEFAULT_ENERGY_THRESHOLD = 1.0

# Quadratic fit needs at least one point per coefficient
MIN_REGRESSION_POINTS = 3
# Forecasts from models below this R² are flagged in the output file
LOW_RSQ_WARNING = 0.5

# Supplementary file defaults
SUPP_DEFAULT_MIN_WINDOW = 5
SUPP_DEFAULT_MAX_WINDOW = 15
SUPP_DEFAULT_ENERGY_THRESHOLD = 2.0

# Process exit codes
EXIT_INVALID_COMMAND_LINE = 0xA0
EXIT_BAD_ARGS = 0xA1
EXIT_NO_MODEL = 1

# Relative singular value cutoff below which the design matrix is
# treated as rank deficient
SINGULAR_RCOND = 1e-10
