"""
Central configuration for the treeclimb resolution-selection library.
"""

# --- Statistical Parameters ---

# Default target false discovery rate on the (pseudo) leaf level.
FDR_LIMIT: float = 0.05

# Default multiple testing correction. Accepts the R ``p.adjust`` names
# ("BH", "BY", "bonferroni", "holm", "hochberg", "hommel", "none") as well
# as the native statsmodels names ("fdr_bh", ...).
CORRECTION_METHOD: str = "BH"

# Decimal places kept for the validity bound of each candidate level.
# Rounding avoids 2 * 0.05 * (2.5 - 1) > 0.15 evaluating to True.
UPPER_BOUND_DECIMALS: int = 10

# Largest rejected p-value used when nothing is rejected. Lies below every
# valid p-value so no node takes part in the branch count.
MISSING_BRANCH_P: float = -1.0

# --- Column Roles ---

NODE_COLUMN: str = "node"
P_COLUMN: str = "pvalue"
SIGN_COLUMN: str = "sign"

# Columns appended to the output table of the best candidate level.
ADJUSTED_P_COLUMN: str = "adj_p"
SIGNAL_COLUMN: str = "signal_node"

# --- Parallelism ---

# Set TREECLIMB_N_JOBS to override the number of workers (e.g. "1" to
# evaluate candidate levels sequentially).
N_JOBS_ENV_VAR: str = "TREECLIMB_N_JOBS"

# Candidate families smaller than this are evaluated sequentially.
MIN_LEVELS_FOR_PARALLEL: int = 8
