"""
Colorado food-stamp recipiency: configuration.
Reproducibility: random seeds, paths, columns, split and model defaults.
"""

import os

# ----- Reproducibility -----
RANDOM_SEED = 42

# ----- Paths -----
PROJECT_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_PATH = os.path.join(PROJECT_DIR, "colorado_pums.csv")
OUTPUT_DIR = os.path.join(PROJECT_DIR, "outputs")
CACHE_DIR = os.path.join(OUTPUT_DIR, "model_cache")

# ----- Task -----
TARGET_COLUMN = "food_stamps"  # Binary: received SNAP in the last 12 months
POSITIVE_LABEL = 1  # PUMS FS: 1 = yes, 2 = no

# PUMS variable names -> readable names (applied only to columns that are present)
RENAME_COLUMNS = {
    "RNTP": "rent",
    "VALP": "house_value",
    "RACNUM": "race_count",
    "HINS1": "ins_employer",
    "HINS2": "ins_purchased",
    "HINS3": "ins_medicare",
    "HINS4": "ins_medicaid",
    "HINS5": "ins_tricare",
    "HINS6": "ins_va",
    "HINS7": "ins_ihs",
    "ESR": "employment_status",
    "OCCP": "occupation",
    "VPS": "veteran_status",
    "JWTR": "transit_mode",
    "JWTRNS": "transit_mode",
    "JWMNP": "transit_time",
    "FS": TARGET_COLUMN,
}

# Identifiers and weights carried by the extract; not predictors
DROP_COLUMNS = ["SERIALNO", "SPORDER", "PUMA", "ST", "PWGTP", "WGTP"]

# Coded columns: one-hot encoded rather than treated as magnitudes
CATEGORICAL_FEATURES = ["employment_status", "occupation", "veteran_status", "transit_mode"]

# ----- Missing values -----
# "fill": replace with FILL_VALUE (rent/value/transit time are blank when not applicable)
# "drop": remove the row
MISSING_POLICY = "fill"
FILL_VALUE = 0
MISSING_POLICIES = ("fill", "drop")

# ----- Train/eval split -----
TRAIN_FRACTION = 0.8  # Single held-out evaluation split
STRATIFY = True

# ----- Linear variant (logistic regression) -----
CUTOFF = 0.5  # P(label=1) >= CUTOFF predicts 1
LOGREG_C = 1.0
LOGREG_PENALTY = "l2"
LOGREG_PENALTIES = ("l2", "l1")  # l1 uses the liblinear solver
LOGREG_MAX_ITER = 1000
LOGREG_IMPORTANCE = "coefficient"

# ----- Ensemble variant (bagged trees) -----
N_TREES = 500
MAX_FEATURES = "sqrt"  # candidate predictors per split: int, fraction or "sqrt"
MIN_SAMPLES_LEAF = 1
FOREST_IMPORTANCE = "impurity"
N_JOBS = 1

# ----- Feature importance -----
PERMUTATION_REPEATS = 10

# ----- Output -----
REPORT_FILENAME = "report.txt"


def ensure_output_dir(path=None):
    """Create the output directory (defaults to OUTPUT_DIR) and return it."""
    path = path or OUTPUT_DIR
    os.makedirs(path, exist_ok=True)
    return path
