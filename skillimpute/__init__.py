from .solver import LowRankFit, Solver
from .soft_impute import SoftImpute
from .scaler import ColumnScaler, standardize
from .holdout import HeldOutEntries, split_observed
from .regularization_path import (
    PathPoint,
    PathSelection,
    best_path_point,
    evaluate_shrinkage_value,
    lambda_grid,
    max_shrinkage_value,
    select_rank,
)
from .completion import finalize
from .skill_matrix import (
    SkillMatrix,
    event_strength,
    from_wide_frame,
    pivot_observations,
    variable_correlations,
)
from .pipeline import CompletionReport, CompletionResult, SkillCompleter
from .errors import (
    DegenerateColumnError,
    InsufficientDataError,
    NonConvergenceWarning,
    NumericalInstabilityError,
    SkillImputeError,
)

__version__ = "0.1.0"

__all__ = [
    "LowRankFit",
    "Solver",
    "SoftImpute",
    "ColumnScaler",
    "standardize",
    "HeldOutEntries",
    "split_observed",
    "PathPoint",
    "PathSelection",
    "best_path_point",
    "evaluate_shrinkage_value",
    "lambda_grid",
    "max_shrinkage_value",
    "select_rank",
    "finalize",
    "SkillMatrix",
    "from_wide_frame",
    "pivot_observations",
    "variable_correlations",
    "event_strength",
    "CompletionReport",
    "CompletionResult",
    "SkillCompleter",
    "DegenerateColumnError",
    "InsufficientDataError",
    "NonConvergenceWarning",
    "NumericalInstabilityError",
    "SkillImputeError",
]
