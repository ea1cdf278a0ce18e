"""Small logging helpers for candidate evaluation.

Functions are kept separate so they can be imported and reused elsewhere
without pulling in the evaluation module. Every message is advisory: with
``verbose`` the messages go out at INFO, otherwise at DEBUG.
"""

from __future__ import annotations

import logging


def _default_evaluation_logger() -> logging.Logger:
    return logging.getLogger("treeclimb.hierarchy_analysis.evaluate")


def _level(verbose: bool) -> int:
    return logging.INFO if verbose else logging.DEBUG


def log_pseudo_leaf_progress(
    index: int, total: int, verbose: bool = False, logger: logging.Logger | None = None
) -> None:
    """Log that the pseudo-leaf level of one feature is known."""
    logger = logger or _default_evaluation_logger()
    logger.log(_level(verbose), "Pseudo leaves: %d out of %d features finished", index, total)


def log_evaluation_start(
    n_levels: int,
    n_features: int,
    n_jobs: int,
    verbose: bool = False,
    logger: logging.Logger | None = None,
) -> None:
    """Log the start of candidate evaluation."""
    logger = logger or _default_evaluation_logger()
    logger.log(
        _level(verbose),
        "Evaluating %d candidate levels across %d features (n_jobs=%d).",
        n_levels,
        n_features,
        n_jobs,
    )


def log_level_evaluated(
    index: int,
    total: int,
    level_name: str,
    is_valid: bool,
    verbose: bool = False,
    logger: logging.Logger | None = None,
) -> None:
    """Log one finished candidate level."""
    logger = logger or _default_evaluation_logger()
    logger.log(
        _level(verbose),
        "Candidate %d out of %d (t=%s) evaluated: %s",
        index,
        total,
        level_name,
        "valid" if is_valid else "invalid",
    )


def log_best_level(
    level_name: str, n_best: int, verbose: bool = False, logger: logging.Logger | None = None
) -> None:
    """Log the selected level before the final correction."""
    logger = logger or _default_evaluation_logger()
    logger.log(
        _level(verbose),
        "Best candidate level t=%s (%d tied); multiple-hypothesis correction on it.",
        level_name,
        n_best,
    )
