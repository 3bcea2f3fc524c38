"""
Selection rules and status codes for the Krylov-Schur eigen solvers.
"""

from enum import Enum, IntEnum
from typing import Union

import numpy as np

__all__ = [
    "SortRule",
    "CompInfo",
    "SELECTION_RULES",
    "SORTING_RULES",
    "which_eigenvalues",
    "check_selection_rule",
    "check_sorting_rule",
]


# =============================================================================
# Enumerations
# =============================================================================


class SortRule(str, Enum):
    """
    Rules used to select or sort Ritz values (ARPACK naming).

    The imaginary-part rules LI and SI compare ``|imag|``, so both members of
    a conjugate pair rank together and real values count as imaginary part 0.
    """

    LargestMagn = "LM"
    LargestReal = "LR"
    LargestImag = "LI"
    LargestAlge = "LA"
    SmallestMagn = "SM"
    SmallestReal = "SR"
    SmallestImag = "SI"
    SmallestAlge = "SA"
    BothEnds = "BE"


class CompInfo(IntEnum):
    """Status of a computation."""

    Successful = 0
    NotComputed = 1
    NotConverging = 2
    NumericalIssue = 3


SELECTION_RULES = (
    SortRule.LargestMagn,
    SortRule.LargestReal,
    SortRule.LargestImag,
    SortRule.SmallestMagn,
    SortRule.SmallestReal,
    SortRule.SmallestImag,
)

SORTING_RULES = (
    SortRule.LargestAlge,
    SortRule.LargestMagn,
    SortRule.SmallestAlge,
    SortRule.SmallestMagn,
)


# =============================================================================
# Rule Validation
# =============================================================================


def _as_rule(rule: Union[SortRule, str]) -> SortRule:
    try:
        return SortRule(rule)
    except ValueError:
        raise ValueError(f"unknown sort rule: {rule!r}") from None


def check_selection_rule(rule: Union[SortRule, str]) -> SortRule:
    """Coerce ``rule`` to a ``SortRule`` usable for selecting Ritz values."""
    rule = _as_rule(rule)
    if rule not in SELECTION_RULES:
        raise ValueError(f"unsupported selection rule: {rule.value}")
    return rule


def check_sorting_rule(rule: Union[SortRule, str]) -> SortRule:
    """Coerce ``rule`` to a ``SortRule`` usable for sorting results."""
    rule = _as_rule(rule)
    if rule not in SORTING_RULES:
        raise ValueError(f"unsupported sorting rule: {rule.value}")
    return rule


# =============================================================================
# Sorting
# =============================================================================


def which_eigenvalues(values: np.ndarray, rule: Union[SortRule, str]) -> np.ndarray:
    """
    Order Ritz values so that the wanted ones come first.

    Parameters
    ----------
    values : ndarray
        Real or complex Ritz values.
    rule : SortRule or str
        One of the selection rules (LM, LR, LI, SM, SR, SI).

    Returns
    -------
    ndarray of int
        Permutation of ``range(len(values))``. Ties keep their original order.
    """
    rule = check_selection_rule(rule)
    values = np.asarray(values)

    if rule == SortRule.LargestMagn:
        key = -np.abs(values)
    elif rule == SortRule.LargestReal:
        key = -np.real(values)
    elif rule == SortRule.LargestImag:
        key = -np.abs(np.imag(values))
    elif rule == SortRule.SmallestMagn:
        key = np.abs(values)
    elif rule == SortRule.SmallestReal:
        key = np.real(values)
    else:
        key = np.abs(np.imag(values))

    return np.argsort(key, kind="stable")
