# thirdpartylib
import numpy as np
from numpy.typing import ArrayLike

def rmse(y_true: ArrayLike, y_pred: ArrayLike) -> float:
    """
    Root mean squared error, ``sqrt(mean((y_true - y_pred)²))``.

    The mean is taken over the number of observations (no degrees of
    freedom correction), matching the usual definition of fit RMSE.

    Parameters
    ----------
    y_true : array-like
        Observed values.
    y_pred : array-like
        Fitted or predicted values, same shape as ``y_true``.

    Returns
    -------
    float
        RMSE, or ``NaN`` for empty input.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        return float("nan")
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))

def strict_r2(
    y_true: ArrayLike,
    y_pred: ArrayLike,
    eps: float = 1e-12
) -> float:
    """
    Compute the strict coefficient of determination (R²).

    This implementation follows the textbook definition of R²:

        R² = 1 - Σ(y_true - y_pred)² / Σ(y_true - ȳ_true)²

    When the variance of ``y_true`` is zero or near-zero the score is
    mathematically undefined, and this function returns ``NaN`` instead
    of coercing the result to 0.0 or 1.0. Callers decide what an
    undefined score means for them.

    Parameters
    ----------
    y_true : ArrayLike
        Ground-truth target values.
    y_pred : ArrayLike
        Predicted target values. Must have the same shape as ``y_true``.
    eps : float, default=1e-12
        Minimum allowable denominator value. If the total variance of
        ``y_true`` is less than or equal to ``eps``, the function
        returns ``NaN``.

    Returns
    -------
    float
        The R² score. Returns ``NaN`` if the variance of ``y_true`` is
        zero or near-zero.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    denom = np.sum((y_true - y_true.mean()) ** 2)
    if denom <= eps:
        return float("nan")

    return float(1.0 - np.sum((y_true - y_pred) ** 2) / denom)
