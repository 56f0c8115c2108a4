"""Least-squares line through equally spaced samples."""

from __future__ import annotations

from collections.abc import Iterable


class LinReg:
    """Linear regression of samples taken at x = 0, 1, 2, ..."""

    def __init__(self, values: Iterable[float] = ()) -> None:
        ys = [float(v) for v in values]
        n = len(ys)
        if n == 0:
            self._slope = 0.0
            self._intercept = 0.0
        elif n == 1:
            self._slope = 0.0
            self._intercept = ys[0]
        else:
            mean_x = (n - 1) / 2.0
            mean_y = sum(ys) / n
            numerator = sum((x - mean_x) * (y - mean_y) for x, y in enumerate(ys))
            denominator = sum((x - mean_x) ** 2 for x in range(n))
            self._slope = numerator / denominator
            self._intercept = mean_y - self._slope * mean_x

    @property
    def slope(self) -> float:
        return self._slope

    @property
    def intercept(self) -> float:
        return self._intercept

    def __call__(self, x: float) -> float:
        return self._slope * x + self._intercept