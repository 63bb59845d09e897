"""
kpi/base.py

Abstract base class for KPI formula implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from app.numeric import finite_or_zero


class BaseKPIFormula(ABC):
    """
    Contract for KPI formula implementations.

    Subclasses receive a mapping of pre-aggregated numerical inputs and
    return a plain dictionary of computed metric values.

    No I/O and no side effects are permitted inside :meth:`calculate`, and
    every returned value must be finite.
    """

    #: Input keys read by :meth:`calculate`; missing keys count as 0.
    input_keys: tuple[str, ...] = ()

    @abstractmethod
    def calculate(self, inputs: Mapping[str, Any]) -> dict[str, float]:
        """
        Compute KPI metrics from *inputs* and return a result dictionary.

        Parameters
        ----------
        inputs:
            Domain-specific numerical values required by the formula.

        Returns
        -------
        dict[str, float]
            Computed metrics keyed by metric name.
        """

    def sanitize(self, inputs: Mapping[str, Any]) -> dict[str, float]:
        """
        Read :attr:`input_keys` from *inputs*, coercing ``None``, NaN and
        ±Infinity to 0.
        """
        return {key: finite_or_zero(inputs.get(key)) for key in self.input_keys}
