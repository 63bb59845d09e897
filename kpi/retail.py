"""
kpi/retail.py

Retail KPI formula implementation.

Expected inputs
---------------
total_sales : float
    Sales total for the period.
total_spent : float
    Purchases plus expenses for the period.
profit : float
    total_sales - total_spent.
profit_margin : float
    Profit as a percentage of sales, already computed by the aggregator.
completed_orders : int
    Number of completed sales.
clients_count : int
    Number of clients.
supplier_entries : int
    Number of stock entries received from suppliers.
number_of_expenses : int
    Number of recorded expenses.

Formulas
--------
ROI                    = profit / total_spent * 100
Margem de Lucro        = profit_margin
Taxa de Conversão      = completed_orders / clients_count * 100
Valor Médio de Compra  = total_spent / (supplier_entries + number_of_expenses)
Valor Médio de Venda   = total_sales / completed_orders
Lucro Médio por Venda  = profit / completed_orders
Lucro Total            = profit
Lucro por Cliente      = profit / clients_count

Division by zero, or any non-finite operand, yields 0 for the affected
metric.
"""

from __future__ import annotations

from typing import Any, Final, Mapping

from app.numeric import finite_or_zero, safe_divide
from kpi.base import BaseKPIFormula

ROI: Final[str] = "ROI"
PROFIT_MARGIN: Final[str] = "Margem de Lucro"
CONVERSION_RATE: Final[str] = "Taxa de Conversão"
AVERAGE_PURCHASE_VALUE: Final[str] = "Valor Médio de Compra"
AVERAGE_SALE_VALUE: Final[str] = "Valor Médio de Venda"
AVERAGE_PROFIT_PER_SALE: Final[str] = "Lucro Médio por Venda"
TOTAL_PROFIT: Final[str] = "Lucro Total"
PROFIT_PER_CLIENT: Final[str] = "Lucro por Cliente"

KPI_ORDER: Final[tuple[str, ...]] = (
    ROI,
    PROFIT_MARGIN,
    CONVERSION_RATE,
    AVERAGE_PURCHASE_VALUE,
    AVERAGE_SALE_VALUE,
    AVERAGE_PROFIT_PER_SALE,
    TOTAL_PROFIT,
    PROFIT_PER_CLIENT,
)


class RetailKPIFormula(BaseKPIFormula):
    """
    Deterministic retail KPI calculations with zero-guarded division.

    The result dictionary always contains exactly the keys of
    :data:`KPI_ORDER`, in that order.
    """

    input_keys = (
        "total_sales",
        "total_spent",
        "profit",
        "profit_margin",
        "completed_orders",
        "clients_count",
        "supplier_entries",
        "number_of_expenses",
    )

    def calculate(self, inputs: Mapping[str, Any]) -> dict[str, float]:
        values = self.sanitize(inputs)

        total_sales = values["total_sales"]
        total_spent = values["total_spent"]
        profit = values["profit"]
        completed_orders = values["completed_orders"]
        clients_count = values["clients_count"]
        purchase_count = values["supplier_entries"] + values["number_of_expenses"]

        return {
            ROI: _roi(profit, total_spent),
            PROFIT_MARGIN: values["profit_margin"],
            CONVERSION_RATE: safe_divide(completed_orders, clients_count) * 100,
            AVERAGE_PURCHASE_VALUE: safe_divide(total_spent, purchase_count),
            AVERAGE_SALE_VALUE: safe_divide(total_sales, completed_orders),
            AVERAGE_PROFIT_PER_SALE: safe_divide(profit, completed_orders),
            TOTAL_PROFIT: finite_or_zero(profit),
            PROFIT_PER_CLIENT: safe_divide(profit, clients_count),
        }


def _roi(profit: float, total_spent: float) -> float:
    """ROI = profit / total_spent * 100; 0 when nothing was spent."""
    if total_spent <= 0:
        return 0.0
    return finite_or_zero(safe_divide(profit, total_spent) * 100)
