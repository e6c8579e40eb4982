#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Column filters for the occurrence table.

A query is a list of `(column, value, filter)` criteria applied in order.
Criteria whose value is `NOT_GIVEN` are skipped, which lets optional query
arguments be passed straight through while `None` still selects null cells.
"""

from typing import Any, Literal, Protocol, Sequence, runtime_checkable

import polars as pl


class NotGiven:
    """Sentinel for a query argument left out by the caller, as opposed to one
    explicitly set to None (a null match)."""

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN = NotGiven()


@runtime_checkable
class ColumnFilter(Protocol):
    def __call__(
        self, dataframe: pl.DataFrame, column_name: str, value: Any
    ) -> pl.DataFrame: ...


FilterCriterion = tuple[str, Any, ColumnFilter]


def equals(dataframe: pl.DataFrame, column_name: str, value: Any) -> pl.DataFrame:
    """Rows where `column_name` equals `value`, or is null if `value` is None."""
    if value is None:
        return dataframe.filter(pl.col(column_name).is_null())
    return dataframe.filter(pl.col(column_name) == value)


def at_most(dataframe: pl.DataFrame, column_name: str, value: Any) -> pl.DataFrame:
    return dataframe.filter(pl.col(column_name) <= value)


def at_least(dataframe: pl.DataFrame, column_name: str, value: Any) -> pl.DataFrame:
    return dataframe.filter(pl.col(column_name) >= value)


def one_of(
    dataframe: pl.DataFrame, column_name: str, value: Sequence[Any]
) -> pl.DataFrame:
    return dataframe.filter(pl.col(column_name).is_in(list(value)))


def select_rows(
    dataframe: pl.DataFrame, criteria: list[FilterCriterion]
) -> pl.DataFrame:
    """Apply every given criterion to `dataframe`.

    Parameters
    ----------
    criteria
        `(column, value, filter)` triples. At least one value must be given.

    Raises
    ------
    ValueError if every value is `NOT_GIVEN`, since the query would then
    return the whole table.
    """
    given = [c for c in criteria if c[1] is not NOT_GIVEN]
    if not given:
        raise ValueError(
            f"At least one of {tuple(c[0] for c in criteria)} must be constrained"
        )
    for column_name, value, column_filter in given:
        dataframe = column_filter(dataframe, column_name, value)
    return dataframe
