"""pandas DataFrame export of parse results."""

import pandas as pd

from resort_pricing_extraction.models import UNAVAILABLE, ParsedResortData

RECORD_COLUMNS = [
    "sheet_name",
    "resort_name",
    "month",
    "special_period",
    "accommodation_type",
    "accommodation_code",
    "nights",
    "pax",
    "price",
    "available",
    "currency",
    "valid_from",
    "valid_to",
    "notes",
]

ISSUE_COLUMNS = [
    "sheet_name",
    "severity",
    "code",
    "code_name",
    "message",
    "cell",
    "row",
    "column",
    "suggestion",
    "recoverable",
]


def records_to_dataframe(results: ParsedResortData | list[ParsedResortData]) -> pd.DataFrame:
    """Flatten pricing records into one row per record.

    Unavailable prices become NaN in ``price`` with ``available`` False, so
    the column stays numeric.
    """
    if isinstance(results, ParsedResortData):
        results = [results]
    rows = []
    for result in results:
        for record in result.pricing:
            rows.append(
                {
                    "sheet_name": result.sheet_name,
                    "resort_name": result.resort_name,
                    "month": record.month,
                    "special_period": record.special_period,
                    "accommodation_type": record.accommodation_type,
                    "accommodation_code": record.accommodation_code,
                    "nights": record.nights,
                    "pax": record.pax,
                    "price": None if record.price == UNAVAILABLE else record.price,
                    "available": record.is_available,
                    "currency": record.currency,
                    "valid_from": record.valid_from,
                    "valid_to": record.valid_to,
                    "notes": record.notes,
                }
            )
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    df["price"] = pd.to_numeric(df["price"])
    df["nights"] = df["nights"].astype("Int64")
    df["pax"] = df["pax"].astype("Int64")
    return df


def issues_to_dataframe(results: ParsedResortData | list[ParsedResortData]) -> pd.DataFrame:
    """Flatten issues into one row per issue, in recorded order."""
    if isinstance(results, ParsedResortData):
        results = [results]
    rows = []
    for result in results:
        for issue in result.issues:
            location = issue.location
            rows.append(
                {
                    "sheet_name": result.sheet_name,
                    "severity": issue.severity.value,
                    "code": issue.code.value,
                    "code_name": issue.code.name,
                    "message": issue.message,
                    "cell": location.cell if location else None,
                    "row": location.row if location else None,
                    "column": location.column if location else None,
                    "suggestion": issue.suggestion,
                    "recoverable": issue.recoverable,
                }
            )
    if not rows:
        return pd.DataFrame(columns=ISSUE_COLUMNS)
    df = pd.DataFrame(rows, columns=ISSUE_COLUMNS)
    df["row"] = df["row"].astype("Int64")
    return df


def price_grid(result: ParsedResortData) -> pd.DataFrame:
    """Pivot available prices into a period by type/nights/pax table.

    Periods keep record order; missing combinations are NaN.
    """
    df = records_to_dataframe(result)
    if not df.empty:
        df = df[df["available"].astype(bool)]
    if df.empty:
        return pd.DataFrame()
    periods = list(dict.fromkeys(df["month"]))
    nights = df["nights"].astype("string").fillna("")
    pax = df["pax"].astype("string").fillna("")
    df = df.assign(
        combination=df["accommodation_type"] + " " + nights + "N/" + pax + "P"
    )
    table = df.pivot_table(
        index="month", columns="combination", values="price", aggfunc="first", sort=False
    )
    return table.reindex(periods)


__all__ = [
    "ISSUE_COLUMNS",
    "RECORD_COLUMNS",
    "issues_to_dataframe",
    "price_grid",
    "records_to_dataframe",
]
