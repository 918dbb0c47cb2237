"""Output generation for parse results.

This module serializes parse results as deterministic JSON and exports
pricing records and issues as pandas DataFrames.
"""

from resort_pricing_extraction.output.dataframe_export import (
    issues_to_dataframe,
    price_grid,
    records_to_dataframe,
)
from resort_pricing_extraction.output.json_generator import (
    JsonGenerator,
    JsonOutputResult,
    SchemaCheck,
)

__all__ = [
    "JsonGenerator",
    "JsonOutputResult",
    "SchemaCheck",
    "issues_to_dataframe",
    "price_grid",
    "records_to_dataframe",
]
