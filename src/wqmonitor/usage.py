"""
Parsing of the published water-usage table.

The table is comma separated with one header row and positional columns
``[name, _, agriculture, domestic, industrial, ...]``. Numeric cells may
carry thousands separators and use ``-00`` as a zero placeholder.
"""

import io
import logging
import warnings
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from .exceptions import WQResponseError
from .models import UsageRecord
from .utils import to_float

logger = logging.getLogger(__name__)

NAME_COLUMN = 0
AGRICULTURE_COLUMN = 2
DOMESTIC_COLUMN = 3
INDUSTRIAL_COLUMN = 4
MIN_COLUMNS = INDUSTRIAL_COLUMN + 1


def parse_usage_number(cell: Any) -> Optional[float]:
    """
    Parse a usage figure such as ``"1,234"`` or ``"-00"``.

    Returns None when the cell is not a number after normalization.
    """
    if cell is None:
        return None
    text = str(cell).replace(",", "").replace("-00", "0")
    return to_float(text)


def parse_usage_table(text: str) -> Dict[str, UsageRecord]:
    """
    Parse the usage CSV into records keyed by reservoir name.

    Rows without a name or without any usage cell are skipped; malformed
    figures become None.

    Args:
        text: CSV payload including its header row

    Returns:
        Dict mapping reservoir name to UsageRecord

    Raises:
        WQResponseError: If the payload is not readable as CSV at all

    Examples:
        >>> table = 'name,code,agri,dom,ind\\nA,1,"1,234",500,-00\\n'
        >>> parse_usage_table(table)["A"]
        UsageRecord(agriculture=1234.0, domestic=500.0, industrial=0.0)
    """
    if not text or not text.strip():
        return {}

    try:
        with warnings.catch_warnings():
            # cells beyond the header are expected and dropped
            warnings.simplefilter("ignore", category=pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text.strip()),
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                index_col=False,
            )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise WQResponseError("Usage table is not valid CSV", details=str(e)) from e

    if df.shape[1] < MIN_COLUMNS:
        logger.warning(
            f"Usage table has {df.shape[1]} columns, at least {MIN_COLUMNS} required"
        )
        return {}

    df = df.fillna("")
    usage: Dict[str, UsageRecord] = {}
    for row in df.itertuples(index=False, name=None):
        name = str(row[NAME_COLUMN]).strip()
        if not name:
            continue
        cells = [row[AGRICULTURE_COLUMN], row[DOMESTIC_COLUMN], row[INDUSTRIAL_COLUMN]]
        if all(not str(cell).strip() for cell in cells):
            continue
        usage[name] = UsageRecord(
            agriculture=parse_usage_number(row[AGRICULTURE_COLUMN]),
            domestic=parse_usage_number(row[DOMESTIC_COLUMN]),
            industrial=parse_usage_number(row[INDUSTRIAL_COLUMN]),
        )

    logger.debug(f"Parsed usage figures for {len(usage)} reservoirs")
    return usage


def usage_to_pandas(usage: Mapping[str, UsageRecord]) -> pd.DataFrame:
    """One row per reservoir with agriculture, domestic, industrial and total columns."""
    records = [
        {
            "name": name,
            "agriculture": record.agriculture,
            "domestic": record.domestic,
            "industrial": record.industrial,
            "total": record.total,
        }
        for name, record in usage.items()
    ]
    return pd.DataFrame(
        records, columns=["name", "agriculture", "domestic", "industrial", "total"]
    )
