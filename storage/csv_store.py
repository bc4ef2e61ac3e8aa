"""
CSV Export Store

Writes the two CSV documents produced for each fetched asset:
    {ASSET}_option_chain_{ts}.csv   one row per contract
    {ASSET}_candlestick_{ts}.csv    one row per candle (only when candles exist)
"""

from pathlib import Path
from typing import List, Optional, Union

from core.csv_export import candlestick_to_csv, records_to_csv
from core.logging import get_logger
from core.schemas import FetchReport
from core.utils.time import export_timestamp

logger = get_logger(__name__)


def write_csv(directory: Union[str, Path], filename: str, content: str) -> Path:
    """Write one CSV document (UTF-8) and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {path}")
    return path


def export_report(
    report: FetchReport,
    directory: Union[str, Path],
    timestamp: Optional[str] = None
) -> List[Path]:
    """
    Export every successful asset of a fetch report.

    Assets with no records produce no option chain file.

    Returns:
        Paths of the files written, in asset order
    """
    ts = timestamp or export_timestamp()
    written = []
    for asset, result in report.results.items():
        if result.records:
            written.append(write_csv(directory, f"{asset}_option_chain_{ts}.csv", records_to_csv(result.records)))
        if result.candlestick_data:
            written.append(write_csv(
                directory, f"{asset}_candlestick_{ts}.csv", candlestick_to_csv(result.candlestick_data)
            ))
    return written
