"""
CSV loading utilities for scored response data.
"""

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from calibration_service.core.data_models import ResponseRecord

REQUIRED_COLUMNS = ("respondent_id", "item_id", "response")


def load_response_records(path: Path) -> list[ResponseRecord]:
    """Load a CSV file of scored responses into ResponseRecords.

    Expected CSV columns:
        - respondent_id: identifier of the respondent (session)
        - item_id: identifier of the item (question)
        - response: normalized score in [0, 1]

    Returns:
        Records in file order.

    Raises:
        ValueError: If CSV format is invalid.
    """
    df = pd.read_csv(
        path, dtype={"respondent_id": str, "item_id": str}
    )

    for column in REQUIRED_COLUMNS:
        if column not in df.columns:
            raise ValueError(f"CSV must have '{column}' column")

    if df[list(REQUIRED_COLUMNS)].isna().any().any():
        raise ValueError("CSV contains empty cells")

    try:
        scores = pd.to_numeric(df["response"])
    except ValueError as e:
        raise ValueError(f"Non-numeric response value: {e}") from e

    return [
        ResponseRecord(
            respondent_id=respondent_id,
            item_id=item_id,
            response=float(score),
        )
        for respondent_id, item_id, score in zip(
            df["respondent_id"], df["item_id"], scores, strict=True
        )
    ]


def write_response_records(
    records: Iterable[ResponseRecord], path: Path
) -> int:
    """Write records to CSV with the columns read by load_response_records.

    Returns:
        Number of rows written.
    """
    df = pd.DataFrame(
        [(r.respondent_id, r.item_id, r.response) for r in records],
        columns=list(REQUIRED_COLUMNS),
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return len(df)
