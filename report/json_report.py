"""
JSON Lines export of kept lots.
"""

import json
from pathlib import Path
from typing import Sequence, Union

from lot_models import LotRecord


def write_records_jsonl(records: Sequence[LotRecord], output_path: Union[str, Path]) -> Path:
    """
    Write one JSON object per record, replacing any previous file.

    Returns:
        Path of the written file
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        for record in records:
            f.write(json.dumps(record.model_dump(), ensure_ascii=False) + '\n')

    return output
