"""HULLWORKS MES — CSV exports for the admin tables."""
import csv
import io
from typing import Any, Iterable, Sequence

from fastapi.responses import StreamingResponse

from hullworks.db.base import utcnow


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buf.getvalue()


def csv_download(name: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> StreamingResponse:
    content = rows_to_csv(headers, rows)
    filename = f"{name}-{utcnow().strftime('%Y-%m-%d')}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
