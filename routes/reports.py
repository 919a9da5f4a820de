import csv
import io
from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.templating import Jinja2Templates

from db.database import get_db
from models.user import User
from utils.auth import require_login
from utils.hifz import hifz_summary
from utils.reading import REPORT_PERIODS, reading_report

router = APIRouter()
base_dir = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(base_dir / "templates"))

PERIOD_PATTERN = "^(" + "|".join(REPORT_PERIODS) + ")$"


def _load_report(conn, user_id: int, period: str) -> dict:
    rows = reading_report(conn, user_id, period)
    return {
        "period": period,
        "rows": rows,
        "total_ayahs": sum(row["ayah_count"] for row in rows),
        "peak": max((row["ayah_count"] for row in rows), default=0),
        "hifz": hifz_summary(conn, user_id),
    }


@router.get("/", response_class=HTMLResponse)
async def reading_reports(
    request: Request,
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    user: User = Depends(require_login),
    conn=Depends(get_db),
):
    return templates.TemplateResponse(
        "reports.html",
        {
            "request": request,
            "user": user,
            "report": _load_report(conn, user.id, period),
            "periods": list(REPORT_PERIODS),
        },
    )


@router.get("/export")
async def reading_report_export(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    user: User = Depends(require_login),
    conn=Depends(get_db),
):
    report = _load_report(conn, user.id, period)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Period", "Ayahs Read"])
    for row in report["rows"]:
        writer.writerow([row["label"], row["ayah_count"]])
    writer.writerow([])
    writer.writerow(["Hifz Status", "Ayahs"])
    for status_name, count in report["hifz"].items():
        writer.writerow([status_name, count])
    data = output.getvalue().encode("utf-8")
    filename = f"quranhub-reading-{period}.csv"
    return StreamingResponse(
        io.BytesIO(data),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
