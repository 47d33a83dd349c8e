from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import MAX_IMPORT_BYTES
from ..data.catalog import game_data
from ..db import get_db
from ..errors import api_error
from ..services import transfer, warbands

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/warbands", tags=["import-export"])


def parse_import_bytes(raw: bytes, limit: int = MAX_IMPORT_BYTES) -> Any:
    if len(raw) > limit:
        raise api_error(
            413,
            "Import file is too large",
            "FILE_TOO_LARGE",
            context={"maxBytes": limit, "size": len(raw)},
        )
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise api_error(
            400, "Import data is not valid JSON", "INVALID_JSON_FORMAT", context={"details": str(exc)}
        ) from exc


async def read_import_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if upload is None or isinstance(upload, str):
            raise api_error(400, "No file uploaded", "INVALID_REQUEST")
        filename = upload.filename or ""
        if filename and not filename.lower().endswith(".json"):
            raise api_error(
                400, "Only .json files can be imported", "INVALID_REQUEST", context={"filename": filename}
            )
        return parse_import_bytes(await upload.read())
    return parse_import_bytes(await request.body())


@router.get("/{warband_id}/export")
def export_warband(warband_id: str, db: Session = Depends(get_db)):
    record = warbands.warband_record(warbands.get_warband(db, warband_id))
    filename = transfer.export_filename(record)
    return JSONResponse(
        transfer.export_payload(record),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", status_code=201)
async def import_warband(
    request: Request, resolve_conflicts: bool = True, db: Session = Depends(get_db)
):
    data = await read_import_payload(request)
    warband = transfer.import_warband(db, data, game_data(), resolve_conflicts=resolve_conflicts)
    return warbands.warband_record(warband).to_json()


@router.post("/validate-import")
async def validate_import(request: Request):
    data = await read_import_payload(request)
    return transfer.validate_import(data, game_data()).to_dict()
