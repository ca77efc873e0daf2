from __future__ import annotations

import math

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from voucher_api.deps import get_current_user, get_voucher_importer, get_voucher_service
from voucher_api.schemas.voucher import (
    BatchImportResultResponse,
    ImportResultResponse,
    PaginationMeta,
    VoucherBatchUploadRequest,
    VoucherResponse,
    VoucherWriteRequest,
)
from voucher_api.services.errors import (
    DuplicateCodeError,
    MalformedInputError,
    VoucherError,
    VoucherNotFoundError,
)
from voucher_api.services.importer import VoucherImporter
from voucher_api.services.vouchers import VoucherService
from voucher_api.settings import settings

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("")
def list_vouchers(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT),
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    service: VoucherService = Depends(get_voucher_service),
) -> dict:
    page = page if page >= 1 else 1
    limit = _clamp_limit(limit)
    sort_order = sort_order.lower() if sort_order.lower() in ("asc", "desc") else "desc"

    vouchers, total = service.list_vouchers(
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    pagination = PaginationMeta(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))
    return {
        "ok": True,
        "data": {
            "vouchers": [VoucherResponse.from_model(voucher).model_dump(mode="json") for voucher in vouchers],
            "pagination": pagination.model_dump(mode="json"),
        },
    }


@router.post("", status_code=201)
def create_voucher(
    payload: VoucherWriteRequest,
    service: VoucherService = Depends(get_voucher_service),
) -> dict:
    try:
        voucher = service.create(payload.to_candidate())
    except VoucherError as exc:
        raise _voucher_http_error(exc) from exc
    return {
        "ok": True,
        "message": "Voucher created successfully",
        "data": {"voucher": VoucherResponse.from_model(voucher).model_dump(mode="json")},
    }


@router.post("/upload-csv")
def upload_csv(
    file: UploadFile | None = File(None),
    importer: VoucherImporter = Depends(get_voucher_importer),
) -> dict:
    if file is None:
        raise _bad_request("FILE_REQUIRED", "File is required.")
    if not (file.filename or "").lower().endswith(".csv"):
        raise _bad_request("INVALID_FILE_TYPE", "Only CSV files are allowed.")

    content = file.file.read(settings.CSV_MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.CSV_MAX_UPLOAD_BYTES:
        raise _bad_request("FILE_TOO_LARGE", "File size exceeds 5MB.")

    try:
        result = importer.import_csv(content)
    except VoucherError as exc:
        raise _voucher_http_error(exc) from exc
    return {
        "ok": True,
        "message": "CSV import completed",
        "data": ImportResultResponse.from_result(result).model_dump(mode="json"),
    }


@router.post("/upload-batch")
def upload_batch(
    payload: VoucherBatchUploadRequest,
    importer: VoucherImporter = Depends(get_voucher_importer),
) -> dict:
    if len(payload.vouchers) > settings.BATCH_MAX_SIZE:
        raise _bad_request("BATCH_TOO_LARGE", f"Batch size exceeds {settings.BATCH_MAX_SIZE}.")

    result = importer.import_batch([item.to_candidate() for item in payload.vouchers])
    return {"ok": True, "data": BatchImportResultResponse.from_result(result).model_dump(mode="json")}


@router.get("/export")
def export_csv(importer: VoucherImporter = Depends(get_voucher_importer)) -> Response:
    document = importer.export_csv()
    headers = {"Content-Disposition": "attachment; filename=vouchers.csv"}
    return Response(content=document, media_type="text/csv", headers=headers)


@router.get("/{voucher_id}")
def get_voucher(
    voucher_id: int,
    service: VoucherService = Depends(get_voucher_service),
) -> dict:
    try:
        voucher = service.get(voucher_id)
    except VoucherError as exc:
        raise _voucher_http_error(exc) from exc
    return {"ok": True, "data": {"voucher": VoucherResponse.from_model(voucher).model_dump(mode="json")}}


@router.put("/{voucher_id}")
def update_voucher(
    voucher_id: int,
    payload: VoucherWriteRequest,
    service: VoucherService = Depends(get_voucher_service),
) -> dict:
    try:
        voucher = service.update(voucher_id, payload.to_candidate())
    except VoucherError as exc:
        raise _voucher_http_error(exc) from exc
    return {
        "ok": True,
        "message": "Voucher updated successfully",
        "data": {"voucher": VoucherResponse.from_model(voucher).model_dump(mode="json")},
    }


@router.delete("/{voucher_id}")
def delete_voucher(
    voucher_id: int,
    service: VoucherService = Depends(get_voucher_service),
) -> dict:
    try:
        service.delete(voucher_id)
    except VoucherError as exc:
        raise _voucher_http_error(exc) from exc
    return {"ok": True, "message": "Voucher deleted successfully", "data": {"deleted": True}}


def _clamp_limit(limit: int) -> int:
    if limit < 1:
        return settings.DEFAULT_PAGE_LIMIT
    return min(limit, settings.MAX_PAGE_LIMIT)


def _bad_request(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"ok": False, "error": {"code": code, "message": message}},
    )


def _voucher_http_error(exc: VoucherError) -> HTTPException:
    if isinstance(exc, VoucherNotFoundError):
        status_code = 404
    elif isinstance(exc, DuplicateCodeError):
        status_code = 409
    else:
        status_code = 400
    if isinstance(exc, MalformedInputError):
        logger.info("voucher_import_rejected", code=exc.code, reason=exc.message)
    return HTTPException(
        status_code=status_code,
        detail={"ok": False, "error": {"code": exc.code, "message": exc.message}},
    )
