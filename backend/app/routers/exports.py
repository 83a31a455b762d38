import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.core.settings import settings
from app.deps import get_current_user
from app.schemas.export import (
    CurrentUser,
    DataType,
    DataTypeOut,
    ExportFormat,
    ExportPermissionOut,
    ExportRequest,
)
from app.services.export_permissions import allowed_roles_for, can_export
from app.services.report_errors import ExportFailedError, UnknownDataTypeError
from app.services.report_export import export_rows
from app.services.report_projection import column_specs, default_title

logger = logging.getLogger("catms.exports")

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/data-types", response_model=list[DataTypeOut])
def list_data_types(_user: CurrentUser = Depends(get_current_user)):
    return [
        DataTypeOut(
            data_type=data_type,
            title=default_title(data_type),
            columns=list(columns),
            allowed_roles=allowed_roles_for(data_type),
        )
        for data_type, columns in column_specs().items()
    ]


@router.get("/permissions", response_model=ExportPermissionOut)
def export_permission(
    data_type: DataType = Query(...),
    user: CurrentUser = Depends(get_current_user),
):
    allowed = allowed_roles_for(data_type)
    return ExportPermissionOut(
        data_type=data_type,
        can_export=can_export(user, allowed),
        allowed_roles=allowed,
    )


@router.post("/{fmt}")
def export_report(
    fmt: ExportFormat,
    payload: ExportRequest,
    user: CurrentUser = Depends(get_current_user),
):
    if not can_export(user, allowed_roles_for(payload.data_type)):
        logger.info(
            "Export denied: user_id=%s role=%s data_type=%s",
            user.user_id,
            user.role,
            payload.data_type.value,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if len(payload.rows) > settings.export_max_rows:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Too many rows to export ({len(payload.rows)}). Narrow your filters.",
        )
    try:
        export_file = export_rows(payload, fmt)
    except UnknownDataTypeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except ExportFailedError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    logger.info(
        "Export generated: user_id=%s data_type=%s format=%s rows=%d file=%s",
        user.user_id,
        payload.data_type.value,
        fmt.value,
        len(payload.rows),
        export_file.filename,
    )
    headers = {"Content-Disposition": export_file.content_disposition}
    return Response(content=export_file.content, media_type=export_file.media_type, headers=headers)
