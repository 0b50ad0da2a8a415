"""Capacity summary and forecast endpoints."""

import asyncio
import time
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.dependencies import Viewer, get_viewer, verify_api_key
from api.logging import RequestLog, log_request
from api.models.responses import (
    CapacityForecastResponse,
    CapacitySummaryResponse,
    ErrorCodes,
)
from core.config import MAX_FORECAST_WEEKS
from services.capacity import get_capacity_forecast, get_capacity_summary

router = APIRouter(prefix="/api/capacity", dependencies=[Depends(verify_api_key)])

BOOLEAN_VALUES = {"true", "false", "1", "0"}
TRUTHY_VALUES = {"true", "1", "yes", "on"}


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def coerce_boolean(value: str | None) -> bool:
    return bool(value) and value.strip().lower() in TRUTHY_VALUES


def check_iso8601(name: str, value: str | None, errors: list[str]):
    if value is None:
        return
    try:
        datetime.fromisoformat(value.strip())
    except ValueError:
        errors.append(f"{name} must be a valid ISO8601 date")


def check_boolean(name: str, value: str | None, errors: list[str]):
    if value is not None and value.strip().lower() not in BOOLEAN_VALUES:
        errors.append(f"{name} must be a boolean")


def parse_int(
    name: str,
    value: str | None,
    errors: list[str],
    minimum: int = 1,
    maximum: int | None = None,
    message: str | None = None,
) -> int | None:
    """Parse an integer query parameter, recording an error if out of range."""
    if value is None:
        return None
    text = value.strip()
    parsed = int(text) if text.lstrip("-").isdigit() else None
    if parsed is None or parsed < minimum or (maximum is not None and parsed > maximum):
        errors.append(message or f"{name} must be a positive integer")
        return None
    return parsed


def raise_if_invalid(errors: list[str]):
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Validation failed",
                "code": ErrorCodes.VALIDATION_ERROR,
                "details": errors,
            },
        )


def resolve_user_scope(viewer: Viewer, requested_user_id: int | None) -> int | None:
    """
    Effective user filter for the caller.

    Admins and supervisors see whoever they ask for (everyone by default);
    anyone else only ever sees themselves.
    """
    if viewer.can_view_all:
        return requested_user_id
    if requested_user_id and requested_user_id != viewer.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Insufficient permissions to view other users",
                "code": ErrorCodes.FORBIDDEN,
                "details": [],
            },
        )
    return viewer.user_id


def record_http_error(request_log: RequestLog, exc: HTTPException):
    request_log.status_code = exc.status_code
    if isinstance(exc.detail, dict):
        request_log.error_code = exc.detail.get("code")
        request_log.error_message = exc.detail.get("error")
        for detail in exc.detail.get("details", []):
            request_log.details.append(("validation_error", detail))
    else:
        request_log.error_message = str(exc.detail)


def write_log(request_log: RequestLog, start_time: float):
    request_log.processing_time_ms = int((time.time() - start_time) * 1000)
    try:
        log_request(request_log)
    except Exception:
        # Don't fail the request if logging fails
        pass


@router.get("/summary", response_model=CapacitySummaryResponse)
async def capacity_summary(
    request: Request,
    date_from: Annotated[str | None, Query(alias="from", description="Period start (ISO 8601)")] = None,
    date_to: Annotated[str | None, Query(alias="to", description="Period end (ISO 8601)")] = None,
    user_id: Annotated[str | None, Query(alias="userId", description="Single engineer id")] = None,
    me: Annotated[str | None, Query(description="Only the caller's own summary")] = None,
    viewer: Viewer = Depends(get_viewer),
):
    """
    Logged hours against monthly capacity per engineer.

    Defaults to the current calendar month when no period is given.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/api/capacity/summary",
        method="GET",
        client_ip=get_client_ip(request),
        query_string=request.url.query or None,
    )

    try:
        errors: list[str] = []
        check_iso8601("from", date_from, errors)
        check_iso8601("to", date_to, errors)
        requested_user_id = parse_int("userId", user_id, errors)
        check_boolean("me", me, errors)
        raise_if_invalid(errors)

        if coerce_boolean(me):
            requested_user_id = viewer.user_id
        effective_user_id = resolve_user_scope(viewer, requested_user_id)
        request_log.user_id = effective_user_id

        summary = await asyncio.to_thread(
            get_capacity_summary, date_from, date_to, effective_user_id
        )

        request_log.status_code = 200
        request_log.members_returned = len(summary.members)
        request_log.total_hours = summary.team_totals.logged_hours
        return summary.to_dict()

    except HTTPException as e:
        record_http_error(request_log, e)
        raise

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to load capacity summary",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        write_log(request_log, start_time)


@router.get(
    "/forecast",
    response_model=CapacityForecastResponse,
    response_model_exclude_none=True,
)
async def capacity_forecast(
    request: Request,
    start: Annotated[str | None, Query(description="Any date in the first forecast week (ISO 8601)")] = None,
    weeks: Annotated[str | None, Query(description="Number of weeks, 1-8")] = None,
    user_id: Annotated[str | None, Query(alias="userId", description="Single engineer id")] = None,
    include_project_mix: Annotated[
        str | None, Query(alias="includeProjectMix", description="Add top projects per allocation")
    ] = None,
    viewer: Viewer = Depends(get_viewer),
):
    """
    Projected weekly load per engineer from open task estimates.

    Starts from next week (or this week on Monday mornings) unless a start
    date is given.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/api/capacity/forecast",
        method="GET",
        client_ip=get_client_ip(request),
        query_string=request.url.query or None,
    )

    try:
        errors: list[str] = []
        check_iso8601("start", start, errors)
        week_count = parse_int(
            "weeks",
            weeks,
            errors,
            maximum=MAX_FORECAST_WEEKS,
            message=f"weeks must be between 1 and {MAX_FORECAST_WEEKS}",
        )
        requested_user_id = parse_int("userId", user_id, errors)
        check_boolean("includeProjectMix", include_project_mix, errors)
        raise_if_invalid(errors)

        effective_user_id = resolve_user_scope(viewer, requested_user_id)
        request_log.user_id = effective_user_id

        forecast = await asyncio.to_thread(
            get_capacity_forecast,
            start,
            week_count,
            effective_user_id,
            coerce_boolean(include_project_mix),
        )

        allocations = [allocation for week in forecast.weeks for allocation in week.allocations]
        request_log.status_code = 200
        request_log.members_returned = len({allocation.user_id for allocation in allocations})
        request_log.total_hours = round(sum(allocation.hours for allocation in allocations), 2)
        return forecast.to_dict()

    except HTTPException as e:
        record_http_error(request_log, e)
        raise

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Failed to load capacity forecast",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        write_log(request_log, start_time)
