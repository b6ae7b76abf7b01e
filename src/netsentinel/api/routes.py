"""REST API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from netsentinel.monitor.service import (
    AnalysisUnavailable,
    LogEntry,
    MonitorService,
    NetworkStats,
)
from netsentinel.network.models import Device

router = APIRouter(prefix="/api")


def get_monitor(request: Request) -> MonitorService:
    """Return the MonitorService created in the app lifespan."""
    return request.app.state.monitor


# Request/response models
class AutoAnalyzeRequest(BaseModel):
    enabled: bool


class StatusResponse(BaseModel):
    monitoring: bool
    auto_analyze: bool
    analyzing: bool
    subnet: str


class ReportResponse(BaseModel):
    report: str | None
    completed_at: datetime | None
    analyzing: bool


def _status(monitor: MonitorService) -> StatusResponse:
    return StatusResponse(
        monitoring=monitor.monitoring,
        auto_analyze=monitor.auto_analyze,
        analyzing=monitor.coordinator.in_flight,
        subnet=monitor.simulator.subnet,
    )


@router.get("/devices")
def list_devices(monitor: MonitorService = Depends(get_monitor)) -> list[Device]:
    return monitor.devices


@router.get("/events")
def list_events(
    limit: int = Query(50, ge=1),
    monitor: MonitorService = Depends(get_monitor),
) -> list[LogEntry]:
    return monitor.logs[:limit]


@router.get("/stats")
def network_stats(monitor: MonitorService = Depends(get_monitor)) -> NetworkStats:
    return monitor.stats()


@router.get("/status")
def monitor_status(monitor: MonitorService = Depends(get_monitor)) -> StatusResponse:
    return _status(monitor)


@router.get("/report")
def latest_report(monitor: MonitorService = Depends(get_monitor)) -> ReportResponse:
    coordinator = monitor.coordinator
    return ReportResponse(
        report=coordinator.latest_report,
        completed_at=coordinator.report_time,
        analyzing=coordinator.in_flight,
    )


# --- Monitoring controls ---


@router.post("/monitoring/start")
async def start_monitoring(monitor: MonitorService = Depends(get_monitor)) -> StatusResponse:
    await monitor.start()
    return _status(monitor)


@router.post("/monitoring/stop")
async def stop_monitoring(monitor: MonitorService = Depends(get_monitor)) -> StatusResponse:
    await monitor.stop()
    return _status(monitor)


@router.put("/auto-analyze")
def set_auto_analyze(
    request: AutoAnalyzeRequest,
    monitor: MonitorService = Depends(get_monitor),
) -> StatusResponse:
    monitor.set_auto_analyze(request.enabled)
    return _status(monitor)


@router.post("/analyze", status_code=202)
async def request_analysis(monitor: MonitorService = Depends(get_monitor)) -> StatusResponse:
    try:
        monitor.request_analysis()
    except AnalysisUnavailable as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _status(monitor)
