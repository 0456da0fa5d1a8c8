from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request

from algorithms.spatial import guide_region_from_config
from models.guide import GuideRegion
from models.scan_state import ScanSnapshot
from observation.viewport import MutableViewport
from pipeline.engine import ScanOrchestrator
from ..api_models import (
    HealthResponse,
    ResultsResponse,
    ScanStateResponse,
    ViewportRequest,
    ViewportResponse,
)

# Handlers are async: control calls must run on the scan loop's event loop.
router = APIRouter()


def _orchestrator(request: Request) -> ScanOrchestrator:
    return request.app.state.orchestrator


def _region_dict(region: Optional[GuideRegion]) -> Optional[Dict[str, Any]]:
    return region.to_dict() if region is not None else None


def _state_response(orchestrator: ScanOrchestrator, snapshot: ScanSnapshot) -> Dict[str, Any]:
    return {
        **snapshot.state.to_dict(),
        "unique_count": snapshot.unique_count,
        "cooldown_entries": len(orchestrator.cooldown),
        "stats": snapshot.stats.to_dict(),
        "guide_region": _region_dict(snapshot.guide_region),
    }


def _compute_warnings(source_open: bool, guide_enabled: bool, guide_measured: bool,
                      decode_errors: int, cycles: int) -> List[str]:
    """
    Warning flags for the health endpoint.

    - camera_offline: capture source not open
    - guide_unmeasured: guide enabled but no viewport size reported yet
    - decode_failing: more than half of the cycles so far ended in a decoder error
    """
    warnings: List[str] = []
    if not source_open:
        warnings.append("camera_offline")
    if guide_enabled and not guide_measured:
        warnings.append("guide_unmeasured")
    if cycles > 0 and decode_errors * 2 > cycles:
        warnings.append("decode_failing")
    return warnings


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    orchestrator = _orchestrator(request)
    snapshot = orchestrator.snapshot()
    viewport = orchestrator.viewport
    measured = viewport is not None and viewport.get_container_size() is not None
    warnings = _compute_warnings(
        source_open=orchestrator.source.is_open,
        guide_enabled=orchestrator.config.guide.enabled,
        guide_measured=measured,
        decode_errors=snapshot.stats.decode_errors,
        cycles=snapshot.stats.cycles,
    )
    if "camera_offline" in warnings:
        status = "offline"
    elif warnings:
        status = "degraded"
    else:
        status = "running"
    return {
        "status": status,
        "source_open": orchestrator.source.is_open,
        "mode": snapshot.state.mode.value,
        "warnings": warnings,
        "reaper_sweeps": orchestrator.reaper.sweeps,
        "timestamp": time.time(),
    }


@router.get("/scan/state", response_model=ScanStateResponse)
async def scan_state(request: Request):
    orchestrator = _orchestrator(request)
    return _state_response(orchestrator, orchestrator.snapshot())


@router.get("/scan/results", response_model=ResultsResponse)
async def scan_results(request: Request):
    snapshot = _orchestrator(request).snapshot()
    return {
        "count": snapshot.unique_count,
        "results": [r.to_dict() for r in snapshot.results],
    }


@router.post("/scan/start", response_model=ScanStateResponse)
async def scan_start(request: Request):
    orchestrator = _orchestrator(request)
    if not orchestrator.source.is_open:
        raise HTTPException(status_code=503, detail="Capture source is not open")
    orchestrator.start()
    return _state_response(orchestrator, orchestrator.snapshot())


@router.post("/scan/stop", response_model=ScanStateResponse)
async def scan_stop(request: Request):
    orchestrator = _orchestrator(request)
    orchestrator.stop()
    return _state_response(orchestrator, orchestrator.snapshot())


@router.post("/scan/reset", response_model=ScanStateResponse)
async def scan_reset(request: Request):
    orchestrator = _orchestrator(request)
    orchestrator.reset()
    return _state_response(orchestrator, orchestrator.snapshot())


@router.put("/viewport", response_model=ViewportResponse)
async def update_viewport(request: Request, body: ViewportRequest):
    """Report the on-screen container size (on resize / orientation change)."""
    orchestrator = _orchestrator(request)
    viewport = orchestrator.viewport
    if not isinstance(viewport, MutableViewport):
        raise HTTPException(status_code=409, detail="Viewport size is fixed by configuration")
    viewport.update(body.width, body.height)

    guide_cfg = orchestrator.config.guide
    region = guide_region_from_config(guide_cfg, body.width, body.height) if guide_cfg.enabled else None
    return {"width": body.width, "height": body.height, "guide_region": _region_dict(region)}


@router.get("/config")
async def get_config(request: Request):
    return _orchestrator(request).config.to_dict()
