from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from src.instrumentation.model import InstrumentationError, InstrumentedApplication

from .config import PatcherConfig
from .workload import WorkloadError, instrument_manifest, manifest_is_instrumented

HTTP_UNPROCESSABLE = 422


class WorkloadPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    manifest: Dict[str, Any] = Field(
        ..., description="Workload manifest whose pod template is inspected or instrumented"
    )
    instrumented_application: Dict[str, Any] = Field(
        ...,
        alias="instrumentedApplication",
        description="InstrumentedApplication object listing the detected languages",
    )


class InstrumentPayload(WorkloadPayload):
    force: bool = Field(
        default=False,
        description="Patch even if the pod template already carries instrumentation",
    )


class InstrumentResponse(BaseModel):
    patch: List[Dict[str, Any]] = Field(
        ..., description="JSON Patch operations that instrument the manifest"
    )
    instrumented: bool = Field(..., description="Whether instrumentation is present after patching")
    outcomes: List[Dict[str, Any]] = Field(
        default_factory=list, description="Per-declaration patch outcome"
    )


class InstrumentedResponse(BaseModel):
    instrumented: bool


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pod Instrumentor",
        description="Injects auto-instrumentation sidecars into workload pod templates.",
        version="0.1.0",
    )

    @app.post("/instrument", response_model=InstrumentResponse)
    def instrument(
        payload: InstrumentPayload,
        config: PatcherConfig = Depends(get_patcher_config),
    ) -> InstrumentResponse:
        application = _parse_application(payload.instrumented_application)
        try:
            result = instrument_manifest(
                payload.manifest, application, config=config, force=payload.force
            )
            instrumented = manifest_is_instrumented(result.manifest, application, config=config)
        except WorkloadError as exc:
            raise HTTPException(
                status_code=HTTP_UNPROCESSABLE,
                detail=str(exc),
            ) from exc
        return InstrumentResponse(
            patch=result.patch,
            instrumented=instrumented,
            outcomes=result.report.to_list(),
        )

    @app.post("/is-instrumented", response_model=InstrumentedResponse)
    def is_instrumented(
        payload: WorkloadPayload,
        config: PatcherConfig = Depends(get_patcher_config),
    ) -> InstrumentedResponse:
        application = _parse_application(payload.instrumented_application)
        try:
            instrumented = manifest_is_instrumented(payload.manifest, application, config=config)
        except WorkloadError as exc:
            raise HTTPException(
                status_code=HTTP_UNPROCESSABLE,
                detail=str(exc),
            ) from exc
        return InstrumentedResponse(instrumented=instrumented)

    return app


@lru_cache()
def get_patcher_config() -> PatcherConfig:
    return PatcherConfig.from_env()


def _parse_application(data: Dict[str, Any]) -> InstrumentedApplication:
    try:
        return InstrumentedApplication.from_dict(data)
    except InstrumentationError as exc:
        raise HTTPException(
            status_code=HTTP_UNPROCESSABLE,
            detail=str(exc),
        ) from exc


app = create_app()


__all__ = [
    "app",
    "create_app",
    "get_patcher_config",
    "InstrumentPayload",
    "InstrumentResponse",
    "InstrumentedResponse",
    "WorkloadPayload",
]
