"""Source registry endpoints (one router per catalog) and config import/export."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from kerkerker.application.use_cases.source_admin import (
    CatalogBundle,
    SourceAdminUseCase,
)
from kerkerker.domain.entities.sources import Catalog
from kerkerker.interfaces.api.responses import HANDLED_ERRORS, error_for, ok
from kerkerker.interfaces.api.sources.schemas import (
    ConfigBundleBody,
    ReorderBody,
    ReplaceSourcesBody,
    SelectBody,
    SourceIn,
    SourcePatch,
    source_to_wire,
)
from kerkerker.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _admin(request: Request) -> SourceAdminUseCase:
    state = cast(AppState, request.app.state)
    return SourceAdminUseCase(registries=state.registries)


def build_sources_router(catalog: Catalog) -> APIRouter:
    """Router for ``/{catalog}-sources``; VOD and shorts are identical."""
    router = APIRouter(prefix=f"/{catalog}-sources", tags=[f"{catalog}-sources"])

    @router.get("")
    async def list_sources(
        request: Request,
        all: bool = Query(default=False, description="Include disabled sources."),
    ) -> JSONResponse:
        try:
            view = await _admin(request).view(catalog, include_disabled=all)
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(
            {
                "sources": [source_to_wire(s) for s in view.sources],
                "selected": source_to_wire(view.selected) if view.selected else None,
            }
        )

    @router.post("")
    async def replace_sources(request: Request) -> JSONResponse:
        try:
            body = ReplaceSourcesBody.model_validate(await request.json())
            stored = await _admin(request).replace(
                catalog,
                [s.to_descriptor() for s in body.sources],
                selected=body.selected,
            )
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok({"count": len(stored)}, message="saved")

    @router.put("")
    async def select_source(request: Request) -> JSONResponse:
        try:
            body = SelectBody.model_validate(await request.json())
            selected = await _admin(request).select(catalog, body.selected)
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(
            {"selected": source_to_wire(selected) if selected else None},
            message="updated",
        )

    @router.delete("")
    async def clear_sources(request: Request) -> JSONResponse:
        try:
            await _admin(request).registry(catalog).clear()
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(message="cleared")

    @router.post("/items")
    async def add_source(request: Request) -> JSONResponse:
        try:
            body = SourceIn.model_validate(await request.json())
            added = await _admin(request).registry(catalog).add(body.to_descriptor())
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(source_to_wire(added), message="added")

    @router.patch("/items/{key}")
    async def update_source(request: Request, key: str) -> JSONResponse:
        try:
            body = SourcePatch.model_validate(await request.json())
            updated = await _admin(request).registry(catalog).update(
                key, body.to_changes()
            )
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(source_to_wire(updated), message="updated")

    @router.delete("/items/{key}")
    async def delete_source(request: Request, key: str) -> JSONResponse:
        try:
            await _admin(request).registry(catalog).delete(key)
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok(message="deleted")

    @router.post("/reorder")
    async def reorder_sources(request: Request) -> JSONResponse:
        try:
            body = ReorderBody.model_validate(await request.json())
            ordered = await _admin(request).registry(catalog).reorder(body.keys)
        except HANDLED_ERRORS as e:
            return error_for(e)
        return ok({"sources": [source_to_wire(s) for s in ordered]})

    return router


vod_router = build_sources_router("vod")
shorts_router = build_sources_router("shorts")

config_router = APIRouter(prefix="/config", tags=["config"])


@config_router.get("/export")
async def export_config(request: Request) -> JSONResponse:
    try:
        bundles = await _admin(request).export_config()
    except HANDLED_ERRORS as e:
        return error_for(e)
    return ok(
        {
            "vodSources": [source_to_wire(s) for s in bundles["vod"].sources],
            "vodSelected": bundles["vod"].selected,
            "shortsSources": [source_to_wire(s) for s in bundles["shorts"].sources],
            "shortsSelected": bundles["shorts"].selected,
        }
    )


@config_router.post("/import")
async def import_config(request: Request) -> JSONResponse:
    try:
        body = ConfigBundleBody.model_validate(await request.json())
        report = await _admin(request).import_config(
            {
                "vod": CatalogBundle(
                    sources=[s.to_descriptor() for s in body.vod_sources],
                    selected=body.vod_selected,
                ),
                "shorts": CatalogBundle(
                    sources=[s.to_descriptor() for s in body.shorts_sources],
                    selected=body.shorts_selected,
                ),
            },
            mode=body.mode,
        )
    except HANDLED_ERRORS as e:
        return error_for(e)
    return ok(report.to_payload(), message="imported")
