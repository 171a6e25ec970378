from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from admin_console.api.v1.schemas import CategoryNameSchema, CategorySchema, CategoryStatusSchema
from admin_console.application.exceptions import (
    CategoryNotFoundError,
    CategoryValidationError,
    DocumentStoreError,
)
from admin_console.application.use_cases.category_admin import CategoryAdminUseCase
from admin_console.wiring.dependencies import get_category_admin

router = APIRouter()


@router.post("", response_model=CategorySchema, status_code=201)
async def create_category(
    req: CategoryNameSchema,
    uc: CategoryAdminUseCase = Depends(get_category_admin),
):
    try:
        category = await uc.create_category(req.name)
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DocumentStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return CategorySchema.from_entity(category)


@router.patch("/{category_id}", response_model=CategorySchema)
async def update_category(
    category_id: str,
    req: CategoryNameSchema,
    uc: CategoryAdminUseCase = Depends(get_category_admin),
):
    try:
        category = await uc.update_category(category_id, req.name)
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DocumentStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return CategorySchema.from_entity(category)


@router.post("/{category_id}/status", status_code=204)
async def set_category_status(
    category_id: str,
    req: CategoryStatusSchema,
    uc: CategoryAdminUseCase = Depends(get_category_admin),
) -> Response:
    try:
        await uc.toggle_category_status(category_id, req.is_active)
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DocumentStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return Response(status_code=204)


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    uc: CategoryAdminUseCase = Depends(get_category_admin),
) -> Response:
    try:
        await uc.delete_category(category_id)
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DocumentStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return Response(status_code=204)
