"""
Category tree endpoints.
"""

from fastapi import APIRouter, Query, status

from notevault.deps import CurrentUser, DBSession
from notevault.schemas import ApiResponse, CategoryCreate, CategoryResponse, CategoryUpdate
from notevault.services import categories as category_service

router = APIRouter(prefix="/categories", tags=["categories"])


async def _category_response(db, category) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    response.path = await category_service.category_path(db, category)
    return response


@router.get("", response_model=ApiResponse[list[CategoryResponse]])
async def list_categories(
    user: CurrentUser,
    db: DBSession,
    parent_id: int | None = Query(default=None),
    roots_only: bool = Query(default=False),
):
    """All of the user's categories, or one level of the tree."""
    categories = await category_service.list_categories(db, user, parent_id=parent_id, roots_only=roots_only)
    return ApiResponse(data=[CategoryResponse.model_validate(category) for category in categories])


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, user: CurrentUser, db: DBSession):
    category = await category_service.create_category(db, user, body)
    response = await _category_response(db, category)
    await db.commit()
    return ApiResponse(message="Category created successfully", data=response)


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def get_category(category_id: int, user: CurrentUser, db: DBSession):
    category = await category_service.get_category(db, user, category_id)
    return ApiResponse(data=await _category_response(db, category))


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(category_id: int, body: CategoryUpdate, user: CurrentUser, db: DBSession):
    category = await category_service.get_category(db, user, category_id)
    category = await category_service.update_category(db, user, category, body)
    response = await _category_response(db, category)
    await db.commit()
    return ApiResponse(message="Category updated successfully", data=response)


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    category_id: int,
    user: CurrentUser,
    db: DBSession,
    cascade: bool = Query(default=False, description="Also delete all subcategories"),
):
    category = await category_service.get_category(db, user, category_id)
    moved = await category_service.delete_category(db, user, category, cascade=cascade)
    await db.commit()
    return ApiResponse(message=f"Category deleted successfully. {moved} notes moved to uncategorized.")
