from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..deps import get_db, get_storage, require_admin
from ..errors import validate
from ..storage import AssetStorage, read_uploads

router = APIRouter(prefix="/api/categories", tags=["categories"])


async def _read_image(image: Optional[UploadFile]):
    pending = await read_uploads([image] if image is not None else [])
    return pending[0] if pending else None


@router.get("", response_model=schemas.CategoryList)
async def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "categories": crud.list_categories(db)}


@router.get("/{category_id}", response_model=schemas.CategoryEnvelope)
async def get_category(category_id: int, db: Session = Depends(get_db)):
    return {"success": True, "category": crud.get_category(db, category_id)}


@router.get("/{slug}/products", response_model=schemas.CategoryProductList)
async def list_category_products(
    slug: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=schemas.MAX_LIMIT),
    db: Session = Depends(get_db),
):
    category, result = crud.list_category_products(db, slug, page, limit)
    return {"success": True, "category": category, "products": result.items, "pagination": result.meta()}


@router.post("", response_model=schemas.CategoryEnvelope, status_code=201)
async def create_category(
    name: Optional[str] = Form(default=None),
    slug: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    data = validate(schemas.CategoryCreate, {"name": name, "slug": slug, "description": description})
    pending = await _read_image(image)
    category = crud.create_category(db, data, storage, pending)
    return {"success": True, "category": category}


@router.put("/{category_id}", response_model=schemas.CategoryEnvelope)
async def update_category(
    category_id: int,
    name: Optional[str] = Form(default=None),
    slug: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    data = validate(schemas.CategoryUpdate, {"name": name, "slug": slug, "description": description})
    pending = await _read_image(image)
    category = crud.update_category(db, category_id, data, storage, pending)
    return {"success": True, "category": category}


@router.delete("/{category_id}", response_model=schemas.Ack)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    crud.delete_category(db, category_id, storage)
    return {"success": True, "message": "Category deleted successfully"}
