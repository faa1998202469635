from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from .. import crud, querying, schemas
from ..deps import get_db, get_storage, require_admin
from ..errors import ValidationFailed, validate
from ..storage import AssetStorage, read_uploads

router = APIRouter(prefix="/api/products", tags=["products"])

MAX_IMAGES = 10


async def _read_images(images: Optional[List[UploadFile]]):
    if images and len(images) > MAX_IMAGES:
        raise ValidationFailed.single("images", f"At most {MAX_IMAGES} images can be uploaded at once")
    return await read_uploads(images)


@router.get("", response_model=schemas.ProductList)
async def list_products(
    category: Optional[str] = Query(default=None, max_length=100),
    search: Optional[str] = Query(default=None, max_length=100),
    sort: str = Query(default="newest"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=schemas.MAX_LIMIT),
    db: Session = Depends(get_db),
):
    params = schemas.ProductListParams(category=category, search=search, sort=sort, page=page, limit=limit)
    result = querying.list_products(db, params)
    return {"success": True, "products": result.items, "pagination": result.meta()}


@router.get("/{product_id}", response_model=schemas.ProductEnvelope)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    return {"success": True, "product": crud.get_product(db, product_id)}


@router.post("", response_model=schemas.ProductEnvelope, status_code=201)
async def create_product(
    name: Optional[str] = Form(default=None),
    slug: Optional[str] = Form(default=None),
    model_number: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    features: Optional[str] = Form(default=None),
    specifications: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    images: Optional[List[UploadFile]] = File(default=None),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    data = validate(schemas.ProductCreate, {
        "name": name,
        "slug": slug,
        "model_number": model_number,
        "category_id": category_id,
        "description": description,
        "features": features,
        "specifications": specifications,
        "price": price,
    })
    pending = await _read_images(images)
    product = crud.create_product(db, data, storage, pending)
    return {"success": True, "product": product}


@router.put("/{product_id}", response_model=schemas.ProductEnvelope)
async def update_product(
    product_id: int,
    name: Optional[str] = Form(default=None),
    slug: Optional[str] = Form(default=None),
    model_number: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    features: Optional[str] = Form(default=None),
    specifications: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    replace_images: bool = Form(default=False),
    images: Optional[List[UploadFile]] = File(default=None),
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    data = validate(schemas.ProductUpdate, {
        "name": name,
        "slug": slug,
        "model_number": model_number,
        "category_id": category_id,
        "description": description,
        "features": features,
        "specifications": specifications,
        "price": price,
    })
    pending = await _read_images(images)
    product = crud.update_product(db, product_id, data, storage, pending, replace_images=replace_images)
    return {"success": True, "product": product}


@router.delete("/{product_id}", response_model=schemas.Ack)
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    storage: AssetStorage = Depends(get_storage),
    _admin: schemas.TokenUser = Depends(require_admin),
):
    crud.delete_product(db, product_id, storage)
    return {"success": True, "message": "Product deleted successfully"}
