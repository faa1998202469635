"""Filter, sort and paginate catalog queries."""
import math
from typing import Any, List, NamedTuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from . import models
from .schemas import ProductListParams


class Page(NamedTuple):
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict:
        return {"total": self.total, "page": self.page, "limit": self.limit, "totalPages": self.total_pages}


def paginate(query: Query, page: int, limit: int, order_by=()) -> Page:
    # count over the filtered query only; ordering and eager loads do not change it
    total = query.order_by(None).count()
    offset = (page - 1) * limit
    if offset >= total:
        # past the end; also keeps huge offsets away from the database
        return Page(items=[], total=total, page=page, limit=limit)
    rows = query.order_by(*order_by).offset(offset).limit(limit).all()
    return Page(items=rows, total=total, page=page, limit=limit)


def product_ordering(sort: str):
    Product = models.Product
    if sort == "name-asc":
        return (Product.name.asc(), Product.id.asc())
    if sort == "name-desc":
        return (Product.name.desc(), Product.id.desc())
    if sort == "oldest":
        return (Product.created_at.asc(), Product.id.asc())
    # newest, and anything we do not recognise
    return (Product.created_at.desc(), Product.id.desc())


def with_relations(query: Query) -> Query:
    return query.options(selectinload(models.Product.category), selectinload(models.Product.images))


def build_product_query(db: Session, params: ProductListParams) -> Query:
    query = db.query(models.Product)
    if params.category:
        query = query.join(models.Category, models.Product.category_id == models.Category.id).filter(
            models.Category.slug == params.category
        )
    if params.search:
        pattern = f"%{params.search}%"
        query = query.filter(
            or_(
                models.Product.name.ilike(pattern),
                models.Product.model_number.ilike(pattern),
                models.Product.description.ilike(pattern),
            )
        )
    return query


def list_products(db: Session, params: ProductListParams) -> Page:
    query = with_relations(build_product_query(db, params))
    return paginate(query, params.page, params.limit, product_ordering(params.sort))
