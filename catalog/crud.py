import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .auth import hash_password, verify_password
from .errors import Conflict, Forbidden, InvalidCredentials, InvalidReference, NotFound
from .querying import Page, paginate, with_relations
from .storage import AssetStorage, PendingUpload
from .utils import sanitize_input, slugify

logger = logging.getLogger(__name__)


# Business rule: price stored rounded to 2 decimals, non-negative

def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _commit(db: Session, conflict_message: str = "Resource already exists"):
    # unique constraints back the check-then-act lookups below
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(conflict_message) from e


# -------------------- Users --------------------

def get_user(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def list_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.desc(), models.User.id.desc()).all()


def count_admins(db: Session) -> int:
    return db.query(models.User).filter(models.User.is_admin.is_(True)).count()


def _ensure_unique_user(db: Session, username: Optional[str] = None, email: Optional[str] = None):
    if username is not None and db.query(models.User).filter(models.User.username == username).first():
        raise Conflict("Username already exists")
    if email is not None and db.query(models.User).filter(models.User.email == email).first():
        raise Conflict("Email already exists")


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    _ensure_unique_user(db, data.username, data.email)
    user = models.User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        is_admin=data.is_admin,
    )
    db.add(user)
    _commit(db, "Username or email already exists")
    db.refresh(user)
    logger.info("Created user %s (admin=%s)", user.username, user.is_admin)
    return user


def update_user(db: Session, user_id: int, data: schemas.UserUpdate) -> models.User:
    user = get_user(db, user_id)
    if data.username is not None and data.username != user.username:
        _ensure_unique_user(db, username=data.username)
        user.username = data.username
    if data.email is not None and data.email != user.email:
        _ensure_unique_user(db, email=data.email)
        user.email = data.email
    if data.is_admin is not None and data.is_admin != user.is_admin:
        if not data.is_admin and count_admins(db) <= 1:
            raise Conflict("Cannot remove admin privileges from the last admin user")
        user.is_admin = data.is_admin
    # only rehash when a new password was supplied
    if data.password:
        user.password_hash = hash_password(data.password)
    _commit(db, "Username or email already exists")
    db.refresh(user)
    logger.info("Updated user %s", user.id)
    return user


def delete_user(db: Session, user_id: int):
    user = get_user(db, user_id)
    if user.is_admin and count_admins(db) <= 1:
        raise Conflict("Cannot delete the last admin user")
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)


def authenticate(db: Session, username: str, password: str) -> models.User:
    user = db.query(models.User).filter(models.User.username == username).first()
    # same message for unknown user and bad password
    if not verify_password(password, user.password_hash if user else None):
        raise InvalidCredentials("Invalid credentials", status_code=401)
    return user


def change_password(db: Session, user_id: int, acting: schemas.TokenUser, data: schemas.PasswordChange):
    user = get_user(db, user_id)
    if acting.id != user.id and not acting.is_admin:
        raise Forbidden("Not authorized to change this user's password")
    if not verify_password(data.current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")
    user.password_hash = hash_password(data.new_password)
    db.commit()
    logger.info("Password changed for user %s by user %s", user.id, acting.id)


# -------------------- Categories --------------------

def list_categories(db: Session) -> List[models.Category]:
    return db.query(models.Category).order_by(models.Category.name.asc(), models.Category.id.asc()).all()


def get_category(db: Session, category_id: int) -> models.Category:
    category = db.get(models.Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def get_category_by_slug(db: Session, slug: str) -> models.Category:
    category = db.query(models.Category).filter(models.Category.slug == slug).first()
    if not category:
        raise NotFound("Category not found")
    return category


def _ensure_unique_category_slug(db: Session, slug: str):
    if db.query(models.Category).filter(models.Category.slug == slug).first():
        raise Conflict("Category with this slug already exists")


def create_category(
    db: Session,
    data: schemas.CategoryCreate,
    storage: AssetStorage,
    image: Optional[PendingUpload] = None,
) -> models.Category:
    _ensure_unique_category_slug(db, data.slug)
    category = models.Category(name=data.name, slug=data.slug, description=data.description or None)
    if image is not None:
        category.image_url = storage.save("category", image)
    db.add(category)
    try:
        _commit(db, "Category with this slug already exists")
    except Conflict:
        storage.delete(category.image_url)
        raise
    db.refresh(category)
    logger.info("Created category %s", category.slug)
    return category


def list_category_products(db: Session, slug: str, page: int, limit: int):
    category = get_category_by_slug(db, slug)
    query = with_relations(db.query(models.Product)).filter(models.Product.category_id == category.id)
    order = (models.Product.created_at.desc(), models.Product.id.desc())
    return category, paginate(query, page, limit, order)


def update_category(
    db: Session,
    category_id: int,
    data: schemas.CategoryUpdate,
    storage: AssetStorage,
    image: Optional[PendingUpload] = None,
) -> models.Category:
    category = get_category(db, category_id)
    if data.slug is not None and data.slug != category.slug:
        _ensure_unique_category_slug(db, data.slug)
        category.slug = data.slug
    if data.name is not None:
        category.name = data.name
    if data.description is not None:
        category.description = data.description or None
    old_image = new_image = None
    if image is not None:
        old_image = category.image_url
        new_image = category.image_url = storage.save("category", image)
    try:
        _commit(db, "Category with this slug already exists")
    except Conflict:
        storage.delete(new_image)
        raise
    # the old file goes only once the new reference is stored
    if old_image:
        storage.delete(old_image)
    db.refresh(category)
    logger.info("Updated category %s", category.id)
    return category


def delete_category(db: Session, category_id: int, storage: AssetStorage):
    category = get_category(db, category_id)
    product_count = db.query(models.Product).filter(models.Product.category_id == category.id).count()
    if product_count > 0:
        raise Conflict(
            f"Cannot delete category with {product_count} products. Please move or delete the products first."
        )
    storage.delete(category.image_url)
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s", category_id)


# -------------------- Products --------------------

def get_product(db: Session, product_id: int) -> models.Product:
    product = with_relations(db.query(models.Product)).filter(models.Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")
    return product


def _slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.Product.id).filter(models.Product.slug == slug)
    if exclude_id is not None:
        query = query.filter(models.Product.id != exclude_id)
    return query.first() is not None


def _unique_product_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug, n = base, 2
    while _slug_taken(db, slug):
        slug = f"{base}-{n}"
        n += 1
    return slug


def _ensure_category(db: Session, category_id: int):
    if not db.get(models.Category, category_id):
        raise InvalidReference("Invalid category")


def _add_images(product: models.Product, urls: List[str], first_is_primary: bool):
    for index, url in enumerate(urls):
        product.images.append(models.ProductImage(image_url=url, is_primary=first_is_primary and index == 0))


def create_product(
    db: Session,
    data: schemas.ProductCreate,
    storage: AssetStorage,
    images: Optional[List[PendingUpload]] = None,
) -> models.Product:
    _ensure_category(db, data.category_id)
    if data.slug:
        if _slug_taken(db, data.slug):
            raise Conflict("Product with this slug already exists")
        slug = data.slug
    else:
        slug = _unique_product_slug(db, data.name)

    product = models.Product(
        name=data.name,
        slug=slug,
        model_number=data.model_number,
        category_id=data.category_id,
        description=data.description,
        features=data.features,
        specifications=data.specifications,
        price=round_amount(data.price) if data.price is not None else None,
    )
    urls = storage.save_all("product", images or [])
    _add_images(product, urls, first_is_primary=True)
    db.add(product)
    try:
        _commit(db, "Product with this slug already exists")
    except Conflict:
        storage.delete_all(urls)
        raise
    logger.info("Created product %s with %d images", product.slug, len(urls))
    return get_product(db, product.id)


def update_product(
    db: Session,
    product_id: int,
    data: schemas.ProductUpdate,
    storage: AssetStorage,
    images: Optional[List[PendingUpload]] = None,
    replace_images: bool = False,
) -> models.Product:
    product = get_product(db, product_id)
    if data.category_id is not None:
        _ensure_category(db, data.category_id)
        product.category_id = data.category_id
    if data.slug is not None and data.slug != product.slug:
        if _slug_taken(db, data.slug, exclude_id=product.id):
            raise Conflict("Product with this slug already exists")
        product.slug = data.slug
    for field in ("name", "model_number", "description", "features", "specifications"):
        value = getattr(data, field)
        if value is not None:
            setattr(product, field, value)
    if data.price is not None:
        product.price = round_amount(data.price)

    removed, urls = [], []
    if images:
        if replace_images:
            removed = [image.image_url for image in product.images]
            product.images.clear()
        urls = storage.save_all("product", images)
        _add_images(product, urls, first_is_primary=not product.images)
    # bump even when only images changed
    product.updated_at = models.utcnow()
    try:
        _commit(db, "Product with this slug already exists")
    except Conflict:
        storage.delete_all(urls)
        raise
    storage.delete_all(removed)
    logger.info("Updated product %s", product.id)
    return get_product(db, product.id)


def delete_product(db: Session, product_id: int, storage: AssetStorage):
    product = get_product(db, product_id)
    storage.delete_all(image.image_url for image in product.images)
    db.delete(product)
    db.commit()
    logger.info("Deleted product %s", product_id)


# -------------------- Contact messages --------------------

def create_message(db: Session, data: schemas.ContactCreate) -> models.ContactMessage:
    message = models.ContactMessage(
        name=sanitize_input(data.name),
        email=data.email,
        phone=sanitize_input(data.phone) or None,
        subject=sanitize_input(data.subject),
        message=sanitize_input(data.message),
        status="unread",
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Stored contact message %s", message.id)
    return message


def list_messages(db: Session, page: int, limit: int, status: Optional[str] = None) -> Page:
    query = db.query(models.ContactMessage)
    if status:
        query = query.filter(models.ContactMessage.status == status)
    order = (models.ContactMessage.created_at.desc(), models.ContactMessage.id.desc())
    return paginate(query, page, limit, order)


def get_message(db: Session, message_id: int, mark_read: bool = False) -> models.ContactMessage:
    message = db.get(models.ContactMessage, message_id)
    if not message:
        raise NotFound("Message not found")
    if mark_read and message.status == "unread":
        message.status = "read"
        db.commit()
        db.refresh(message)
    return message


def update_message(db: Session, message_id: int, data: schemas.MessageUpdate) -> models.ContactMessage:
    message = get_message(db, message_id)
    if data.status is not None:
        message.status = data.status
    db.commit()
    db.refresh(message)
    return message


def delete_message(db: Session, message_id: int):
    message = get_message(db, message_id)
    db.delete(message)
    db.commit()
    logger.info("Deleted contact message %s", message_id)
