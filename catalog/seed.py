"""Idempotent first-run data: an admin account, default categories and sample products."""
import logging

from sqlalchemy.orm import Session

from . import models
from .auth import hash_password
from .config import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder.jpg"

DEFAULT_CATEGORIES = [
    ("Digital Watch", "digital-watch", "Modern digital watches with multiple functions"),
    ("Quartz Watch", "quartz-watch", "Classic quartz watches for everyday wear"),
    ("Lady Watch", "lady-watch", "Elegant watches designed for women"),
    ("Mechanical Watch", "mechanical-watch", "Traditional mechanical watches with intricate movements"),
    ("Smart Watch", "smart-watch", "Advanced smartwatches with connectivity features"),
    ("Kids Watch", "kids-watch", "Fun and durable watches for children"),
    ("LED Watch", "led-watch", "Modern LED watches with unique displays"),
    ("Azan Watch", "azan-watch", "Specialized watches with prayer time reminders"),
]

SAMPLE_PRODUCTS = [
    {
        "name": "Digital Watch 1894",
        "slug": "digital-watch-1894",
        "model_number": "1894",
        "category": "digital-watch",
        "description": "A versatile digital timepiece with a clear display, comfortable strap "
                       "and multiple functions for everyday needs.",
        "features": "Digital display with backlight\nWater resistant up to 30m\nChronograph functionality\n"
                    "Date and day display\nAlarm function",
        "specifications": {
            "Case Material": "ABS Plastic",
            "Band Material": "Silicone",
            "Case Diameter": "42mm",
            "Water Resistance": "30m",
            "Movement": "Digital",
            "Battery": "CR2025",
        },
    },
    {
        "name": "Quartz Watch 1961",
        "slug": "quartz-watch-1961",
        "model_number": "1961",
        "category": "quartz-watch",
        "description": "Timeless quartz watch with a classic design, suited to casual and formal occasions.",
        "features": "Analog display with precise quartz movement\nStainless steel case\nDate display\n"
                    "Durable mineral glass",
        "specifications": {
            "Case Material": "Stainless Steel",
            "Band Material": "Stainless Steel",
            "Case Diameter": "40mm",
            "Water Resistance": "30m",
            "Movement": "Quartz",
            "Battery": "SR626SW",
        },
    },
    {
        "name": "Lady Watch 9222",
        "slug": "lady-watch-9222",
        "model_number": "9222",
        "category": "lady-watch",
        "description": "Slim, elegant watch designed for women with reliable quartz performance.",
        "features": "Elegant analog display\nSlim stainless steel case\nScratch-resistant mineral glass",
        "specifications": {
            "Case Material": "Stainless Steel",
            "Band Material": "Stainless Steel",
            "Case Diameter": "32mm",
            "Water Resistance": "30m",
            "Movement": "Quartz",
            "Battery": "SR626SW",
        },
    },
]


def seed_database(db: Session, settings: Settings):
    if db.query(models.User).count() == 0:
        logger.info("Creating admin user %s", settings.admin_username)
        db.add(models.User(
            username=settings.admin_username,
            email=settings.admin_email,
            password_hash=hash_password(settings.admin_password),
            is_admin=True,
        ))
        db.commit()

    if db.query(models.Category).count() == 0:
        logger.info("Creating %d default categories", len(DEFAULT_CATEGORIES))
        db.add_all(
            models.Category(name=name, slug=slug, description=description)
            for name, slug, description in DEFAULT_CATEGORIES
        )
        db.commit()

    if db.query(models.Product).count() == 0:
        logger.info("Creating %d sample products", len(SAMPLE_PRODUCTS))
        category_ids = {c.slug: c.id for c in db.query(models.Category)}
        for sample in SAMPLE_PRODUCTS:
            fields = {k: v for k, v in sample.items() if k != "category"}
            product = models.Product(category_id=category_ids.get(sample["category"]), **fields)
            product.images.append(models.ProductImage(image_url=PLACEHOLDER_IMAGE, is_primary=True))
            db.add(product)
        db.commit()
