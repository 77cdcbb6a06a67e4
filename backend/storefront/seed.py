"""
Sample catalog inserted into an empty database at startup (SEED_CATALOG=true).
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront import models

logger = logging.getLogger(__name__)


def _img(photo: str) -> str:
    return f"https://images.unsplash.com/{photo}?w=400"


SAMPLE_PRODUCTS = [
    dict(name="MacBook Pro 16", brand="Apple", price="2499.99", original_price="2799.99",
         category="Laptops", description="Powerful laptop with M3 Pro chip, 16GB RAM, 512GB SSD",
         image_url=_img("photo-1517336714731-489689fd1ca8"), stock=15, rating="4.9", review_count=234,
         is_featured=True),
    dict(name="iPhone 15 Pro", brand="Apple", price="999.99",
         category="Smartphones", description="Latest iPhone with A17 Pro chip and 256GB storage",
         image_url=_img("photo-1592286927505-bf92e143e9d6"), stock=30, rating="4.8", review_count=512,
         is_featured=True),
    dict(name="AirPods Pro", brand="Apple", price="249.99", original_price="279.99",
         category="Audio", description="Active noise cancellation with spatial audio",
         image_url=_img("photo-1606841837239-c5a1a4a07af7"), stock=50, rating="4.7", review_count=892),
    dict(name="Dell XPS 15", brand="Dell", price="1799.99",
         category="Laptops", description="Premium ultrabook with 4K OLED display and Intel i7",
         image_url=_img("photo-1593642632823-8f785ba67e45"), stock=12, rating="4.6", review_count=156,
         is_featured=True),
    dict(name="Samsung Galaxy S24", brand="Samsung", price="899.99",
         category="Smartphones", description="Flagship smartphone with Snapdragon 8 Gen 3",
         image_url=_img("photo-1610945415295-d9bbf067e59c"), stock=25, rating="4.7", review_count=423,
         is_featured=True),
    dict(name="Sony WH-1000XM5", brand="Sony", price="399.99", original_price="449.99",
         category="Audio", description="Premium noise cancelling headphones",
         image_url=_img("photo-1505740420928-5e560c06d30e"), stock=40, rating="4.9", review_count=678,
         is_featured=True),
    dict(name="iPad Pro 12.9", brand="Apple", price="1099.99",
         category="Tablets", description="M2 chip with Liquid Retina XDR display",
         image_url=_img("photo-1544244015-0df4b3ffc6b0"), stock=20, rating="4.8", review_count=345,
         is_featured=True),
    dict(name="Logitech MX Master 3S", brand="Logitech", price="99.99",
         category="Accessories", description="Wireless ergonomic mouse with 8K DPI",
         image_url=_img("photo-1527864550417-7fd91fc51a46"), stock=60, rating="4.7", review_count=789),
    dict(name="Samsung Odyssey G9", brand="Samsung", price="1299.99", original_price="1599.99",
         category="Monitors", description="49-inch ultra-wide curved gaming monitor",
         image_url=_img("photo-1527443224154-c4a3942d3acf"), stock=8, rating="4.8", review_count=234,
         is_featured=True),
    dict(name="Nintendo Switch OLED", brand="Nintendo", price="349.99",
         category="Gaming", description="7-inch OLED gaming console",
         image_url=_img("photo-1578303512597-81e6cc155b3e"), stock=35, rating="4.6", review_count=567,
         is_featured=True),
    dict(name="Canon EOS R6 Mark II", brand="Canon", price="2499.99",
         category="Cameras", description="Full-frame mirrorless camera with 4K video",
         image_url=_img("photo-1606980395156-2e63190625ed"), stock=6, rating="4.9", review_count=123,
         is_featured=True),
    dict(name="Keychron K2 Pro", brand="Keychron", price="109.99",
         category="Accessories", description="Wireless mechanical keyboard with RGB",
         image_url=_img("photo-1587829741301-dc798b83add3"), stock=45, rating="4.5", review_count=432),
]

_DECIMAL_FIELDS = ("price", "original_price", "rating")


def seed_catalog(db: Session) -> int:
    """Insert SAMPLE_PRODUCTS if the catalog is empty. Returns rows inserted."""
    existing = db.query(models.Product).count()
    if existing:
        logger.info("Database already contains %d products", existing)
        return 0

    for sample in SAMPLE_PRODUCTS:
        fields = {
            key: Decimal(value) if key in _DECIMAL_FIELDS else value
            for key, value in sample.items()
        }
        db.add(models.Product(**fields))
    db.commit()

    logger.info("Seeded %d products to database", len(SAMPLE_PRODUCTS))
    return len(SAMPLE_PRODUCTS)
