# backend/populate_db.py
"""Seeds the catalogue with the Ninehood range and, optionally, an admin account.

    python populate_db.py            # replace products
    ADMIN_EMAIL=... ADMIN_PASSWORD=... python populate_db.py
"""
import logging
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

from database import SessionLocal, init_db
from models.product import Product, ProductCategory
from models.users import User
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

TEE_DESCRIPTION = "100% Cotton • Bio Washed • Silicon Washed • French Terry Finish Inside • 240 GSM"
TEE_SIZES = ["XS", "S", "M", "L", "XL", "XXL"]
CDN = "https://res.cloudinary.com/dhi41qihj/image/upload"

PRODUCTS = [
    {
        "name": "NINEHOOD BASIC TEE - BLACK", "price": 999, "category": ProductCategory.MEN,
        "images": [f"{CDN}/v1760878912/7_q2ttva.png", f"{CDN}/v1760878911/8_nnqi64.png", f"{CDN}/v1760878912/9_tymgwg.png"],
        "badge": "NEW", "description": TEE_DESCRIPTION, "stock": 50, "sizes": TEE_SIZES,
    },
    {
        "name": "NINEHOOD BASIC TEE - WHITE", "price": 999, "category": ProductCategory.MEN,
        "images": [f"{CDN}/v1760878911/10_o948qh.png", f"{CDN}/v1760878911/11_v99m5g.png", f"{CDN}/v1760878912/12_o5zzjm.png"],
        "badge": "NEW", "description": TEE_DESCRIPTION, "stock": 50, "sizes": TEE_SIZES,
    },
    {
        "name": "NINEHOOD BASIC TEE - OLIVE GREEN", "price": 999, "category": ProductCategory.MEN,
        "images": [f"{CDN}/v1760878912/13_by38h2.png", f"{CDN}/v1760878912/14_kcmg4u.png", f"{CDN}/v1760878913/15_ahmrrz.png"],
        "badge": "NEW", "description": TEE_DESCRIPTION, "stock": 50, "sizes": TEE_SIZES,
    },
    {"name": "Street Sneakers", "price": 3499, "category": ProductCategory.FOOTWEAR, "badge": "HOT",
     "stock": 30, "sizes": ["6", "7", "8", "9", "10"]},
    {"name": "Urban Cap", "price": 799, "category": ProductCategory.ACCESSORIES, "stock": 100},
    {"name": "Tech Backpack", "price": 2499, "category": ProductCategory.ACCESSORIES, "badge": "SALE", "stock": 25},
    {"name": "Cargo Pants", "price": 2799, "category": ProductCategory.MEN, "stock": 40,
     "sizes": ["28", "30", "32", "34", "36"]},
]


def seed_products(db: Session) -> int:
    """Replaces the whole catalogue; returns the number of products inserted."""
    deleted = db.query(Product).delete()
    db.add_all(Product(**data) for data in PRODUCTS)
    db.commit()
    logger.info("Removed %s products, inserted %s", deleted, len(PRODUCTS))
    return len(PRODUCTS)


def ensure_admin(db: Session, email: str, password: str, name: str = "Admin") -> User:
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, name=name, password_hash=get_password_hash(password), is_admin=True)
        db.add(user)
    else:
        user.is_admin = True
    db.commit()
    db.refresh(user)
    return user


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        count = seed_products(session)
        print(f"Seeded {count} products")
        admin_email, admin_password = os.getenv("ADMIN_EMAIL"), os.getenv("ADMIN_PASSWORD")
        if admin_email and admin_password:
            admin = ensure_admin(session, admin_email, admin_password)
            print(f"Admin account ready: {admin.email}")
    finally:
        session.close()
