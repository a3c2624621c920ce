"""
Restaurant slug generation
"""
import re
import unicodedata
from sqlalchemy.orm import Session


def generate_slug(text: str) -> str:
    """
    URL-friendly slug: "Mama's Kitchen & Grill" -> "mamas-kitchen-grill"
    """
    text = unicodedata.normalize('NFKD', text.lower())
    text = text.encode('ascii', 'ignore').decode('ascii')

    text = re.sub(r"[^a-z0-9\s-]", '', text)
    text = re.sub(r'[-\s]+', '-', text)
    return text.strip('-') or "restaurant"


def unique_restaurant_slug(db: Session, name: str, max_length: int = 255) -> str:
    """Slug for a new restaurant, suffixed -2, -3, ... when taken"""
    from dabil.models.restaurant import Restaurant

    base_slug = generate_slug(name)[:max_length]
    taken = {
        row[0] for row in db.query(Restaurant.slug).filter(Restaurant.slug.like(f"{base_slug}%")).all()
    }

    slug = base_slug
    counter = 2
    while slug in taken:
        suffix = f"-{counter}"
        slug = f"{base_slug[:max_length - len(suffix)]}{suffix}"
        counter += 1
    return slug
