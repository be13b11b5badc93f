# app/fixtures.py
"""Built-in catalogue served when no database is reachable.

The same records seed a fresh database (see `seed_database.py`), so both
data sources start from identical content. Treat these as read-only; the
fixture repository works on its own copies.
"""
from datetime import datetime, timezone

CATEGORIES = [
    {"id": 1, "name": "Technology", "slug": "technology",
     "description": "Software, hardware and AI startups"},
    {"id": 2, "name": "Finance", "slug": "finance",
     "description": "Fintech, banking and investment"},
    {"id": 3, "name": "Healthcare", "slug": "healthcare",
     "description": "Medical and health technology"},
    {"id": 4, "name": "E-commerce", "slug": "ecommerce",
     "description": "Online stores and marketplaces"},
    {"id": 5, "name": "Education", "slug": "education",
     "description": "Learning platforms and edtech"},
]

SELLERS = [
    {"id": 1, "first_name": "John", "last_name": "Smith",
     "company": "Tech Ventures", "email": "john@techventures.example"},
    {"id": 2, "first_name": "Sarah", "last_name": "Johnson",
     "company": "FinDomains LLC", "email": "sarah@findomains.example"},
    {"id": 3, "first_name": "Dr.", "last_name": "Michael Chen",
     "company": "MedDomains", "email": "michael@meddomains.example"},
]

LISTINGS = [
    {
        "id": 1,
        "name": "aitech.com",
        "price": 15000.0,
        "description": "Premium domain for AI technology companies. "
                       "Perfect for startups in artificial intelligence.",
        "category_id": 1,
        "seller_id": 1,
        "is_featured": True,
        "traffic_monthly": 5000,
        "domain_age_years": 3,
        "seo_score": 85,
        "backlinks_count": 150,
        "keywords": ["ai", "technology", "artificial intelligence"],
        "status": "active",
        "created_at": datetime(2024, 1, 15, tzinfo=timezone.utc),
        "views_count": 245,
        "inquiries_count": 12,
    },
    {
        "id": 2,
        "name": "smartfinance.io",
        "price": 8500.0,
        "description": "Ideal domain for fintech startups and financial services.",
        "category_id": 2,
        "seller_id": 2,
        "is_featured": True,
        "traffic_monthly": 2800,
        "domain_age_years": 2,
        "seo_score": 78,
        "backlinks_count": 89,
        "keywords": ["finance", "fintech", "smart"],
        "status": "active",
        "created_at": datetime(2024, 2, 1, tzinfo=timezone.utc),
        "views_count": 189,
        "inquiries_count": 8,
    },
    {
        "id": 3,
        "name": "healthtech.co",
        "price": 12000.0,
        "description": "Perfect for healthcare technology companies and medical startups.",
        "category_id": 3,
        "seller_id": 3,
        "is_featured": False,
        "traffic_monthly": 3500,
        "domain_age_years": 4,
        "seo_score": 82,
        "backlinks_count": 120,
        "keywords": ["health", "medical", "technology"],
        "status": "active",
        "created_at": datetime(2024, 1, 20, tzinfo=timezone.utc),
        "views_count": 156,
        "inquiries_count": 6,
    },
]
