# backend/scripts/seed_price_guide.py
import random

from priceguide.db import SessionLocal
from priceguide.core.order_key import keys_after
from priceguide.enums import CategoryType
from priceguide.models import Company, Office, PriceGuideCategory, CategoryOfficeAssignment, MeasureSheetItem

# ----------------------------
# Tunables
# ----------------------------
RANDOM_SEED = 42
COMPANIES = [
    {"name": "Summit Roofing & Exteriors", "offices": ["Denver", "Boulder", "Colorado Springs"]},
    {"name": "Lakeside Windows", "offices": ["Madison", "Milwaukee"]},
]
# name -> (category_type, children); children nest the same way
PRICE_GUIDE = {
    "Roofing": (CategoryType.DEFAULT, {
        "Shingles": {"Architectural": {}, "3-Tab": {}},
        "Underlayment": {},
        "Ventilation": {"Ridge Vents": {}, "Box Vents": {}},
    }),
    "Windows": (CategoryType.DETAIL, {
        "Double Hung": {},
        "Casement": {},
        "Sliders": {},
    }),
    "Siding": (CategoryType.DEEP_DRILL_DOWN, {
        "Vinyl": {"Dutch Lap": {}, "Board & Batten": {}},
        "Fiber Cement": {},
    }),
}
ITEMS_PER_LEAF = (1, 4)


def create_company(db, name: str, office_names: list):
    company = Company(name=name)
    db.add(company)
    db.commit()
    db.refresh(company)

    offices = [Office(company_id=company.id, name=office_name) for office_name in office_names]
    db.add_all(offices)
    db.commit()
    return company, offices

def create_children(db, company: Company, parent: PriceGuideCategory, children: dict):
    keys = keys_after(None, len(children))
    for key, (name, grandchildren) in zip(keys, children.items()):
        category = PriceGuideCategory(
            company_id=company.id,
            parent_id=parent.id,
            name=name,
            depth=parent.depth + 1,
            sort_order=key,
        )
        db.add(category)
        db.flush()  # ensure category.id UUID is available
        if grandchildren:
            create_children(db, company, category, grandchildren)
        else:
            for i in range(random.randint(*ITEMS_PER_LEAF)):
                db.add(MeasureSheetItem(company_id=company.id, category_id=category.id, name=f"{name} option {i + 1}"))

def create_price_guide(db, company: Company, offices: list):
    keys = keys_after(None, len(PRICE_GUIDE))
    for key, (name, (category_type, children)) in zip(keys, PRICE_GUIDE.items()):
        root = PriceGuideCategory(
            company_id=company.id,
            name=name,
            depth=0,
            sort_order=key,
            category_type=category_type,
        )
        db.add(root)
        db.flush()
        create_children(db, company, root, children)
        for office in random.sample(offices, k=random.randint(1, len(offices))):
            db.add(CategoryOfficeAssignment(category_id=root.id, office_id=office.id))
    db.commit()

def main():
    random.seed(RANDOM_SEED)
    db = SessionLocal()
    try:
        for spec in COMPANIES:
            company, offices = create_company(db, spec["name"], spec["offices"])
            create_price_guide(db, company, offices)
            print(f"Seeded price guide for {company.name}")

        print("✅ Seed complete.")
    finally:
        db.close()

if __name__ == "__main__":
    main()
