from __future__ import annotations

from typing import Any, Optional

from storefront.models.brand import Brand
from storefront.models.category import Category, SubCategory
from storefront.models.category_template import CategoryTemplate
from storefront.models.personality import Personality
from storefront.models.product_item import ProductItem
from storefront.models.promo_code import PromoCode
from storefront.models.tax import Tax
from storefront.models.tenant import Tenant


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def money(value) -> Optional[str]:
    return None if value is None else str(value)


def tenant_to_dict(tenant: Tenant) -> dict[str, Any]:
    return {
        "id": tenant.id,
        "name": tenant.name,
        "domain": tenant.domain,
        "description": tenant.description,
        "created_at": _iso(tenant.created_at),
    }


def sub_category_to_dict(sub_category: SubCategory) -> dict[str, Any]:
    return {
        "id": sub_category.id,
        "product_id": sub_category.tenant_id,
        "category_id": sub_category.category_id,
        "name": sub_category.name,
        "display_order": sub_category.display_order,
        "image_url": sub_category.image_url,
    }


def category_to_dict(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "product_id": category.tenant_id,
        "name": category.name,
        "display_order": category.display_order,
        "sub_categories": [sub_category_to_dict(sub) for sub in category.sub_categories],
    }


def brand_to_dict(brand: Brand) -> dict[str, Any]:
    return {"id": brand.id, "product_id": brand.tenant_id, "name": brand.name}


def personality_to_dict(personality: Personality) -> dict[str, Any]:
    return {
        "id": personality.id,
        "product_id": personality.tenant_id,
        "name": personality.name,
        "image_url": personality.image_url,
    }


def product_item_to_dict(item: ProductItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "product_id": item.tenant_id,
        "name": item.name,
        "description": item.description,
        "weight": item.weight,
        "price": money(item.price),
        "brand_id": item.brand_id,
        "brand_name": item.brand.name if item.brand else None,
        "image_url": item.image_url,
        "display_order": item.display_order,
        "is_active": item.is_active,
        "sub_category_ids": sorted(sub.id for sub in item.sub_categories),
        "personality_ids": sorted(personality.id for personality in item.personalities),
    }


def tax_to_dict(tax: Tax) -> dict[str, Any]:
    return {
        "id": tax.id,
        "product_id": tax.tenant_id,
        "name": tax.name,
        "type": tax.type,
        "value": money(tax.value),
        "display_order": tax.display_order,
        "is_active": tax.is_active,
    }


def promo_code_to_dict(promo_code: PromoCode) -> dict[str, Any]:
    return {
        "id": promo_code.id,
        "product_id": promo_code.tenant_id,
        "name": promo_code.name,
        "discount_percentage": money(promo_code.discount_percentage),
        "is_active": promo_code.is_active,
        "created_at": _iso(promo_code.created_at),
        "updated_at": _iso(promo_code.updated_at),
    }


def template_to_dict(template: CategoryTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "categories": [
            {
                "name": entry.name,
                "display_order": entry.display_order,
                "sub_categories": [sub.name for sub in entry.sub_categories],
            }
            for entry in template.categories
        ],
    }
