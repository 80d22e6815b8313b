from __future__ import annotations

import logging
from typing import Iterable, Optional

from payshia_erp.domain.errors import NotFoundError, ValidationError
from payshia_erp.domain.models import Brand, Category, Collection, Color, CustomField, Product, Size
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.catalog")

PRODUCT_STATUSES = ("active", "draft")
RECIPE_TYPES = {"standard": "standard", "a_la_carte": "ala cart", "item_recipe": "item_recipe"}


class CatalogService:
    """Products and the lookup tables they hang off (brands, colors, sizes, categories...)."""

    def __init__(self, repo, plans=None):
        self.repo = repo
        self.plans = plans

    # ---------- products ----------
    def list_products(self) -> list[Product]:
        return self.repo.list_products()

    def get_product(self, product_id: str) -> Product:
        return self.repo.get_product(product_id)

    def find_by_sku(self, sku: str) -> tuple[Product, str]:
        """Return (product, variant_id) for a variant SKU."""
        sku = (sku or "").strip()
        for p in self.repo.list_products():
            variant = p.variant_by_sku(sku)
            if variant is not None:
                return p, variant.id
        raise NotFoundError(f"No product variant with SKU '{sku}'.")

    def products_for_supplier(self, supplier_id: str) -> list[Product]:
        return self.repo.products_by_supplier(supplier_id)

    def build_product_payload(self, form: dict) -> dict:
        name = v.text(form.get("name"), 3, "Product name must be at least 3 characters.")
        category_id = str(form.get("category_id") or "").strip()
        if not category_id:
            raise ValidationError("Please select a category.")
        price = v.at_least(form.get("price"), 0, "Selling Price must be a positive number.")
        status = form.get("status") or "active"
        if status not in PRODUCT_STATUSES:
            raise ValidationError("Status must be active or draft.")

        variants = list(form.get("variants") or [])
        if not variants:
            raise ValidationError("At least one variant is required.")
        seen: set[str] = set()
        for var in variants:
            sku = (var.get("sku") or "").strip()
            if not sku:
                raise ValidationError("SKU is required.")
            if sku in seen:
                raise ValidationError(f"Duplicate SKU '{sku}'.")
            seen.add(sku)

        categories = {c.id: c.name for c in self.repo.list_categories()}
        colors = {c.id: c.name for c in self.repo.list_colors()}
        sizes = {s.id: s.value for s in self.repo.list_sizes()}

        brand_id = form.get("brand_id")
        recipe = form.get("recipe_type") or "standard"
        return {
            "name": name,
            "description": form.get("description") or "",
            "category": categories.get(category_id, ""),
            "category_id": int(category_id),
            "brand_id": int(brand_id) if brand_id else None,
            "price": price,
            "cost_price": v.number(form.get("cost_price"), "Cost price must be a number.", 0.0),
            "min_price": v.number(form.get("min_price"), "Minimum price must be a number.", 0.0),
            "wholesale_price": v.number(form.get("wholesale_price"), "Wholesale price must be a number.", 0.0),
            "stock_unit": form.get("stock_unit") or "PCS",
            "status": status,
            "sinhala_name": form.get("sinhala_name") or "",
            "tamil_name": form.get("tamil_name") or "",
            "print_name": form.get("print_name") or name,
            "display_name": form.get("display_name") or name,
            "supplier": ",".join(form.get("suppliers") or []),
            "company_id": self.repo.company_id,
            "lead_time_days": 0,
            "reorder_level_qty": 0,
            "item_type": "finished_good",
            "recipe_type": RECIPE_TYPES.get(recipe, recipe),
            "barcode": "",
            "variants": [
                {
                    "id": var.get("id"),
                    "sku": var["sku"].strip(),
                    "color": colors.get(str(var.get("color_id") or ""), ""),
                    "size": sizes.get(str(var.get("size_id") or ""), ""),
                    "color_id": int(var["color_id"]) if var.get("color_id") else None,
                    "size_id": int(var["size_id"]) if var.get("size_id") else None,
                    "barcode": var["sku"].strip(),
                }
                for var in variants
            ],
        }

    def save_product(self, form: dict, product_id: Optional[str] = None) -> str:
        payload = self.build_product_payload(form)
        if product_id is None and self.plans is not None:
            self.plans.require("products")

        result = self.repo.save_product(payload, product_id)
        saved_id = product_id or str((result.get("product") or {}).get("id") or "")
        if not saved_id:
            raise ValidationError("Product saved, but no product id was returned.")

        custom = [(fid, val) for fid, val in (form.get("custom_fields") or {}).items() if val]
        for field_id, value in custom:
            self.repo.add_custom_field_value({
                "master_custom_field_id": int(field_id),
                "company_id": self.repo.company_id,
                "created_by": "admin",
                "updated_by": "admin",
                "product_id": int(saved_id),
                "value": value,
            })

        log.info("product_saved product_id=%s variants=%s custom_fields=%s", saved_id, len(payload["variants"]), len(custom))
        return saved_id

    def delete_variant(self, variant_id: str) -> None:
        self.repo.delete_product_variant(variant_id)
        log.info("variant_deleted variant_id=%s", variant_id)

    # ---------- lookups ----------
    def list_brands(self) -> list[Brand]:
        return self.repo.list_brands()

    def list_colors(self) -> list[Color]:
        return self.repo.list_colors()

    def list_sizes(self) -> list[Size]:
        return self.repo.list_sizes()

    def list_categories(self) -> list[Category]:
        return self.repo.list_categories()

    def list_collections(self) -> list[Collection]:
        return self.repo.list_collections()

    def list_custom_fields(self) -> list[CustomField]:
        return self.repo.list_custom_fields()

    def save_brand(self, name: str, description: str = "", brand_id: Optional[str] = None) -> dict:
        payload = {
            "name": v.text(name, 2, "Brand name must be at least 2 characters."),
            "description": description or "",
            "company_id": self.repo.company_id,
        }
        return self.repo.save_entity("brands", payload, brand_id)

    def save_category(self, name: str, description: str = "", category_id: Optional[str] = None) -> dict:
        payload = {
            "name": v.text(name, 2, "Category name must be at least 2 characters."),
            "description": description or "",
            "company_id": self.repo.company_id,
        }
        # Created under /categories, edited under /master-categories.
        if category_id:
            return self.repo.save_entity("master-categories", payload, category_id)
        return self.repo.save_entity("categories", payload)

    def save_color(self, name: str, hex_code: str, color_id: Optional[str] = None) -> dict:
        name_clean = v.text(name, 2, "Color name must be at least 2 characters.")
        if not v.HEX_RE.match((hex_code or "").strip()):
            raise ValidationError("Must be a valid hex code (e.g. #RRGGBB).")
        payload = {"name": name_clean, "hex_code": hex_code.strip(), "company_id": self.repo.company_id}
        return self.repo.save_entity("colors", payload, color_id)

    def save_size(self, value: str, abbreviation: str, size_id: Optional[str] = None) -> dict:
        payload = {
            "value": v.text(value, 1, "Size name is required."),
            "abbreviation": v.text(abbreviation, 1, "Abbreviation is required."),
            "company_id": self.repo.company_id,
        }
        return self.repo.save_entity("sizes", payload, size_id)

    def save_collection(
        self,
        title: str,
        status: str = "active",
        description: str = "",
        product_ids: Iterable[str] = (),
        collection_id: Optional[str] = None,
    ) -> str:
        title_clean = v.text(title, 3, "Collection title must be at least 3 characters.")
        if status not in PRODUCT_STATUSES:
            raise ValidationError("Status must be active or draft.")
        payload = {
            "title": title_clean,
            "description": description or "",
            "status": status,
            "company_id": self.repo.company_id,
        }
        result = self.repo.save_entity("collections", payload, collection_id)
        saved_id = collection_id or str((result.get("data") or result).get("id") or "")
        for pid in product_ids:
            self.repo.add_collection_product(saved_id, pid)
        log.info("collection_saved collection_id=%s", saved_id)
        return saved_id

    def save_custom_field(self, field_name: str, description: str = "") -> dict:
        payload = {
            "field_name": v.text(field_name, 2, "Field name is required."),
            "description": description or "",
            "company_id": self.repo.company_id,
            "created_by": "admin",
            "updated_by": "admin",
        }
        return self.repo.save_entity("custom-fields", payload)

    def delete_lookup(self, resource: str, entity_id: str) -> None:
        if resource not in {"brands", "colors", "sizes", "master-categories", "collections", "custom-fields"}:
            raise ValidationError(f"Unknown catalog resource: {resource}")
        self.repo.delete_entity(resource, entity_id)
        log.info("catalog_deleted resource=%s id=%s", resource, entity_id)
