from dataclasses import replace

import pytest

from conftest import FakeRepository, make_product
from payshia_erp.domain.errors import NotFoundError, PlanLimitError, ValidationError
from payshia_erp.domain.models import Category, Color, Customer, Location, Size, Supplier
from payshia_erp.services.catalog_service import CatalogService
from payshia_erp.services.customer_service import CustomerService, loyalty_tier
from payshia_erp.services.location_service import LocationService
from payshia_erp.services.plan_service import PlanService
from payshia_erp.services.supplier_service import SupplierService


def _catalog_repo():
    repo = FakeRepository(company_id=5)
    repo.categories = [Category(id="2", name="Kitchen")]
    repo.colors = [Color(id="7", name="Red", hex_code="#ff0000")]
    repo.sizes = [Size(id="3", value="Large", abbreviation="L")]
    repo.responses["save_product"] = {"product": {"id": 44}}
    return repo


def _form(**kw):
    form = {
        "name": "Tea Cup",
        "category_id": "2",
        "price": "150",
        "cost_price": "90",
        "variants": [{"sku": "TC-RED-L", "color_id": "7", "size_id": "3"}],
    }
    form.update(kw)
    return form


def test_save_product_resolves_lookup_names_and_custom_fields():
    repo = _catalog_repo()
    catalog = CatalogService(repo, PlanService(repo, plan_id="plan-pro"))

    product_id = catalog.save_product(_form(custom_fields={"4": "Ceramic", "5": ""}))

    assert product_id == "44"
    payload = repo.payloads("save_product")[0]
    assert payload["category"] == "Kitchen"
    assert payload["company_id"] == 5
    assert payload["print_name"] == "Tea Cup"
    assert payload["variants"][0]["color"] == "Red"
    assert payload["variants"][0]["size"] == "Large"
    assert payload["variants"][0]["barcode"] == "TC-RED-L"
    assert repo.payloads("add_custom_field_value") == [{
        "master_custom_field_id": 4,
        "company_id": 5,
        "created_by": "admin",
        "updated_by": "admin",
        "product_id": 44,
        "value": "Ceramic",
    }]


@pytest.mark.parametrize("kw,message", [
    ({"name": "ab"}, "at least 3 characters"),
    ({"category_id": ""}, "select a category"),
    ({"price": "-1"}, "Selling Price"),
    ({"status": "archived"}, "active or draft"),
    ({"variants": []}, "At least one variant"),
    ({"variants": [{"sku": "A"}, {"sku": "A"}]}, "Duplicate SKU"),
])
def test_product_validation(kw, message):
    catalog = CatalogService(_catalog_repo())
    with pytest.raises(ValidationError, match=message):
        catalog.save_product(_form(**kw))


def test_new_product_refused_over_plan_limit():
    repo = _catalog_repo()
    repo.products = [make_product(pid=str(i)) for i in range(25)]
    catalog = CatalogService(repo, PlanService(repo, plan_id="plan-basic"))

    with pytest.raises(PlanLimitError):
        catalog.save_product(_form())
    assert repo.payloads("save_product") == []

    # editing is never limited
    catalog.save_product(_form(), product_id="3")
    assert len(repo.payloads("save_product")) == 1


def test_find_by_sku():
    repo = FakeRepository()
    repo.products = [make_product(pid="1", skus=("A-1", "A-2")), make_product(pid="2", skus=("B-1",))]
    catalog = CatalogService(repo)

    product, variant_id = catalog.find_by_sku(" A-2 ")
    assert product.id == "1"
    assert variant_id == "12"
    with pytest.raises(NotFoundError):
        catalog.find_by_sku("nope")


def test_color_needs_hex_code():
    catalog = CatalogService(FakeRepository())
    with pytest.raises(ValidationError, match="hex"):
        catalog.save_color("Blue", "blue")
    catalog.save_color("Blue", "#0000ff")


def test_category_edit_uses_master_categories():
    repo = FakeRepository()
    catalog = CatalogService(repo)
    catalog.save_category("Drinks")
    catalog.save_category("Drinks", category_id="8")
    assert [n for n, _ in repo.posted] == ["save_categories", "save_master-categories"]


def test_products_for_supplier():
    repo = FakeRepository()
    repo.products = [replace(make_product(pid="1"), supplier="8"), make_product(pid="2")]
    assert [p.id for p in CatalogService(repo).products_for_supplier("8")] == ["1"]


def test_collection_links_products():
    repo = FakeRepository()
    repo.responses["save_collections"] = {"data": {"id": 6}}

    assert CatalogService(repo).save_collection("Summer", product_ids=["1", "2"]) == "6"
    assert repo.payloads("add_collection_product") == [
        {"collection_id": "6", "product_id": "1"},
        {"collection_id": "6", "product_id": "2"},
    ]


def test_delete_lookup_checks_resource():
    repo = FakeRepository()
    catalog = CatalogService(repo)
    catalog.delete_lookup("brands", "4")
    assert repo.payloads("delete_brands") == [{"id": "4"}]
    with pytest.raises(ValidationError, match="Unknown catalog resource"):
        catalog.delete_lookup("products", "4")


def _location_form(**kw):
    form = {
        "location_name": "Galle Outlet",
        "location_type": "Retail",
        "address_line1": "12 Church St",
        "city": "Galle",
        "phone_1": "0771234567",
        "pos_status": True,
    }
    form.update(kw)
    return form


def test_save_location_payload_and_plan_limit():
    repo = FakeRepository(company_id=5)
    locations = LocationService(repo, PlanService(repo, plan_id="plan-basic"))

    locations.save_location(_location_form())
    payload = repo.payloads("save_location")[0]
    assert payload["pos_status"] == 1
    assert payload["company_id"] == 5

    repo.locations = [Location(location_id="1", location_name="Main")]
    with pytest.raises(PlanLimitError):
        locations.save_location(_location_form())
    locations.save_location(_location_form(pos_status=False), location_id="1")
    assert repo.payloads("save_location")[-1]["pos_status"] == 0


def test_location_validation_and_pos_filter():
    repo = FakeRepository()
    locations = LocationService(repo)
    with pytest.raises(ValidationError, match="phone"):
        locations.save_location(_location_form(phone_1="123"))

    repo.locations = [
        Location(location_id="1", location_name="Main", pos_status=True),
        Location(location_id="2", location_name="Store", pos_status=False),
        Location(location_id="3", location_name="Closed", pos_status=True, is_active=False),
    ]
    assert [l.location_id for l in locations.pos_locations()] == ["1"]


def test_save_supplier():
    repo = FakeRepository()
    suppliers = SupplierService(repo)
    form = {"supplier_name": "Hill Tea", "contact_person": "Kamal", "email": "kamal@hilltea.lk", "telephone": "0812345678"}

    suppliers.save_supplier(form)
    assert repo.payloads("save_supplier")[0]["opening_balance"] == 0.0
    with pytest.raises(ValidationError, match="email"):
        suppliers.save_supplier(dict(form, email="kamal"))

    repo.suppliers = [Supplier(supplier_id="8", supplier_name="Hill Tea")]
    assert suppliers.get_supplier(8).supplier_name == "Hill Tea"
    assert suppliers.get_supplier("9") is None


def _customer(cid, points, email=""):
    return Customer(customer_id=cid, first_name=f"C{cid}", last_name="Test", email_address=email, loyalty_points=points)


def test_loyalty_tiers_follow_schema():
    repo = FakeRepository()
    repo.customers = [_customer("1", 20), _customer("2", 120), _customer("3", 300), _customer("4", 900)]
    crm = CustomerService(repo)

    assert [t for _c, t in crm.customers_with_tiers()] == ["Bronze", "Silver", "Gold", "Platinum"]

    crm.update_loyalty_schema("10", "200", "1000")
    assert crm.tier_counts() == {"Bronze": 0, "Silver": 2, "Gold": 2, "Platinum": 0}
    assert loyalty_tier(1000, crm.schema) == "Platinum"


def test_loyalty_schema_must_increase():
    crm = CustomerService(FakeRepository())
    with pytest.raises(ValidationError, match="Gold tier"):
        crm.update_loyalty_schema(300, 200, 500)
    with pytest.raises(ValidationError, match="Platinum tier"):
        crm.update_loyalty_schema(100, 200, 150)


def test_save_customer_needs_location():
    repo = FakeRepository()
    form = {
        "customer_first_name": "Saman",
        "customer_last_name": "Silva",
        "phone_number": "0711234567",
        "credit_limit": "5000",
    }
    with pytest.raises(ValidationError, match="No Location Selected"):
        CustomerService(repo).save_customer(form)

    CustomerService(repo, location_id=2).save_customer(form)
    payload = repo.payloads("save_customer")[0]
    assert payload["location_id"] == 2
    assert payload["credit_limit"] == 5000.0
    assert payload["email_address"] == ""


def test_sms_campaign_targets_tier():
    repo = FakeRepository()
    repo.customers = [_customer("1", 20), _customer("2", 300), _customer("3", 260)]
    campaign = CustomerService(repo).create_sms_campaign("Gold weekend", "Gold", "20% off for our gold members")
    assert campaign.status == "Scheduled"
    assert [c.customer_id for c in campaign.recipients] == ["2", "3"]


def test_sms_campaign_length_limit():
    crm = CustomerService(FakeRepository())
    with pytest.raises(ValidationError, match="160"):
        crm.create_sms_campaign("Promo", "All", "x" * 161)
    with pytest.raises(ValidationError, match="audience"):
        crm.create_sms_campaign("Promo", "Everyone", "Hello there all")


def test_email_campaign_skips_customers_without_email():
    repo = FakeRepository()
    repo.customers = [_customer("1", 0, "a@b.lk"), _customer("2", 0), _customer("3", 0, "c@d.lk")]
    campaign = CustomerService(repo).create_email_campaign(
        "Launch", "New arrivals", "Custom", "Our new season collection is here.", custom_ids=["1", "2"],
    )
    assert [c.customer_id for c in campaign.recipients] == ["1"]
