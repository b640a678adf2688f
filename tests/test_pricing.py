"""
Pricing engine and the pricing endpoints.
"""

import pytest

from byomkit.core.exceptions import ValidationError
from byomkit.modules.customizer import placement
from byomkit.modules.customizer.models import Configuration
from byomkit.modules.customizer.transport import to_transport
from byomkit.modules.pricing.engine import (
    PriceBreakdown, PricingPolicy, estimate_breakdown, policy_breakdown, to_minor_units,
)

POLICY_BODY = {
    "base_customization_fee": "2000.00",
    "front_placement_cost": "500.00",
    "back_placement_cost": "700.00",
    "side_placement_cost": "900.00",
    "text_customization_cost": "1000.00",
    "image_customization_cost": "1500.00",
}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def test_policy_breakdown_front_text_back_sticker(sample_config, sample_policy):
    breakdown = policy_breakdown(sample_config, sample_policy)
    assert breakdown.total == 5700
    assert [line.amount for line in breakdown.lines] == [2000, 500, 700, 1000, 1500]
    assert not breakdown.estimate


def test_policy_breakdown_empty_configuration_is_base_fee_only(sample_policy):
    breakdown = policy_breakdown(Configuration.empty(), sample_policy)
    assert breakdown.total == 2000
    assert len(breakdown.lines) == 1


def test_only_zones_with_content_are_charged(sample_policy):
    config, _ = placement.add_text(Configuration.empty(), "side", "Sleeve")
    config, _ = placement.add_text(config, "side", "Again")
    breakdown = policy_breakdown(config, sample_policy)
    assert breakdown.amount_for("placement:side") == sample_policy.side_fee
    assert breakdown.amount_for("placement:front") == 0
    assert breakdown.total == 2000 + 0 + 1000


def test_negative_fees_are_rejected(sample_config):
    with pytest.raises(ValidationError):
        policy_breakdown(sample_config, PricingPolicy(base_fee=-1))


def test_breakdown_refuses_negative_lines():
    with pytest.raises(ValidationError):
        PriceBreakdown().add("Discount", -100)


def test_unknown_zone_uses_front_fee(sample_policy):
    assert sample_policy.placement_fee("sleeve") == sample_policy.front_fee
    assert sample_policy.placement_fee("back") == 700


def test_snapshot_shape(sample_config, sample_policy):
    snapshot = policy_breakdown(sample_config, sample_policy).to_snapshot()
    assert snapshot["total"] == 5700
    assert snapshot["placement_costs"] == {"front": 500, "back": 700}
    assert snapshot["placement_total"] == 1200
    assert snapshot["has_text"] and snapshot["has_image"]


def test_estimate_counts_elements():
    config, _ = placement.add_text(Configuration.empty("hoodie"), "front", "One")
    config, _ = placement.add_text(config, "back", "Two")
    config, _ = placement.add_asset(config, "front", "sticker-1")
    breakdown = estimate_breakdown(config)
    assert breakdown.estimate
    assert breakdown.total == 35000 + 2 * 1000 + 500
    assert breakdown.to_dict()["estimate"] is True


@pytest.mark.parametrize("value,expected", [
    ("2000.00", 2000), (1500, 1500), (12.4, 12), (None, 0), ("abc", 0), (True, 0),
])
def test_to_minor_units(value, expected):
    assert to_minor_units(value) == expected


# ---------------------------------------------------------------------------
# Admin policy endpoints
# ---------------------------------------------------------------------------

def test_policy_endpoints_require_admin(client, customer):
    assert client.get("/admin/byom/pricing/global/").status_code == 401
    assert customer.post("/admin/byom/pricing/global/", json=POLICY_BODY).status_code == 401


def test_global_policy_created_once(admin):
    response = admin.get("/admin/byom/pricing/global/")
    assert response.get_json()["policy"] is None

    response = admin.post("/admin/byom/pricing/global/", json=POLICY_BODY)
    assert response.status_code == 201
    policy = response.get_json()["policy"]
    assert policy["baseFee"] == 2000
    assert policy["sideFee"] == 900

    response = admin.post("/admin/byom/pricing/global/", json=POLICY_BODY)
    assert response.status_code == 409

    assert admin.get("/admin/byom/pricing/global/").get_json()["policy"]["id"] == policy["id"]


def test_patch_global_policy(admin):
    policy_id = admin.post("/admin/byom/pricing/global/", json=POLICY_BODY).get_json()["policy"]["id"]

    response = admin.patch(f"/admin/byom/pricing/global/{policy_id}/", json={"front_fee": "800.00"})
    assert response.status_code == 200
    policy = response.get_json()["policy"]
    assert policy["frontFee"] == 800
    assert policy["backFee"] == 700


@pytest.mark.parametrize("body,status", [
    ({"front_fee": "-5"}, 400),
    ({"back_placement_cost": "lots"}, 400),
    ({"colour": "red"}, 400),
])
def test_patch_rejects_bad_input(admin, body, status):
    policy_id = admin.post("/admin/byom/pricing/global/", json=POLICY_BODY).get_json()["policy"]["id"]
    response = admin.patch(f"/admin/byom/pricing/global/{policy_id}/", json=body)
    assert response.status_code == status
    assert response.get_json()["success"] is False


@pytest.mark.parametrize("field,value", [
    ("front_placement_cost", "lots"),
    ("base_customization_fee", "Infinity"),
    ("image_customization_cost", "-1.00"),
])
def test_create_rejects_invalid_amounts(admin, field, value):
    response = admin.post("/admin/byom/pricing/global/", json=dict(POLICY_BODY, **{field: value}))
    assert response.status_code == 400
    assert admin.get("/admin/byom/pricing/global/").get_json()["policy"] is None


def test_create_rejects_non_object_body(admin):
    response = admin.post("/admin/byom/pricing/global/", json=[POLICY_BODY])
    assert response.status_code == 400


def test_patch_unknown_policy_is_not_found(admin):
    response = admin.patch("/admin/byom/pricing/global/404/", json={"front_fee": 1})
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Public calculation
# ---------------------------------------------------------------------------

def test_calculate_without_policy_returns_estimate_only(client, sample_config):
    response = client.post(
        "/api/byom/pricing/calculate/", json={"configuration": to_transport(sample_config)}
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["breakdown"] is None
    assert data["estimate"]["estimate"] is True
    assert data["estimate"]["total"] == 15000 + 1000 + 500


def test_calculate_with_policy(client, admin, sample_config):
    admin.post("/admin/byom/pricing/global/", json=POLICY_BODY)
    response = client.post("/api/byom/pricing/calculate/", json=to_transport(sample_config))
    data = response.get_json()
    assert data["breakdown"]["total"] == 5700
    assert data["breakdown"]["estimate"] is False


def test_calculate_rejects_non_object_body(client):
    response = client.post("/api/byom/pricing/calculate/", json=[1, 2, 3])
    assert response.status_code == 400
