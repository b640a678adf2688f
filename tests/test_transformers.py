"""
Transport JSON and backend record decoding.

The readers here must never raise on malformed input; they fall back to
defaults instead.
"""

import json
import random

import pytest

from byomkit.modules.customizer import placement
from byomkit.modules.customizer.models import Configuration, MerchType, PlacementZone, Size, ZONES
from byomkit.modules.customizer.transport import parse_configuration, to_transport
from byomkit.modules.designs.transformers import (
    CustomMerch, Sticker, base_image_path, decode_design_record, decode_pricing_changes,
    decode_pricing_policy, design_from_record, encode_pricing_policy, normalize_status,
    resolve_asset_url, side_data, to_canonical,
)
from byomkit.modules.designs.workflow import DesignStatus
from byomkit.modules.pricing.engine import PricingPolicy


# ---------------------------------------------------------------------------
# Transport configuration
# ---------------------------------------------------------------------------

def test_transport_uses_camel_case_and_all_zones(sample_config):
    data = to_transport(sample_config)
    assert data["merchType"] == "tshirt"
    assert data["colorName"] == "black"
    assert data["front"]["texts"][0]["fontSize"] == 24
    assert data["back"]["assets"][0]["assetId"] == "sticker-1"
    assert data["side"] == {"texts": [], "assets": []}


def test_transport_round_trip(sample_config):
    assert parse_configuration(json.dumps(to_transport(sample_config))) == sample_config


PATHOLOGICAL_INPUTS = [
    pytest.param("[" * 100000, id="deeply-nested-arrays"),
    pytest.param("{\"a\":" * 100000, id="deeply-nested-objects"),
    pytest.param("{\"front\": " * 50000 + "{}", id="nested-zone-objects"),
    pytest.param(b"{\"merchType\": \"\xff\xfe\"", id="invalid-utf8-truncated"),
    pytest.param(b"\x80\x81\x82" * 1000, id="invalid-utf8"),
    pytest.param("x" * 1000000, id="huge-garbage"),
    pytest.param("{\"merchType\": \"hoodie\"", id="truncated-object"),
    pytest.param("\u0000\ud800", id="lone-surrogate"),
]


@pytest.mark.parametrize("raw", [None, "", "not json", "[1, 2]", 42, b"\xff\xfe"] + PATHOLOGICAL_INPUTS)
def test_unparseable_input_gives_default_configuration(raw):
    config = parse_configuration(raw)
    assert config == Configuration()
    assert config.merch_type == MerchType.TSHIRT
    assert set(config.views) == set(ZONES)


def test_missing_zones_and_bad_fields_fall_back():
    config = parse_configuration({
        "merchType": "hoodie",
        "size": "xxl",
        "front": {"texts": [{"content": "Hi", "fontSize": "big", "x": "left"}, "junk"]},
        "back": "nope",
    })
    assert config.merch_type == MerchType.HOODIE
    assert config.size == Size.XXL
    text = config.views[PlacementZone.FRONT].texts[0]
    assert (text.font_size, text.x) == (24, 50.0)
    assert len(config.views[PlacementZone.FRONT].texts) == 1
    assert config.views[PlacementZone.BACK].is_empty()
    assert config.views[PlacementZone.SIDE].is_empty()


def test_legacy_payload_is_accepted():
    config = parse_configuration({
        "merchType": "bs-pants",
        "front": {"stickers": [{"stickerId": "sticker-3", "x": 10, "y": 20}]},
    })
    assert config.merch_type == MerchType.TROUSER
    asset = config.views[PlacementZone.FRONT].assets[0]
    assert (asset.asset_id, asset.x, asset.y) == ("sticker-3", 10.0, 20.0)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def test_base_image_path_aliases_and_fallback():
    assert base_image_path("bs-trouser", "Gray") == "/byom/pants-grey.svg"
    assert base_image_path(MerchType.TSHIRT, "navy") == "/byom/tshirt-navy.svg"
    assert base_image_path("cape", "purple") == "/byom/hoodie-black.svg"


def test_resolve_asset_url_prefers_uploads():
    uploaded = [{"id": "upload-1", "url": "/static/byom-uploads/designs/a.png"}]
    assert resolve_asset_url("upload-1", uploaded) == "/static/byom-uploads/designs/a.png"
    assert resolve_asset_url("sticker-5") == "/stickers/sticker-5.png"
    assert resolve_asset_url("mystery") == ""


def test_side_data_for_review(sample_config):
    side = side_data(to_transport(sample_config), "back")
    assert side["side"] == "back"
    assert side["baseImage"] == "/byom/tshirt-black.svg"
    assert side["texts"] == []
    assert side["assets"][0]["url"] == "/stickers/sticker-1.png"


# ---------------------------------------------------------------------------
# Pricing policy records
# ---------------------------------------------------------------------------

def test_decode_policy_reads_aliases_and_decimal_strings():
    policy = decode_pricing_policy({
        "id": 4,
        "base_customization_fee": "2000.00",
        "front_placement_cost": "500.00",
        "backFee": 700,
        "text_customization_cost": "1000.00",
        "image_customization_cost": "1500.00",
    })
    assert policy == PricingPolicy(
        id=4, base_fee=2000, front_fee=500, back_fee=700,
        texts_customization_fee=1000, image_customization_fee=1500,
    )


def test_decode_policy_list_picks_global_entry():
    policy = decode_pricing_policy({"results": [
        {"id": 1, "base_fee": "10.00"},
        {"id": 2, "base_fee": "20.00", "is_global": True},
    ]})
    assert policy.id == 2
    assert policy.base_fee == 20
    assert decode_pricing_policy([]) is None


def test_policy_encoding_uses_backend_names():
    body = encode_pricing_policy(PricingPolicy(base_fee=2000, side_fee=300))
    assert body["base_customization_fee"] == "2000.00"
    assert body["side_placement_cost"] == "300.00"
    assert decode_pricing_policy(body).side_fee == 300


def test_pricing_changes_only_include_present_fields():
    assert decode_pricing_changes({"front_fee": "800"}) == {"front_fee": 800}
    assert decode_pricing_changes({"back_placement_cost": "lots"}) == {"back_fee": None}
    assert decode_pricing_changes({"is_active": "false"}) == {"is_active": False}


# ---------------------------------------------------------------------------
# Design records
# ---------------------------------------------------------------------------

def test_status_aliases():
    assert normalize_status("pending") == DesignStatus.PENDING_APPROVAL
    assert normalize_status("APPROVED") == DesignStatus.APPROVED
    assert normalize_status("whatever") == DesignStatus.PENDING_APPROVAL


def test_design_record_with_bare_user_id(sample_config):
    merch = decode_design_record({
        "id": 12,
        "user": 5,
        "user_email": "ada@example.com",
        "configuration_json": json.dumps(to_transport(sample_config)),
        "pricing_breakdown": {"total": "5700.00"},
        "status": "pending_approval",
    })
    assert merch.creator == "ada@example.com"
    assert merch.creator_id == 5
    assert merch.design_id == "BYOM-12"
    assert merch.product_type == "T-Shirts"
    assert merch.amount == 5700
    assert merch.image == "/byom/tshirt-black.svg"


def test_design_record_with_user_object():
    merch = decode_design_record({
        "id": 3,
        "user": {"id": 8, "first_name": "Ada", "last_name": "Lovelace"},
        "uploaded_image": "/static/byom-uploads/designs/x.png",
        "status": "rejected",
    })
    assert merch.creator == "Ada Lovelace"
    assert merch.custom_image == "/static/byom-uploads/designs/x.png"
    assert merch.status == DesignStatus.REJECTED


def test_design_from_record_without_status_is_draft():
    design = design_from_record({"id": 1, "user_id": "7", "configuration_json": "{}"})
    assert design.status == DesignStatus.DRAFT
    assert design.user_id == "7"
    assert not design.configuration.has_content()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def test_to_canonical_dispatches_on_fields(sample_config):
    assert isinstance(to_canonical({"id": 1, "configuration_json": "{}"}), CustomMerch)
    assert to_canonical(to_transport(sample_config)) == sample_config

    product = to_canonical({
        "id": 9, "name": "Black Hoodie", "featured_image": "/img/h.png", "price": "35000.00",
    })
    assert isinstance(product, CustomMerch)
    assert product.product_type == "Hoodies"
    assert product.amount == 35000

    sticker = to_canonical({"id": 2, "name": "Star", "image_url": "/stickers/star.png"})
    assert isinstance(sticker, Sticker)
    assert sticker.image == "/stickers/star.png"


def test_to_canonical_garbage_gives_default_configuration():
    assert to_canonical("<html>") == Configuration()


@pytest.mark.parametrize("raw", PATHOLOGICAL_INPUTS)
def test_to_canonical_never_raises_on_pathological_input(raw):
    assert to_canonical(raw) == Configuration()


def test_design_record_with_non_text_user_names():
    merch = to_canonical({"id": 1, "status": "pending", "user": {"id": 3, "first_name": 7}})
    assert merch.creator == "7"
    assert merch.creator_id == 3

    merch = to_canonical({"id": 2, "status": "pending", "user": {"id": 4, "email": None}})
    assert merch.creator == "Unknown"


# ---------------------------------------------------------------------------
# Round trip over generated configurations
# ---------------------------------------------------------------------------

COLOR_NAMES = ["Black", "NAVY", "navy", "Heather Grey", "wHiTe", "red"]
FONTS = ["Roboto", "Montserrat", "Courier New"]


def _generated_configuration(seed):
    rng = random.Random(seed)
    config = Configuration.empty(
        rng.choice(list(MerchType)),
        size=rng.choice(list(Size)),
        color=f"#{rng.randrange(0x1000000):06X}",
        color_name=rng.choice(COLOR_NAMES),
    )
    use_uploads = rng.random() < 0.3
    for index in range(rng.randint(0, 6)):
        zone = rng.choice(ZONES)
        if rng.random() < 0.5:
            config, _ = placement.add_text(
                config, zone, f"Text {index} é★",
                x=rng.uniform(-20, 120), y=rng.uniform(-20, 120),
                font_size=rng.randint(1, 100),
                font_family=rng.choice(FONTS),
                bold=rng.random() < 0.5,
                italic=rng.random() < 0.5,
                alignment=rng.choice(["left", "center", "right"]),
                letter_spacing=rng.choice([0, 1.5, -0.5]),
            )
        elif use_uploads:
            config, _ = placement.add_uploaded_image(
                config, zone, f"upload-{index}", f"/static/u/{index}.png", name=f"u{index}.png",
            )
        else:
            config, _ = placement.add_asset(
                config, zone, f"sticker-{rng.randint(1, 40)}",
                x=rng.uniform(0, 100), y=rng.uniform(0, 100), scale=rng.uniform(0, 4),
            )
    return config


@pytest.mark.parametrize("seed", range(40))
def test_generated_configurations_round_trip(seed):
    config = _generated_configuration(seed)
    assert parse_configuration(to_transport(config)) == config
    assert parse_configuration(json.dumps(to_transport(config))) == config
    assert to_canonical(to_transport(config)) == config


@pytest.mark.parametrize("color_name", ["Navy", "NAVY", "Heather Grey"])
def test_mixed_case_color_name_round_trip(color_name):
    config = Configuration.empty("tshirt", color="#000080", color_name=color_name)
    assert config.color_name == color_name.lower()
    assert to_canonical(to_transport(config)) == config
