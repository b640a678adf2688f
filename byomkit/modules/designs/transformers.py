"""
Transformers
============

Convert between the canonical in-memory types and the shapes that travel
over the wire or come back from the backend.

- ``to_transport`` / ``parse_configuration`` handle the transport
  Configuration JSON (see ``customizer.transport``).
- ``to_canonical`` decodes any backend record (design, BYOM product,
  sticker or transport configuration) by looking at which fields it carries.
- ``decode_pricing_policy`` / ``encode_pricing_policy`` map the global
  pricing policy to and from its backend field names.

Backend records are inconsistent about field names, so every decoder reads
aliases in a fixed priority order and falls back to a default.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..customizer.models import PlacementZone
from ..customizer.transport import (
    LEGACY_TYPE_PREFIX, as_bool, as_int, asset_to_transport, dumps_transport,
    first_value, load_json_object, parse_configuration, text_to_transport, to_transport,
)
from ..pricing.engine import (
    decode_pricing_changes, decode_pricing_policy, encode_pricing_policy, to_minor_units,
)
from .workflow import Design, DesignStatus

# Garment templates shipped under /byom/<type>-<color>.svg
BASE_IMAGE_TYPES = ('tshirt', 'short', 'pants', 'longsleeve', 'hoodie', 'hat')
BASE_IMAGE_COLORS = ('black', 'blue', 'green', 'grey', 'navy', 'red', 'white', 'yellow')
BASE_IMAGE_TYPE_ALIASES = {'trouser': 'pants', 'trousers': 'pants', 'shorts': 'short'}
FALLBACK_BASE_IMAGE_TYPE = 'hoodie'
FALLBACK_BASE_IMAGE_COLOR = 'black'

PRODUCT_CATEGORIES = (
    ('hoodie', 'Hoodies'),
    ('longsleeve', 'Long Sleeves'),
    ('long sleeve', 'Long Sleeves'),
    ('tshirt', 'T-Shirts'),
    ('t-shirt', 'T-Shirts'),
    ('trouser', 'Trousers'),
    ('pants', 'Trousers'),
    ('short', 'Shorts'),
    ('hat', 'Hats'),
    ('cap', 'Hats'),
)

STATUS_ALIASES = {
    'draft': DesignStatus.DRAFT,
    'pending': DesignStatus.PENDING_APPROVAL,
    'pending_approval': DesignStatus.PENDING_APPROVAL,
    'approved': DesignStatus.APPROVED,
    'rejected': DesignStatus.REJECTED,
}


# ---------------------------------------------------------------------------
# Asset and garment images
# ---------------------------------------------------------------------------

def resolve_asset_url(asset_id, uploaded=None):
    """Image URL for a placed asset: uploads first, then the sticker catalog"""
    asset_id = str(asset_id or '')
    for item in uploaded or []:
        if isinstance(item, dict):
            item_id, url, b64 = item.get('id'), item.get('url'), item.get('base64')
        else:
            item_id, url, b64 = item.id, item.url, item.base64
        if str(item_id) == asset_id:
            return url or b64 or ''
    if asset_id.startswith('sticker-'):
        return f"/stickers/{asset_id}.png"
    return ''


def base_image_path(merch_type, color_name=None):
    """Garment template path, falling back to a black hoodie"""
    kind = str(getattr(merch_type, 'value', merch_type) or '').strip().lower()
    if kind.startswith(LEGACY_TYPE_PREFIX):
        kind = kind[len(LEGACY_TYPE_PREFIX):]
    kind = BASE_IMAGE_TYPE_ALIASES.get(kind, kind)
    if kind not in BASE_IMAGE_TYPES:
        kind = FALLBACK_BASE_IMAGE_TYPE

    color = str(color_name or '').strip().lower()
    if color == 'gray':
        color = 'grey'
    if color not in BASE_IMAGE_COLORS:
        color = FALLBACK_BASE_IMAGE_COLOR
    return f"/byom/{kind}-{color}.svg"


def side_data(raw_config, zone):
    """Everything the admin review needs to draw one zone of a design"""
    config = parse_configuration(raw_config)
    try:
        zone = PlacementZone(zone)
    except ValueError:
        zone = PlacementZone.FRONT
    view = config.views[zone]
    return {
        'side': zone.value,
        'baseImage': base_image_path(config.merch_type, config.color_name),
        'merchType': config.merch_type.value,
        'size': config.size.value,
        'color': config.color,
        'colorName': config.color_name,
        'texts': [text_to_transport(text) for text in view.texts],
        'assets': [
            dict(asset_to_transport(asset),
                 url=resolve_asset_url(asset.asset_id, config.uploaded_stickers))
            for asset in view.assets
        ],
    }


# ---------------------------------------------------------------------------
# Backend records
# ---------------------------------------------------------------------------

@dataclass
class CustomMerch:
    """Flattened design/product summary used by listings and review screens"""
    id: Any
    design_name: str
    design_id: str
    creator: str
    creator_id: Any
    product_type: str
    image: str
    custom_image: str = ''
    custom_text: str = ''
    front_view: str = ''
    back_view: str = ''
    side_view: str = ''
    amount: float = 0.0
    quantity: int = 1
    status: DesignStatus = DesignStatus.PENDING_APPROVAL
    date_created: str = ''
    is_in_stock: Optional[bool] = None
    currency: Optional[str] = None

    def to_dict(self):
        data = dict(self.__dict__)
        data['status'] = self.status.value
        return data


@dataclass
class Sticker:
    id: Any
    name: str
    image: str
    is_active: bool = True
    created_at: str = ''


def normalize_status(status) -> DesignStatus:
    return STATUS_ALIASES.get(str(status or '').strip().lower(), DesignStatus.PENDING_APPROVAL)


def infer_product_category(name) -> str:
    lowered = str(name or '').lower()
    for needle, category in PRODUCT_CATEGORIES:
        if needle in lowered:
            return category
    return 'Custom Merch'


def _creator(raw):
    user = raw.get('user')
    if isinstance(user, dict):
        full_name = ' '.join(
            str(part) for part in (user.get('first_name'), user.get('last_name')) if part
        )
        return full_name or str(user.get('email') or 'Unknown'), user.get('id')
    email = first_value(raw, 'user_email', 'email')
    return str(email or (f"User #{user}" if user is not None else 'Unknown')), user


def _product_name(raw):
    product = raw.get('product')
    if isinstance(product, dict):
        return first_value(product, 'name', 'title', default='')
    return product if isinstance(product, str) else ''


def decode_design_record(raw) -> CustomMerch:
    creator, creator_id = _creator(raw)
    config_raw = first_value(raw, 'configuration_json', 'configuration')
    config = parse_configuration(config_raw)
    product_name = _product_name(raw) or f"Custom {config.merch_type.value}"
    uploaded_image = first_value(raw, 'uploaded_image_url', 'uploaded_image', 'image_url', default='')
    breakdown = load_json_object(raw.get('pricing_breakdown')) or {}
    base_image = base_image_path(config.merch_type, config.color_name)

    return CustomMerch(
        id=raw.get('id'),
        design_name=str(first_value(raw, 'name', 'design_name', default=f"Design #{raw.get('id')}")),
        design_id=f"BYOM-{raw.get('id')}",
        creator=creator,
        creator_id=creator_id,
        product_type=infer_product_category(product_name),
        image=uploaded_image or base_image,
        custom_image=uploaded_image,
        custom_text=str(raw.get('text') or ''),
        front_view=base_image,
        back_view=base_image,
        side_view=base_image,
        amount=to_minor_units(first_value(breakdown, 'total', default=raw.get('total_price'))),
        quantity=as_int(raw.get('quantity'), 1),
        status=normalize_status(raw.get('status')),
        date_created=str(first_value(raw, 'created_at', 'date_created', default='')),
    )


def design_from_record(raw) -> Design:
    """Design from a backend record or a database row (as dict)"""
    user = raw.get('user')
    if isinstance(user, dict):
        user_id, user_email = user.get('id'), user.get('email') or ''
    else:
        user_id = first_value(raw, 'user_id', 'user')
        user_email = first_value(raw, 'user_email', 'email', default='')

    status = raw.get('status')
    return Design(
        id=raw.get('id'),
        user_id=user_id,
        user_email=str(user_email),
        name=str(first_value(raw, 'name', 'design_name', default='')),
        color=str(raw.get('color') or ''),
        size=str(raw.get('size') or 'M'),
        placement=str(raw.get('placement') or PlacementZone.FRONT.value),
        text=str(raw.get('text') or ''),
        configuration=parse_configuration(first_value(raw, 'configuration_json', 'configuration')),
        uploaded_image=first_value(raw, 'uploaded_image_url', 'uploaded_image', 'image_url'),
        status=normalize_status(status) if status else DesignStatus.DRAFT,
        rejection_reason=raw.get('rejection_reason') or None,
        pricing_breakdown=load_json_object(raw.get('pricing_breakdown')),
        created_at=raw.get('created_at'),
        updated_at=raw.get('updated_at'),
        approved_at=raw.get('approved_at'),
        approved_by=raw.get('approved_by'),
    )


def encode_design_record(design, orders=None) -> Dict[str, Any]:
    """Backend record shape for a Design (what the BYOM API returns)"""
    record = {
        'id': design.id,
        'user': {'id': design.user_id, 'email': design.user_email},
        'name': design.name,
        'product_name': f"Custom {design.configuration.merch_type.value}",
        'color': design.color,
        'size': design.size,
        'placement': design.placement,
        'text': design.text,
        'configuration_json': to_transport(design.configuration),
        'uploaded_image': design.uploaded_image,
        'status': design.status.value,
        'rejection_reason': design.rejection_reason,
        'pricing_breakdown': design.pricing_breakdown,
        'is_active': True,
        'created_at': design.created_at,
        'updated_at': design.updated_at,
        'approved_at': design.approved_at,
        'approved_by': design.approved_by,
    }
    if orders is not None:
        record['orders'] = orders
    return record


def is_byom_product(raw) -> bool:
    if as_bool(raw.get('is_byom')):
        return True
    category = raw.get('category')
    name = category.get('name') if isinstance(category, dict) else category
    return 'byom' in str(name or '').lower() or 'build your own' in str(name or '').lower()


def decode_byom_product(raw) -> CustomMerch:
    name = str(first_value(raw, 'name', 'title', default=f"Product #{raw.get('id')}"))
    image = first_value(raw, 'featured_image', 'image', 'thumbnail_url', default='')
    stock = raw.get('stock_quantity')
    return CustomMerch(
        id=raw.get('id'),
        design_name=name,
        design_id=str(first_value(raw, 'sku', default=f"BYOM-P{raw.get('id')}")),
        creator='Store',
        creator_id=None,
        product_type=infer_product_category(name),
        image=image,
        front_view=image,
        amount=to_minor_units(first_value(raw, 'price', 'base_price')),
        quantity=as_int(stock, 0) if stock is not None else 1,
        status=DesignStatus.APPROVED,
        date_created=str(raw.get('created_at') or ''),
        is_in_stock=as_bool(raw.get('is_in_stock'), default=True) if 'is_in_stock' in raw else None,
        currency=raw.get('currency'),
    )


def decode_sticker(raw) -> Sticker:
    return Sticker(
        id=raw.get('id'),
        name=str(first_value(raw, 'name', 'title', default=f"Sticker {raw.get('id')}")),
        image=str(first_value(raw, 'image', 'image_url', 'url', default='')),
        is_active=as_bool(raw.get('is_active'), default=True) if 'is_active' in raw else True,
        created_at=str(raw.get('created_at') or ''),
    )


def record_kind(raw) -> str:
    """Which decoder a raw record belongs to"""
    if not isinstance(raw, dict):
        return 'configuration'
    if any(key in raw for key in ('merchType', 'front', 'back', 'side')):
        return 'configuration'
    if any(key in raw for key in ('configuration_json', 'configuration', 'rejection_reason')):
        return 'design'
    if 'status' in raw and ('user' in raw or 'user_email' in raw):
        return 'design'
    if is_byom_product(raw) or 'featured_image' in raw or 'stock_quantity' in raw:
        return 'product'
    if 'image' in raw or 'image_url' in raw:
        return 'sticker'
    return 'configuration'


DECODERS = {
    'configuration': parse_configuration,
    'design': decode_design_record,
    'product': decode_byom_product,
    'sticker': decode_sticker,
}


def to_canonical(raw):
    """Decode any backend record or transport payload to its canonical type"""
    data = load_json_object(raw)
    if data is None:
        return parse_configuration(raw)
    return DECODERS[record_kind(data)](data)


__all__ = [
    'to_transport', 'dumps_transport', 'parse_configuration', 'to_canonical',
    'resolve_asset_url', 'base_image_path', 'side_data', 'normalize_status',
    'infer_product_category', 'decode_pricing_policy', 'decode_pricing_changes',
    'encode_pricing_policy',
    'design_from_record', 'encode_design_record', 'CustomMerch', 'Sticker', 'load_json_object',
]
