"""
Pricing Engine
==============

Two ways of pricing a Configuration live side by side:

- ``policy_breakdown`` is the canonical, purchasable total. It applies the
  admin-configured PricingPolicy (base fee, per-placement fees, text and
  image customization fees).
- ``estimate_breakdown`` is the legacy per-element count formula. It is only
  ever shown as an estimate and its result is flagged ``estimate=True``.

Amounts are integers in minor currency units (pence/kobo). A breakdown's
total is always the sum of its lines.

The bottom of the module maps the global policy to and from the backend
record, whose field names vary between API versions.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ...core.exceptions import ValidationError
from ..customizer.models import ZONES, MerchType, PlacementZone
from ..customizer.transport import as_bool, as_int, first_value, load_json_object

DEFAULT_PRIORITY = 2147483647

# Count-based preview prices (minor units)
BASE_PRICES = {
    MerchType.TSHIRT: 15000,
    MerchType.LONGSLEEVE: 20000,
    MerchType.HOODIE: 35000,
    MerchType.TROUSER: 28000,
    MerchType.SHORT: 18000,
    MerchType.HAT: 8000,
}
ESTIMATE_TEXT_PRICE = 1000
ESTIMATE_ASSET_PRICE = 500

FEE_FIELDS = (
    'base_fee', 'image_customization_fee', 'texts_customization_fee',
    'front_fee', 'back_fee', 'side_fee',
)


def to_minor_units(value, default=0):
    """Integer amount from a number or a decimal string such as '2000.00'"""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(Decimal(str(value)).quantize(Decimal('1')))
    except (InvalidOperation, ValueError):
        return default


@dataclass
class PricingPolicy:
    base_fee: int = 0
    image_customization_fee: int = 0
    texts_customization_fee: int = 0
    front_fee: int = 0
    back_fee: int = 0
    side_fee: int = 0
    is_active: bool = True
    priority: int = DEFAULT_PRIORITY
    id: Optional[int] = None
    product: int = 0

    def validate(self):
        for name in FEE_FIELDS:
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} cannot be negative")
        return self

    def placement_fee(self, zone):
        """Fee for customizing ``zone``; unknown or missing zones use the front fee"""
        try:
            zone = PlacementZone(zone)
        except ValueError:
            zone = PlacementZone.FRONT
        return {
            PlacementZone.FRONT: self.front_fee,
            PlacementZone.BACK: self.back_fee,
            PlacementZone.SIDE: self.side_fee,
        }[zone]

    def to_dict(self):
        return {
            'id': self.id,
            'product': self.product,
            'baseFee': self.base_fee,
            'imageCustomizationFee': self.image_customization_fee,
            'textsCustomizationFee': self.texts_customization_fee,
            'frontFee': self.front_fee,
            'backFee': self.back_fee,
            'sideFee': self.side_fee,
            'is_active': self.is_active,
            'priority': self.priority,
        }


@dataclass
class BreakdownLine:
    label: str
    amount: int
    code: str = ''


@dataclass
class PriceBreakdown:
    lines: List[BreakdownLine] = field(default_factory=list)
    estimate: bool = False

    @property
    def total(self):
        return sum(line.amount for line in self.lines)

    def add(self, label, amount, code=''):
        if amount < 0:
            raise ValidationError(f"Price line '{label}' cannot be negative")
        self.lines.append(BreakdownLine(label, amount, code))

    def amount_for(self, code):
        return sum(line.amount for line in self.lines if line.code == code)

    def to_dict(self):
        return {
            'lines': [{'label': line.label, 'amount': line.amount} for line in self.lines],
            'total': self.total,
            'estimate': self.estimate,
        }

    def to_snapshot(self):
        """Backend ``pricing_breakdown`` shape stored on a design"""
        placement_costs = {
            line.code.split(':', 1)[1]: line.amount
            for line in self.lines if line.code.startswith('placement:')
        }
        return {
            'total': self.total,
            'base_fee': self.amount_for('base'),
            'has_text': any(line.code == 'text' for line in self.lines),
            'has_image': any(line.code == 'image' for line in self.lines),
            'text_cost': self.amount_for('text'),
            'image_cost': self.amount_for('image'),
            'combination_cost': self.amount_for('combination'),
            'placement_costs': placement_costs,
            'placement_count': len(placement_costs),
            'placement_total': sum(placement_costs.values()),
        }


def policy_breakdown(config, policy):
    """Canonical purchasable price for ``config`` under ``policy``"""
    policy.validate()
    breakdown = PriceBreakdown()
    breakdown.add('Base customization fee', policy.base_fee, 'base')

    for zone in config.zones_with_content():
        breakdown.add(
            f"{zone.value.capitalize()} placement fee",
            policy.placement_fee(zone),
            f"placement:{zone.value}",
        )

    if config.has_text():
        breakdown.add('Text customization fee', policy.texts_customization_fee, 'text')
    if config.has_assets():
        breakdown.add('Image customization fee', policy.image_customization_fee, 'image')
    return breakdown


def estimate_breakdown(config):
    """Count-based preview price. Never used as a purchasable total."""
    breakdown = PriceBreakdown(estimate=True)
    merch_type = MerchType(config.merch_type)
    text_count = sum(len(config.views[zone].texts) for zone in ZONES)
    asset_count = sum(len(config.views[zone].assets) for zone in ZONES)

    breakdown.add(f"Base price ({merch_type.value})", BASE_PRICES[merch_type], 'base')
    if text_count:
        breakdown.add(
            f"Text elements ({text_count} x {ESTIMATE_TEXT_PRICE})",
            text_count * ESTIMATE_TEXT_PRICE, 'text',
        )
    if asset_count:
        breakdown.add(
            f"Assets ({asset_count} x {ESTIMATE_ASSET_PRICE})",
            asset_count * ESTIMATE_ASSET_PRICE, 'image',
        )
    return breakdown


# ---------------------------------------------------------------------------
# Backend policy records
# ---------------------------------------------------------------------------

# Backend field name aliases for the global pricing policy, highest priority first
POLICY_ALIASES = {
    'base_fee': ('base_customization_fee', 'base_fee', 'base_byom_fee', 'baseFee'),
    'image_customization_fee': (
        'image_customization_cost', 'image_customization_fee', 'imageCustomizationFee',
    ),
    'texts_customization_fee': (
        'text_customization_cost', 'texts_customization_fee', 'text_customization_fee',
        'textsCustomizationFee',
    ),
    'front_fee': ('front_placement_cost', 'front_fee', 'frontFee'),
    'back_fee': ('back_placement_cost', 'back_fee', 'backFee'),
    'side_fee': ('side_placement_cost', 'side_fee', 'sideFee'),
}


def decode_pricing_policy(raw) -> Optional[PricingPolicy]:
    """PricingPolicy from a backend record; a list picks the global/first entry"""
    if isinstance(raw, list):
        records = [item for item in raw if isinstance(item, dict)]
        if not records:
            return None
        raw = next((item for item in records if as_bool(item.get('is_global'))), records[0])
    if isinstance(raw, dict) and isinstance(raw.get('results'), list):
        return decode_pricing_policy(raw['results'])

    data = load_json_object(raw)
    if data is None:
        return None

    fees = {
        name: to_minor_units(first_value(data, *aliases))
        for name, aliases in POLICY_ALIASES.items()
    }
    return PricingPolicy(
        id=data.get('id'),
        product=as_int(data.get('product'), 0),
        is_active=as_bool(data.get('is_active'), default=True) if 'is_active' in data else True,
        priority=as_int(data.get('priority'), DEFAULT_PRIORITY),
        **fees,
    )


def decode_pricing_changes(raw) -> Dict[str, Any]:
    """Only the PricingPolicy fields present in a partial update payload"""
    data = load_json_object(raw) or {}
    changes = {}
    for name, aliases in POLICY_ALIASES.items():
        value = first_value(data, *aliases)
        if value is not None:
            changes[name] = to_minor_units(value, default=None)
    if 'is_active' in data:
        changes['is_active'] = as_bool(data.get('is_active'))
    if 'priority' in data:
        changes['priority'] = as_int(data.get('priority'), DEFAULT_PRIORITY)
    return changes


def encode_pricing_policy(policy) -> Dict[str, Any]:
    """Backend field names for a PricingPolicy (amounts as decimal strings)"""
    return {
        'product': policy.product,
        'base_customization_fee': f"{policy.base_fee:.2f}",
        'front_placement_cost': f"{policy.front_fee:.2f}",
        'back_placement_cost': f"{policy.back_fee:.2f}",
        'side_placement_cost': f"{policy.side_fee:.2f}",
        'text_customization_cost': f"{policy.texts_customization_fee:.2f}",
        'image_customization_cost': f"{policy.image_customization_fee:.2f}",
        'is_active': policy.is_active,
        'priority': policy.priority,
    }


