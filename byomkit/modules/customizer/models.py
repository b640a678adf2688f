"""
Customizer Models
=================

Canonical in-memory representation of a BYOM customization.

A Configuration always carries the three placement zones (front, back, side),
each with its own ordered text and asset lists. Element order is creation
order and doubles as z-order when rendered.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from ...core.exceptions import ValidationError


class MerchType(str, Enum):
    TSHIRT = 'tshirt'
    LONGSLEEVE = 'longsleeve'
    HOODIE = 'hoodie'
    TROUSER = 'trouser'
    SHORT = 'short'
    HAT = 'hat'


class Size(str, Enum):
    S = 'S'
    M = 'M'
    L = 'L'
    XL = 'XL'
    XXL = 'XXL'


class PlacementZone(str, Enum):
    FRONT = 'front'
    BACK = 'back'
    SIDE = 'side'


class ElementKind(str, Enum):
    TEXT = 'text'
    ASSET = 'asset'


ZONES = (PlacementZone.FRONT, PlacementZone.BACK, PlacementZone.SIDE)

# Canvas coordinates are percentages of the preview box
COORD_MIN = 0.0
COORD_MAX = 100.0
SCALE_MIN = 0.5
SCALE_MAX = 3.0
FONT_SIZE_MIN = 12
FONT_SIZE_MAX = 72
DEFAULT_POSITION = 50.0

DEFAULT_COLOR = '#000000'
DEFAULT_COLOR_NAME = 'black'


def clamp(value, low, high):
    return max(low, min(high, value))


def coerce_enum(enum_cls, value, label):
    """Turn a raw string (or enum member) into ``enum_cls``"""
    try:
        return enum_cls(value.value if isinstance(value, Enum) else value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {label} '{value}'. Expected one of: {allowed}")


def coerce_zone(zone):
    return coerce_enum(PlacementZone, zone, 'placement zone')


@dataclass
class CustomText:
    id: str
    content: str
    font_size: int = 24
    font_family: str = 'Roboto'
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    alignment: str = 'center'
    color: str = '#FFFFFF'
    letter_spacing: float = 0
    line_height: float = 1.2
    x: float = DEFAULT_POSITION
    y: float = DEFAULT_POSITION


@dataclass
class CustomAsset:
    id: str
    asset_id: str
    x: float = DEFAULT_POSITION
    y: float = DEFAULT_POSITION
    scale: float = 1.0


@dataclass
class PlacementDesign:
    texts: List[CustomText] = field(default_factory=list)
    assets: List[CustomAsset] = field(default_factory=list)

    def is_empty(self):
        return not self.texts and not self.assets


@dataclass
class UploadedSticker:
    """A customer-provided graphic carried alongside the configuration"""
    id: str
    url: str = ''
    name: str = ''
    base64: str = ''


def empty_views() -> Dict[PlacementZone, PlacementDesign]:
    return {zone: PlacementDesign() for zone in ZONES}


@dataclass
class Configuration:
    merch_type: MerchType = MerchType.TSHIRT
    size: Size = Size.M
    color: str = DEFAULT_COLOR
    color_name: str = DEFAULT_COLOR_NAME
    views: Dict[PlacementZone, PlacementDesign] = field(default_factory=empty_views)
    uploaded_stickers: List[UploadedSticker] = field(default_factory=list)

    def __post_init__(self):
        # colour names are stored lowercase everywhere
        if isinstance(self.color_name, str):
            self.color_name = self.color_name.lower()

    @classmethod
    def empty(cls, merch_type=MerchType.TSHIRT, size=Size.M,
              color=DEFAULT_COLOR, color_name=DEFAULT_COLOR_NAME):
        return cls(
            merch_type=coerce_enum(MerchType, merch_type, 'merchandise type'),
            size=coerce_enum(Size, size, 'size'),
            color=color,
            color_name=color_name,
        )

    def view(self, zone) -> PlacementDesign:
        return self.views[coerce_zone(zone)]

    def copy(self):
        """Deep copy, so snapshots never share element objects"""
        return copy.deepcopy(self)

    def all_texts(self):
        return [text for zone in ZONES for text in self.views[zone].texts]

    def all_assets(self):
        return [asset for zone in ZONES for asset in self.views[zone].assets]

    def text_count(self):
        return len(self.all_texts())

    def asset_count(self):
        return len(self.all_assets())

    def has_text(self):
        return self.text_count() > 0

    def has_assets(self):
        return self.asset_count() > 0

    def has_content(self):
        return self.has_text() or self.has_assets()

    def zones_with_content(self):
        return [zone for zone in ZONES if not self.views[zone].is_empty()]

    def primary_placement(self):
        """Zone holding the most elements; front wins ties"""
        counts = {
            zone: len(self.views[zone].texts) + len(self.views[zone].assets)
            for zone in ZONES
        }
        front = counts[PlacementZone.FRONT]
        back = counts[PlacementZone.BACK]
        side = counts[PlacementZone.SIDE]
        if back > front and back > side:
            return PlacementZone.BACK
        if side > front and side > back:
            return PlacementZone.SIDE
        return PlacementZone.FRONT

    def element_ids(self):
        ids = set()
        for zone in ZONES:
            ids.update(text.id for text in self.views[zone].texts)
            ids.update(asset.id for asset in self.views[zone].assets)
        return ids
