"""
Transport Configuration JSON
============================

Wire/storage shape of a Configuration: camelCase keys with one object per
placement zone, plus any customer-uploaded images.

``parse_configuration`` is the tolerant reader. It never raises; malformed
input yields the default Configuration (tshirt, black, empty zones). Legacy
payloads are accepted too (``stickers``/``stickerId`` and the ``bs-``
merch-type prefix).
"""

import json
import logging
from typing import Any, Dict

from .models import (
    DEFAULT_COLOR, DEFAULT_COLOR_NAME, DEFAULT_POSITION, ZONES, Configuration,
    CustomAsset, CustomText, MerchType, PlacementDesign, Size, UploadedSticker,
)

logger = logging.getLogger(__name__)

LEGACY_TYPE_PREFIX = 'bs-'

MERCH_TYPE_ALIASES = {'pants': 'trouser', 'trousers': 'trouser', 'shorts': 'short'}


def first_value(record, *keys, default=None):
    """Value of the first key present (and not None/empty string) in ``record``"""
    for key in keys:
        value = record.get(key)
        if value is not None and value != '':
            return value
    return default


def as_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def as_bool(value, default=False):
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def load_json_object(raw):
    """dict from a dict, a JSON string or JSON bytes; None for anything else"""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except (ValueError, RecursionError):
            # RecursionError: pathologically nested input
            return None
        return value if isinstance(value, dict) else None
    return None


def text_to_transport(text):
    return {
        'id': text.id,
        'content': text.content,
        'fontSize': text.font_size,
        'fontFamily': text.font_family,
        'bold': text.bold,
        'italic': text.italic,
        'underline': text.underline,
        'strikethrough': text.strikethrough,
        'alignment': text.alignment,
        'color': text.color,
        'letterSpacing': text.letter_spacing,
        'lineHeight': text.line_height,
        'x': text.x,
        'y': text.y,
    }


def asset_to_transport(asset):
    return {
        'id': asset.id,
        'assetId': asset.asset_id,
        'x': asset.x,
        'y': asset.y,
        'scale': asset.scale,
    }


def to_transport(config) -> Dict[str, Any]:
    data = {
        'merchType': config.merch_type.value,
        'size': config.size.value,
        'color': config.color,
        'colorName': config.color_name,
    }
    for zone in ZONES:
        view = config.views[zone]
        data[zone.value] = {
            'texts': [text_to_transport(text) for text in view.texts],
            'assets': [asset_to_transport(asset) for asset in view.assets],
        }
    if config.uploaded_stickers:
        data['uploadedStickers'] = [
            {'id': s.id, 'url': s.url, 'name': s.name, 'base64': s.base64}
            for s in config.uploaded_stickers
        ]
    return data


def dumps_transport(config) -> str:
    return json.dumps(to_transport(config))


def _decode_text(raw, index):
    if not isinstance(raw, dict):
        return None
    return CustomText(
        id=str(first_value(raw, 'id', default=f"text-{index}")),
        content=str(first_value(raw, 'content', 'text', default='')),
        font_size=as_int(first_value(raw, 'fontSize', 'font_size'), 24),
        font_family=str(first_value(raw, 'fontFamily', 'font_family', default='Roboto')),
        bold=as_bool(raw.get('bold')),
        italic=as_bool(raw.get('italic')),
        underline=as_bool(raw.get('underline')),
        strikethrough=as_bool(raw.get('strikethrough')),
        alignment=str(first_value(raw, 'alignment', 'textAlign', default='center')),
        color=str(first_value(raw, 'color', default='#FFFFFF')),
        letter_spacing=as_float(first_value(raw, 'letterSpacing', 'letter_spacing'), 0),
        line_height=as_float(first_value(raw, 'lineHeight', 'line_height'), 1.2),
        x=as_float(raw.get('x'), DEFAULT_POSITION),
        y=as_float(raw.get('y'), DEFAULT_POSITION),
    )


def _decode_asset(raw, index):
    if not isinstance(raw, dict):
        return None
    asset_id = first_value(raw, 'assetId', 'stickerId', 'asset_id', 'sticker_id')
    if asset_id is None:
        return None
    return CustomAsset(
        id=str(first_value(raw, 'id', default=f"placed-{index}")),
        asset_id=str(asset_id),
        x=as_float(raw.get('x'), DEFAULT_POSITION),
        y=as_float(raw.get('y'), DEFAULT_POSITION),
        scale=as_float(raw.get('scale'), 1.0),
    )


def _decode_zone(raw):
    if not isinstance(raw, dict):
        return PlacementDesign()
    raw_texts = raw.get('texts') if isinstance(raw.get('texts'), list) else []
    raw_assets = raw.get('assets')
    if not isinstance(raw_assets, list):
        raw_assets = raw.get('stickers') if isinstance(raw.get('stickers'), list) else []

    texts = [_decode_text(item, i) for i, item in enumerate(raw_texts)]
    assets = [_decode_asset(item, i) for i, item in enumerate(raw_assets)]
    return PlacementDesign(
        texts=[text for text in texts if text is not None],
        assets=[asset for asset in assets if asset is not None],
    )


def decode_merch_type(value, default=MerchType.TSHIRT):
    """MerchType from a raw value, accepting the legacy ``bs-`` prefix"""
    if isinstance(value, MerchType):
        return value
    if not isinstance(value, str):
        return default
    name = value.strip().lower()
    if name.startswith(LEGACY_TYPE_PREFIX):
        name = name[len(LEGACY_TYPE_PREFIX):]
    name = MERCH_TYPE_ALIASES.get(name, name)
    try:
        return MerchType(name)
    except ValueError:
        return default


def _decode_size(value):
    try:
        return Size(str(value).upper())
    except ValueError:
        return Size.M


def _decode_uploaded(raw):
    if not isinstance(raw, list):
        return []
    uploaded = []
    for item in raw:
        if isinstance(item, dict) and item.get('id'):
            uploaded.append(UploadedSticker(
                id=str(item['id']),
                url=str(item.get('url') or ''),
                name=str(item.get('name') or ''),
                base64=str(item.get('base64') or ''),
            ))
    return uploaded


def _parse(data):
    views = {zone: _decode_zone(data.get(zone.value)) for zone in ZONES}
    return Configuration(
        merch_type=decode_merch_type(first_value(data, 'merchType', 'merch_type')),
        size=_decode_size(data.get('size', Size.M.value)),
        color=str(first_value(data, 'color', default=DEFAULT_COLOR)),
        color_name=str(first_value(data, 'colorName', 'color_name', default=DEFAULT_COLOR_NAME)),
        views=views,
        uploaded_stickers=_decode_uploaded(data.get('uploadedStickers')),
    )


def parse_configuration(raw) -> Configuration:
    """Configuration from transport JSON; the default Configuration on bad input"""
    data = load_json_object(raw)
    if data is None:
        if raw not in (None, '', b''):
            logger.debug("Unparseable configuration payload, using defaults")
        return Configuration()
    try:
        return _parse(data)
    except Exception as e:
        logger.warning(f"Malformed configuration, using defaults: {e}")
        return Configuration()

