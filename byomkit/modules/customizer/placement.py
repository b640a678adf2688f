"""
Placement Engine
================

Pure operations over an explicit Configuration. Every public function takes
the current Configuration and returns a new one; the input is never touched,
so a rejected operation cannot leave a half-applied state behind.

Dragging is the one exception: ``DragController`` moves an element on the
caller's live copy for responsive feedback, and the caller commits that copy
to history once the drag ends.
"""

import uuid
from dataclasses import dataclass

from ...core.exceptions import NotFoundError, ValidationError
from .models import (
    COORD_MAX, COORD_MIN, DEFAULT_POSITION, FONT_SIZE_MAX, FONT_SIZE_MIN,
    SCALE_MAX, SCALE_MIN, ZONES, Configuration, CustomAsset, CustomText,
    ElementKind, PlacementZone, Size, UploadedSticker, clamp, coerce_enum, coerce_zone,
)

ALIGNMENTS = ('left', 'center', 'right')

DEFAULT_TEXT_STYLE = {
    'font_size': 24,
    'font_family': 'Roboto',
    'bold': False,
    'italic': False,
    'underline': False,
    'strikethrough': False,
    'alignment': 'center',
    'color': '#FFFFFF',
    'letter_spacing': 0,
    'line_height': 1.2,
}


@dataclass(frozen=True)
class CanvasRect:
    """Bounding box of the preview canvas in client coordinates"""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class PointerPosition:
    x: float
    y: float


def to_canvas_percent(pointer, canvas):
    """Express a pointer position as a percentage of the canvas box (unclamped)"""
    if canvas.width <= 0 or canvas.height <= 0:
        raise ValidationError('Canvas has no area')
    return (
        (pointer.x - canvas.left) / canvas.width * 100,
        (pointer.y - canvas.top) / canvas.height * 100,
    )


def new_element_id(prefix):
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def clamp_position(x, y):
    return clamp(float(x), COORD_MIN, COORD_MAX), clamp(float(y), COORD_MIN, COORD_MAX)


def _index_of(items, element_id, label):
    for index, item in enumerate(items):
        if item.id == element_id:
            return index
    raise NotFoundError(f"{label} '{element_id}' not found")


def find_element(config, zone, kind, element_id):
    kind = coerce_enum(ElementKind, kind, 'element kind')
    view = config.view(zone)
    if kind == ElementKind.TEXT:
        return view.texts[_index_of(view.texts, element_id, 'Text')]
    return view.assets[_index_of(view.assets, element_id, 'Asset')]


def uploaded_sticker_ids(config):
    return {sticker.id for sticker in config.uploaded_stickers}


def uses_catalog_stickers(config):
    uploaded = uploaded_sticker_ids(config)
    return any(asset.asset_id not in uploaded for asset in config.all_assets())


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def add_text(config, zone, content, x=DEFAULT_POSITION, y=DEFAULT_POSITION, **style):
    """Place a new text element. Returns (new_config, text)."""
    zone = coerce_zone(zone)
    if not content or not content.strip():
        raise ValidationError('Please enter some text')

    unknown = set(style) - set(DEFAULT_TEXT_STYLE)
    if unknown:
        raise ValidationError(f"Unknown text style option(s): {', '.join(sorted(unknown))}")

    settings = dict(DEFAULT_TEXT_STYLE, **style)
    if settings['alignment'] not in ALIGNMENTS:
        raise ValidationError(f"Invalid alignment '{settings['alignment']}'")
    settings['font_size'] = clamp(int(settings['font_size']), FONT_SIZE_MIN, FONT_SIZE_MAX)

    x, y = clamp_position(x, y)
    text = CustomText(id=new_element_id('text'), content=content, x=x, y=y, **settings)

    new_config = config.copy()
    new_config.view(zone).texts.append(text)
    return new_config, text


def remove_text(config, zone, text_id):
    new_config = config.copy()
    texts = new_config.view(zone).texts
    del texts[_index_of(texts, text_id, 'Text')]
    return new_config


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

def add_asset(config, zone, asset_id, x=DEFAULT_POSITION, y=DEFAULT_POSITION, scale=1.0):
    """Place a catalog graphic/sticker or an already-uploaded image.

    Custom uploads and catalog stickers cannot be mixed in one design.
    Returns (new_config, asset).
    """
    zone = coerce_zone(zone)
    if not asset_id:
        raise ValidationError('Asset id is required')

    asset_id = str(asset_id)
    if asset_id in uploaded_sticker_ids(config):
        if uses_catalog_stickers(config):
            raise ValidationError(
                'Cannot use both custom images and stickers. Please remove stickers first.'
            )
    elif config.uploaded_stickers:
        raise ValidationError(
            'Cannot use both custom images and stickers. Please remove custom images first.'
        )

    x, y = clamp_position(x, y)
    asset = CustomAsset(
        id=new_element_id('placed'),
        asset_id=asset_id,
        x=x,
        y=y,
        scale=clamp(float(scale), SCALE_MIN, SCALE_MAX),
    )

    new_config = config.copy()
    new_config.view(zone).assets.append(asset)
    return new_config, asset


def remove_asset(config, zone, asset_id):
    new_config = config.copy()
    assets = new_config.view(zone).assets
    del assets[_index_of(assets, asset_id, 'Asset')]
    return new_config


def scale_asset(config, zone, asset_id, delta):
    """Adjust an asset's scale by ``delta``, clamped to [0.5, 3.0]"""
    new_config = config.copy()
    assets = new_config.view(zone).assets
    asset = assets[_index_of(assets, asset_id, 'Asset')]
    asset.scale = clamp(asset.scale + float(delta), SCALE_MIN, SCALE_MAX)
    return new_config


def add_uploaded_image(config, zone, image_id, url, name='', base64=''):
    """Attach a customer upload and place it on ``zone``. Returns (new_config, asset)."""
    zone = coerce_zone(zone)
    if uses_catalog_stickers(config):
        raise ValidationError(
            'You have already used stickers. Please remove them first to upload a custom image.'
        )
    if image_id in uploaded_sticker_ids(config):
        raise ValidationError(f"Image '{image_id}' is already uploaded")

    staged = config.copy()
    staged.uploaded_stickers.append(
        UploadedSticker(id=image_id, url=url, name=name, base64=base64)
    )
    return add_asset(staged, zone, image_id)


def remove_uploaded_image(config, image_id):
    """Drop an upload and every placement of it across all zones"""
    new_config = config.copy()
    _index_of(new_config.uploaded_stickers, image_id, 'Uploaded image')
    new_config.uploaded_stickers = [
        sticker for sticker in new_config.uploaded_stickers if sticker.id != image_id
    ]
    for zone in ZONES:
        view = new_config.views[zone]
        view.assets = [asset for asset in view.assets if asset.asset_id != image_id]
    return new_config


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------

def _set_position(config, zone, kind, element_id, x, y):
    element = find_element(config, zone, kind, element_id)
    element.x, element.y = clamp_position(x, y)
    return element


def move_element(config, zone, kind, element_id, x, y):
    new_config = config.copy()
    _set_position(new_config, zone, kind, element_id, x, y)
    return new_config


# ---------------------------------------------------------------------------
# Garment options
# ---------------------------------------------------------------------------

def set_color(config, color, color_name):
    if not color:
        raise ValidationError('Color is required')
    new_config = config.copy()
    new_config.color = color
    new_config.color_name = (color_name or '').lower() or new_config.color_name
    return new_config


def set_size(config, size):
    new_config = config.copy()
    new_config.size = coerce_enum(Size, size, 'size')
    return new_config


def reset(config):
    """Empty design that keeps the garment type, size and colour"""
    return Configuration.empty(
        merch_type=config.merch_type,
        size=config.size,
        color=config.color,
        color_name=config.color_name,
    )


# ---------------------------------------------------------------------------
# Drag
# ---------------------------------------------------------------------------

@dataclass
class ActiveDrag:
    zone: PlacementZone
    kind: ElementKind
    element_id: str
    offset_x: float
    offset_y: float


class DragController:
    """Tracks the single element being dragged and its pointer offset"""

    def __init__(self):
        self.active = None

    @property
    def is_dragging(self):
        return self.active is not None

    def begin(self, config, zone, kind, element_id, pointer, canvas):
        zone = coerce_zone(zone)
        kind = coerce_enum(ElementKind, kind, 'element kind')
        element = find_element(config, zone, kind, element_id)
        px, py = to_canvas_percent(pointer, canvas)
        self.active = ActiveDrag(zone, kind, element_id, px - element.x, py - element.y)
        return self.active

    def update(self, live_config, pointer, canvas):
        """Move the dragged element on ``live_config`` in place"""
        if self.active is None:
            return None
        px, py = to_canvas_percent(pointer, canvas)
        drag = self.active
        return _set_position(
            live_config, drag.zone, drag.kind, drag.element_id,
            px - drag.offset_x, py - drag.offset_y,
        )

    def end(self):
        """Release the element. Returns True when a drag was in progress."""
        was_dragging = self.active is not None
        self.active = None
        return was_dragging


__all__ = [
    'CanvasRect', 'PointerPosition', 'DragController', 'to_canvas_percent',
    'add_text', 'remove_text', 'add_asset', 'remove_asset', 'scale_asset',
    'add_uploaded_image', 'remove_uploaded_image', 'move_element',
    'set_color', 'set_size', 'reset', 'find_element',
]
