"""
BYOM Customizer Module
======================

Design surface for Build-Your-Own-Merch: a customer places text and graphic
elements on the front, back and side of a garment.

Provides:
- Configuration model and transport JSON
- Placement engine (add/remove/move/scale, drag)
- Linear undo history
- Draft store keyed per merch type
"""

from .models import (
    Configuration, CustomAsset, CustomText, ElementKind, MerchType,
    PlacementDesign, PlacementZone, Size, UploadedSticker,
)
from .history import HistoryManager
from .placement import CanvasRect, DragController, PointerPosition
from .drafts import DraftStore, storage_key
from .session import CustomizerSession
from .transport import dumps_transport, parse_configuration, to_transport

__all__ = [
    'Configuration', 'CustomAsset', 'CustomText', 'ElementKind', 'MerchType',
    'PlacementDesign', 'PlacementZone', 'Size', 'UploadedSticker',
    'HistoryManager', 'CanvasRect', 'DragController', 'PointerPosition',
    'DraftStore', 'storage_key', 'CustomizerSession',
    'dumps_transport', 'parse_configuration', 'to_transport',
]
