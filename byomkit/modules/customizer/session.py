"""
Customizer Session
==================

Live state for one customer editing one garment: the working Configuration,
its undo history, the active drag and the draft store.

The history always starts from the empty Configuration. A restored draft
becomes the live copy without adding an undo step.

History rules:
- add/remove, colour, size, move and reset commit immediately;
- scale changes update the live copy without a history entry;
- a drag updates the live copy on every pointer move and commits once when
  it ends. Starting a new drag ends (and commits) the previous one.

The draft store is written on commits and scale changes. Pointer moves during
a drag are not persisted until the drag ends.
"""

from . import placement
from .history import HistoryManager
from .models import DEFAULT_POSITION, Configuration, MerchType, coerce_enum
from .placement import CanvasRect, DragController
from .transport import to_transport

DEFAULT_CANVAS = CanvasRect(left=0, top=0, width=100, height=100)


class CustomizerSession:

    def __init__(self, merch_type=MerchType.TSHIRT, draft_store=None, canvas=None, restore=True):
        self.merch_type = coerce_enum(MerchType, merch_type, 'merchandise type')
        self.draft_store = draft_store
        self.canvas = canvas or DEFAULT_CANVAS
        self.selected_assets = []

        empty = Configuration.empty(self.merch_type)
        self.history = HistoryManager(empty)
        self.config = empty.copy()
        if draft_store is not None and restore:
            restored = draft_store.load(self.merch_type)
            if restored is not None:
                # the restored draft is live but not an undo step
                self.config, self.selected_assets = restored
        self.drag = DragController()

    # -- internals ---------------------------------------------------------

    def _persist(self):
        if self.draft_store is not None:
            self.draft_store.save(self.config, self.selected_assets)

    def _apply(self, new_config, commit=True):
        self._finish_drag()
        self.config = new_config
        if commit:
            self.history.commit(self.config)
        self._persist()
        return self.config

    def _finish_drag(self):
        if self.drag.end():
            self.history.commit(self.config)
            self._persist()
            return True
        return False

    # -- elements ----------------------------------------------------------

    def add_text(self, zone, content, x=DEFAULT_POSITION, y=DEFAULT_POSITION, **style):
        new_config, text = placement.add_text(self.config, zone, content, x, y, **style)
        self._apply(new_config)
        return text

    def remove_text(self, zone, text_id):
        return self._apply(placement.remove_text(self.config, zone, text_id))

    def add_asset(self, zone, asset_id, x=DEFAULT_POSITION, y=DEFAULT_POSITION):
        new_config, asset = placement.add_asset(self.config, zone, asset_id, x, y)
        if asset.asset_id not in placement.uploaded_sticker_ids(new_config) \
                and asset.asset_id not in self.selected_assets:
            self.selected_assets.append(asset.asset_id)
        self._apply(new_config)
        return asset

    def remove_asset(self, zone, asset_id):
        new_config = placement.remove_asset(self.config, zone, asset_id)
        still_used = {asset.asset_id for asset in new_config.all_assets()}
        self.selected_assets = [a for a in self.selected_assets if a in still_used]
        return self._apply(new_config)

    def scale_asset(self, zone, asset_id, delta):
        """Resize without a history entry"""
        return self._apply(placement.scale_asset(self.config, zone, asset_id, delta), commit=False)

    def add_uploaded_image(self, zone, image_id, url, name='', base64=''):
        new_config, asset = placement.add_uploaded_image(
            self.config, zone, image_id, url, name, base64
        )
        self._apply(new_config)
        return asset

    def remove_uploaded_image(self, image_id):
        return self._apply(placement.remove_uploaded_image(self.config, image_id))

    def move_element(self, zone, kind, element_id, x, y):
        return self._apply(placement.move_element(self.config, zone, kind, element_id, x, y))

    # -- garment -----------------------------------------------------------

    def set_color(self, color, color_name):
        return self._apply(placement.set_color(self.config, color, color_name))

    def set_size(self, size):
        return self._apply(placement.set_size(self.config, size))

    def reset(self):
        """Commit an empty design and forget the stored draft"""
        self._finish_drag()
        self.config = placement.reset(self.config)
        self.selected_assets = []
        self.history.commit(self.config)
        if self.draft_store is not None:
            self.draft_store.clear(self.merch_type)
        return self.config

    # -- history -----------------------------------------------------------

    def can_undo(self):
        return self.history.can_undo()

    def undo(self):
        """Step back one committed snapshot; a no-op with nothing to undo"""
        if not self.history.can_undo():
            return self.config
        self.drag.end()
        self.config = self.history.undo()
        self._persist()
        return self.config

    # -- drag --------------------------------------------------------------

    def set_canvas(self, canvas):
        self.canvas = canvas

    def begin_drag(self, zone, kind, element_id, pointer):
        self._finish_drag()
        return self.drag.begin(self.config, zone, kind, element_id, pointer, self.canvas)

    def update_drag(self, pointer):
        """Move the dragged element on the live copy; no history, no draft write"""
        return self.drag.update(self.config, pointer, self.canvas)

    def end_drag(self):
        """Commit the dragged position. Returns False when nothing was dragged."""
        return self._finish_drag()

    # -- output ------------------------------------------------------------

    def to_transport(self):
        return to_transport(self.config)
