"""
Draft store for in-progress customizations.

One record per merch type, keyed ``byom-customization-<type>``. A record holds
the transport Configuration JSON plus the ids of the catalog assets the
customer has picked. Unreadable records are dropped rather than restored.
"""

import json
import logging
from datetime import datetime
from ...core.config import Config
from ...core.database import Database, resolve_db_path
from .models import MerchType, coerce_enum
from .transport import load_json_object, parse_configuration, to_transport

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = 'byom-customization-'


def storage_key(merch_type):
    merch_type = coerce_enum(MerchType, merch_type, 'merchandise type')
    return f"{STORAGE_KEY_PREFIX}{merch_type.value}"


class DraftStore:

    def __init__(self, db_path=None):
        self.db_path = db_path or resolve_db_path('BYOM_DRAFTS_DB')
        self.init_db()

    def _get_connection(self):
        return Database.connect(self.db_path)

    def init_db(self):
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.DRAFTS_TABLE} (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def save(self, config, selected_assets=None):
        """Write (or overwrite) the draft for ``config.merch_type``"""
        payload = to_transport(config)
        payload['selectedAssets'] = list(selected_assets or [])

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                INSERT OR REPLACE INTO {Config.DRAFTS_TABLE} (key, payload, updated_at)
                VALUES (?, ?, ?)
            """, (storage_key(config.merch_type), json.dumps(payload), datetime.now().isoformat()))
            conn.commit()
        finally:
            conn.close()
        return payload

    def load(self, merch_type):
        """(Configuration, selected_assets) for ``merch_type``, or None"""
        key = storage_key(merch_type)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT payload FROM {Config.DRAFTS_TABLE} WHERE key = ?", (key,))
            row = cursor.fetchone()
        finally:
            conn.close()

        if row is None:
            return None

        data = load_json_object(row['payload'])
        if data is None:
            logger.warning(f"Discarding unreadable draft '{key}'")
            self.clear(merch_type)
            return None

        config = parse_configuration(data)
        # The key decides the garment; a stale payload must not switch it
        config.merch_type = coerce_enum(MerchType, merch_type, 'merchandise type')
        selected = data.get('selectedAssets')
        selected = [str(item) for item in selected] if isinstance(selected, list) else []
        return config, selected

    def clear(self, merch_type):
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"DELETE FROM {Config.DRAFTS_TABLE} WHERE key = ?", (storage_key(merch_type),)
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def keys(self):
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT key FROM {Config.DRAFTS_TABLE} ORDER BY key")
            return [row['key'] for row in cursor.fetchall()]
        finally:
            conn.close()
