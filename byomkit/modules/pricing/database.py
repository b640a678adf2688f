"""
Global BYOM pricing policy storage.

Exactly one global policy exists once it has been created. It is patched in
place and never deleted.
"""

from datetime import datetime
from ...core.config import Config
from ...core.database import Database, resolve_db_path
from ...core.exceptions import ConflictError, NotFoundError, ValidationError
from .engine import DEFAULT_PRIORITY, FEE_FIELDS, PricingPolicy

PATCHABLE_FIELDS = FEE_FIELDS + ('is_active', 'priority')


class PricingDatabase:

    @staticmethod
    def check_amounts(fields):
        """Reject fee fields whose submitted amount could not be parsed (decoded as None)"""
        invalid = [name for name in FEE_FIELDS if name in fields and fields[name] is None]
        if invalid:
            raise ValidationError(f"Invalid amount for: {', '.join(invalid)}")

    @staticmethod
    def _get_connection():
        return Database.connect(resolve_db_path('BYOM_DB'))

    @staticmethod
    def init_db():
        conn = PricingDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.PRICING_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product INTEGER DEFAULT 0,
                    base_fee INTEGER NOT NULL DEFAULT 0,
                    image_customization_fee INTEGER NOT NULL DEFAULT 0,
                    texts_customization_fee INTEGER NOT NULL DEFAULT 0,
                    front_fee INTEGER NOT NULL DEFAULT 0,
                    back_fee INTEGER NOT NULL DEFAULT 0,
                    side_fee INTEGER NOT NULL DEFAULT 0,
                    is_active BOOLEAN DEFAULT 1,
                    priority INTEGER DEFAULT {DEFAULT_PRIORITY},
                    created_at TEXT,
                    updated_at TEXT
                )
            """)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_policy(row):
        if row is None:
            return None
        return PricingPolicy(
            id=row['id'],
            product=row['product'] or 0,
            base_fee=row['base_fee'],
            image_customization_fee=row['image_customization_fee'],
            texts_customization_fee=row['texts_customization_fee'],
            front_fee=row['front_fee'],
            back_fee=row['back_fee'],
            side_fee=row['side_fee'],
            is_active=bool(row['is_active']),
            priority=row['priority'],
        )

    @staticmethod
    def get_global_policy():
        """The global policy, or None when it has not been created yet"""
        conn = PricingDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                SELECT * FROM {Config.PRICING_TABLE}
                ORDER BY priority ASC, id ASC
                LIMIT 1
            """)
            return PricingDatabase._row_to_policy(cursor.fetchone())
        finally:
            conn.close()

    @staticmethod
    def get_active_policy():
        policy = PricingDatabase.get_global_policy()
        return policy if policy is not None and policy.is_active else None

    @staticmethod
    def create_global_policy(policy):
        policy.validate()
        if PricingDatabase.get_global_policy() is not None:
            raise ConflictError('A global pricing policy already exists; update it instead')

        now = datetime.now().isoformat()
        conn = PricingDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                INSERT INTO {Config.PRICING_TABLE}
                (product, base_fee, image_customization_fee, texts_customization_fee,
                 front_fee, back_fee, side_fee, is_active, priority, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                policy.product, policy.base_fee, policy.image_customization_fee,
                policy.texts_customization_fee, policy.front_fee, policy.back_fee,
                policy.side_fee, policy.is_active, policy.priority, now, now,
            ))
            conn.commit()
            policy_id = cursor.lastrowid
        finally:
            conn.close()
        return PricingDatabase.get_policy(policy_id)

    @staticmethod
    def get_policy(policy_id):
        conn = PricingDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT * FROM {Config.PRICING_TABLE} WHERE id = ?", (policy_id,))
            return PricingDatabase._row_to_policy(cursor.fetchone())
        finally:
            conn.close()

    @staticmethod
    def patch_global_policy(policy_id, changes):
        """Apply a partial update. Unknown fields are rejected."""
        unknown = set(changes) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown pricing field(s): {', '.join(sorted(unknown))}")
        PricingDatabase.check_amounts(changes)

        current = PricingDatabase.get_policy(policy_id)
        if current is None:
            raise NotFoundError(f"Pricing policy {policy_id} not found")
        if not changes:
            return current

        updated = PricingPolicy(**dict(current.__dict__, **changes)).validate()
        columns = sorted(changes)
        assignments = ', '.join(f"{column} = ?" for column in columns)

        conn = PricingDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE {Config.PRICING_TABLE} SET {assignments}, updated_at = ? WHERE id = ?",
                [getattr(updated, column) for column in columns]
                + [datetime.now().isoformat(), policy_id]
            )
            conn.commit()
        finally:
            conn.close()
        return PricingDatabase.get_policy(policy_id)
