"""
BYOM design storage: customer designs and the cart lines materialized from
approved ones. Both tables live in BYOM_DB.
"""

import json
from datetime import datetime
from ...core.config import Config
from ...core.database import Database, resolve_db_path
from ...core.logging_service import console_logger
from .transformers import design_from_record, dumps_transport

DESIGN_COLUMNS = (
    'user_id', 'user_email', 'name', 'color', 'size', 'placement', 'text',
    'configuration_json', 'uploaded_image', 'status', 'rejection_reason',
    'pricing_breakdown', 'created_at', 'updated_at', 'approved_at', 'approved_by',
)


def _design_values(design):
    return {
        'user_id': None if design.user_id is None else str(design.user_id),
        'user_email': design.user_email,
        'name': design.name,
        'color': design.color,
        'size': design.size,
        'placement': design.placement,
        'text': design.text,
        'configuration_json': dumps_transport(design.configuration),
        'uploaded_image': design.uploaded_image,
        'status': design.status.value,
        'rejection_reason': design.rejection_reason,
        'pricing_breakdown': json.dumps(design.pricing_breakdown) if design.pricing_breakdown else None,
        'created_at': design.created_at,
        'updated_at': design.updated_at,
        'approved_at': design.approved_at,
        'approved_by': None if design.approved_by is None else str(design.approved_by),
    }


class DesignDatabase:

    @staticmethod
    def _get_connection():
        return Database.connect(resolve_db_path('BYOM_DB'))

    @staticmethod
    def init_db():
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.DESIGNS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT,
                    user_email TEXT,
                    name TEXT NOT NULL,
                    color TEXT,
                    size TEXT,
                    placement TEXT DEFAULT 'front',
                    text TEXT,
                    configuration_json TEXT NOT NULL,
                    uploaded_image TEXT,
                    status TEXT NOT NULL DEFAULT 'draft',
                    rejection_reason TEXT,
                    pricing_breakdown TEXT,
                    created_at TEXT,
                    updated_at TEXT,
                    approved_at TEXT,
                    approved_by TEXT
                )
            """)
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.CART_LINES_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    design_id INTEGER NOT NULL,
                    name TEXT,
                    size TEXT,
                    color TEXT,
                    quantity INTEGER NOT NULL DEFAULT 1,
                    unit_price INTEGER NOT NULL,
                    breakdown TEXT,
                    created_at TEXT,
                    FOREIGN KEY (design_id) REFERENCES {Config.DESIGNS_TABLE}(id)
                )
            """)
            cursor.execute(
                f"CREATE INDEX IF NOT EXISTS idx_byom_designs_user ON {Config.DESIGNS_TABLE}(user_id)"
            )
            cursor.execute(
                f"CREATE INDEX IF NOT EXISTS idx_byom_designs_status ON {Config.DESIGNS_TABLE}(status)"
            )
            cursor.execute(
                f"CREATE INDEX IF NOT EXISTS idx_byom_cart_design ON {Config.CART_LINES_TABLE}(design_id)"
            )
            conn.commit()
        finally:
            conn.close()

    # -- designs -----------------------------------------------------------

    @staticmethod
    def create_design(design):
        values = _design_values(design)
        placeholders = ', '.join('?' for _ in DESIGN_COLUMNS)
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO {Config.DESIGNS_TABLE} ({', '.join(DESIGN_COLUMNS)}) "
                f"VALUES ({placeholders})",
                [values[column] for column in DESIGN_COLUMNS]
            )
            conn.commit()
            design_id = cursor.lastrowid
        except Exception as e:
            console_logger.error(f"Failed to create BYOM design: {e}")
            raise
        finally:
            conn.close()
        return DesignDatabase.get_design(design_id)

    @staticmethod
    def get_design(design_id, user_id=None):
        """Design by id; restricted to ``user_id``'s designs when given"""
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            if user_id is None:
                cursor.execute(f"SELECT * FROM {Config.DESIGNS_TABLE} WHERE id = ?", (design_id,))
            else:
                cursor.execute(
                    f"SELECT * FROM {Config.DESIGNS_TABLE} WHERE id = ? AND user_id = ?",
                    (design_id, str(user_id))
                )
            row = cursor.fetchone()
            return design_from_record(dict(row)) if row else None
        finally:
            conn.close()

    @staticmethod
    def list_designs(user_id=None, status=None, exclude_status=None):
        clauses, params = [], []
        if user_id is not None:
            clauses.append('user_id = ?')
            params.append(str(user_id))
        if status:
            clauses.append('status = ?')
            params.append(status)
        if exclude_status:
            clauses.append('status != ?')
            params.append(exclude_status)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ''

        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM {Config.DESIGNS_TABLE} {where} ORDER BY created_at DESC, id DESC",
                params
            )
            return [design_from_record(dict(row)) for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def save_design(design, expected_status=None):
        """Write every column of an existing design back.

        With ``expected_status`` the write only happens while the stored row
        still has that status; returns None when it no longer does.
        """
        values = _design_values(design)
        columns = [column for column in DESIGN_COLUMNS if column != 'created_at']
        params = [values[column] for column in columns] + [design.id]
        where = 'id = ?'
        if expected_status is not None:
            where += ' AND status = ?'
            params.append(getattr(expected_status, 'value', expected_status))

        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE {Config.DESIGNS_TABLE} SET {', '.join(f'{c} = ?' for c in columns)} "
                f"WHERE {where}",
                params
            )
            conn.commit()
            updated = cursor.rowcount
        except Exception as e:
            console_logger.error(f"Failed to save BYOM design {design.id}: {e}")
            raise
        finally:
            conn.close()
        if not updated:
            console_logger.warning(
                f"BYOM design {design.id} not updated (expected status {expected_status})"
            )
            return None
        return DesignDatabase.get_design(design.id)

    @staticmethod
    def delete_design(design_id, statuses=None):
        """Delete a design and its cart lines; only in ``statuses`` when given"""
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            if statuses:
                values = [getattr(status, 'value', status) for status in statuses]
                cursor.execute(
                    f"DELETE FROM {Config.DESIGNS_TABLE} WHERE id = ? "
                    f"AND status IN ({', '.join('?' for _ in values)})",
                    [design_id] + values
                )
            else:
                cursor.execute(f"DELETE FROM {Config.DESIGNS_TABLE} WHERE id = ?", (design_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                cursor.execute(
                    f"DELETE FROM {Config.CART_LINES_TABLE} WHERE design_id = ?", (design_id,)
                )
            conn.commit()
            return deleted
        finally:
            conn.close()

    # -- cart lines --------------------------------------------------------

    @staticmethod
    def add_cart_line(line):
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                INSERT INTO {Config.CART_LINES_TABLE}
                (design_id, name, size, color, quantity, unit_price, breakdown, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                line.design_id, line.name, line.size, line.color, line.quantity,
                line.unit_price, json.dumps(line.breakdown),
                line.created_at or datetime.now().isoformat(),
            ))
            conn.commit()
            line_id = cursor.lastrowid
        finally:
            conn.close()
        return dict(DesignDatabase._cart_line_dict(line), id=line_id)

    @staticmethod
    def _cart_line_dict(line):
        return {
            'design_id': line.design_id,
            'name': line.name,
            'size': line.size,
            'color': line.color,
            'quantity': line.quantity,
            'unit_price': line.unit_price,
            'total': line.total,
            'breakdown': line.breakdown,
            'created_at': line.created_at,
        }

    @staticmethod
    def get_cart_lines(design_id):
        conn = DesignDatabase._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                SELECT * FROM {Config.CART_LINES_TABLE}
                WHERE design_id = ?
                ORDER BY id ASC
            """, (design_id,))
            lines = []
            for row in cursor.fetchall():
                line = dict(row)
                line['breakdown'] = json.loads(line['breakdown']) if line['breakdown'] else {}
                line['total'] = line['unit_price'] * line['quantity']
                lines.append(line)
            return lines
        finally:
            conn.close()
