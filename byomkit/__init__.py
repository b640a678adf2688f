"""
BYOMKit - Build-Your-Own-Merch for Flask
========================================

A customization and pricing engine for made-to-order merch:
- Design surface model (front/back/side placements, undo history, drafts)
- Policy-based pricing with a count-based preview estimate
- Approval workflow (draft -> pending_approval -> approved/rejected)
- Customer and admin JSON APIs, plus a requests-based client

Usage:
    from flask import Flask
    from byomkit import Byomkit

    app = Flask(__name__)
    Byomkit(app)
"""

import os

from .core.config import Config
from .core.logging_service import console_logger

__version__ = '0.1.0'

# Keys copied from Config into app.config when the host app has not set them
CONFIG_DEFAULTS = (
    'UPLOAD_FOLDER', 'MAX_IMAGE_SIZE_BYTES', 'MIN_IMAGE_DIMENSION', 'BYOM_API_URL',
    'BYOM_API_TIMEOUT',
)

# Database keys and the file each defaults to inside DB_DIR
DATABASE_FILES = {
    'BYOM_DB': 'byom.db',
    'BYOM_DRAFTS_DB': 'byom_drafts.db',
    'ANALYTICS_DB': 'analytics_log.db',
}


class Byomkit:
    """Flask extension that wires the BYOM modules into an app"""

    def __init__(self, app=None, config=None):
        self._config = config or {}
        self._registered_modules = []
        self.app = None
        if app is not None:
            self.init_app(app)

    def _feature_enabled(self, name):
        return self._config.get('features', {}).get(name, True)

    def _apply_default_config(self, app):
        for key in CONFIG_DEFAULTS:
            app.config.setdefault(key, getattr(Config, key))

        db_dir = app.config.get('DB_DIR') or Config.DB_DIR
        app.config['DB_DIR'] = db_dir
        for key, filename in DATABASE_FILES.items():
            if not app.config.get(key):
                app.config[key] = os.path.join(db_dir, filename)

    def _setup_database_dir(self, app):
        os.makedirs(app.config['DB_DIR'], exist_ok=True)

    def _init_databases(self):
        from .core.logging_service import LoggingService
        from .modules.designs.database import DesignDatabase
        from .modules.pricing.database import PricingDatabase

        LoggingService._ensure_logs_table()
        DesignDatabase.init_db()
        PricingDatabase.init_db()

    def _register_blueprints(self, app):
        if self._feature_enabled('designs'):
            from .modules.designs import byom_bp, byom_admin_bp
            app.register_blueprint(byom_bp)
            app.register_blueprint(byom_admin_bp)
            self._registered_modules.append('designs')

        if self._feature_enabled('pricing'):
            from .modules.pricing import pricing_bp, pricing_admin_bp
            app.register_blueprint(pricing_bp)
            app.register_blueprint(pricing_admin_bp)
            self._registered_modules.append('pricing')

    def init_app(self, app):
        self.app = app
        self._apply_default_config(app)
        self._setup_database_dir(app)
        with app.app_context():
            self._init_databases()
        self._register_blueprints(app)
        app.extensions['byomkit'] = self
        console_logger.info(f"BYOMKit initialised with modules: {', '.join(self._registered_modules)}")

    def get_registered_modules(self):
        return list(self._registered_modules)


__all__ = ['Byomkit', 'Config', '__version__']
