"""
Shared fixtures for the BYOMKit test-suite.

Run with: pytest tests/ -v
Install test tooling with: pip install -e ".[dev]"
"""

import base64
import io
import os
import shutil
import tempfile

import pytest
from flask import Flask
from PIL import Image

from byomkit import Byomkit
from byomkit.modules.customizer import placement
from byomkit.modules.customizer.models import Configuration
from byomkit.modules.pricing.engine import PricingPolicy


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="byomkit-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised Flask app with the BYOM modules registered."""
    app = Flask(__name__, static_folder=os.path.join(tmp_db_dir, "static"))
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["BYOM_DB"] = os.path.join(tmp_db_dir, "byom.db")
    app.config["BYOM_DRAFTS_DB"] = os.path.join(tmp_db_dir, "byom_drafts.db")
    app.config["ANALYTICS_DB"] = os.path.join(tmp_db_dir, "analytics.db")
    Byomkit(app)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customer(app):
    """Test client signed in as customer 1."""
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["user_id"] = 1
        sess["user_email"] = "ada@example.com"
    return c


@pytest.fixture
def other_customer(app):
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["user_id"] = 2
    return c


@pytest.fixture
def admin(app):
    """Test client signed in as an administrator."""
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["admin_id"] = 99
    return c


@pytest.fixture
def sample_config():
    """T-shirt with one text on the front and one sticker on the back."""
    config = Configuration.empty("tshirt")
    config, _ = placement.add_text(config, "front", "Hello", font_size=24)
    config, _ = placement.add_asset(config, "back", "sticker-1")
    return config


@pytest.fixture
def sample_policy():
    return PricingPolicy(
        base_fee=2000,
        front_fee=500,
        back_fee=700,
        texts_customization_fee=1000,
        image_customization_fee=1500,
    )


@pytest.fixture
def make_image():
    """Factory for real encoded image bytes (a flat 1500x1500 PNG by default)."""
    def _make(width=1500, height=1500, image_format="PNG"):
        buf = io.BytesIO()
        Image.new("RGB", (width, height), (200, 30, 30)).save(buf, format=image_format)
        return buf.getvalue()
    return _make


@pytest.fixture
def make_data_url(make_image):
    def _make(width=1500, height=1500, image_format="PNG", mimetype=None):
        file_bytes = make_image(width, height, image_format)
        mimetype = mimetype or f"image/{image_format.lower()}"
        return f"data:{mimetype};base64,{base64.b64encode(file_bytes).decode('ascii')}"
    return _make
