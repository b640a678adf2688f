import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the BYOMKit framework.
    Projects should provide database paths via environment variables.
    """
    # Static subfolder for uploaded design graphics
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', 'byom-uploads')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    BYOM_DB = os.getenv('BYOM_DB', os.path.join(DB_DIR, "byom.db"))
    BYOM_DRAFTS_DB = os.getenv('BYOM_DRAFTS_DB', os.path.join(DB_DIR, "byom_drafts.db"))
    ANALYTICS_DB = os.getenv('ANALYTICS_DB', os.path.join(DB_DIR, "analytics_log.db"))

    # Table names
    DESIGNS_TABLE = "byom_designs"
    PRICING_TABLE = "byom_pricing_policy"
    CART_LINES_TABLE = "byom_cart_lines"
    DRAFTS_TABLE = "byom_drafts"

    # Backend API (used by the client-side service and submission pipeline)
    BYOM_API_URL = os.getenv('BYOM_API_URL', 'http://localhost:5000')
    BYOM_API_TOKEN = os.getenv('BYOM_API_TOKEN')
    BYOM_API_TIMEOUT = int(os.getenv('BYOM_API_TIMEOUT', '30'))

    # Uploaded design graphics: JPG/PNG only, 10MB max, at least 1500px per side
    MAX_IMAGE_SIZE_BYTES = int(os.getenv('MAX_IMAGE_SIZE_BYTES', str(10 * 1024 * 1024)))
    MIN_IMAGE_DIMENSION = int(os.getenv('MIN_IMAGE_DIMENSION', '1500'))

    # Storefront origins allowed to call the public pricing endpoint
    BYOM_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('BYOM_ALLOWED_ORIGINS', 'http://localhost:3000').split(',')
        if origin.strip()
    ]
