"""
Storage Utility
===============

Validation and local storage for customer-uploaded design graphics.
"""

import base64
import binascii
import io
import os
import re
import uuid
from flask import current_app
from PIL import Image
from .config import Config
from .exceptions import ValidationError

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png'}
ALLOWED_MIME_TYPES = {'image/jpeg', 'image/jpg', 'image/png'}
ALLOWED_IMAGE_FORMATS = {'PNG', 'JPEG'}
UNSUPPORTED_EXTENSIONS = {'.avif', '.webp', '.svg', '.gif', '.bmp', '.tiff', '.heic', '.heif'}

_DATA_URL_RE = re.compile(r'^data:(?P<mime>[\w/+.-]+)?(;base64)?,(?P<data>.*)$', re.DOTALL)


def _max_image_size():
    try:
        val = current_app.config.get('MAX_IMAGE_SIZE_BYTES')
        if val:
            return int(val)
    except RuntimeError:
        pass
    return Config.MAX_IMAGE_SIZE_BYTES


def _min_image_dimension():
    try:
        val = current_app.config.get('MIN_IMAGE_DIMENSION')
        if val:
            return int(val)
    except RuntimeError:
        pass
    return Config.MIN_IMAGE_DIMENSION


def read_image_dimensions(file_bytes):
    """(width, height) of a JPG/PNG decoded from its bytes.

    The real format is read from the data, not from the filename or
    declared mimetype.
    """
    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError):
        raise ValidationError('Failed to load image. Please ensure it is a valid JPG or PNG file.')

    if image_format not in ALLOWED_IMAGE_FORMATS:
        raise ValidationError(
            f"{image_format or 'Unknown'} images are not supported. Please use JPG or PNG only."
        )
    return width, height


def validate_image_file(filename, file_bytes, mimetype=None):
    """Check an uploaded graphic is a real JPG/PNG, within the size limit and
    at least MIN_IMAGE_DIMENSION pixels on each side.

    Raises ValidationError with a user-facing message otherwise. Returns the
    decoded (width, height).
    """
    size = len(file_bytes)
    name = (filename or '').lower()
    extension = os.path.splitext(name)[1]

    if extension in UNSUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"{extension.upper()} format is not supported. Please use JPG or PNG only."
        )

    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            "Invalid file format. Only JPG and PNG images are allowed. "
            f"You uploaded: {extension or 'unknown format'}"
        )

    if mimetype and mimetype.lower() not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Invalid file type detected. Only JPG and PNG images are allowed. File type: {mimetype}"
        )

    max_size = _max_image_size()
    if size > max_size:
        size_mb = size / (1024 * 1024)
        limit_mb = max_size / (1024 * 1024)
        raise ValidationError(
            f"File is too large ({size_mb:.2f}MB). Maximum size is {limit_mb:.0f}MB. "
            "Please compress or resize your image."
        )

    width, height = read_image_dimensions(file_bytes)
    min_dimension = _min_image_dimension()
    if width < min_dimension or height < min_dimension:
        raise ValidationError(
            f"Image must be at least {min_dimension} x {min_dimension}px. "
            f"Your image is {width} x {height}px."
        )
    return width, height


def decode_data_url(data_url):
    """Split a base64 data URL into (bytes, mimetype).

    Raises ValidationError when the string is not a decodable data URL.
    """
    match = _DATA_URL_RE.match(data_url or '')
    if not match:
        raise ValidationError('Uploaded image is not a valid data URL')
    mimetype = match.group('mime') or 'image/png'
    try:
        file_bytes = base64.b64decode(match.group('data'), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError('Uploaded image data is corrupted')
    return file_bytes, mimetype


def unique_filename(original_name):
    """Random filename that keeps the original extension"""
    extension = os.path.splitext(original_name or '')[1].lower() or '.png'
    if extension == '.jpeg':
        extension = '.jpg'
    return f"{uuid.uuid4().hex}{extension}"


def upload_file(file_bytes, filename, subfolder):
    """Save file to the local static folder.

    Args:
        file_bytes: Raw bytes of the file.
        filename: Target filename (e.g. "abc123.jpg").
        subfolder: Subfolder name (e.g. "designs").

    Returns:
        Local path like "/static/byom-uploads/designs/abc.jpg".
    """
    upload_root = current_app.config.get('UPLOAD_FOLDER') or Config.UPLOAD_FOLDER
    upload_dir = os.path.join(current_app.static_folder, upload_root, subfolder)
    os.makedirs(upload_dir, exist_ok=True)
    filepath = os.path.join(upload_dir, filename)
    with open(filepath, 'wb') as f:
        f.write(file_bytes)
    return f"/static/{upload_root}/{subfolder}/{filename}"


def delete_file(file_url):
    """Delete a previously uploaded file by its URL.

    Returns True when a file was removed.
    """
    if not file_url or not file_url.startswith('/static/'):
        return False
    rel_path = file_url[len('/static/'):]
    full_path = os.path.join(current_app.static_folder, rel_path)
    if os.path.isfile(full_path):
        os.unlink(full_path)
        return True
    return False
