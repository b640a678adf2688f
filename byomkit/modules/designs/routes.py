"""
BYOM Design Routes
==================

Customer endpoints under /api/byom/custom-merch/ and the admin review queue
under /admin/byom/designs/.
"""

from dataclasses import replace
from datetime import datetime

from flask import jsonify, request, session
from . import byom_bp, byom_admin_bp
from .database import DesignDatabase
from .transformers import (
    decode_design_record, encode_design_record, load_json_object,
    parse_configuration, side_data, to_transport,
)
from .workflow import (
    EDITABLE_STATUSES, DesignStatus, approve, breakdown_for_review, ensure_editable,
    materialize_cart_line, new_design, reject, submit_for_approval,
    update_configuration,
)
from ..customizer.models import ZONES
from ..pricing.database import PricingDatabase
from ...core.decorators import admin_required, json_errors, login_required
from ...core.exceptions import (
    AlreadySubmitted, ConflictError, InvalidTransition, NotFoundError, ValidationError,
)
from ...core.logging_service import db_log, logger as log_service
from ...core.storage import (
    decode_data_url, delete_file, unique_filename, upload_file, validate_image_file,
)

MIME_EXTENSIONS = {'image/png': '.png', 'image/jpeg': '.jpg', 'image/jpg': '.jpg'}


def _request_data():
    """JSON body or form fields as a dict"""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object')
        return data
    return request.form.to_dict()


def _optional_json():
    """JSON object body, or {} when the request has none"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _name_from(data):
    name = data.get('name')
    if name is None:
        return None
    if not isinstance(name, str):
        raise ValidationError('name must be text')
    return name.strip() or None


def _configuration_from(data, required=True):
    raw = data.get('configuration_json', data.get('configuration'))
    if raw is None:
        if required:
            raise ValidationError('configuration_json is required')
        return None
    if load_json_object(raw) is None:
        raise ValidationError('configuration_json must be a JSON object')
    return parse_configuration(raw)


def _store_uploaded_image(data):
    """Validate and save an uploaded graphic. Returns its URL or None."""
    upload = request.files.get('uploaded_image')
    if upload and upload.filename:
        file_bytes = upload.read()
        validate_image_file(upload.filename, file_bytes, upload.mimetype)
        return upload_file(file_bytes, unique_filename(upload.filename), 'designs')

    value = data.get('uploaded_image')
    if not value:
        return None
    if isinstance(value, str) and value.startswith('data:'):
        file_bytes, mimetype = decode_data_url(value)
        filename = f"upload{MIME_EXTENSIONS.get(mimetype.lower(), '')}"
        validate_image_file(filename, file_bytes, mimetype)
        return upload_file(file_bytes, unique_filename(filename), 'designs')
    if isinstance(value, str) and (value.startswith('/static/') or value.startswith('http')):
        return value
    raise ValidationError('uploaded_image must be a file, a data URL or an uploaded image URL')


def _own_design(design_id):
    design = DesignDatabase.get_design(design_id, user_id=session['user_id'])
    if design is None:
        raise NotFoundError('Design not found')
    return design


def _any_design(design_id):
    design = DesignDatabase.get_design(design_id)
    if design is None:
        raise NotFoundError('Design not found')
    return design


def _save_transition(updated, previous):
    """Persist ``updated`` only if the stored design is still in ``previous``'s status.

    Returns the current stored design as the second value when another
    request changed the status first.
    """
    saved = DesignDatabase.save_design(updated, expected_status=previous.status)
    if saved is not None:
        return saved, None
    current = _any_design(previous.id)
    log_service.warning('byom', f"Design {previous.id} was changed by another request", {
        'expected_status': previous.status.value,
        'current_status': current.status.value,
        'attempted_status': updated.status.value,
    })
    return None, current


def _raise_stale(current):
    ensure_editable(current)
    raise ConflictError(
        'This design was changed by another request. Reload it and try again.',
        {'design_id': current.id, 'status': current.status.value}
    )


# ---------------------------------------------------------------------------
# Customer API
# ---------------------------------------------------------------------------

@byom_bp.route('/custom-merch/', methods=['POST'])
@login_required
@json_errors('byom')
def create_design():
    """Create a draft design from a configuration (JSON or multipart)"""
    data = _request_data()
    config = _configuration_from(data)
    uploaded_image = _store_uploaded_image(data)

    design = DesignDatabase.create_design(new_design(
        config,
        user_id=session['user_id'],
        user_email=session.get('user_email', ''),
        name=_name_from(data),
        uploaded_image=uploaded_image,
    ))
    log_service.log_user_action('byom', f"Design {design.id} created", session['user_id'])
    return jsonify({'success': True, 'design': encode_design_record(design)}), 201


@byom_bp.route('/custom-merch/', methods=['GET'])
@login_required
@json_errors('byom')
def list_designs():
    designs = DesignDatabase.list_designs(
        user_id=session['user_id'], status=request.args.get('status')
    )
    return jsonify({
        'count': len(designs),
        'results': [encode_design_record(design) for design in designs],
    })


@byom_bp.route('/custom-merch/<int:design_id>/', methods=['GET'])
@login_required
@json_errors('byom')
def get_design(design_id):
    return jsonify({'success': True, 'design': encode_design_record(_own_design(design_id))})


@byom_bp.route('/custom-merch/<int:design_id>/', methods=['PATCH'])
@login_required
@json_errors('byom')
def update_design(design_id):
    """Edit a draft or rejected design"""
    design = _own_design(design_id)
    ensure_editable(design)

    data = _request_data()
    config = _configuration_from(data, required=False) or design.configuration
    updated = update_configuration(design, config, name=_name_from(data))

    uploaded_image = _store_uploaded_image(data)
    if uploaded_image:
        updated.uploaded_image = uploaded_image

    saved, current = _save_transition(updated, design)
    if saved is None:
        if uploaded_image and uploaded_image != data.get('uploaded_image'):
            delete_file(uploaded_image)
        _raise_stale(current)

    if uploaded_image and design.uploaded_image and design.uploaded_image != uploaded_image:
        delete_file(design.uploaded_image)
    return jsonify({'success': True, 'design': encode_design_record(saved)})


@byom_bp.route('/custom-merch/<int:design_id>/', methods=['DELETE'])
@login_required
@json_errors('byom')
def delete_design(design_id):
    design = _own_design(design_id)
    ensure_editable(design)
    if not DesignDatabase.delete_design(design.id, statuses=EDITABLE_STATUSES):
        _raise_stale(_any_design(design.id))
    if design.uploaded_image:
        delete_file(design.uploaded_image)
    log_service.log_user_action('byom', f"Design {design.id} deleted", session['user_id'])
    return jsonify({'success': True})


@byom_bp.route('/custom-merch/<int:design_id>/reupload/', methods=['POST'])
@login_required
@json_errors('byom')
def reupload_image(design_id):
    """Replace the uploaded graphic of a draft or rejected design"""
    design = _own_design(design_id)
    ensure_editable(design)

    data = _request_data()
    uploaded_image = _store_uploaded_image(data)
    if not uploaded_image:
        raise ValidationError('uploaded_image is required')

    updated = replace(design, uploaded_image=uploaded_image, updated_at=datetime.now().isoformat())
    saved, current = _save_transition(updated, design)
    if saved is None:
        if uploaded_image != data.get('uploaded_image'):
            delete_file(uploaded_image)
        _raise_stale(current)

    if design.uploaded_image and design.uploaded_image != uploaded_image:
        delete_file(design.uploaded_image)
    log_service.log_user_action('byom', f"Design {design.id} image re-uploaded", session['user_id'])
    return jsonify({'success': True, 'design': encode_design_record(saved)})


@byom_bp.route('/custom-merch/<int:design_id>/submit_for_approval/', methods=['POST'])
@login_required
@json_errors('byom')
def submit_design(design_id):
    design = _own_design(design_id)
    submitted = submit_for_approval(design, PricingDatabase.get_active_policy())
    design, current = _save_transition(submitted, design)
    if design is None:
        # another request moved the design first
        raise AlreadySubmitted(current.id, current.status.value)

    log_service.log_user_action(
        'byom', f"Design {design.id} submitted for approval", session['user_id'],
        {'pricing_breakdown': design.pricing_breakdown}
    )
    return jsonify({'success': True, 'design': encode_design_record(design)})


@byom_bp.route('/custom-merch/<int:design_id>/add_to_cart/', methods=['POST'])
@login_required
@json_errors('byom')
def add_to_cart(design_id):
    """Materialize a cart line for an approved design"""
    design = _own_design(design_id)
    data = _optional_json()
    try:
        quantity = int(data.get('quantity', 1))
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be a whole number')

    line = materialize_cart_line(design, PricingDatabase.get_active_policy(), quantity)
    cart_line = DesignDatabase.add_cart_line(line)
    log_service.log_user_action(
        'byom', f"Design {design.id} added to cart", session['user_id'],
        {'quantity': line.quantity, 'unit_price': line.unit_price}
    )
    return jsonify({'success': True, 'cart_line': cart_line}), 201


# ---------------------------------------------------------------------------
# Admin API
# ---------------------------------------------------------------------------

@byom_admin_bp.route('/designs/designs_with_orders/', methods=['GET'])
@admin_required
@json_errors('byom')
def designs_with_orders():
    """Submitted designs (newest first) with the cart lines made from them"""
    status = request.args.get('status')
    if status:
        designs = DesignDatabase.list_designs(status=status)
    else:
        designs = DesignDatabase.list_designs(exclude_status=DesignStatus.DRAFT.value)

    results = [
        encode_design_record(design, orders=DesignDatabase.get_cart_lines(design.id))
        for design in designs
    ]
    return jsonify({'count': len(results), 'results': results})


@byom_admin_bp.route('/designs/<int:design_id>/', methods=['GET'])
@admin_required
@json_errors('byom')
def review_design(design_id):
    """Design detail for review: record, summary, per-zone data and price breakdown"""
    design = _any_design(design_id)
    record = encode_design_record(design, orders=DesignDatabase.get_cart_lines(design.id))
    breakdown = breakdown_for_review(design, PricingDatabase.get_global_policy())

    return jsonify({
        'success': True,
        'design': record,
        'summary': decode_design_record(record).to_dict(),
        'sides': {
            zone.value: side_data(to_transport(design.configuration), zone) for zone in ZONES
        },
        'breakdown': breakdown.to_dict(),
    })


@byom_admin_bp.route('/designs/<int:design_id>/approve_design/', methods=['POST'])
@admin_required
@json_errors('byom')
def approve_design(design_id):
    previous = _any_design(design_id)
    design, current = _save_transition(approve(previous, admin_id=session['admin_id']), previous)
    if design is None:
        raise InvalidTransition(current.status.value, DesignStatus.APPROVED.value)
    db_log('info', 'byom', f"Design {design.id} approved", user_id=session['admin_id'])
    return jsonify({'success': True, 'design': encode_design_record(design)})


@byom_admin_bp.route('/designs/<int:design_id>/reject_design/', methods=['POST'])
@admin_required
@json_errors('byom')
def reject_design(design_id):
    data = _optional_json()
    reason = data.get('rejection_reason', data.get('reason'))
    previous = _any_design(design_id)
    design, current = _save_transition(
        reject(previous, reason=reason, admin_id=session['admin_id']), previous
    )
    if design is None:
        raise InvalidTransition(current.status.value, DesignStatus.REJECTED.value)
    db_log('info', 'byom', f"Design {design.id} rejected",
           {'rejection_reason': design.rejection_reason}, user_id=session['admin_id'])
    return jsonify({'success': True, 'design': encode_design_record(design)})
