"""
BYOMService and the submission pipeline, with the HTTP session mocked out.
"""

from unittest.mock import MagicMock

import pytest
import requests

from byomkit.core.exceptions import (
    AlreadySubmitted, BackendError, NotFoundError, PipelineError, ValidationError,
)
from byomkit.modules.byom_client import BYOMService, SubmissionPipeline
from byomkit.modules.customizer import placement
from byomkit.modules.customizer.models import Configuration
from byomkit.modules.designs.transformers import encode_design_record
from byomkit.modules.designs.workflow import Design, DesignStatus
from byomkit.modules.pricing.engine import PricingPolicy


def _response(status_code, payload=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no body")
    else:
        response.json.return_value = payload
    return response


def _design_payload(design_id=7, status=DesignStatus.DRAFT):
    return {"success": True, "design": encode_design_record(Design(id=design_id, status=status))}


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def service(http):
    return BYOMService(base_url="http://api.test/", token="tok", timeout=5, http=http)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

def test_create_design_sends_json(service, http, sample_config):
    http.request.return_value = _response(201, _design_payload())
    design = service.create_design(sample_config)

    assert design.id == 7
    method, url = http.request.call_args[0]
    kwargs = http.request.call_args[1]
    assert (method, url) == ("POST", "http://api.test/api/byom/custom-merch/")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["name"] == "Custom tshirt"
    assert isinstance(kwargs["json"]["configuration_json"], str)


def test_create_design_with_file_is_multipart(service, http, sample_config):
    http.request.return_value = _response(201, _design_payload())
    service.create_design(sample_config, uploaded_image=("logo.png", b"png", "image/png"))

    kwargs = http.request.call_args[1]
    assert "files" in kwargs
    assert kwargs["data"]["placement"] == "front"


@pytest.mark.parametrize("status,error", [
    (400, ValidationError), (404, NotFoundError), (500, BackendError),
])
def test_error_statuses_are_mapped(service, http, status, error):
    http.request.return_value = _response(status, {"error": "nope"})
    with pytest.raises(error) as exc:
        service.get_design(1)
    assert exc.value.message == "nope"


def test_conflict_on_submit_is_already_submitted(service, http):
    http.request.return_value = _response(409, {"error": "already"})
    with pytest.raises(AlreadySubmitted):
        service.submit_for_approval(7)


def test_connection_failure_is_backend_error(service, http):
    http.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(BackendError):
        service.list_designs()


def test_non_json_error_body(service, http):
    http.request.return_value = _response(502)
    with pytest.raises(BackendError) as exc:
        service.get_design(1)
    assert exc.value.status_code == 502


def test_pricing_policy_calls(service, http):
    http.request.return_value = _response(200, {"success": True, "policy": {
        "id": 1, "baseFee": 2000, "frontFee": 500,
    }})
    policy = service.get_pricing_policy()
    assert (policy.id, policy.base_fee, policy.front_fee) == (1, 2000, 500)

    service.patch_pricing_policy(1, {"front_fee": 800, "is_active": False})
    method, url = http.request.call_args[0]
    assert (method, url) == ("PATCH", "http://api.test/admin/byom/pricing/global/1/")
    assert http.request.call_args[1]["json"] == {
        "front_placement_cost": "800.00", "is_active": False,
    }

    service.create_pricing_policy(PricingPolicy(base_fee=2000))
    assert http.request.call_args[1]["json"]["base_customization_fee"] == "2000.00"


def test_missing_policy_is_none(service, http):
    http.request.return_value = _response(200, {"success": True, "policy": None})
    assert service.get_pricing_policy() is None


@pytest.mark.parametrize("payload", [None, [], {"success": True}, {"design": "7"}, {"design": None}])
def test_unexpected_success_body_is_backend_error(service, http, payload, sample_config):
    http.request.return_value = _response(201, payload)
    with pytest.raises(BackendError):
        service.create_design(sample_config)
    with pytest.raises(BackendError):
        service.approve_design(7)


def test_cart_line_missing_from_body(service, http):
    http.request.return_value = _response(201, {"success": True})
    with pytest.raises(BackendError):
        service.add_to_cart(7)


def test_listings_accept_bare_lists(service, http):
    http.request.return_value = _response(200, [encode_design_record(Design(id=3)), "junk"])
    assert [design.id for design in service.list_designs()] == [3]

    http.request.return_value = _response(200, "nope")
    with pytest.raises(BackendError):
        service.list_designs_with_orders()


def test_reupload_image(service, http):
    http.request.return_value = _response(200, _design_payload())
    service.reupload_image(7, ("logo.png", b"png", "image/png"))
    method, url = http.request.call_args[0]
    assert (method, url) == ("POST", "http://api.test/api/byom/custom-merch/7/reupload/")
    assert "files" in http.request.call_args[1]

    service.reupload_image(7, "data:image/png;base64,AAAA")
    assert http.request.call_args[1]["json"] == {"uploaded_image": "data:image/png;base64,AAAA"}


# ---------------------------------------------------------------------------
# Submission pipeline
# ---------------------------------------------------------------------------

@pytest.fixture
def backend():
    backend = MagicMock()
    backend.create_design.return_value = Design(id=7, status=DesignStatus.DRAFT)
    backend.submit_for_approval.return_value = Design(id=7, status=DesignStatus.PENDING_APPROVAL)
    return backend


def test_pipeline_reports_monotonic_progress(backend, sample_config):
    progress = []
    pipeline = SubmissionPipeline(backend, sample_config, on_progress=lambda s, v: progress.append((s, v)))
    design = pipeline.run()

    assert design.status == DesignStatus.PENDING_APPROVAL
    assert progress == [("upload", 0), ("upload", 30), ("create", 70), ("submit", 100)]
    backend.create_design.assert_called_once_with(sample_config, name=None, uploaded_image=None)


def test_pipeline_sends_first_upload(backend, make_data_url):
    config, _ = placement.add_uploaded_image(
        Configuration.empty(), "front", "upload-1", "", name="logo.png", base64=make_data_url()
    )
    SubmissionPipeline(backend, config).run()

    uploaded = backend.create_design.call_args[1]["uploaded_image"]
    assert uploaded[0] == "logo.png"
    assert uploaded[2] == "image/png"


def test_bad_upload_stops_before_create(backend):
    config, _ = placement.add_uploaded_image(
        Configuration.empty(), "front", "upload-1", "", name="anim.gif",
        base64="data:image/gif;base64,R0lGOD==",
    )
    with pytest.raises(PipelineError) as exc:
        SubmissionPipeline(backend, config).run()
    assert exc.value.stage == "upload"
    backend.create_design.assert_not_called()


def test_failed_create_skips_submit(backend, sample_config):
    backend.create_design.side_effect = BackendError("down", 503)
    pipeline = SubmissionPipeline(backend, sample_config)
    with pytest.raises(PipelineError) as exc:
        pipeline.run()
    assert exc.value.stage == "create"
    assert pipeline.progress == 30
    backend.submit_for_approval.assert_not_called()


def test_already_submitted_adopts_server_status(backend, sample_config):
    backend.submit_for_approval.side_effect = AlreadySubmitted(7, "approved")
    backend.get_design.return_value = Design(id=7, status=DesignStatus.APPROVED)
    pipeline = SubmissionPipeline(backend, sample_config)

    with pytest.raises(PipelineError) as exc:
        pipeline.run()
    assert exc.value.stage == "submit"
    assert pipeline.status == DesignStatus.APPROVED


def test_failed_submit_rolls_back_status(backend, sample_config):
    backend.submit_for_approval.side_effect = BackendError("down", 500)
    pipeline = SubmissionPipeline(backend, sample_config)
    with pytest.raises(PipelineError):
        pipeline.run()
    assert pipeline.status == DesignStatus.DRAFT


def test_retry_starts_from_upload(backend, sample_config):
    backend.create_design.side_effect = [
        BackendError("down", 503), Design(id=8, status=DesignStatus.DRAFT),
    ]
    pipeline = SubmissionPipeline(backend, sample_config)
    with pytest.raises(PipelineError):
        pipeline.run()

    design = pipeline.retry()
    assert design.status == DesignStatus.PENDING_APPROVAL
    assert pipeline.progress == 100
    assert backend.create_design.call_count == 2


def test_small_upload_stops_before_create(backend, make_data_url):
    config, _ = placement.add_uploaded_image(
        Configuration.empty(), "front", "upload-1", "", name="tiny.png",
        base64=make_data_url(64, 64),
    )
    with pytest.raises(PipelineError) as exc:
        SubmissionPipeline(backend, config).run()
    assert exc.value.stage == "upload"
    assert "1500" in exc.value.message
    backend.create_design.assert_not_called()


def test_non_json_create_response_fails_create_stage(service, http, sample_config):
    http.request.return_value = _response(201)
    pipeline = SubmissionPipeline(service, sample_config)

    with pytest.raises(PipelineError) as exc:
        pipeline.run()
    assert exc.value.stage == "create"
    assert isinstance(exc.value.cause, BackendError)
    assert pipeline.progress == 30
    assert pipeline.status == DesignStatus.DRAFT
