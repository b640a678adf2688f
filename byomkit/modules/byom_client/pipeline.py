"""
Submission pipeline: upload -> create -> submit.

Stages run strictly in order. Progress only ever increases during a run and
reaches 100 when the design is pending approval. A failing stage stops the
run and raises PipelineError naming that stage; ``retry()`` starts again from
the upload stage.
"""

import logging
import os

from ...core.exceptions import AlreadySubmitted, BYOMError, PipelineError, ValidationError
from ...core.storage import decode_data_url, validate_image_file
from ..designs.workflow import DesignStatus

logger = logging.getLogger(__name__)

STAGE_PROGRESS = (
    ('upload', 30),
    ('create', 70),
    ('submit', 100),
)

MIME_EXTENSIONS = {'image/png': '.png', 'image/jpeg': '.jpg', 'image/jpg': '.jpg'}


class SubmissionPipeline:

    def __init__(self, service, config, name=None, on_progress=None):
        self.service = service
        self.config = config
        self.name = name
        self.on_progress = on_progress
        self.progress = 0
        self.stage = None
        self.design = None
        self.status = DesignStatus.DRAFT

    def _report(self, value):
        if value < self.progress:
            return
        self.progress = value
        if self.on_progress:
            self.on_progress(self.stage, value)

    def _prepare_upload(self):
        """Validate the customer's uploaded images; the first one is sent along"""
        prepared = None
        for sticker in self.config.uploaded_stickers:
            if sticker.base64:
                file_bytes, mimetype = decode_data_url(sticker.base64)
                base, extension = os.path.splitext(sticker.name or '')
                filename = f"{base or sticker.id}{extension or MIME_EXTENSIONS.get(mimetype, '')}"
                validate_image_file(filename, file_bytes, mimetype)
                if prepared is None:
                    prepared = (filename, file_bytes, mimetype)
            elif not sticker.url:
                raise ValidationError(f"Uploaded image '{sticker.name or sticker.id}' has no data")
            elif prepared is None:
                prepared = sticker.url
        return prepared

    def _submit(self, design):
        previous = self.status
        self.status = DesignStatus.PENDING_APPROVAL
        try:
            return self.service.submit_for_approval(design.id)
        except AlreadySubmitted:
            # The server is authoritative: roll back and adopt its state
            self.status = previous
            current = self.service.get_design(design.id)
            self.status = current.status
            raise
        except BYOMError:
            self.status = previous
            raise

    def run(self):
        """Run every stage. Returns the submitted Design."""
        self.progress = 0
        self.stage = 'upload'
        self._report(0)

        stages = dict(STAGE_PROGRESS)
        try:
            uploaded_image = self._prepare_upload()
            self._report(stages['upload'])

            self.stage = 'create'
            self.design = self.service.create_design(
                self.config, name=self.name, uploaded_image=uploaded_image
            )
            self.status = self.design.status
            self._report(stages['create'])

            self.stage = 'submit'
            self.design = self._submit(self.design)
            self.status = self.design.status
            self._report(stages['submit'])
        except BYOMError as e:
            logger.error(f"BYOM submission failed during {self.stage}: {e.message}")
            raise PipelineError(self.stage, e) from e

        logger.info(f"Design {self.design.id} submitted for approval")
        return self.design

    def retry(self):
        self.design = None
        self.status = DesignStatus.DRAFT
        return self.run()
