"""
Upload Session Module

Runs one template upload end to end: the document is read while the three
catalogs are fetched concurrently, then the tokens are extracted, normalised
and classified, and an organizer is seeded with the visible placeholders.

A session that is closed while its reads are still pending discards the
results instead of applying them.
"""

import asyncio
import logging
import zipfile
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from docform.config import FormSettings
from docform.utils import doc_filler
from docform.utils.template_utils import TemplateValidationError, extract_template_tokens
from .classification import classify_placeholders
from .compiler import compile_schema, merge_generic_fields
from .models import CompiledSchema, FieldType, Placeholder, PlaceholderType
from .normalization import merge_placeholders, normalise_tokens
from .organizer import OrganizerState, StepOrganizer

logger = logging.getLogger(__name__)

CATALOG_NAMES = ("placeholders", "placeholder_types", "field_types")


class UploadResult(BaseModel):
    """Everything resolved for one uploaded template."""
    tokens: List[str] = Field(default_factory=list)
    failed_parts: List[str] = Field(default_factory=list)
    placeholders: List[Placeholder] = Field(default_factory=list)
    generic_list: List[Placeholder] = Field(default_factory=list)
    input_list: List[Placeholder] = Field(default_factory=list)
    field_types: List[FieldType] = Field(default_factory=list)
    placeholder_types: List[PlaceholderType] = Field(default_factory=list)
    catalog_errors: Dict[str, str] = Field(default_factory=dict)
    validation_error: Optional[str] = None


class TemplateUploadSession:
    """
    Owns the pool and steps of one upload/edit session.

    Args:
        settings: Category ids and example URLs
        catalog_source: Object with async get_placeholders(),
            get_placeholder_types() and get_field_types()
    """

    def __init__(self, settings: Optional[FormSettings] = None, catalog_source=None):
        self.settings = settings or FormSettings()
        self.catalog_source = catalog_source
        self.generic_list: List[Placeholder] = []
        self.field_types: List[FieldType] = []
        self.placeholder_types: List[PlaceholderType] = []
        self.organizer: Optional[StepOrganizer] = None
        self.document: Optional[bytes] = None
        self._alive = True

    @property
    def is_alive(self) -> bool:
        return self._alive

    def close(self):
        """Marks the session dead; pending uploads will discard their results."""
        self._alive = False

    async def _fetch_catalogs(self):
        if self.catalog_source is None:
            return [[], [], []]
        return await asyncio.gather(
            self.catalog_source.get_placeholders(),
            self.catalog_source.get_placeholder_types(),
            self.catalog_source.get_field_types(),
            return_exceptions=True,
        )

    def _stamp_watermark(self, content: bytes, watermark: str) -> Tuple[bytes, Optional[str]]:
        """Writes the watermark into the configured part, then checks the result still opens."""
        try:
            stamped = doc_filler.apply_watermark(content, watermark, self.settings.watermark_part)
        except zipfile.BadZipFile as e:
            logger.warning(f"Could not watermark the uploaded template: {e}")
            return content, f"Invalid document format: {e}"
        _, error = doc_filler.validate_template(stamped)
        return stamped, error

    async def process_upload(self, read_file: Callable[[], Awaitable[bytes]],
                             watermark: Optional[str] = None) -> Optional[UploadResult]:
        """
        Reads a template and resolves its placeholders.

        Args:
            read_file: Coroutine function returning the document's bytes
            watermark: Text written over the {Watermark} token of the
                settings' watermark part before extraction; the stamped
                document is then validated and kept on the session

        Returns:
            UploadResult, or None when the session was closed before the reads completed

        Raises:
            TemplateValidationError: If the document cannot be read or has no usable parts
        """
        content, catalogs = await asyncio.gather(
            read_file(), self._fetch_catalogs(), return_exceptions=True
        )

        if not self._alive:
            logger.warning("Upload session closed before the template was read; discarding results.")
            return None

        if isinstance(content, BaseException):
            raise TemplateValidationError(f"Could not read the uploaded template: {content}") from content
        if isinstance(catalogs, BaseException):
            catalogs = [catalogs] * len(CATALOG_NAMES)

        catalog_errors: Dict[str, str] = {}
        resolved: Dict[str, List[Any]] = {}
        for name, outcome in zip(CATALOG_NAMES, catalogs):
            if isinstance(outcome, BaseException):
                logger.warning(f"Error fetching {name} catalog: {outcome}")
                catalog_errors[name] = str(outcome)
                resolved[name] = []
            else:
                resolved[name] = list(outcome or [])

        validation_error = None
        if watermark:
            content, validation_error = self._stamp_watermark(content, watermark)
            if validation_error:
                logger.warning(f"Watermarked template failed validation: {validation_error}")

        extraction = extract_template_tokens(content)
        placeholders = normalise_tokens(extraction.tokens)
        classification = classify_placeholders(
            placeholders, resolved["placeholders"], self.settings, prior_generic=self.generic_list
        )

        self.generic_list = merge_placeholders(self.generic_list, classification.generic_list)
        self.field_types = resolved["field_types"]
        self.placeholder_types = resolved["placeholder_types"]
        self.organizer = StepOrganizer(classification.placeholders, self.settings)
        self.document = bytes(content)

        logger.info(
            f"Processed template: {len(extraction.tokens)} tokens, "
            f"{len(self.organizer.pool)} placeholders to organise."
        )
        return UploadResult(
            tokens=extraction.tokens,
            failed_parts=extraction.failed_parts,
            placeholders=classification.placeholders,
            generic_list=classification.generic_list,
            input_list=classification.input_list,
            field_types=self.field_types,
            placeholder_types=self.placeholder_types,
            catalog_errors=catalog_errors,
            validation_error=validation_error,
        )

    def _require_organizer(self) -> StepOrganizer:
        if self.organizer is None:
            raise RuntimeError("No template has been processed in this session")
        return self.organizer

    @property
    def state(self) -> OrganizerState:
        return self._require_organizer().state

    def dispatch(self, action: Mapping[str, Any]) -> OrganizerState:
        return self._require_organizer().dispatch(action)

    def reset(self) -> OrganizerState:
        return self._require_organizer().reset()

    def compile(self, document_id: str, preview: bool = False,
                include_generic: Optional[bool] = None) -> CompiledSchema:
        """
        Compiles the session's steps.

        Generic-data fields are merged into the first step when include_generic
        is set, which defaults to the preview flag.
        """
        steps = self._require_organizer().steps
        if include_generic is None:
            include_generic = preview
        if include_generic:
            steps = merge_generic_fields(steps, self.generic_list, self.field_types)
        return compile_schema(document_id, steps, preview, self.field_types, self.settings)
