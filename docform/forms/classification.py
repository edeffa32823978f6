"""
Placeholder Classification Module

This module splits the placeholders found in a template into organisation-wide
"generic" data and document-specific "input" fields, using the master catalog
of previously registered placeholders as the authority on types.

Functions:
    - filter_generic_conflicts: Drops implicit references to known generic data
    - enrich_from_catalog: Replaces known placeholders with their catalog entry
    - partition_placeholders: Splits a set into generic and input lists
    - classify_placeholders: Runs the three passes above in order
    - visible_placeholders: The placeholders an operator arranges into steps
"""

import logging
from typing import Iterable, List, NamedTuple, Tuple

from docform.config import FormSettings, PlaceholderCategory
from .models import Placeholder
from .normalization import merge_placeholders

logger = logging.getLogger(__name__)

GENERIC_CATEGORIES = (PlaceholderCategory.GENERIC_DATA, PlaceholderCategory.MASTER_FOLDER_ONLY)


class ClassificationResult(NamedTuple):
    placeholders: List[Placeholder]
    generic_list: List[Placeholder]
    input_list: List[Placeholder]


def filter_generic_conflicts(placeholders: Iterable[Placeholder],
                             generic_list: Iterable[Placeholder]) -> List[Placeholder]:
    """
    Suppresses placeholders whose tag is already resolved as generic data.

    A fully typed placeholder is kept even when the tag is generic: an
    explicit definition takes precedence over an implicit generic reference.

    Args:
        placeholders: Extracted (possibly untyped) placeholders
        generic_list: Generic placeholders from a prior resolution

    Returns:
        List[Placeholder]: The placeholders that survive, in input order
    """
    generic_tags = {placeholder.full_tag_name for placeholder in generic_list}
    kept = []
    for placeholder in placeholders:
        if placeholder.full_tag_name in generic_tags and not placeholder.is_typed:
            logger.debug(f"Suppressing '{placeholder.full_tag_name}': already resolved as generic data")
            continue
        kept.append(placeholder)
    return kept


def enrich_from_catalog(placeholders: Iterable[Placeholder],
                        catalog: Iterable[Placeholder],
                        settings: FormSettings) -> List[Placeholder]:
    """
    Replaces every placeholder that has a catalog entry with that entry.

    Placeholders whose catalog entry is master-folder-only are dropped; they
    never reach the editable form. Uncatalogued placeholders pass through.

    Args:
        placeholders: Placeholders extracted from the template
        catalog: Master catalog of registered placeholders
        settings: Injected category configuration

    Returns:
        List[Placeholder]: Enriched placeholders in input order
    """
    by_tag = {}
    for entry in catalog:
        by_tag.setdefault(entry.full_tag_name, entry)

    enriched = []
    for placeholder in placeholders:
        entry = by_tag.get(placeholder.full_tag_name)
        if entry is None:
            enriched.append(placeholder)
            continue
        if settings.category_of(entry.placeholder_type_id) == PlaceholderCategory.MASTER_FOLDER_ONLY:
            logger.debug(f"Dropping master-folder placeholder '{placeholder.full_tag_name}'")
            continue
        enriched.append(entry.model_copy())
    return enriched


def partition_placeholders(placeholders: Iterable[Placeholder],
                           settings: FormSettings) -> Tuple[List[Placeholder], List[Placeholder]]:
    """
    Splits placeholders into (generic_list, input_list).

    Each list is independently deduplicated by full_tag_name.
    """
    generic, inputs = [], []
    for placeholder in placeholders:
        if settings.category_of(placeholder.placeholder_type_id) in GENERIC_CATEGORIES:
            generic.append(placeholder)
        else:
            inputs.append(placeholder)
    return merge_placeholders(generic), merge_placeholders(inputs)


def classify_placeholders(placeholders: Iterable[Placeholder],
                          catalog: Iterable[Placeholder],
                          settings: FormSettings,
                          prior_generic: Iterable[Placeholder] = ()) -> ClassificationResult:
    """
    Resolves extracted placeholders against the catalog and partitions them.

    Args:
        placeholders: Deduplicated extracted placeholders
        catalog: Master catalog (empty when the catalog fetch failed)
        settings: Injected category configuration
        prior_generic: Generic placeholders resolved by an earlier upload

    Returns:
        ClassificationResult: Enriched placeholders plus generic and input lists
    """
    filtered = filter_generic_conflicts(placeholders, prior_generic)
    enriched = enrich_from_catalog(filtered, catalog, settings)
    generic_list, input_list = partition_placeholders(enriched, settings)
    logger.info(
        f"Classified {len(enriched)} placeholders: {len(generic_list)} generic, {len(input_list)} input."
    )
    return ClassificationResult(placeholders=enriched, generic_list=generic_list, input_list=input_list)


def visible_placeholders(placeholders: Iterable[Placeholder], settings: FormSettings) -> List[Placeholder]:
    """Returns the placeholders that belong in the organizer's pool."""
    return [
        placeholder for placeholder in placeholders
        if settings.category_of(placeholder.placeholder_type_id) not in GENERIC_CATEGORIES
    ]
