"""Key object selection decoding."""

from __future__ import annotations

import logging
from typing import Optional

from .accessor import DatasetAccessor
from .content_tree import MAX_CONTENT_DEPTH, concept_name
from .errors import MissingIdentifierError
from .models import KeyObjectSelection, SopId, ValueType
from .references import CONTENT_SEQUENCE, collect_image_items


logger = logging.getLogger(__name__)


DEFAULT_TITLE = "Key Images"


def _description(accessor: DatasetAccessor) -> Optional[str]:
    for item in accessor.items(CONTENT_SEQUENCE):
        if item.string("ValueType") == ValueType.TEXT.value:
            text = item.string("TextValue")
            if text:
                return text
    return None


def decode_key_object_selection(
    accessor: DatasetAccessor,
    source: str | None = None,
    max_depth: int = MAX_CONTENT_DEPTH,
) -> Optional[KeyObjectSelection]:
    """Decode a key object selection; None when it marks no images.

    Individual references are kept even when the image is not part of the load.
    """

    sop_uid = accessor.string("SOPInstanceUID")
    if not sop_uid:
        raise MissingIdentifierError("SOPInstanceUID", source)

    key_images = collect_image_items(accessor, max_depth)
    if not key_images:
        logger.warning("No key images found in key object selection %s", source or sop_uid)
        return None

    return KeyObjectSelection(
        sop_id=SopId(sop_uid),
        title=concept_name(accessor) or DEFAULT_TITLE,
        key_images=key_images,
        description=_description(accessor),
    )
