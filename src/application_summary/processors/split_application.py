"""
Split application support for funeral expense claims.

A fatal application can carry a separate funeral reference. The funeral claim
gets its own summary: a copy of the document filed under the funeral reference
and flagged as a split.
"""

import copy
import posixpath
from dataclasses import replace

from ..models import Document

SPLIT_SUFFIX = "-split"


def needs_split(document: Document) -> bool:
    """True for an original (not already split) document with a funeral reference."""
    return bool(document.meta.funeral_reference) and not document.meta.split_funeral


def split_for_funeral(document: Document) -> Document:
    """
    Derive the funeral claim document.

    The input is left untouched. The result carries the funeral reference as
    its case reference and is marked as a split; themes and questions are the
    same.

    Raises:
        ValueError: if the document has no funeral reference
    """
    funeral_reference = document.meta.funeral_reference
    if not funeral_reference:
        raise ValueError(
            f"Document {document.meta.case_reference} has no funeral reference to split on"
        )

    raw = copy.deepcopy(document.raw)
    raw_meta = raw.setdefault("meta", {})
    raw_meta["caseReference"] = funeral_reference
    raw_meta["splitFuneral"] = True

    meta = replace(document.meta, case_reference=funeral_reference, split_funeral=True)
    return replace(document, meta=meta, raw=raw)


def derive_split_key(original_key: str) -> str:
    """
    Insert ``-split`` before the file extension, keeping the directory.

    ``testdirectory/originalfile.json`` becomes
    ``testdirectory/originalfile-split.json``.
    """
    root, extension = posixpath.splitext(original_key)
    return f"{root}{SPLIT_SUFFIX}{extension}"
