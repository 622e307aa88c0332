# ============================================================================
# CLAUDE CONTEXT - PAYLOAD SPLITTER
# ============================================================================
# STATUS: Standalone Module - glTF document / binary buffer split
# PURPOSE: Turn one two-part scene payload into a rewritten glTF document and a cached binary buffer
# LAST_REVIEWED: Current
# EXPORTS: PayloadSplitter, SplitResult, GLTF_MIMETYPE, BINARY_MIMETYPE
# DEPENDENCIES: json, infrastructure.cache_store, util_logger
# PATTERNS: First-writer-wins cache population
# ============================================================================

"""
Payload Splitter

A scene payload has a glTF JSON document part and a binary buffer part.
The client receives them over two separate HTTP exchanges:

1. GetResourceById returns the document with its first buffer URI rewritten
   to ``<model>/<original uri>?id=<resourceId>``.
2. The client resolves that URI against the model URL and fetches
   ``/<model>/$blobfile.bin?id=<resourceId>``, answered from the cache store.

The binary part is added under ``blob:<model>:<resourceId>`` and never
replaced: a second split for the same resource keeps the first buffer.
"""

import json
from dataclasses import dataclass
from typing import Optional

from infrastructure.cache_store import CacheStore, CacheStoreError, blob_key
from util_logger import LoggerFactory, ComponentType
from .models import BINARY_TAG, DOCUMENT_TAG, ScenePayload, ServiceResponse

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "PayloadSplitter")

GLTF_MIMETYPE = "model/gltf+json;charset=UTF-8"
BINARY_MIMETYPE = "application/octet-stream"


@dataclass
class SplitResult:
    """
    Outcome of one split.

    document_response is None when the document part could not be rewritten.
    binary_response is the inline octet-stream variant of the binary part.
    Ogc3dpsService.split_resource hands it to in-process callers; HTTP
    clients always read the binary part back through $blobfile.bin.
    """
    document_response: Optional[ServiceResponse] = None
    binary_response: Optional[ServiceResponse] = None
    blob_cached: bool = False


def rewrite_buffer_uri(document: bytes, model_name: str, resource_id: str) -> bytes:
    """
    Point the document's first buffer at the companion binary endpoint.

    Raises:
        UnicodeDecodeError, ValueError, KeyError, IndexError, TypeError:
            document is not UTF-8 glTF JSON with buffers[0].uri
    """
    gltf = json.loads(document.decode("utf-8"))
    buffer = gltf["buffers"][0]
    buffer["uri"] = f"{model_name}/{buffer['uri']}?id={resource_id}"
    return json.dumps(gltf).encode("utf-8")


class PayloadSplitter:
    """Splits scene payloads and stores binary parts in the cache store."""

    def __init__(self, cache_store: CacheStore):
        self.cache_store = cache_store

    def split(self, model_name: str, resource_id: str, payload: ScenePayload) -> SplitResult:
        result = SplitResult()

        for part in payload.parts:
            if part.tag == DOCUMENT_TAG:
                try:
                    body = rewrite_buffer_uri(part.data, model_name, resource_id)
                except (UnicodeDecodeError, ValueError, KeyError, IndexError, TypeError) as e:
                    logger.error(
                        f"Cannot rewrite glTF document for {model_name}/{resource_id}: "
                        f"{type(e).__name__}: {e}"
                    )
                    continue
                result.document_response = ServiceResponse(body=body, mimetype=GLTF_MIMETYPE)

            elif part.tag == BINARY_TAG:
                try:
                    result.blob_cached = self.cache_store.add(
                        blob_key(model_name, resource_id), part.data
                    )
                except CacheStoreError as e:
                    logger.error(f"Cannot cache binary part for {model_name}/{resource_id}: {e}")
                result.binary_response = ServiceResponse(
                    body=part.data,
                    mimetype=BINARY_MIMETYPE,
                    headers={"Content-Length": str(len(part.data))}
                )

        return result
