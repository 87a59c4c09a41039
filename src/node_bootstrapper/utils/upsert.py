"""
Idempotent create-or-update primitives for Kubernetes objects.

Both primitives fetch the object by identity, apply a caller supplied mutate
function to the fetched (or, when absent, the skeleton) object and write the
result back. An object the mutation leaves untouched is not written.

- ``create_or_update`` writes with a full replace that carries the fetched
  resourceVersion. A 409 Conflict (another writer got in first) or a 409
  AlreadyExists on create triggers a fresh fetch and another attempt.
- ``create_or_patch`` writes a JSON merge patch holding only the fields the
  mutation changed, so fields owned by other controllers are left alone.

Blocking client calls run in a worker thread, which keeps the event loop
responsive and lets task cancellation abort a pass between calls.
"""

import asyncio
import copy
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from kubernetes import client
from kubernetes.client.rest import ApiException

from node_bootstrapper.constants import MERGE_PATCH_CONTENT_TYPE

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT_RETRIES = 5

MutateFn = Callable[[Any], None]


class OperationResult(enum.StrEnum):
    """Outcome of an upsert."""

    CREATED = "created"
    UPDATED = "updated"
    PATCHED = "patched"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ResourceOps:
    """
    Uniform access to the typed client methods of one resource kind.

    The generated kubernetes client exposes separate method names and
    signatures per kind and scope; this adapter hides both behind
    ``fetch``/``insert``/``update``/``merge_patch``.
    """

    kind: str
    read: Callable[..., Any]
    create: Callable[..., Any]
    replace: Callable[..., Any]
    patch: Callable[..., Any] | None = None
    namespaced: bool = True

    def _key(self, obj: Any) -> dict[str, str]:
        key = {"name": obj.metadata.name}
        if self.namespaced:
            key["namespace"] = obj.metadata.namespace
        return key

    def describe(self, obj: Any) -> str:
        if self.namespaced:
            return f"{self.kind} {obj.metadata.namespace}/{obj.metadata.name}"
        return f"{self.kind} {obj.metadata.name}"

    async def fetch(self, obj: Any) -> Any:
        return await asyncio.to_thread(self.read, **self._key(obj))

    async def insert(self, obj: Any) -> Any:
        if self.namespaced:
            return await asyncio.to_thread(
                self.create, namespace=obj.metadata.namespace, body=obj
            )
        return await asyncio.to_thread(self.create, body=obj)

    async def update(self, obj: Any) -> Any:
        return await asyncio.to_thread(self.replace, **self._key(obj), body=obj)

    async def merge_patch(self, obj: Any, body: dict[str, Any]) -> Any:
        if self.patch is None:
            raise NotImplementedError(f"{self.kind} does not support patching")
        return await asyncio.to_thread(
            self.patch,
            **self._key(obj),
            body=body,
            _content_type=MERGE_PATCH_CONTENT_TYPE,
        )


@lru_cache(maxsize=1)
def _serializer() -> client.ApiClient:
    return client.ApiClient()


def to_wire(obj: Any) -> dict[str, Any]:
    """Serialize a client model to its API (camelCase) dictionary form."""
    return _serializer().sanitize_for_serialization(obj)


def merge_patch_for(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """
    Compute an RFC 7386 JSON merge patch turning ``before`` into ``after``.

    Returns an empty dict when the two documents are equal.
    """
    patch: dict[str, Any] = {}
    for key in before.keys() - after.keys():
        patch[key] = None
    for key, value in after.items():
        old = before.get(key)
        if isinstance(value, dict) and isinstance(old, dict):
            nested = merge_patch_for(old, value)
            if nested:
                patch[key] = nested
        elif value != old:
            patch[key] = value
    return patch


def _is_conflict(error: ApiException) -> bool:
    return error.status == 409


async def create_or_update(
    ops: ResourceOps,
    obj: Any,
    mutate: MutateFn,
    conflict_retries: int = DEFAULT_CONFLICT_RETRIES,
) -> tuple[Any, OperationResult]:
    """
    Create ``obj`` or bring the live object in line with ``mutate``.

    Args:
        ops: Client access for the object's kind
        obj: Skeleton identifying the object; used as the create body
        mutate: Function mutating an object in place to the desired state
        conflict_retries: Extra attempts after a 409 from the API server

    Returns:
        Tuple of the live object after the call and what was done

    Raises:
        ApiException: On any API failure other than a retried conflict, or
            when conflicts persist after ``conflict_retries`` attempts
    """
    attempt = 0
    while True:
        try:
            existing = await ops.fetch(obj)
        except ApiException as e:
            if e.status != 404:
                raise
            mutate(obj)
            try:
                created = await ops.insert(obj)
            except ApiException as create_error:
                if _is_conflict(create_error) and attempt < conflict_retries:
                    attempt += 1
                    logger.debug(
                        f"{ops.describe(obj)} appeared concurrently, retrying "
                        f"(attempt {attempt}/{conflict_retries})"
                    )
                    continue
                raise
            return created, OperationResult.CREATED

        before = copy.deepcopy(existing)
        mutate(existing)
        if existing == before:
            return existing, OperationResult.UNCHANGED

        try:
            updated = await ops.update(existing)
        except ApiException as e:
            if _is_conflict(e) and attempt < conflict_retries:
                attempt += 1
                logger.debug(
                    f"Conflict updating {ops.describe(obj)}, re-fetching "
                    f"(attempt {attempt}/{conflict_retries})"
                )
                continue
            raise
        return updated, OperationResult.UPDATED


async def create_or_patch(
    ops: ResourceOps,
    obj: Any,
    mutate: MutateFn,
    conflict_retries: int = DEFAULT_CONFLICT_RETRIES,
) -> tuple[Any, OperationResult]:
    """
    Create ``obj`` or merge-patch the fields ``mutate`` changes on the live object.

    The patch carries no resourceVersion, so it cannot conflict with writers
    of other fields, e.g. the token controller filling in secret data.

    Returns:
        Tuple of the live object after the call and what was done

    Raises:
        ApiException: On any API failure other than a retried create conflict
    """
    attempt = 0
    while True:
        try:
            existing = await ops.fetch(obj)
        except ApiException as e:
            if e.status != 404:
                raise
            mutate(obj)
            try:
                created = await ops.insert(obj)
            except ApiException as create_error:
                if _is_conflict(create_error) and attempt < conflict_retries:
                    attempt += 1
                    continue
                raise
            return created, OperationResult.CREATED

        before = to_wire(existing)
        mutate(existing)
        patch = merge_patch_for(before, to_wire(existing))
        if not patch:
            return existing, OperationResult.UNCHANGED

        logger.debug(f"Patching {ops.describe(obj)} with {sorted(patch)}")
        patched = await ops.merge_patch(existing, patch)
        return patched, OperationResult.PATCHED
