"""Split a commit's raw operations into typed post/like creates and deletes."""

from __future__ import annotations

import logging

from skafeed.ingestion.event_types import CreateOp, DeleteOp, OpsByType, RepoEvent, is_commit

logger = logging.getLogger(__name__)

POST_COLLECTION = "app.bsky.feed.post"
LIKE_COLLECTION = "app.bsky.feed.like"


def extract_ops(evt: RepoEvent) -> OpsByType:
    """Group create/delete ops by collection.

    Updates and other collections are ignored. A create whose record is missing
    or declares a different `$type` is dropped.
    """
    out = OpsByType()
    if not is_commit(evt) or not evt.repo:
        return out
    for op in evt.ops:
        collection = op.path.split("/", 1)[0]
        if collection == POST_COLLECTION:
            bucket = out.posts
        elif collection == LIKE_COLLECTION:
            bucket = out.likes
        else:
            continue
        uri = f"at://{evt.repo}/{op.path}"
        if op.action == "create":
            record = op.record
            if record is None or not op.cid:
                continue
            if record.get("$type", collection) != collection:
                logger.debug(f"Dropping {uri}: record type {record.get('$type')!r}")
                continue
            bucket.creates.append(CreateOp(uri=uri, cid=op.cid, author=evt.repo, record=record))
        elif op.action == "delete":
            bucket.deletes.append(DeleteOp(uri=uri))
    return out


def like_subject_uri(create: CreateOp):
    subject = create.record.get("subject")
    if not isinstance(subject, dict):
        return None
    uri = subject.get("uri")
    return uri if isinstance(uri, str) and uri else None
