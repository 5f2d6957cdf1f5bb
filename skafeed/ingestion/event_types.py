"""Decoded firehose message types shared by extraction and the ingestor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

COMMIT_KIND = "commit"


@dataclass(frozen=True)
class RepoOp:
    action: str  # create | update | delete
    path: str  # <collection>/<rkey>
    cid: Optional[str] = None
    record: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class RepoEvent:
    """One decoded subscribeRepos message.

    Wire decoding (CBOR/CAR) happens upstream; this is the minimal shape the
    ingestor depends on.
    """

    kind: str
    seq: Optional[int] = None
    repo: Optional[str] = None
    time: Optional[str] = None
    ops: List[RepoOp] = field(default_factory=list)

    @classmethod
    def from_message(cls, msg: Dict[str, Any]) -> "RepoEvent":
        kind = msg.get("kind") or msg.get("$type") or ""
        kind = str(kind).rsplit("#", 1)[-1].strip().lower()
        seq = msg.get("seq")
        try:
            seq = int(seq) if seq is not None else None
        except (TypeError, ValueError):
            seq = None
        ops: List[RepoOp] = []
        for op in msg.get("ops") or []:
            if not isinstance(op, dict):
                continue
            action = str(op.get("action") or "").lower()
            path = op.get("path") or ""
            if not action or not path:
                continue
            record = op.get("record")
            ops.append(
                RepoOp(
                    action=action,
                    path=str(path),
                    cid=op.get("cid") or None,
                    record=record if isinstance(record, dict) else None,
                )
            )
        return cls(
            kind=kind,
            seq=seq,
            repo=msg.get("repo") or None,
            time=msg.get("time") or None,
            ops=ops,
        )


def is_commit(evt: RepoEvent) -> bool:
    return evt.kind == COMMIT_KIND


@dataclass(frozen=True)
class CreateOp:
    uri: str
    cid: str
    author: str
    record: Dict[str, Any]


@dataclass(frozen=True)
class DeleteOp:
    uri: str


@dataclass
class CollectionOps:
    creates: List[CreateOp] = field(default_factory=list)
    deletes: List[DeleteOp] = field(default_factory=list)


@dataclass
class OpsByType:
    posts: CollectionOps = field(default_factory=CollectionOps)
    likes: CollectionOps = field(default_factory=CollectionOps)
