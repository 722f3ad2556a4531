"""
ShareChannel - Encode progress snapshots into shareable links.

The snapshot wire JSON is percent-encoded into a single `data` query
parameter. Decoding failures raise DecodeError; callers fall back to the
next snapshot source instead of failing.
"""

import json
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

from graduplanner.schemas import Snapshot, SnapshotPayload


SHARE_PARAM = "data"


class DecodeError(ValueError):
    """Malformed share payload or corrupted stored snapshot."""


def snapshot_to_json(snapshot: Snapshot) -> str:
    """Serialize a snapshot to the wire JSON (timestamped now)."""
    return SnapshotPayload.from_snapshot(snapshot).to_json()


def snapshot_from_json(text: str) -> Snapshot:
    """Parse wire JSON into a Snapshot, raising DecodeError on any defect."""
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise DecodeError("Snapshot JSON root must be an object")
    try:
        return SnapshotPayload.model_validate(raw).to_snapshot()
    except ValidationError as e:
        raise DecodeError(f"Invalid snapshot: {e}") from e


class ShareChannel:
    """Encode/decode snapshots as a percent-encoded query parameter."""

    def __init__(self, param: str = SHARE_PARAM):
        self.param = param

    def encode(self, snapshot: Snapshot) -> str:
        return quote(snapshot_to_json(snapshot), safe="")

    def decode(self, payload: str) -> Snapshot:
        """
        Decode a share payload, percent-encoded or already decoded.

        Web frameworks hand query parameters over decoded once; decoding
        again would alter names containing `%XX` sequences.
        """
        if not payload or not payload.strip():
            raise DecodeError("Empty share payload")
        if payload.lstrip().startswith("{"):
            return snapshot_from_json(payload)
        try:
            text = unquote(payload, errors="strict")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Share payload is not valid percent-encoding: {e}") from e
        return snapshot_from_json(text)

    def share_url(self, base_url: str, snapshot: Snapshot) -> str:
        """Build `base_url?data=<encoded>`, keeping any other query parameters."""
        parts = urlsplit(base_url)
        query = parse_qs(parts.query, keep_blank_values=True)
        query.pop(self.param, None)
        pairs = [(key, value) for key, values in query.items() for value in values]
        existing = urlencode(pairs)
        encoded = f"{self.param}={self.encode(snapshot)}"
        new_query = f"{existing}&{encoded}" if existing else encoded
        return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))

    def payload_from_url(self, url: str) -> Optional[str]:
        """
        Extract the raw (still percent-encoded) payload from a share URL.

        Returns None when the URL carries no payload.
        """
        query = urlsplit(url).query
        for pair in query.split("&"):
            key, sep, value = pair.partition("=")
            if sep and unquote(key) == self.param and value:
                return value
        return None
