"""Decoder for the target platform's streamed chat responses.

A response body is a sequence of newline-delimited JSON records. Each line
is decoded independently into zero or more typed records:

    {"type": "message", "message": {"role": "assistant", "text": "Hel"}}
    {"token": "tok-2"}
    {"serverEvent": {"state": "opaque-blob"}}

Lines that are not JSON objects, or carry nothing we recognise, decode to an
UnknownRecord and are skipped by the caller.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class MessageFragment:
    text: str


@dataclass(frozen=True)
class TokenUpdate:
    token: str


@dataclass(frozen=True)
class StateUpdate:
    state: str


@dataclass(frozen=True)
class UnknownRecord:
    raw: str
    reason: str  # "invalid_json", "not_an_object" or "unrecognized"


StreamRecord = Union[MessageFragment, TokenUpdate, StateUpdate, UnknownRecord]


@dataclass
class ParsedReply:
    """Everything extracted from one response body."""

    fragments: list[str] = field(default_factory=list)
    token: str | None = None
    state: str | None = None
    unknown_count: int = 0

    @property
    def message(self) -> str:
        return "".join(self.fragments)

    @property
    def has_message(self) -> bool:
        return bool(self.fragments)

    def apply(self, record: StreamRecord) -> None:
        if isinstance(record, MessageFragment):
            self.fragments.append(record.text)
        elif isinstance(record, TokenUpdate):
            self.token = record.token
        elif isinstance(record, StateUpdate):
            self.state = record.state
        else:
            self.unknown_count += 1


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _message_text(message: Any) -> str | None:
    """Text of a nested message object, preferring "text" over "content"."""
    if not isinstance(message, dict):
        return None
    return _string(message.get("text")) or _string(message.get("content"))


def classify(payload: dict[str, Any], raw: str = "") -> list[StreamRecord]:
    """Classify one decoded JSON object into typed records."""
    records: list[StreamRecord] = []
    server_event = payload.get("serverEvent")
    if not isinstance(server_event, dict):
        server_event = {}

    token = _string(payload.get("token")) or _string(server_event.get("token"))
    if token:
        records.append(TokenUpdate(token))

    state = _string(payload.get("state")) or _string(server_event.get("state"))
    if state:
        records.append(StateUpdate(state))

    if payload.get("type") == "message":
        text = _message_text(payload.get("message"))
        if text:
            records.append(MessageFragment(text))

    # Legacy shape: the message lives under serverEvent
    legacy_text = _message_text(server_event.get("message"))
    if legacy_text:
        records.append(MessageFragment(legacy_text))

    if not records:
        records.append(UnknownRecord(raw, "unrecognized"))
    return records


def decode_line(line: str) -> list[StreamRecord]:
    """Decode a single line of the response stream."""
    stripped = line.strip()
    try:
        payload = json.loads(stripped)
    except ValueError:
        return [UnknownRecord(stripped, "invalid_json")]

    if not isinstance(payload, dict):
        return [UnknownRecord(stripped, "not_an_object")]
    return classify(payload, stripped)


def parse_stream(body: str) -> ParsedReply:
    """Parse a newline-delimited response body."""
    parsed = ParsedReply()
    for line in body.splitlines():
        if not line.strip():
            continue
        for record in decode_line(line):
            parsed.apply(record)
    return parsed


def parse_document(body: str) -> ParsedReply:
    """Parse the whole body as one JSON document (legacy non-streaming shape).

    Only the first message found is used, probed in the order
    serverEvent.message.content, serverEvent.message.text, message.text,
    message.content.
    """
    parsed = ParsedReply()
    try:
        payload = json.loads(body.strip())
    except ValueError:
        parsed.unknown_count += 1
        return parsed

    if not isinstance(payload, dict):
        parsed.unknown_count += 1
        return parsed

    for record in classify(payload, body):
        if not isinstance(record, MessageFragment):
            parsed.apply(record)

    server_event = payload.get("serverEvent")
    server_message = server_event.get("message") if isinstance(server_event, dict) else None
    message = payload.get("message")

    candidates = []
    if isinstance(server_message, dict):
        candidates += [server_message.get("content"), server_message.get("text")]
    if isinstance(message, dict):
        candidates += [message.get("text"), message.get("content")]

    for candidate in candidates:
        text = _string(candidate)
        if text:
            parsed.fragments.append(text)
            break

    return parsed
