"""Fetching conversation transcripts from the source platform."""

from urllib.parse import quote

from ..exceptions import SourceQueryError, TranscriptNotFoundError
from ..logging_config import get_logger
from ..models import ConversationEntry
from .session import ISourceSession

logger = get_logger(__name__)


def _soql_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _json_object(response, what: str) -> dict:
    try:
        data = response.json()
    except ValueError as e:
        raise SourceQueryError(
            f"Unreadable response for {what}: {response.text[:200]}",
            status_code=response.status_code,
            body=response.text,
        ) from e
    if not isinstance(data, dict):
        raise SourceQueryError(
            f"Unexpected response for {what}",
            status_code=response.status_code,
            body=response.text,
        )
    return data


async def _query_first(session: ISourceSession, api_version: str, soql: str, what: str) -> dict:
    """Run a SOQL query and return its first record."""
    url = f"{session.instance_url}/services/data/{api_version}/query?q={quote(soql)}"
    response = await session.make_request("GET", url)

    if not response.is_success:
        raise SourceQueryError(
            f"Failed to query {what}: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    records = _json_object(response, what).get("records") or []
    if not records:
        raise TranscriptNotFoundError(f"No {what} found")
    return records[0]


async def get_conversation_identifier(
    session: ISourceSession,
    case_number: str,
    api_version: str,
) -> str:
    """Resolve a case number to its conversation identifier.

    Case -> MessagingSession.ConversationId -> Conversation.ConversationIdentifier
    """
    case = await _query_first(
        session,
        api_version,
        f"SELECT Id FROM Case WHERE CaseNumber='{_soql_literal(case_number)}' LIMIT 1",
        f"case {case_number}",
    )

    messaging = await _query_first(
        session,
        api_version,
        f"SELECT ConversationId FROM MessagingSession WHERE CaseId='{_soql_literal(case['Id'])}' LIMIT 1",
        "messaging session for this case",
    )

    conversation = await _query_first(
        session,
        api_version,
        "SELECT ConversationIdentifier FROM Conversation "
        f"WHERE Id='{_soql_literal(messaging['ConversationId'])}' LIMIT 1",
        "conversation",
    )

    return conversation["ConversationIdentifier"]


async def get_conversation_entries(
    session: ISourceSession,
    conversation_identifier: str,
    api_version: str,
) -> list[ConversationEntry]:
    """Retrieve all entries of a conversation, following pagination.

    Entries are returned in the order the API delivers them, not sorted.
    """
    instance_url = session.instance_url
    url: str | None = (
        f"{instance_url}/services/data/{api_version}"
        f"/connect/conversation/{conversation_identifier}/entries"
    )

    entries: list[ConversationEntry] = []
    page_count = 0
    while url:
        page_count += 1
        response = await session.make_request("GET", url)

        if not response.is_success:
            raise SourceQueryError(
                f"Failed to fetch conversation entries: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        data = _json_object(response, "conversation entries")
        entries.extend(
            ConversationEntry.from_api(item) for item in data.get("conversationEntries") or []
        )

        next_page = data.get("nextPageUrl")
        url = f"{instance_url}{next_page}" if data.get("hasMore") and next_page else None

    logger.info(
        f"Fetched {len(entries)} entries in {page_count} page(s) "
        f"for conversation {conversation_identifier}"
    )
    return entries


def sort_entries(entries: list[ConversationEntry]) -> list[ConversationEntry]:
    """Return a new list ordered by client timestamp."""
    return sorted(entries, key=lambda entry: entry.client_timestamp)
