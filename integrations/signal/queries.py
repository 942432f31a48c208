"""SQL for the Signal Desktop database.

User values are always bound as parameters; the only string assembly is the
choice between fixed pagination suffixes.
"""

# Cipher settings Signal Desktop uses, applied after PRAGMA key and before any query
CIPHER_PRAGMAS: tuple[tuple[str, str], ...] = (
    ("cipher_page_size", "4096"),
    ("kdf_iter", "64000"),
    ("cipher_hmac_algorithm", "HMAC_SHA512"),
    ("cipher_kdf_algorithm", "PBKDF2_HMAC_SHA512"),
)

# Touches the schema page, so a wrong key fails here instead of on the first real query
PROBE_QUERY = "SELECT count(*) FROM sqlite_master"

SELF_ID_QUERY = "SELECT json FROM items WHERE id = 'uuid_id'"

CONVERSATIONS_QUERY = """
    SELECT
        id,
        serviceId AS service_id,
        name,
        profileName AS profile_name,
        e164 AS number,
        type,
        json
    FROM conversations
    WHERE type IN ('private', 'group')
"""

CONVERSATION_BY_NAME_QUERY = """
    SELECT
        id,
        serviceId AS service_id,
        name,
        profileName AS profile_name,
        e164 AS number,
        type,
        json
    FROM conversations
    WHERE name = ? OR profileName = ?
    LIMIT 1
"""

MESSAGE_COUNT_QUERY = "SELECT COUNT(*) AS count FROM messages WHERE conversationId = ?"

_MESSAGE_COLUMNS = """
        id,
        conversationId AS conversation_id,
        timestamp,
        sent_at,
        source,
        sourceServiceId AS source_service_id,
        body,
        json,
        hasAttachments AS has_attachments,
        type
"""

MESSAGES_QUERY = f"""
    SELECT {_MESSAGE_COLUMNS}
    FROM messages
    WHERE conversationId = ?
    ORDER BY timestamp DESC
"""

SEARCH_QUERY = f"""
    SELECT {_MESSAGE_COLUMNS}
    FROM messages
    WHERE conversationId = ?
      AND COALESCE(body, '') LIKE ? ESCAPE '\\'
    ORDER BY timestamp DESC
"""

LIMIT_OFFSET_CLAUSE = " LIMIT ? OFFSET ?"
OFFSET_ONLY_CLAUSE = " LIMIT -1 OFFSET ?"
LIMIT_CLAUSE = " LIMIT ?"


def like_pattern(query: str) -> str:
    """Build a LIKE pattern matching ``query`` as a literal substring.

    ``\\``, ``%`` and ``_`` are escaped for use with ``ESCAPE '\\'``.
    """
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def paginate(base_query: str, limit: int | None, offset: int = 0) -> tuple[str, tuple[int, ...]]:
    """Append pagination to ``base_query``.

    Returns:
        The query and the extra parameters to bind after the base parameters.
    """
    if limit is not None:
        return base_query + LIMIT_OFFSET_CLAUSE, (limit, offset)
    if offset > 0:
        return base_query + OFFSET_ONLY_CLAUSE, (offset,)
    return base_query, ()
