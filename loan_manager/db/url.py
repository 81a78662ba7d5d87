from sqlalchemy.engine import make_url

_POSTGRES_DRIVERS = {"postgres", "postgresql", "postgresql+asyncpg", "postgresql+psycopg2"}
_SSL_OFF = {"0", "false", "no", "off", "disable"}


def normalize_database_url(url: str) -> str:
    """Return ``url`` targeting the async psycopg driver.

    Hosted Postgres URLs often use the bare ``postgres://`` scheme or the
    asyncpg-style ``ssl=`` flag; both are rewritten for psycopg.
    """
    url = (url or "").strip()
    if not url:
        return url

    parsed = make_url(url)
    if parsed.drivername in _POSTGRES_DRIVERS:
        parsed = parsed.set(drivername="postgresql+psycopg")

    ssl = next((key for key in parsed.query if key.lower() == "ssl"), None)
    if ssl is not None:
        value = str(parsed.query[ssl]).strip().lower()
        parsed = parsed.difference_update_query([ssl])
        if "sslmode" not in parsed.query:
            if value in _SSL_OFF:
                mode = "disable"
            elif value in {"require", "verify-ca", "verify-full"}:
                mode = value
            else:
                mode = "require"
            parsed = parsed.update_query_dict({"sslmode": mode})

    return parsed.render_as_string(hide_password=False)
