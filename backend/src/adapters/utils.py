"""HTTP helpers shared by the providers and the document loader."""

from typing import Any, Optional

import requests

USER_AGENT = "clauserag/0.1"


def create_session_with_pooling(
    pool_connections: int = 10,
    pool_maxsize: int = 20,
    max_retries: int = 0,
    headers: Optional[dict[str, str]] = None,
) -> requests.Session:
    """Create a pooled requests Session.

    Connection retries stay at 0 unless asked for; request-level retries
    belong to adapters.retry.
    """
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=max_retries,
    )
    session = requests.Session()
    for prefix in ("http://", "https://"):
        session.mount(prefix, adapter)
    session.headers["User-Agent"] = USER_AGENT
    session.headers.update(headers or {})
    return session


def post_json(
    session: requests.Session, url: str, payload: dict[str, Any], timeout: float
) -> dict[str, Any]:
    """POST a JSON body and return the decoded JSON reply.

    Raises:
        requests.HTTPError: On a non-2xx status; the retry layer reads the
            status code from its response.
    """
    response = session.post(url, json=payload, timeout=timeout)
    response.raise_for_status()
    return response.json()
