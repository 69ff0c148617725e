"""Deep links back to the source graph, framed around an alert's lifetime."""

import logging
from datetime import datetime, timezone
from urllib.parse import quote_plus, unquote_plus, urlsplit, urlunsplit

from app.config import AlertSyncConfig
from app.exceptions import UnparseableTimestampError
from app.models.alert import Alert
from app.utils import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

END_INPUT_FORMAT = "%Y-%m-%d %H:%M"


def _alert_end(alert: Alert, now: datetime) -> datetime:
    if not alert.ends_at:
        return now
    try:
        return parse_timestamp(alert.ends_at)
    except UnparseableTimestampError:
        logger.debug(f"Unparseable ends_at {alert.ends_at!r} for {alert.alert_name}, using now")
        return now


def _replace_query_params(query: str, params: dict[str, str]) -> str:
    """Set params on a raw query string, leaving every other pair byte-for-byte intact."""
    kept = [
        pair
        for pair in query.split("&")
        if pair and unquote_plus(pair.split("=", 1)[0]) not in params
    ]
    kept.extend(f"{quote_plus(key)}={quote_plus(value)}" for key, value in params.items())
    return "&".join(kept)


def build_graph_link(
    alert: Alert, config: AlertSyncConfig, now: datetime | None = None
) -> str:
    """Rewrite the alert's graph URL to show its whole duration plus padding.

    Returns "" when the alert carries no graph URL. Raises
    UnparseableTimestampError when starts_at cannot be parsed.
    """
    if not alert.graph_url:
        return ""

    now = now or utcnow()
    start = parse_timestamp(alert.starts_at)
    end = _alert_end(alert, now)

    range_seconds = int((end - start + config.graph_range_padding).total_seconds())
    end_input = (end + config.graph_end_padding).astimezone(timezone.utc)

    parts = urlsplit(alert.graph_url)
    query = _replace_query_params(
        parts.query,
        {
            config.graph_range_param: f"{range_seconds}s",
            config.graph_end_param: end_input.strftime(END_INPUT_FORMAT),
        },
    )
    return urlunsplit(parts._replace(query=query, fragment=config.graph_fragment))
