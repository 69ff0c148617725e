"""Markdown rendering of alert groups, titles and first-post bodies."""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from jinja2 import BaseLoader, Environment, TemplateSyntaxError

from app.config import AlertSyncConfig
from app.exceptions import UnparseableTimestampError
from app.models.alert import Alert, AlertStatus
from app.services.grouping import GroupedAlerts, GroupKey, group_alerts
from app.services.links import build_graph_link
from app.utils import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

UNKNOWN_DATE = "(unknown)"

# Section order and headers of the rendered body
SECTIONS: tuple[tuple[AlertStatus, str], ...] = (
    (AlertStatus.FIRING, ":fire: Firing Alerts"),
    (AlertStatus.SUPPRESSED, ":shushing_face: Silenced Alerts"),
    (AlertStatus.RESOLVED, "History"),
    (AlertStatus.STALE, "Stale Alerts"),
)

BODY_TEMPLATE = """\
{% for section in sections %}
# {{ section.title }}

{% for group in section.groups %}
## {{ group.heading }}

| {{ group.columns | join(" | ") }} |
{{ group.separator }}
{% for row in group.rows %}
| {{ row | join(" | ") }} |
{% endfor %}

{% endfor %}
{% endfor %}
"""


def _escape_cell(value: Any) -> str:
    """Make a value safe to embed in a single markdown table cell."""
    if value is None:
        return ""
    s = " ".join(str(value).split())
    return s.replace("|", "\\|")


# Create a Jinja2 environment for template rendering
_jinja_env = Environment(
    loader=BaseLoader(),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_jinja_env.filters["cell"] = _escape_cell
_body_template = _jinja_env.from_string(BODY_TEMPLATE)


def local_date(value: datetime | str, config: AlertSyncConfig) -> str:
    """Localized date token interpreted by the downstream document renderer.

    Raises UnparseableTimestampError for strings that are not ISO 8601.
    """
    parsed = parse_timestamp(value)
    return (
        f"[date={parsed.strftime('%Y-%m-%d')} time={parsed.strftime('%H:%M:%S')} "
        f'format="{config.date_format}" displayedTimezone="{config.displayed_timezone}"]'
    )


def _safe_local_date(value: Optional[str], config: AlertSyncConfig) -> str:
    try:
        return local_date(value, config)
    except UnparseableTimestampError:
        logger.warning(f"Rendering placeholder for unparseable timestamp {value!r}")
        return UNKNOWN_DATE


def time_range(alert: Alert, config: AlertSyncConfig) -> str:
    start = _safe_local_date(alert.starts_at, config)
    if alert.ends_at:
        return f"{start} to {_safe_local_date(alert.ends_at, config)}"
    return f"active since {start}"


def _alert_label(alert: Alert, config: AlertSyncConfig, now: datetime) -> str:
    try:
        link = build_graph_link(alert, config, now=now)
    except UnparseableTimestampError:
        link = alert.graph_url

    label = _escape_cell(alert.label).replace("[", "\\[").replace("]", "\\]")
    output = f"[{label}]({link})" if link else label
    if alert.grafana_url:
        output += f" [:bar_chart:]({alert.grafana_url})"
    if alert.logs_url:
        output += f" [:scroll:]({alert.logs_url})"
    return output


def _group_heading(key: GroupKey) -> str:
    datacenter, external_url = key
    name = datacenter or external_url or "unknown"
    return f"[{name}]({external_url})" if external_url else name


def _group_context(
    key: GroupKey, alerts: list[Alert], config: AlertSyncConfig, now: datetime
) -> dict[str, Any]:
    with_description = any(alert.description for alert in alerts)
    columns = ["label", "time range"]
    if with_description:
        columns.append("description")

    rows = []
    for alert in alerts:
        row = [_alert_label(alert, config, now), time_range(alert, config)]
        if with_description:
            row.append(_escape_cell(alert.description))
        rows.append(row)

    return {
        "heading": _group_heading(key),
        "columns": columns,
        "separator": "|" + "---|" * len(columns),
        "rows": rows,
    }


def render_body(
    grouped: GroupedAlerts, config: AlertSyncConfig, now: datetime | None = None
) -> str:
    """Render grouped alerts as the markdown body of a document."""
    now = now or utcnow()
    sections = []
    for status, title in SECTIONS:
        groups = grouped.get(status)
        if not groups:
            continue
        sections.append(
            {
                "title": title,
                "groups": [
                    _group_context(key, alerts, config, now)
                    for key, alerts in groups.items()
                ],
            }
        )
    return _body_template.render(sections=sections)


def render_alerts(
    alerts: Iterable[Alert], config: AlertSyncConfig, now: datetime | None = None
) -> str:
    return render_body(group_alerts(alerts), config, now=now)


def render_string(template_str: str, context: dict[str, Any]) -> str:
    """Render a Jinja2 template string with the given context.

    Returns empty string if template is empty or rendering fails.
    """
    if not template_str:
        return ""

    try:
        template = _jinja_env.from_string(template_str)
        return template.render(**context)
    except TemplateSyntaxError as e:
        logger.error(f"Template syntax error: {e}")
        return ""
    except Exception as e:
        logger.error(f"Template rendering error: {e}")
        return ""


def generate_title(base_title: str, firing_count: int, config: AlertSyncConfig) -> str:
    """Document title: the base title plus the number of firing alerts, if any."""
    base_title = base_title.strip() if base_title else ""
    base_title = base_title or config.untitled_title

    if firing_count > 0:
        template = config.firing_title_template
    else:
        template = config.not_firing_title_template

    return render_string(template, {"base_title": base_title, "count": firing_count}) or base_title


def previous_document_link(
    document_id: Optional[str], created_at: Optional[datetime], config: AlertSyncConfig
) -> str:
    if document_id is None or created_at is None:
        return ""
    return (
        f"[Previous alert]({config.base_url}/t/{document_id}) "
        f"{local_date(created_at, config)}\n\n"
    )


def first_post_body(body_template: str = "", previous_link: str = "") -> str:
    output = body_template or ""
    if previous_link:
        output += f"\n\n{previous_link}"
    return output
