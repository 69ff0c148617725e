"""Target tag set of an alert document."""

from collections.abc import Iterable

from app.config import AlertSyncConfig


def compute_tags(
    current_tags: Iterable[str],
    datacenters: Iterable[str],
    *,
    is_high_priority: bool,
    is_firing: bool,
    config: AlertSyncConfig,
) -> list[str]:
    """Derive the new tag list from the current one.

    Datacenter and high-priority tags are only ever added; the firing tag is
    the one tag that gets removed. Order of first appearance is kept.
    """
    new_tags = list(current_tags)
    new_tags.extend(dc for dc in datacenters if dc)
    if is_high_priority:
        new_tags.append(config.high_priority_tag)

    if is_firing:
        new_tags.append(config.firing_tag)
    else:
        new_tags = [tag for tag in new_tags if tag != config.firing_tag]

    return list(dict.fromkeys(new_tags))
