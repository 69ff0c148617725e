"""Tests for the tag set computer."""

from app.config import AlertSyncConfig
from app.services.tags import compute_tags


class TestComputeTags:
    def test_adds_datacenters_and_firing(self, config: AlertSyncConfig):
        tags = compute_tags(
            ["alerts"], ["dc1", "dc2"], is_high_priority=False, is_firing=True, config=config
        )
        assert tags == ["alerts", "dc1", "dc2", "firing"]

    def test_removes_firing_when_not_firing(self, config: AlertSyncConfig):
        tags = compute_tags(
            ["alerts", "firing", "dc1"], ["dc1"], is_high_priority=False, is_firing=False, config=config
        )
        assert tags == ["alerts", "dc1"]

    def test_datacenter_tags_are_never_removed(self, config: AlertSyncConfig):
        tags = compute_tags(["dc-old"], ["dc1"], is_high_priority=False, is_firing=False, config=config)
        assert tags == ["dc-old", "dc1"]

    def test_high_priority(self, config: AlertSyncConfig):
        tags = compute_tags([], [], is_high_priority=True, is_firing=True, config=config)
        assert tags == ["high-priority", "firing"]

    def test_deduplicates(self, config: AlertSyncConfig):
        tags = compute_tags(
            ["dc1", "firing", "dc1"], ["dc1", "dc1"], is_high_priority=False, is_firing=True, config=config
        )
        assert tags == ["dc1", "firing"]

    def test_idempotent(self, config: AlertSyncConfig):
        kwargs = dict(is_high_priority=True, is_firing=True, config=config)
        once = compute_tags(["alerts"], ["dc2", "dc1"], **kwargs)
        twice = compute_tags(once, ["dc2", "dc1"], **kwargs)
        assert twice == once

        kwargs["is_firing"] = False
        once = compute_tags(twice, ["dc1"], **kwargs)
        assert compute_tags(once, ["dc1"], **kwargs) == once

    def test_custom_tag_names(self):
        config = AlertSyncConfig(firing_tag="on-fire", high_priority_tag="p1")
        tags = compute_tags(["on-fire"], [], is_high_priority=True, is_firing=False, config=config)
        assert tags == ["p1"]
