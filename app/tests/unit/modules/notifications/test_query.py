"""Unit tests for NotificationQueryService."""

from datetime import timedelta

import pytest

from infrastructure.configuration import NotificationFeatureSettings
from modules.notifications.domain import ChannelType, NotificationNotFoundError, NotificationStatus
from modules.notifications.query import NotificationQueryService, QueryConfig
from modules.notifications.repository import NotificationFilter
from tests.factories.notifications import make_notification


@pytest.fixture
def query(repository, stats_cache, clock):
    return NotificationQueryService(repository, stats_cache, QueryConfig(max_page_size=3), clock)


def _store(repository, *notifications):
    with repository.transaction() as uow:
        for notification in notifications:
            uow.add(notification)


@pytest.mark.unit
class TestLookups:
    def test_get(self, query, repository):
        notification = make_notification()
        _store(repository, notification)

        assert query.get(notification.id).id == notification.id
        assert query.exists(notification.id)

    def test_get_missing(self, query):
        with pytest.raises(NotificationNotFoundError):
            query.get("00000000-0000-0000-0000-000000000000")

        assert not query.exists("00000000-0000-0000-0000-000000000000")


@pytest.mark.unit
class TestList:
    @pytest.fixture
    def five(self, repository, clock):
        records = [make_notification(created_at=clock.now + timedelta(minutes=i)) for i in range(5)]
        _store(repository, *records)
        return records

    def test_limit_is_clamped(self, query, five):
        page = query.list(limit=50)

        assert page.limit == 3
        assert len(page.items) == 3
        assert page.total == 5
        assert page.total_pages == 2
        assert page.has_next

    def test_second_page(self, query, five):
        page = query.list(page=2, limit=3)

        assert [n.id for n in page.items] == [five[1].id, five[0].id]
        assert not page.has_next

    def test_page_below_one_is_first_page(self, query, five):
        assert query.list(page=0).page == 1

    def test_filters(self, query, repository, five):
        sms = make_notification(channel=ChannelType.SMS)
        _store(repository, sms)

        page = query.list(NotificationFilter(channel="sms"))

        assert [n.id for n in page.items] == [sms.id]

    def test_invalid_sort(self, query):
        with pytest.raises(ValueError):
            query.list(sort_order="sideways")


@pytest.mark.unit
class TestStats:
    def test_stats(self, query, repository, clock):
        _store(
            repository,
            make_notification(status=NotificationStatus.SENT),
            make_notification(status=NotificationStatus.DELIVERED, channel=ChannelType.SMS),
            make_notification(status=NotificationStatus.QUEUED),
            make_notification(
                status=NotificationStatus.FAILED,
                last_error="timeout",
                updated_at=clock.now - timedelta(minutes=5),
            ),
            make_notification(
                status=NotificationStatus.FAILED,
                updated_at=clock.now - timedelta(hours=3),
            ),
        )

        stats = query.get_stats()

        assert stats["total_notifications"] == 5
        assert stats["status_counts"] == {"sent": 1, "delivered": 1, "queued": 1, "failed": 2}
        assert stats["channel_counts"] == {"email": 4, "sms": 1}
        assert stats["success_rate"] == 40.0
        assert stats["recent_failure_count"] == 1
        assert stats["recent_failures"][0]["error"] == "timeout"
        assert stats["pending_notifications"] == 1

    def test_empty_store(self, query):
        stats = query.get_stats()

        assert stats["total_notifications"] == 0
        assert stats["success_rate"] == 0.0

    def test_stats_are_cached_until_invalidated(self, query, repository, stats_cache):
        first = query.get_stats()
        _store(repository, make_notification())

        assert query.get_stats() == first

        stats_cache.invalidate_prefix("notification_stats")
        assert query.get_stats()["total_notifications"] == 1


@pytest.mark.unit
def test_query_config_from_settings():
    config = QueryConfig.from_settings(
        NotificationFeatureSettings(NOTIFICATIONS_MAX_PAGE_SIZE=50, NOTIFICATIONS_STATS_CACHE_TTL_SECONDS=5)
    )

    assert config.max_page_size == 50
    assert config.stats_cache_ttl_seconds == 5
