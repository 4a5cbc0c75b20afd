import pytest
from unittest.mock import MagicMock, patch
from fastapi import BackgroundTasks
from prpal.events.dispatcher import EventDispatcher, bg_tasks_cv
from prpal.events.event import Event
from prpal.events.repository_events import RepositorySyncEvent, SyncAllRepositoriesEvent
from prpal.events.review_events import AutoSyncEvent, LlmReplyEvent


class TestDispatcher:
    @pytest.fixture
    def dispatcher(self):
        with patch("prpal.events.dispatcher.q", new=None):
            yield EventDispatcher()

    def test_dispatch_request_mode(self, monkeypatch, dispatcher):
        """
        Tests that the dispatcher uses the BackgroundTasks from the context variable
        when QUEUE_MODE is 'request'.
        """
        monkeypatch.setattr("prpal.events.dispatcher.QUEUE_MODE", "request")

        mock_background_tasks = BackgroundTasks()
        mock_background_tasks.add_task = MagicMock()

        bg_tasks_cv.set(mock_background_tasks)

        event = AutoSyncEvent(1)

        dispatcher.dispatch(event)

        mock_background_tasks.add_task.assert_called_once_with(
            dispatcher._process_event, event
        )

    def test_dispatch_uses_redis_when_mode_is_redis(self, monkeypatch):
        """
        Tests that the dispatcher uses the Redis queue (rq)
        when QUEUE_MODE is 'redis'.
        """
        monkeypatch.setattr("prpal.events.dispatcher.QUEUE_MODE", "redis")

        # Mock the redis queue object 'q' in the dispatcher's module
        with patch("prpal.events.dispatcher.q") as mock_q:
            dispatcher = EventDispatcher()
            event = LlmReplyEvent(1, 2)

            dispatcher.dispatch(event)

            mock_q.enqueue.assert_called_once_with(
                dispatcher._process_event,
                event,
                job_timeout=300,
                description="LlmReplyEvent: review 1, message 2",
            )

    def test_dispatch_without_background_tasks_raises(self, monkeypatch, dispatcher):
        monkeypatch.setattr("prpal.events.dispatcher.QUEUE_MODE", "request")
        bg_tasks_cv.set(None)

        with pytest.raises(RuntimeError):
            dispatcher.dispatch(AutoSyncEvent(1))

    def test_try_dispatch_reports_failure_instead_of_raising(self, monkeypatch, dispatcher):
        monkeypatch.setattr("prpal.events.dispatcher.QUEUE_MODE", "redis")

        assert dispatcher.try_dispatch(AutoSyncEvent(1)) is False

    def test_try_dispatch_reports_success(self, monkeypatch):
        monkeypatch.setattr("prpal.events.dispatcher.QUEUE_MODE", "redislite")

        with patch("prpal.events.dispatcher.q") as mock_q:
            assert EventDispatcher().try_dispatch(RepositorySyncEvent(3)) is True
            mock_q.enqueue.assert_called_once()


class TestProcessEvent:
    @pytest.fixture
    def dispatcher(self):
        return EventDispatcher()

    @patch("prpal.events.dispatcher.auto_sync_review")
    def test_auto_sync_event(self, mock_job, dispatcher):
        dispatcher._process_event(AutoSyncEvent(7))
        mock_job.assert_called_once_with(7)

    @patch("prpal.events.dispatcher.process_llm_response")
    def test_llm_reply_event(self, mock_job, dispatcher):
        dispatcher._process_event(LlmReplyEvent(7, 11))
        mock_job.assert_called_once_with(7, 11)

    @patch("prpal.events.dispatcher.sync_repository")
    def test_repository_sync_event(self, mock_job, dispatcher):
        dispatcher._process_event(RepositorySyncEvent(3))
        mock_job.assert_called_once_with(3)

    @patch("prpal.events.dispatcher.sync_all_repositories")
    def test_sync_all_event(self, mock_job, dispatcher):
        dispatcher._process_event(SyncAllRepositoriesEvent())
        mock_job.assert_called_once_with()

    @patch("prpal.events.dispatcher.logger")
    def test_unknown_event_is_logged(self, mock_logger, dispatcher):
        dispatcher._process_event(Event({"anything": True}))
        mock_logger.error.assert_called_once()


def test_job_timeouts_follow_the_amount_of_work():
    assert AutoSyncEvent(1).job_timeout == Event().job_timeout
    assert LlmReplyEvent(1, 2).job_timeout > AutoSyncEvent(1).job_timeout
    assert SyncAllRepositoriesEvent().job_timeout > RepositorySyncEvent(3).job_timeout
