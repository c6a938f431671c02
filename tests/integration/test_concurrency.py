"""Integration tests for concurrent clicks and registrations.

Each worker thread gets its own repository container (its own SQLAlchemy
session, or the shared in-memory store) and its own event loop, and all
workers are released together by a barrier.
"""

import asyncio

import pytest

from linkpage.domain.errors import DuplicateEmail, DuplicateUsername
from linkpage.domain.service import LinkPageService
from linkpage.repositories.memory_impl import MemoryStore, create_memory_container
from linkpage.repositories.sqlalchemy_impl import create_sqlalchemy_container
from tests.helpers.concurrency import async_worker, barrier_sync, run_in_threads, session_worker

WORKERS = 8
CLICKS_PER_WORKER = 5


async def _setup_owner_with_link(service: LinkPageService):
    owner = await service.register(
        email="owner@example.com",
        password="secret123",
        display_name="Owner",
        username="owner",
    )
    link = await service.create_link(owner.user.id, "Target", "https://target.example.com")
    return owner.user.id, link.id


@pytest.mark.integration
class TestConcurrentClicksSQLAlchemy:
    """Click counters under contention on SQLite."""

    def test_no_lost_clicks(self, test_db, token_manager):
        setup_session = test_db()
        try:
            service = LinkPageService(create_sqlalchemy_container(setup_session), token_manager)
            owner_id, link_id = asyncio.run(_setup_owner_with_link(service))
        finally:
            setup_session.close()

        barrier = barrier_sync(WORKERS)

        async def click_many(session):
            worker_service = LinkPageService(create_sqlalchemy_container(session), token_manager)
            for _ in range(CLICKS_PER_WORKER):
                await worker_service.record_click(link_id)

        errors = run_in_threads(
            [session_worker(test_db, click_many, barrier) for _ in range(WORKERS)]
        )
        assert errors == [None] * WORKERS

        check_session = test_db()
        try:
            service = LinkPageService(create_sqlalchemy_container(check_session), token_manager)
            link = asyncio.run(service.get_link(owner_id, link_id))
            summary = asyncio.run(service.get_analytics(owner_id))
        finally:
            check_session.close()

        expected = WORKERS * CLICKS_PER_WORKER
        assert link.clicks == expected
        assert summary.total_clicks == expected

    def test_one_registration_wins_username_race(self, test_db, token_manager):
        barrier = barrier_sync(WORKERS)
        outcomes = []

        def register_as(index):
            async def register(session):
                service = LinkPageService(create_sqlalchemy_container(session), token_manager)
                try:
                    await service.register(
                        email=f"racer{index}@example.com",
                        password="secret123",
                        display_name=f"Racer {index}",
                        username="contested",
                    )
                    outcomes.append("ok")
                except DuplicateUsername:
                    outcomes.append("duplicate")
            return register

        errors = run_in_threads(
            [session_worker(test_db, register_as(i), barrier) for i in range(WORKERS)]
        )

        assert errors == [None] * WORKERS
        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == WORKERS - 1

    def test_one_registration_wins_email_race(self, test_db, token_manager):
        barrier = barrier_sync(WORKERS)
        outcomes = []

        def register_as(index):
            async def register(session):
                service = LinkPageService(create_sqlalchemy_container(session), token_manager)
                try:
                    await service.register(
                        email="contested@example.com",
                        password="secret123",
                        display_name=f"Racer {index}",
                        username=f"racer_{index}",
                    )
                    outcomes.append("ok")
                except DuplicateEmail:
                    outcomes.append("duplicate")
            return register

        errors = run_in_threads(
            [session_worker(test_db, register_as(i), barrier) for i in range(WORKERS)]
        )

        assert errors == [None] * WORKERS
        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == WORKERS - 1


@pytest.mark.integration
class TestConcurrentClicksMemory:
    """The in-memory store gives the same guarantees."""

    def test_no_lost_clicks(self, token_manager):
        store = MemoryStore()
        service = LinkPageService(create_memory_container(store), token_manager)
        owner_id, link_id = asyncio.run(_setup_owner_with_link(service))
        barrier = barrier_sync(WORKERS)

        async def click_many():
            worker_service = LinkPageService(create_memory_container(store), token_manager)
            for _ in range(CLICKS_PER_WORKER):
                await worker_service.record_click(link_id)

        errors = run_in_threads([async_worker(click_many, barrier) for _ in range(WORKERS)])

        assert errors == [None] * WORKERS
        expected = WORKERS * CLICKS_PER_WORKER
        assert asyncio.run(service.get_link(owner_id, link_id)).clicks == expected
        assert asyncio.run(service.get_analytics(owner_id)).total_clicks == expected

    def test_one_registration_wins_username_race(self, token_manager):
        store = MemoryStore()
        barrier = barrier_sync(WORKERS)
        outcomes = []

        def register_as(index):
            async def register():
                service = LinkPageService(create_memory_container(store), token_manager)
                try:
                    await service.register(
                        email=f"racer{index}@example.com",
                        password="secret123",
                        display_name=f"Racer {index}",
                        username="contested",
                    )
                    outcomes.append("ok")
                except DuplicateUsername:
                    outcomes.append("duplicate")
            return register

        errors = run_in_threads([async_worker(register_as(i), barrier) for i in range(WORKERS)])

        assert errors == [None] * WORKERS
        assert outcomes.count("ok") == 1
        assert len(store.users) == 1
