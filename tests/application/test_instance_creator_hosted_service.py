"""Tests for InstanceCreatorHostedService."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from application.events.integration.create_instance_event_handler import CreateInstanceEventHandler
from application.services.instance_creator_hosted_service import InstanceCreatorHostedService
from application.settings import Settings
from domain.enums import FieldNamingContract
from integration.services.message_channel import MessageChannel


@pytest.fixture
def mock_channel():
    return AsyncMock(spec=MessageChannel)


@pytest.fixture
def mock_handler():
    return AsyncMock(spec=CreateInstanceEventHandler)


@pytest.fixture
def service(mock_channel, mock_handler):
    return InstanceCreatorHostedService(mock_channel, mock_handler, "instance.create.aws")


def subscribed_callback(mock_channel):
    return mock_channel.subscribe_async.await_args.args[1]


@pytest.mark.asyncio
class TestInstanceCreatorHostedService:
    async def test_start_subscribes_to_create_topic(self, service, mock_channel):
        await service.start_async()

        mock_channel.connect_async.assert_awaited_once()
        assert mock_channel.subscribe_async.await_args.args[0] == "instance.create.aws"

    async def test_start_twice_subscribes_once(self, service, mock_channel):
        await service.start_async()
        await service.start_async()

        mock_channel.subscribe_async.assert_awaited_once()

    async def test_messages_are_handled_concurrently(self, service, mock_channel, mock_handler):
        release = asyncio.Event()
        started = []

        async def slow_handle(data):
            started.append(data)
            await release.wait()

        mock_handler.handle_async.side_effect = slow_handle
        await service.start_async()
        callback = subscribed_callback(mock_channel)

        await callback(b"first")
        await callback(b"second")
        await asyncio.sleep(0)

        assert started == [b"first", b"second"]
        assert service.in_flight_count == 2

        release.set()
        await service.stop_async()

        assert service.in_flight_count == 0

    async def test_handler_failure_does_not_stop_service(self, service, mock_channel, mock_handler):
        mock_handler.handle_async.side_effect = [RuntimeError("boom"), None]
        await service.start_async()
        callback = subscribed_callback(mock_channel)

        await callback(b"first")
        await callback(b"second")
        await service.stop_async()

        assert mock_handler.handle_async.await_count == 2

    async def test_stop_waits_for_in_flight_requests(self, service, mock_channel, mock_handler):
        finished = []

        async def handle(data):
            await asyncio.sleep(0.01)
            finished.append(data)

        mock_handler.handle_async.side_effect = handle
        await service.start_async()
        await subscribed_callback(mock_channel)(b"request")

        await service.stop_async()

        assert finished == [b"request"]
        mock_channel.close_async.assert_awaited_once()

    async def test_stop_without_start(self, service, mock_channel):
        await service.stop_async()

        mock_channel.close_async.assert_not_awaited()


def test_create_wires_topics_from_settings(mock_channel):
    settings = Settings(create_topic="custom.create", field_naming_contract=FieldNamingContract.GENERIC)

    service = InstanceCreatorHostedService.create(settings, mock_channel)

    reporter = service._handler.reporter
    assert service._create_topic == "custom.create"
    assert reporter.done_topic == "custom.create.done"
    assert reporter.error_topic == "custom.create.error"
    assert reporter.field_naming_contract == FieldNamingContract.GENERIC
    assert service._handler.field_naming_contract == FieldNamingContract.GENERIC
    assert service._handler.provisioning_service.terminate_on_failure is False
