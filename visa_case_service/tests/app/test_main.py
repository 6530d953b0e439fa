import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from visa_case_service.app.main import startup_event, shutdown_event


@pytest.mark.asyncio
@patch('visa_case_service.app.main.ensure_indexes', new_callable=AsyncMock)
@patch('visa_case_service.app.main.connect_to_mongo', new_callable=AsyncMock)
@patch('visa_case_service.app.main.PymongoInstrumentor')
@patch('visa_case_service.app.main.logger')
async def test_startup_event_success(mock_logger, mock_pymongo_instrumentor, mock_connect_to_mongo, mock_ensure_indexes):
    call_order = []
    db = MagicMock()
    mock_pymongo_instrumentor.return_value.instrument.side_effect = lambda: call_order.append("instrument")
    mock_connect_to_mongo.side_effect = lambda state: call_order.append("connect") or db

    await startup_event()

    mock_pymongo_instrumentor.return_value.instrument.assert_called_once()
    # The client must be created after instrumentation to carry the command listeners.
    assert call_order == ["instrument", "connect"]
    mock_ensure_indexes.assert_awaited_once_with(db)
    mock_logger.info.assert_any_call("PyMongo instrumentation complete.")
    mock_logger.info.assert_any_call("MongoDB connection established and indexes ensured.")


@pytest.mark.asyncio
@patch('visa_case_service.app.main.ensure_indexes', new_callable=AsyncMock)
@patch('visa_case_service.app.main.connect_to_mongo', new_callable=AsyncMock)
@patch('visa_case_service.app.main.PymongoInstrumentor')
@patch('visa_case_service.app.main.logger')
async def test_startup_event_connection_failure(mock_logger, mock_pymongo_instrumentor, mock_connect_to_mongo, mock_ensure_indexes):
    mock_connect_to_mongo.side_effect = ConnectionError("Failed to connect to MongoDB")

    await startup_event()

    mock_pymongo_instrumentor.return_value.instrument.assert_called_once()
    mock_ensure_indexes.assert_not_awaited()
    mock_logger.error.assert_called_once()


@pytest.mark.asyncio
@patch('visa_case_service.app.main.close_mongo_connection')
async def test_shutdown_event_closes_connection(mock_close):
    await shutdown_event()

    mock_close.assert_called_once()
