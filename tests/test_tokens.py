"""Test access token hand-out and refresh"""

from unittest.mock import Mock

import pytest

from music_vault.auth.tokens import TokenManager
from music_vault.core.exceptions import NotAuthenticated, RemoteFetchFailed
from music_vault.core.token_store import TokenPair


@pytest.fixture
def refreshed():
    return TokenPair("access-2", "refresh-2", 3600, "Bearer", "")


class TestTokenManager:
    """Test TokenManager"""

    def test_access_token(self, logged_in_store, mock_client):
        assert TokenManager(logged_in_store, mock_client).access_token() == "access-1"

    def test_not_logged_in(self, token_store, mock_client):
        with pytest.raises(NotAuthenticated):
            TokenManager(token_store, mock_client).access_token()

    def test_refresh_commits_new_pair(self, logged_in_store, mock_client, refreshed):
        mock_client.refresh_token.return_value = refreshed

        assert TokenManager(logged_in_store, mock_client).refresh() == refreshed
        assert logged_in_store.get() == refreshed

    def test_rejected_refresh_keeps_store(self, logged_in_store, mock_client, token_pair):
        mock_client.refresh_token.return_value = None

        with pytest.raises(NotAuthenticated):
            TokenManager(logged_in_store, mock_client).refresh()
        assert logged_in_store.get() == token_pair

    def test_call_passes_token(self, logged_in_store, mock_client):
        operation = Mock(return_value="result")

        assert TokenManager(logged_in_store, mock_client).call(operation) == "result"
        operation.assert_called_once_with("access-1")
        mock_client.refresh_token.assert_not_called()

    def test_call_retries_once_after_401(self, logged_in_store, mock_client, refreshed):
        mock_client.refresh_token.return_value = refreshed
        operation = Mock(side_effect=[RemoteFetchFailed("expired", status_code=401), "result"])

        assert TokenManager(logged_in_store, mock_client).call(operation) == "result"
        assert [c.args for c in operation.call_args_list] == [("access-1",), ("access-2",)]

    def test_second_401_propagates(self, logged_in_store, mock_client, refreshed):
        mock_client.refresh_token.return_value = refreshed
        operation = Mock(side_effect=RemoteFetchFailed("expired", status_code=401))

        with pytest.raises(RemoteFetchFailed):
            TokenManager(logged_in_store, mock_client).call(operation)
        assert operation.call_count == 2
        mock_client.refresh_token.assert_called_once()

    def test_other_errors_not_retried(self, logged_in_store, mock_client):
        operation = Mock(side_effect=RemoteFetchFailed("gone", status_code=404))

        with pytest.raises(RemoteFetchFailed):
            TokenManager(logged_in_store, mock_client).call(operation)
        operation.assert_called_once()
        mock_client.refresh_token.assert_not_called()
