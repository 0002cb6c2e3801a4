from unittest.mock import MagicMock, patch

import pytest

from reqkit.services.account_store import AccountStore, get_client


def _client_returning(data):
    client = MagicMock()
    query = client.table.return_value.select.return_value
    query.eq.return_value = query
    query.limit.return_value.execute.return_value = MagicMock(data=data)
    return client, query


class TestAccountStore:
    def test_get_objects_filters_on_primary_keys(self, config):
        client, query = _client_returning([{"__typename": "User"}])
        store = AccountStore(config, client=client)

        result = store.get_objects({"partition": "alice", "sort": "account"}, "Users")

        assert result == [{"__typename": "User"}]
        client.table.assert_called_once_with("Users")
        client.table.return_value.select.assert_called_once_with("*")
        assert [c.args for c in query.eq.call_args_list] == [("partition", "alice"), ("sort", "account")]
        query.limit.assert_called_once_with(10)

    def test_get_objects_empty(self, config):
        client, _ = _client_returning(None)
        store = AccountStore(config, client=client)
        assert store.get_objects({"partition": "nobody"}, "Users") == []

    def test_get_objects_reraises(self, config):
        client = MagicMock()
        client.table.side_effect = RuntimeError("boom")
        store = AccountStore(config, client=client)
        with pytest.raises(RuntimeError, match="boom"):
            store.get_objects({"partition": "alice"}, "Users")

    @pytest.mark.asyncio
    async def test_get_objects_async(self, config):
        client, query = _client_returning([{"id": 1}])
        store = AccountStore(config, client=client)
        assert await store.get_objects_async({"partition": "alice"}, "Users", limit=1) == [{"id": 1}]
        query.limit.assert_called_once_with(1)

    @patch("reqkit.services.account_store.create_client")
    def test_client_created_lazily(self, mock_create_client, config):
        store = AccountStore(config)
        mock_create_client.assert_not_called()
        assert store.client is mock_create_client.return_value
        assert store.client is mock_create_client.return_value
        mock_create_client.assert_called_once_with(config.supabase_url, config.supabase_service_key)


@patch("reqkit.services.account_store.create_client")
def test_get_client(mock_create_client, config):
    get_client(config)
    mock_create_client.assert_called_once_with("", "")
