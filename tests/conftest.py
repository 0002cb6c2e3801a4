import time
from unittest.mock import MagicMock

import jwt
import pytest

from reqkit.core.config import Config
from reqkit.services.account_store import AccountStore

TEST_AUDIENCE = "test-client-id"
TEST_SIGNING_KEY = "test-signing-key-not-verified-0123456789abcdef"

CONFIG_DATA = {
    "params": {
        "id": {"requiresEval": False},
        "limit": {"requiresEval": True, "type": "number"},
        "offset": {"requiresEval": True, "type": "number"},
        "status": {
            "requiresEval": True,
            "type": "string",
            "allowedValues": ["a", "b"],
            "allowMultipleValues": True,
        },
        "sort": {
            "requiresEval": True,
            "type": "string",
            "allowedValues": ["a", "b"],
            "allowMultipleValues": False,
        },
    },
    "authorization": {"allowedCognitoAudiences": [TEST_AUDIENCE]},
    "httpStatus": {
        "200_OK": {"code": 200, "message": "OK"},
        "201_CREATED": {"code": 201, "message": "Created"},
        "400_BAD_REQUEST": {"code": 400, "message": "Bad Request"},
        "401_UNAUTHORIZED": {"code": 401, "message": "Unauthorized"},
        "404_NOT_FOUND": {"code": 404, "message": "Not Found"},
        "500_INTERNAL_SERVER_ERROR": {"code": 500, "message": "Internal Server Error"},
    },
}


@pytest.fixture
def config():
    return Config.from_dict(CONFIG_DATA, environment="production", users_table="Users")


@pytest.fixture
def dev_config():
    return Config.from_dict(CONFIG_DATA, environment="dev", users_table="Users")


def make_token(username="alice", client_id=TEST_AUDIENCE, exp_offset=3600, **extra):
    claims = {"username": username, "client_id": client_id, **extra}
    if exp_offset is not None:
        claims["exp"] = int(time.time()) + exp_offset
    return jwt.encode(claims, TEST_SIGNING_KEY, algorithm="HS256")


def make_event(path_params=None, query_params=None, headers=None, body=None, method="GET", path="/items"):
    return {
        "httpMethod": method,
        "path": path,
        "headers": headers or {},
        "pathParameters": path_params,
        "queryStringParameters": query_params,
        "body": body,
        "isBase64Encoded": False,
    }


def make_store(records=None, error=None):
    """AccountStore double whose async lookup returns `records` or raises `error`."""
    store = MagicMock(spec=AccountStore)
    if error is not None:
        store.get_objects_async.side_effect = error
    else:
        store.get_objects_async.return_value = records or []
    return store
