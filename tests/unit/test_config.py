"""Settings: validation and use as a hashable configuration identity."""

import pytest
from pydantic import ValidationError

from tests.conftest import make_settings


def test_equal_settings_hash_equal() -> None:
    a = make_settings(deployment_id="x", redis_password="secret")
    b = make_settings(deployment_id="x", redis_password="secret")
    assert a == b
    assert hash(a) == hash(b)
    assert {a: 1}[b] == 1


def test_deployment_id_distinguishes_identity() -> None:
    assert make_settings(deployment_id="x") != make_settings(deployment_id="y")


def test_settings_are_frozen() -> None:
    settings = make_settings()
    with pytest.raises(ValidationError):
        settings.deployment_id = "other"


@pytest.mark.parametrize(
    "overrides",
    [
        {"store_backend": "s3"},
        {"broadcast_backend": "kafka"},
        {"acl_namespace": "table_acl"},
        {"acl_namespace": "/"},
    ],
)
def test_invalid_values_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        make_settings(**overrides)
