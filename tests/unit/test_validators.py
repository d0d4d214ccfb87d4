import dataclasses
from datetime import timedelta

import pytest

from platform_apiserver.config import (
    DatastoreConfig,
    DatastoreType,
    LeaderConfig,
    ServerConfig,
    create_default_config,
)
from platform_apiserver.validators import (
    DATASTORE_REQUIRED_FIELDS,
    InvalidConfigValue,
    validate_config,
)


@pytest.fixture
def config() -> ServerConfig:
    return create_default_config(lambda: "test-apiserver")


def test_validate_config__default(config: ServerConfig) -> None:
    assert validate_config(config) == []


def test_validate_config__does_not_mutate(config: ServerConfig) -> None:
    config = dataclasses.replace(config, bind_addr="", kube_qps=0)
    copy = dataclasses.replace(config)
    validate_config(config)
    assert config == copy


@pytest.mark.parametrize("datastore_type", ["kubeapi", "mongodb", "postgres"])
def test_validate_config__datastore_type(
    config: ServerConfig, datastore_type: str
) -> None:
    config = dataclasses.replace(
        config,
        datastore=DatastoreConfig(
            type=datastore_type, database="kubevela", url="db://localhost"
        ),
    )
    assert validate_config(config) == []


@pytest.mark.parametrize("datastore_type", ["sqlite", "", "KubeAPI", "mysql"])
def test_validate_config__unsupported_datastore_type(
    config: ServerConfig, datastore_type: str
) -> None:
    config = dataclasses.replace(
        config, datastore=DatastoreConfig(type=datastore_type)
    )
    errors = validate_config(config)
    assert len(errors) == 1
    error = errors[0]
    assert isinstance(error, InvalidConfigValue)
    assert error.field == "datastore.type"
    assert error.value == datastore_type
    assert str(error) == f"not support datastore type {datastore_type}"


def test_validate_config__sqlite_mentions_value(config: ServerConfig) -> None:
    config = dataclasses.replace(config, datastore=DatastoreConfig(type="sqlite"))
    [error] = validate_config(config)
    assert "sqlite" in str(error)


@pytest.mark.parametrize("datastore_type", ["mongodb", "postgres"])
def test_validate_config__datastore_requires_url_and_database(
    config: ServerConfig, datastore_type: str
) -> None:
    config = dataclasses.replace(
        config, datastore=DatastoreConfig(type=datastore_type, database="", url="")
    )
    errors = validate_config(config)
    assert [error.field for error in errors] == [
        "datastore.database",
        "datastore.url",
    ]


def test_validate_config__kubeapi_ignores_url(config: ServerConfig) -> None:
    config = dataclasses.replace(
        config, datastore=DatastoreConfig(type="kubeapi", database="", url="")
    )
    assert validate_config(config) == []


def test_datastore_required_fields_cover_all_types() -> None:
    assert set(DATASTORE_REQUIRED_FIELDS) == set(DatastoreType)


def test_validate_config__qps_burst_ratio_not_enforced(
    config: ServerConfig,
) -> None:
    config = dataclasses.replace(config, kube_qps=50, kube_burst=150)
    assert validate_config(config) == []
    config = dataclasses.replace(config, kube_qps=50, kube_burst=1)
    assert validate_config(config) == []


@pytest.mark.parametrize(
    "bind_addr", ["0.0.0.0:8000", ":8000", "localhost:1", "[::]:65535"]
)
def test_validate_config__valid_bind_addr(
    config: ServerConfig, bind_addr: str
) -> None:
    config = dataclasses.replace(config, bind_addr=bind_addr)
    assert validate_config(config) == []


@pytest.mark.parametrize(
    "bind_addr", ["", "0.0.0.0", "0.0.0.0:", "0.0.0.0:0", "host:65536", "a b:80"]
)
def test_validate_config__invalid_bind_addr(
    config: ServerConfig, bind_addr: str
) -> None:
    config = dataclasses.replace(config, bind_addr=bind_addr)
    [error] = validate_config(config)
    assert error.field == "bind_addr"
    assert error.value == bind_addr


@pytest.mark.parametrize("metric_path", ["", "metrics"])
def test_validate_config__invalid_metric_path(
    config: ServerConfig, metric_path: str
) -> None:
    config = dataclasses.replace(config, metric_path=metric_path)
    [error] = validate_config(config)
    assert error.field == "metric_path"


@pytest.mark.parametrize("duration", [timedelta(), timedelta(seconds=-1)])
def test_validate_config__non_positive_durations(
    config: ServerConfig, duration: timedelta
) -> None:
    config = dataclasses.replace(
        config,
        leader=dataclasses.replace(config.leader, duration=duration),
        addon_cache_time=duration,
    )
    errors = validate_config(config)
    assert [error.field for error in errors] == [
        "leader.duration",
        "addon_cache_time",
    ]


def test_validate_config__accumulates_errors() -> None:
    config = ServerConfig(
        leader=LeaderConfig(id="", lock_name=""),
        bind_addr="nowhere",
        metric_path="",
        datastore=DatastoreConfig(type="sqlite"),
        kube_qps=0,
        kube_burst=-1,
    )
    errors = validate_config(config)
    assert [error.field for error in errors] == [
        "datastore.type",
        "bind_addr",
        "metric_path",
        "leader.id",
        "leader.lock_name",
        "kube_qps",
        "kube_burst",
    ]


@pytest.mark.parametrize("datastore_type", [b"mongodb", None, 1])
def test_validate_config__datastore_type_wrong_type(
    config: ServerConfig, datastore_type: object
) -> None:
    config = dataclasses.replace(
        config, datastore=DatastoreConfig(type=datastore_type)  # type: ignore
    )
    [error] = validate_config(config)
    assert error.field == "datastore.type"
    assert error.value == datastore_type


def test_validate_config__datastore_type_enum_member(config: ServerConfig) -> None:
    config = dataclasses.replace(
        config,
        datastore=DatastoreConfig(
            type=DatastoreType.POSTGRES, database="vela", url="postgres://db"
        ),
    )
    assert validate_config(config) == []
