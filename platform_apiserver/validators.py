from datetime import timedelta
from typing import Annotated, Any

import structlog
from pydantic import (
    AfterValidator,
    Field,
    PlainValidator,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

from .config import DatastoreType, ServerConfig

logger = structlog.get_logger(__name__)


BIND_ADDR_PATTERN = r"^\S*:\d{1,5}$"


class InvalidConfigValue(ValueError):
    def __init__(self, field: str, value: Any, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


def check_port(value: str) -> str:
    _, _, port = value.rpartition(":")
    if not 0 < int(port) <= 65535:
        raise ValueError(f"port {port} is out of range")
    return value


def check_datastore_type(value: Any) -> DatastoreType:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {type(value).__name__}")
    return DatastoreType(value)


def check_positive_duration(value: timedelta) -> timedelta:
    if value <= timedelta():
        raise ValueError("duration must be positive")
    return value


NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]

datastore_type_validator = TypeAdapter(
    Annotated[DatastoreType, PlainValidator(check_datastore_type)]
)
bind_addr_validator = TypeAdapter(
    Annotated[
        str, StringConstraints(pattern=BIND_ADDR_PATTERN), AfterValidator(check_port)
    ]
)
metric_path_validator = TypeAdapter(
    Annotated[str, StringConstraints(min_length=1, pattern=r"^/")]
)
positive_duration_validator = TypeAdapter(
    Annotated[timedelta, AfterValidator(check_positive_duration)]
)
kube_qps_validator = TypeAdapter(Annotated[float, Field(gt=0)])
kube_burst_validator = TypeAdapter(Annotated[int, Field(gt=0)])
non_empty_string_validator = TypeAdapter(NonEmptyStr)

# fields of DatastoreConfig every driver needs to connect
DATASTORE_REQUIRED_FIELDS: dict[DatastoreType, tuple[str, ...]] = {
    DatastoreType.KUBEAPI: (),
    DatastoreType.MONGODB: ("database", "url"),
    DatastoreType.POSTGRES: ("database", "url"),
}


class _ErrorCollector:
    def __init__(self) -> None:
        self.errors: list[InvalidConfigValue] = []

    def check(
        self,
        field: str,
        value: Any,
        validator: TypeAdapter[Any],
        message: str = "",
    ) -> Any:
        try:
            return validator.validate_python(value)
        except ValidationError as exc:
            if not message:
                reason = "; ".join(error["msg"] for error in exc.errors())
                message = f"invalid {field} {value!r}: {reason}"
            self.errors.append(InvalidConfigValue(field, value, message))
            return None


def validate_config(config: ServerConfig) -> list[InvalidConfigValue]:
    """Check every constraint on ``config`` and return all violations.

    An empty list means the config is valid. Nothing is raised and the
    config is left untouched; deciding whether to abort is up to the caller.
    """
    collector = _ErrorCollector()

    datastore = config.datastore
    kind = collector.check(
        "datastore.type",
        datastore.type,
        datastore_type_validator,
        f"not support datastore type {datastore.type}",
    )
    if kind is not None:
        for name in DATASTORE_REQUIRED_FIELDS[kind]:
            collector.check(
                f"datastore.{name}",
                getattr(datastore, name),
                non_empty_string_validator,
                f"datastore {name} is required by datastore type {datastore.type}",
            )

    collector.check("bind_addr", config.bind_addr, bind_addr_validator)
    collector.check("metric_path", config.metric_path, metric_path_validator)
    collector.check("leader.id", config.leader.id, non_empty_string_validator)
    collector.check(
        "leader.lock_name", config.leader.lock_name, non_empty_string_validator
    )
    collector.check(
        "leader.duration", config.leader.duration, positive_duration_validator
    )
    collector.check(
        "addon_cache_time", config.addon_cache_time, positive_duration_validator
    )
    collector.check("kube_qps", config.kube_qps, kube_qps_validator)
    collector.check("kube_burst", config.kube_burst, kube_burst_validator)

    for error in collector.errors:
        logger.debug("Invalid config value", field=error.field, error=str(error))
    return collector.errors
