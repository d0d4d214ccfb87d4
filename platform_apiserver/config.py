import enum
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

from yarl import URL


class DatastoreType(str, enum.Enum):
    KUBEAPI = "kubeapi"
    MONGODB = "mongodb"
    POSTGRES = "postgres"


@dataclass(frozen=True)
class DatastoreConfig:
    # raw selector, unknown values are reported by validate_config
    type: str = DatastoreType.KUBEAPI.value
    database: str = "kubevela"
    url: str = field(default="", repr=False)

    @property
    def kind(self) -> DatastoreType:
        return DatastoreType(self.type)


@dataclass(frozen=True)
class LeaderConfig:
    id: str
    lock_name: str = "apiserver-lock"
    duration: timedelta = timedelta(seconds=5)


@dataclass(frozen=True)
class PluginConfig:
    core_plugin_path: str = "core-plugins"
    custom_plugin_path: tuple[str, ...] = ("plugins",)

    def search_paths(self) -> tuple[str, ...]:
        """Plugin directories ordered by increasing precedence.

        A plugin found in a later directory overrides one with the same name
        found in an earlier directory.
        """
        return (self.core_plugin_path, *self.custom_plugin_path)


@dataclass(frozen=True)
class ServerConfig:
    leader: LeaderConfig
    bind_addr: str = "0.0.0.0:8000"
    metric_path: str = "/metrics"
    datastore: DatastoreConfig = DatastoreConfig()
    addon_cache_time: timedelta = timedelta(minutes=10)
    disable_statistic_cron_job: bool = False
    # recommended to be kube_qps * 3
    kube_burst: int = 300
    kube_qps: float = 100.0
    workflow_version: str = ""
    plugins: PluginConfig = PluginConfig()
    dex_server_url: URL = URL("http://dex.vela-system:5556")
    exit_on_lost_leader: bool = True

    @property
    def host(self) -> str:
        host, _, _ = self.bind_addr.rpartition(":")
        return host

    @property
    def port(self) -> int:
        _, _, port = self.bind_addr.rpartition(":")
        return int(port)


def generate_leader_id() -> str:
    return str(uuid.uuid4())


def create_default_config(
    id_factory: Callable[[], str] = generate_leader_id,
) -> ServerConfig:
    return ServerConfig(leader=LeaderConfig(id=id_factory()))
