import argparse
import dataclasses
import enum
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from yarl import URL

from .config import ServerConfig, create_default_config
from .utils import format_duration, parse_bool, parse_duration

logger = structlog.get_logger(__name__)


class FlagKind(enum.Enum):
    STRING = "string"
    STRING_ARRAY = "stringArray"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DURATION = "duration"
    URL = "url"


@dataclass(frozen=True)
class Flag:
    name: str
    # dotted attribute path into ServerConfig
    field: str
    kind: FlagKind
    help: str


FLAGS: tuple[Flag, ...] = (
    Flag(
        "bind-addr",
        "bind_addr",
        FlagKind.STRING,
        "The bind address used to serve the http APIs.",
    ),
    Flag(
        "metrics-path",
        "metric_path",
        FlagKind.STRING,
        "The path to expose the metrics.",
    ),
    Flag(
        "datastore-type",
        "datastore.type",
        FlagKind.STRING,
        "Metadata storage driver type, support kubeapi, mongodb and postgres.",
    ),
    Flag(
        "datastore-database",
        "datastore.database",
        FlagKind.STRING,
        "Metadata storage database name, "
        "takes effect when the storage driver is mongodb or postgres.",
    ),
    Flag(
        "datastore-url",
        "datastore.url",
        FlagKind.STRING,
        "Metadata storage database url, "
        "takes effect when the storage driver is mongodb or postgres.",
    ),
    Flag("id", "leader.id", FlagKind.STRING, "The holder identity name."),
    Flag(
        "lock-name",
        "leader.lock_name",
        FlagKind.STRING,
        "The lease lock resource name.",
    ),
    Flag(
        "duration",
        "leader.duration",
        FlagKind.DURATION,
        "The lease lock duration.",
    ),
    Flag(
        "addon-cache-duration",
        "addon_cache_time",
        FlagKind.DURATION,
        "How long between two addon cache operations.",
    ),
    Flag(
        "disable-statistic-cronJob",
        "disable_statistic_cron_job",
        FlagKind.BOOL,
        "Close the system statistic info calculating cronJob.",
    ),
    Flag(
        "kube-api-qps",
        "kube_qps",
        FlagKind.FLOAT,
        "The qps for kube clients. Low qps may lead to low throughput. "
        "High qps may give stress to api-server.",
    ),
    Flag(
        "kube-api-burst",
        "kube_burst",
        FlagKind.INT,
        "The burst for kube clients. Recommend setting it qps*3.",
    ),
    Flag(
        "workflow-version",
        "workflow_version",
        FlagKind.STRING,
        "The version of workflow to meet controller requirement.",
    ),
    Flag(
        "dex-server",
        "dex_server_url",
        FlagKind.URL,
        "The URL of the dex server.",
    ),
    Flag(
        "core-plugin-path",
        "plugins.core_plugin_path",
        FlagKind.STRING,
        "The path of the core plugin directory.",
    ),
    Flag(
        "plugin-path",
        "plugins.custom_plugin_path",
        FlagKind.STRING_ARRAY,
        "The path of the plugin directory, can be repeated. "
        "Plugins in later directories override earlier ones.",
    ),
    Flag(
        "exit-on-lost-leader",
        "exit_on_lost_leader",
        FlagKind.BOOL,
        "Exit the process if this server lost the leader election.",
    ),
)


def get_field(config: Any, path: str) -> Any:
    for name in path.split("."):
        config = getattr(config, name)
    return config


def replace_field(config: Any, path: str, value: Any) -> Any:
    name, _, rest = path.partition(".")
    if rest:
        value = replace_field(getattr(config, name), rest, value)
    return dataclasses.replace(config, **{name: value})


def _format_default(kind: FlagKind, value: Any) -> str:
    if kind == FlagKind.DURATION:
        return format_duration(value)
    if kind == FlagKind.STRING_ARRAY:
        return "[" + ",".join(value) + "]"
    if kind == FlagKind.BOOL:
        return str(value).lower()
    if kind == FlagKind.STRING:
        return repr(value)
    return str(value)


_FLAG_TYPES: Mapping[FlagKind, Callable[[str], Any]] = {
    FlagKind.STRING: str,
    FlagKind.STRING_ARRAY: str,
    FlagKind.BOOL: parse_bool,
    FlagKind.INT: int,
    FlagKind.FLOAT: float,
    FlagKind.DURATION: parse_duration,
    FlagKind.URL: URL,
}


def register_flags(
    parser: argparse.ArgumentParser,
    defaults: ServerConfig,
    flags: Sequence[Flag] = FLAGS,
) -> None:
    """Add one command-line option per config field to ``parser``.

    Values taken from ``defaults`` are only displayed in the help text.
    Options that are not given on the command line leave nothing in the
    parsed namespace, so that only real overrides are applied.
    """
    for flag in flags:
        default = get_field(defaults, flag.field)
        help_text = f"{flag.help} (default {_format_default(flag.kind, default)})"
        # argparse expands %-formatting in help strings
        help_text = help_text.replace("%", "%%")
        kwargs: dict[str, Any] = {
            "dest": flag.field,
            "default": argparse.SUPPRESS,
            "type": _FLAG_TYPES[flag.kind],
            "help": help_text,
        }
        if flag.kind == FlagKind.BOOL:
            kwargs.update(nargs="?", const=True, metavar="true|false")
        elif flag.kind == FlagKind.STRING_ARRAY:
            kwargs.update(action="append", metavar="PATH")
        else:
            kwargs.update(metavar=flag.kind.value)
        parser.add_argument(f"--{flag.name}", **kwargs)


def create_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="platform-apiserver",
        description="The platform API server.",
        allow_abbrev=False,
    )
    register_flags(parser, defaults)
    return parser


class FlagsConfigFactory:
    def __init__(
        self,
        argv: Sequence[str] | None = None,
        defaults: ServerConfig | None = None,
    ) -> None:
        self._argv = argv
        self._defaults = defaults or create_default_config()

    def create(self) -> ServerConfig:
        parser = create_parser(self._defaults)
        namespace = parser.parse_args(self._argv)
        return self.apply_overrides(vars(namespace))

    def apply_overrides(self, overrides: Mapping[str, Any]) -> ServerConfig:
        config = self._defaults
        for path, value in overrides.items():
            if isinstance(value, list):
                value = tuple(value)
            logger.debug("Overriding config field", field=path)
            config = replace_field(config, path, value)
        return config
