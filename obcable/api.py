"""Resource types of the cloud.oceanbase.com/v1 API group.

Each custom resource is a dataclass that converts to and from the plain
dictionary form used in manifests (camelCase keys, JSON-compatible values).
"""

import copy
import dataclasses
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

GROUP = "cloud.oceanbase.com"
VERSION = "v1"
API_VERSION = f"{GROUP}/{VERSION}"


@dataclass(frozen=True)
class GroupResource:
    """A resource name qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


def resource(name: str) -> GroupResource:
    """Qualify a resource name with this API group."""
    return GroupResource(group=GROUP, resource=name)


def _field(key: str, *, default: Any = dataclasses.MISSING,
           default_factory: Any = dataclasses.MISSING,
           omitempty: bool = False) -> Any:
    return field(
        default=default,
        default_factory=default_factory,
        metadata={"key": key, "omitempty": omitempty},
    )


def _dump(value: Any) -> Any:
    if isinstance(value, _Model):
        return value.to_dict()
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _dump(item) for key, item in value.items()}
    return value


def _load(hint: Any, value: Any, key: str) -> Any:
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is typing.Union or origin is types.UnionType:
        if value is None:
            return None
        inner = next(arg for arg in args if arg is not type(None))
        return _load(inner, value, key)

    if origin is list:
        if value is None:
            return []
        if not isinstance(value, list):
            raise TypeError(f"field {key!r} must be a list, got {type(value).__name__}")
        return [_load(args[0], item, key) for item in value]

    if origin is dict:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError(f"field {key!r} must be a mapping, got {type(value).__name__}")
        return {str(k): _load(args[1], v, key) for k, v in value.items()}

    if hint is Any:
        return copy.deepcopy(value)

    if isinstance(hint, type) and issubclass(hint, _Model):
        return hint.from_dict(value)

    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"field {key!r} must be an integer, got {value!r}")
        return value

    if hint is str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise TypeError(f"field {key!r} must be a string, got {value!r}")
        return value

    return value


class _Model:
    """Dictionary conversion shared by all resource types."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            key = f.metadata.get("key", f.name)
            value = getattr(self, f.name)
            if f.metadata.get("omitempty") and not value:
                continue
            out[key] = _dump(value)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Any:
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            key = f.metadata.get("key", f.name)
            if key in data:
                kwargs[f.name] = _load(f.type, data[key], key)
        return cls(**kwargs)


@dataclass
class ObjectMeta(_Model):
    """Object metadata; keys other than the known ones are kept in ``extra``."""

    name: str = _field("name", default="", omitempty=True)
    namespace: str = _field("namespace", default="", omitempty=True)
    labels: dict[str, str] = _field("labels", default_factory=dict, omitempty=True)
    annotations: dict[str, str] = _field("annotations", default_factory=dict, omitempty=True)
    resource_version: str = _field("resourceVersion", default="", omitempty=True)
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN: ClassVar[frozenset] = frozenset(
        {"name", "namespace", "labels", "annotations", "resourceVersion"}
    )

    def to_dict(self) -> dict[str, Any]:
        out = copy.deepcopy(self.extra)
        for f in dataclasses.fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value:
                out[f.metadata["key"]] = _dump(value)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ObjectMeta":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise TypeError(f"metadata must be a mapping, got {type(data).__name__}")
        known = {k: v for k, v in data.items() if k in cls._KNOWN}
        meta = super().from_dict(known)
        meta.extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in cls._KNOWN}
        return meta


# --- shared topology -------------------------------------------------------


@dataclass
class Subset(_Model):
    name: str = _field("name", default="")
    region: str = _field("region", default="", omitempty=True)
    node_selector: dict[str, str] = _field("nodeSelector", default_factory=dict)
    replicas: int = _field("replicas", default=1)

    def __post_init__(self) -> None:
        if self.replicas < 1:
            raise ValueError(f"subset {self.name!r}: replicas must be at least 1")


@dataclass
class Cluster(_Model):
    cluster: str = _field("cluster", default="")
    zone: list[Subset] = _field("zone", default_factory=list)


# --- OBCluster ---------------------------------------------------------------


@dataclass
class StorageSpec(_Model):
    name: str = _field("name", default="")
    storage_class_name: str = _field("storageClassName", default="")
    size: str = _field("size", default="")


@dataclass
class ResourcesSpec(_Model):
    cpu: str = _field("cpu", default="")
    memory: str = _field("memory", default="")
    storage: list[StorageSpec] = _field("storage", default_factory=list)


@dataclass
class OBClusterSpec(_Model):
    version: str = _field("version", default="")
    cluster_id: int = _field("clusterID", default=1)
    topology: list[Cluster] = _field("topology", default_factory=list)
    resources: ResourcesSpec = _field("resources", default_factory=ResourcesSpec)

    def __post_init__(self) -> None:
        if self.cluster_id < 1:
            raise ValueError("clusterID must be at least 1")


@dataclass
class ZoneStatus(_Model):
    name: str = _field("name", default="")
    region: str = _field("region", default="")
    zone_status: str = _field("zoneStatus", default="")
    expected_replicas: int = _field("expectedReplicas", default=0)
    available_replicas: int = _field("availableReplicas", default=0)


@dataclass
class ClusterStatus(_Model):
    cluster: str = _field("cluster", default="")
    cluster_status: str = _field("clusterStatus", default="")
    last_transition_time: Optional[str] = _field("lastTransitionTime", default=None)
    zone: list[ZoneStatus] = _field("zone", default_factory=list)


@dataclass
class OBClusterStatus(_Model):
    status: str = _field("status", default="")
    topology: list[ClusterStatus] = _field("topology", default_factory=list)


class _Resource(_Model):
    """Top-level object carrying apiVersion, kind and metadata."""

    KIND: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        return {"apiVersion": API_VERSION, "kind": self.KIND, **super().to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Any:
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
        api_version = data.get("apiVersion", API_VERSION)
        if api_version != API_VERSION:
            raise ValueError(f"unsupported apiVersion {api_version!r}")
        kind = data.get("kind", cls.KIND)
        if kind != cls.KIND:
            raise ValueError(f"expected kind {cls.KIND!r}, got {kind!r}")
        return super().from_dict(data)


@dataclass
class OBCluster(_Resource):
    KIND: ClassVar[str] = "OBCluster"

    metadata: ObjectMeta = _field("metadata", default_factory=ObjectMeta)
    spec: OBClusterSpec = _field("spec", default_factory=OBClusterSpec)
    status: OBClusterStatus = _field("status", default_factory=OBClusterStatus)

    def to_dict(self) -> dict[str, Any]:
        """Manifest form of this cluster."""
        return super().to_dict()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OBCluster":
        """Build a cluster from its manifest form."""
        return super().from_dict(data)


# --- OBZone ------------------------------------------------------------------


@dataclass
class OBNode(_Model):
    server_ip: str = _field("serverIP", default="")
    status: str = _field("status", default="")


@dataclass
class OBZoneInfo(_Model):
    name: str = _field("name", default="")
    nodes: list[OBNode] = _field("nodes", default_factory=list)


@dataclass
class ClusterOBZoneStatus(_Model):
    cluster: str = _field("cluster", default="")
    zone: list[OBZoneInfo] = _field("zone", default_factory=list)


@dataclass
class OBZoneSpec(_Model):
    topology: list[Cluster] = _field("topology", default_factory=list)


@dataclass
class OBZoneStatus(_Model):
    topology: list[ClusterOBZoneStatus] = _field("topology", default_factory=list)


@dataclass
class OBZone(_Resource):
    KIND: ClassVar[str] = "OBZone"

    metadata: ObjectMeta = _field("metadata", default_factory=ObjectMeta)
    spec: OBZoneSpec = _field("spec", default_factory=OBZoneSpec)
    status: OBZoneStatus = _field("status", default_factory=OBZoneStatus)

    def to_dict(self) -> dict[str, Any]:
        """Manifest form of this zone object."""
        return super().to_dict()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OBZone":
        """Build a zone object from its manifest form."""
        return super().from_dict(data)


# --- RootService -------------------------------------------------------------


@dataclass
class ZoneRootServiceStatus(_Model):
    name: str = _field("name", default="")
    server_ip: str = _field("serverIP", default="")
    role: int = _field("role", default=0)
    status: str = _field("status", default="")


@dataclass
class ClusterRootServiceStatus(_Model):
    cluster: str = _field("cluster", default="")
    zone: list[ZoneRootServiceStatus] = _field("zoneRootService", default_factory=list)


@dataclass
class RootServiceSpec(_Model):
    topology: list[Cluster] = _field("topology", default_factory=list)


@dataclass
class RootServiceStatus(_Model):
    topology: list[ClusterRootServiceStatus] = _field("topology", default_factory=list)


@dataclass
class RootService(_Resource):
    KIND: ClassVar[str] = "RootService"

    metadata: ObjectMeta = _field("metadata", default_factory=ObjectMeta)
    spec: RootServiceSpec = _field("spec", default_factory=RootServiceSpec)
    status: RootServiceStatus = _field("status", default_factory=RootServiceStatus)

    def to_dict(self) -> dict[str, Any]:
        """Manifest form of this root service object."""
        return super().to_dict()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RootService":
        """Build a root service object from its manifest form."""
        return super().from_dict(data)


# --- StatefulApp -------------------------------------------------------------


@dataclass
class StorageTemplate(_Model):
    name: str = _field("name", default="")
    pvc: dict[str, Any] = _field("pvc", default_factory=dict)


@dataclass
class PVCStatus(_Model):
    name: str = _field("name", default="")
    phase: str = _field("phase", default="")


@dataclass
class PodStatus(_Model):
    name: str = _field("name", default="")
    index: int = _field("index", default=0)
    pod_phase: str = _field("podPhase", default="")
    pod_ip: str = _field("podIP", default="")
    node_ip: str = _field("nodeIP", default="")
    pvcs: list[PVCStatus] = _field("pvcs", default_factory=list, omitempty=True)


@dataclass
class SubsetStatus(_Model):
    name: str = _field("name", default="")
    region: str = _field("region", default="", omitempty=True)
    expected_replicas: int = _field("expectedReplicas", default=0)
    available_replicas: int = _field("availableReplicas", default=0)
    pods: list[PodStatus] = _field("pods", default_factory=list)


@dataclass
class StatefulAppSpec(_Model):
    cluster: str = _field("cluster", default="")
    subsets: list[Subset] = _field("subsets", default_factory=list)
    pod_template: dict[str, Any] = _field("podTemplate", default_factory=dict)
    storage_templates: list[StorageTemplate] = _field("storageTemplates", default_factory=list)


@dataclass
class StatefulAppStatus(_Model):
    cluster: str = _field("cluster", default="")
    cluster_status: str = _field("clusterStatus", default="")
    subsets: list[SubsetStatus] = _field("subsets", default_factory=list)


@dataclass
class StatefulApp(_Resource):
    KIND: ClassVar[str] = "StatefulApp"

    metadata: ObjectMeta = _field("metadata", default_factory=ObjectMeta)
    spec: StatefulAppSpec = _field("spec", default_factory=StatefulAppSpec)
    status: StatefulAppStatus = _field("status", default_factory=StatefulAppStatus)

    def to_dict(self) -> dict[str, Any]:
        """Manifest form of this stateful application."""
        return super().to_dict()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StatefulApp":
        """Build a stateful application from its manifest form."""
        return super().from_dict(data)


_KINDS: dict[str, type] = {
    cls.KIND: cls for cls in (StatefulApp, OBCluster, RootService, OBZone)
}


def from_manifest(data: Mapping[str, Any]) -> Any:
    """Build the typed object (or list of objects for a ``...List`` kind) from a manifest."""
    if not isinstance(data, Mapping):
        raise TypeError(f"manifest must be a mapping, got {type(data).__name__}")
    api_version = data.get("apiVersion")
    if api_version != API_VERSION:
        raise ValueError(f"unsupported apiVersion {api_version!r}")
    kind = data.get("kind")
    if kind in _KINDS:
        return _KINDS[kind].from_dict(data)
    if isinstance(kind, str) and kind.endswith("List") and kind[:-4] in _KINDS:
        item_cls = _KINDS[kind[:-4]]
        items = data.get("items") or []
        if not isinstance(items, list):
            raise TypeError("items must be a list")
        return [item_cls.from_dict(item) for item in items]
    raise ValueError(f"unknown kind {kind!r}")