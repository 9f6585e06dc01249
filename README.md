# obcable

`obcable` is a small agent that runs next to an `observer` database process,
for example in the same pod. It does four things:

- prepares the observer's directory layout,
- starts the observer when asked to,
- watches that the observer keeps running,
- answers a small JSON HTTP API that a controller uses to drive it.

It also has typed models for the `cloud.oceanbase.com/v1` custom resources
(`OBCluster`, `OBZone`, `RootService`, `StatefulApp`).

## Install

    pip install obcable

## Running the agent

    obcable [--root DIR] [--port PORT] [--start-command COMMAND]

| Option            | Default       | Meaning                                                                        |
|-------------------|---------------|--------------------------------------------------------------------------------|
| `--root`          | `/home/admin` | home directory under which the layout is prepared                              |
| `--port`          | `19001`       | TCP port of the HTTP API                                                       |
| `--start-command` | `observer`    | command run on `/api/ob/start`; the start parameters are added as one JSON argument |

The agent first prepares the directory layout under the root:

- it recreates `oceanbase/log` as a link to `log`,
- it recreates `oceanbase/store`, and inside it makes links `clog`, `ilog`
  and `slog` to `data_log/...` and `sort_dir` and `sstable` to `data_file/...`,
- it hands the whole tree to user and group `admin` if they exist.

If one step fails, the agent logs it and goes on with the rest. It then serves
the API until it receives SIGINT or SIGTERM, and shuts the server down at that
point.

## HTTP API

Every answer is a JSON body and carries `Access-Control-Allow-Origin: *`. An
unknown path gets 404 with `404 page not found`. When a handler fails, the
answer is 400 with `{}`.

| Method | Path                      | Effect                                                                      |
|--------|---------------------------|-----------------------------------------------------------------------------|
| GET    | `/api/system/info`        | addresses of every network interface, keyed by interface name               |
| POST   | `/api/system/paused`      | pause supervision, so that a missing observer no longer ends the agent      |
| POST   | `/api/system/rework`      | resume supervision                                                          |
| POST   | `/api/ob/start`           | start the observer with the JSON object in the body and begin watching it; 400 if it was already started |
| POST   | `/api/ob/stop`            | terminate the observer, kill it 2 s later, and mark it as not started       |
| GET    | `/api/ob/status`          | 200 once the observer has been seen alive, 400 before that                  |
| GET    | `/api/ob/readiness`       | 200 once readiness was reported, 400 before that                            |
| POST   | `/api/ob/readinessUpdate` | mark the observer ready                                                     |

Watching starts with a 10 s grace period. After that there is a check every
5 s. A check passes if a process named `observer` is running, or if supervision
is paused. A passing check marks the observer alive. A failing check ends the
agent with exit status 1.

## Library use

### Server

`obcable.server.CableServer(state, starter, info=None, port=19001)` holds the
API. `handle(method, path, body)` answers one request without a socket and
returns `(status, body_bytes)`. `start()` serves the API in a background
thread; with `port=0` it picks a free port and stores it in `server.port`.
`stop()` shuts the server down and ends the watch loop.

```python
from obcable.monitor import ObserverState
from obcable.server import CableServer

state = ObserverState()
server = CableServer(state, starter=lambda params: None, info=lambda: {})
status, body = server.handle("POST", "/api/system/paused", b"")
assert (status, body, state.paused) == (200, b"{}", True)
```

### Process supervision

`obcable.monitor` provides:

- `ObserverState`: the shared flags `ob_started`, `paused`, `liveness` and
  `readiness`.
- `ObserverMonitor(state, is_running=None, on_exit=None, process_name="observer")`,
  with the methods `check_once()`, `run(stop_event)` and `stop_process()`.
- `process_running(name)`.
- `terminate_process(name)` and `kill_process(name)`: each returns how many
  processes it signalled, and raises `ProcessLookupError` when there are none.

### Directory layout

`obcable.dirs.init_dirs(root="/home/admin")` prepares the layout described
above and returns the root as a `Path`.

### Resource models

Each resource converts to and from its manifest dictionary, which uses
camelCase keys. `from_manifest` picks the type from `kind`. For a `...List`
kind it returns a list. A wrong `apiVersion` or an unknown `kind` raises
`ValueError`. So does a `clusterID` or `replicas` below 1.

```python
from obcable.api import OBCluster, from_manifest, resource

cluster = from_manifest({
    "apiVersion": "cloud.oceanbase.com/v1",
    "kind": "OBCluster",
    "metadata": {"name": "ob-test", "namespace": "obcluster"},
    "spec": {
        "version": "3.1.2",
        "clusterID": 1,
        "topology": [
            {"cluster": "cn", "zone": [
                {"name": "zone1", "region": "region1", "nodeSelector": {}, "replicas": 1},
            ]},
        ],
        "resources": {"cpu": "2", "memory": "10Gi", "storage": []},
    },
})
assert isinstance(cluster, OBCluster)
assert cluster.spec.topology[0].zone[0].name == "zone1"
manifest = cluster.to_dict()

assert str(resource("obclusters")) == "obclusters.cloud.oceanbase.com"
```

## What it does not do

The resource models are plain data. This package has no Kubernetes client
and no controller. It does not create, watch or reconcile these resources in
a cluster, and it does not install their definitions.

## Tests

    pip install -e .[test]
    pytest tests