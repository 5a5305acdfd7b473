# eraser

A library for cleaning container images off Kubernetes nodes. It works out
which images on a node are not used by any container, removes them (all of
them, or only those named in a list or flagged by a vulnerability scan), and
respects an exclusion list.

A node job runs in up to three stages that hand data to one another through
named pipes in a shared directory (`/run/eraser.sh/shared-data` by default):

1. **collector** (`eraser.collector_job.run`): lists every image, drops those
   in use or excluded, and writes the rest as JSON to the scanner, or straight
   to the eraser when scanning is disabled. It then waits for the eraser's
   completion message and raises `GarbageInPipeError` if something else
   arrives.
2. **scanner** (`eraser.scanner_template.ImageProvider`): reads the collected
   images, and after scanning sends the non-compliant ones (and, by default,
   those that failed to scan) on for removal.
3. **eraser** (`eraser.eraser_job.run`): removes the images it was given, or
   those named in an image list file, and signals completion back to the
   collector and, if present, the scanner.

Requires Python 3.10 or later; the only dependency is PyYAML.

## Modules

| Module | Purpose |
| --- | --- |
| `eraser.version` | `get_user_agent(component)` builds `eraser/<component>/<version> (<os>/<arch>) <commit>/<time>`. |
| `eraser.endpoints` | `parse_endpoint`, `parse_endpoint_with_fallback_protocol`, `get_address`, and the runtime socket paths. |
| `eraser.runtime_types` | `RuntimeImage`, `Container`, `ImageSpec`, `ContainerMetadata`, `ContainerState`; `convert_image` / `convert_container` build them from older-API messages given as mappings. |
| `eraser.images` | The `Image` record, `index_images`, `get_running_images`, `get_non_running_images`, `is_excluded`, `parse_image_list`, `parse_excluded`. |
| `eraser.pipes` | `PipePaths`, `encode_images` / `decode_images`, `make_pipe`, `read_collect_scan_pipe`, `write_scan_erase_pipe`. |
| `eraser.environment` | `get_namespace()` reads `POD_NAMESPACE` (default `eraser-system`). |
| `eraser.logger` | `parse_level` and `configure(level)`: console lines at `debug`, JSON lines otherwise. |
| `eraser.cri` | `V1Client` and `V1Alpha2Client`, `client_for_version`, `client_with_fallback`. |
| `eraser.removal` | `remove_images(client, target_images, excluded)`: returns the number removed. |
| `eraser.collection` | `collect_images(client, excluded)`: the idle, non-excluded images. |
| `eraser.eraser_job`, `eraser.collector_job` | The eraser and collector stages, end to end. |
| `eraser.scanner_template` | `ImageProvider`: `receive_images`, `send_images`, `finish`. |
| `eraser.trivy_config` | Scanner `Config`, `load_config`, `parse_duration`, option-list helpers. |
| `eraser.trivy_scan` | `OptionMaps`, `ImageScanner`, `report_is_non_compliant`, and the `scan` loop. |

## Examples

Parsing a runtime endpoint:

```python
from eraser.endpoints import parse_endpoint, parse_endpoint_with_fallback_protocol

parse_endpoint("unix:///run/containerd/containerd.sock")
# ('unix', '/run/containerd/containerd.sock')

parse_endpoint_with_fallback_protocol("/run/crio/crio.sock", "unix")
# ('unix', '/run/crio/crio.sock')
```

Unsupported schemes raise `ProtocolNotSupportedError`, an endpoint with no
scheme raises `EndpointDeprecatedError`, and `get_address` raises
`OnlyUnixSocketError` for anything but a unix socket. All are `EndpointError`s.

Removing images through a client. A client wraps an image service (with
`list_images()` and `remove_image(image)`) and a runtime service (with
`list_containers()`); a service signals a missing image with `NotFoundError`,
which deleting ignores.

```python
from eraser.cri import V1Client
from eraser.removal import remove_images
from eraser.runtime_types import Container, ImageSpec, RuntimeImage


class Images:
    def __init__(self):
        self.items = [RuntimeImage(id="sha256:aaa"), RuntimeImage(id="sha256:bbb")]

    def list_images(self):
        return list(self.items)

    def remove_image(self, image):
        self.items = [i for i in self.items if i.id != image]


class Runtime:
    def list_containers(self):
        return [Container(id="c1", image=ImageSpec(image="sha256:bbb"))]


client = V1Client(Images(), Runtime())
remove_images(client, ["*"])  # 1: sha256:aaa is removed, the running one is kept
```

`client_with_fallback(probes)` tries each probe, a callable returning
`(version, image_service, runtime_service)`, and returns a client for the
first version it recognises (`v1` or `v1alpha2`); if none works it raises
`CriErrors` holding every failure.

## Image lists and exclusions

An image list is a JSON array of image IDs, names or digests. The entry
`"*"` means every non-running image (prune). Running images are never
removed.

`parse_excluded(directory)` reads every subdirectory whose name begins with
`exclude-`; from each it takes the first `.json` file (by name), of the form
`{"excluded": ["..."]}`. An entry matches an image by exact ID, name or
digest; an entry ending in `/*` matches any reference starting with the part
before the `*` (for example `docker.io/library/*`); an entry ending in `:*`
matches any reference starting with the part before the first `:`.

## Scanner configuration

`load_config(filename)` reads an eraser config file and parses the YAML
string at `components.scanner.config`. The defaults are: cache directory
`/var/lib/trivy`, database repository `ghcr.io/aquasecurity/trivy-db`,
vulnerability types `os` and `library`, security check `vuln`, severity
`CRITICAL`, unfixed vulnerabilities ignored, failed images deleted, a total
timeout of 23 hours and a per-image timeout of one hour. Durations use forms
such as `1h30m` or `250ms` and are held in seconds.

`ImageScanner(analyze, config)` scans an image by trying its digests, then
its names, with `analyze(ref, per_image_timeout)`, which returns the report's
results as lists of `Vulnerability`. `scan(scanner, images)` returns
`(vulnerable, failed, timed_out)`; once the total timeout passes, the images
not yet scanned count as failed.

## What the package does not do

- It has no command-line programs; the stages are functions to call.
- It does not open a gRPC connection to a container runtime: clients are
  built around image and runtime service objects that you supply.
- It does not download a vulnerability database or analyse image layers:
  `ImageScanner` relies on the `analyze` callable it is given.
- It does not export metrics; `ImageProvider` only calls an optional
  `metrics(count)` callback.
- It contains no cluster-side controller for scheduling jobs or watching
  configuration.