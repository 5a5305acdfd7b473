import pytest

from eraser.runtime_types import (
    Container,
    ContainerState,
    ImageSpec,
    RuntimeImage,
    convert_container,
    convert_image,
)


def test_convert_image_none():
    assert convert_image(None) is None


def test_convert_container_none():
    assert convert_container(None) is None


def test_convert_image_copies_fields():
    message = {
        "id": "sha256:img",
        "repoTags": ["nginx:latest"],
        "repoDigests": ["nginx@sha256:d"],
        "size": 42,
        "uid": {"value": 7},
        "username": "root",
        "spec": {"image": "nginx", "annotations": {"a": "b"}},
        "pinned": True,
    }
    image = convert_image(message)
    assert image == RuntimeImage(
        id="sha256:img",
        repo_tags=["nginx:latest"],
        repo_digests=["nginx@sha256:d"],
        size=42,
        uid=7,
        username="root",
        spec=ImageSpec(image="nginx", annotations={"a": "b"}),
        pinned=True,
    )


def test_convert_image_without_optional_parts():
    image = convert_image({"id": "sha256:x"})
    assert image.spec is None
    assert image.uid is None
    assert image.repo_tags == []


def test_convert_container_copies_fields():
    message = {
        "id": "c1",
        "podSandboxId": "pod",
        "metadata": {"name": "web", "attempt": 2},
        "image": {"image": "sha256:img"},
        "imageRef": "sha256:img",
        "state": 1,
        "createdAt": 100,
        "labels": {"k": "v"},
    }
    container = convert_container(message)
    assert container.id == "c1"
    assert container.pod_sandbox_id == "pod"
    assert container.metadata.name == "web"
    assert container.metadata.attempt == 2
    assert container.image == ImageSpec(image="sha256:img")
    assert container.state is ContainerState.RUNNING
    assert container.labels == {"k": "v"}


def test_convert_container_without_image():
    container = convert_container({"id": "c2"})
    assert container == Container(id="c2")


def test_container_state_from_name():
    assert ContainerState.from_value("CONTAINER_EXITED") is ContainerState.EXITED


def test_container_state_unknown_name():
    with pytest.raises(ValueError):
        ContainerState.from_value("CONTAINER_BOGUS")