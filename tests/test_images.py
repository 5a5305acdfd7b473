import json

import pytest

from eraser.images import (
    Image,
    get_non_running_images,
    get_running_images,
    index_images,
    is_excluded,
    parse_excluded,
    parse_image_list,
    process_repo_digests,
)
from eraser.runtime_types import Container, ImageSpec, RuntimeImage

IMAGE4 = RuntimeImage(
    id="sha256:b4034db328056e7f4c27ab76a5b9811b0f5eaa99565194cf7c6446781e772043",
    repo_tags=["mcr.microsoft.com/oss/kubernetes/kube-proxy:v1.19.11-hotfix.20210526"],
    repo_digests=[
        "mcr.microsoft.com/oss/kubernetes/kube-proxy@sha256:"
        "a64d3538b72905b07356881314755b02db3675ff47ee2bcc49dd7be856e285d5"
    ],
)
IMAGE1 = RuntimeImage(
    id="sha256:ccd78eb0f420877b5513f61bf470dd379d8e8672671115d65c6f69d1c4261f87",
    repo_tags=["mcr.microsoft.com/aks/acc/sgx-webhook:0.6"],
)


def test_process_repo_digests_dedupes_and_reports_errors():
    digests, errors = process_repo_digests(["a@sha256:x", "b@sha256:x", "broken"])
    assert digests == ["sha256:x"]
    assert len(errors) == 1
    assert "broken" in str(errors[0])


def test_index_images_builds_map():
    all_images, id_to_image = index_images([IMAGE1, IMAGE4])
    assert [img.image_id for img in all_images] == [IMAGE1.id, IMAGE4.id]
    assert id_to_image[IMAGE4.id].names == IMAGE4.repo_tags
    assert id_to_image[IMAGE4.id].digests == [IMAGE4.repo_digests[0].split("@")[1]]


def test_running_and_non_running_partition():
    all_images, id_to_image = index_images([IMAGE1, IMAGE4])
    containers = [Container(id="c", image=ImageSpec(image=IMAGE4.id))]
    running = get_running_images(containers, id_to_image)
    idle = get_non_running_images(running, all_images, id_to_image)

    assert running[IMAGE4.repo_tags[0]] == IMAGE4.id
    assert running[IMAGE4.id] == IMAGE4.id
    assert idle == {IMAGE1.id: IMAGE1.id, IMAGE1.repo_tags[0]: IMAGE1.id}
    assert not set(running) & set(idle)


def test_running_container_without_image_spec():
    running = get_running_images([Container(id="c")], {})
    assert running == {"": ""}


def test_is_excluded_empty():
    assert is_excluded(set(), "anything", {}) is False


def test_is_excluded_by_name_of_id():
    _, id_to_image = index_images([IMAGE1])
    assert is_excluded({IMAGE1.repo_tags[0]}, IMAGE1.id, id_to_image) is True


def test_is_excluded_repository_wildcard():
    _, id_to_image = index_images([RuntimeImage(id="sha256:n", repo_tags=["docker.io/library/nginx:1"])])
    assert is_excluded({"docker.io/library/*"}, "sha256:n", id_to_image) is True
    assert is_excluded({"docker.io/other/*"}, "sha256:n", id_to_image) is False


def test_is_excluded_tag_wildcard():
    assert is_excluded({"nginx:*"}, "nginx:1.2", {}) is True
    assert is_excluded({"redis:*"}, "nginx:1.2", {}) is False


def test_image_dict_round_trip():
    image = Image("sha256:a", ["n:1"], ["sha256:d"])
    assert Image.from_dict(image.to_dict()) == image


def test_parse_image_list(tmp_path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps(["a", "*"]))
    assert parse_image_list(path) == ["a", "*"]


def test_parse_image_list_rejects_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("{}")
    with pytest.raises(ValueError):
        parse_image_list(path)


def test_parse_excluded_reads_config_maps(tmp_path):
    first = tmp_path / "exclude-one"
    first.mkdir()
    (first / "a.json").write_text(json.dumps({"excluded": ["docker.io/library/*"]}))
    second = tmp_path / "exclude-two"
    second.mkdir()
    (second / "b.json").write_text(json.dumps({"excluded": ["nginx:1"]}))
    ignored = tmp_path / "other"
    ignored.mkdir()
    (ignored / "c.json").write_text(json.dumps({"excluded": ["skip"]}))

    assert parse_excluded(tmp_path) == {"docker.io/library/*", "nginx:1"}


def test_parse_excluded_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_excluded(tmp_path / "absent")


def test_parse_excluded_config_map_without_json(tmp_path):
    (tmp_path / "exclude-empty").mkdir()
    with pytest.raises(OSError):
        parse_excluded(tmp_path)