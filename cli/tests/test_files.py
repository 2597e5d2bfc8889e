from __future__ import annotations

from homelab_client.files import format_size, join_path, parent_path, sort_entries
from homelab_client.models import FileEntry


def test_sort_directories_first_case_insensitive() -> None:
    entries = [FileEntry(name="C.txt"), FileEntry(name="a", is_dir=True), FileEntry(name="B.txt")]
    assert [e.name for e in sort_entries(entries)] == ["a", "B.txt", "C.txt"]


def test_join_and_parent_paths() -> None:
    assert join_path("/", "etc") == "/etc"
    assert join_path("/etc/", "nginx") == "/etc/nginx"
    assert parent_path("/etc/nginx") == "/etc"
    assert parent_path("/etc") == "/"
    assert parent_path("/") == "/"


def test_format_size() -> None:
    assert format_size(512) == "512 B"
    assert format_size(2048) == "2.0 KB"
    assert format_size(5 * 1024 * 1024) == "5.0 MB"
    assert format_size(None) == "-"
