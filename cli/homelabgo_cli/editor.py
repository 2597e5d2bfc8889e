from __future__ import annotations

import posixpath
from typing import Callable

import click

from homelab_client.bridge import BufferEditor, EditorBridge

EditFn = Callable[[str, str], "str | None"]


def external_edit(text: str, path: str) -> str | None:
    """Open $EDITOR on ``text``; None means the editor exited without saving."""
    ext = posixpath.splitext(path)[1] or ".txt"
    return click.edit(text, extension=ext, require_save=True)


def edit_remote_file(
        client,
        container_id: str,
        path: str,
        *,
        edit: EditFn = external_edit,
) -> bool:
    """Load a container file, edit it locally, save it back. Returns True if saved."""
    buffer = BufferEditor()
    bridge = EditorBridge(client, container_id, path, buffer)
    content = bridge.load()
    edited = edit(content, path)
    if edited is None:
        return False
    buffer.text = edited
    if not bridge.is_dirty():
        return False
    bridge.save()
    return True
