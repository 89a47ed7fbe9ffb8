"""Merge of polled server messages into the live chat list."""

from dataclasses import replace

from ..models import Message


def _sort_key(message: Message) -> str:
    return message.created_at


def match_confirmations(
    server: list[Message], current: list[Message]
) -> set[str]:
    """Ids of temp messages that the server list confirms.

    A server user message confirms an outstanding temp message with the same
    text. Matching is by text only, with no time window; each server message
    confirms at most one temp message, oldest first. Server messages already
    present in the current list are settled and confirm nothing.
    """
    known_ids = {m.id for m in current}
    pending = [m for m in current if m.is_user and m.is_temp]
    confirmed: set[str] = set()

    for server_msg in server:
        if not server_msg.is_user or server_msg.id in known_ids:
            continue
        for local in pending:
            if local.id not in confirmed and local.text == server_msg.text:
                confirmed.add(local.id)
                break

    return confirmed


def reconcile(server: list[Message], current: list[Message]) -> list[Message] | None:
    """Merge a poll result into the current list.

    Returns the new list, or None when nothing changed. The merged list holds
    at most one entry per id and one visible copy of each sent text, is sorted
    by created_at, and never clears an interacted flag that is set locally.
    Temp messages the server has not confirmed yet stay visible.
    """
    sorted_server = sorted(server, key=_sort_key)
    confirmed = match_confirmations(sorted_server, current)

    existing = {m.id: m for m in current}
    carried = []
    for msg in sorted_server:
        previous = existing.get(msg.id)
        if previous is not None and previous.interacted and not msg.interacted:
            msg = replace(msg, interacted=True)
        carried.append(msg)

    merged: dict[str, Message] = {}
    for msg in [m for m in current if m.id not in confirmed] + carried:
        # Last write wins
        merged.pop(msg.id, None)
        merged[msg.id] = msg

    updated = sorted(merged.values(), key=_sort_key)
    if updated == current:
        return None
    return updated
