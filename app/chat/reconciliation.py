"""
Client-side merge of channel history with live broadcasts.

A viewer fetches a channel's history over HTTP while its WebSocket
session joins the channel's room, so a message can show up in both the
snapshot and the live stream, in either order. ChannelTranscript merges
the two into one ordered transcript without duplicates.

Rules:
    - Two confirmed messages are the same iff they share sequence key
      and content.
    - A message posted locally is shown at once as a provisional entry
      (it has no sequence key yet). The first confirmed message with the
      same content replaces the oldest such provisional entry.
    - Confirmed entries are ordered by sequence key, ties by arrival;
      provisional entries follow, in the order they were added.
    - Messages for another channel are ignored.

Messages are the dicts produced by ChannelMessageSerializer, i.e. the
"messages" of GET /channel-messages/{id}/ and the "message" of a
channel:message frame.

Usage:
    transcript = ChannelTranscript(channel_id)
    transcript.add_provisional("hello")
    transcript.load_snapshot(history["messages"])
    transcript.apply_broadcast(frame["message"])
    transcript.contents()
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class TranscriptEntry:
    """
    One line of a transcript.

    Attributes:
        content: Message text
        sender: Sender label, if known
        sequence_key: Store-assigned key; None while provisional
        arrival: Order in which the entry reached the transcript
        message: The confirmed message as received
    """

    content: str
    sender: str | None = None
    sequence_key: str | None = None
    arrival: int = 0
    message: Mapping[str, Any] | None = field(default=None, repr=False)

    @property
    def provisional(self) -> bool:
        return self.sequence_key is None

    @property
    def identity(self) -> tuple[str | None, str]:
        return (self.sequence_key, self.content)


class ChannelTranscript:
    """
    Deduplicated, ordered transcript of one channel view.

    Scoped to a single view of a single channel: close() discards the
    state, and a closed transcript ignores further input.
    """

    def __init__(self, channel_id):
        self.channel_id = str(channel_id)
        self._confirmed: list[TranscriptEntry] = []
        self._provisional: list[TranscriptEntry] = []
        self._seen: set[tuple[str | None, str]] = set()
        self._arrivals = itertools.count()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def load_snapshot(self, messages: Iterable[Mapping[str, Any]]) -> int:
        """
        Merge a fetched history into the transcript.

        Safe to call after broadcasts were applied, and more than once.

        Returns:
            Number of messages that were new to the transcript
        """
        return sum(1 for message in messages if self._confirm(message))

    def apply_broadcast(self, message: Mapping[str, Any]) -> bool:
        """
        Merge one live message.

        Returns:
            True if the message was added, False if it was a duplicate,
            belonged to another channel, or the transcript is closed
        """
        return self._confirm(message)

    def add_provisional(self, content: str, sender: str | None = None) -> TranscriptEntry:
        """Show a locally posted message before the store confirms it."""
        entry = TranscriptEntry(
            content=content,
            sender=sender,
            arrival=next(self._arrivals),
        )
        if not self._closed:
            self._provisional.append(entry)
        return entry

    def entries(self) -> list[TranscriptEntry]:
        return [*self._confirmed, *self._provisional]

    def contents(self) -> list[str]:
        return [entry.content for entry in self.entries()]

    def close(self) -> None:
        self._confirmed.clear()
        self._provisional.clear()
        self._seen.clear()
        self._closed = True

    def _confirm(self, message: Mapping[str, Any]) -> bool:
        if self._closed:
            return False

        channel_id = str(message.get("channel_id", self.channel_id))
        if channel_id != self.channel_id:
            logger.debug(f"Ignored message for channel {channel_id} in {self.channel_id}")
            return False

        entry = TranscriptEntry(
            content=message["content"],
            sender=message.get("sender"),
            sequence_key=message["sequence_key"],
            arrival=next(self._arrivals),
            message=message,
        )
        if entry.identity in self._seen:
            return False
        self._seen.add(entry.identity)

        for index, pending in enumerate(self._provisional):
            if pending.content == entry.content:
                del self._provisional[index]
                break

        self._confirmed.append(entry)
        self._confirmed.sort(key=lambda e: (e.sequence_key, e.arrival))
        return True
