"""Scripted audio source used by the tests in place of a microphone."""

from typing import Iterable, List, Optional

import numpy as np

from .core.errors import AudioAcquisitionFailed
from .core.interfaces import IAudioSource
from .note_types import AudioBlock


class MockAudioSource(IAudioSource):
    """An in-memory audio source for unit tests. Hands out queued blocks in order."""

    def __init__(
        self,
        blocks: Optional[Iterable[AudioBlock]] = None,
        fail: bool = False,
        sample_rate: int = 44100,
        block_size: int = 2048,
    ):
        self.blocks: List[AudioBlock] = list(blocks or [])
        self.fail = fail
        self.sample_rate = sample_rate
        self.block_size = block_size
        self.acquired = False
        self.release_count = 0
        self.read_count = 0

    def acquire(self):
        if self.fail:
            raise AudioAcquisitionFailed("Microphone access denied")
        self.acquired = True
        return "mock-handle"

    def read_block(self, handle) -> AudioBlock:
        self.read_count += 1
        if self.blocks:
            return self.blocks.pop(0)
        return AudioBlock(
            samples=np.zeros(self.block_size, dtype=np.float32),
            sample_rate=self.sample_rate,
        )

    def release(self, handle) -> None:
        self.acquired = False
        self.release_count += 1
