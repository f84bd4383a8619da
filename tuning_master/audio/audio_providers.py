"""Audio sources backed by files."""

from typing import Iterator, Optional

import numpy as np
import soundfile as sf

from ..logger import get_logger
from ..note_types import AudioBlock
from ..core.errors import AudioAcquisitionFailed
from ..core.interfaces import IAudioSource

logger = get_logger(__name__)


class WavFileAudioSource(IAudioSource):
    """Reads consecutive fixed-size windows from an audio file.

    Multi-channel files are mixed down to mono. Once the file is exhausted the
    source either loops back to the start or keeps returning silence.
    """

    def __init__(
        self, file_path: str, block_size: int = 2048, loop: bool = False, gain: float = 1.0
    ):
        self._file_path = file_path
        self._block_size = block_size
        self._loop = loop
        self._gain = gain
        self._file: Optional[sf.SoundFile] = None
        self._exhausted = False

        try:
            info = sf.info(self._file_path)
        except (RuntimeError, OSError) as e:
            raise AudioAcquisitionFailed(f"Cannot read {file_path}: {e}") from e
        self._sample_rate = int(info.samplerate)
        self._channels = info.channels

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def exhausted(self) -> bool:
        """True once a non-looping source has reached the end of the file.

        A looping source is only exhausted when the file holds no frames.
        """
        return self._exhausted

    def acquire(self) -> sf.SoundFile:
        if self._file is not None:
            return self._file
        try:
            self._file = sf.SoundFile(self._file_path)
        except (RuntimeError, OSError) as e:
            raise AudioAcquisitionFailed(f"Cannot open {self._file_path}: {e}") from e
        self._exhausted = False
        logger.info(
            f"Opened {self._file_path} ({self._sample_rate} Hz, {self._channels} channel(s))"
        )
        return self._file

    def read_block(self, handle: sf.SoundFile) -> AudioBlock:
        data = handle.read(self._block_size, dtype="float32", always_2d=True)
        # Files shorter than a block wrap around more than once
        while len(data) < self._block_size and self._loop:
            handle.seek(0)
            rest = handle.read(self._block_size - len(data), dtype="float32", always_2d=True)
            if not len(rest):
                break
            data = np.concatenate((data, rest))
        if len(data) < self._block_size:
            self._exhausted = True

        samples = np.zeros(self._block_size, dtype=np.float32)
        if len(data):
            samples[: len(data)] = data.mean(axis=1) * self._gain
        return AudioBlock(samples=samples, sample_rate=self._sample_rate)

    def release(self, handle) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def blocks(self) -> Iterator[AudioBlock]:
        """Yield every window of the file once; never ends for a looping source."""
        handle = self.acquire()
        try:
            while True:
                block = self.read_block(handle)
                if self._exhausted and not np.any(block.samples):
                    break
                yield block
                if self._exhausted:
                    break
        finally:
            self.release(handle)
