"""Microphone input for the tuner."""

from __future__ import annotations
import threading
from typing import Optional, Dict, Any, Tuple, ClassVar, List

import numpy as np
import sounddevice as sd

from ..logger import get_logger
from ..note_types import AudioBlock
from ..core.errors import AudioAcquisitionFailed
from ..core.interfaces import IAudioSource

logger = get_logger(__name__)


class SoundDeviceInput(IAudioSource):
    """Audio source using the sounddevice library.

    The stream callback appends incoming audio to a rolling window holding the
    most recent ``block_size`` mono samples; ``read_block`` copies that window
    without waiting for new audio.
    """

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    BLOCK_SIZE: ClassVar[int] = 2048  # Samples per analysis window
    CHANNELS: ClassVar[int] = 1  # Mono audio
    FALLBACK_RATES: ClassVar[List[int]] = [44100, 48000, 22050, 16000]

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        block_size: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """Initialize the audio input.

        Args:
            device_id: Audio input device ID, or None for the default device
            sample_rate: Sample rate in Hz, or None for default (44100)
            block_size: Analysis window in samples, or None for default (2048)
            channels: Number of channels to capture; only the first is analysed
        """
        self._device_id = device_id
        self._sample_rate = sample_rate or self.SAMPLE_RATE
        self._block_size = block_size or self.BLOCK_SIZE
        self._channels = channels or self.CHANNELS

        self._stream: Optional[sd.InputStream] = None
        self._lock = threading.Lock()
        self._window = np.zeros(self._block_size, dtype=np.float32)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def block_size(self) -> int:
        return self._block_size

    def acquire(self) -> sd.InputStream:
        """Open and start the input stream.

        The configured sample rate is tried first, then the common fallbacks.

        Raises:
            AudioAcquisitionFailed: If no sample rate works with the device
        """
        if self._stream is not None:
            return self._stream

        rates = [self._sample_rate] + [r for r in self.FALLBACK_RATES if r != self._sample_rate]
        errors = []
        for rate in rates:
            stream = None
            try:
                logger.info(f"Trying to start audio input with sample rate: {rate} Hz")
                stream = sd.InputStream(
                    device=self._device_id,
                    samplerate=rate,
                    channels=self._channels,
                    dtype="float32",
                    callback=self._audio_callback,
                )
                stream.start()
            except Exception as e:
                logger.warning(f"Failed to start audio input with sample rate {rate} Hz: {e}")
                errors.append(f"{rate} Hz: {e}")
                if stream is not None:
                    stream.close()
                continue

            self._sample_rate = rate
            self._stream = stream
            with self._lock:
                self._window[:] = 0.0
            logger.info(f"Audio input started: device={self._device_id}, rate={rate} Hz")
            return stream

        raise AudioAcquisitionFailed(
            "Could not open audio input: " + "; ".join(errors)
        )

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Append new samples to the rolling window.

        Called from the audio thread, so it only copies data.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        # Extract mono audio data (take first channel if multi-channel)
        samples = indata[:, 0] if indata.ndim > 1 else indata
        count = min(len(samples), self._block_size)
        if count == 0:
            return
        with self._lock:
            self._window = np.roll(self._window, -count)
            self._window[-count:] = samples[-count:]

    def read_block(self, handle) -> AudioBlock:
        with self._lock:
            samples = self._window.copy()
        return AudioBlock(samples=samples, sample_rate=self._sample_rate)

    def release(self, handle) -> None:
        """Stop and close the input stream."""
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
            logger.info("Audio input stopped")
        except Exception as e:
            logger.error(f"Error stopping audio input: {e}")


def list_input_devices() -> List[Tuple[int, Dict[str, Any]]]:
    """Return (device id, device info) for every device with input channels."""
    return [
        (device_id, device)
        for device_id, device in enumerate(sd.query_devices())
        if device["max_input_channels"] > 0
    ]


def supported_sample_rates(
    device_id: int, rates=(8000, 16000, 22050, 44100, 48000, 96000)
) -> Dict[int, Optional[str]]:
    """Map each rate to None if the device accepts it, else the error text."""
    results: Dict[int, Optional[str]] = {}
    for rate in rates:
        try:
            sd.check_input_settings(device=device_id, samplerate=rate, channels=1)
            results[rate] = None
        except Exception as e:
            results[rate] = str(e)
    return results
