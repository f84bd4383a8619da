"""Factory for creating Tuning Master components from the stored configuration."""

from typing import Optional

from ..logger import get_logger
from ..detection.pitch_estimator import FundamentalEstimator
from ..detection.target_matcher import TargetMatcher
from ..scheduler import TickScheduler
from ..session import TuningSession
from .config import ConfigManager, SettingsStore
from .errors import ConfigurationInvalid
from .interfaces import IAudioSource
from .presets import PresetStore

logger = get_logger(__name__)

AUDIO_SOURCE_KINDS = ("microphone", "file")


class ComponentFactory:
    """Factory for creating Tuning Master components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()
        self.settings = SettingsStore(self.config_manager)
        self.presets = PresetStore(self.config_manager.config_dir)

    def create_audio_source(self, kind: str = "microphone", **kwargs) -> IAudioSource:
        """Create an audio source.

        Args:
            kind: 'microphone' or 'file' (requires ``file_path``)
            **kwargs: Parameters overriding the stored audio configuration

        Raises:
            ValueError: If the kind is not known
        """
        config = self.settings.audio_settings()
        block_size = kwargs.pop("block_size", None) or config["block_size"]

        if kind == "microphone":
            # PortAudio is loaded on import, only pay for it when needed
            from ..audio.audio_input import SoundDeviceInput

            source = SoundDeviceInput(
                device_id=kwargs.get("device_id", config["device_id"]),
                sample_rate=kwargs.get("sample_rate") or config["sample_rate"],
                block_size=block_size,
                channels=kwargs.get("channels") or config["channels"],
            )
        elif kind == "file":
            from ..audio.audio_providers import WavFileAudioSource

            source = WavFileAudioSource(
                kwargs["file_path"],
                block_size=block_size,
                loop=kwargs.get("loop", False),
                gain=kwargs.get("gain", 1.0),
            )
        else:
            raise ValueError(f"Unknown audio source: {kind}")

        logger.info(f"Created audio source: {kind}")
        return source

    def resolve_profile(self, profile_id: Optional[str] = None):
        """Look up a profile by id, defaulting to the active one.

        Raises:
            ConfigurationInvalid: If no profile has that id
        """
        profile_id = profile_id or self.settings.active_profile
        profile = self.presets.get(profile_id)
        if profile is None:
            raise ConfigurationInvalid(f"Unknown instrument profile: {profile_id}")
        return profile

    def create_session(
        self,
        audio_source: Optional[IAudioSource] = None,
        reference_pitch: Optional[float] = None,
        profile_id: Optional[str] = None,
        use_scheduler: bool = True,
    ) -> TuningSession:
        """Create a tuning session wired to the stored settings."""
        tick_hz = self.settings.audio_settings().get("tick_hz") or 60
        scheduler = TickScheduler(1 / tick_hz) if use_scheduler and audio_source else None

        session = TuningSession(
            audio_source=audio_source,
            scheduler=scheduler,
            reference_pitch=reference_pitch or self.settings.reference_pitch,
            profile=self.resolve_profile(profile_id),
            estimator=FundamentalEstimator(),
            matcher=TargetMatcher(),
        )
        logger.info("Created tuning session")
        return session
