"""Exception types raised by Tuning Master components."""


class TunerError(Exception):
    """Base class for all tuner errors."""


class AudioAcquisitionFailed(TunerError):
    """The audio input could not be opened (missing device, permission denied)."""


class InvalidBlock(TunerError):
    """An audio block is malformed: empty, wrong length or non-finite samples."""


class ConfigurationInvalid(TunerError):
    """A configuration write was rejected; the previous value is kept."""
