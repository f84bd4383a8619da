"""Audio sources: microphone input (sounddevice) and file playback (soundfile).

Import the submodules directly; ``audio_input`` needs PortAudio at import time.
"""
