"""Audio packaging helpers."""

from .wav import pcm_to_wav, pcm_to_wav_data_uri, wav_header

__all__ = ["pcm_to_wav", "pcm_to_wav_data_uri", "wav_header"]
