import io
import json
import os
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
import soundfile as sf
import torch

from patchmatch.core.errors import DecodeError, InvalidInputError
from patchmatch.core.types import PCMBuffer

AudioSource = Union[bytes, bytearray, str, os.PathLike, BinaryIO]

MAX_INPUT_BYTES = 10 * 1024 * 1024


class AudioIO:
    @staticmethod
    def _source_size(source: AudioSource) -> int:
        if isinstance(source, (bytes, bytearray)):
            return len(source)
        if isinstance(source, (str, os.PathLike)):
            return os.path.getsize(source)
        pos = source.tell()
        source.seek(0, io.SEEK_END)
        size = source.tell() - pos
        source.seek(pos)
        return size

    @staticmethod
    def load_pcm(source: AudioSource, max_bytes: int = MAX_INPUT_BYTES) -> PCMBuffer:
        """
        Decode a WAV/FLAC/OGG payload into a channel-major PCMBuffer.
        Oversized payloads are rejected before decoding.
        """
        try:
            size = AudioIO._source_size(source)
        except OSError as exc:
            raise InvalidInputError(f"Cannot read audio source: {exc}") from exc
        if size == 0:
            raise InvalidInputError("Audio payload is empty")
        if size > max_bytes:
            raise InvalidInputError(
                f"File too large. Max size is {max_bytes / 1024 / 1024:.0f}MB"
            )

        handle = io.BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else source
        try:
            data, sample_rate = sf.read(handle, dtype="float32", always_2d=True)
        except (sf.LibsndfileError, RuntimeError, TypeError) as exc:
            raise DecodeError(f"Unable to decode audio: {exc}") from exc

        # soundfile returns [frames, channels]
        samples = torch.from_numpy(np.ascontiguousarray(data.T))
        return PCMBuffer(samples=samples, sample_rate=int(sample_rate))

    @staticmethod
    def to_bytes(waveform: torch.Tensor, sample_rate: int, format: str = 'WAV') -> bytes:
        """Returns audio file as bytes. Accepts [n] or [channels, n]."""
        buffer = io.BytesIO()

        if isinstance(waveform, torch.Tensor):
            data = waveform.detach().cpu().numpy()
        else:
            data = np.asarray(waveform)
        if data.ndim == 2:
            data = data.T

        # Clamp
        data = np.clip(data, -1.0, 1.0)

        sf.write(buffer, data, sample_rate, format=format, subtype="FLOAT")
        return buffer.getvalue()

    @staticmethod
    def save_patch(params: dict, path: Union[str, os.PathLike]) -> Path:
        """Write a parameter set as JSON for the playback engine."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            json.dump(params, f, indent=2, sort_keys=True)
        return target

    @staticmethod
    def load_patch(path: Union[str, os.PathLike]) -> dict:
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise InvalidInputError(f"Patch file must hold a JSON object: {path}")
        return data
