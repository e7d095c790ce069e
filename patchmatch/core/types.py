from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import torch

ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[float], Sequence[Sequence[float]]]

# Parameter set: name -> value (see params.schema for the keys and bounds)
SynthParams = Dict[str, Any]
EngineConfigDelta = Dict[str, Any]


@dataclass
class PCMBuffer:
    samples: torch.Tensor  # float32, [channels, n]
    sample_rate: int

    @classmethod
    def from_array(cls, data: ArrayLike, sample_rate: int) -> "PCMBuffer":
        """Wrap mono (1-D) or channel-major (2-D) samples as a float32 [channels, n] tensor."""
        if isinstance(data, torch.Tensor):
            samples = data.detach().to(torch.float32)
        else:
            samples = torch.from_numpy(np.array(data, dtype=np.float32))
        if samples.dim() == 1:
            samples = samples.unsqueeze(0)
        elif samples.dim() != 2:
            samples = samples.reshape(samples.shape[0], -1)
        return cls(samples=samples, sample_rate=int(sample_rate))

    @property
    def num_channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def length(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.length / float(self.sample_rate)

    @property
    def nbytes(self) -> int:
        return int(self.samples.numel()) * 4

    def channel(self, index: int = 0) -> torch.Tensor:
        return self.samples[index]


@dataclass
class Spectrum:
    """Non-redundant half of a real-input FFT: len(magnitudes) == len(frequencies) == fft_size // 2."""
    magnitudes: torch.Tensor
    frequencies: torch.Tensor
    sample_rate: int
    fft_size: int

    @property
    def bin_width(self) -> float:
        return self.sample_rate / float(self.fft_size)

    def __len__(self) -> int:
        return int(self.magnitudes.shape[-1])

    def is_silent(self) -> bool:
        return len(self) == 0 or float(torch.max(self.magnitudes)) <= 0.0


@dataclass
class SpectrumPair:
    pitch: Spectrum    # wide window, frequency resolution
    texture: Spectrum  # narrow window, shape metrics


@dataclass
class DualSnapshot:
    early: SpectrumPair  # 20% into the signal (attack)
    late: SpectrumPair   # 80% into the signal (sustain / tail)


@dataclass(frozen=True)
class FeatureDescriptor:
    pitch_hz: float
    detected_octave: int
    detected_release: float
    amplitude: float
    duration: float
    sample_rate: int
    is_fm: bool
    is_organic: bool
    is_wide: bool
    snapshots: Optional[DualSnapshot] = field(default=None, compare=False, repr=False)

    def target_spectrum(self) -> Optional[Spectrum]:
        """Spectrum the optimizer matches against by default (early pitch snapshot)."""
        if self.snapshots is None:
            return None
        return self.snapshots.early.pitch

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pitch_hz": self.pitch_hz,
            "detected_octave": self.detected_octave,
            "detected_release": self.detected_release,
            "amplitude": self.amplitude,
            "duration": self.duration,
            "sample_rate": self.sample_rate,
            "is_fm": self.is_fm,
            "is_organic": self.is_organic,
            "is_wide": self.is_wide,
        }


@dataclass
class AnnealTrial:
    params: SynthParams
    energy: float
    temperature: float
    step: int


@dataclass
class AnnealResult:
    params: SynthParams
    energy: float
    initial_energy: float
    steps_run: int
    total_steps: int
    cancelled: bool = False
