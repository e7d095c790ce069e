"""
Oscillator waveforms: per-type harmonic laws for spectral estimation, plus
band-unlimited test-tone generators used to build analysis fixtures.
"""
from enum import Enum

import numpy as np
import torch


class OscillatorType(str, Enum):
    SAWTOOTH = "sawtooth"
    SQUARE = "square"
    TRIANGLE = "triangle"
    SINE = "sine"  # any other waveform: fundamental only

    @classmethod
    def parse(cls, value) -> "OscillatorType":
        """Map a name onto a variant; unknown names fall into SINE."""
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name == "saw":
            return cls.SAWTOOTH
        for member in cls:
            if member.value == name:
                return member
        return cls.SINE

    def harmonic_amplitude(self, h: int) -> float:
        """Relative amplitude of harmonic h (1 = fundamental)."""
        if h < 1:
            return 0.0
        if self is OscillatorType.SAWTOOTH:
            return 1.0 / h
        if self is OscillatorType.SQUARE:
            return 1.0 / h if h % 2 == 1 else 0.0
        if self is OscillatorType.TRIANGLE:
            return 1.0 / (h * h) if h % 2 == 1 else 0.0
        return 1.0 if h == 1 else 0.0


class Oscillator:
    @staticmethod
    def _time(duration: float, sample_rate: int) -> torch.Tensor:
        n = int(duration * sample_rate)
        return torch.arange(n, dtype=torch.float64) / sample_rate

    @staticmethod
    def sine(frequency: float, duration: float, sample_rate: int, amplitude: float = 1.0) -> torch.Tensor:
        t = Oscillator._time(duration, sample_rate)
        return (amplitude * torch.sin(2 * np.pi * frequency * t)).float()

    @staticmethod
    def saw(frequency: float, duration: float, sample_rate: int, amplitude: float = 1.0) -> torch.Tensor:
        t = Oscillator._time(duration, sample_rate)
        x = frequency * t
        return (amplitude * 2 * (x - torch.floor(x + 0.5))).float()

    @staticmethod
    def square(frequency: float, duration: float, sample_rate: int, amplitude: float = 1.0) -> torch.Tensor:
        t = Oscillator._time(duration, sample_rate)
        return (amplitude * torch.sign(torch.sin(2 * np.pi * frequency * t))).float()

    @staticmethod
    def triangle(frequency: float, duration: float, sample_rate: int, amplitude: float = 1.0) -> torch.Tensor:
        t = Oscillator._time(duration, sample_rate)
        x = frequency * t
        return (amplitude * (2 * torch.abs(2 * (x - torch.floor(x + 0.5))) - 1)).float()

    @staticmethod
    def additive(
        frequency: float,
        duration: float,
        sample_rate: int,
        harmonics: dict,
    ) -> torch.Tensor:
        """Sum of sines: harmonics maps harmonic number -> amplitude."""
        t = Oscillator._time(duration, sample_rate)
        out = torch.zeros_like(t)
        for h, amp in harmonics.items():
            out = out + float(amp) * torch.sin(2 * np.pi * frequency * int(h) * t)
        return out.float()

    @staticmethod
    def render(osc_type, frequency: float, duration: float, sample_rate: int, amplitude: float = 1.0) -> torch.Tensor:
        kind = OscillatorType.parse(osc_type)
        if kind is OscillatorType.SAWTOOTH:
            return Oscillator.saw(frequency, duration, sample_rate, amplitude)
        if kind is OscillatorType.SQUARE:
            return Oscillator.square(frequency, duration, sample_rate, amplitude)
        if kind is OscillatorType.TRIANGLE:
            return Oscillator.triangle(frequency, duration, sample_rate, amplitude)
        return Oscillator.sine(frequency, duration, sample_rate, amplitude)
