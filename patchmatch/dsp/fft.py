"""
Windowed radix-2 FFT producing magnitude/frequency spectra.
Iterative Cooley-Tukey: bit-reversal permutation, then log2(N) butterfly passes.
Each pass is vectorized over all sub-transforms of the current length.
"""
import math
from typing import Optional, Tuple

import torch

from patchmatch.core.errors import InvalidInputError
from patchmatch.core.types import Spectrum


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def hann_window(n: int) -> torch.Tensor:
    """0.5 - 0.5*cos(2*pi*i/N), periodic form (float64)."""
    i = torch.arange(n, dtype=torch.float64)
    return 0.5 - 0.5 * torch.cos(2.0 * math.pi * i / n)


def bit_reverse_indices(n: int) -> torch.Tensor:
    """Permutation that reorders a length-n block (power of two) into bit-reversed index order."""
    bits = n.bit_length() - 1
    idx = torch.arange(n, dtype=torch.int64)
    rev = torch.zeros_like(idx)
    for b in range(bits):
        rev = rev | (((idx >> b) & 1) << (bits - 1 - b))
    return rev


def zero_pad(block: torch.Tensor, size: int) -> torch.Tensor:
    """Right-pad (or truncate) a 1-D block to exactly size samples."""
    block = block.reshape(-1)
    n = block.shape[0]
    if n >= size:
        return block[:size]
    return torch.nn.functional.pad(block, (0, size - n))


def fft(real: torch.Tensor, imag: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Complex FFT of (real, imag). Returns new float64 tensors; inputs are not modified.
    Length must be a power of two.
    """
    real = torch.as_tensor(real, dtype=torch.float64).reshape(-1).clone()
    if imag is None:
        imag = torch.zeros_like(real)
    else:
        imag = torch.as_tensor(imag, dtype=torch.float64).reshape(-1).clone()

    n = real.shape[0]
    if imag.shape[0] != n:
        raise InvalidInputError(f"real/imag length mismatch: {n} != {imag.shape[0]}")
    if not is_power_of_two(n):
        raise InvalidInputError(f"FFT length must be a power of two, got {n}")
    if n == 1:
        return real, imag

    perm = bit_reverse_indices(n)
    real = real[perm]
    imag = imag[perm]

    length = 2
    while length <= n:
        half = length // 2
        # Twiddles w^k, w = cos(-2pi/len) + i*sin(-2pi/len)
        angle = -2.0 * math.pi / length
        k = torch.arange(half, dtype=torch.float64)
        w_re = torch.cos(angle * k)
        w_im = torch.sin(angle * k)

        re = real.view(-1, length)
        im = imag.view(-1, length)
        even_re, odd_re = re[:, :half], re[:, half:]
        even_im, odd_im = im[:, :half], im[:, half:]

        t_re = w_re * odd_re - w_im * odd_im
        t_im = w_re * odd_im + w_im * odd_re

        real = torch.cat([even_re + t_re, even_re - t_re], dim=1).reshape(-1)
        imag = torch.cat([even_im + t_im, even_im - t_im], dim=1).reshape(-1)
        length <<= 1

    return real, imag


def compute_spectrum(samples: torch.Tensor, sample_rate: int, window: bool = True) -> Spectrum:
    """
    Hann-windowed magnitude spectrum of a power-of-two block.
    Only bins [0, N/2) are kept; frequency of bin i is i * sample_rate / N.
    """
    x = torch.as_tensor(samples, dtype=torch.float64).reshape(-1)
    n = x.shape[0]
    if window:
        x = x * hann_window(n)

    re, im = fft(x)

    half = n // 2
    magnitudes = torch.sqrt(re[:half] ** 2 + im[:half] ** 2)
    frequencies = torch.arange(half, dtype=torch.float64) * sample_rate / n

    return Spectrum(
        magnitudes=magnitudes.float(),
        frequencies=frequencies.float(),
        sample_rate=int(sample_rate),
        fft_size=n,
    )
