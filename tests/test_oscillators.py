import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
from patchmatch.dsp.oscillators import Oscillator, OscillatorType


class TestOscillatorLaws(unittest.TestCase):
    def test_parse(self):
        self.assertIs(OscillatorType.parse("sawtooth"), OscillatorType.SAWTOOTH)
        self.assertIs(OscillatorType.parse("saw"), OscillatorType.SAWTOOTH)
        self.assertIs(OscillatorType.parse("Square"), OscillatorType.SQUARE)
        self.assertIs(OscillatorType.parse("pulse"), OscillatorType.SINE)
        self.assertIs(OscillatorType.parse(OscillatorType.TRIANGLE), OscillatorType.TRIANGLE)

    def test_sawtooth_all_harmonics(self):
        for h in range(1, 17):
            self.assertAlmostEqual(OscillatorType.SAWTOOTH.harmonic_amplitude(h), 1.0 / h)

    def test_square_odd_only(self):
        self.assertAlmostEqual(OscillatorType.SQUARE.harmonic_amplitude(3), 1.0 / 3)
        self.assertEqual(OscillatorType.SQUARE.harmonic_amplitude(4), 0.0)

    def test_triangle_odd_inverse_square(self):
        self.assertAlmostEqual(OscillatorType.TRIANGLE.harmonic_amplitude(3), 1.0 / 9)
        self.assertEqual(OscillatorType.TRIANGLE.harmonic_amplitude(2), 0.0)

    def test_sine_fundamental_only(self):
        self.assertEqual(OscillatorType.SINE.harmonic_amplitude(1), 1.0)
        self.assertEqual(OscillatorType.SINE.harmonic_amplitude(2), 0.0)


class TestOscillators(unittest.TestCase):
    def setUp(self):
        self.sr = 48000
        self.freq = 440.0  # A4
        self.duration = 0.1  # 100ms

    def test_sine_shape_and_range(self):
        wave = Oscillator.sine(self.freq, self.duration, self.sr)
        self.assertEqual(len(wave), int(self.duration * self.sr))
        self.assertEqual(wave.dtype, torch.float32)
        self.assertTrue(torch.max(wave) <= 1.0001)
        self.assertTrue(torch.min(wave) >= -1.0001)

    def test_render_range(self):
        for kind in OscillatorType:
            wave = Oscillator.render(kind, self.freq, self.duration, self.sr)
            self.assertEqual(len(wave), int(self.duration * self.sr))
            self.assertTrue(torch.max(torch.abs(wave)) <= 1.0001, kind)

    def test_additive_amplitude(self):
        wave = Oscillator.additive(self.freq, self.duration, self.sr, {1: 0.5, 2: 0.25})
        self.assertTrue(torch.max(torch.abs(wave)) <= 0.7501)

    def test_determinism(self):
        wave1 = Oscillator.saw(self.freq, self.duration, self.sr)
        wave2 = Oscillator.saw(self.freq, self.duration, self.sr)
        self.assertTrue(torch.allclose(wave1, wave2))


if __name__ == '__main__':
    unittest.main()
