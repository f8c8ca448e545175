#!/usr/bin/env python3
"""
Generate the default highlight sound for Chat Highlights
Requires: numpy, scipy
"""

import os
import sys

try:
    import numpy as np
    from scipy.io import wavfile
except ImportError:
    print("Error: numpy and scipy are required to generate sounds")
    print("Install with: pip install numpy scipy")
    sys.exit(1)


SAMPLE_RATE = 22050


def _write(wave, filename: str) -> None:
    # Apply envelope to avoid clicks (fade in/out)
    fade_samples = int(SAMPLE_RATE * 0.01)  # 10ms fade
    wave[:fade_samples] *= np.linspace(0, 1, fade_samples)
    wave[-fade_samples:] *= np.linspace(1, 0, fade_samples)

    # Convert to 16-bit PCM
    wave = (wave * 32767 * 0.5).astype(np.int16)  # 50% volume

    wavfile.write(filename, SAMPLE_RATE, wave)
    print(f"Generated: {filename}")


def generate_ping(freq1: int, freq2: int, duration: float, filename: str):
    """
    Generate a two-tone ping with a decaying tail

    Args:
        freq1: First frequency in Hz
        freq2: Second frequency in Hz
        duration: Total duration in seconds
        filename: Output filename
    """
    tone_duration = duration / 2
    t = np.linspace(0, tone_duration, int(SAMPLE_RATE * tone_duration))
    decay = np.exp(-6 * t)

    wave = np.concatenate([
        np.sin(2 * np.pi * freq1 * t) * decay,
        np.sin(2 * np.pi * freq2 * t) * decay,
    ])
    _write(wave, filename)


def main():
    """Generate the bundled sound files"""
    script_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.dirname(script_dir)
    sounds_dir = os.path.join(project_root, "chat_highlights", "data", "sounds")

    os.makedirs(sounds_dir, exist_ok=True)

    print(f"Generating sound files to {sounds_dir}...")
    generate_ping(880, 1320, 0.3, os.path.join(sounds_dir, "ping.wav"))

    print(f"\nSound files generated successfully in {sounds_dir}")
    print("You can point sounds.highlight_sound_path at your own file instead.")


if __name__ == "__main__":
    main()
