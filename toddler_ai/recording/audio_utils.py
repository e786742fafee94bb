import io

import numpy as np
import soundfile as sf


def samples_to_wav_bytes(samples: np.ndarray, sample_rate: int) -> bytes:
    """Encode float32 samples as an in-memory 16-bit PCM WAV file (Whisper-compatible)."""
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def decode_audio(data: bytes) -> tuple[np.ndarray, int]:
    """Decode WAV/MP3/OGG bytes to ``(float32 frames x channels, sample_rate)``.

    Raises ``sf.LibsndfileError`` (a ``RuntimeError``) if the bytes are not audio.
    """
    samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    return samples, sample_rate
