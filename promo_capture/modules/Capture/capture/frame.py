from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class CapturedFrame:
    data: np.ndarray
    frame_number: int
    monotonic_ns: int
    color_format: str = "BGR"

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])


@dataclass(frozen=True, slots=True)
class AudioChunk:
    data: np.ndarray
    chunk_number: int
    monotonic_ns: int
    sample_rate: int
    channels: int

    @property
    def samples(self) -> int:
        return int(self.data.shape[0])

    @property
    def duration_s(self) -> float:
        return self.samples / self.sample_rate
