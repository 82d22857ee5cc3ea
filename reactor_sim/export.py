"""
Sample Recording and CSV Export

Export file layout:

    # Reactor simulation export
    # Generated: 2024-01-01T12:00:00.000Z UTC
    time_s,core_temp_c,coolant_temp_c
    0.500000,300.180000,290.011950
    ...
"""

from typing import Iterable, List
import logging
import os
import threading
import numpy as np

from .constants import EXPORT_COLUMNS, EXPORT_FORMAT, EXPORT_TITLE
from .engine import Sample
from .utils import utc_timestamp

logger = logging.getLogger(__name__)


def export_header() -> str:
    """Build the three header lines of an export file."""
    return "\n".join([
        EXPORT_TITLE,
        f"# Generated: {utc_timestamp()} UTC",
        ",".join(EXPORT_COLUMNS),
    ])


def samples_to_array(samples: Iterable[Sample]) -> np.ndarray:
    """
    Stack samples into an (n, 3) array.

    Args:
        samples: Samples in publication order

    Returns:
        Array with columns time_s, core_temp_c, coolant_temp_c
    """
    data = np.array([tuple(s) for s in samples], dtype=float)
    return data.reshape(-1, len(EXPORT_COLUMNS))


def write_csv(filepath: str, samples: Iterable[Sample]) -> int:
    """
    Write samples to a CSV export file.

    Args:
        filepath: Output file path
        samples: Samples to write

    Returns:
        Number of data rows written

    Raises:
        OSError: If the file cannot be written
    """
    data = samples_to_array(samples)
    np.savetxt(
        filepath,
        data,
        fmt=EXPORT_FORMAT,
        delimiter=",",
        header=export_header(),
        comments="",
    )
    logger.info("Exported %d samples to %s", len(data), filepath)
    return len(data)


def load_csv(filepath: str) -> np.ndarray:
    """
    Read an export file back.

    Args:
        filepath: Export file path

    Returns:
        Array of shape (n, 3)
    """
    return np.loadtxt(
        filepath,
        delimiter=",",
        comments="#",
        skiprows=3,
        ndmin=2,
    ).reshape(-1, len(EXPORT_COLUMNS))


class SampleRecorder:
    """Listener that buffers every published sample for later export."""

    def __init__(self):
        self._samples: List[Sample] = []
        self._lock = threading.Lock()

    def __call__(self, sample: Sample):
        with self._lock:
            self._samples.append(sample)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    @property
    def samples(self) -> List[Sample]:
        with self._lock:
            return list(self._samples)

    def clear(self):
        with self._lock:
            self._samples.clear()

    def to_arrays(self):
        """
        Get recorded data as numpy arrays.

        Returns:
            Tuple of (times, core temperatures, coolant temperatures)
        """
        data = samples_to_array(self.samples)
        return data[:, 0], data[:, 1], data[:, 2]

    def export_csv(self, filepath: str) -> int:
        """Write all recorded samples to a CSV file."""
        return write_csv(filepath, self.samples)


class CsvStreamWriter:
    """
    Listener that appends each sample to a CSV file as it is published.

    The file is opened (and truncated) on first use or by ``open()``.
    """

    def __init__(self, filepath: str):
        self.filepath = filepath
        self._file = None
        self._lock = threading.Lock()

    def open(self):
        """
        Create the file and write the header.

        Raises:
            OSError: If the file cannot be created
        """
        with self._lock:
            self._open()

    def _open(self):
        if self._file is not None:
            return
        self._file = open(self.filepath, "w")
        self._file.write(export_header() + "\n")
        self._file.flush()
        logger.info("Streaming samples to %s", os.path.abspath(self.filepath))

    def write(self, sample: Sample):
        with self._lock:
            self._open()
            self._file.write(",".join(EXPORT_FORMAT % value for value in sample) + "\n")

    __call__ = write

    def close(self):
        with self._lock:
            if self._file is None:
                return
            self._file.close()
            self._file = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
