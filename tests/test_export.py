"""
Tests for the export module.
"""

import os
import tempfile
import unittest
import numpy as np

from reactor_sim.engine import Sample
from reactor_sim.export import (
    CsvStreamWriter,
    SampleRecorder,
    export_header,
    load_csv,
    samples_to_array,
    write_csv,
)


SAMPLES = [
    Sample(0.5, 300.18, 290.011950),
    Sample(1.0, 300.3586, 290.0235),
    Sample(1.5, 300.5355123456, 290.0349),
]


class TestExportFormat(unittest.TestCase):
    """Test the CSV layout."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "run.csv")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_header(self):
        """Test the three header lines."""
        lines = export_header().split("\n")

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[0], "# Reactor simulation export")
        self.assertTrue(lines[1].startswith("# Generated: "))
        self.assertTrue(lines[1].endswith("Z UTC"))
        self.assertEqual(lines[2], "time_s,core_temp_c,coolant_temp_c")

    def test_write_csv_rows(self):
        """Test data rows use six decimal places."""
        rows = write_csv(self.path, SAMPLES)

        with open(self.path) as f:
            lines = f.read().splitlines()

        self.assertEqual(rows, 3)
        self.assertEqual(len(lines), 6)
        self.assertEqual(lines[3], "0.500000,300.180000,290.011950")
        self.assertEqual(lines[5], "1.500000,300.535512,290.034900")

    def test_load_csv(self):
        """Test an export reads back as floats."""
        write_csv(self.path, SAMPLES)

        data = load_csv(self.path)

        self.assertEqual(data.shape, (3, 3))
        np.testing.assert_allclose(data, samples_to_array(SAMPLES), atol=1e-6)

    def test_empty_export(self):
        """Test exporting with no samples writes only the header."""
        rows = write_csv(self.path, [])

        with open(self.path) as f:
            lines = f.read().splitlines()

        self.assertEqual(rows, 0)
        self.assertEqual(len(lines), 3)

    def test_unwritable_path_raises(self):
        """Test I/O failures are surfaced to the caller."""
        bad_path = os.path.join(self.tmpdir.name, "missing", "run.csv")
        with self.assertRaises(OSError):
            write_csv(bad_path, SAMPLES)


class TestSampleRecorder(unittest.TestCase):
    """Test sample buffering."""

    def setUp(self):
        self.recorder = SampleRecorder()
        for sample in SAMPLES:
            self.recorder(sample)

    def test_buffer(self):
        self.assertEqual(len(self.recorder), 3)
        self.assertEqual(self.recorder.samples, SAMPLES)

    def test_to_arrays(self):
        """Test recorded data as column arrays."""
        times, core, coolant = self.recorder.to_arrays()

        np.testing.assert_allclose(times, [0.5, 1.0, 1.5])
        self.assertAlmostEqual(core[0], 300.18)
        self.assertEqual(coolant.shape, (3,))

    def test_clear(self):
        self.recorder.clear()
        self.assertEqual(len(self.recorder), 0)
        times, _, _ = self.recorder.to_arrays()
        self.assertEqual(len(times), 0)

    def test_export(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "recorded.csv")
            self.assertEqual(self.recorder.export_csv(path), 3)
            self.assertEqual(load_csv(path).shape, (3, 3))


class TestCsvStreamWriter(unittest.TestCase):
    """Test live streaming export."""

    def test_stream_matches_batch_format(self):
        """Test streamed files read back like batch exports."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "live.csv")

            with CsvStreamWriter(path) as writer:
                self.assertTrue(writer.is_open)
                for sample in SAMPLES:
                    writer(sample)

            self.assertFalse(writer.is_open)

            with open(path) as f:
                lines = f.read().splitlines()

            self.assertEqual(lines[0], "# Reactor simulation export")
            self.assertEqual(lines[3], "0.500000,300.180000,290.011950")
            np.testing.assert_allclose(load_csv(path), samples_to_array(SAMPLES), atol=1e-6)

    def test_opens_lazily(self):
        """Test the file is created on the first sample."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "lazy.csv")
            writer = CsvStreamWriter(path)
            self.assertFalse(os.path.exists(path))

            writer.write(SAMPLES[0])
            writer.close()
            writer.close()

            self.assertEqual(load_csv(path).shape, (1, 3))

    def test_open_failure_raises(self):
        writer = CsvStreamWriter(os.path.join(tempfile.gettempdir(), "no", "such", "dir.csv"))
        with self.assertRaises(OSError):
            writer.open()


if __name__ == "__main__":
    unittest.main()
