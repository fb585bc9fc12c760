from __future__ import annotations

import json
import tempfile
from pathlib import Path
import unittest

from docrender import config
from docrender.engine.run import load_payload, run_batch
from docrender.fixtures import get_fixture_data, sample_template


class BatchRunTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.original_out = config.OUT_DIR
        self.root = Path(self.temp_dir.name)
        self.payloads = self.root / "payloads"
        self.payloads.mkdir()
        config.set_out_dir(self.root / "out")

    def tearDown(self) -> None:
        config.set_out_dir(self.original_out)
        self.temp_dir.cleanup()

    def _write(self, name: str, payload) -> Path:
        path = self.payloads / name
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        return path

    def test_load_payload_shapes(self) -> None:
        wrapped = self._write("wrapped.json", {"template": {"id": "a"}, "data": {"X": 1}})
        bare = self._write("bare.json", {"id": "b"})
        self.assertEqual(load_payload(wrapped), ({"id": "a"}, {"X": 1}))
        self.assertEqual(load_payload(bare), ({"id": "b"}, {}))
        with self.assertRaises(ValueError):
            load_payload(self._write("list.json", [1, 2]))

    def test_batch_writes_artifacts(self) -> None:
        good = self._write("estimate.json", {"template": sample_template(), "data": get_fixture_data("summaryBasic")})
        results = run_batch([good])

        self.assertEqual(results, {"READY": ["sample-estimate"], "FAILED": []})
        out = config.OUT_DIR / "sample-estimate"
        self.assertTrue((out / "document.pdf").read_bytes().startswith(b"%PDF"))
        report = json.loads((out / "warnings.json").read_text(encoding="utf-8"))
        self.assertEqual(report["pageCount"], 1)
        self.assertIsInstance(report["warnings"], list)
        self.assertFalse((config.OUT_DIR / "sample-estimate.tmp").exists())

    def test_batch_reports_failures(self) -> None:
        good = self._write("a_good.json", {"template": sample_template(), "data": {}})
        invalid = self._write("b_invalid.json", {"name": "No Id", "elements": []})
        broken = self._write("c_broken.json", ["not", "an", "object"])

        results = run_batch([good, invalid, broken])

        self.assertEqual(results["READY"], ["sample-estimate"])
        self.assertEqual(results["FAILED"], ["no-id", "c-broken"])
        error_log = (config.OUT_DIR / "no-id" / "error.log").read_text(encoding="utf-8")
        self.assertIn("ValidationError", error_log)
        self.assertFalse((config.OUT_DIR / "no-id" / "document.pdf").exists())
        self.assertTrue((config.OUT_DIR / "c-broken" / "error.log").exists())


if __name__ == "__main__":
    unittest.main()
