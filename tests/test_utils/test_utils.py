# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import json
import os

import pytest
from mock import patch

from package_build_service.common.utils import (
    fingerprint_directory, retry, write_atomically, write_json_atomically)


class TestWriteAtomically:

    def test_creates_directory_and_file(self, tmp_path):
        path = str(tmp_path / "sub" / "results.json")
        write_json_atomically(path, {"b": 1, "a": 2})
        with open(path) as f:
            assert json.load(f) == {"a": 2, "b": 1}

    def test_replaces_existing_file(self, tmp_path):
        path = str(tmp_path / "data")
        write_atomically(path, "old")
        write_atomically(path, b"new")
        with open(path) as f:
            assert f.read() == "new"

    def test_failed_replace_keeps_previous_file(self, tmp_path):
        path = str(tmp_path / "results.json")
        write_json_atomically(path, {"foo": {"status": "succeeded"}})

        with patch("package_build_service.common.utils.os.replace",
                   side_effect=OSError("disk on fire")):
            with pytest.raises(OSError):
                write_json_atomically(path, {"foo": {"status": "failed"}})

        with open(path) as f:
            assert json.load(f) == {"foo": {"status": "succeeded"}}
        # no temporary file is left behind
        assert os.listdir(str(tmp_path)) == ["results.json"]

    def test_interrupted_write_keeps_previous_file(self, tmp_path):
        path = str(tmp_path / "lastcheck.json")
        write_atomically(path, "complete content")

        with patch("package_build_service.common.utils.os.fsync",
                   side_effect=KeyboardInterrupt()):
            with pytest.raises(KeyboardInterrupt):
                write_atomically(path, "half")

        with open(path) as f:
            assert f.read() == "complete content"
        assert os.listdir(str(tmp_path)) == ["lastcheck.json"]


class TestFingerprint:

    def setup_method(self, test_method):
        self.files = {"recipe.yaml": "provides: [foo]\n", "src/main.c": "int main;\n"}

    def _tree(self, base, files):
        for relpath, content in files.items():
            path = os.path.join(str(base), relpath)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w") as f:
                f.write(content)
        return str(base)

    def test_stable_and_long(self, tmp_path):
        one = self._tree(tmp_path / "one", self.files)
        two = self._tree(tmp_path / "two", self.files)
        assert fingerprint_directory(one) == fingerprint_directory(two)
        assert len(fingerprint_directory(one)) == 64

    def test_changes_with_content(self, tmp_path):
        directory = self._tree(tmp_path / "pkg", self.files)
        before = fingerprint_directory(directory)
        self._tree(directory, {"src/main.c": "int main(void);\n"})
        assert fingerprint_directory(directory) != before

    def test_changes_with_file_name(self, tmp_path):
        one = self._tree(tmp_path / "one", {"a": "x"})
        two = self._tree(tmp_path / "two", {"b": "x"})
        assert fingerprint_directory(one) != fingerprint_directory(two)

    def test_ignores_hidden_files(self, tmp_path):
        directory = self._tree(tmp_path / "pkg", self.files)
        before = fingerprint_directory(directory)
        self._tree(directory, {".git/HEAD": "ref: refs/heads/main\n", ".swp": "x"})
        assert fingerprint_directory(directory) == before


class TestRetry:

    @patch("package_build_service.common.utils.time.sleep")
    def test_retries_until_success(self, sleep):
        calls = []

        @retry(timeout=60, interval=5, wait_on=IOError)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise IOError("try again")
            return "done"

        assert flaky() == "done"
        assert len(calls) == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(5)

    @patch("package_build_service.common.utils.time.sleep")
    def test_raises_after_timeout(self, sleep):
        @retry(timeout=0, interval=1, wait_on=IOError)
        def broken():
            raise IOError("gone")

        with pytest.raises(IOError):
            broken()
        sleep.assert_not_called()

    def test_other_exceptions_pass_through(self):
        @retry(timeout=60, interval=1, wait_on=IOError)
        def broken():
            raise KeyError("nope")

        with pytest.raises(KeyError):
            broken()
