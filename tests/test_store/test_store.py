# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import json
import os

import pytest
from mock import patch

from package_build_service.common.errors import PersistenceError
from package_build_service.common.models import PackageStatus, ResultEntry
from package_build_service.integrator import ArtifactIntegrator, match_output
from package_build_service.repos import LocalRepository
from package_build_service.store import BuildHistory, LastcheckCache, ResultStore
from tests import make_job, make_package


class TestResultStore:

    def test_save_and_load(self, pbs_conf):
        store = ResultStore(pbs_conf.state_dir)
        assert store.load() == {}
        results = {
            "a": ResultEntry(PackageStatus.succeeded),
            "b": ResultEntry(PackageStatus.blocked, "waiting for a"),
        }
        store.save(results)
        assert store.load() == results
        with open(store.path) as f:
            assert json.load(f) == {
                "a": {"status": "succeeded"},
                "b": {"status": "blocked", "detail": "waiting for a"},
            }

    def test_failed_write_keeps_previous_results(self, pbs_conf):
        store = ResultStore(pbs_conf.state_dir)
        store.save({"a": ResultEntry(PackageStatus.scheduled)})
        with patch("package_build_service.common.utils.os.replace",
                   side_effect=OSError("no space left on device")):
            with pytest.raises(PersistenceError):
                store.save({"a": ResultEntry(PackageStatus.failed, "exit status 1")})
        assert store.load() == {"a": ResultEntry(PackageStatus.scheduled)}
        assert os.listdir(pbs_conf.state_dir) == ["results.json"]

    def test_invalid_entries_are_skipped(self, pbs_conf):
        os.makedirs(pbs_conf.state_dir)
        with open(os.path.join(pbs_conf.state_dir, "results.json"), "w") as f:
            json.dump({"a": {"status": "exploded"}, "b": {"status": "failed"}, "c": 1}, f)
        assert ResultStore(pbs_conf.state_dir).load() == {"b": ResultEntry(PackageStatus.failed)}

    def test_unreadable_file(self, pbs_conf):
        os.makedirs(pbs_conf.state_dir)
        with open(os.path.join(pbs_conf.state_dir, "results.json"), "w") as f:
            f.write('{"a": {"sta')
        assert ResultStore(pbs_conf.state_dir).load() == {}


class TestLastcheckCache:

    def test_short_fingerprints_are_discarded(self, pbs_conf):
        cache = LastcheckCache(pbs_conf.state_dir, pbs_conf.lastcheck_min_length)
        cache.save({"a": "a" * 64, "b": "b" * 32, "c": "", "d": "d" * 33})
        assert cache.load() == {"a": "a" * 64, "d": "d" * 33}

    def test_non_string_fingerprints_are_discarded(self, pbs_conf):
        cache = LastcheckCache(pbs_conf.state_dir)
        cache.save({"a": None, "b": ["x" * 64]})
        assert cache.load() == {}


class TestBuildHistory:

    def test_append_and_read(self, pbs_conf, tmp_path):
        history = BuildHistory(pbs_conf.state_dir)
        assert history.read("foo") == []
        package = make_package(str(tmp_path))
        history.append(make_job(package, str(tmp_path), PackageStatus.succeeded))
        failed = make_job(package, str(tmp_path), PackageStatus.failed)
        failed.state_reason = "exit status 1"
        history.append(failed)

        records = history.read("foo")
        assert [r["status"] for r in records] == ["succeeded", "failed"]
        assert records[0]["duration"] == 60
        assert records[0]["fingerprint"] == "f" * 64
        assert records[1]["state_reason"] == "exit status 1"
        assert history.packages() == ["foo"]

    def test_truncated_record_is_skipped(self, pbs_conf, tmp_path):
        history = BuildHistory(pbs_conf.state_dir)
        package = make_package(str(tmp_path))
        history.append(make_job(package, str(tmp_path)))
        with open(history.path("foo"), "a") as f:
            f.write('{"package": "foo", "sta')
        assert len(history.read("foo")) == 1


class TestArtifactIntegrator:

    def setup_method(self, test_method):
        self.outputs = ["foo", "foo-devel", "foo.doc"]

    @pytest.mark.parametrize("filename,expected", [
        ("foo", "foo"),
        ("foo-1.0.tar", "foo"),
        ("foo-devel-1.0.tar", "foo-devel"),
        ("foo.doc.tar", "foo.doc"),
        ("foo.tar", "foo"),
        ("foobar-1.0.tar", None),
        ("bar-1.0.tar", None),
    ])
    def test_match_output(self, filename, expected):
        assert match_output(filename, self.outputs) == expected

    def _job(self, tmp_path, artifacts, status=PackageStatus.succeeded):
        resultdir = tmp_path / "result"
        resultdir.mkdir()
        for name in artifacts:
            (resultdir / name).write_text("binary %s\n" % name)
        package = make_package(str(tmp_path / "src"), provides=["foo", "foo-devel"])
        job = make_job(package, str(resultdir), status)
        job.artifacts = sorted(artifacts)
        return job

    def test_integrate(self, pbs_conf, tmp_path):
        local = LocalRepository(pbs_conf.local_repo)
        local.load()
        integrator = ArtifactIntegrator(local, BuildHistory(pbs_conf.state_dir))

        old = os.path.join(pbs_conf.local_repo, "foo")
        os.makedirs(old)
        with open(os.path.join(old, "foo-0.9.tar"), "w") as f:
            f.write("old\n")

        job = self._job(tmp_path, ["foo-1.0.tar", "foo-devel-1.0.tar", "unrelated.log"])
        binaries = integrator.integrate(job)
        assert binaries == {"foo": "foo-1.0.tar", "foo-devel": "foo-devel-1.0.tar"}
        assert sorted(os.listdir(old)) == ["foo-1.0.tar", "foo-devel-1.0.tar"]
        assert local.binaries_of("foo") == ["foo", "foo-devel"]
        # nothing but the package directories and the index
        assert sorted(os.listdir(pbs_conf.local_repo)) == ["foo", "index.yaml"]
        assert len(BuildHistory(pbs_conf.state_dir).read("foo")) == 1

    def test_failed_job_only_gets_history(self, pbs_conf, tmp_path):
        local = LocalRepository(pbs_conf.local_repo)
        local.load()
        integrator = ArtifactIntegrator(local, BuildHistory(pbs_conf.state_dir))
        job = self._job(tmp_path, ["foo-1.0.tar"], PackageStatus.failed)
        assert integrator.integrate(job) == {}
        assert not os.path.exists(pbs_conf.local_repo)
        assert BuildHistory(pbs_conf.state_dir).read("foo")[0]["status"] == "failed"

    def test_integration_error_fails_the_job(self, pbs_conf, tmp_path):
        local = LocalRepository(pbs_conf.local_repo)
        local.load()
        integrator = ArtifactIntegrator(local, BuildHistory(pbs_conf.state_dir))
        job = self._job(tmp_path, ["foo-1.0.tar"])
        with patch("package_build_service.integrator.shutil.move",
                   side_effect=OSError(28, "No space left on device")):
            assert integrator.integrate(job) == {}
        assert job.status == PackageStatus.failed
        assert job.state_reason == "can't integrate the artifacts: No space left on device"
        assert local.binaries_of("foo") == []
