# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from click.testing import CliRunner
from mock import patch

from package_build_service.common.models import PackageStatus, ResultEntry
from package_build_service.manage import cli
from package_build_service.store import BuildHistory, ResultStore
from tests import make_job, make_package, write_recipe


class TestManage:

    def setup_method(self, test_method):
        self.runner = CliRunner()

    def test_status(self, pbs_conf):
        ResultStore(pbs_conf.state_dir).save({
            "foo": ResultEntry(PackageStatus.failed, "exit status 1"),
            "bar": ResultEntry(PackageStatus.succeeded),
        })
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["status"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split() == ["bar", "succeeded"]
        assert lines[1].split() == ["foo", "failed:", "exit", "status", "1"]

    def test_status_without_results(self, pbs_conf):
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "No results" in result.output

    def test_check(self, pbs_conf):
        write_recipe(pbs_conf, "foo", buildrequires=["bar"])
        write_recipe(pbs_conf, "bar")
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["-q", "check"])
        assert result.exit_code == 0, result.output
        assert "bar        scheduled" in result.output
        assert "foo        blocked: waiting for bar" in result.output

    def test_history(self, pbs_conf, tmp_path):
        job = make_job(make_package(str(tmp_path)), str(tmp_path))
        BuildHistory(pbs_conf.state_dir).append(job)
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["history", "foo"])
            missing = self.runner.invoke(cli, ["history", "nope"])
        assert result.exit_code == 0, result.output
        assert "succeeded" in result.output
        assert "builder0 x86_64 (new build)" in result.output
        assert missing.exit_code != 0
        assert "No build history of nope" in missing.output

    def test_history_lists_packages(self, pbs_conf, tmp_path):
        job = make_job(make_package(str(tmp_path)), str(tmp_path))
        BuildHistory(pbs_conf.state_dir).append(job)
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["history"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["foo"]

    @patch("package_build_service.manage.create_app")
    def test_serve_uses_configured_address(self, create_app, pbs_conf):
        pbs_conf.set_item("port", 8081)
        with patch("package_build_service.manage.conf", pbs_conf):
            result = self.runner.invoke(cli, ["serve"])
        assert result.exit_code == 0, result.output
        create_app.return_value.run.assert_called_once_with(host="127.0.0.1", port=8081)
