# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Read-only API over the result store and the build history.

The engine may be running while these views are served; they only read the
files it replaces atomically.
"""

from flask import current_app, jsonify, request
from flask.views import MethodView

from package_build_service import api_version
from package_build_service.common.errors import NotFound, ValidationError
from package_build_service.common.models import PackageStatus
from package_build_service.store import BuildHistory, ResultStore


def _state_dir():
    return current_app.config["PBS_CONF"].state_dir


class PackageAPI(MethodView):

    def get(self, name):
        results = ResultStore(_state_dir()).load()
        if name is None:
            status = request.args.get("status")
            if status and status not in [s.value for s in PackageStatus]:
                raise ValidationError("Invalid status %r" % status)
            items = []
            for package_name in sorted(results):
                entry = results[package_name]
                if status and entry.status.value != status:
                    continue
                item = entry.json()
                item["name"] = package_name
                items.append(item)
            return jsonify({"items": items, "meta": {"total": len(items)}}), 200

        if name not in results:
            raise NotFound("No such package found.")
        data = results[name].json()
        data["name"] = name
        data["history"] = BuildHistory(_state_dir()).read(name)
        return jsonify(data), 200


def register_api_v1(app):
    """ Registers version 1 of the package build service API. """
    package_view = PackageAPI.as_view("packages")
    prefix = "/package-build-service/%d" % api_version
    app.add_url_rule(prefix + "/packages/", defaults={"name": None},
                     view_func=package_view, methods=["GET"])
    app.add_url_rule(prefix + "/packages/<name>", view_func=package_view, methods=["GET"])
