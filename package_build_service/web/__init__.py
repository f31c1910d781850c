# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Flask application serving the reporting views. """

from flask import Flask

from package_build_service.common.errors import NotFound, ValidationError, json_error


def create_app(config=None):
    """ Create the Flask application.

    :param config: the Config instance, package_build_service.conf by default
    """
    from package_build_service import conf
    from package_build_service.web.views import register_api_v1

    app = Flask(__name__)
    app.config["PBS_CONF"] = config or conf

    @app.errorhandler(ValidationError)
    def validationerror_error(e):
        """Flask error handler for ValidationError exceptions"""
        return json_error(400, "Bad Request", str(e))

    @app.errorhandler(NotFound)
    def notfound_error(e):
        """Flask error handler for NotFound exceptions"""
        return json_error(404, "Not Found", str(e))

    register_api_v1(app)
    return app
