# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Defines custom exceptions and error handling functions """

from flask import jsonify


class ValidationError(ValueError):
    pass


class ProgrammingError(ValueError):
    pass


class RecipeError(ValueError):
    """Raised by a recipe parser when a recipe cannot be used"""


class DependencyError(ValueError):
    """Raised by a resolver when a dependency expression cannot be expanded"""


class NotFound(ValueError):
    pass


class RepositoryError(RuntimeError):
    """Raised when a repository snapshot cannot be fetched"""


class BuilderError(RuntimeError):
    """Raised when a build job cannot be started"""


class RegistryError(RuntimeError):
    """Raised when the package registry cannot be read at all"""


class PersistenceError(RuntimeError):
    """Raised when the engine state cannot be written to disk"""


def json_error(status, error, message):
    response = jsonify({"status": status, "error": error, "message": message})
    response.status_code = status
    return response
