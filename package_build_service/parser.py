# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT

import os

import yaml

from package_build_service.common.errors import RecipeError
from package_build_service.common.models import ErrorKind, PackageError, Recipe

DIRECTIVES = {
    "excluded": ErrorKind.excluded,
    "disabled": ErrorKind.disabled,
    "locked": ErrorKind.locked,
}


class RecipeParser(object):
    """Base class for parsing the recipe of one package directory

    A parser returns a Recipe or raises RecipeError. It never decides about
    scheduling, it only reports what the recipe says.
    """

    def parse(self, directory, config):
        raise NotImplementedError()


class YAMLRecipeParser(RecipeParser):
    """
    Reads ``<package dir>/<config.recipe_filename>``, a YAML mapping like::

        type: rpm
        buildrequires: [gcc, libfoo-devel]
        provides: [foo, foo-devel]
        useforbuild: true
        exclusivearch: [x86_64, aarch64]
        directive: disabled
        directive_reason: waiting for upstream fix
    """

    def parse(self, directory, config):
        """
        :param str directory: the package directory
        :param config: the Config instance
        :return: the parsed recipe
        :rtype: Recipe
        :raises RecipeError: if the recipe is missing or invalid
        """
        name = os.path.basename(os.path.normpath(directory))
        path = os.path.join(directory, config.recipe_filename)
        try:
            with open(path, "rb") as f:
                data = yaml.safe_load(f)
        except IOError as e:
            raise RecipeError("Can't read %s: %s" % (config.recipe_filename, e.strerror))
        except yaml.YAMLError as e:
            raise RecipeError("Invalid YAML in %s: %s" % (config.recipe_filename, e))

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise RecipeError("%s must contain a mapping" % config.recipe_filename)

        buildrequires = self._name_list(data, "buildrequires")
        provides = self._name_list(data, "provides") or [name]
        exclusive_arches = self._name_list(data, "exclusivearch")

        use_for_build = data.get("useforbuild", True)
        if not isinstance(use_for_build, bool):
            raise RecipeError("useforbuild must be true or false")

        directive = None
        if data.get("directive") is not None:
            if not isinstance(data["directive"], str):
                raise RecipeError("directive must be one of %s" % ", ".join(sorted(DIRECTIVES)))
            kind = DIRECTIVES.get(data["directive"])
            if kind is None:
                raise RecipeError("Unknown directive %r" % data["directive"])
            directive = PackageError(kind, data.get("directive_reason") or kind.value)

        return Recipe(
            build_type=str(data.get("type", "generic")),
            buildrequires=buildrequires,
            provides=provides,
            use_for_build=use_for_build,
            exclusive_arches=exclusive_arches,
            directive=directive,
        )

    @staticmethod
    def _name_list(data, key):
        value = data.get(key) or []
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
            raise RecipeError("%s must be a list of names" % key)
        names = []
        for v in value:
            if v not in names:
                names.append(v)
        return names
