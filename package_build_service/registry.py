# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" The catalogue of packages taking part in a run. """

import logging
import os

from package_build_service.common.errors import RecipeError, RegistryError
from package_build_service.common.models import ErrorKind, Package, PackageError
from package_build_service.common.utils import fingerprint_directory
from package_build_service.parser import YAMLRecipeParser

log = logging.getLogger(__name__)


class PackageRegistry(object):
    """
    All packages found in ``config.recipes_dir``, one per sub-directory.

    The set of packages is fixed once scanned. refresh() only re-reads the
    packages whose sources changed since the last look.
    """

    def __init__(self, config, parser=None):
        self.config = config
        self.parser = parser or YAMLRecipeParser()
        self.packages = {}

    def scan(self):
        """ Discover all packages and parse their recipes.

        :raises RegistryError: if the recipes directory can't be listed
        """
        recipes_dir = self.config.recipes_dir
        try:
            entries = sorted(os.listdir(recipes_dir))
        except OSError as e:
            raise RegistryError("Can't read the recipes directory %s: %s" % (
                recipes_dir, e.strerror))

        self.packages = {}
        for entry in entries:
            directory = os.path.join(recipes_dir, entry)
            if entry.startswith(".") or not os.path.isdir(directory):
                continue
            package = Package(entry, directory)
            self._load(package)
            self.packages[entry] = package

        log.info("Found %d packages in %s", len(self.packages), recipes_dir)
        return self.packages

    def refresh(self):
        """ Re-read the packages whose fingerprint changed.

        :return: set of names of the changed packages
        """
        changed = set()
        for package in self:
            if self._fingerprint(package) != package.fingerprint:
                log.info("Sources of %s changed, re-reading the recipe", package.name)
                self._load(package)
                changed.add(package.name)
        return changed

    def _fingerprint(self, package):
        try:
            return fingerprint_directory(package.directory)
        except OSError as e:
            log.warning("Can't fingerprint %s: %s", package.name, e)
            return None

    def _load(self, package):
        package.fingerprint = self._fingerprint(package)
        package.recipe = None
        package.error = None

        if package.fingerprint is None:
            package.error = PackageError(ErrorKind.broken, "can't read the package sources")
            return

        try:
            recipe = self.parser.parse(package.directory, self.config)
        except RecipeError as e:
            log.debug("Recipe of %s is broken: %s", package.name, e)
            package.error = PackageError(ErrorKind.broken, str(e))
            return

        package.recipe = recipe
        if recipe.directive is not None:
            package.error = recipe.directive
        elif recipe.exclusive_arches and self.config.arch not in recipe.exclusive_arches:
            package.error = PackageError(
                ErrorKind.excluded, "not built for %s" % self.config.arch)

    def get(self, name):
        return self.packages.get(name)

    def names(self):
        return sorted(self.packages)

    def __iter__(self):
        for name in self.names():
            yield self.packages[name]

    def __len__(self):
        return len(self.packages)

    def __contains__(self, name):
        return name in self.packages
