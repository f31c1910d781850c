# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from package_build_service.resolver.base import GenericResolver
from package_build_service.resolver.SimpleResolver import SimpleResolver

__all__ = ["GenericResolver", "SimpleResolver"]

GenericResolver.register_backend_class(SimpleResolver)
