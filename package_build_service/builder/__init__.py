# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
from package_build_service.builder.base import GenericBuilder
from package_build_service.builder.CommandBuilder import CommandBuilder
from package_build_service.builder.jobs import JobManager

__all__ = ["GenericBuilder", "JobManager"]

GenericBuilder.register_backend_class(CommandBuilder)
