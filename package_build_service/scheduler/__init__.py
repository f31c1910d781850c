# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" The scheduling and checking engine. """
