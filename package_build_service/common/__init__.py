# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Code shared by the scheduler, the builders and the web views. """
