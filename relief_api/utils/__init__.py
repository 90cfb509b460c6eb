# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request parsing and response envelope helpers.
"""
