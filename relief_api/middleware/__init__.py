# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains session authentication, error formatting and CORS
handling for the relief coordination API.
"""
