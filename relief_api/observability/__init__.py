# SPDX-License-Identifier: Apache-2.0

"""
Logging and tracing setup.
"""
