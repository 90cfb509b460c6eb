# SPDX-License-Identifier: Apache-2.0

"""
Route blueprints, one per resource.
"""
