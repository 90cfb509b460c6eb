# SPDX-License-Identifier: Apache-2.0

"""
Operational scripts, run with ``python -m relief_api.scripts.<name>``.
"""
