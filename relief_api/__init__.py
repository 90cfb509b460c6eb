# SPDX-License-Identifier: Apache-2.0

"""
Relief coordination API.

Flask service for disaster-relief help requests, volunteer assignment,
shelters and in-app notifications.
"""

__version__ = "1.0.0"
