# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Common constants for the cascade delete package.
"""

__all__ = []
