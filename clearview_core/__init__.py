# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
ClearView Core Engine
=====================

Orchestration core for news bias analysis: cache-aware, retry-hardened,
partially-degradable pipelines over generation, search and citation backends.
"""

__version__ = "1.0.0"
