# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import os

_LOCAL_ENVS = frozenset({"local", "dev", "development"})


def runtime_env() -> str:
    """Deployment environment name from CLEARVIEW_ENV (or ENV); defaults to production."""
    raw = os.getenv("CLEARVIEW_ENV") or os.getenv("ENV") or ""
    return raw.strip().lower() or "production"


def is_local_run() -> bool:
    return runtime_env() in _LOCAL_ENVS
