# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of ClearView Engine.
#
# ClearView Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
ClearView CLI Module

Command-line access to the ClearView engine.

Usage:
    clearview analyze --url URL --title TITLE --source SOURCE -f article.txt [--stream]
    clearview perspectives "student loans" -k forgiveness --lean left
    clearview evidence "minimum wage" --argument "Raising the minimum wage costs jobs"
    clearview doi https://doi.org/10.1038/nature12373
    clearview cost-status [--health]
"""

from clearview_cli.commands import main

__all__ = ["main"]

if __name__ == "__main__":
    main()
