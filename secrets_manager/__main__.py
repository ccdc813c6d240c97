# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

import sys

from .main import main

sys.exit(main())
