# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Kubernetes controller that materializes SecretDefinitions into Secrets."""

__version__ = "0.1.0"
