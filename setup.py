# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Setup configuration for the secrets manager controller."""

from setuptools import setup, find_packages

setup(
    name="secrets-manager",
    version="0.1.0",
    description="Kubernetes controller that materializes SecretDefinitions from a secret backend",
    author="Secrets Manager contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "kubernetes>=28.1.0,<37",
        "prometheus-client>=0.19.0",
        "urllib3>=1.26.0",
        "hvac>=1.2.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "azure": [
            "azure-keyvault-secrets>=4.7.0",
            "azure-identity>=1.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "secrets-manager=secrets_manager.main:main",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
    ],
)
