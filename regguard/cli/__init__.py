# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0
# RegGuard CLI Module

from regguard.cli.main import cli

__all__ = ["cli"]
