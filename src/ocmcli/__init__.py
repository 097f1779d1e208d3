# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
OCM - command line client for the OpenShift Cluster Manager API.

Logs users in against Red Hat SSO, keeps the resulting tokens in a config
file or the OS keyring, and sends authenticated requests to the API gateway.
"""

from loguru import logger

__version__ = "0.1.0"

# Silent until the CLI calls setup_logging().
logger.disable("ocmcli")
