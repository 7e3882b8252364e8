# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

# Nothing in here is public API.
