# Copyright (c) 2024, The manifest-tool Contributors
#
# SPDX-License-Identifier: Apache-2.0

from manifest_tool.app.main import main

main()
