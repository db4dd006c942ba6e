# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
clipkg: builds self-contained, platform-specific archives for compiled CLI programs.
"""

__version__: str = "0.1.0"
